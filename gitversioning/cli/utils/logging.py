import logging
import sys


logger = logging.getLogger("gitversioning")

_handler = None


def configure_logging(debug: bool):
    """
    Configures the gitversioning logger based on the debug flag.

    Log records go to stderr so that version strings printed on stdout can
    be captured by build scripts. With debug on, records carry the emitting
    module so the steps of a version computation can be followed.
    """
    global _handler

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if debug:
        formatter = logging.Formatter("%(name)s: %(message)s")
    else:
        formatter = logging.Formatter("%(message)s")

    if _handler is None and not logger.hasHandlers():
        _handler = logging.StreamHandler(sys.stderr)
        logger.addHandler(_handler)
    if _handler is not None:
        _handler.setFormatter(formatter)
