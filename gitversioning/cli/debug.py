from functools import wraps

import click

from .utils.logging import configure_logging


def _debug_option():
    return click.Option(
        ["--debug/--no-debug"],
        is_eager=True,
        expose_value=False,
        callback=lambda ctx, param, value: _set_debug(ctx, value),
        help="Log how the version was computed (to stderr).",
    )


def add_debug_option(cmd):
    """Add a --debug/--no-debug option to a command, group or callback."""
    if isinstance(cmd, click.Command):
        if not any(param.name == "debug" for param in cmd.params):
            cmd.params.insert(0, _debug_option())
        return cmd

    @wraps(cmd)
    def wrapper(*args, **kwargs):
        return cmd(*args, **kwargs)

    wrapper.__click_params__ = getattr(cmd, "__click_params__", []) + [
        _debug_option()
    ]
    return wrapper


def _set_debug(ctx, value: bool):
    """Store the debug flag on the root context and (re)configure logging.

    Debug may be switched on from any command level, but only the top level
    can switch it off again.
    """
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    root_ctx.obj.setdefault("DEBUG", False)

    is_root = len(ctx.command_path.split()) == 1
    if value is True or is_root:
        root_ctx.obj["DEBUG"] = value

    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]
