"""User-level settings for the gitversioning command line.

Version numbers themselves are driven only by the version files committed in
a repository; these settings merely pick defaults for the CLI.
"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

APP_NAME = "gitversioning"

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")

default_cfg = {
    "output": {"format": "text"},
    "cloud": {"provider": ""},
}

OUTPUT_FORMATS = ("text", "json", "yaml")

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/gitversioning").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for the settings file.

    Missing sections or keys fall back to the supplied default.

    Usage:
        config = ConfigAccessor()
        value = config.get('output', 'format', default='text')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Path to the settings file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = Path(config_path)

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default


# Create a global config accessor instance
config = ConfigAccessor()


def get_output_format(accessor: Optional[ConfigAccessor] = None) -> str:
    """
    Default output format of ``gv get-version``.

    Unknown values fall back to ``text``.
    """
    accessor = accessor or config
    value = accessor.get("output", "format", default_cfg["output"]["format"])
    value = str(value).strip().lower()
    if value not in OUTPUT_FORMATS:
        logging.getLogger(__name__).warning(
            f"Ignoring unknown output format '{value}' in {accessor.config_path}"
        )
        return default_cfg["output"]["format"]
    return value


def get_cloud_provider(accessor: Optional[ConfigAccessor] = None) -> Optional[str]:
    """CI provider to use instead of auto-detection, or None."""
    accessor = accessor or config
    value = accessor.get("cloud", "provider", default_cfg["cloud"]["provider"])
    value = str(value).strip()
    return value or None
