"""Configuration management for churchhub.

Handles loading and generating TOML config files for per-installation
settings like the database path and the default import mode.
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path

DEFAULT_CONFIG_PATH = "churchhub.toml"

DEFAULT_CONFIG_TEMPLATE = """\
# churchhub configuration
# Edit freely; missing keys fall back to the defaults shown here.

[database]
path = "churchhub.db"

[import]
# "replace" discards a collection before importing, "merge" dedupes into it
default_mode = "replace"
# Reject children/teens members without a Parent/Guardian on CSV import
require_guardian = false

[analytics]
# Trailing months in the growth table
months = 6

[notifications]
# Preferences are stored per user in the database
user = "default"
# Feed file used when the feed is not kept in the database
feed_path = "notification_feed.json"
feed_limit = 50
"""


def _default_config() -> dict:
    """Return default configuration."""
    return {
        "database": {"path": "churchhub.db"},
        "import": {"default_mode": "replace", "require_guardian": False},
        "analytics": {"months": 6},
        "notifications": {
            "user": "default",
            "feed_path": "notification_feed.json",
            "feed_limit": 50,
        },
    }


def load_config(config_path: str = DEFAULT_CONFIG_PATH, quiet: bool = False) -> dict:
    """Load configuration from a TOML file.

    Returns the default configuration updated section by section with the
    file's contents. Unknown sections are ignored.

    Falls back to defaults if the config file doesn't exist.
    """
    path = Path(config_path)
    if not path.exists():
        if not quiet:
            print(
                f"Warning: Config file '{config_path}' not found, using defaults. "
                f"Run 'churchhub init-config' to generate one.",
                file=sys.stderr,
            )
        return _default_config()

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    config = _default_config()
    for section, values in raw.items():
        if section in config and isinstance(values, dict):
            config[section].update(values)

    mode = config["import"]["default_mode"]
    if mode not in ("replace", "merge"):
        raise ValueError(f"{config_path}: import.default_mode must be 'replace' or 'merge', got {mode!r}")
    return config


def generate_config(config_path: str = DEFAULT_CONFIG_PATH) -> str:
    """Write the default config template. Returns the written path."""
    Path(config_path).write_text(DEFAULT_CONFIG_TEMPLATE)
    return config_path
