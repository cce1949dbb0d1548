"""Process-wide access to the loaded configuration."""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from pushdeploy.app.runtime.config.config_data import ConfigData
from pushdeploy.app.runtime.config.config_loader import CONFIG_PATH, load_config

_config: ConfigData | None = None


def get_config() -> ConfigData:
    """Return the active configuration, loading it on first use.

    The path comes from ``PUSHDEPLOY_CONFIG`` (default ``config.yaml``). When
    the file is missing the built-in defaults are used.
    """
    global _config
    if _config is None:
        path = Path(os.getenv("PUSHDEPLOY_CONFIG", str(CONFIG_PATH)))
        if path.exists():
            _config = load_config(path)
        else:
            logger.warning(f"{path} not found, using default configuration")
            _config = ConfigData()
    return _config


def set_config(config: ConfigData | None) -> None:
    """Replace the active configuration (``None`` forces a reload)."""
    global _config
    _config = config
