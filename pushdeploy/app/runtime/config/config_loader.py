"""Configuration loading with environment variable substitution."""

import os
from pathlib import Path
from typing import Any, Literal, overload

import yaml
from loguru import logger
from pydantic import ValidationError

from pushdeploy.app.runtime.config.config_data import ConfigData
from pushdeploy.app.runtime.config.config_utils import substitute_env_vars

CONFIG_PATH = Path("config.yaml")


@overload
def load_config(
    file_path: Path = ..., processed: Literal[True] = ...
) -> ConfigData: ...


@overload
def load_config(
    file_path: Path = ..., *, processed: Literal[False]
) -> dict[str, Any]: ...


def load_config(
    file_path: Path = CONFIG_PATH, processed: bool = True
) -> ConfigData | dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        file_path: Path to the YAML file (default: config.yaml)
        processed: Whether to substitute environment variables and validate.
                  - True (default): substitute env vars and validate as ConfigData
                  - False: return the raw dict without substitution

    Returns:
        ConfigData if processed, raw dict otherwise

    Raises:
        ValueError: If a required environment variable is missing, the YAML is
                   malformed, the top-level 'config' key is absent or
                   validation fails
        FileNotFoundError: If the YAML file doesn't exist

    Side Effects (when processed):
        Variables prefixed with the uppercased APP_ENVIRONMENT
        (e.g. PRODUCTION_REGISTRY_PASSWORD) are copied into os.environ without
        the prefix before substitution.
    """
    with open(file_path) as f:
        content = f.read()

    if processed:
        env_mode = os.getenv("APP_ENVIRONMENT", "development")
        prefix = f"{env_mode.upper()}_"
        logger.info(f"Loading configuration for environment: {env_mode}")

        overrides = [
            (var, value) for var, value in os.environ.items() if var.startswith(prefix)
        ]
        logger.debug(f"Applying {len(overrides)} environment-specific overrides")
        for var_name, var_value in overrides:
            os.environ[var_name[len(prefix) :]] = var_value

        content = substitute_env_vars(content)

    try:
        loaded: dict[str, Any] = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e

    if not processed:
        return loaded
    if not loaded:
        raise ValueError("Failed to parse YAML")
    if "config" not in loaded:
        raise ValueError("Invalid YAML structure: missing 'config' key")

    try:
        return ConfigData(**(loaded["config"] or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
