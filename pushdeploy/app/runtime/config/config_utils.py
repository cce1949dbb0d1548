import os
import re
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

_SECRETS_LOADED = False

# Most systems cap environment values around 128KB; stay well below that.
MAX_ENV_VAR_SIZE = 32768


def _get_project_root() -> Path:
    return Path(__file__).resolve().parents[4]


def _candidate_secret_dirs() -> Iterable[Path]:
    custom_dir = os.getenv("PUSHDEPLOY_SECRETS_DIR")
    if custom_dir:
        yield Path(custom_dir)
    yield _get_project_root() / "secrets"


def _load_secret_files_into_env() -> None:
    """Expose files from the secrets directory as environment variables.

    ``secrets/registry_password`` becomes ``REGISTRY_PASSWORD`` unless that
    variable is already set. Only the first existing directory is used.
    """
    global _SECRETS_LOADED
    if _SECRETS_LOADED:
        return

    for directory in _candidate_secret_dirs():
        if not directory.is_dir():
            continue

        for file_path in directory.iterdir():
            if not file_path.is_file():
                continue

            env_name = "".join(
                c if c.isalnum() or c == "_" else "_" for c in file_path.stem.upper()
            )
            if not env_name or env_name in os.environ:
                continue

            try:
                if file_path.stat().st_size > MAX_ENV_VAR_SIZE:
                    logger.warning(
                        f"Secret file {file_path.name} is too large to load (max {MAX_ENV_VAR_SIZE} bytes)"
                    )
                    continue
                value = file_path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning(f"Unable to read secret file {file_path}: {exc}")
                continue

            if not value:
                continue

            os.environ[env_name] = value
            logger.debug(f"Loaded secret {env_name} from {file_path.name}")

        break

    _SECRETS_LOADED = True


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    _load_secret_files_into_env()

    def replacer(match: re.Match[str]) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ValueError(f"Required environment variable {var_name}: {error_msg}")
            return value

        value = os.getenv(var_expr)
        if value is None:
            raise ValueError(f"Required environment variable {var_expr} not set")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)
