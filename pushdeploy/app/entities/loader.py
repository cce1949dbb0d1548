"""Dynamic SQLModel table loader.

Every ``table.py`` below this package declares SQLModel tables, which register
themselves on ``SQLModel.metadata`` when imported. This loader imports them
all so ``create_all`` sees every table without a hand-maintained import list.
"""

import importlib
from pathlib import Path

from loguru import logger
from sqlalchemy import MetaData
from sqlmodel import SQLModel


def get_entities_path() -> Path:
    return Path(__file__).parent


def load_all_tables() -> None:
    """Import all table.py modules to register their SQLModel tables."""
    entities_path = get_entities_path()

    # e.g. 'pushdeploy.app' for 'pushdeploy.app.entities.loader'
    package_base = __name__.rsplit(".", 2)[0]

    for table_file in sorted(entities_path.rglob("table.py")):
        module_parts = table_file.relative_to(entities_path).with_suffix("").parts
        module_name = f"{package_base}.entities.{'.'.join(module_parts)}"

        try:
            importlib.import_module(module_name)
            logger.debug(f"Imported tables from {module_name}")
        except ImportError as e:
            raise ImportError(
                f"Failed to import table module '{module_name}' from {table_file}: {e}"
            ) from e


def get_metadata() -> MetaData:
    """Load all tables and return SQLModel.metadata."""
    load_all_tables()
    return SQLModel.metadata
