"""Database commands."""

import typer

from pushdeploy.app.core.services.database.db_manage import DbManageService
from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling

db_app = typer.Typer(help="Database management", no_args_is_help=True)


@db_app.command("init")
@with_error_handling
def init() -> None:
    """Create all tables that do not exist yet."""
    ctx = get_cli_context()
    DbManageService(ctx.deps.database_service).create_all()
    ctx.console.ok(f"Database ready at {ctx.config.database.url}")
