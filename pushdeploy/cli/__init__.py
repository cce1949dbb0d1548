"""Main CLI application module.

Command Groups:
- serve: Run the API server
- nodes: Show cluster node capacity and usage
- db: Database management
- deployments: Inspect, run and cancel deployments
- projects: Preview, inspect and tear down project infrastructure
- dns: Cloudflare token checks
- users: Accounts and stored credentials
"""

from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from .commands import db_app, deployments_app, dns_app, nodes, projects_app, users_app
from .context import build_cli_context, get_cli_context

app = typer.Typer(
    help="🚀 pushdeploy - push-to-deploy for Kubernetes",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def setup(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            exists=True,
            dir_okay=False,
            envvar="PUSHDEPLOY_CONFIG",
            help="Path to config.yaml",
        ),
    ] = None,
) -> None:
    ctx.obj = build_cli_context(config)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port")] = None,
    reload: Annotated[bool, typer.Option(help="Reload on code changes")] = False,
) -> None:
    """Run the HTTP API, webhook receiver and deployment orchestrator."""
    ctx = get_cli_context()
    settings = ctx.config.app
    ctx.console.info(
        f"Serving on {host or settings.host}:{port or settings.port} ({settings.environment})"
    )
    uvicorn.run(
        "pushdeploy.app.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


app.command("nodes")(nodes)
app.add_typer(db_app, name="db")
app.add_typer(deployments_app, name="deployments")
app.add_typer(projects_app, name="projects")
app.add_typer(dns_app, name="dns")
app.add_typer(users_app, name="users")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
