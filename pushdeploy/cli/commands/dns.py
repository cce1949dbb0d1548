"""DNS provider commands."""

from typing import Annotated

import typer
from rich.table import Table

from pushdeploy.infra.k8s import run_sync
from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling

dns_app = typer.Typer(help="Cloudflare DNS", no_args_is_help=True)


@dns_app.command("verify")
@with_error_handling
def verify(
    token: Annotated[
        str,
        typer.Option(
            envvar="CLOUDFLARE_API_TOKEN",
            prompt=True,
            hide_input=True,
            help="Cloudflare API token to check",
        ),
    ],
) -> None:
    """Check a Cloudflare token and list the zones it can manage."""
    ctx = get_cli_context()
    result = run_sync(ctx.deps.dns_publisher.verify_token(token))

    if not result.valid:
        ctx.console.handle_error("Cloudflare token is not valid", result.error)

    if not result.zones:
        ctx.console.warn("Token is valid but no zones are accessible")
        return

    table = Table(title="Accessible zones")
    table.add_column("Zone ID", style="dim")
    table.add_column("Name", style="bold")
    for zone in result.zones:
        table.add_row(zone.id, zone.name)
    ctx.console.print(table)
    ctx.console.ok("Cloudflare token is valid")
