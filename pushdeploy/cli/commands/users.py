"""User account and credential commands."""

from typing import Annotated

import typer
from rich.table import Table

from pushdeploy.app.core.services.users.models import CloudflareUpdate, UserCreate
from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.k8s import run_sync
from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling

users_app = typer.Typer(help="Users and their credentials", no_args_is_help=True)


def _print_user(user: User) -> None:
    ctx = get_cli_context()
    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("ID", user.id)
    table.add_row("Name", user.name or "-")
    table.add_row("Email", user.email or "-")
    table.add_row("GitHub", user.github_username or "-")
    table.add_row("GitHub token", "set" if user.github_access_token else "[yellow]missing[/yellow]")
    table.add_row("Cloudflare token", "set" if user.cloudflare_token else "-")
    table.add_row("Cloudflare zone", user.cloudflare_zone or "-")
    ctx.console.print(table)


@users_app.command("create")
@with_error_handling
def create(
    email: Annotated[str, typer.Argument(help="Email address")],
    name: Annotated[str | None, typer.Option(help="Display name")] = None,
) -> None:
    """Register a user."""
    ctx = get_cli_context()
    user = ctx.deps.user_settings.register(UserCreate(email=email, name=name))
    ctx.console.ok(f"Created user {user.id}")


@users_app.command("show")
@with_error_handling
def show(user_id: Annotated[str, typer.Argument(help="User id")]) -> None:
    """Show a user and which credentials are configured."""
    _print_user(get_cli_context().deps.user_settings.get(user_id))


@users_app.command("github")
@with_error_handling
def github(
    user_id: Annotated[str, typer.Argument(help="User id")],
    token: Annotated[
        str,
        typer.Option(
            envvar="GITHUB_TOKEN",
            prompt=True,
            hide_input=True,
            help="GitHub access token with repo and admin:repo_hook scopes",
        ),
    ],
) -> None:
    """Verify a GitHub token and store it for the user."""
    ctx = get_cli_context()
    user = run_sync(ctx.deps.user_settings.connect_github(user_id, token))
    ctx.console.ok(f"Connected GitHub account {user.github_username}")


@users_app.command("cloudflare")
@with_error_handling
def cloudflare(
    user_id: Annotated[str, typer.Argument(help="User id")],
    token: Annotated[
        str | None,
        typer.Option(envvar="CLOUDFLARE_API_TOKEN", help="Cloudflare API token"),
    ] = None,
    zone: Annotated[str | None, typer.Option(help="Zone id to publish records in")] = None,
    remove: Annotated[bool, typer.Option("--remove", help="Forget token and zone")] = False,
) -> None:
    """Verify and store Cloudflare credentials, or remove them."""
    ctx = get_cli_context()
    if not (token or zone or remove):
        ctx.console.handle_error("Nothing to change", "Pass --token, --zone or --remove")
        return

    update = CloudflareUpdate(token=token, zone_id=zone, remove=remove)
    user = run_sync(ctx.deps.user_settings.update_cloudflare(user_id, update))
    if remove:
        ctx.console.ok("Cloudflare credentials removed")
    else:
        ctx.console.ok(f"Cloudflare credentials saved (zone: {user.cloudflare_zone or '-'})")
