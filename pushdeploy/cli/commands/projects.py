"""Project infrastructure commands."""

from typing import Annotated

import typer
from rich.table import Table

from pushdeploy.app.core.exceptions import NotFoundError
from pushdeploy.app.core.services.deployments.orchestrator import desired_state_for
from pushdeploy.infra.k8s import run_sync
from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling

projects_app = typer.Typer(help="Project infrastructure", no_args_is_help=True)

ACTION_STYLES = {"create": "green", "update": "yellow", "delete": "red"}


@projects_app.command("preview")
@with_error_handling
def preview(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    image: Annotated[
        str | None,
        typer.Option(help="Image to preview with (defaults to the deployed image)"),
    ] = None,
) -> None:
    """Show which cluster objects a deploy would create or update."""
    ctx = get_cli_context()
    deps = ctx.deps
    project = deps.project_service.get(project_id)

    state = deps.provisioner.status(project.slug)
    image = image or (state.image if state else None)
    if not image:
        ctx.console.handle_error(
            f"Project {project.slug} has never been deployed", "Pass --image to preview anyway"
        )
        return

    desired = desired_state_for(project, image, ctx.config.app)
    changes = run_sync(deps.provisioner.preview(desired))

    table = Table(title=f"Planned changes for {project.slug} in {deps.provisioner.namespace}")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Action")
    for change in changes:
        style = ACTION_STYLES[change.action]
        table.add_row(change.kind, change.name, f"[{style}]{change.action}[/{style}]")
    ctx.console.print(table)


@projects_app.command("status")
@with_error_handling
def status(slug: Annotated[str, typer.Argument(help="Project slug")]) -> None:
    """Show the last reconciled infrastructure state of a project."""
    ctx = get_cli_context()
    state = ctx.deps.provisioner.status(slug)
    if state is None:
        raise NotFoundError(f"No infrastructure recorded for {slug}")

    ctx.console.print_header(slug)
    ctx.console.print(f"Namespace: {state.namespace}")
    ctx.console.print(f"Image:     {state.image}")
    ctx.console.print(f"Hosts:     {', '.join(state.hosts)}")
    ctx.console.print(f"Resources: {', '.join(state.resources)}")
    ctx.console.print(f"Updated:   {state.updated_at:%Y-%m-%d %H:%M:%S}")


@projects_app.command("teardown")
@with_error_handling
def teardown(
    slug: Annotated[str, typer.Argument(help="Project slug")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Delete a project's workload, service, ingress and env secret."""
    ctx = get_cli_context()
    namespace = ctx.deps.provisioner.namespace
    if not ctx.console.confirm_action(
        f"Tear down {slug}",
        f"Ingress, Service, Deployment and Secret for {slug} in {namespace} will be deleted.",
        force=force,
    ):
        raise typer.Exit(1)

    result = run_sync(ctx.deps.provisioner.teardown(slug))
    if not result.success:
        ctx.console.handle_error(f"Teardown of {slug} failed", result.error)
    ctx.console.ok(f"Tore down {slug}")
