"""Deployment commands.

``process`` runs one pending deployment in the foreground, which is handy
when the API server is down or when debugging a build.
"""

import asyncio
from typing import Annotated

import typer
from rich.table import Table

from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling

deployments_app = typer.Typer(help="Inspect and run deployments", no_args_is_help=True)

STATUS_STYLES = {
    "pending": "dim",
    "building": "cyan",
    "deploying": "blue",
    "live": "green",
    "failed": "red",
}


@deployments_app.command("process")
@with_error_handling
def process(
    deployment_id: Annotated[str, typer.Argument(help="Deployment to run")],
    show_logs: Annotated[
        bool, typer.Option("--logs", help="Print build and deploy logs afterwards")
    ] = False,
) -> None:
    """Run a pending deployment to completion in this process."""
    ctx = get_cli_context()
    deps = ctx.deps

    with ctx.console.status(f"Processing deployment {deployment_id}..."):
        asyncio.run(deps.orchestrator.process(deployment_id))

    deployment = deps.deployments.get(deployment_id)
    if deployment is None:
        ctx.console.handle_error(f"Deployment {deployment_id} not found")
        return

    if show_logs:
        for title, text in (("Build logs", deployment.build_logs), ("Deploy logs", deployment.logs)):
            if text:
                ctx.console.print_header(title)
                ctx.console.print(text)

    if deployment.status == "live":
        ctx.console.ok(f"Deployment {deployment_id} is live ({deployment.image_tag})")
    else:
        ctx.console.handle_error(
            f"Deployment {deployment_id} ended as {deployment.status}", deployment.error
        )


@deployments_app.command("list")
@with_error_handling
def list_deployments(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    limit: Annotated[int, typer.Option(min=1, max=100)] = 20,
) -> None:
    """Show the most recent deployments of a project."""
    ctx = get_cli_context()
    items, _ = ctx.deps.deployments.list_for_project(project_id, limit=limit)

    table = Table(title=f"Deployments of {project_id}")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Commit")
    table.add_column("Image")
    table.add_column("Created")
    table.add_column("Error", overflow="fold")

    for d in items:
        style = STATUS_STYLES.get(d.status, "")
        table.add_row(
            d.id,
            f"[{style}]{d.status}[/{style}]" if style else d.status,
            d.commit_sha[:7],
            d.image_tag or "-",
            d.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            d.error or "",
        )
    ctx.console.print(table)


@deployments_app.command("cancel")
@with_error_handling
def cancel(deployment_id: Annotated[str, typer.Argument(help="Deployment id")]) -> None:
    """Cancel a pending or building deployment."""
    ctx = get_cli_context()
    ctx.deps.state_machine.cancel(deployment_id)
    ctx.console.ok(f"Deployment {deployment_id} cancelled")
