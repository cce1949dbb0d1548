"""Cluster inspection commands."""

import typer
from rich.table import Table

from pushdeploy.infra.k8s import run_sync
from pushdeploy.infra.k8s.quantities import format_bytes, format_millicores
from pushdeploy.cli.context import get_cli_context
from pushdeploy.cli.shared.console import with_error_handling


def _percent(used: int | None, total: int) -> str:
    if used is None or total <= 0:
        return "-"
    return f"{round(used / total * 100)}%"


@with_error_handling
def nodes() -> None:
    """Show node readiness, capacity, usage and running pods."""
    ctx = get_cli_context()
    controller = ctx.deps.cluster_controller

    context = run_sync(controller.get_current_context())
    metrics = run_sync(controller.get_node_metrics())

    table = Table(title=f"Nodes ({context})")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("CPU (used / allocatable)")
    table.add_column("Memory (used / allocatable)")
    table.add_column("Pods", justify="right")

    for node in metrics:
        cpu_used = format_millicores(node.cpu_usage) if node.cpu_usage is not None else "-"
        mem_used = format_bytes(node.memory_usage) if node.memory_usage is not None else "-"
        table.add_row(
            node.name,
            "[green]Ready[/green]" if node.ready else "[red]NotReady[/red]",
            f"{cpu_used} / {format_millicores(node.cpu_allocatable)} "
            f"({_percent(node.cpu_usage, node.cpu_allocatable)})",
            f"{mem_used} / {format_bytes(node.memory_allocatable)} "
            f"({_percent(node.memory_usage, node.memory_allocatable)})",
            str(node.pod_count),
        )

    ctx.console.print(table)
