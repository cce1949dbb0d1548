"""Abstract cluster controller interface.

Defines the small set of Kubernetes operations the provisioner and the
operator tooling need, so the kr8s backend can be swapped for a fake in
tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Data Types
# =============================================================================

Manifest = dict[str, Any]


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class NodeMetrics:
    """Capacity and usage of one cluster node.

    CPU values are millicores and memory values are bytes. Usage is ``None``
    when the metrics server is unavailable.
    """

    name: str
    ready: bool
    cpu_capacity: int = 0
    memory_capacity: int = 0
    cpu_allocatable: int = 0
    memory_allocatable: int = 0
    cpu_usage: int | None = None
    memory_usage: int | None = None
    pod_count: int = 0


# =============================================================================
# Abstract Controller
# =============================================================================


class ClusterController(ABC):
    """Abstract base class for cluster operations.

    All methods are async. Use ``run_sync()`` to call them from synchronous
    code such as CLI commands.
    """

    @abstractmethod
    async def get_current_context(self) -> str:
        """Get the active context name, or "unknown" if detection fails."""
        ...

    @abstractmethod
    async def is_reachable(self) -> bool:
        """Check whether the API server answers."""
        ...

    @abstractmethod
    async def apply(self, manifest: Manifest) -> CommandResult:
        """Create the object, or merge-patch it when it already exists.

        Args:
            manifest: Full object manifest including ``kind`` and ``metadata``

        Returns:
            CommandResult; ``stdout`` is "created" or "configured"
        """
        ...

    @abstractmethod
    async def exists(self, kind: str, name: str, namespace: str | None = None) -> bool:
        ...

    @abstractmethod
    async def delete(
        self, kind: str, name: str, namespace: str | None = None
    ) -> CommandResult:
        """Delete an object. A missing object counts as success."""
        ...

    @abstractmethod
    async def get_node_metrics(self) -> list[NodeMetrics]:
        """Collect capacity, allocatable, usage and pod counts per node."""
        ...
