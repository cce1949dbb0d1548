"""Per-project mutual exclusion shared by the orchestrator and project removal."""

from __future__ import annotations

import asyncio
from collections import defaultdict


class ProjectLocks:
    """In-process advisory locks keyed by project id.

    Anything that changes a project's cluster resources (a deployment
    pipeline, a teardown) holds the project's lock for the whole operation.
    """

    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def for_project(self, project_id: str) -> asyncio.Lock:
        return self._locks[project_id]

    def is_locked(self, project_id: str) -> bool:
        lock = self._locks.get(project_id)
        return lock is not None and lock.locked()
