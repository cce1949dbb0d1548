"""Helpers for driving the async cluster layer from synchronous code."""

from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a blocking context.

    CLI commands use this to call ClusterController and provisioner methods.
    When a loop is already running in this thread the coroutine is executed
    on a fresh loop in a worker thread instead.

    Example:
        from pushdeploy.infra.k8s import Kr8sController, run_sync

        controller = Kr8sController()
        nodes = run_sync(controller.get_node_metrics())
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()
