"""Data types for shell command results.

``CommandResult`` lives with the Kubernetes controller types; it is
re-exported here because the build tools report through the same shape.
"""

from __future__ import annotations

from pushdeploy.infra.k8s.controller import CommandResult

__all__ = ["CommandResult"]
