"""Cloud Native Buildpacks (``pack``) command abstractions."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class PackCommands:
    """Builds images from source without a Dockerfile."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def build(
        self,
        image_tag: str,
        context_dir: Path,
        *,
        builder: str,
        registry_auth: Mapping[str, Mapping[str, str]] | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Detect the runtime, build and publish straight to the registry.

        Args:
            image_tag: Fully qualified target image
            context_dir: Extracted source tree
            builder: Builder image (e.g. paketobuildpacks/builder-jammy-full)
            registry_auth: ``{registry: {"username": ..., "password": ...}}``,
                           handed to pack via ``CNB_REGISTRY_AUTH``
        """
        env = {"CNB_REGISTRY_AUTH": json.dumps(registry_auth)} if registry_auth else None
        return self._runner.run_streaming(
            ["pack", "build", image_tag, "--builder", builder, "--publish"],
            cwd=context_dir,
            env=env,
            on_output=on_output,
        )
