"""Docker command abstractions used by the Dockerfile build strategy."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class DockerCommands:
    """Docker-related shell commands: login, build, push."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def login(
        self,
        registry: str,
        username: str,
        password: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Authenticate against a registry.

        The password is fed through stdin so it never appears in the process
        list or in the build transcript.
        """
        return self._runner.run_streaming(
            ["docker", "login", registry, "-u", username, "--password-stdin"],
            input_text=password,
            on_output=on_output,
        )

    def build(
        self,
        image_tag: str,
        context_dir: Path,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Build ``context_dir`` using the Dockerfile at its root.

        Example:
            >>> docker.build("registry.local/app:abc1234", Path("/tmp/build/src"))
        """
        return self._runner.run_streaming(
            ["docker", "build", "-t", image_tag, "."],
            cwd=context_dir,
            on_output=on_output,
        )

    def push(
        self,
        image_tag: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Push an image; ``image_tag`` must include the registry host."""
        return self._runner.run_streaming(
            ["docker", "push", image_tag],
            on_output=on_output,
        )
