"""Shell command abstractions for the image build pipeline.

- tar: source archive extraction
- docker: Dockerfile builds, registry login and push
- pack: buildpacks builds that publish directly

Usage:
    from pushdeploy.builder.shell_commands import BuildCommands

    commands = BuildCommands()
    result = commands.docker.build("registry.local/app:abc1234", source_dir)
"""

from pathlib import Path

from .docker import DockerCommands
from .pack import PackCommands
from .runner import CommandRunner
from .tar import TarCommands
from .types import CommandResult


class BuildCommands:
    """Facade over the specialised build tool command modules."""

    def __init__(self, working_dir: Path | None = None) -> None:
        self._runner = CommandRunner(working_dir)
        self.tar = TarCommands(self._runner)
        self.docker = DockerCommands(self._runner)
        self.pack = PackCommands(self._runner)


__all__ = [
    "BuildCommands",
    "CommandResult",
    "CommandRunner",
    "DockerCommands",
    "PackCommands",
    "TarCommands",
]
