"""Archive extraction."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class TarCommands:
    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def extract(
        self, archive: Path, destination: Path, *, strip_components: int = 1
    ) -> CommandResult:
        """Unpack a gzipped tarball.

        Source host archives wrap everything in a single ``<owner>-<repo>-<sha>``
        directory, which ``strip_components=1`` removes.
        """
        return self._runner.run(
            [
                "tar",
                "-xzf",
                str(archive),
                "-C",
                str(destination),
                f"--strip-components={strip_components}",
            ],
            cwd=destination,
        )
