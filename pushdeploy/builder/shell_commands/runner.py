"""Command runner for executing build tool subprocesses.

All build tools (tar, docker, pack) go through this runner so their output
is captured the same way and ends up in the deployment's build transcript.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from .types import CommandResult

# Exit status reported when the executable itself cannot be started
COMMAND_NOT_FOUND = 127


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Specialised command modules (Docker, pack, tar) use this runner for
    actual execution. Nothing here raises on a non-zero exit; callers inspect
    the returned ``CommandResult``.
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            working_dir: Default directory commands run in. Individual calls
                         usually pass their own per-build ``cwd``.
        """
        self.working_dir = working_dir

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Execute a short command and capture stdout and stderr separately.

        ``communicate()`` drains both pipes while waiting, so large outputs
        cannot block the child.
        """
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.working_dir,
                env=self._environment(env),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            return CommandResult(
                success=False, stderr=f"Error: {e}", returncode=COMMAND_NOT_FOUND
            )

        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Execute a long-running command, collecting output line by line.

        stderr is merged into stdout so a single reader sees every line in
        the order the tool wrote it and neither pipe can fill up while we
        wait for the process to exit.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to working_dir)
            env: Extra environment variables, layered over os.environ
            input_text: Data written to stdin before output is read
                        (used for passwords, never passed as arguments)
            on_output: Callback invoked with each line of output

        Returns:
            CommandResult whose stdout holds the merged transcript
        """
        try:
            process = subprocess.Popen(
                list(cmd),
                cwd=cwd or self.working_dir,
                env=self._environment(env),
                stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            return CommandResult(
                success=False, stdout=f"Error: {e}", returncode=COMMAND_NOT_FOUND
            )

        if input_text is not None and process.stdin:
            try:
                process.stdin.write(input_text)
            except BrokenPipeError:
                pass
            finally:
                process.stdin.close()

        lines: list[str] = []
        if process.stdout:
            for line in iter(process.stdout.readline, ""):
                line = line.rstrip("\n")
                lines.append(line)
                if on_output:
                    on_output(line)
            process.stdout.close()

        returncode = process.wait()

        return CommandResult(
            success=returncode == 0,
            stdout="\n".join(lines),
            returncode=returncode,
        )

    @staticmethod
    def _environment(extra: Mapping[str, str] | None) -> dict[str, str] | None:
        if not extra:
            return None
        env = os.environ.copy()
        env.update(extra)
        return env
