"""Builds and publishes container images from repository source.

A build downloads a source snapshot of the commit, extracts it into a fresh
working directory and then either runs ``docker build`` (when the repository
ships a Dockerfile) or Cloud Native Buildpacks. Every tool invocation is
recorded in one transcript, split into ``=== <Label> ===`` sections, which is
returned whatever the outcome.
"""

from __future__ import annotations

import shutil
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from pushdeploy.app.runtime.config.config_data import BuilderSettings, RegistrySettings
from pushdeploy.builder.shell_commands import BuildCommands, CommandResult
from pushdeploy.infra.github.client import GitHubClient

SHORT_SHA_LENGTH = 7


@dataclass(frozen=True)
class BuildRequest:
    access_token: str
    owner: str
    repo: str
    branch: str
    commit_sha: str
    project_slug: str


@dataclass
class BuildResult:
    success: bool
    image_tag: str
    logs: str
    error: str | None = None


class BuildStepFailed(Exception):
    """A build tool exited non-zero; the transcript already has its output."""

    def __init__(self, label: str, returncode: int):
        self.label = label
        self.returncode = returncode
        super().__init__(f"{label} failed (exit code {returncode})")


class BuildTranscript:
    """Ordered, sectioned log of everything a build printed."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def section(self, label: str) -> None:
        if self._lines:
            self._lines.append("")
        self._lines.append(f"=== {label} ===")

    def write(self, line: str) -> None:
        self._lines.append(line)

    def text(self) -> str:
        return "\n".join(self._lines)


def image_tag_for(registry_url: str, project_slug: str, commit_sha: str) -> str:
    return f"{registry_url}/{project_slug}:{commit_sha[:SHORT_SHA_LENGTH]}"


def registry_host(registry_url: str) -> str:
    """Strip any scheme and path from a registry reference."""
    host = registry_url.split("://", 1)[-1]
    return host.split("/", 1)[0]


@contextmanager
def build_workspace(root: Path) -> Iterator[Path]:
    """Create a uniquely named working directory and always remove it."""
    workspace = root / f"build-{uuid.uuid4().hex}"
    workspace.mkdir(parents=True)
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug(f"Removed build workspace {workspace}")


class ImageBuilder:
    """Produces a pushed image for a repository commit."""

    def __init__(
        self,
        github_factory: Callable[[str], GitHubClient],
        commands: BuildCommands,
        registry: RegistrySettings,
        settings: BuilderSettings,
    ) -> None:
        self._github_factory = github_factory
        self._commands = commands
        self._registry = registry
        self._settings = settings

    def build(self, request: BuildRequest) -> BuildResult:
        """Run the whole build synchronously.

        Never raises: tool failures and unexpected errors are reported through
        ``BuildResult.error`` with the transcript collected so far.
        """
        image_tag = image_tag_for(
            self._registry.url, request.project_slug, request.commit_sha
        )
        transcript = BuildTranscript()
        logger.info(f"Building {image_tag} from {request.owner}/{request.repo}")

        try:
            with build_workspace(Path(self._settings.work_dir)) as workspace:
                with self._github_factory(request.access_token) as github:
                    source_dir = self._fetch_source(github, request, workspace, transcript)
                    use_dockerfile = github.has_dockerfile(
                        request.owner, request.repo, request.branch
                    )

                if use_dockerfile:
                    self._build_with_docker(image_tag, source_dir, transcript)
                else:
                    self._build_with_buildpacks(image_tag, source_dir, transcript)
        except BuildStepFailed as e:
            logger.warning(f"Build of {image_tag} failed: {e}")
            return BuildResult(
                success=False, image_tag=image_tag, logs=transcript.text(), error=str(e)
            )
        except Exception as e:
            logger.exception(f"Unexpected error while building {image_tag}")
            transcript.section("Error")
            transcript.write(str(e))
            return BuildResult(
                success=False, image_tag=image_tag, logs=transcript.text(), error=str(e)
            )

        logger.success(f"Built and pushed {image_tag}")
        return BuildResult(success=True, image_tag=image_tag, logs=transcript.text())

    # =========================================================================
    # Steps
    # =========================================================================

    def _fetch_source(
        self,
        github: GitHubClient,
        request: BuildRequest,
        workspace: Path,
        transcript: BuildTranscript,
    ) -> Path:
        transcript.section("Downloading Source")
        archive = workspace / "source.tar.gz"
        archive.write_bytes(
            github.download_tarball(request.owner, request.repo, request.commit_sha)
        )
        transcript.write(
            f"Downloaded {request.owner}/{request.repo}@{request.commit_sha} "
            f"({archive.stat().st_size} bytes)"
        )

        source_dir = workspace / "source"
        source_dir.mkdir()
        transcript.section("Extracting Source")
        result = self._commands.tar.extract(archive, source_dir)
        self._record(transcript, result)
        self._check("Extract", result)
        return source_dir

    def _build_with_docker(
        self, image_tag: str, source_dir: Path, transcript: BuildTranscript
    ) -> None:
        docker = self._commands.docker

        if self._registry.has_credentials:
            transcript.section("Docker Login")
            result = docker.login(
                registry_host(self._registry.url),
                self._registry.username,
                self._registry.password,
                on_output=transcript.write,
            )
            self._check("Docker login", result)
        else:
            transcript.section("Skipping Docker Login (no credentials)")

        transcript.section("Docker Build")
        self._check(
            "Docker build",
            docker.build(image_tag, source_dir, on_output=transcript.write),
        )

        transcript.section("Docker Push")
        self._check("Docker push", docker.push(image_tag, on_output=transcript.write))

    def _build_with_buildpacks(
        self, image_tag: str, source_dir: Path, transcript: BuildTranscript
    ) -> None:
        registry_auth = None
        if self._registry.has_credentials:
            registry_auth = {
                registry_host(self._registry.url): {
                    "username": self._registry.username,
                    "password": self._registry.password,
                }
            }

        transcript.section("Buildpacks Build")
        result = self._commands.pack.build(
            image_tag,
            source_dir,
            builder=self._settings.builder_image,
            registry_auth=registry_auth,
            on_output=transcript.write,
        )
        self._check("Buildpacks build", result)

    @staticmethod
    def _record(transcript: BuildTranscript, result: CommandResult) -> None:
        for stream in (result.stdout, result.stderr):
            if stream:
                for line in stream.rstrip("\n").splitlines():
                    transcript.write(line)

    @staticmethod
    def _check(label: str, result: CommandResult) -> None:
        if not result.success:
            raise BuildStepFailed(label, result.returncode)
