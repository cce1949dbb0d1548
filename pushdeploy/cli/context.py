"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from pushdeploy.app.api.http.app_data import ApplicationDependencies, build_dependencies
from pushdeploy.app.runtime.config.config_data import ConfigData
from pushdeploy.app.runtime.config.config_loader import load_config
from pushdeploy.app.runtime.context import get_config, set_config
from pushdeploy.app.runtime.logging_setup import configure_logging
from pushdeploy.cli.shared.console import CLIConsole, console


@dataclass
class CLIContext:
    """Runtime dependencies for CLI commands.

    Services are built on first use so commands that only need the config
    never touch the database or the cluster.
    """

    console: CLIConsole
    config: ConfigData
    _deps: ApplicationDependencies | None = None

    @property
    def deps(self) -> ApplicationDependencies:
        if self._deps is None:
            self._deps = build_dependencies(self.config)
        return self._deps


def build_cli_context(config_path: Path | None = None) -> CLIContext:
    if config_path is not None:
        set_config(load_config(config_path))
    config = get_config()
    configure_logging(config.logging)
    return CLIContext(console=console, config=config)


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    while context is not None:
        if isinstance(context.obj, CLIContext):
            return context.obj
        context = context.parent
    return build_cli_context()
