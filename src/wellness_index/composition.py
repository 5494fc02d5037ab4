"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from .cli import CliDependencies, create_app
from .config import WellnessConfig
from .infrastructure import LocalFileSystem


def build_cli_dependencies(*, config: WellnessConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Wellness configuration for this invocation.
    """
    _ = config
    return CliDependencies(fs=LocalFileSystem())


app = create_app(build_cli_dependencies)
