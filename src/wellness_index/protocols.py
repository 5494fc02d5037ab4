"""Protocol definitions for dependency injection.

The wellness index reads tables, responses and config files as text and writes
results as JSON. Everything else about storage stays behind ``FileSystem`` so
tests can swap in an in-memory implementation.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Storage used by the loaders and the result writer."""

    def read_text(self, path: Path) -> str:
        """Return the UTF-8 text of a tables, responses or config file."""
        ...

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        """Write a JSON document, creating parent directories."""
        ...

    def exists(self, path: Path) -> bool: ...

    def mkdir(self, path: Path, parents: bool = True) -> None: ...
