"""Local disk storage for tables, responses and results.

Usage example:
    from pathlib import Path

    from wellness_index.infrastructure.filesystem import LocalFileSystem

    fs = LocalFileSystem()
    fs.write_json({"final_score": 61.2}, Path("data/results/latest.json"))
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from ..protocols import FileSystem


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk (UTF-8 text, indented JSON)."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        document = json.dumps(dict(data), ensure_ascii=False, indent=2)
        path.write_text(f"{document}\n", encoding="utf-8")

    def exists(self, path: Path) -> bool:
        return path.exists()

    def mkdir(self, path: Path, parents: bool = True) -> None:
        path.mkdir(parents=parents, exist_ok=True)
