"""Thin filesystem facade so the engine can be exercised without real I/O."""

from __future__ import annotations

import os
import shutil
from pathlib import Path


class FileSystem:
    """Directory and copy primitives used by the orchestrator."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def create_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def is_writable(self, path: Path) -> bool:
        return os.access(path, os.W_OK)

    def copy_file(self, source: Path, target: Path) -> None:
        """Copy ``source`` to ``target`` keeping its modification time."""
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)


__all__ = ["FileSystem"]
