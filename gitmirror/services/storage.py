"""Filesystem capability used by the prober and the clone cleanup.

``LocalStorage`` is the only production implementation. Keeping it behind a
protocol lets tests observe or fake storage access without patching
``os``/``shutil``.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol


class Storage(Protocol):
    """Protocol for the handful of filesystem operations the engine needs."""

    def exists(self, path: Path) -> bool: ...

    def list_entries(self, path: Path) -> list[str]: ...

    def make_directory(self, path: Path, *, recursive: bool = True) -> None: ...

    def remove_directory(self, path: Path, *, recursive: bool = True) -> None: ...


class LocalStorage:
    """Storage backed by the local filesystem."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def list_entries(self, path: Path) -> list[str]:
        """Return entry names in *path*, sorted for stable logging."""
        return sorted(entry.name for entry in path.iterdir())

    def make_directory(self, path: Path, *, recursive: bool = True) -> None:
        path.mkdir(parents=recursive, exist_ok=True)

    def remove_directory(self, path: Path, *, recursive: bool = True) -> None:
        if recursive:
            shutil.rmtree(path)
        else:
            path.rmdir()
