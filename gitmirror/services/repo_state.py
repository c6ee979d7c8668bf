"""Classify the local directory a repository name maps to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from gitmirror.services.storage import Storage

GIT_DIR = ".git"


class RepoState(StrEnum):
    ABSENT = "absent"
    EMPTY = "empty"
    FOREIGN = "foreign"
    MIRROR = "mirror"


@dataclass(frozen=True)
class RepositoryLocation:
    """Snapshot of a repository directory taken once per delivery."""

    path: Path
    exists: bool
    has_git_metadata: bool
    is_empty_or_hidden_only: bool

    @property
    def state(self) -> RepoState:
        if not self.exists:
            return RepoState.ABSENT
        if self.has_git_metadata:
            return RepoState.MIRROR
        if self.is_empty_or_hidden_only:
            return RepoState.EMPTY
        return RepoState.FOREIGN


def is_empty_or_hidden_only(entries: list[str]) -> bool:
    """True for no entries, or only dot-entries other than ``.git``."""
    return all(entry.startswith(".") and entry != GIT_DIR for entry in entries)


def probe_repository(storage: Storage, repos_dir: Path, repo_name: str) -> RepositoryLocation:
    """Inspect ``repos_dir/repo_name`` without modifying anything."""
    path = repos_dir / repo_name
    if not storage.exists(path):
        return RepositoryLocation(
            path=path,
            exists=False,
            has_git_metadata=False,
            is_empty_or_hidden_only=False,
        )

    try:
        entries = storage.list_entries(path)
    except NotADirectoryError:
        # A plain file squatting on the name is foreign content.
        return RepositoryLocation(
            path=path,
            exists=True,
            has_git_metadata=False,
            is_empty_or_hidden_only=False,
        )
    return RepositoryLocation(
        path=path,
        exists=True,
        has_git_metadata=GIT_DIR in entries,
        is_empty_or_hidden_only=is_empty_or_hidden_only(entries),
    )
