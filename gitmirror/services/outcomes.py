"""Result of handling one delivery that got past payload validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    CLONE = "clone"
    PULL = "pull"
    BRANCH_QUERY = "branch_query"


_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.BAD_REQUEST: 400,
    FailureKind.CONFLICT: 400,
    FailureKind.CLONE: 500,
    FailureKind.PULL: 500,
    FailureKind.BRANCH_QUERY: 500,
}

# Failures that happened while running git report which git step it was.
_FAILURE_ACTION: dict[FailureKind, str] = {
    FailureKind.CLONE: "clone",
    FailureKind.PULL: "pull",
    FailureKind.BRANCH_QUERY: "branch_query",
}


@dataclass(frozen=True)
class Cloned:
    branch: str
    output: str
    status_code: int = 200


@dataclass(frozen=True)
class Pulled:
    branch: str
    output: str
    status_code: int = 200


@dataclass(frozen=True)
class Skipped:
    reason: str
    status_code: int = 200


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    error: str
    message: str | None = None
    stderr: str | None = None

    @property
    def status_code(self) -> int:
        return _FAILURE_STATUS[self.kind]

    @property
    def action(self) -> str | None:
        return _FAILURE_ACTION.get(self.kind)


ActionOutcome = Cloned | Pulled | Skipped | Failed


@dataclass(frozen=True)
class SyncReport:
    """An outcome plus the repository it concerns (unknown for ignored events)."""

    repository: str | None
    outcome: ActionOutcome
