"""Turn a verified webhook body into the repository reference the engine acts on."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from pydantic import ValidationError

from gitmirror.errors import ParseError, ParseFailure
from gitmirror.schemas.webhooks import PushWebhookPayload

PUSH_EVENT = "push"

_BRANCH_REF = re.compile(r"refs/heads/(.+)")


@dataclass(frozen=True)
class RepositoryReference:
    """Identity of the pushed repository plus the branch the push targeted."""

    name: str
    ssh_url: str | None
    default_branch: str
    push_branch: str


@dataclass(frozen=True)
class ParsedPayload:
    """Fields read from the payload before the event type is known to be ``push``."""

    name: str
    ssh_url: str | None
    default_branch: str
    ref: str | None
    deleted: bool = False

    def to_reference(self, push_branch: str) -> RepositoryReference:
        return RepositoryReference(
            name=self.name,
            ssh_url=self.ssh_url,
            default_branch=self.default_branch,
            push_branch=push_branch,
        )


def _check_repository_name(name: str) -> None:
    # The name becomes a directory under repos_dir and must stay inside it.
    if name in {".", ".."} or "/" in name or "\\" in name or "\x00" in name:
        raise ParseError(
            ParseFailure.INVALID_REPOSITORY_NAME,
            f"Repository name {name!r} cannot be used as a directory name",
        )


def parse_payload(raw_body: bytes, fallback_branch: str) -> ParsedPayload:
    """Parse the raw body and pull out the repository fields.

    Args:
        raw_body: Exact request bytes (already signature-checked).
        fallback_branch: Default branch used when the payload declares none.

    Raises:
        ParseError: On invalid JSON or a missing/unusable repository name.
    """
    try:
        document = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(ParseFailure.MALFORMED_JSON, str(exc)) from exc

    try:
        payload = PushWebhookPayload.model_validate(document)
    except ValidationError as exc:
        raise ParseError(
            ParseFailure.MALFORMED_JSON,
            "Payload does not have the shape of a GitHub webhook",
        ) from exc

    repository = payload.repository
    name = repository.name if repository else None
    if not name:
        raise ParseError(ParseFailure.MISSING_REPOSITORY_NAME)
    _check_repository_name(name)

    return ParsedPayload(
        name=name,
        ssh_url=repository.ssh_url or None,
        default_branch=repository.default_branch or fallback_branch,
        ref=payload.ref,
        deleted=payload.deleted,
    )


def extract_push_branch(ref: str | None) -> str:
    """Return ``<branch>`` from ``refs/heads/<branch>``.

    Raises:
        ParseError: For a missing ref or any other namespace (tags, notes, ...).
    """
    match = _BRANCH_REF.fullmatch(ref or "")
    if match is None:
        raise ParseError(
            ParseFailure.UNRESOLVABLE_BRANCH,
            f"Ref {ref!r} does not name a branch",
        )
    return match.group(1)
