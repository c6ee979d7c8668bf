"""Exceptions that end a webhook delivery before any repository action."""

from __future__ import annotations

from enum import StrEnum


class WebhookError(Exception):
    """Base class for rejections rendered as a JSON error response."""

    status_code: int = 400

    def __init__(self, error: str, message: str | None = None) -> None:
        self.error = error
        self.message = message or error
        super().__init__(error)


class SignatureError(WebhookError):
    """The ``X-Hub-Signature-256`` header is missing or does not match."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__(
            "Unauthorized - Invalid GitHub signature",
            "Webhook signature verification failed",
        )


class ParseFailure(StrEnum):
    MALFORMED_JSON = "malformed_json"
    MISSING_REPOSITORY_NAME = "missing_repository_name"
    INVALID_REPOSITORY_NAME = "invalid_repository_name"
    UNRESOLVABLE_BRANCH = "unresolvable_branch"


_PARSE_ERRORS: dict[ParseFailure, str] = {
    ParseFailure.MALFORMED_JSON: "Invalid JSON payload",
    ParseFailure.MISSING_REPOSITORY_NAME: "No repository name found",
    ParseFailure.INVALID_REPOSITORY_NAME: "Invalid repository name",
    ParseFailure.UNRESOLVABLE_BRANCH: "Could not determine pushed branch",
}


class ParseError(WebhookError):
    """The payload cannot be turned into a repository reference."""

    status_code = 400

    def __init__(self, reason: ParseFailure, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(_PARSE_ERRORS[reason], message)
