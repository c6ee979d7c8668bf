"""Shape engine outcomes and rejections into the webhook response body."""

from __future__ import annotations

from gitmirror.errors import WebhookError
from gitmirror.schemas.webhooks import WebhookResponse
from gitmirror.services.outcomes import Cloned, Failed, Pulled, Skipped, SyncReport


def compose_outcome(report: SyncReport) -> WebhookResponse:
    """Build the response body for a delivery that reached the engine."""
    outcome = report.outcome
    repository = report.repository

    match outcome:
        case Cloned(branch=branch, output=output):
            return WebhookResponse(
                success=True,
                repository=repository,
                action="cloned",
                branch=branch,
                output=output,
                message="Repository cloned successfully",
            )
        case Pulled(branch=branch, output=output):
            return WebhookResponse(
                success=True,
                repository=repository,
                action="pulled",
                branch=branch,
                output=output,
                message="Repository updated successfully",
            )
        case Skipped(reason=reason):
            return WebhookResponse(
                success=True,
                repository=repository,
                action="skipped" if repository else None,
                message=reason,
            )
        case Failed():
            return WebhookResponse(
                success=False,
                repository=repository,
                action=outcome.action,
                message=outcome.message or outcome.error,
                error=outcome.error,
                stderr=outcome.stderr,
            )
    raise TypeError(f"Unknown outcome: {outcome!r}")


def compose_rejection(error: WebhookError) -> WebhookResponse:
    """Build the response body for a delivery rejected before the engine acted."""
    return WebhookResponse(success=False, message=error.message, error=error.error)
