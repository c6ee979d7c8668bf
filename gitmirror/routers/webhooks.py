"""GitHub webhook router with HMAC-SHA256 signature verification."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from gitmirror.dependencies import get_sync_engine, get_webhook_config
from gitmirror.errors import SignatureError
from gitmirror.schemas.webhooks import WebhookResponse
from gitmirror.services.config_store import WebhookConfig
from gitmirror.services.response import compose_outcome
from gitmirror.services.signature import validate_signature
from gitmirror.services.sync_engine import SyncEngine

logger = structlog.get_logger()

router = APIRouter(tags=["webhooks"])


async def verify_github_signature(
    request: Request,
    config: Annotated[WebhookConfig, Depends(get_webhook_config)],
    x_hub_signature_256: Annotated[str | None, Header()] = None,
) -> bytes:
    """Verify the GitHub webhook HMAC-SHA256 signature.

    Reads the raw request body and checks it against the configured secret
    before anything parses it. Returns the raw body bytes on success so the
    route handler works on exactly the bytes that were signed.

    Raises:
        SignatureError: 401 if the header is missing or does not match.
    """
    body = await request.body()
    if not validate_signature(body, x_hub_signature_256, config.secret_bytes):
        logger.warning("signature_rejected", has_signature=bool(x_hub_signature_256))
        raise SignatureError()
    return body


@router.post("/webhook", response_model=WebhookResponse)
async def github_webhook(
    raw_body: Annotated[bytes, Depends(verify_github_signature)],
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
    x_github_event: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """Receive a GitHub webhook delivery and sync the matching mirror.

    Push events clone or pull the repository under the repos directory; other
    events are acknowledged and ignored. The status code reflects the outcome.
    """
    logger.info("webhook_received", event=x_github_event, size=len(raw_body))
    report = await engine.process(x_github_event, raw_body)
    body = compose_outcome(report)
    return JSONResponse(
        status_code=report.outcome.status_code,
        content=body.model_dump(exclude_none=True),
    )
