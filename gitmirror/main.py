"""FastAPI application with lifespan context manager."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gitmirror.config import settings
from gitmirror.dependencies import (
    get_command_runner,
    init_command_runner,
    init_webhook_config,
)
from gitmirror.errors import WebhookError
from gitmirror.logging_config import configure_logging
from gitmirror.routers import health, webhooks
from gitmirror.services.config_store import load_or_create_webhook_config
from gitmirror.services.response import compose_rejection
from gitmirror.services.ssh_keys import ensure_ssh_key, find_existing_key


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepare the repos directory, webhook config and SSH key before serving."""
    configure_logging(json_logs=not settings.debug, log_level=settings.log_level)
    logger = structlog.get_logger()

    repos_dir = settings.repos_dir.resolve()
    if not repos_dir.exists():
        repos_dir.mkdir(parents=True)
        logger.info("repos_dir_created", path=str(repos_dir))

    config = load_or_create_webhook_config(settings.config_file, settings)
    init_webhook_config(config)

    if settings.ssh_key_setup:
        key_info = await ensure_ssh_key(settings.ssh_dir, get_command_runner())
    else:
        key_info = find_existing_key(settings.ssh_dir)
    identity_file = None
    if key_info is not None:
        identity_file = (settings.ssh_dir / key_info.key_type).resolve()
    init_command_runner(identity_file)

    logger.info(
        "server_ready",
        webhook_url=f"http://localhost:{settings.port}/webhook",
        repos_dir=str(repos_dir),
        default_branch=config.default_branch,
        auto_clone=config.auto_clone,
        ssh_public_key=key_info.public_key if key_info else None,
        ssh_identity=str(identity_file) if identity_file else None,
    )
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.exception_handler(WebhookError)
async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    """Render a rejected delivery as a JSON body with the error's status code."""
    logger = structlog.get_logger()
    logger.info(
        "webhook_rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.error,
        detail=exc.message,
    )
    body = compose_rejection(exc)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for any unhandled exception."""
    logger = structlog.get_logger()
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


app.include_router(health.router)
app.include_router(webhooks.router)
