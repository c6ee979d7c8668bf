"""Liveness and self-description endpoints."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends

from gitmirror.dependencies import get_repos_dir
from gitmirror.schemas.health import HealthResponse, InfoResponse

router = APIRouter(tags=["health"])

ReposDir = Annotated[Path, Depends(get_repos_dir)]


@router.get("/health", response_model=HealthResponse)
async def health(repos_dir: ReposDir) -> HealthResponse:
    """Report that the process is up; does not touch git or the repos directory."""
    return HealthResponse(
        status="ok",
        repos_dir=str(repos_dir),
        timestamp=datetime.now(UTC),
    )


@router.get("/", response_model=InfoResponse)
async def info(repos_dir: ReposDir) -> InfoResponse:
    return InfoResponse(
        message="GitHub Webhook Git Pull Server",
        endpoints={
            "webhook": "/webhook (POST)",
            "health": "/health (GET)",
        },
        repos_dir=str(repos_dir),
    )
