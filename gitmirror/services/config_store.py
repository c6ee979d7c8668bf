"""Persisted webhook configuration (secret, default branch, auto-clone).

The JSON file is created on first start so the generated secret survives
restarts; after that it is the source of truth and the matching environment
variables only seed a fresh file.
"""

from __future__ import annotations

import json
import secrets
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gitmirror.config import Settings

logger = structlog.get_logger()


class WebhookConfig(BaseModel):
    """Read-only configuration every delivery is handled with."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    github_webhook_secret: str = Field(alias="githubWebhookSecret", min_length=1)
    default_branch: str = Field(default="main", alias="defaultBranch", min_length=1)
    auto_clone: bool = Field(default=True, alias="autoClone")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), alias="createdAt"
    )

    @property
    def secret_bytes(self) -> bytes:
        return self.github_webhook_secret.encode("utf-8")


def _read_config(path: Path) -> WebhookConfig | None:
    if not path.exists():
        return None
    try:
        return WebhookConfig.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        logger.error("webhook_config_unreadable", path=str(path), error=str(exc))
        return None


def load_or_create_webhook_config(path: Path, settings: Settings) -> WebhookConfig:
    """Return the config stored at *path*, writing a new one if needed.

    A missing or unreadable file is replaced by a config built from
    *settings*; an empty ``GITHUB_WEBHOOK_SECRET`` gets a random 32-byte hex
    secret, which is logged once so it can be entered in GitHub.
    """
    existing = _read_config(path)
    if existing is not None:
        logger.info("webhook_config_loaded", path=str(path))
        return existing

    generated_secret = not settings.github_webhook_secret
    config = WebhookConfig(
        github_webhook_secret=settings.github_webhook_secret or secrets.token_hex(32),
        default_branch=settings.default_branch,
        auto_clone=settings.auto_clone,
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.model_dump(mode="json", by_alias=True), indent=2) + "\n",
        encoding="utf-8",
    )
    path.chmod(0o600)

    logger.info(
        "webhook_config_created",
        path=str(path),
        default_branch=config.default_branch,
        auto_clone=config.auto_clone,
    )
    if generated_secret:
        logger.warning("webhook_secret_generated", secret=config.github_webhook_secret)
    return config
