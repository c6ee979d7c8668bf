"""Tests for loading and creating the persisted webhook config file."""

import json
import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from gitmirror.config import Settings
from gitmirror.services.config_store import WebhookConfig, load_or_create_webhook_config


def _settings(**overrides) -> Settings:
    values = {"github_webhook_secret": "", "default_branch": "main", "auto_clone": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_creates_file_with_generated_secret(tmp_path: Path) -> None:
    path = tmp_path / "webhook-config.json"

    config = load_or_create_webhook_config(path, _settings())

    assert len(config.github_webhook_secret) == 64
    int(config.github_webhook_secret, 16)
    stored = json.loads(path.read_text())
    assert stored["githubWebhookSecret"] == config.github_webhook_secret
    assert stored["defaultBranch"] == "main"
    assert stored["autoClone"] is True
    assert "createdAt" in stored
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_creates_file_from_environment_values(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "webhook-config.json"

    config = load_or_create_webhook_config(
        path,
        _settings(github_webhook_secret="from-env", default_branch="trunk", auto_clone=False),
    )

    assert config.github_webhook_secret == "from-env"
    assert config.default_branch == "trunk"
    assert config.auto_clone is False
    assert path.exists()


def test_existing_file_wins_over_settings(tmp_path: Path) -> None:
    path = tmp_path / "webhook-config.json"
    path.write_text(
        json.dumps(
            {
                "githubWebhookSecret": "stored",
                "defaultBranch": "develop",
                "autoClone": False,
                "createdAt": "2025-01-01T00:00:00Z",
            }
        )
    )

    config = load_or_create_webhook_config(path, _settings(github_webhook_secret="env"))

    assert config.github_webhook_secret == "stored"
    assert config.default_branch == "develop"
    assert config.auto_clone is False
    assert config.created_at.year == 2025


def test_secret_survives_reload(tmp_path: Path) -> None:
    path = tmp_path / "webhook-config.json"

    first = load_or_create_webhook_config(path, _settings())
    second = load_or_create_webhook_config(path, _settings())

    assert first.github_webhook_secret == second.github_webhook_secret


@pytest.mark.parametrize("content", ["{broken", '{"defaultBranch": "main"}'])
def test_unreadable_file_is_replaced(tmp_path: Path, content: str) -> None:
    path = tmp_path / "webhook-config.json"
    path.write_text(content)

    config = load_or_create_webhook_config(path, _settings(github_webhook_secret="fresh"))

    assert config.github_webhook_secret == "fresh"
    assert json.loads(path.read_text())["githubWebhookSecret"] == "fresh"


def test_webhook_config_is_frozen() -> None:
    config = WebhookConfig(github_webhook_secret="abc")

    with pytest.raises(ValidationError):
        config.auto_clone = False  # type: ignore[misc]

    assert config.secret_bytes == b"abc"
    assert config.default_branch == "main"


def test_webhook_config_rejects_empty_secret() -> None:
    with pytest.raises(ValidationError):
        WebhookConfig(github_webhook_secret="")
