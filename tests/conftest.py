"""Shared test fixtures for the webhook config, repos dir and FastAPI test client."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from gitmirror.dependencies import (
    get_command_runner,
    get_repo_locks,
    get_repos_dir,
    get_webhook_config,
)
from gitmirror.main import app
from gitmirror.services.command_runner import InMemoryCommandRunner
from gitmirror.services.config_store import WebhookConfig
from gitmirror.services.repo_locks import RepoLockRegistry

WEBHOOK_SECRET = "test-secret"


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, the only backend the code targets."""
    return "asyncio"


@pytest.fixture
def webhook_config() -> WebhookConfig:
    """Config with a known secret, ``main`` as fallback branch and auto-clone on."""
    return WebhookConfig(
        github_webhook_secret=WEBHOOK_SECRET,
        default_branch="main",
        auto_clone=True,
    )


@pytest.fixture
def repos_dir(tmp_path: Path) -> Path:
    path = tmp_path / "repos"
    path.mkdir()
    return path


@pytest.fixture
def command_runner() -> InMemoryCommandRunner:
    """Create a fresh scripted command runner for test inspection."""
    return InMemoryCommandRunner()


@pytest.fixture
async def client(
    webhook_config: WebhookConfig,
    repos_dir: Path,
    command_runner: InMemoryCommandRunner,
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient with dependencies overridden.

    Mirrors live under a temporary repos dir on the real filesystem, and git
    commands go to the in-memory runner so no network or git binary is used.
    """
    locks = RepoLockRegistry()
    app.dependency_overrides[get_webhook_config] = lambda: webhook_config
    app.dependency_overrides[get_repos_dir] = lambda: repos_dir
    app.dependency_overrides[get_command_runner] = lambda: command_runner
    app.dependency_overrides[get_repo_locks] = lambda: locks
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
