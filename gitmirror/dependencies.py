"""Centralized FastAPI dependencies for use with Depends()."""

from pathlib import Path
from typing import Annotated

from fastapi import Depends

from gitmirror.config import settings
from gitmirror.services.command_runner import CommandRunner, SubprocessCommandRunner
from gitmirror.services.config_store import WebhookConfig
from gitmirror.services.git_actions import GitActions
from gitmirror.services.repo_locks import RepoLockRegistry
from gitmirror.services.storage import LocalStorage, Storage
from gitmirror.services.sync_engine import SyncEngine

_webhook_config: WebhookConfig | None = None
_command_runner: CommandRunner = SubprocessCommandRunner(
    default_timeout=settings.git_command_timeout_seconds,
)
_storage: Storage = LocalStorage()
_repo_locks = RepoLockRegistry()


def init_webhook_config(config: WebhookConfig) -> None:
    """Register the config loaded at startup for injection into requests."""
    global _webhook_config  # noqa: PLW0603
    _webhook_config = config


def init_command_runner(identity_file: Path | None) -> None:
    """Rebuild the git runner so ssh authenticates with *identity_file*.

    Called by the lifespan once the SSH key is known. ``None`` leaves key
    selection to ssh and any operator-supplied ``GIT_SSH_COMMAND``.
    """
    global _command_runner  # noqa: PLW0603
    _command_runner = SubprocessCommandRunner(
        default_timeout=settings.git_command_timeout_seconds,
        identity_file=identity_file,
    )


def get_webhook_config() -> WebhookConfig:
    """Return the webhook config registered by the app lifespan.

    Raises:
        RuntimeError: If ``init_webhook_config()`` has not been called.
    """
    if _webhook_config is None:
        msg = "Webhook config not initialized. Call init_webhook_config() first."
        raise RuntimeError(msg)
    return _webhook_config


def get_repos_dir() -> Path:
    """Return the directory mirrors are cloned into."""
    return settings.repos_dir.resolve()


def get_command_runner() -> CommandRunner:
    """Return the runner used for git commands.

    Defaults to the subprocess runner; tests override it with
    ``InMemoryCommandRunner``.
    """
    return _command_runner


def get_storage() -> Storage:
    return _storage


def get_repo_locks() -> RepoLockRegistry:
    """Return the process-wide per-repository lock registry."""
    return _repo_locks


def get_sync_engine(
    config: Annotated[WebhookConfig, Depends(get_webhook_config)],
    repos_dir: Annotated[Path, Depends(get_repos_dir)],
    storage: Annotated[Storage, Depends(get_storage)],
    runner: Annotated[CommandRunner, Depends(get_command_runner)],
    locks: Annotated[RepoLockRegistry, Depends(get_repo_locks)],
) -> SyncEngine:
    """Assemble a ``SyncEngine`` for one request from the injected collaborators."""
    git = GitActions(runner, storage, timeout=settings.git_command_timeout_seconds)
    return SyncEngine(config, repos_dir, storage, git, locks)


__all__ = [
    "get_command_runner",
    "get_repo_locks",
    "get_repos_dir",
    "get_storage",
    "get_sync_engine",
    "get_webhook_config",
    "init_command_runner",
    "init_webhook_config",
]
