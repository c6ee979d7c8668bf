"""Decide what a verified delivery does to the local mirror.

The decision runs in a fixed order:

1. parse the payload (repository name, SSH URL, default branch),
2. ignore anything that is not a ``push`` event,
3. resolve the pushed branch from ``refs/heads/<branch>``,
4. probe the mirror directory once, then either
5a. clone it, but only for a push to the default branch into an absent or
    empty directory, or
5b. pull it, but only when the push targets the branch it has checked out.

A mirror tracks exactly one branch. Pushes to other branches are acknowledged
as skips rather than errors, so GitHub can send every push without filtering.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from gitmirror.services.command_runner import CommandError
from gitmirror.services.config_store import WebhookConfig
from gitmirror.services.git_actions import GitActions
from gitmirror.services.outcomes import ActionOutcome, Failed, FailureKind, Skipped, SyncReport
from gitmirror.services.payload import (
    PUSH_EVENT,
    RepositoryReference,
    extract_push_branch,
    parse_payload,
)
from gitmirror.services.repo_locks import RepoLockRegistry
from gitmirror.services.repo_state import RepositoryLocation, RepoState, probe_repository
from gitmirror.services.storage import Storage

logger = structlog.get_logger()


class SyncEngine:
    """Per-request coordinator wired up from FastAPI dependencies."""

    def __init__(
        self,
        config: WebhookConfig,
        repos_dir: Path,
        storage: Storage,
        git: GitActions,
        locks: RepoLockRegistry,
    ) -> None:
        self._config = config
        self._repos_dir = repos_dir
        self._storage = storage
        self._git = git
        self._locks = locks

    async def process(self, event: str | None, raw_body: bytes) -> SyncReport:
        """Handle one signature-verified delivery.

        Raises:
            ParseError: For malformed JSON, a missing repository name, or a
                push whose ref does not name a branch.
        """
        parsed = parse_payload(raw_body, self._config.default_branch)

        if event != PUSH_EVENT:
            logger.info("event_ignored", event=event, repository=parsed.name)
            return SyncReport(
                repository=None,
                outcome=Skipped(f"Event '{event}' ignored; only push events are processed"),
            )

        reference = parsed.to_reference(extract_push_branch(parsed.ref))
        log = logger.bind(repository=reference.name, push_branch=reference.push_branch)
        log.info("push_received", default_branch=reference.default_branch)

        if parsed.deleted:
            log.info("push_skipped_branch_deleted")
            return SyncReport(
                reference.name,
                Skipped(f"Branch '{reference.push_branch}' was deleted; nothing to sync"),
            )

        async with self._locks.hold(reference.name):
            location = probe_repository(self._storage, self._repos_dir, reference.name)
            log.debug("repository_probed", state=location.state, path=str(location.path))
            if location.state is RepoState.MIRROR:
                outcome = await self._pull_decision(reference, location)
            else:
                outcome = await self._clone_decision(reference, location)

        return SyncReport(reference.name, outcome)

    async def _clone_decision(
        self, reference: RepositoryReference, location: RepositoryLocation
    ) -> ActionOutcome:
        log = logger.bind(repository=reference.name, path=str(location.path))

        if reference.push_branch != reference.default_branch:
            log.info(
                "clone_skipped_branch_mismatch",
                push_branch=reference.push_branch,
                default_branch=reference.default_branch,
            )
            return Skipped(
                f"Push to '{reference.push_branch}' ignored; repository is not cloned yet "
                f"and only pushes to the default branch '{reference.default_branch}' "
                "trigger a clone"
            )

        if not self._config.auto_clone:
            log.warning("clone_disabled")
            return Failed(
                FailureKind.NOT_FOUND,
                error="Repository directory not found",
                message=(
                    f"Auto-clone is disabled. Please clone the repository to "
                    f"{location.path} manually or enable autoClone in config"
                ),
            )

        if not reference.ssh_url:
            log.warning("clone_missing_ssh_url")
            return Failed(
                FailureKind.BAD_REQUEST,
                error="No repository SSH URL found in payload",
            )

        if location.state is RepoState.FOREIGN:
            log.warning("clone_directory_conflict")
            return Failed(
                FailureKind.CONFLICT,
                error="Directory exists but is not empty",
                message=(
                    f"{location.path} exists and contains files but is not a git "
                    "repository. Please clean it manually."
                ),
            )

        if location.state is RepoState.ABSENT:
            log.info("directory_created")
            self._storage.make_directory(location.path, recursive=True)

        return await self._git.clone(reference, reference.ssh_url, location)

    async def _pull_decision(
        self, reference: RepositoryReference, location: RepositoryLocation
    ) -> ActionOutcome:
        log = logger.bind(repository=reference.name, path=str(location.path))

        try:
            current = await self._git.current_branch(location)
        except CommandError as exc:
            log.error("branch_query_failed", error=exc.detail, stderr=exc.stderr)
            return Failed(
                FailureKind.BRANCH_QUERY,
                error=exc.detail,
                message=(
                    f"Could not determine the checked-out branch of {location.path}; "
                    "the local repository may be corrupted"
                ),
                stderr=exc.stderr,
            )

        if reference.push_branch != current:
            log.info(
                "pull_skipped_branch_mismatch",
                push_branch=reference.push_branch,
                local_branch=current,
            )
            return Skipped(
                f"Push to '{reference.push_branch}' ignored; local repository tracks '{current}'"
            )

        return await self._git.pull(location, current)
