"""Run the git commands behind a clone, a pull, or a branch query.

Each public method makes a single attempt and turns the command's result into
an ``ActionOutcome``. Nothing is retried: a failed delivery is reported back
to GitHub, which can redeliver it.
"""

from __future__ import annotations

import structlog

from gitmirror.services.command_runner import CommandError, CommandRunner
from gitmirror.services.outcomes import Cloned, Failed, FailureKind, Pulled
from gitmirror.services.payload import RepositoryReference
from gitmirror.services.repo_state import RepositoryLocation, is_empty_or_hidden_only
from gitmirror.services.storage import Storage

logger = structlog.get_logger()

GIT = "git"


class GitActions:
    """Clone, pull, and branch-query operations against a mirror directory."""

    def __init__(
        self,
        runner: CommandRunner,
        storage: Storage,
        timeout: float | None = None,
    ) -> None:
        self._runner = runner
        self._storage = storage
        self._timeout = timeout

    async def clone(
        self,
        reference: RepositoryReference,
        ssh_url: str,
        location: RepositoryLocation,
    ) -> Cloned | Failed:
        """Clone into the (existing, empty) directory and check out the default branch.

        On failure an empty directory is removed so the next delivery sees the
        repository as absent. A directory holding partial clone artifacts is
        left alone for manual inspection.
        """
        path = location.path
        branch = reference.default_branch
        log = logger.bind(repository=reference.name, path=str(path), branch=branch)

        log.info("clone_started", url=ssh_url)
        try:
            cloned = await self._runner.run(
                [GIT, "clone", "--", ssh_url, "."], cwd=path, timeout=self._timeout
            )
            checkout = await self._runner.run(
                [GIT, "checkout", branch], cwd=path, timeout=self._timeout
            )
        except CommandError as exc:
            log.error("clone_failed", error=exc.detail, stderr=exc.stderr)
            self._cleanup_failed_clone(location)
            return Failed(
                FailureKind.CLONE,
                error=exc.detail or "Git clone failed",
                message=f"Failed to clone {reference.name}",
                stderr=exc.stderr,
            )

        log.info("clone_succeeded")
        return Cloned(branch=branch, output=cloned.stdout + checkout.stdout)

    async def current_branch(self, location: RepositoryLocation) -> str:
        """Return the branch checked out in the mirror.

        Raises:
            CommandError: If git cannot report a branch (e.g. corrupted
                metadata). A detached HEAD also raises, since it tracks nothing.
        """
        args = [GIT, "rev-parse", "--abbrev-ref", "HEAD"]
        result = await self._runner.run(args, cwd=location.path, timeout=self._timeout)
        branch = result.stdout.strip()
        if not branch or branch == "HEAD":
            raise CommandError(
                args,
                f"Mirror at {location.path} is not on a branch",
                stderr=result.stderr,
            )
        return branch

    async def pull(self, location: RepositoryLocation, branch: str) -> Pulled | Failed:
        """Pull from ``origin`` into the mirror's current branch."""
        log = logger.bind(path=str(location.path), branch=branch)
        log.info("pull_started")
        try:
            result = await self._runner.run(
                [GIT, "pull", "origin"], cwd=location.path, timeout=self._timeout
            )
        except CommandError as exc:
            log.error("pull_failed", error=exc.detail, stderr=exc.stderr)
            return Failed(
                FailureKind.PULL,
                error=exc.detail or "Git pull failed",
                message=f"Failed to pull {location.path.name}",
                stderr=exc.stderr,
            )

        log.info("pull_succeeded")
        return Pulled(branch=branch, output=result.stdout)

    def _cleanup_failed_clone(self, location: RepositoryLocation) -> None:
        path = location.path
        try:
            if not self._storage.exists(path):
                return
            if not is_empty_or_hidden_only(self._storage.list_entries(path)):
                logger.warning("clone_artifacts_left", path=str(path))
                return
            self._storage.remove_directory(path, recursive=True)
            logger.info("clone_directory_removed", path=str(path))
        except OSError:
            logger.exception("clone_cleanup_failed", path=str(path))
