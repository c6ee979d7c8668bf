"""Command execution abstraction with protocol-based swappable implementations.

Production code uses ``SubprocessCommandRunner`` which drives ``git`` and
``ssh-keygen`` through asyncio subprocesses, so a slow clone never blocks the
event loop, and kills any command that outlives its timeout. Tests use
``InMemoryCommandRunner`` which records commands and replays scripted results
without touching real binaries.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

# git must never stop to ask for credentials or confirm a host key.
NON_INTERACTIVE_SSH_OPTIONS: tuple[str, ...] = (
    "-o",
    "BatchMode=yes",
    "-o",
    "StrictHostKeyChecking=accept-new",
)


def git_ssh_command(inherited: str | None = None, identity_file: Path | None = None) -> str:
    """Build the ``GIT_SSH_COMMAND`` git runs with.

    An operator-supplied command is kept as is and only gains the
    non-interactive options. Otherwise plain ``ssh`` is used, pinned to
    *identity_file* when one is given.
    """
    if inherited:
        return f"{inherited} {shlex.join(NON_INTERACTIVE_SSH_OPTIONS)}"
    args = ["ssh"]
    if identity_file is not None:
        args += ["-i", str(identity_file), "-o", "IdentitiesOnly=yes"]
    return shlex.join([*args, *NON_INTERACTIVE_SSH_OPTIONS])


def command_env(
    base: Mapping[str, str], identity_file: Path | None = None
) -> dict[str, str]:
    """Return *base* with the variables that keep git and ssh non-interactive."""
    env = dict(base)
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["GIT_SSH_COMMAND"] = git_ssh_command(base.get("GIT_SSH_COMMAND"), identity_file)
    return env


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a command that exited with status 0."""

    returncode: int
    stdout: str
    stderr: str


class CommandError(Exception):
    """Raised when a command cannot start, exits non-zero, or times out."""

    def __init__(
        self,
        command: Sequence[str],
        detail: str,
        *,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.command = list(command)
        self.detail = detail
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(detail)


def format_command(args: Sequence[str]) -> str:
    return shlex.join(args)


class CommandRunner(Protocol):
    """Protocol for running an external command to completion."""

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run *args* in *cwd* and return its output.

        Raises:
            CommandError: If the command fails to start, exits non-zero or
                exceeds *timeout* seconds.
        """
        ...


class SubprocessCommandRunner:
    """Production implementation backed by ``asyncio.create_subprocess_exec``.

    Arguments are passed as a list, never through a shell, so repository URLs
    and branch names from the payload cannot inject commands.
    """

    def __init__(
        self,
        default_timeout: float | None = None,
        identity_file: Path | None = None,
    ) -> None:
        self._default_timeout = default_timeout
        self._env = command_env(os.environ, identity_file)

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        command = format_command(args)
        limit = timeout if timeout is not None else self._default_timeout
        logger.debug("command_started", command=command, cwd=str(cwd) if cwd else None)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=self._env,
            )
        except OSError as exc:
            raise CommandError(args, f"Failed to start '{command}': {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=limit)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise CommandError(args, f"Command '{command}' timed out after {limit:g}s") from None

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")
        if process.returncode != 0:
            raise CommandError(
                args,
                f"Command failed: {command} (exit status {process.returncode})",
                stderr=stderr_text,
                returncode=process.returncode,
            )
        return CommandResult(process.returncode, stdout_text, stderr_text)


@dataclass
class _Script:
    prefix: tuple[str, ...]
    result: CommandResult | CommandError
    effect: Callable[[Path | None], None] | None = None


@dataclass
class InMemoryCommandRunner:
    """Test double that records commands and replays scripted results.

    ``script`` registers a result for every command starting with *prefix*;
    the most recent matching script wins. An optional *effect* runs with the
    working directory before the result is returned, which lets tests simulate
    what ``git clone`` leaves on disk. Unscripted commands succeed with empty
    output.
    """

    calls: list[dict] = field(default_factory=list)
    _scripts: list[_Script] = field(default_factory=list)

    def script(
        self,
        *prefix: str,
        result: CommandResult | CommandError | None = None,
        stdout: str = "",
        effect: Callable[[Path | None], None] | None = None,
    ) -> None:
        scripted = result if result is not None else CommandResult(0, stdout, "")
        self._scripts.append(_Script(tuple(prefix), scripted, effect))

    def fail(
        self,
        *prefix: str,
        detail: str = "command failed",
        stderr: str = "",
        effect: Callable[[Path | None], None] | None = None,
    ) -> None:
        """Shortcut for scripting a ``CommandError`` with exit status 1."""
        error = CommandError(prefix, detail, stderr=stderr, returncode=1)
        self.script(*prefix, result=error, effect=effect)

    @property
    def commands(self) -> list[list[str]]:
        return [call["args"] for call in self.calls]

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        self.calls.append({"args": list(args), "cwd": cwd, "timeout": timeout})
        for scripted in reversed(self._scripts):
            if tuple(args[: len(scripted.prefix)]) == scripted.prefix:
                if scripted.effect is not None:
                    scripted.effect(cwd)
                if isinstance(scripted.result, CommandError):
                    raise scripted.result
                return scripted.result
        return CommandResult(0, "", "")
