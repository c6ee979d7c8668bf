"""Make sure an SSH key exists for cloning over ``git@github.com:...`` URLs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from gitmirror.services.command_runner import CommandRunner

logger = structlog.get_logger()

# Checked in order; the first complete pair wins.
KEY_TYPES: tuple[str, ...] = ("id_ed25519", "id_rsa")
KEY_COMMENT = "github-webhook-server"


@dataclass(frozen=True)
class SshKeyInfo:
    created: bool
    key_type: str
    public_key: str


def find_existing_key(ssh_dir: Path) -> SshKeyInfo | None:
    for key_type in KEY_TYPES:
        private_key = ssh_dir / key_type
        public_key = ssh_dir / f"{key_type}.pub"
        if private_key.exists() and public_key.exists():
            return SshKeyInfo(
                created=False,
                key_type=key_type,
                public_key=public_key.read_text(encoding="utf-8").strip(),
            )
    return None


async def ensure_ssh_key(ssh_dir: Path, runner: CommandRunner) -> SshKeyInfo:
    """Return the existing key pair in *ssh_dir*, generating an ed25519 one if absent.

    Raises:
        CommandError: If ``ssh-keygen`` fails.
    """
    if not ssh_dir.exists():
        logger.info("ssh_dir_created", path=str(ssh_dir))
        ssh_dir.mkdir(parents=True, mode=0o700)

    existing = find_existing_key(ssh_dir)
    if existing is not None:
        logger.info("ssh_key_found", key_type=existing.key_type)
        return existing

    private_key = ssh_dir / "id_ed25519"
    public_key = ssh_dir / "id_ed25519.pub"
    logger.info("ssh_key_generating", path=str(private_key))
    await runner.run(
        ["ssh-keygen", "-t", "ed25519", "-f", str(private_key), "-N", "", "-C", KEY_COMMENT]
    )

    private_key.chmod(0o600)
    public_key.chmod(0o644)
    info = SshKeyInfo(
        created=True,
        key_type="id_ed25519",
        public_key=public_key.read_text(encoding="utf-8").strip(),
    )
    logger.warning(
        "ssh_key_generated",
        public_key=info.public_key,
        hint="Add this key to GitHub: https://github.com/settings/ssh/new",
    )
    return info
