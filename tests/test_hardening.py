"""Tests for production hardening: exception handlers, structlog, timeouts, startup."""

from __future__ import annotations

import inspect
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gitmirror.config import Settings
from gitmirror.errors import ParseError, ParseFailure

# ---------------------------------------------------------------------------
# 1. Exception handlers return JSON bodies
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_global_exception_handler_returns_json() -> None:
    """The unhandled_exception_handler returns JSON with status 500."""
    from gitmirror.main import unhandled_exception_handler

    mock_request = MagicMock()
    mock_request.url.path = "/webhook"
    mock_request.method = "POST"

    response = await unhandled_exception_handler(mock_request, Exception("boom"))

    assert response.status_code == 500
    assert json.loads(response.body) == {"success": False, "message": "Internal server error"}


@pytest.mark.anyio
async def test_webhook_error_handler_uses_error_status() -> None:
    from gitmirror.main import webhook_error_handler

    mock_request = MagicMock()
    mock_request.url.path = "/webhook"

    response = await webhook_error_handler(
        mock_request, ParseError(ParseFailure.MALFORMED_JSON, "Expecting value")
    )

    assert response.status_code == 400
    assert json.loads(response.body) == {
        "success": False,
        "message": "Expecting value",
        "error": "Invalid JSON payload",
    }


# ---------------------------------------------------------------------------
# 2. Git commands always run with an explicit timeout
# ---------------------------------------------------------------------------


def test_git_actions_pass_timeout() -> None:
    from gitmirror.services import git_actions

    source = inspect.getsource(git_actions)
    assert source.count("timeout=self._timeout") == 4


def test_default_runner_has_timeout() -> None:
    from gitmirror.dependencies import get_command_runner

    runner = get_command_runner()
    assert runner._default_timeout is not None  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# 3. All modules log through structlog
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "module_path",
    [
        "gitmirror/routers/webhooks.py",
        "gitmirror/services/command_runner.py",
        "gitmirror/services/config_store.py",
        "gitmirror/services/git_actions.py",
        "gitmirror/services/ssh_keys.py",
        "gitmirror/services/sync_engine.py",
    ],
)
def test_no_stdlib_logging_in_module(module_path: str) -> None:
    """Application modules use structlog instead of stdlib logging.getLogger."""
    source = (Path(__file__).resolve().parent.parent / module_path).read_text()
    assert "logging.getLogger" not in source, f"{module_path} still uses stdlib logging"
    assert "structlog" in source, f"{module_path} should use structlog"


# ---------------------------------------------------------------------------
# 4. Lifespan prepares repos dir and config before serving
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_lifespan_bootstraps_repos_dir_and_config(tmp_path: Path) -> None:
    from gitmirror import main
    from gitmirror.dependencies import get_webhook_config

    test_settings = Settings(
        _env_file=None,
        repos_dir=tmp_path / "repos",
        config_file=tmp_path / "webhook-config.json",
        github_webhook_secret="boot-secret",
        ssh_key_setup=False,
        debug=True,
    )

    with patch.object(main, "settings", test_settings):
        async with main.lifespan(main.app):
            assert (tmp_path / "repos").is_dir()
            assert (tmp_path / "webhook-config.json").exists()
            assert get_webhook_config().github_webhook_secret == "boot-secret"


@pytest.mark.anyio
async def test_lifespan_points_git_at_configured_ssh_key(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The key found in SSH_DIR is the identity git's ssh uses after startup."""
    from gitmirror import dependencies, main
    from gitmirror.dependencies import get_command_runner

    monkeypatch.delenv("GIT_SSH_COMMAND", raising=False)
    monkeypatch.setattr(dependencies, "_command_runner", dependencies._command_runner)
    ssh_dir = tmp_path / "keys"
    ssh_dir.mkdir()
    (ssh_dir / "id_ed25519").write_text("PRIVATE")
    (ssh_dir / "id_ed25519.pub").write_text("ssh-ed25519 AAAA deploy\n")
    test_settings = Settings(
        _env_file=None,
        repos_dir=tmp_path / "repos",
        config_file=tmp_path / "webhook-config.json",
        github_webhook_secret="boot-secret",
        ssh_dir=ssh_dir,
        ssh_key_setup=True,
        debug=True,
    )

    with patch.object(main, "settings", test_settings):
        async with main.lifespan(main.app):
            runner = get_command_runner()
            code = "import os; print(os.environ['GIT_SSH_COMMAND'])"
            result = await runner.run([sys.executable, "-c", code])

    assert f"-i {(ssh_dir / 'id_ed25519').resolve()}" in result.stdout
    assert "IdentitiesOnly=yes" in result.stdout
