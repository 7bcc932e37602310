"""Admin CLI against a throwaway SQLite file and in-memory sessions."""

import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli import app
from src.userhub.runtime.config.config_data import ConfigData
from src.userhub.runtime.context import with_context

runner = CliRunner()


@pytest.fixture
def cli_config(tmp_path):
    override = ConfigData()
    override.database.url = f"sqlite:///{tmp_path / 'cli.db'}"
    override.redis.enabled = False
    override.security.password_hashing.time_cost = 1
    override.security.password_hashing.memory_cost = 8
    override.security.password_hashing.parallelism = 1
    with with_context(override):
        result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0, result.output
        yield override


def _user_id(output: str) -> str:
    match = re.search(r"\b[0-9a-f]{24}\b", output)
    assert match, output
    return match.group(0)


def test_add_and_show_user(cli_config):
    added = runner.invoke(app, ["users", "add", "--phone", "13800138000", "--nickname", "neo"])
    assert added.exit_code == 0, added.output
    assert "User created" in added.output

    shown = runner.invoke(app, ["users", "show", "13800138000"])
    assert shown.exit_code == 0, shown.output
    assert "neo" in shown.output


def test_add_requires_account(cli_config):
    result = runner.invoke(app, ["users", "add", "--nickname", "ghost"])

    assert result.exit_code == 1
    assert "REQUIRE_USER_ACCOUNT" in result.output


def test_show_unknown_user(cli_config):
    result = runner.invoke(app, ["users", "show", "13900000000"])

    assert result.exit_code == 1
    assert "USER_NOT_FOUND" in result.output


def test_purge_user(cli_config):
    added = runner.invoke(app, ["users", "add", "--phone", "13800138000"])
    user_id = _user_id(added.output)

    purged = runner.invoke(app, ["users", "purge", user_id, "--force"])
    assert purged.exit_code == 0, purged.output
    assert "removed" in purged.output

    again = runner.invoke(app, ["users", "purge", user_id, "--force"])
    assert again.exit_code == 1


def test_sessions_commands(cli_config):
    added = runner.invoke(app, ["users", "add", "--phone", "13800138000"])
    user_id = _user_id(added.output)

    listed = runner.invoke(app, ["sessions", "list", user_id])
    assert listed.exit_code == 0
    assert "No sessions" in listed.output

    revoked = runner.invoke(app, ["sessions", "revoke", user_id])
    assert revoked.exit_code == 0
    assert "0 session(s) revoked" in revoked.output


def _unreachable_redis():
    client = AsyncMock()
    client.ping.side_effect = ConnectionError("refused")
    service = MagicMock()
    service.is_enabled = True
    service.url = "redis://localhost:6379"
    service.get_client.return_value = client
    service.close = AsyncMock()
    return service


def test_session_commands_fail_when_redis_is_unreachable(cli_config):
    added = runner.invoke(app, ["users", "add", "--phone", "13800138000"])
    user_id = _user_id(added.output)

    with patch("src.cli.services.RedisService", return_value=_unreachable_redis()):
        revoked = runner.invoke(app, ["sessions", "revoke", user_id])
        purged = runner.invoke(app, ["users", "purge", user_id, "--force"])

    assert revoked.exit_code == 1
    assert "session(s) revoked" not in revoked.output
    assert purged.exit_code == 1

    shown = runner.invoke(app, ["users", "show", user_id])
    assert shown.exit_code == 0, shown.output
