"""Tests for the CLI module."""

import json

import pytest
from click.testing import CliRunner

import imap_expire.cli as cli_module
from imap_expire.cli import cli
from imap_expire.errors import AuthenticationError

BASE_ARGS = ["-h", "imap.example.com", "-u", "me", "--password", "secret", "--before", "2024-01-01"]


@pytest.fixture
def fake_connect(monkeypatch, make_session):
    """Replace the network connection with a FakeSession holding UIDs 10-12 and 20."""
    session = make_session(uids=[10, 11, 12, 20])
    connect_args = {}

    def _connect(host, username, password, **kwargs):
        connect_args.update(host=host, username=username, password=password, **kwargs)
        return session

    monkeypatch.setattr(cli_module, "connect", _connect)
    session.connect_args = connect_args
    return session


@pytest.fixture
def log_path(tmp_path, monkeypatch):
    import imap_expire.constants as constants

    path = tmp_path / "delete_log.json"
    monkeypatch.setattr(constants, "DELETE_LOG_PATH", path)
    return path


def test_cli_help():
    """CLI --help should work and list the main options."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "--before" in result.output
    assert "--dry-run" in result.output
    assert "--mailbox" in result.output


def test_cli_version():
    """CLI --version should show version."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_invalid_date_is_usage_error():
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS[:-1] + ["01/01/2024"])
    assert result.exit_code == 2
    assert "--before" in result.output


def test_dry_run(fake_connect, log_path):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["--dry-run"])

    assert result.exit_code == 0, result.output
    assert "4 not deleted (dry run)." in result.output
    assert fake_connect.called("mark") == []
    assert fake_connect.called("purge") == []
    assert fake_connect.logged_out
    assert not log_path.exists()


def test_dry_run_export_json(fake_connect, tmp_path):
    out = tmp_path / "preview.json"
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["-n", "--export", str(out), "--format", "json"])

    assert result.exit_code == 0, result.output
    rows = json.loads(out.read_text())
    assert [row["uid"] for row in rows] == [10, 11, 12, 20]


def test_export_requires_dry_run(fake_connect, tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["--yes", "--export", str(tmp_path / "x.csv")])
    assert result.exit_code == 2
    assert fake_connect.calls == []


def test_commit_with_yes(fake_connect, log_path):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["--yes"])

    assert result.exit_code == 0, result.output
    assert "4 deleted." in result.output
    assert len(fake_connect.called("mark")) == 2
    assert len(fake_connect.called("purge")) == 1

    log = json.loads(log_path.read_text())
    assert log[-1]["deleted"] == 4
    assert log[-1]["ranges"] == ["10:12", "20"]


def test_commit_asks_for_confirmation(fake_connect, log_path):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS, input="DELETE\n")

    assert result.exit_code == 0, result.output
    assert "4 deleted." in result.output


def test_commit_cancelled(fake_connect, log_path):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS, input="no\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert fake_connect.calls == []


def test_missing_mailbox_exits_with_error(fake_connect):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["--yes", "-b", "Nope"])

    assert result.exit_code == 1
    assert "Cannot select mailbox" in result.output
    assert fake_connect.called("purge") == []


def test_login_failure_exits_with_error(monkeypatch):
    def _connect(*args, **kwargs):
        raise AuthenticationError("Login failed for me: AUTHENTICATIONFAILED")

    monkeypatch.setattr(cli_module, "connect", _connect)
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["-n"])

    assert result.exit_code == 1
    assert "Login failed" in result.output


def test_password_from_environment(fake_connect):
    args = [a for a in BASE_ARGS if a not in ("--password", "secret")]
    runner = CliRunner()
    result = runner.invoke(cli, args + ["-n"], env={"IMAP_EXPIRE_PASSWORD": "from-env"})

    assert result.exit_code == 0, result.output
    assert fake_connect.connect_args["password"] == "from-env"


def test_plain_connection_options(fake_connect):
    runner = CliRunner()
    result = runner.invoke(cli, BASE_ARGS + ["-n", "--no-ssl", "-p", "1143"])

    assert result.exit_code == 0, result.output
    assert fake_connect.connect_args["use_ssl"] is False
    assert fake_connect.connect_args["port"] == 1143
