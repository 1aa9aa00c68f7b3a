"""Tests for CLI commands."""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from conftest import T0

from nextyasync.cli import main
from nextyasync.exceptions import (
    AuthenticationError,
    NotFoundError,
    RemoteUnavailableError,
)
from nextyasync.models import RemoteEntry, SyncStats

ENV_VARS = (
    "YANDEX_TOKEN",
    "YANDEX_TARGET_PATH",
    "NEXTCLOUD_URL",
    "NEXTCLOUD_USERNAME",
    "NEXTCLOUD_PASSWORD",
    "NEXTCLOUD_SYNC_PATHS",
)

CREDENTIALS = [
    "-y",
    "token",
    "-u",
    "https://cloud.example.com",
    "-n",
    "alice",
    "-p",
    "secret",
]


@pytest.fixture(autouse=True)
def clean_environment(tmp_path, monkeypatch):
    """Keep real credentials and config files out of CLI tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def clients():
    """Patch both remote clients with context-manager capable mocks."""
    with patch("nextyasync.cli.NextcloudClient") as nextcloud_cls, patch(
        "nextyasync.cli.YandexDiskClient"
    ) as yandex_cls:
        nextcloud = MagicMock()
        yandex = MagicMock()
        nextcloud_cls.return_value = nextcloud
        yandex_cls.return_value = yandex
        yield nextcloud_cls, yandex_cls, nextcloud, yandex


@pytest.fixture
def engine():
    """Patch the sync engine."""
    with patch("nextyasync.cli.SyncEngine") as engine_cls:
        engine_cls.return_value.run.return_value = SyncStats(
            total=3, uploaded=1, skipped=2, errored=0
        )
        yield engine_cls


class TestMain:
    """Tests for the command group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Synchronize files from Nextcloud to Yandex Disk" in result.output
        assert "sync" in result.output

    def test_sync_help(self, runner):
        result = runner.invoke(main, ["sync", "--help"])

        assert result.exit_code == 0
        assert "--dry-run" in result.output


class TestSyncCommand:
    """Tests for the sync command."""

    def test_missing_credentials(self, runner, clients, engine):
        result = runner.invoke(main, ["sync"])

        assert result.exit_code == 1
        assert "Yandex token is required" in result.output
        engine.assert_not_called()

    def test_forbidden_root_target(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "-t", "disk:/", "sync"])

        assert result.exit_code == 1
        assert "Forbidden" in result.output
        engine.assert_not_called()

    def test_sync_runs_engine(self, runner, clients, engine):
        nextcloud_cls, yandex_cls, nextcloud, yandex = clients

        result = runner.invoke(
            main, [*CREDENTIALS, "-s", "/docs,/photos", "-t", "disk:/backup", "sync"]
        )

        assert result.exit_code == 0, result.output
        nextcloud_cls.assert_called_once_with(
            "https://cloud.example.com", "alice", "secret", timeout=60.0
        )
        yandex_cls.assert_called_once_with("token", timeout=60.0)
        nextcloud.authenticate.assert_called_once()
        yandex.authenticate.assert_called_once()
        engine.return_value.run.assert_called_once_with(
            ["/docs", "/photos"], "disk:/backup"
        )
        assert engine.call_args.kwargs["dry_run"] is False
        assert "Connected to Nextcloud" in result.output
        assert "Uploaded" in result.output

    def test_sync_uses_defaults(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "sync"])

        assert result.exit_code == 0, result.output
        engine.return_value.run.assert_called_once_with(["/"], "disk:/nextcloud")

    def test_sync_reads_environment(self, runner, clients, engine):
        env = {
            "YANDEX_TOKEN": "env-token",
            "NEXTCLOUD_URL": "https://env.example.com",
            "NEXTCLOUD_USERNAME": "bob",
            "NEXTCLOUD_PASSWORD": "pw",
            "NEXTCLOUD_SYNC_PATHS": "/a",
        }

        result = runner.invoke(main, ["sync"], env=env)

        assert result.exit_code == 0, result.output
        clients[0].assert_called_once_with(
            "https://env.example.com", "bob", "pw", timeout=60.0
        )
        engine.return_value.run.assert_called_once_with(["/a"], "disk:/nextcloud")

    def test_sync_reads_config_file(self, runner, clients, engine, tmp_path):
        config = tmp_path / "sync.yaml"
        config.write_text(
            "yandex:\n"
            "  token: file-token\n"
            "  target_path: disk:/from-file\n"
            "nextcloud:\n"
            "  url: https://cloud.example.com\n"
            "  username: alice\n"
            "  password: secret\n"
        )

        result = runner.invoke(main, ["--config", str(config), "sync"])

        assert result.exit_code == 0, result.output
        clients[1].assert_called_once_with("file-token", timeout=60.0)
        engine.return_value.run.assert_called_once_with(["/"], "disk:/from-file")

    def test_sync_json_output(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "--json", "sync"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "total": 3,
            "uploaded": 1,
            "skipped": 2,
            "errored": 0,
            "dry_run": False,
        }

    def test_sync_dry_run(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "sync", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert engine.call_args.kwargs["dry_run"] is True
        assert "Dry run" in result.output
        assert "Would upload" in result.output

    def test_sync_reports_failed_files(self, runner, clients, engine):
        engine.return_value.run.return_value = SyncStats(
            total=2, uploaded=1, errored=1
        )

        result = runner.invoke(main, [*CREDENTIALS, "sync"])

        assert result.exit_code == 0
        assert "1 file(s) failed" in result.output

    def test_authentication_failure(self, runner, clients, engine):
        clients[2].authenticate.side_effect = AuthenticationError("bad password")

        result = runner.invoke(main, [*CREDENTIALS, "sync"])

        assert result.exit_code == 1
        assert "Failed to authenticate with Nextcloud" in result.output
        engine.assert_not_called()
        clients[2].__exit__.assert_called_once()

    def test_fatal_sync_error(self, runner, clients, engine):
        engine.return_value.run.side_effect = RemoteUnavailableError("down")

        result = runner.invoke(main, [*CREDENTIALS, "sync"])

        assert result.exit_code == 1
        assert "Synchronization failed: down" in result.output

    def test_keyboard_interrupt(self, runner, clients, engine):
        engine.return_value.run.side_effect = KeyboardInterrupt

        result = runner.invoke(main, [*CREDENTIALS, "sync"])

        assert result.exit_code == 130
        assert "Sync cancelled by user" in result.output

    def test_timeout_is_passed_to_clients(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "--timeout", "5", "sync"])

        assert result.exit_code == 0, result.output
        clients[1].assert_called_once_with("token", timeout=5.0)

    def test_plain_target_path_is_qualified(self, runner, clients, engine):
        result = runner.invoke(main, [*CREDENTIALS, "-t", "/backup", "sync"])

        assert result.exit_code == 0, result.output
        engine.return_value.run.assert_called_once_with(["/"], "disk:/backup")


class TestStatusCommand:
    """Tests for the status command."""

    def test_status_ok(self, runner, clients):
        result = runner.invoke(main, [*CREDENTIALS, "status"])

        assert result.exit_code == 0
        assert "Connected to Nextcloud" in result.output
        assert "Connected to Yandex Disk" in result.output

    def test_status_yandex_failure(self, runner, clients):
        clients[3].authenticate.side_effect = AuthenticationError("bad token")

        result = runner.invoke(main, [*CREDENTIALS, "status"])

        assert result.exit_code == 1
        assert "Failed to authenticate with Yandex Disk" in result.output

    def test_numeric_credentials_from_config(self, runner, clients, tmp_path):
        config = tmp_path / "sync.yaml"
        config.write_text(
            "yandex:\n"
            "  token: 42\n"
            "nextcloud:\n"
            "  url: https://cloud.example.com\n"
            "  username: 1001\n"
            "  password: 123456\n"
        )

        result = runner.invoke(main, ["--config", str(config), "status"])

        assert result.exit_code == 0, result.output
        clients[0].assert_called_once_with(
            "https://cloud.example.com", "1001", "123456", timeout=60.0
        )
        clients[1].assert_called_once_with("42", timeout=60.0)


class TestLsCommand:
    """Tests for the ls command."""

    def test_ls_nextcloud(self, runner, clients):
        clients[2].list.return_value = [
            RemoteEntry(name="docs", path="/docs", size=0, is_dir=True, modified=T0),
            RemoteEntry(
                name="a.txt", path="/a.txt", size=1536, is_dir=False, modified=T0
            ),
        ]

        result = runner.invoke(main, [*CREDENTIALS, "ls", "nextcloud", "/"])

        assert result.exit_code == 0, result.output
        clients[2].list.assert_called_once_with("/")
        assert "docs/" in result.output
        assert "1.5 KB" in result.output

    def test_ls_yandex_json(self, runner, clients):
        clients[3].list.return_value = [
            RemoteEntry(
                name="a.txt",
                path="disk:/nextcloud/a.txt",
                size=3,
                is_dir=False,
                modified=T0,
            )
        ]

        result = runner.invoke(
            main, [*CREDENTIALS, "--json", "ls", "yandex", "disk:/nextcloud"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {
                "name": "a.txt",
                "path": "disk:/nextcloud/a.txt",
                "size": 3,
                "is_dir": False,
                "modified": "2024-01-01T12:00:00+00:00",
            }
        ]

    def test_ls_missing_folder(self, runner, clients):
        clients[2].list.side_effect = NotFoundError("Nextcloud: not found: /x")

        result = runner.invoke(main, [*CREDENTIALS, "ls", "nextcloud", "/x"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_ls_rejects_unknown_remote(self, runner, clients):
        result = runner.invoke(main, [*CREDENTIALS, "ls", "dropbox"])

        assert result.exit_code == 2
