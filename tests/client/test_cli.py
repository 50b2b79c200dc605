"""Tests for CLI commands - configure, pull, get, apply, status, register."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from docsync.client.cli import cli
from docsync.client.cli.config import sync_options_from

if TYPE_CHECKING:
    from conftest import FakePlatform


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path) -> Iterator[Path]:
    """Point the CLI at a temporary config directory."""
    with patch("docsync.client.cli.config.get_config_dir", return_value=tmp_path):
        yield tmp_path


@pytest.fixture
def configured(config_dir: Path) -> Path:
    """Write a complete configuration."""
    (config_dir / "config.json").write_text(
        json.dumps(
            {
                "server_url": "http://test",
                "auth_token": "token123",
                "contract_id": "contract1",
                "identity_id": "alice",
                "documents": "note",
            }
        )
    )
    return config_dir


@pytest.fixture
def remote(platform: FakePlatform) -> Iterator[FakePlatform]:
    """Route CLI platform calls to the in-memory platform."""
    with patch("docsync.client.cli.documents.PlatformClient", return_value=platform):
        yield platform


class TestConfigureCommand:
    """Tests for 'docsync configure' command."""

    def test_saves_given_options(self, runner: CliRunner, config_dir: Path) -> None:
        """Should write the options to the config file."""
        result = runner.invoke(
            cli,
            ["configure", "--server", "http://test", "--token", "t", "--documents", "note,tag"],
        )

        assert result.exit_code == 0
        assert "Configuration saved." in result.output
        config = json.loads((config_dir / "config.json").read_text())
        assert config == {"server_url": "http://test", "auth_token": "t", "documents": "note,tag"}

    def test_keeps_existing_options(self, runner: CliRunner, configured: Path) -> None:
        """Should only change the given options."""
        result = runner.invoke(cli, ["configure", "--identity", "bob"])

        assert result.exit_code == 0
        config = json.loads((configured / "config.json").read_text())
        assert config["identity_id"] == "bob"
        assert config["contract_id"] == "contract1"

    def test_rejects_invalid_query(self, runner: CliRunner, config_dir: Path) -> None:
        """Should refuse an --all-query that is not JSON."""
        result = runner.invoke(cli, ["configure", "--all-query", "{nope"])

        assert result.exit_code != 0
        assert not (config_dir / "config.json").exists()

    def test_warns_when_incomplete(self, runner: CliRunner, config_dir: Path) -> None:
        """Should point out missing connection settings."""
        result = runner.invoke(cli, ["configure", "--contract", "c"])

        assert result.exit_code == 0
        assert "--server and --token are required" in result.output


class TestSyncOptionsFrom:
    """Tests for building SyncOptions from stored config."""

    def test_reads_config_and_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should parse documents and query and take the mnemonic from the environment."""
        monkeypatch.setenv("DOCSYNC_MNEMONIC", "words")

        options = sync_options_from(
            {"documents": "note, tag,", "all_query": '{"limit": 5}', "network": "testnet"}
        )

        assert options.documents == ("note", "tag")
        assert options.all_query == {"limit": 5}
        assert options.network == "testnet"
        assert options.mnemonic == "words"

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should fall back to defaults for missing keys."""
        monkeypatch.delenv("DOCSYNC_MNEMONIC", raising=False)

        options = sync_options_from({})

        assert options.documents == ()
        assert options.network == "livenet"
        assert options.mnemonic is None


class TestPullCommand:
    """Tests for 'docsync pull' command."""

    def test_not_configured(self, runner: CliRunner, config_dir: Path) -> None:
        """Should fail without a configuration."""
        result = runner.invoke(cli, ["pull", "--documents", "note"])

        assert result.exit_code != 0
        assert "Not configured" in result.output

    def test_no_document_types(self, runner: CliRunner, config_dir: Path) -> None:
        """Should fail when no types are configured or given."""
        result = runner.invoke(cli, ["pull"])

        assert result.exit_code != 0
        assert "No document types" in result.output

    def test_pulls_configured_types(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should mirror every configured type and report counts."""
        remote.seed("note", 3)

        result = runner.invoke(cli, ["pull"])

        assert result.exit_code == 0
        assert "note: 3 document(s)" in result.output
        assert remote.closed

    def test_pulls_given_types(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should mirror the types given on the command line."""
        remote.seed("tag", 2)

        result = runner.invoke(cli, ["pull", "--documents", "tag,note"])

        assert result.exit_code == 0
        assert "tag: 2 document(s)" in result.output
        assert "note: 0 document(s)" in result.output

    def test_failed_refresh_exits_with_error(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should exit 1 instead of reporting zero documents when a refresh fails."""
        remote.seed("note", 3)
        remote.fail_queries = True

        result = runner.invoke(cli, ["pull"])

        assert result.exit_code == 1
        assert "Failed to refresh note" in result.output
        assert "note: 0 document(s)" not in result.output


class TestGetCommand:
    """Tests for 'docsync get' command."""

    def test_prints_document(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should print the document as JSON."""
        remote.seed("note", 2)

        result = runner.invoke(cli, ["get", "note", "note-0001"])

        assert result.exit_code == 0
        assert json.loads(result.output)["n"] == 1

    def test_not_found(self, runner: CliRunner, configured: Path, remote: FakePlatform) -> None:
        """Should exit with an error for unknown ids."""
        result = runner.invoke(cli, ["get", "note", "missing"])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestApplyCommand:
    """Tests for 'docsync apply' command."""

    def test_applies_items(
        self, runner: CliRunner, configured: Path, remote: FakePlatform, tmp_path: Path
    ) -> None:
        """Should create and delete documents from the file."""
        remote.seed("note", 1)
        items_file = tmp_path / "items.json"
        items_file.write_text(json.dumps([{"title": "a"}, {"$id": "note-0000"}]))

        result = runner.invoke(cli, ["apply", "note", str(items_file)])

        assert result.exit_code == 0
        assert "Committed: 1, deleted: 1" in result.output
        assert list(remote.documents["note"]) == ["new-1"]
        assert remote.documents["note"]["new-1"].owner_id == "alice"

    def test_rejects_non_list(
        self, runner: CliRunner, configured: Path, remote: FakePlatform, tmp_path: Path
    ) -> None:
        """Should refuse files that are not a list of objects."""
        items_file = tmp_path / "items.json"
        items_file.write_text(json.dumps({"title": "a"}))

        result = runner.invoke(cli, ["apply", "note", str(items_file)])

        assert result.exit_code == 1
        assert remote.broadcasts == []

    def test_reports_failed_broadcast(
        self, runner: CliRunner, configured: Path, remote: FakePlatform, tmp_path: Path
    ) -> None:
        """Should exit with an error and count unapplied items."""
        remote.fail_broadcasts = {2}
        items_file = tmp_path / "items.json"
        items_file.write_text(json.dumps([{"title": f"t{i}"} for i in range(12)]))

        result = runner.invoke(cli, ["apply", "note", str(items_file)])

        assert result.exit_code == 1
        assert "Committed: 10, deleted: 0" in result.output
        assert "2 item(s) not applied" in result.output


class TestStatusCommand:
    """Tests for 'docsync status' command."""

    def test_shows_account_and_identity(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should resolve and print both resources."""
        result = runner.invoke(cli, ["status"], env={"DOCSYNC_MNEMONIC": "words"})

        assert result.exit_code == 0
        assert "Gateway: ok" in result.output
        assert "Account: synced" in result.output
        assert "Identities: identity-1, identity-2" in result.output
        assert "Identity: synced" in result.output
        assert "Id: alice" in result.output

    def test_without_mnemonic(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should leave the account unresolved without a mnemonic."""
        result = runner.invoke(cli, ["status"], env={"DOCSYNC_MNEMONIC": ""})

        assert result.exit_code == 0
        assert "Account: uninitialized" in result.output
        assert remote.account_calls == 0


class TestRegisterCommand:
    """Tests for 'docsync register' command."""

    def test_registers_and_saves_identity(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should register an identity and store it in the config."""
        result = runner.invoke(cli, ["register"], env={"DOCSYNC_MNEMONIC": "words"})

        assert result.exit_code == 0
        assert "Registered identity registered-1" in result.output
        config = json.loads((configured / "config.json").read_text())
        assert config["identity_id"] == "registered-1"

    def test_no_use_keeps_identity(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should leave the configured identity alone with --no-use."""
        result = runner.invoke(cli, ["register", "--no-use"], env={"DOCSYNC_MNEMONIC": "words"})

        assert result.exit_code == 0
        config = json.loads((configured / "config.json").read_text())
        assert config["identity_id"] == "alice"

    def test_requires_mnemonic(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should fail without a wallet mnemonic."""
        result = runner.invoke(cli, ["register"], env={"DOCSYNC_MNEMONIC": ""})

        assert result.exit_code == 1
        assert "DOCSYNC_MNEMONIC" in result.output
        assert remote.registered == []

    def test_registration_failure(
        self, runner: CliRunner, configured: Path, remote: FakePlatform
    ) -> None:
        """Should exit with an error when the platform refuses."""
        remote.fail_register = True

        result = runner.invoke(cli, ["register"], env={"DOCSYNC_MNEMONIC": "words"})

        assert result.exit_code == 1
        assert "registration failed" in result.output
        config = json.loads((configured / "config.json").read_text())
        assert config["identity_id"] == "alice"
