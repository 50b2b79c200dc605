"""Tests for core configuration classes."""

from __future__ import annotations

import pytest

from docsync.core.config import ServerConfig, SyncOptions


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with required fields."""
        config = ServerConfig(server_url="https://example.com", token="test-token")
        assert config.server_url == "https://example.com"
        assert config.token == "test-token"
        assert config.timeout == 30.0
        assert config.verify_ssl is True

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from server URL."""
        config = ServerConfig(server_url="https://example.com/", token="test-token")
        assert config.server_url == "https://example.com"

    def test_ws_url_https(self) -> None:
        """Should convert HTTPS to WSS for the account WebSocket URL."""
        config = ServerConfig(server_url="https://example.com", token="test-token")
        assert config.ws_url == "wss://example.com/ws/account/test-token"

    def test_ws_url_http(self) -> None:
        """Should convert HTTP to WS for the account WebSocket URL."""
        config = ServerConfig(server_url="http://localhost:8000", token="test-token")
        assert config.ws_url == "ws://localhost:8000/ws/account/test-token"

    def test_is_secure(self) -> None:
        """Should report HTTPS URLs as secure."""
        assert ServerConfig(server_url="https://example.com", token="t").is_secure is True
        assert ServerConfig(server_url="http://localhost", token="t").is_secure is False


class TestSyncOptions:
    """Tests for SyncOptions."""

    def test_defaults(self) -> None:
        """Should default to no documents on livenet."""
        options = SyncOptions()
        assert options.documents == ()
        assert options.network == "livenet"
        assert options.contract_id is None
        assert options.identity_id is None
        assert options.mnemonic is None
        assert options.all_query == {}

    def test_documents_stored_as_tuple(self) -> None:
        """Should convert the document list to a tuple."""
        options = SyncOptions(documents=["note", "tag"])  # type: ignore[arg-type]
        assert options.documents == ("note", "tag")

    def test_merged_returns_copy(self) -> None:
        """Should replace only the given fields."""
        options = SyncOptions(contract_id="contract", identity_id="alice")
        merged = options.merged(identity_id="bob", documents=["note"])

        assert merged.identity_id == "bob"
        assert merged.contract_id == "contract"
        assert merged.documents == ("note",)
        assert options.identity_id == "alice"

    def test_merged_rejects_unknown_option(self) -> None:
        """Should raise TypeError for unknown option names."""
        with pytest.raises(TypeError):
            SyncOptions().merged(wallet="x")
