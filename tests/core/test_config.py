"""Tests for core configuration classes."""

from __future__ import annotations

from feedbacksync.core.config import BackendConfig, SubscriptionConfig


class TestBackendConfig:
    """Tests for BackendConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with required fields."""
        config = BackendConfig(graphql_url="https://api.example.com/graphql", token="tok")
        assert config.graphql_url == "https://api.example.com/graphql"
        assert config.token == "tok"
        assert config.timeout == 30.0
        assert config.verify_ssl is True
        assert config.realtime_url is None

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from the GraphQL URL."""
        config = BackendConfig(graphql_url="https://api.example.com/graphql/", token="tok")
        assert config.graphql_url == "https://api.example.com/graphql"

    def test_ws_url_https(self) -> None:
        """Should convert HTTPS to WSS for the push channel."""
        config = BackendConfig(graphql_url="https://api.example.com/graphql", token="tok")
        assert config.ws_url == "wss://api.example.com/graphql"

    def test_ws_url_http(self) -> None:
        """Should convert HTTP to WS for the push channel."""
        config = BackendConfig(graphql_url="http://localhost:4000/graphql", token="tok")
        assert config.ws_url == "ws://localhost:4000/graphql"

    def test_ws_url_explicit_realtime_url(self) -> None:
        """Should prefer an explicit realtime URL."""
        config = BackendConfig(
            graphql_url="https://api.example.com/graphql",
            token="tok",
            realtime_url="wss://realtime.example.com/graphql/",
        )
        assert config.ws_url == "wss://realtime.example.com/graphql"

    def test_is_secure(self) -> None:
        """Should report HTTPS endpoints as secure."""
        assert BackendConfig(graphql_url="https://x/graphql", token="t").is_secure
        assert not BackendConfig(graphql_url="http://x/graphql", token="t").is_secure


class TestSubscriptionConfig:
    """Tests for SubscriptionConfig."""

    def test_default_values(self) -> None:
        """Should have sensible defaults."""
        config = SubscriptionConfig()
        assert config.reconnect_min_delay == 1.0
        assert config.reconnect_max_delay == 60.0
        assert config.reconnect_backoff == 2.0
        assert config.ack_timeout == 10.0
