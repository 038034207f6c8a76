"""Shared configuration classes for feedbacksync.

This module defines the connection settings used by both the GraphQL HTTP
client and the push subscription.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BackendConfig:
    """Configuration for connecting to the feedback backend.

    Used by both the HTTP client (GraphQLClient) and the WebSocket client
    (RecordSubscription) to ensure consistent connection settings.

    Attributes:
        graphql_url: GraphQL HTTP endpoint (e.g., "https://api.example.com/graphql").
        token: Session token sent as a bearer credential.
        timeout: Request/connection timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
        realtime_url: Explicit WebSocket endpoint. Derived from graphql_url
            when not set.
    """

    graphql_url: str
    token: str
    timeout: float = 30.0
    verify_ssl: bool = True
    realtime_url: str | None = None

    def __post_init__(self) -> None:
        """Normalize URLs."""
        self.graphql_url = self.graphql_url.rstrip("/")
        if self.realtime_url:
            self.realtime_url = self.realtime_url.rstrip("/")

    @property
    def ws_url(self) -> str:
        """Get WebSocket URL for the push channel.

        Returns:
            realtime_url if configured, else graphql_url with a ws(s) scheme.
        """
        if self.realtime_url:
            return self.realtime_url
        url = self.graphql_url
        if url.startswith("https://"):
            url = "wss://" + url[8:]
        elif url.startswith("http://"):
            url = "ws://" + url[7:]
        return url

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS/WSS."""
        return self.graphql_url.startswith("https://")


@dataclass
class SubscriptionConfig:
    """Reconnection settings for the push channel.

    Attributes:
        reconnect_min_delay: Minimum delay before reconnection.
        reconnect_max_delay: Maximum delay before reconnection.
        reconnect_backoff: Multiplier for backoff.
        ack_timeout: Seconds to wait for the server's connection_ack.
    """

    reconnect_min_delay: float = 1.0
    reconnect_max_delay: float = 60.0
    reconnect_backoff: float = 2.0
    ack_timeout: float = 10.0
