"""Remote access layer for the feedback backend.

This module provides:
- GraphQLClient: async GraphQL-over-HTTP client
- RecordChange: Partial change sent by ``update``
- RecordRemote: Protocol the synchronization core depends on
- GraphQLRecordRemote: fetch/update/delete/subscribe against the backend

Raw payloads never leave this layer: every response is decoded into a
``Record`` (or rejected with ``MalformedRecordError``) before it is
returned.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from feedbacksync.client import graphql
from feedbacksync.client.model import UNSET, Record, Reply, format_timestamp, utc_now
from feedbacksync.client.subscriptions import RecordSubscription
from feedbacksync.core.errors import NotFoundError, TransportError, ValidationError

if TYPE_CHECKING:
    from feedbacksync.client.notifications import Notification
    from feedbacksync.core.config import BackendConfig, SubscriptionConfig

logger = logging.getLogger(__name__)

# AppSync reports a delete of a missing item as a failed condition.
_MISSING_ITEM_ERROR_TYPES = frozenset({"DynamoDB:ConditionalCheckFailedException"})


class GraphQLResponseError(TransportError):
    """The backend answered with a GraphQL ``errors`` array.

    Operations translate this into the error that fits them.
    """

    def __init__(
        self,
        errors: Sequence[Mapping[str, Any]],
        status_code: int | None = None,
    ) -> None:
        messages = "; ".join(str(e.get("message", "unknown error")) for e in errors)
        super().__init__(f"GraphQL errors: {messages}", status_code=status_code)
        self.errors = list(errors)

    @property
    def error_types(self) -> set[str]:
        """``errorType`` values reported by the backend."""
        return {str(e["errorType"]) for e in self.errors if e.get("errorType")}


class GraphQLClient:
    """Async HTTP client for the backend GraphQL endpoint."""

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the GraphQL client.

        Args:
            config: Backend configuration with URL, token, and settings.
        """
        self._config = config
        self._client = httpx.AsyncClient(
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"Authorization": f"Bearer {config.token}"},
        )

    @property
    def config(self) -> BackendConfig:
        """Backend configuration."""
        return self._config

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GraphQLClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.aclose()

    async def execute(
        self,
        document: str,
        variables: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a query or mutation.

        Args:
            document: GraphQL document.
            variables: Operation variables.

        Returns:
            The ``data`` object of the response.

        Raises:
            GraphQLResponseError: If the response carries GraphQL errors.
            TransportError: For network, HTTP or decoding failures.
        """
        try:
            response = await self._client.post(
                self._config.graphql_url,
                json={"query": document, "variables": dict(variables or {})},
            )
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise TransportError("Invalid or expired token", status_code=status)
        if status >= 500:
            raise TransportError(f"Server error ({status})", status_code=status)

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response ({status})", status_code=status
            ) from e

        if not isinstance(body, dict):
            raise TransportError("Unexpected response shape", status_code=status)
        if body.get("errors"):
            raise GraphQLResponseError(body["errors"], status_code=status)
        if status >= 400:
            raise TransportError(f"Request rejected ({status})", status_code=status)

        data = body.get("data")
        if not isinstance(data, dict):
            raise TransportError("Response has no data", status_code=status)
        return data


@dataclass(frozen=True)
class RecordChange:
    """Fields to change in one ``update`` call.

    Fields left as ``UNSET`` are not sent. ``None`` is sent as an explicit
    null and stores the field as absent.
    """

    title: Any = UNSET
    description: Any = UNSET
    suggestion: Any = UNSET
    rating: Any = UNSET
    attachment_ref: Any = UNSET
    status: Any = UNSET
    urgency: Any = UNSET
    internal_notes: Any = UNSET
    updated_by_role: Any = UNSET
    updated_by_id: Any = UNSET
    updated_by_name: Any = UNSET
    responded_at: Any = UNSET
    replies: Any = UNSET

    def changed_fields(self) -> dict[str, Any]:
        """Set fields keyed by attribute name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def to_input(self) -> dict[str, Any]:
        """Convert to ``UpdateSubmissionInput`` fields (without id)."""
        return {
            _WIRE_NAMES[name]: _encode(value)
            for name, value in self.changed_fields().items()
        }


_WIRE_NAMES: dict[str, str] = {
    "title": "title",
    "description": "description",
    "suggestion": "suggestion",
    "rating": "rating",
    "attachment_ref": "attachmentKey",
    "status": "status",
    "urgency": "urgency",
    "internal_notes": "internalNotes",
    "updated_by_role": "updatedByRole",
    "updated_by_id": "updatedById",
    "updated_by_name": "updatedByName",
    "responded_at": "respondedAt",
    "replies": "replies",
}


def _encode(value: Any) -> Any:
    """Encode one change value for the wire."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, (list, tuple)):
        return [r.to_input() if isinstance(r, Reply) else r for r in value]
    return value


class UpdateStream(Protocol):
    """Push channel of full snapshots, ended only by ``cancel()``."""

    def __aiter__(self) -> UpdateStream: ...

    async def __anext__(self) -> Record: ...

    def cancel(self) -> None: ...


class RecordRemote(Protocol):
    """Remote operations on a single record.

    Implementations must raise only ``FeedbackSyncError`` subclasses.
    """

    async def fetch_by_id(self, record_id: str) -> Record:
        """Fetch the current record."""
        ...

    async def update(self, record_id: str, change: RecordChange) -> Record:
        """Apply ``change`` and return the authoritative record."""
        ...

    async def delete(self, record_id: str) -> None:
        """Delete the record."""
        ...

    def subscribe_to_updates(self, record_id: str) -> UpdateStream:
        """Open a push channel of full snapshots for one record."""
        ...


class GraphQLRecordRemote:
    """Record operations on the GraphQL backend.

    Usage:
        async with GraphQLClient(config) as client:
            remote = GraphQLRecordRemote(client)
            record = await remote.fetch_by_id("abc")
    """

    def __init__(
        self,
        client: GraphQLClient,
        subscription_config: SubscriptionConfig | None = None,
    ) -> None:
        """Initialize the remote.

        Args:
            client: GraphQL client for queries and mutations.
            subscription_config: Reconnection settings for push channels.
        """
        self._client = client
        self._subscription_config = subscription_config

    async def fetch_by_id(self, record_id: str) -> Record:
        """Fetch a record by id.

        Raises:
            NotFoundError: If the backend has no such record.
            TransportError: For network or backend failures.
            MalformedRecordError: If the payload is not a valid record.
        """
        data = await self._client.execute(graphql.GET_SUBMISSION, {"id": record_id})
        payload = data.get("getSubmission")
        if payload is None:
            raise NotFoundError(f"Submission {record_id} not found")
        return Record.from_payload(payload)

    async def update(self, record_id: str, change: RecordChange) -> Record:
        """Send a partial change plus ``id`` and a fresh ``updatedAt``.

        Returns:
            The post-update record as stored by the backend.

        Raises:
            ValidationError: If the backend rejects the payload.
            NotFoundError: If the record no longer exists.
            TransportError: For network or backend failures.
        """
        update_input = {
            "id": record_id,
            **change.to_input(),
            "updatedAt": format_timestamp(utc_now()),
        }
        try:
            data = await self._client.execute(
                graphql.UPDATE_SUBMISSION, {"input": update_input}
            )
        except GraphQLResponseError as e:
            logger.warning("Update of %s rejected: %s", record_id, e)
            raise ValidationError(str(e)) from e

        payload = data.get("updateSubmission")
        if payload is None:
            raise NotFoundError(f"Submission {record_id} not found")
        return Record.from_payload(payload)

    async def delete(self, record_id: str) -> None:
        """Delete a record.

        Raises:
            NotFoundError: If the record does not exist.
            TransportError: For network or backend failures.
        """
        try:
            data = await self._client.execute(
                graphql.DELETE_SUBMISSION, {"input": {"id": record_id}}
            )
        except GraphQLResponseError as e:
            if e.error_types & _MISSING_ITEM_ERROR_TYPES:
                raise NotFoundError(f"Submission {record_id} not found") from e
            raise

        if data.get("deleteSubmission") is None:
            raise NotFoundError(f"Submission {record_id} not found")

    def subscribe_to_updates(self, record_id: str) -> RecordSubscription:
        """Open a push channel for one record.

        The returned subscription is already running; the caller must
        ``cancel()`` it.
        """
        subscription = RecordSubscription(
            self._client.config,
            record_id,
            ws_config=self._subscription_config,
        )
        subscription.start()
        return subscription

    async def create_notification(self, notification: Notification) -> str | None:
        """Create an in-app notification.

        Returns:
            The new notification id, if the backend returned one.
        """
        data = await self._client.execute(
            graphql.CREATE_NOTIFICATION, {"input": notification.to_input()}
        )
        created = data.get("createNotification") or {}
        return created.get("id")
