"""Shared pytest fixtures.

This module provides record builders and an in-memory remote that stand
in for the GraphQL backend in synchronization core tests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from feedbacksync.client.api import RecordChange
from feedbacksync.client.model import Record, Reply
from feedbacksync.client.session import ActorProfile, StaticProfileProvider
from feedbacksync.core.errors import FeedbackSyncError, NotFoundError
from feedbacksync.core.types import ReplyRole, ServiceCategory, SubmissionStatus

CREATED_AT = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)

# RecordChange names that differ from Record names
_RECORD_FIELDS = {
    "updated_by_role": "last_updated_by_role",
    "updated_by_id": "last_updated_by_id",
    "updated_by_name": "last_updated_by_name",
}

_END = object()


def build_payload(**overrides: Any) -> dict[str, Any]:
    """Build a raw backend ``Submission`` payload."""
    payload: dict[str, Any] = {
        "id": "sub-1",
        "ownerId": "user-1",
        "serviceCategory": "LIBRARY_SERVICES",
        "title": "Wifi drops on floor 3",
        "description": "The connection drops every few minutes.",
        "suggestion": None,
        "rating": 2,
        "attachmentKey": None,
        "status": "SUBMITTED",
        "urgency": None,
        "internalNotes": None,
        "updatedByRole": None,
        "updatedById": None,
        "updatedByName": None,
        "respondedAt": None,
        "createdAt": "2025-03-01T09:00:00Z",
        "updatedAt": "2025-03-01T09:00:00Z",
        "replies": [],
    }
    payload.update(overrides)
    return payload


def build_record(**overrides: Any) -> Record:
    """Build a record with sensible defaults."""
    fields: dict[str, Any] = {
        "id": "sub-1",
        "owner_id": "user-1",
        "category": ServiceCategory.LIBRARY_SERVICES,
        "title": "Wifi drops on floor 3",
        "description": "The connection drops every few minutes.",
        "rating": 2,
        "status": SubmissionStatus.SUBMITTED,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    fields.update(overrides)
    if "replies" in fields:
        fields["replies"] = tuple(fields["replies"])
    return Record(**fields)


def build_reply(
    role: ReplyRole = ReplyRole.REVIEWER,
    message: str = "We are looking into it.",
    minute: int = 0,
) -> Reply:
    """Build a reply written ``minute`` minutes after creation."""
    return Reply(
        author_role=role,
        message=message,
        author_id="admin-1" if role is ReplyRole.REVIEWER else "user-1",
        author_name="Rana Admin" if role is ReplyRole.REVIEWER else "Sami Student",
        at=CREATED_AT.replace(minute=minute, hour=10),
    )


class FakeStream:
    """In-memory push channel."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.cancelled = False

    def push(self, item: Record | Exception) -> None:
        self._queue.put_nowait(item)

    def cancel(self) -> None:
        self.cancelled = True
        self._queue.put_nowait(_END)

    def __aiter__(self) -> FakeStream:
        return self

    async def __anext__(self) -> Record:
        item = await self._queue.get()
        if item is _END:
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item  # type: ignore[no-any-return]


class FakeRemote:
    """In-memory remote holding one stored record.

    Set ``*_error`` to make the next calls fail, or ``gate`` to hold
    ``update`` until the event is set.
    """

    def __init__(self, stored: Record | None = None) -> None:
        self.stored = stored
        self.fetch_error: FeedbackSyncError | None = None
        self.update_error: FeedbackSyncError | None = None
        self.delete_error: FeedbackSyncError | None = None
        self.gate: asyncio.Event | None = None
        self.fetches = 0
        self.updates: list[RecordChange] = []
        self.deletes = 0
        self.streams: list[FakeStream] = []

    async def fetch_by_id(self, record_id: str) -> Record:
        self.fetches += 1
        if self.fetch_error:
            raise self.fetch_error
        if self.stored is None or self.stored.id != record_id:
            raise NotFoundError(f"Submission {record_id} not found")
        return self.stored

    async def update(self, record_id: str, change: RecordChange) -> Record:
        self.updates.append(change)
        if self.gate is not None:
            await self.gate.wait()
        if self.update_error:
            raise self.update_error
        if self.stored is None:
            raise NotFoundError(f"Submission {record_id} not found")
        values = {
            _RECORD_FIELDS.get(name, name): value
            for name, value in change.changed_fields().items()
        }
        self.stored = self.stored.copy_with(**values)
        return self.stored

    async def delete(self, record_id: str) -> None:
        self.deletes += 1
        if self.delete_error:
            raise self.delete_error
        if self.stored is None:
            raise NotFoundError(f"Submission {record_id} not found")
        self.stored = None

    def subscribe_to_updates(self, record_id: str) -> FakeStream:
        stream = FakeStream()
        self.streams.append(stream)
        return stream


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for records."""
    return build_record


@pytest.fixture
def make_reply() -> Callable[..., Reply]:
    """Factory for replies."""
    return build_reply


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Factory for raw backend payloads."""
    return build_payload


@pytest.fixture
def reviewer() -> ActorProfile:
    """A signed-in reviewer."""
    return ActorProfile(id="admin-1", display_name="Rana Admin", role=ReplyRole.REVIEWER)


@pytest.fixture
def submitter() -> ActorProfile:
    """A signed-in submitter."""
    return ActorProfile(id="user-1", display_name="Sami Student", role=ReplyRole.SUBMITTER)


@pytest.fixture
def profiles(reviewer: ActorProfile) -> StaticProfileProvider:
    """Profile provider signed in as the reviewer."""
    return StaticProfileProvider(reviewer)


@pytest.fixture
def remote() -> FakeRemote:
    """In-memory remote storing the default record."""
    return FakeRemote(build_record())
