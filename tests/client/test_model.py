"""Tests for the record model and payload decoding."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from feedbacksync.client.model import UNSET, Record, Reply, format_timestamp
from feedbacksync.core.errors import MalformedRecordError
from feedbacksync.core.types import ReplyRole, ServiceCategory, SubmissionStatus


class TestUnset:
    """Tests for the UNSET sentinel."""

    def test_repr_and_bool(self) -> None:
        """Should be falsy and print as UNSET."""
        assert repr(UNSET) == "UNSET"
        assert not UNSET


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_utc_with_z(self) -> None:
        """Should format as ISO-8601 UTC with a Z suffix."""
        value = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)
        assert format_timestamp(value) == "2025-03-01T09:30:00Z"


class TestRecordPredicates:
    """Tests for derived predicates."""

    def test_full_submission(self, make_record: Callable[..., Record]) -> None:
        """A record with title and description is a full submission."""
        assert make_record().is_full_submission

    def test_rating_only(self, make_record: Callable[..., Record]) -> None:
        """Blank title or description makes it rating-only."""
        assert not make_record(title=None).is_full_submission
        assert not make_record(description="   ").is_full_submission

    def test_editable_only_when_submitted(self, make_record: Callable[..., Record]) -> None:
        """Only SUBMITTED records are editable by the submitter."""
        assert make_record().is_editable_by_submitter
        for status in SubmissionStatus:
            if status is not SubmissionStatus.SUBMITTED:
                assert not make_record(status=status).is_editable_by_submitter

    def test_role_views_sorted_by_time(
        self,
        make_record: Callable[..., Record],
        make_reply: Callable[..., Reply],
    ) -> None:
        """Role views should filter by role and sort by time."""
        late = make_reply(ReplyRole.REVIEWER, "second", minute=30)
        early = make_reply(ReplyRole.REVIEWER, "first", minute=5)
        mine = make_reply(ReplyRole.SUBMITTER, "thanks", minute=10)
        record = make_record(replies=[late, mine, early])

        assert [r.message for r in record.reviewer_replies] == ["first", "second"]
        assert [r.message for r in record.submitter_replies] == ["thanks"]
        # Append order is preserved on the log itself
        assert record.replies == (late, mine, early)


class TestRecordCopies:
    """Tests for copy_with and with_reply."""

    def test_copy_with_refreshes_updated_at(self, make_record: Callable[..., Record]) -> None:
        """Every copy should carry a fresh updated_at."""
        record = make_record()
        copy = record.copy_with(status=SubmissionStatus.RESOLVED)

        assert copy.status is SubmissionStatus.RESOLVED
        assert copy.updated_at is not None
        assert record.updated_at is not None
        assert copy.updated_at > record.updated_at
        assert record.status is SubmissionStatus.SUBMITTED

    def test_copy_with_rejects_immutable_fields(
        self, make_record: Callable[..., Record]
    ) -> None:
        """Should refuse to change creation-time fields."""
        with pytest.raises(ValueError, match="owner_id"):
            make_record().copy_with(owner_id="someone-else")

    def test_with_reply_appends(
        self,
        make_record: Callable[..., Record],
        make_reply: Callable[..., Reply],
    ) -> None:
        """with_reply should append without reordering."""
        first = make_reply(minute=30)
        second = make_reply(message="earlier timestamp", minute=1)
        record = make_record(replies=[first]).with_reply(second)
        assert record.replies == (first, second)


class TestReply:
    """Tests for Reply."""

    def test_to_input(self, make_reply: Callable[..., Reply]) -> None:
        """Should emit the backend ReplyEntry shape."""
        reply = make_reply(ReplyRole.SUBMITTER, "Thanks", minute=15)
        assert reply.to_input() == {
            "fromRole": "GENERAL",
            "message": "Thanks",
            "byId": "user-1",
            "byName": "Sami Student",
            "at": "2025-03-01T10:15:00Z",
        }


class TestFromPayload:
    """Tests for Record.from_payload."""

    def test_decodes_full_payload(self, make_payload: Callable[..., dict[str, Any]]) -> None:
        """Should decode every field."""
        payload = make_payload(
            status="UNDER_REVIEW",
            urgency=3,
            internalNotes="escalated",
            updatedByRole="ADMIN",
            updatedById="admin-1",
            updatedByName="Rana Admin",
            respondedAt="2025-03-02T08:00:00Z",
            replies=[{
                "fromRole": "ADMIN",
                "message": "On it",
                "byId": "admin-1",
                "byName": "Rana Admin",
                "at": "2025-03-02T08:00:00Z",
            }],
        )

        record = Record.from_payload(payload)

        assert record.id == "sub-1"
        assert record.owner_id == "user-1"
        assert record.category is ServiceCategory.LIBRARY_SERVICES
        assert record.status is SubmissionStatus.UNDER_REVIEW
        assert record.urgency == 3
        assert record.internal_notes == "escalated"
        assert record.last_updated_by_role is ReplyRole.REVIEWER
        assert record.last_updated_by_id == "admin-1"
        assert record.responded_at == datetime(2025, 3, 2, 8, 0, tzinfo=UTC)
        assert len(record.replies) == 1
        assert record.replies[0].author_role is ReplyRole.REVIEWER

    def test_missing_replies_become_empty(
        self, make_payload: Callable[..., dict[str, Any]]
    ) -> None:
        """Absent or null replies should decode as an empty log."""
        payload = make_payload()
        del payload["replies"]
        assert Record.from_payload(payload).replies == ()
        assert Record.from_payload(make_payload(replies=None)).replies == ()

    def test_legacy_lowercase_role(self, make_payload: Callable[..., dict[str, Any]]) -> None:
        """Lower-case role tags should decode to the canonical member."""
        payload = make_payload(replies=[{
            "fromRole": "general",
            "message": "hello",
            "byId": "user-1",
            "byName": "Sami Student",
            "at": "2025-03-02T08:00:00Z",
        }])
        assert Record.from_payload(payload).replies[0].author_role is ReplyRole.SUBMITTER

    def test_offsets_converted_to_utc(self, make_payload: Callable[..., dict[str, Any]]) -> None:
        """Offsets should be honoured and naive values taken as UTC."""
        record = Record.from_payload(make_payload(
            createdAt="2025-03-01T12:00:00+03:00",
            updatedAt="2025-03-01T09:00:00",
        ))
        assert record.created_at == datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
        assert record.updated_at == datetime(2025, 3, 1, 9, 0, tzinfo=UTC)

    def test_ignores_unknown_fields(self, make_payload: Callable[..., dict[str, Any]]) -> None:
        """Extra backend fields should not break decoding."""
        assert Record.from_payload(make_payload(__typename="Submission")).id == "sub-1"

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("id", None),
            ("id", ""),
            ("ownerId", None),
            ("serviceCategory", "CAFETERIA"),
            ("rating", 6),
            ("rating", "4"),
            ("status", "ARCHIVED"),
            ("createdAt", None),
            ("createdAt", "yesterday"),
        ],
    )
    def test_malformed_required_field(
        self,
        make_payload: Callable[..., dict[str, Any]],
        field: str,
        value: Any,
    ) -> None:
        """Missing or wrongly-shaped required fields should be rejected."""
        with pytest.raises(MalformedRecordError):
            Record.from_payload(make_payload(**{field: value}))

    def test_not_a_mapping(self) -> None:
        """Non-object payloads should be rejected."""
        with pytest.raises(MalformedRecordError):
            Record.from_payload(["not", "a", "dict"])  # type: ignore[arg-type]
