"""Record model for one feedback submission and its conversation.

This module provides:
- Reply: One message in a submission's conversation
- Record: Immutable snapshot of a submission plus its reply log
- UNSET: Sentinel for "field not provided" in partial changes

Records are never mutated in place. Every change produces a new value
through ``Record.copy_with``, which always stamps a fresh ``updated_at``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

import pydantic

from feedbacksync.client.schemas import SubmissionPayload
from feedbacksync.core.errors import MalformedRecordError
from feedbacksync.core.types import ReplyRole, ServiceCategory, SubmissionStatus

MAX_RATING = 5

# Fields fixed at creation time.
IMMUTABLE_FIELDS: Final = frozenset({"id", "owner_id", "category", "created_at"})


class _Unset:
    """Marker type for fields left out of a partial change."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    """Format a timestamp the way the backend stores it (ISO-8601, UTC, Z)."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Reply:
    """One chat-style reply in a submission's conversation.

    Attributes:
        author_role: Submitter or reviewer.
        message: Reply text (already trimmed).
        author_id: User id of the author.
        author_name: Display name of the author when the reply was sent.
        at: When the reply was written (aware UTC).
    """

    author_role: ReplyRole
    message: str
    author_id: str
    author_name: str
    at: datetime

    def to_input(self) -> dict[str, str]:
        """Convert to the backend ``ReplyEntry`` shape."""
        return {
            "fromRole": self.author_role.value,
            "message": self.message,
            "byId": self.author_id,
            "byName": self.author_name,
            "at": format_timestamp(self.at),
        }


@dataclass(frozen=True)
class Record:
    """Immutable snapshot of one feedback submission.

    ``replies`` is kept in append order; the role-filtered views are
    sorted by time on every access.
    """

    id: str
    owner_id: str
    category: ServiceCategory
    rating: int
    status: SubmissionStatus
    created_at: datetime
    title: str | None = None
    description: str | None = None
    suggestion: str | None = None
    attachment_ref: str | None = None
    urgency: int | None = None
    internal_notes: str | None = None
    updated_at: datetime | None = None
    last_updated_by_role: ReplyRole | None = None
    last_updated_by_id: str | None = None
    last_updated_by_name: str | None = None
    responded_at: datetime | None = None
    replies: tuple[Reply, ...] = field(default_factory=tuple)

    # === Derived predicates ===

    @property
    def is_full_submission(self) -> bool:
        """True for a full submission, False for a rating-only entry."""
        return bool((self.title or "").strip()) and bool(
            (self.description or "").strip()
        )

    @property
    def is_editable_by_submitter(self) -> bool:
        """True while the submitter may still edit or delete the record."""
        return self.status is SubmissionStatus.SUBMITTED

    @property
    def reviewer_replies(self) -> list[Reply]:
        """Reviewer replies, oldest first."""
        return self._replies_by(ReplyRole.REVIEWER)

    @property
    def submitter_replies(self) -> list[Reply]:
        """Submitter replies, oldest first."""
        return self._replies_by(ReplyRole.SUBMITTER)

    def _replies_by(self, role: ReplyRole) -> list[Reply]:
        return sorted(
            (r for r in self.replies if r.author_role is role),
            key=lambda r: r.at,
        )

    # === Copies ===

    def copy_with(self, **overrides: Any) -> Record:
        """Return a copy with the given fields replaced.

        ``updated_at`` is always refreshed.

        Raises:
            ValueError: If an immutable field is overridden.
        """
        forbidden = IMMUTABLE_FIELDS.intersection(overrides)
        if forbidden:
            raise ValueError(f"Cannot change immutable fields: {sorted(forbidden)}")
        if "replies" in overrides:
            overrides["replies"] = tuple(overrides["replies"])
        overrides["updated_at"] = utc_now()
        return dataclasses.replace(self, **overrides)

    def with_reply(self, reply: Reply) -> Record:
        """Return a copy with ``reply`` appended to the conversation."""
        return self.copy_with(replies=(*self.replies, reply))

    # === Decoding ===

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Record:
        """Create from a backend ``Submission`` payload.

        Raises:
            MalformedRecordError: If a required field is missing or has
                the wrong shape.
        """
        if not isinstance(data, Mapping):
            raise MalformedRecordError(
                f"Expected a submission object, got {type(data).__name__}"
            )
        try:
            payload = SubmissionPayload.model_validate(dict(data))
        except pydantic.ValidationError as e:
            fields = sorted(
                {".".join(str(p) for p in err["loc"]) for err in e.errors()}
            )
            raise MalformedRecordError(
                f"Invalid submission payload (fields: {', '.join(fields)})"
            ) from e

        return cls(
            id=payload.id,
            owner_id=payload.owner_id,
            category=payload.service_category,
            title=payload.title,
            description=payload.description,
            suggestion=payload.suggestion,
            rating=payload.rating,
            attachment_ref=payload.attachment_key,
            status=payload.status,
            urgency=payload.urgency,
            internal_notes=payload.internal_notes,
            created_at=payload.created_at,
            updated_at=payload.updated_at,
            last_updated_by_role=payload.updated_by_role,
            last_updated_by_id=payload.updated_by_id,
            last_updated_by_name=payload.updated_by_name,
            responded_at=payload.responded_at,
            replies=tuple(
                Reply(
                    author_role=r.from_role,
                    message=r.message,
                    author_id=r.by_id,
                    author_name=r.by_name,
                    at=r.at,
                )
                for r in payload.replies or ()
            ),
        )
