"""Pydantic schemas for backend submission payloads.

These models are the single decode step between raw GraphQL data and the
record model. They are never passed past the remote access layer:
``Record.from_payload`` converts them immediately.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from feedbacksync.core.types import ReplyRole, ServiceCategory, SubmissionStatus

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ReplyPayload(BaseModel):
    """One entry of the ``replies`` array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_role: ReplyRole = Field(alias="fromRole")
    message: StrictStr
    by_id: StrictStr = Field(alias="byId")
    by_name: StrictStr = Field(alias="byName")
    at: datetime

    @field_validator("from_role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return ReplyRole(value)
            except ValueError:
                return value
        return value

    @field_validator("at", mode="after")
    @classmethod
    def _normalize_at(cls, value: datetime) -> datetime:
        return _as_utc(value)  # type: ignore[return-value]


class SubmissionPayload(BaseModel):
    """A ``Submission`` object as selected by ``SUBMISSION_FIELDS``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: NonEmptyStr
    owner_id: NonEmptyStr = Field(alias="ownerId")
    service_category: ServiceCategory = Field(alias="serviceCategory")
    title: StrictStr | None = None
    description: StrictStr | None = None
    suggestion: StrictStr | None = None
    rating: Annotated[StrictInt, Field(ge=0, le=5)]
    attachment_key: StrictStr | None = Field(default=None, alias="attachmentKey")
    status: SubmissionStatus
    urgency: StrictInt | None = None
    internal_notes: StrictStr | None = Field(default=None, alias="internalNotes")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    updated_by_role: ReplyRole | None = Field(default=None, alias="updatedByRole")
    updated_by_id: StrictStr | None = Field(default=None, alias="updatedById")
    updated_by_name: StrictStr | None = Field(default=None, alias="updatedByName")
    responded_at: datetime | None = Field(default=None, alias="respondedAt")
    replies: list[ReplyPayload] | None = None

    @field_validator("updated_by_role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return ReplyRole(value)
            except ValueError:
                return value
        return value

    @field_validator("created_at", "updated_at", "responded_at", mode="after")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)
