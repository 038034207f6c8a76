"""Synchronization core for one feedback record.

This module provides:
- CoreState: Immutable snapshot of what observers can see
- RecordSyncCore: Loads one record, keeps it current from the push
  channel, and runs reviewer/submitter actions against the remote

Architecture:
    RecordRemote ──fetch/update/delete──► RecordSyncCore ──► listeners
    UpdateStream ──snapshots──────────────►      │
                                                 └──► NotificationEmitter

Every action returns a ``Result``. Remote failures are stored as
``last_error`` and returned as ``Err``; they never escape as exceptions.
Push snapshots replace the record wholesale whatever the current phase,
so the last write to complete wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from feedbacksync.client.api import RecordChange
from feedbacksync.client.model import MAX_RATING, UNSET, Record, Reply, utc_now
from feedbacksync.client.phases import PhaseTracker
from feedbacksync.core.errors import (
    ConversationClosedError,
    EditWindowClosedError,
    FeedbackSyncError,
    NotFoundError,
    PrecompositionError,
    ValidationError,
)
from feedbacksync.core.result import Err, Ok, Result
from feedbacksync.core.types import Phase, ReplyRole, SubmissionStatus

if TYPE_CHECKING:
    from feedbacksync.client.api import RecordRemote, UpdateStream
    from feedbacksync.client.notifications import NotificationEmitter
    from feedbacksync.client.session import ActorProfile, ProfileProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[], None]

MIN_URGENCY = 1
MAX_URGENCY = 5

# User-facing messages per action
LOAD_FAILED = "Could not load feedback details."
SAVE_META_FAILED = "Could not save reviewer changes."
SAVE_EDITS_FAILED = "Could not save changes."
DELETE_FAILED = "Could not delete feedback."
SEND_REPLY_FAILED = "Could not send reply."


@dataclass(frozen=True)
class CoreState:
    """What a presentation layer renders."""

    record: Record | None
    phase: Phase
    last_error: FeedbackSyncError | None

    @property
    def is_busy(self) -> bool:
        return self.phase is not Phase.IDLE


def _clean_text(value: str | None) -> str | None:
    """Trim free text; empty-after-trim becomes None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class RecordSyncCore:
    """Keeps one record in sync with the backend.

    Usage:
        core = RecordSyncCore(record_id, remote, profiles, emitter)
        core.add_listener(render)
        await core.init()

        result = await core.send_reply("Thanks!", ReplyRole.SUBMITTER)
        if isinstance(result, Err):
            show(result.message)

        core.dispose()
    """

    def __init__(
        self,
        record_id: str,
        remote: RecordRemote,
        profiles: ProfileProvider,
        emitter: NotificationEmitter | None = None,
    ) -> None:
        """Initialize the core.

        Args:
            record_id: Id of the record to follow.
            remote: Remote access layer.
            profiles: Source of the acting user's profile.
            emitter: Notification dispatch, or None to send none.
        """
        self._record_id = record_id
        self._remote = remote
        self._profiles = profiles
        self._emitter = emitter

        self._record: Record | None = None
        self._last_error: FeedbackSyncError | None = None
        self._phases = PhaseTracker()
        self._listeners: list[Listener] = []

        # Push channel
        self._stream: UpdateStream | None = None
        self._stream_task: asyncio.Task[None] | None = None

        self._pending_send_key: tuple[ReplyRole, str, datetime | None] | None = None
        # (record before, record shown) for a reply whose send failed
        self._unsent_reply: tuple[Record, Record] | None = None
        self._deleted = False
        self._disposed = False

    # === State ===

    @property
    def record_id(self) -> str:
        return self._record_id

    @property
    def record(self) -> Record | None:
        """Current record, or None if absent."""
        return self._record

    @property
    def phase(self) -> Phase:
        return self._phases.phase

    @property
    def last_error(self) -> FeedbackSyncError | None:
        """Error of the most recent failed action, cleared when one starts."""
        return self._last_error

    @property
    def is_busy(self) -> bool:
        return not self._phases.is_idle

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def state(self) -> CoreState:
        """Snapshot of the observable state."""
        return CoreState(
            record=self._record,
            phase=self._phases.phase,
            last_error=self._last_error,
        )

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_listeners(self) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.warning("State listener failed: %s", e)
                logger.debug("Full traceback:", exc_info=True)

    def _set_record(self, record: Record | None) -> None:
        self._record = record

    # === Loading and push ===

    async def load(self) -> Result[Record | None]:
        """Fetch the record and replace the current state with it."""
        if self._disposed:
            return Ok(None)

        self._phases.start_loading()
        self._last_error = None
        self._notify_listeners()
        try:
            record = await self._remote.fetch_by_id(self._record_id)
        except FeedbackSyncError as e:
            if not self._disposed:
                self._record = None
            return self._fail("load", e, LOAD_FAILED)
        else:
            if not self._disposed:
                self._record = record
                self._deleted = False
            logger.info("Loaded feedback %s", self._record_id)
            return Ok(record)
        finally:
            self._phases.finish()
            self._notify_listeners()

    async def init(self) -> Result[Record | None]:
        """Load the record, then follow its push channel.

        Calling ``init`` again replaces the previous subscription.
        """
        result = await self.load()
        self._open_stream()
        return result

    def _open_stream(self) -> None:
        if self._disposed:
            return
        self._close_stream()

        self._stream = self._remote.subscribe_to_updates(self._record_id)
        self._stream_task = asyncio.create_task(
            self._consume_stream(self._stream),
            name=f"RecordSyncCore-{self._record_id}",
        )

    def _close_stream(self) -> None:
        if self._stream is not None:
            self._stream.cancel()
            self._stream = None
        if self._stream_task is not None:
            self._stream_task.cancel()
            self._stream_task = None

    async def _consume_stream(self, stream: UpdateStream) -> None:
        """Apply snapshots until the stream ends or the core is disposed."""
        iterator = stream.__aiter__()
        while not self._disposed:
            try:
                record = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                logger.warning("Update stream for %s failed: %s", self._record_id, e)
                logger.debug("Full traceback:", exc_info=True)
                await asyncio.sleep(0)
                continue
            self._apply_snapshot(record)

        logger.debug("Update stream for %s ended", self._record_id)

    def _apply_snapshot(self, record: Record) -> None:
        if self._disposed:
            return
        if record.id != self._record_id:
            logger.debug("Ignoring snapshot for %s", record.id)
            return
        if self._deleted:
            logger.info("Ignoring snapshot for deleted feedback %s", self._record_id)
            return

        self._record = record
        logger.debug("Applied snapshot for %s", self._record_id)
        self._notify_listeners()

    # === Actions ===

    async def reviewer_save_meta(
        self,
        status: SubmissionStatus | str,
        urgency: int | None = None,
        internal_notes: str | None = None,
    ) -> Result[Record | None]:
        """Save reviewer-owned fields (status, urgency, internal notes).

        Urgency and notes are only sent when given; empty notes are sent as
        an explicit null.
        """
        current = self._current()
        if current is None:
            return Ok(None)

        profile = self._profiles.current()
        if profile is None:
            return self._reject(PrecompositionError("No actor profile for reviewer update"))
        if urgency is not None and not MIN_URGENCY <= urgency <= MAX_URGENCY:
            return self._reject(ValidationError(
                f"Urgency {urgency} out of range",
                user_message=f"Urgency must be between {MIN_URGENCY} and {MAX_URGENCY}.",
                field="urgency",
            ))

        changes: dict[str, Any] = {
            "status": SubmissionStatus(status),
            **self._stamp(profile),
        }
        if urgency is not None:
            changes["urgency"] = urgency
        if internal_notes is not None:
            changes["internal_notes"] = _clean_text(internal_notes)
        change = RecordChange(**changes)

        result = await self._mutate(
            "save reviewer changes",
            lambda: self._remote.update(self._record_id, change),
            self._set_record,
            SAVE_META_FAILED,
        )
        if isinstance(result, Ok) and self._emitter is not None:
            self._emitter.on_status_change(current, result.value)
        return result

    async def submitter_save_edits(
        self,
        *,
        title: Any = UNSET,
        description: Any = UNSET,
        suggestion: Any = UNSET,
        rating: Any = UNSET,
        attachment_ref: Any = UNSET,
    ) -> Result[Record | None]:
        """Save the submitter's own fields. Unspecified fields are left alone."""
        current = self._current()
        if current is None:
            return Ok(None)

        if self._profiles.current() is None:
            return self._reject(PrecompositionError("No actor profile for edit"))
        if not current.is_editable_by_submitter:
            return self._reject(EditWindowClosedError(
                f"Feedback {self._record_id} is {current.status.value}"
            ))
        if rating is not UNSET and (
            isinstance(rating, bool)
            or not isinstance(rating, int)
            or not 0 <= rating <= MAX_RATING
        ):
            return self._reject(ValidationError(
                f"Rating {rating!r} out of range",
                user_message=f"Rating must be between 0 and {MAX_RATING}.",
                field="rating",
            ))

        changes: dict[str, Any] = {}
        for name, value in (
            ("title", title),
            ("description", description),
            ("suggestion", suggestion),
            ("attachment_ref", attachment_ref),
        ):
            if value is not UNSET:
                changes[name] = _clean_text(value)
        if rating is not UNSET:
            changes["rating"] = rating

        if not changes:
            return Ok(current)

        change = RecordChange(**changes)
        return await self._mutate(
            "save edits",
            lambda: self._remote.update(self._record_id, change),
            self._set_record,
            SAVE_EDITS_FAILED,
        )

    async def delete(self, role: ReplyRole | str) -> Result[None]:
        """Delete the record.

        Submitters may only delete while the record is editable; reviewers
        may delete at any status.
        """
        current = self._current()
        if current is None:
            return Ok(None)

        role = ReplyRole(role)
        if self._profiles.current() is None:
            return self._reject(PrecompositionError("No actor profile for delete"))
        if role is ReplyRole.SUBMITTER and not current.is_editable_by_submitter:
            return self._reject(EditWindowClosedError(
                f"Feedback {self._record_id} is {current.status.value}"
            ))

        return await self._mutate(
            "delete",
            lambda: self._remote.delete(self._record_id),
            self._on_deleted,
            DELETE_FAILED,
        )

    def _on_deleted(self, _: None) -> None:
        self._record = None
        self._deleted = True
        logger.info("Deleted feedback %s", self._record_id)

    async def send_reply(
        self,
        message: str,
        role: ReplyRole | str,
    ) -> Result[Record | None]:
        """Append a reply to the conversation.

        The reply is shown immediately and replaced by the stored record
        once the backend confirms it. A reply identical to one still in
        flight is dropped. Retrying a reply whose send failed replaces the
        unsent copy instead of adding a second one.
        """
        current = self._current()
        if current is None:
            return Ok(None)

        role = ReplyRole(role)
        trimmed = message.strip()
        if not trimmed:
            return Ok(current)

        profile = self._profiles.current()
        if profile is None:
            return self._reject(PrecompositionError("No actor profile for reply"))

        send_key = (role, trimmed, current.updated_at)
        if self._pending_send_key == send_key or not self._phases.is_idle:
            logger.debug("Dropped reply for %s while another is in flight", self._record_id)
            return Ok(current)

        if role is ReplyRole.SUBMITTER and not current.reviewer_replies:
            return self._reject(ConversationClosedError(
                f"Feedback {self._record_id} has no reviewer reply"
            ))

        base = current
        if self._unsent_reply is not None:
            before, shown = self._unsent_reply
            last = shown.replies[-1]
            if current is shown and last.author_role is role and last.message == trimmed:
                base = before

        now = utc_now()
        optimistic = base.with_reply(Reply(
            author_role=role,
            message=trimmed,
            author_id=profile.id,
            author_name=profile.display_name,
            at=now,
        ))
        changes: dict[str, Any] = {"replies": optimistic.replies}
        if role is ReplyRole.REVIEWER:
            changes.update(self._stamp(profile), responded_at=now)
        change = RecordChange(**changes)

        self._pending_send_key = send_key
        try:
            result = await self._mutate(
                "send reply",
                lambda: self._remote.update(self._record_id, change),
                self._set_record,
                SEND_REPLY_FAILED,
                optimistic=optimistic,
            )
        finally:
            self._pending_send_key = None

        failed = isinstance(result, Err) and self._record is optimistic
        self._unsent_reply = (base, optimistic) if failed else None

        if isinstance(result, Ok) and self._emitter is not None:
            if role is ReplyRole.REVIEWER:
                self._emitter.on_reviewer_reply(result.value, trimmed)
            else:
                self._emitter.on_submitter_reply(result.value, trimmed)
        return result

    def dispose(self) -> None:
        """Stop following the record. Safe to call more than once.

        Remote calls already in flight finish in the background; their
        results are discarded.
        """
        if self._disposed:
            return

        self._disposed = True
        self._close_stream()
        self._listeners.clear()
        logger.info("Stopped following feedback %s", self._record_id)

    # === Helpers ===

    def _current(self) -> Record | None:
        if self._disposed:
            return None
        return self._record

    @staticmethod
    def _stamp(profile: ActorProfile) -> dict[str, Any]:
        """Reviewer attribution fields."""
        return {
            "updated_by_role": ReplyRole.REVIEWER,
            "updated_by_id": profile.id,
            "updated_by_name": profile.display_name,
        }

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], None],
        failure_message: str,
        optimistic: Record | None = None,
    ) -> Result[T]:
        """Run one remote mutation inside the MUTATING phase.

        Raises:
            InvalidTransitionError: If another action is still running.
        """
        self._phases.start_mutating()
        self._last_error = None
        if optimistic is not None:
            self._record = optimistic
        self._notify_listeners()
        try:
            value = await call()
        except FeedbackSyncError as e:
            return self._fail(action, e, failure_message)
        else:
            if not self._disposed:
                on_success(value)
            return Ok(value)
        finally:
            self._phases.finish()
            self._notify_listeners()

    def _fail(
        self,
        action: str,
        error: FeedbackSyncError,
        failure_message: str,
    ) -> Err:
        """Record a remote failure. Caller resets the phase."""
        if isinstance(error, NotFoundError):
            error = error.with_user_message(NotFoundError.default_user_message)
            if not self._disposed:
                self._record = None
        else:
            error = error.with_user_message(failure_message)

        if not self._disposed:
            self._last_error = error
        logger.warning("Could not %s for %s: %s", action, self._record_id, error.message)
        return Err(error)

    def _reject(self, error: FeedbackSyncError) -> Err:
        """Record a guard failure. No remote call has been made."""
        if not self._disposed:
            self._last_error = error
            self._notify_listeners()
        logger.info("Rejected action on %s: %s", self._record_id, error.message)
        return Err(error)
