"""In-app notifications derived from record changes.

This module provides:
- Notification: A notification addressed to one user
- Decision functions that turn a state transition into a notification
- NotificationEmitter: Fire-and-forget dispatch of those notifications

The decision functions are pure. Dispatch never blocks and never raises:
by the time it runs, the action that caused it has already succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from feedbacksync.core.types import NotificationType

if TYPE_CHECKING:
    from feedbacksync.client.api import GraphQLRecordRemote
    from feedbacksync.client.model import Record

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80
ELLIPSIS = "..."


@dataclass(frozen=True)
class Notification:
    """Represents a notification to create."""

    recipient_id: str
    submission_id: str
    type: NotificationType
    title: str
    body: str

    def to_input(self) -> dict[str, Any]:
        """Convert to ``CreateNotificationInput``."""
        return {
            "recipientId": self.recipient_id,
            "submissionId": self.submission_id,
            "type": self.type.value,
            "title": self.title,
            "body": self.body,
            "isRead": False,
        }


def make_preview(text: str) -> str:
    """Shorten reply text for a notification body.

    Returns:
        The trimmed text, or its first characters followed by an ellipsis
        so that the result is exactly ``PREVIEW_LENGTH`` long.
    """
    trimmed = text.strip()
    if len(trimmed) <= PREVIEW_LENGTH:
        return trimmed
    return trimmed[: PREVIEW_LENGTH - len(ELLIPSIS)] + ELLIPSIS


def status_changed_notification(
    previous: Record,
    updated: Record,
) -> Notification | None:
    """Notify the owner when a reviewer changes the status.

    Returns:
        None if the status did not change.
    """
    if previous.status == updated.status:
        return None

    return Notification(
        recipient_id=updated.owner_id,
        submission_id=updated.id,
        type=NotificationType.STATUS_CHANGED,
        title="Feedback status updated",
        body=(
            f"Your feedback about {updated.category.label} "
            f"is now {updated.status.label}."
        ),
    )


def reviewer_reply_notification(record: Record, reply_text: str) -> Notification:
    """Notify the owner of a new reviewer reply."""
    return Notification(
        recipient_id=record.owner_id,
        submission_id=record.id,
        type=NotificationType.NEW_ADMIN_REPLY,
        title="New reply from reviewer",
        body=make_preview(reply_text),
    )


def submitter_reply_notification(
    record: Record,
    reply_text: str,
) -> Notification | None:
    """Notify the last reviewer who touched the record of a submitter reply.

    Returns:
        None if no reviewer has updated the record yet.
    """
    reviewer_id = record.last_updated_by_id
    if not reviewer_id:
        return None

    subject = record.title if record.title else record.category.label
    return Notification(
        recipient_id=reviewer_id,
        submission_id=record.id,
        type=NotificationType.NEW_USER_REPLY,
        title="New reply from submitter",
        body=f'User replied on "{subject}": {make_preview(reply_text)}',
    )


class NotificationSender(Protocol):
    """Delivers a notification to the backend."""

    async def send(self, notification: Notification) -> None:
        """Deliver one notification."""
        ...


class RemoteNotificationSender:
    """Creates notifications through the GraphQL backend."""

    def __init__(self, remote: GraphQLRecordRemote) -> None:
        self._remote = remote

    async def send(self, notification: Notification) -> None:
        await self._remote.create_notification(notification)


class NotificationEmitter:
    """Fire-and-forget notification dispatch.

    Each ``on_*`` method decides whether a notification is due and, if so,
    schedules its delivery on the running event loop and returns
    immediately. Delivery failures are logged and dropped.

    Usage:
        emitter = NotificationEmitter(RemoteNotificationSender(remote))
        emitter.on_status_change(previous, updated)
        ...
        await emitter.drain()  # on shutdown
    """

    def __init__(self, sender: NotificationSender) -> None:
        """Initialize the emitter.

        Args:
            sender: Delivery backend.
        """
        self._sender = sender
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._tasks)

    def on_status_change(self, previous: Record, updated: Record) -> None:
        """Emit a status-changed notification if the status changed."""
        self._dispatch(status_changed_notification(previous, updated))

    def on_reviewer_reply(self, record: Record, reply_text: str) -> None:
        """Emit a new-reviewer-reply notification to the owner."""
        self._dispatch(reviewer_reply_notification(record, reply_text))

    def on_submitter_reply(self, record: Record, reply_text: str) -> None:
        """Emit a new-submitter-reply notification to the last reviewer."""
        self._dispatch(submitter_reply_notification(record, reply_text))

    async def drain(self) -> None:
        """Wait for all in-flight deliveries to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _dispatch(self, notification: Notification | None) -> None:
        """Schedule delivery without waiting for it."""
        if notification is None:
            return

        try:
            task = asyncio.get_running_loop().create_task(
                self._deliver(notification),
                name=f"notify-{notification.type.value}",
            )
        except RuntimeError as e:
            logger.warning("Cannot send %s notification: %s", notification.type.value, e)
            return

        self._tasks.add(task)
        task.add_done_callback(self._on_send_complete)

    async def _deliver(self, notification: Notification) -> None:
        """Send one notification, logging instead of raising."""
        try:
            await self._sender.send(notification)
            logger.debug(
                "Sent %s notification to %s",
                notification.type.value,
                notification.recipient_id,
            )
        except Exception as e:
            logger.warning(
                "Failed to send %s notification: %s", notification.type.value, e
            )
            logger.debug("Full traceback:", exc_info=True)

    def _on_send_complete(self, task: asyncio.Task[None]) -> None:
        """Callback when a delivery task finishes."""
        self._tasks.discard(task)
