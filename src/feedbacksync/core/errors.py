"""Error taxonomy for feedbacksync.

Error layers:
- Remote errors (NotFoundError, ValidationError, TransportError,
  MalformedRecordError) are raised by the remote access layer.
- Guard errors (PrecompositionError, EditWindowClosedError,
  ConversationClosedError) are produced by the synchronization core
  before any remote call is made.

The synchronization core never lets either kind escape its actions: they
are stored as ``last_error`` and returned inside an ``Err`` result.
"""

from __future__ import annotations

import copy
from enum import Enum


class ErrorKind(str, Enum):
    """Tag carried by every error and by ``Err`` results."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    PRECOMPOSITION = "precomposition"
    EDIT_WINDOW_CLOSED = "edit_window_closed"
    CONVERSATION_CLOSED = "conversation_closed"
    MALFORMED_RECORD = "malformed_record"


class FeedbackSyncError(Exception):
    """Base class for all feedbacksync errors.

    Attributes:
        message: Developer-facing description.
        user_message: Short text suitable for display. The core reports a
            copy with an action-specific message when it catches a remote
            error.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT
    default_user_message = "Something went wrong."

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message

    def with_user_message(self, user_message: str) -> FeedbackSyncError:
        """Return a copy of this error carrying a different display message."""
        copied = copy.copy(self)
        copied.user_message = user_message
        return copied


# =============================================================================
# Remote errors
# =============================================================================


class NotFoundError(FeedbackSyncError):
    """The backend has no record with the requested id."""

    kind = ErrorKind.NOT_FOUND
    default_user_message = "This feedback is no longer available."


class ValidationError(FeedbackSyncError):
    """The payload was rejected by backend business rules."""

    kind = ErrorKind.VALIDATION
    default_user_message = "The change was rejected."

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message, user_message)
        self.field = field


class TransportError(FeedbackSyncError):
    """Network or backend infrastructure failure."""

    kind = ErrorKind.TRANSPORT
    default_user_message = "Could not reach the server."

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, user_message)
        self.status_code = status_code


class MalformedRecordError(FeedbackSyncError):
    """A backend payload does not have the shape of a record."""

    kind = ErrorKind.MALFORMED_RECORD
    default_user_message = "Received unreadable data from the server."


# =============================================================================
# Guard errors
# =============================================================================


class PrecompositionError(FeedbackSyncError):
    """No authenticated actor profile is available yet."""

    kind = ErrorKind.PRECOMPOSITION
    default_user_message = "Profile not loaded yet."


class EditWindowClosedError(FeedbackSyncError):
    """The submitter can no longer edit or delete this record."""

    kind = ErrorKind.EDIT_WINDOW_CLOSED
    default_user_message = "This feedback can no longer be changed."


class ConversationClosedError(FeedbackSyncError):
    """The submitter tried to reply before any reviewer reply exists."""

    kind = ErrorKind.CONVERSATION_CLOSED
    default_user_message = "You can only reply after a reviewer has replied."
