"""Core module - Shared configuration, types, errors and results."""

from feedbacksync.core.config import BackendConfig, SubscriptionConfig
from feedbacksync.core.errors import (
    ConversationClosedError,
    EditWindowClosedError,
    ErrorKind,
    FeedbackSyncError,
    MalformedRecordError,
    NotFoundError,
    PrecompositionError,
    TransportError,
    ValidationError,
)
from feedbacksync.core.result import Err, Ok, Result
from feedbacksync.core.types import (
    NotificationType,
    Phase,
    ReplyRole,
    ServiceCategory,
    SubmissionStatus,
)

__all__ = [
    # Config
    "BackendConfig",
    "SubscriptionConfig",
    # Errors
    "ConversationClosedError",
    "EditWindowClosedError",
    "ErrorKind",
    "FeedbackSyncError",
    "MalformedRecordError",
    "NotFoundError",
    "PrecompositionError",
    "TransportError",
    "ValidationError",
    # Results
    "Err",
    "Ok",
    "Result",
    # Types
    "NotificationType",
    "Phase",
    "ReplyRole",
    "ServiceCategory",
    "SubmissionStatus",
]
