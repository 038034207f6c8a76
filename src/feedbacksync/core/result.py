"""Tagged result returned by synchronization core actions.

Callers branch on the variant instead of catching exceptions:

    result = await core.send_reply("Thanks", ReplyRole.SUBMITTER)
    if isinstance(result, Err):
        show_retry(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from feedbacksync.core.errors import ErrorKind, FeedbackSyncError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful (or no-op) action carrying the resulting value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed action carrying the error that caused it."""

    error: FeedbackSyncError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        """Error tag."""
        return self.error.kind

    @property
    def message(self) -> str:
        """User-facing message."""
        return self.error.user_message


Result = Union[Ok[T], Err]
