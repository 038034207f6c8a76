"""Tests for the error taxonomy and tagged results."""

from __future__ import annotations

from feedbacksync.core.errors import (
    ConversationClosedError,
    EditWindowClosedError,
    ErrorKind,
    FeedbackSyncError,
    NotFoundError,
    PrecompositionError,
    TransportError,
    ValidationError,
)
from feedbacksync.core.result import Err, Ok


class TestErrors:
    """Tests for FeedbackSyncError subclasses."""

    def test_kinds(self) -> None:
        """Each error class should carry its own kind."""
        assert NotFoundError("x").kind is ErrorKind.NOT_FOUND
        assert ValidationError("x").kind is ErrorKind.VALIDATION
        assert TransportError("x").kind is ErrorKind.TRANSPORT
        assert PrecompositionError("x").kind is ErrorKind.PRECOMPOSITION
        assert EditWindowClosedError("x").kind is ErrorKind.EDIT_WINDOW_CLOSED
        assert ConversationClosedError("x").kind is ErrorKind.CONVERSATION_CLOSED

    def test_default_user_message(self) -> None:
        """Should fall back to the class default user message."""
        assert NotFoundError("gone").user_message == "This feedback is no longer available."
        assert PrecompositionError("no profile").user_message == "Profile not loaded yet."

    def test_custom_user_message(self) -> None:
        """Should keep an explicit user message."""
        error = TransportError("boom", user_message="Try again later.", status_code=503)
        assert error.user_message == "Try again later."
        assert error.status_code == 503
        assert str(error) == "boom"

    def test_with_user_message_copies(self) -> None:
        """Should return a copy and leave the original message untouched."""
        error = TransportError("boom", status_code=503)

        copied = error.with_user_message("Could not send reply.")

        assert copied is not error
        assert isinstance(copied, TransportError)
        assert copied.user_message == "Could not send reply."
        assert copied.status_code == 503
        assert copied.message == "boom"
        assert error.user_message == "Could not reach the server."

    def test_validation_field(self) -> None:
        """Should record the offending field."""
        error = ValidationError("bad rating", field="rating")
        assert error.field == "rating"

    def test_hierarchy(self) -> None:
        """All errors should derive from FeedbackSyncError."""
        assert issubclass(NotFoundError, FeedbackSyncError)
        assert issubclass(ConversationClosedError, FeedbackSyncError)


class TestResult:
    """Tests for Ok and Err."""

    def test_ok(self) -> None:
        """Ok should carry the value."""
        result = Ok(42)
        assert result.is_ok
        assert result.value == 42

    def test_err(self) -> None:
        """Err should expose the error kind and user message."""
        result = Err(NotFoundError("gone"))
        assert not result.is_ok
        assert result.kind is ErrorKind.NOT_FOUND
        assert result.message == "This feedback is no longer available."
