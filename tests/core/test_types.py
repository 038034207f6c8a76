"""Tests for shared enums."""

from __future__ import annotations

import pytest

from feedbacksync.core.types import ReplyRole, ServiceCategory, SubmissionStatus


class TestReplyRole:
    """Tests for ReplyRole parsing."""

    def test_canonical_values(self) -> None:
        """Should use the backend's upper-case tags."""
        assert ReplyRole.SUBMITTER.value == "GENERAL"
        assert ReplyRole.REVIEWER.value == "ADMIN"

    @pytest.mark.parametrize("raw", ["admin", "Admin", " ADMIN "])
    def test_case_insensitive(self, raw: str) -> None:
        """Legacy lower-case tags should decode to the same member."""
        assert ReplyRole(raw) is ReplyRole.REVIEWER

    def test_unknown_role(self) -> None:
        """Unknown tags should be rejected."""
        with pytest.raises(ValueError):
            ReplyRole("moderator")


class TestLabels:
    """Tests for human-readable labels."""

    def test_status_labels(self) -> None:
        """Every status should have a label."""
        assert SubmissionStatus.UNDER_REVIEW.label == "Under Review"
        assert all(status.label for status in SubmissionStatus)

    def test_category_labels(self) -> None:
        """Every category should have a label."""
        assert ServiceCategory.LIBRARY_SERVICES.label == "Library Services"
        assert len(ServiceCategory) == 20
        assert all(category.label for category in ServiceCategory)
