"""Authenticated actor profile boundary.

The synchronization core never reads a global "current user". It is given
a ``ProfileProvider`` and asks it for the current profile right before
each mutating action.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from feedbacksync.core.types import ReplyRole


@dataclass(frozen=True)
class ActorProfile:
    """The signed-in user.

    Attributes:
        id: User id (the identity provider's subject).
        display_name: Name stamped on replies and reviewer updates.
        role: Submitter or reviewer.
    """

    id: str
    display_name: str
    role: ReplyRole

    @classmethod
    def from_names(
        cls,
        user_id: str,
        first_name: str,
        last_name: str,
        role: ReplyRole | str,
    ) -> ActorProfile:
        """Create a profile, joining first and last name."""
        return cls(
            id=user_id.strip(),
            display_name=f"{first_name.strip()} {last_name.strip()}".strip(),
            role=ReplyRole(role),
        )


class ProfileProvider(Protocol):
    """Source of the current actor profile."""

    def current(self) -> ActorProfile | None:
        """Return the profile, or None before the session is ready."""
        ...


class StaticProfileProvider:
    """Profile provider holding a profile set by the session layer."""

    def __init__(self, profile: ActorProfile | None = None) -> None:
        self._profile = profile

    def current(self) -> ActorProfile | None:
        return self._profile

    def set(self, profile: ActorProfile) -> None:
        """Install the profile once the session is bootstrapped."""
        self._profile = profile

    def clear(self) -> None:
        """Forget the profile (sign-out)."""
        self._profile = None
