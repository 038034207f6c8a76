"""Phase state machine for a synchronization core.

States:
    IDLE -> LOADING  -> IDLE
         -> MUTATING -> IDLE

All state transitions are validated. Only one load or mutation can be in
progress at a time; push snapshots do not go through this machine.
"""

from __future__ import annotations

from feedbacksync.core.types import Phase

# Valid state transitions
VALID_TRANSITIONS: dict[Phase, set[Phase]] = {
    Phase.IDLE: {Phase.LOADING, Phase.MUTATING},
    Phase.LOADING: {Phase.IDLE},
    Phase.MUTATING: {Phase.IDLE},
}


class InvalidTransitionError(Exception):
    """Raised when attempting invalid state transition.

    For a core this means an action was started while another one was
    still running.
    """


class PhaseTracker:
    """Tracks the current phase of one core."""

    def __init__(self) -> None:
        self._phase = Phase.IDLE

    @property
    def phase(self) -> Phase:
        """Current phase."""
        return self._phase

    @property
    def is_idle(self) -> bool:
        return self._phase is Phase.IDLE

    def transition_to(self, new_phase: Phase) -> None:
        """Transition to a new phase with validation."""
        if new_phase not in VALID_TRANSITIONS[self._phase]:
            raise InvalidTransitionError(
                f"Cannot transition from {self._phase.name} to {new_phase.name}"
            )
        self._phase = new_phase

    def start_loading(self) -> None:
        """Mark a load as started."""
        self.transition_to(Phase.LOADING)

    def start_mutating(self) -> None:
        """Mark a mutation as started."""
        self.transition_to(Phase.MUTATING)

    def finish(self) -> None:
        """Return to IDLE. No-op if already idle."""
        if self._phase is not Phase.IDLE:
            self.transition_to(Phase.IDLE)
