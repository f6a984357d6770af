"""Per-request state machine and transaction deadline."""

import time
from typing import Any, Callable, Dict, List, Optional

from docguard.core.errors import ErrorKind, TransactionTimeout
from docguard.core.protocol.states import (
    ProtocolState,
    ProtocolStep,
    TERMINAL_STATES,
    can_transition,
    get_target_state,
)


class TransitionError(Exception):
    """Raised when a request step is attempted out of order."""

    def __init__(self, message: str, from_state: ProtocolState, step: ProtocolStep):
        super().__init__(message)
        self.from_state = from_state
        self.step = step


class RequestStateMachine:
    """
    Tracks one operation through the request lifecycle.

    Guarantees the steps of a request run in the fixed order
    validate → (rate_limit) → fetch → authorize → commit/respond, and keeps
    a step history for diagnostics.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self._state = ProtocolState.UNAUTHENTICATED
        self._history: List[Dict[str, Any]] = []
        self.rejection: Optional[ErrorKind] = None

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def advance(self, step: ProtocolStep) -> ProtocolState:
        """
        Perform a step.

        Raises:
            TransitionError: If the step is not valid from the current state
        """
        if step == ProtocolStep.REJECT or not can_transition(self._state, step):
            raise TransitionError(
                f"Cannot perform {step.value} from state {self._state.value} in {self.operation}",
                self._state,
                step,
            )
        return self._move(step)

    def reject(self, kind: ErrorKind) -> ProtocolState:
        """Move to REJECTED. Rejecting a terminal request is a no-op."""
        if self.is_terminal:
            return self._state
        self.rejection = kind
        return self._move(ProtocolStep.REJECT)

    def get_history(self) -> List[Dict[str, Any]]:
        return self._history.copy()

    def _move(self, step: ProtocolStep) -> ProtocolState:
        to_state = get_target_state(self._state, step)
        self._history.append({
            "step": step.value,
            "from_state": self._state.value,
            "to_state": to_state.value,
        })
        self._state = to_state
        return self._state


class Deadline:
    """Monotonic deadline for the fetch and commit phases of a request."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self) -> None:
        """
        Raises:
            TransactionTimeout: If the deadline has passed
        """
        if self.expired:
            raise TransactionTimeout(f"Deadline of {self.seconds}s exceeded")
