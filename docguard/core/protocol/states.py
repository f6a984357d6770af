"""Request lifecycle states for document operations.

State Machine Diagram:

    ┌─────────────────┐
    │ UNAUTHENTICATED │ ← Initial state (actor not yet checked)
    └────────┬────────┘
             │ validate (actor present, arguments well-formed)
    ┌────────▼────────┐
    │    VALIDATED    │──┐ rate_limit (read paths only, stays VALIDATED)
    └────────┬────────┘◄─┘
             │ fetch
    ┌────────▼────────┐
    │     FETCHED     │
    └────────┬────────┘
             │ authorize
    ┌────────▼────────┐
    │   AUTHORIZED    │
    └────────┬────────┘
             │ commit (writes) / respond (reads)
    ┌────────▼────────┐
    │    COMMITTED    │
    └─────────────────┘

Any non-terminal state may move to REJECTED.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional, Set


class ProtocolState(str, Enum):
    """States a single request passes through."""

    UNAUTHENTICATED = "unauthenticated"
    VALIDATED = "validated"
    FETCHED = "fetched"
    AUTHORIZED = "authorized"

    # Terminal states
    COMMITTED = "committed"
    REJECTED = "rejected"


class ProtocolStep(str, Enum):
    """Steps that move a request between states."""

    VALIDATE = "validate"        # UNAUTHENTICATED → VALIDATED
    RATE_LIMIT = "rate_limit"    # VALIDATED → VALIDATED
    FETCH = "fetch"              # VALIDATED → FETCHED
    AUTHORIZE = "authorize"      # FETCHED → AUTHORIZED
    COMMIT = "commit"            # AUTHORIZED → COMMITTED (mutations)
    RESPOND = "respond"          # AUTHORIZED → COMMITTED (reads)
    REJECT = "reject"            # any non-terminal → REJECTED


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: ProtocolState
    to_state: ProtocolState
    step: ProtocolStep


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(ProtocolState.UNAUTHENTICATED, ProtocolState.VALIDATED, ProtocolStep.VALIDATE),
    TransitionRule(ProtocolState.VALIDATED, ProtocolState.VALIDATED, ProtocolStep.RATE_LIMIT),
    TransitionRule(ProtocolState.VALIDATED, ProtocolState.FETCHED, ProtocolStep.FETCH),
    TransitionRule(ProtocolState.FETCHED, ProtocolState.AUTHORIZED, ProtocolStep.AUTHORIZE),
    TransitionRule(ProtocolState.AUTHORIZED, ProtocolState.COMMITTED, ProtocolStep.COMMIT),
    TransitionRule(ProtocolState.AUTHORIZED, ProtocolState.COMMITTED, ProtocolStep.RESPOND),
]

# Terminal states (no outgoing transitions)
TERMINAL_STATES: Set[ProtocolState] = {
    ProtocolState.COMMITTED,
    ProtocolState.REJECTED,
}

for _state in ProtocolState:
    if _state not in TERMINAL_STATES:
        TRANSITION_RULES.append(TransitionRule(_state, ProtocolState.REJECTED, ProtocolStep.REJECT))

# Build lookup tables for efficient access
VALID_TRANSITIONS: Dict[ProtocolState, Set[ProtocolStep]] = {}
TRANSITION_TARGETS: Dict[tuple[ProtocolState, ProtocolStep], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.step)
    TRANSITION_TARGETS[(rule.from_state, rule.step)] = rule


def can_transition(from_state: ProtocolState, step: ProtocolStep) -> bool:
    """Check if a step is valid from the given state."""
    return step in VALID_TRANSITIONS.get(from_state, set())


def get_target_state(from_state: ProtocolState, step: ProtocolStep) -> Optional[ProtocolState]:
    """Get the target state for a step."""
    rule = TRANSITION_TARGETS.get((from_state, step))
    return rule.to_state if rule else None
