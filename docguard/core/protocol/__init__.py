"""Mutation protocol for DocGuard.

Drives every document operation through validate, rate limit, fetch,
authorize and commit, with the activity log written atomically.
"""

from .states import ProtocolState, ProtocolStep, VALID_TRANSITIONS, TERMINAL_STATES
from .machine import RequestStateMachine, Deadline, TransitionError
from .service import DocumentService

__all__ = [
    "ProtocolState",
    "ProtocolStep",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "RequestStateMachine",
    "Deadline",
    "TransitionError",
    "DocumentService",
]
