"""Checkout workflow state machine."""

from __future__ import annotations

from blinkit_checkout.exceptions import InvalidSessionStateError
from blinkit_checkout.models.session import WorkflowState


TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    WorkflowState.ANONYMOUS: frozenset({WorkflowState.OTP_REQUESTED}),
    WorkflowState.OTP_REQUESTED: frozenset({WorkflowState.VERIFIED}),
    WorkflowState.VERIFIED: frozenset({WorkflowState.CART_POPULATED}),
    WorkflowState.CART_POPULATED: frozenset(),
}


def can_transition(current: WorkflowState, target: WorkflowState) -> bool:
    """Check whether ``current -> target`` is in the transition table."""
    return target in TRANSITIONS[current]


def ensure_transition(current: WorkflowState, target: WorkflowState) -> None:
    """
    Validate a transition before any automation runs.

    Raises:
        InvalidSessionStateError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidSessionStateError(current.value, target.value)
