# app/domain/transitions.py
from __future__ import annotations

from ..models import ApplicationStatus as S
from .errors import TransitionError

_TRANSITIONS: dict[S, frozenset[S]] = {
    S.draft: frozenset({S.submitted, S.pending_payment, S.withdrawn}),
    S.pending_payment: frozenset({S.payment_verified, S.withdrawn}),
    S.payment_verified: frozenset({S.submitted, S.withdrawn}),
    S.submitted: frozenset({S.under_review, S.withdrawn}),
    S.under_review: frozenset({S.info_requested, S.conditional_approval, S.approved, S.rejected, S.withdrawn}),
    S.info_requested: frozenset({S.under_review, S.conditional_approval, S.approved, S.rejected, S.withdrawn}),
    S.conditional_approval: frozenset({S.approved, S.rejected, S.withdrawn}),
    S.approved: frozenset(),
    S.rejected: frozenset(),
    S.withdrawn: frozenset(),
}

TERMINAL_STATUSES: frozenset[S] = frozenset(s for s, nxt in _TRANSITIONS.items() if not nxt)


def valid_next_statuses(current: S) -> frozenset[S]:
    return _TRANSITIONS.get(current, frozenset())


def is_valid_transition(current: S, new: S) -> bool:
    return new in valid_next_statuses(current)


def require_transition(current: S, new: S) -> None:
    if is_valid_transition(current, new):
        return

    allowed = sorted(s.value for s in valid_next_statuses(current))
    hint = ", ".join(allowed) if allowed else "none (terminal status)"
    raise TransitionError(
        f"Invalid status transition: {current.value} -> {new.value}. Allowed from {current.value}: {hint}"
    )
