# app/domain/policies.py
from __future__ import annotations

import enum

from ..models import ApplicationStatus as S
from .errors import AuthorizationError
from .types import ApplicationParties, Requester


class Action(str, enum.Enum):
    view = "view"
    edit = "edit"
    change_status = "change_status"
    list_for_user = "list_for_user"
    list_for_property = "list_for_property"
    edit_property = "edit_property"


REVIEWER_STATUSES = frozenset({S.approved, S.rejected, S.under_review, S.info_requested, S.conditional_approval})


def _is_party(requester: Requester, parties: ApplicationParties) -> bool:
    return parties.is_applicant(requester) or parties.is_owner(requester) or requester.is_admin


def authorize_status_change(requester: Requester, parties: ApplicationParties, new_status: S) -> None:
    """
    Who may move an application into `new_status`.

    Transition legality is checked separately (see transitions.require_transition);
    both have to pass.
    """
    if new_status == S.withdrawn:
        if not parties.is_applicant(requester):
            raise AuthorizationError("Only the applicant can withdraw an application")
        return

    if new_status == S.submitted:
        if not parties.is_applicant(requester):
            raise AuthorizationError("Only the applicant can submit an application")
        return

    if new_status in REVIEWER_STATUSES:
        if not (parties.is_owner(requester) or requester.is_admin):
            raise AuthorizationError(
                f"Only the property owner or an admin can set status '{new_status.value}'"
            )
        return

    if not _is_party(requester, parties):
        raise AuthorizationError("Not authorized to update this application")


def authorize(
    action: Action,
    requester: Requester,
    *,
    parties: ApplicationParties | None = None,
    target_user_id: str | None = None,
    property_owner_id: str | None = None,
    new_status: S | None = None,
) -> None:
    """Single entry point for every ownership/role check on applications."""
    if action == Action.change_status:
        if parties is None or new_status is None:
            raise ValueError("change_status requires parties and new_status")
        authorize_status_change(requester, parties, new_status)
        return

    if action in (Action.view, Action.edit):
        if parties is None:
            raise ValueError(f"{action.value} requires parties")
        if not _is_party(requester, parties):
            raise AuthorizationError("Not authorized")
        return

    if action == Action.list_for_user:
        if requester.id != target_user_id and not requester.is_admin:
            raise AuthorizationError("Not authorized")
        return

    if action in (Action.list_for_property, Action.edit_property):
        if requester.id != property_owner_id and not requester.is_admin:
            raise AuthorizationError("Not authorized")
        return

    raise ValueError(f"Unknown action: {action!r}")
