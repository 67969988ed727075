# app/domain/types.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..models import ApplicationStatus, UserRole

MAX_SCORE = 100


@dataclass(frozen=True)
class Requester:
    """Authenticated caller. Auth itself lives upstream; we only see id + role."""
    id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


@dataclass(frozen=True)
class ApplicationParties:
    """Who is allowed to act on an application."""
    applicant_id: str
    owner_id: str | None

    def is_applicant(self, requester: Requester) -> bool:
        return requester.id == self.applicant_id

    def is_owner(self, requester: Requester) -> bool:
        return self.owner_id is not None and requester.id == self.owner_id


@dataclass(frozen=True)
class ScoreBreakdown:
    income_score: int
    credit_score: int
    rental_history_score: int
    employment_score: int
    documents_score: int
    flags: tuple[str, ...] = ()
    max_score: int = MAX_SCORE

    @property
    def total_score(self) -> int:
        return (
            self.income_score
            + self.credit_score
            + self.rental_history_score
            + self.employment_score
            + self.documents_score
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "income_score": self.income_score,
            "credit_score": self.credit_score,
            "rental_history_score": self.rental_history_score,
            "employment_score": self.employment_score,
            "documents_score": self.documents_score,
            "total_score": self.total_score,
            "max_score": self.max_score,
            "flags": list(self.flags),
        }


@dataclass(frozen=True)
class RejectionInfo:
    category: str | None = None
    reason: str | None = None
    details: dict[str, Any] | None = None

    @property
    def appealable(self) -> bool:
        return bool((self.details or {}).get("appealable", False))


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: ApplicationStatus
    changed_at: datetime
    changed_by: str
    reason: str | None = None

    def as_dict(self) -> dict[str, Any]:
        # stored history rows use camelCase keys; reason only when given
        d: dict[str, Any] = {
            "status": self.status.value,
            "changedAt": self.changed_at.isoformat(),
            "changedBy": self.changed_by,
        }
        if self.reason is not None:
            d["reason"] = self.reason
        return d
