# app/service_layer/scoring.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..adapters.clients.credit_bureau import CreditBureau
from ..domain.parsing import as_dict, as_list
from ..domain.scoring import ScoringInputs, compute_score
from ..domain.types import ScoreBreakdown
from ..models import Application
from .unit_of_work import PersistenceGateway

log = logging.getLogger(__name__)


def _credit_identifier(personal_info: Any) -> str | None:
    ssn = as_dict(personal_info).get("ssn")
    if ssn is None:
        return None
    ssn = str(ssn).strip()
    return ssn or None


async def calculate_score(application: Application, bureau: CreditBureau) -> ScoreBreakdown:
    """
    Score an application as stored. The only I/O is the credit lookup, and
    only when the applicant supplied an SSN (i.e. authorized the check).
    """
    identifier = _credit_identifier(application.personal_info)
    credit = await bureau.fetch_score(identifier) if identifier else None

    return compute_score(
        ScoringInputs(
            employment=as_dict(application.employment),
            rental_history=as_dict(application.rental_history),
            co_applicants=as_list(application.co_applicants),
            document_status=as_dict(application.document_status),
            credit_score=credit,
        )
    )


def score_fields(breakdown: ScoreBreakdown, now: datetime | None = None) -> dict[str, Any]:
    """Columns to persist for a fresh score."""
    return {
        "score": breakdown.total_score,
        "score_breakdown": breakdown.as_dict(),
        "scored_at": now or datetime.now(timezone.utc),
    }


async def rescore(repos: PersistenceGateway, application: Application, bureau: CreditBureau) -> ScoreBreakdown:
    """Recompute and persist through the gateway. Caller owns the transaction."""
    breakdown = await calculate_score(application, bureau)
    await repos.update_application(application.id, score_fields(breakdown))
    log.info(
        "scored application_id=%s total=%s flags=%s",
        application.id,
        breakdown.total_score,
        ",".join(breakdown.flags) or "-",
    )
    return breakdown
