# app/domain/scoring.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .parsing import as_dict, as_list, get_first, parse_duration_years, to_bool, to_float
from .types import ScoreBreakdown

REQUIRED_DOCUMENTS = ("id", "proof_of_income", "employment_verification")

# (threshold, points); first match wins
_INCOME_BRACKETS = ((5000.0, 25), (4000.0, 22), (3000.0, 18), (2000.0, 12))
_CREDIT_BRACKETS = ((750, 25), (700, 20), (650, 15), (600, 10))
_RENTAL_BRACKETS = ((3, 20), (2, 16), (1, 12))

EVICTION_PENALTY = 15


@dataclass(frozen=True)
class ScoringInputs:
    employment: dict[str, Any]
    rental_history: dict[str, Any]
    co_applicants: list[Any]
    document_status: dict[str, Any]
    # None when the applicant did not authorize a credit check
    credit_score: int | None


class _Flags:
    """Ordered, de-duplicated flag collector."""

    def __init__(self) -> None:
        self._items: list[str] = []

    def add(self, flag: str) -> None:
        if flag not in self._items:
            self._items.append(flag)

    def freeze(self) -> tuple[str, ...]:
        return tuple(self._items)


def total_monthly_income(employment: dict[str, Any], co_applicants: Any) -> float:
    income = to_float(get_first(as_dict(employment), "monthlyIncome", "monthly_income", "income")) or 0.0
    for co in as_list(co_applicants):
        if isinstance(co, dict):
            income += to_float(co.get("income")) or 0.0
    return max(0.0, income)


def income_score(monthly_income: float, flags: _Flags) -> int:
    for threshold, points in _INCOME_BRACKETS:
        if monthly_income >= threshold:
            return points
    if monthly_income > 0:
        flags.add("low_income")
        return 5
    flags.add("no_income_provided")
    return 0


def credit_score_points(credit_score: int | None, flags: _Flags) -> int:
    if credit_score is None:
        flags.add("no_credit_check_authorization")
        return 0
    for threshold, points in _CREDIT_BRACKETS:
        if credit_score >= threshold:
            return points
    flags.add("poor_credit_score")
    return 5


def rental_history_score(rental_history: dict[str, Any], flags: _Flags) -> int:
    years = parse_duration_years(get_first(rental_history, "yearsRenting", "duration"))

    points = 0
    for threshold, bracket_points in _RENTAL_BRACKETS:
        if years >= threshold:
            points = bracket_points
            break
    else:
        if years > 0:
            points = 8
        else:
            points = 5
            flags.add("limited_rental_history")

    if to_bool(rental_history.get("hasEviction")):
        points = max(0, points - EVICTION_PENALTY)
        flags.add("previous_eviction")
    return points


def is_employed(employment: dict[str, Any]) -> bool:
    # employed unless explicitly marked otherwise
    if to_bool(employment.get("employed")) is False:
        return False
    status = employment.get("status")
    return not (isinstance(status, str) and status.strip().lower() == "unemployed")


def employment_score(employment: dict[str, Any], flags: _Flags) -> int:
    if not is_employed(employment):
        flags.add("unemployed")
        return 3

    years = parse_duration_years(get_first(employment, "yearsEmployed", "duration"))
    if years >= 2:
        return 15
    if years >= 1:
        return 12
    return 8


def documents_score(document_status: dict[str, Any], flags: _Flags) -> int:
    uploaded = 0
    verified = 0
    for kind in REQUIRED_DOCUMENTS:
        entry = as_dict(document_status.get(kind))
        if entry.get("uploaded"):
            uploaded += 1
        if entry.get("verified"):
            verified += 1

    if verified >= 3:
        return 15
    if uploaded >= 3:
        return 12
    if uploaded >= 2:
        return 8
    if uploaded >= 1:
        return 5
    flags.add("missing_documents")
    return 0


def compute_score(inputs: ScoringInputs) -> ScoreBreakdown:
    """
    Deterministic five-category applicant score.

    Ceilings: income 25, credit 25, rental history 20, employment 15,
    documents 15. The credit figure is looked up before we get here, so this
    function does no I/O.
    """
    flags = _Flags()
    employment = as_dict(inputs.employment)

    return ScoreBreakdown(
        income_score=income_score(total_monthly_income(employment, inputs.co_applicants), flags),
        credit_score=credit_score_points(inputs.credit_score, flags),
        rental_history_score=rental_history_score(as_dict(inputs.rental_history), flags),
        employment_score=employment_score(employment, flags),
        documents_score=documents_score(as_dict(inputs.document_status), flags),
        flags=flags.freeze(),
    )
