# app/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .models import ApplicationStatus, PropertyStatus

def first_error_message(exc: ValidationError) -> str:
    """
    'field: message' for the first failing field, the way clients expect it.
    Also accepts FastAPI's RequestValidationError (same errors() shape).
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err['msg']}" if loc else str(err["msg"])


def mask_ssn(value: Any) -> Any:
    if value is None or value == "":
        return value
    s = str(value)
    if len(s) <= 4:
        return "*" * len(s)
    return "*" * (len(s) - 4) + s[-4:]


def _mask_person(info: Any) -> Any:
    if isinstance(info, dict) and info.get("ssn"):
        return {**info, "ssn": mask_ssn(info["ssn"])}
    return info


def _coerce_co_applicants(v: Any) -> Any:
    # a malformed list is treated as "no co-applicants", not a rejection
    if v is None or not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, dict)]


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationCreate(_Payload):
    model_config = ConfigDict(extra="ignore")

    property_id: str = Field(..., min_length=1)
    personal_info: dict[str, Any] = Field(default_factory=dict)
    employment: dict[str, Any] = Field(default_factory=dict)
    rental_history: dict[str, Any] = Field(default_factory=dict)
    co_applicants: list[dict[str, Any]] = Field(default_factory=list)
    document_status: dict[str, Any] = Field(default_factory=dict)
    current_address: str | None = Field(default=None, max_length=255)
    emergency_contact: dict[str, Any] | None = None
    move_in_date: str | None = Field(default=None, max_length=20)
    message: str | None = Field(default=None, max_length=5000)

    @field_validator("co_applicants", mode="before")
    @classmethod
    def _co_applicants(cls, v: Any) -> Any:
        return _coerce_co_applicants(v)


class ApplicationUpdate(_Payload):
    model_config = ConfigDict(extra="forbid")

    personal_info: dict[str, Any] | None = None
    employment: dict[str, Any] | None = None
    rental_history: dict[str, Any] | None = None
    co_applicants: list[dict[str, Any]] | None = None
    document_status: dict[str, Any] | None = None
    current_address: str | None = Field(default=None, max_length=255)
    emergency_contact: dict[str, Any] | None = None
    move_in_date: str | None = Field(default=None, max_length=20)
    message: str | None = Field(default=None, max_length=5000)

    @field_validator("co_applicants", mode="before")
    @classmethod
    def _co_applicants(cls, v: Any) -> Any:
        return _coerce_co_applicants(v)

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent. An explicit null on a JSON map clears it."""
        data = self.model_dump(exclude_unset=True)
        for key in ("personal_info", "employment", "rental_history", "document_status"):
            if key in data and data[key] is None:
                data[key] = {}
        return data


class StatusUpdate(_Payload):
    model_config = ConfigDict(extra="ignore")

    status: str = Field(..., min_length=1)
    reason: str | None = None
    rejection_category: str | None = None
    rejection_reason: str | None = None
    rejection_details: dict[str, Any] | None = None
    expected_status: str | None = None


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    property_id: str
    conversation_id: str | None = None

    status: ApplicationStatus
    previous_status: ApplicationStatus | None = None
    status_history: list[dict[str, Any]] = Field(default_factory=list)

    personal_info: dict[str, Any] = Field(default_factory=dict)
    employment: dict[str, Any] = Field(default_factory=dict)
    rental_history: dict[str, Any] = Field(default_factory=dict)
    co_applicants: list[dict[str, Any]] = Field(default_factory=list)
    document_status: dict[str, Any] = Field(default_factory=dict)
    current_address: str | None = None
    emergency_contact: dict[str, Any] | None = None
    move_in_date: str | None = None
    message: str | None = None

    score: int | None = None
    score_breakdown: dict[str, Any] | None = None
    scored_at: datetime | None = None

    rent_snapshot: float | None = None
    deposit_snapshot: float | None = None
    application_fee_snapshot: float | None = None
    lease_term_snapshot: str | None = None
    available_date_snapshot: str | None = None
    property_title_snapshot: str | None = None
    property_address_snapshot: str | None = None
    property_type_snapshot: str | None = None
    policies_snapshot: dict[str, Any] | None = None
    property_version_snapshot: int | None = None
    property_status_snapshot: str | None = None

    rejection_category: str | None = None
    rejection_reason: str | None = None
    rejection_details: dict[str, Any] | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("personal_info", mode="before")
    @classmethod
    def _mask_personal_info(cls, v: Any) -> Any:
        return _mask_person(v) if v is not None else {}

    @field_validator("co_applicants", mode="before")
    @classmethod
    def _mask_co_applicants(cls, v: Any) -> Any:
        return [_mask_person(x) for x in _coerce_co_applicants(v)]

    @field_validator("employment", "rental_history", "document_status", "status_history", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any, info) -> Any:
        if v is None:
            return [] if info.field_name == "status_history" else {}
        return v


class PropertyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str | None = None
    title: str
    address: str
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    price: float | None = None
    deposit: float | None = None
    application_fee: float | None = None
    lease_term: str | None = None
    available_date: str | None = None
    property_type: str | None = None

    pets_allowed: bool | None = None
    pet_policy: str | None = None
    smoking_policy: str | None = None
    max_occupants: int | None = None
    utilities_included: list[str] | None = None
    hoa_rules: str | None = None

    status: PropertyStatus
    version: int

    created_at: datetime
    updated_at: datetime


class PropertyUpdate(_Payload):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=255)
    city: str | None = None
    state: str | None = Field(default=None, max_length=2)
    zip_code: str | None = Field(default=None, max_length=10)

    price: float | None = Field(default=None, ge=0)
    deposit: float | None = Field(default=None, ge=0)
    application_fee: float | None = Field(default=None, ge=0)
    lease_term: str | None = None
    available_date: str | None = None
    property_type: str | None = None

    pets_allowed: bool | None = None
    pet_policy: str | None = None
    smoking_policy: str | None = None
    max_occupants: int | None = Field(default=None, ge=1)
    utilities_included: list[str] | None = None
    hoa_rules: str | None = None

    status: PropertyStatus | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
