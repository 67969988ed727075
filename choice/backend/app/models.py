# app/models.py
from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------
# Core enums
# -----------------------------
class ApplicationStatus(str, enum.Enum):
    draft = "draft"
    pending_payment = "pending_payment"
    payment_verified = "payment_verified"
    submitted = "submitted"
    under_review = "under_review"
    info_requested = "info_requested"
    conditional_approval = "conditional_approval"
    approved = "approved"
    rejected = "rejected"
    withdrawn = "withdrawn"


class UserRole(str, enum.Enum):
    renter = "renter"
    landlord = "landlord"
    agent = "agent"
    admin = "admin"


class PropertyStatus(str, enum.Enum):
    active = "active"
    rented = "rented"
    inactive = "inactive"


class NotificationKind(str, enum.Enum):
    new_application = "new_application"
    scoring_complete = "scoring_complete"
    status_change = "status_change"


# -----------------------------
# Models
# -----------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.renter)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    owner_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    title: Mapped[str] = mapped_column(String(255))
    address: Mapped[str] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(80), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Monthly rent
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    deposit: Mapped[float | None] = mapped_column(Float, nullable=True)
    application_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    lease_term: Mapped[str | None] = mapped_column(String(40), nullable=True)
    available_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    property_type: Mapped[str | None] = mapped_column(String(40), nullable=True)

    pets_allowed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    pet_policy: Mapped[str | None] = mapped_column(Text, nullable=True)
    smoking_policy: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_occupants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    utilities_included: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    hoa_rules: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[PropertyStatus] = mapped_column(Enum(PropertyStatus), default=PropertyStatus.active, index=True)
    # bumped on every edit so applications can record which terms they saw
    version: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_application_user_property"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    property_id: Mapped[str] = mapped_column(String(36), index=True)
    conversation_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus), default=ApplicationStatus.submitted, index=True
    )
    previous_status: Mapped[ApplicationStatus | None] = mapped_column(Enum(ApplicationStatus), nullable=True)
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Submitted payload
    personal_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    employment: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    rental_history: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    co_applicants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    document_status: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    current_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    emergency_contact: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    move_in_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Scoring
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    scored_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Property terms frozen at apply time
    rent_snapshot: Mapped[float | None] = mapped_column(Float, nullable=True)
    deposit_snapshot: Mapped[float | None] = mapped_column(Float, nullable=True)
    application_fee_snapshot: Mapped[float | None] = mapped_column(Float, nullable=True)
    lease_term_snapshot: Mapped[str | None] = mapped_column(String(40), nullable=True)
    available_date_snapshot: Mapped[str | None] = mapped_column(String(20), nullable=True)
    property_title_snapshot: Mapped[str | None] = mapped_column(String(255), nullable=True)
    property_address_snapshot: Mapped[str | None] = mapped_column(String(255), nullable=True)
    property_type_snapshot: Mapped[str | None] = mapped_column(String(40), nullable=True)
    policies_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    property_version_snapshot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    property_status_snapshot: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Review / rejection
    rejection_category: Mapped[str | None] = mapped_column(String(80), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    property_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    application_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ConversationParticipant(Base):
    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    conversation_id: Mapped[str] = mapped_column(String(36), index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    kind: Mapped[NotificationKind] = mapped_column(Enum(NotificationKind), index=True)

    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
