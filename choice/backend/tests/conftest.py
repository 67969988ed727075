# tests/conftest.py
from __future__ import annotations

from typing import Any

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.cache import TTLCache
from app.adapters.clients.credit_bureau import MockCreditBureau
from app.adapters.clients.email import EmailMessage
from app.domain.types import Requester
from app.entrypoints.fastapi_app import create_app
from app.models import Base, Property, PropertyStatus, User, UserRole
from app.service_layer.applications import ApplicationService
from app.service_layer.notifications import NotificationDispatcher
from app.service_layer.properties import PropertyService
from app.service_layer.tasks import SideEffect, run_side_effect
from app.service_layer.unit_of_work import SqlAlchemyUnitOfWork

RENTER = Requester(id="renter-1", role=UserRole.renter)
OTHER_RENTER = Requester(id="renter-2", role=UserRole.renter)
LANDLORD = Requester(id="landlord-1", role=UserRole.landlord)
OTHER_LANDLORD = Requester(id="landlord-2", role=UserRole.landlord)
ADMIN = Requester(id="admin-1", role=UserRole.admin)

PROPERTY_ID = "prop-1"
ORPHAN_PROPERTY_ID = "prop-orphan"

ALL_DOCS_VERIFIED = {
    "id": {"uploaded": True, "verified": True},
    "proof_of_income": {"uploaded": True, "verified": True},
    "employment_verification": {"uploaded": True, "verified": True},
}


class RecordingTaskScheduler:
    """Collects jobs instead of running them; tests decide when (and whether) they run."""

    def __init__(self) -> None:
        self.jobs: list[tuple[str, SideEffect]] = []

    def schedule(self, name: str, fn: SideEffect) -> None:
        self.jobs.append((name, fn))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.jobs]

    def was_scheduled(self, prefix: str) -> bool:
        return any(name.startswith(prefix) for name in self.names)

    async def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for name, fn in jobs:
            await run_side_effect(name, fn)


class CapturingEmailSender:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = fail

    async def send_email(self, message: EmailMessage) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(message)


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
def uow_factory(async_session_maker):
    return lambda: SqlAlchemyUnitOfWork(async_session_maker)


@pytest.fixture
async def seeded(async_session_maker):
    async with async_session_maker() as session:
        session.add_all(
            [
                User(id=RENTER.id, email="riley@example.com", full_name="Riley Renter", role=UserRole.renter),
                User(id=OTHER_RENTER.id, email=None, full_name="Sam NoEmail", role=UserRole.renter),
                User(id=LANDLORD.id, email="dana@example.com", full_name="Dana Landlord", role=UserRole.landlord),
                User(id=OTHER_LANDLORD.id, email="lee@example.com", full_name="Lee Other", role=UserRole.landlord),
                User(id=ADMIN.id, email="ada@example.com", full_name="Ada Admin", role=UserRole.admin),
                Property(
                    id=PROPERTY_ID,
                    owner_id=LANDLORD.id,
                    title="Sunny 2BR",
                    address="123 Main St",
                    city="Springfield",
                    state="IL",
                    zip_code="62701",
                    price=1850.0,
                    deposit=1850.0,
                    application_fee=45.0,
                    lease_term="12 months",
                    available_date="2026-01-01",
                    property_type="apartment",
                    pets_allowed=True,
                    pet_policy="Cats only",
                    smoking_policy="No smoking",
                    max_occupants=4,
                    utilities_included=["water"],
                    status=PropertyStatus.active,
                ),
                Property(
                    id=ORPHAN_PROPERTY_ID,
                    owner_id=None,
                    title="Unclaimed listing",
                    address="1 Nowhere Rd",
                    price=900.0,
                    status=PropertyStatus.active,
                ),
            ]
        )
        await session.commit()
    return True


@pytest.fixture
def scheduler() -> RecordingTaskScheduler:
    return RecordingTaskScheduler()


@pytest.fixture
def email_sender() -> CapturingEmailSender:
    return CapturingEmailSender()


@pytest.fixture
def credit_bureau() -> MockCreditBureau:
    return MockCreditBureau(delay_s=0)


@pytest.fixture
def notifier(uow_factory, email_sender) -> NotificationDispatcher:
    return NotificationDispatcher(uow_factory, email_sender)


@pytest.fixture
def service(uow_factory, credit_bureau, scheduler, notifier) -> ApplicationService:
    return ApplicationService(
        uow_factory=uow_factory,
        credit_bureau=credit_bureau,
        scheduler=scheduler,
        notifier=notifier,
    )


@pytest.fixture
def property_service(uow_factory) -> PropertyService:
    return PropertyService(uow_factory=uow_factory, cache=TTLCache(ttl_s=60))


@pytest.fixture
def make_payload():
    def _make(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "propertyId": PROPERTY_ID,
            "personalInfo": {"firstName": "Riley", "lastName": "Renter", "ssn": "123-45-6788"},
            "employment": {"employed": True, "employer": "Acme", "monthlyIncome": "6000", "yearsEmployed": "2 years"},
            "rentalHistory": {"yearsRenting": "3 years", "hasEviction": False},
            "documentStatus": ALL_DOCS_VERIFIED,
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def app(engine, async_session_maker, credit_bureau, email_sender, scheduler, seeded):
    return create_app(
        engine=engine,
        session_factory=async_session_maker,
        credit_bureau=credit_bureau,
        email_sender=email_sender,
        scheduler=scheduler,
        configure_logs=False,
    )


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def as_headers(requester: Requester) -> dict[str, str]:
    return {"X-User-Id": requester.id, "X-User-Role": requester.role.value}
