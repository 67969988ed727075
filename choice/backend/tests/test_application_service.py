# tests/test_application_service.py
import pytest
from sqlalchemy import select

from app.adapters.repos.applications import ApplicationRepository
from app.adapters.repos.conversations import ConversationRepository
from app.adapters.repos.notifications import NotificationRepository
from app.domain.errors import (
    AuthorizationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
    TransitionError,
    ValidationError,
)
from app.domain.types import RejectionInfo
from app.models import ApplicationStatus, Conversation, Notification, NotificationKind
from conftest import (
    ADMIN,
    LANDLORD,
    ORPHAN_PROPERTY_ID,
    OTHER_LANDLORD,
    OTHER_RENTER,
    PROPERTY_ID,
    RENTER,
)


async def _create(service, make_payload, requester=RENTER, **overrides):
    res = await service.create_application(make_payload(**overrides), requester.id)
    assert res.ok, res.error
    return res.data


async def _move(service, app_id, status, requester, **kw):
    res = await service.update_application_status(app_id, status, requester, **kw)
    assert res.ok, res.error
    return res.data


# -----------------------------
# Create
# -----------------------------
@pytest.mark.asyncio
async def test_create_persists_snapshot_history_and_initial_score(service, seeded, make_payload):
    app = await _create(service, make_payload)

    assert app.status == ApplicationStatus.submitted
    assert len(app.status_history) == 1
    assert app.status_history[0]["status"] == "submitted"
    assert app.status_history[0]["changedBy"] == RENTER.id
    assert set(app.status_history[0]) == {"status", "changedAt", "changedBy"}

    # full marks: 6000 income, ssn ending 8, 3y renting, 2y employed, docs verified
    assert app.score == 100
    assert app.score_breakdown["flags"] == []
    assert app.score_breakdown["max_score"] == 100
    assert app.scored_at is not None

    assert app.rent_snapshot == 1850.0
    assert app.deposit_snapshot == 1850.0
    assert app.application_fee_snapshot == 45.0
    assert app.lease_term_snapshot == "12 months"
    assert app.property_title_snapshot == "Sunny 2BR"
    assert app.property_address_snapshot == "123 Main St, Springfield, IL 62701"
    assert app.policies_snapshot["pet_policy"] == "Cats only"
    assert app.policies_snapshot["utilities_included"] == ["water"]
    assert app.property_version_snapshot == 1
    assert app.property_status_snapshot == "active"

    stored = await service.get_application_by_id(app.id)
    assert stored is not None
    assert stored.score == 100


@pytest.mark.asyncio
async def test_create_schedules_side_effects_without_running_them(service, seeded, make_payload, scheduler, email_sender):
    app = await _create(service, make_payload)

    assert scheduler.was_scheduled("conversation:")
    assert scheduler.was_scheduled("confirmation-email:")
    assert scheduler.was_scheduled("owner-notice:")
    assert email_sender.sent == []
    assert app.conversation_id is None


@pytest.mark.asyncio
async def test_create_side_effects_when_run(service, seeded, make_payload, scheduler, email_sender, async_session_maker):
    app = await _create(service, make_payload)
    await scheduler.run_all()

    assert len(email_sender.sent) == 1
    assert email_sender.sent[0].to == "riley@example.com"
    assert email_sender.sent[0].subject == "Your Application Has Been Received"
    assert "Sunny 2BR" in email_sender.sent[0].html

    stored = await service.get_application_by_id(app.id)
    assert stored.conversation_id is not None

    async with async_session_maker() as session:
        conv = (await session.execute(select(Conversation))).scalars().one()
        members = await ConversationRepository(session).list_participants(conv.id)
        notes = await NotificationRepository(session).list_for_user(LANDLORD.id)

    assert conv.id == stored.conversation_id
    assert conv.subject == "Application for Sunny 2BR"
    assert conv.application_id == app.id
    assert members == [RENTER.id, LANDLORD.id]
    assert [n.kind for n in notes] == [NotificationKind.new_application]
    assert notes[0].message == "Riley Renter applied for Sunny 2BR"


@pytest.mark.asyncio
async def test_side_effect_failure_is_swallowed(service, seeded, make_payload, scheduler, email_sender, async_session_maker):
    email_sender.fail = True
    await _create(service, make_payload)

    await scheduler.run_all()  # must not raise

    async with async_session_maker() as session:
        notes = (await session.execute(select(Notification))).scalars().all()
    assert len(notes) == 1


@pytest.mark.asyncio
async def test_no_conversation_for_ownerless_property_and_no_email_without_address(service, seeded, make_payload, scheduler):
    await _create(service, make_payload, requester=OTHER_RENTER, propertyId=ORPHAN_PROPERTY_ID)

    assert not scheduler.was_scheduled("conversation:")
    assert not scheduler.was_scheduled("confirmation-email:")
    assert scheduler.was_scheduled("owner-notice:")


@pytest.mark.asyncio
async def test_create_rejects_duplicate_regardless_of_status(service, seeded, make_payload):
    app = await _create(service, make_payload)
    await _move(service, app.id, "withdrawn", RENTER)

    res = await service.create_application(make_payload(), RENTER.id)
    assert isinstance(res.error, DuplicateError)
    assert res.error.message == (
        "You have already applied for this property. Please check your existing applications."
    )


@pytest.mark.asyncio
async def test_create_unknown_property(service, seeded, make_payload):
    res = await service.create_application(make_payload(propertyId="nope"), RENTER.id)
    assert isinstance(res.error, NotFoundError)
    assert res.error.message == "Property not found"


@pytest.mark.asyncio
async def test_create_validation_reports_first_field(service, seeded):
    res = await service.create_application({"employment": {"monthlyIncome": 100}}, RENTER.id)
    assert isinstance(res.error, ValidationError)
    assert "propertyId" in res.error.message

    res = await service.create_application({"propertyId": PROPERTY_ID, "employment": "lots"}, RENTER.id)
    assert isinstance(res.error, ValidationError)
    assert res.error.message.startswith("employment")


@pytest.mark.asyncio
async def test_create_without_ssn_or_income_flags_it(service, seeded, make_payload):
    app = await _create(
        service,
        make_payload,
        personalInfo={"firstName": "Riley"},
        employment={"employed": False},
        rentalHistory={},
        documentStatus={},
    )
    assert app.score == 8
    assert len(app.score_breakdown["flags"]) == 5


@pytest.mark.asyncio
async def test_create_with_non_numeric_durations_scores_as_zero_years(service, seeded, make_payload):
    app = await _create(
        service,
        make_payload,
        rentalHistory={"duration": "nan", "hasEviction": "false"},
        employment={"employed": "yes", "monthlyIncome": "6000", "yearsEmployed": "Infinity"},
    )
    assert app.score_breakdown["rental_history_score"] == 5
    assert app.score_breakdown["employment_score"] == 8
    assert "limited_rental_history" in app.score_breakdown["flags"]
    assert "previous_eviction" not in app.score_breakdown["flags"]


@pytest.mark.asyncio
async def test_repository_duplicate_insert_hits_unique_constraint(async_session_maker, seeded):
    from sqlalchemy.exc import IntegrityError

    async with async_session_maker() as session:
        repo = ApplicationRepository(session)
        await repo.create({"user_id": RENTER.id, "property_id": PROPERTY_ID})
        with pytest.raises(IntegrityError):
            await repo.create({"user_id": RENTER.id, "property_id": PROPERTY_ID})
        await session.rollback()


# -----------------------------
# Edit
# -----------------------------
@pytest.mark.asyncio
async def test_update_non_scoring_field_keeps_score_timestamp(service, seeded, make_payload, scheduler):
    app = await _create(service, make_payload)
    before = (await service.get_application_by_id(app.id)).scored_at

    res = await service.update_application(app.id, {"currentAddress": "77 New Rd"}, RENTER)
    assert res.ok
    assert res.data.current_address == "77 New Rd"

    after = await service.get_application_by_id(app.id)
    assert after.scored_at == before
    assert not scheduler.was_scheduled("scoring-notice:")


@pytest.mark.asyncio
async def test_update_employment_rescores_and_notifies_owner(service, seeded, make_payload, scheduler, async_session_maker):
    app = await _create(service, make_payload)
    before = (await service.get_application_by_id(app.id)).scored_at

    res = await service.update_application(
        app.id,
        {"employment": {"employed": True, "monthlyIncome": "2500", "yearsEmployed": "2 years"}},
        RENTER,
    )
    assert res.ok
    stored = await service.get_application_by_id(app.id)
    assert stored.score == 87
    assert stored.score_breakdown["income_score"] == 12
    assert stored.scored_at >= before
    assert scheduler.was_scheduled("scoring-notice:")

    scheduler.jobs = [j for j in scheduler.jobs if j[0].startswith("scoring-notice:")]
    await scheduler.run_all()
    async with async_session_maker() as session:
        notes = (await session.execute(select(Notification))).scalars().all()
    assert [(n.user_id, n.kind) for n in notes] == [(LANDLORD.id, NotificationKind.scoring_complete)]
    assert notes[0].payload["score"] == 87


@pytest.mark.asyncio
async def test_update_personal_info_rescores(service, seeded, make_payload):
    app = await _create(service, make_payload)

    res = await service.update_application(app.id, {"personalInfo": {"firstName": "Riley", "ssn": "000-00-0000"}}, RENTER)
    assert res.ok
    stored = await service.get_application_by_id(app.id)
    # ssn ending 0 -> 600 -> 10 points instead of 25
    assert stored.score_breakdown["credit_score"] == 10
    assert stored.score == 85


@pytest.mark.asyncio
async def test_update_authorization_and_validation(service, seeded, make_payload):
    app = await _create(service, make_payload)

    res = await service.update_application(app.id, {"message": "hi"}, OTHER_LANDLORD)
    assert isinstance(res.error, AuthorizationError)

    res = await service.update_application(app.id, {"status": "approved"}, RENTER)
    assert isinstance(res.error, ValidationError)
    assert "status" in res.error.message

    res = await service.update_application(app.id, {"rent_snapshot": 1}, ADMIN)
    assert isinstance(res.error, ValidationError)

    res = await service.update_application("missing", {"message": "hi"}, RENTER)
    assert isinstance(res.error, NotFoundError)

    res = await service.update_application(app.id, {"message": "from the owner"}, LANDLORD)
    assert res.ok


@pytest.mark.asyncio
async def test_terminal_application_can_still_be_edited(service, seeded, make_payload):
    app = await _create(service, make_payload)
    await _move(service, app.id, "withdrawn", RENTER)

    res = await service.update_application(app.id, {"message": "moving next spring instead"}, RENTER)
    assert res.ok, res.error
    assert res.data.message == "moving next spring instead"
    assert res.data.status == ApplicationStatus.withdrawn


# -----------------------------
# Status
# -----------------------------
@pytest.mark.asyncio
async def test_illegal_transition_leaves_record_unchanged(service, seeded, make_payload):
    app = await _create(service, make_payload)
    await _move(service, app.id, "under_review", LANDLORD)
    await _move(service, app.id, "approved", LANDLORD)

    res = await service.update_application_status(app.id, "under_review", LANDLORD)
    assert isinstance(res.error, TransitionError)
    assert "approved" in res.error.message and "under_review" in res.error.message

    stored = await service.get_application_by_id(app.id)
    assert stored.status == ApplicationStatus.approved
    assert len(stored.status_history) == 3


@pytest.mark.asyncio
async def test_owner_cannot_withdraw_but_applicant_can(service, seeded, make_payload, scheduler):
    app = await _create(service, make_payload)

    res = await service.update_application_status(app.id, "withdrawn", LANDLORD)
    assert isinstance(res.error, AuthorizationError)
    assert (await service.get_application_by_id(app.id)).status == ApplicationStatus.submitted

    updated = await _move(service, app.id, "withdrawn", RENTER, reason="Found another place")
    assert updated.status == ApplicationStatus.withdrawn
    assert updated.previous_status == ApplicationStatus.submitted
    assert len(updated.status_history) == 2
    assert updated.status_history[-1]["reason"] == "Found another place"
    assert updated.reviewed_by is None
    assert scheduler.was_scheduled("status-notice:")


@pytest.mark.asyncio
async def test_history_grows_by_one_per_accepted_transition(service, seeded, make_payload):
    app = await _create(service, make_payload)

    path = [("under_review", LANDLORD), ("info_requested", ADMIN), ("under_review", LANDLORD), ("conditional_approval", LANDLORD)]
    for i, (status, who) in enumerate(path, start=2):
        updated = await _move(service, app.id, status, who)
        assert len(updated.status_history) == i
        assert updated.status_history[-1]["status"] == status
        assert updated.status_history[-1]["changedBy"] == who.id

    assert [h["status"] for h in updated.status_history] == ["submitted"] + [s for s, _ in path]


@pytest.mark.asyncio
async def test_reject_records_metadata_and_notifies(service, seeded, make_payload, scheduler, email_sender, async_session_maker):
    app = await _create(service, make_payload)
    await _move(service, app.id, "under_review", LANDLORD)
    scheduler.jobs.clear()

    rejection = RejectionInfo(
        category="income",
        reason="Income below 3x rent",
        details={"categories": ["income"], "explanation": "Needs a guarantor", "appealable": True},
    )
    updated = await _move(service, app.id, "rejected", LANDLORD, rejection=rejection)

    assert updated.rejection_category == "income"
    assert updated.rejection_reason == "Income below 3x rent"
    assert updated.rejection_details["appealable"] is True
    assert updated.reviewed_by == LANDLORD.id
    assert updated.reviewed_at is not None

    await scheduler.run_all()
    assert len(email_sender.sent) == 1
    assert "Income below 3x rent" in email_sender.sent[0].html
    assert "appealed" in email_sender.sent[0].html

    async with async_session_maker() as session:
        note = (
            await session.execute(select(Notification).where(Notification.kind == NotificationKind.status_change))
        ).scalars().one()
    assert note.user_id == RENTER.id
    assert note.payload["status"] == "rejected"
    assert note.payload["appealable"] is True


@pytest.mark.asyncio
async def test_applicant_cannot_approve_and_transition_checked_first(service, seeded, make_payload):
    app = await _create(service, make_payload)

    # submitted -> approved is not in the table at all
    res = await service.update_application_status(app.id, "approved", RENTER)
    assert isinstance(res.error, TransitionError)

    res = await service.update_application_status(app.id, "under_review", RENTER)
    assert isinstance(res.error, AuthorizationError)


@pytest.mark.asyncio
async def test_status_input_errors(service, seeded, make_payload):
    app = await _create(service, make_payload)

    res = await service.update_application_status(app.id, "bogus", LANDLORD)
    assert isinstance(res.error, ValidationError)

    res = await service.update_application_status("missing", "under_review", LANDLORD)
    assert isinstance(res.error, NotFoundError)

    res = await service.update_application_status(app.id, "under_review", LANDLORD, expected_status="info_requested")
    assert isinstance(res.error, ConflictError)
    assert (await service.get_application_by_id(app.id)).status == ApplicationStatus.submitted


@pytest.mark.asyncio
async def test_conditional_status_write_refuses_stale_status(async_session_maker, service, seeded, make_payload):
    app = await _create(service, make_payload)

    async with async_session_maker() as session:
        repo = ApplicationRepository(session)
        res = await repo.update_status(
            app.id,
            {"status": ApplicationStatus.approved},
            expected_status=ApplicationStatus.under_review,
        )
        assert res is None
        await session.rollback()

    assert (await service.get_application_by_id(app.id)).status == ApplicationStatus.submitted


# -----------------------------
# Reads
# -----------------------------
@pytest.mark.asyncio
async def test_list_by_user(service, seeded, make_payload):
    await _create(service, make_payload)

    res = await service.get_applications_by_user(RENTER.id, RENTER)
    assert res.ok and len(res.data) == 1

    res = await service.get_applications_by_user(RENTER.id, ADMIN)
    assert res.ok and len(res.data) == 1

    res = await service.get_applications_by_user(RENTER.id, LANDLORD)
    assert isinstance(res.error, AuthorizationError)


@pytest.mark.asyncio
async def test_list_by_property(service, seeded, make_payload):
    await _create(service, make_payload)
    await _create(service, make_payload, requester=OTHER_RENTER)

    res = await service.get_applications_by_property(PROPERTY_ID, LANDLORD)
    assert res.ok and {a.user_id for a in res.data} == {RENTER.id, OTHER_RENTER.id}

    res = await service.get_applications_by_property(PROPERTY_ID, OTHER_LANDLORD)
    assert isinstance(res.error, AuthorizationError)

    res = await service.get_applications_by_property("nope", ADMIN)
    assert isinstance(res.error, NotFoundError)


@pytest.mark.asyncio
async def test_view_requires_party(service, seeded, make_payload):
    app = await _create(service, make_payload)

    assert (await service.view_application(app.id, LANDLORD)).ok
    assert isinstance((await service.view_application(app.id, OTHER_RENTER)).error, AuthorizationError)
    assert isinstance((await service.view_application("nope", ADMIN)).error, NotFoundError)
    assert await service.get_application_by_id("nope") is None
