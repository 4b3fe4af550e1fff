import importlib.util
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError

from liz.core.exceptions import (
    BusinessLogicError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from liz.modules.reviews.aggregates import recalculate_all, recompute_rating_for, round_rating
from liz.modules.reviews.models import Review
from liz.modules.reviews.service import ReviewService
from liz.shared.enums import AppointmentStatus, ParticipantRole
from liz.shared.models import generate_ulid
from factories import book, completed_appointment, insert_appointment, seed_marketplace


@pytest.mark.asyncio
async def test_client_review_after_completion_updates_professional_rating(db_session):
    market = await seed_marketplace(db_session)
    appointment = await completed_appointment(db_session, market)
    service = ReviewService(db_session)

    review = await service.record_review(appointment.appointment_id, market.client, 5, "Excelente")

    assert review.role_from == ParticipantRole.CLIENT
    assert review.role_to == ParticipantRole.PROFESSIONAL
    assert review.to_user_id == market.professional.user_id
    await db_session.refresh(market.profile)
    assert market.profile.rating_avg == Decimal("5.0")
    assert market.profile.review_count == 1
    assert market.profile.services_completed == 1

    with pytest.raises(ConflictError):
        await service.record_review(appointment.appointment_id, market.client, 4)

    await db_session.refresh(market.profile)
    assert market.profile.rating_avg == Decimal("5.0")
    assert market.profile.review_count == 1


@pytest.mark.asyncio
async def test_professional_review_updates_client_rating_only(db_session):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)

    review = await ReviewService(db_session).record_review(appointment.appointment_id, market.professional, 3)

    assert review.role_from == ParticipantRole.PROFESSIONAL
    assert review.role_to == ParticipantRole.CLIENT
    assert review.to_user_id == market.client.user_id
    await db_session.refresh(market.client)
    await db_session.refresh(market.profile)
    assert market.client.client_rating_avg == Decimal("3.0")
    assert market.client.client_review_count == 1
    assert market.profile.review_count == 0
    assert market.profile.rating_avg == Decimal("0")


@pytest.mark.asyncio
async def test_both_parties_may_review_the_same_appointment(db_session):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)
    service = ReviewService(db_session)

    from_client = await service.record_review(appointment.appointment_id, market.client, 4)
    from_professional = await service.record_review(appointment.appointment_id, market.professional, 5)

    assert from_client.to_user_id == market.professional.user_id
    assert from_professional.to_user_id == market.client.user_id
    assert from_client.to_user_id != from_client.from_user_id
    assert from_professional.to_user_id != from_professional.from_user_id


@pytest.mark.asyncio
async def test_average_is_rounded_half_up_to_one_decimal(db_session):
    market = await seed_marketplace(db_session)
    service = ReviewService(db_session)
    for rating in (4, 4, 5, 4):
        appointment = await insert_appointment(db_session, market)
        await service.record_review(appointment.appointment_id, market.client, rating)

    await db_session.refresh(market.profile)
    assert market.profile.review_count == 4
    assert market.profile.rating_avg == Decimal("4.3")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, Decimal("0.0")),
        (4.25, Decimal("4.3")),
        (Decimal("4.2500"), Decimal("4.3")),
        (3.333333, Decimal("3.3")),
        (4.95, Decimal("5.0")),
        (1, Decimal("1.0")),
    ],
)
def test_round_rating(raw, expected):
    assert round_rating(raw) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.REJECTED,
    ],
)
async def test_only_completed_appointments_can_be_reviewed(db_session, status):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market, status)

    with pytest.raises(InvalidStateError):
        await ReviewService(db_session).record_review(appointment.appointment_id, market.client, 5)


@pytest.mark.asyncio
async def test_review_rejections(db_session):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)
    service = ReviewService(db_session)

    with pytest.raises(ForbiddenError):
        await service.record_review(appointment.appointment_id, market.outsider, 5)
    with pytest.raises(NotFoundError):
        await service.record_review("01HZZZZZZZZZZZZZZZZZZZZZZZ", market.client, 5)
    with pytest.raises(BusinessLogicError) as excinfo:
        await service.record_review(appointment.appointment_id, market.client, 6)
    assert excinfo.value.status_code == 422

    await db_session.refresh(market.profile)
    assert market.profile.review_count == 0


@pytest.mark.asyncio
async def test_review_of_professional_without_profile_still_records(db_session):
    market = await seed_marketplace(db_session, with_profile=False)
    appointment = await insert_appointment(db_session, market)
    service = ReviewService(db_session)

    review = await service.record_review(appointment.appointment_id, market.client, 2)

    assert review.to_user_id == market.professional.user_id
    professional, client = await recompute_rating_for(db_session, market.professional.user_id)
    assert professional is None
    assert client.count == 0
    stats = await service.user_stats(market.professional.user_id)
    assert stats.total_reviews == 1
    assert stats.average_rating == Decimal("2.0")


@pytest.mark.asyncio
async def test_delete_review_recomputes_and_checks_author(db_session):
    market = await seed_marketplace(db_session)
    service = ReviewService(db_session)
    first = await insert_appointment(db_session, market)
    second = await insert_appointment(db_session, market)
    low = await service.record_review(first.appointment_id, market.client, 1)
    high = await service.record_review(second.appointment_id, market.client, 5)

    await db_session.refresh(market.profile)
    assert market.profile.rating_avg == Decimal("3.0")

    with pytest.raises(ForbiddenError):
        await service.delete_review(low.review_id, market.professional)

    await service.delete_review(low.review_id, market.client)
    await db_session.refresh(market.profile)
    assert market.profile.review_count == 1
    assert market.profile.rating_avg == Decimal("5.0")

    await service.delete_review(high.review_id, market.admin)
    await db_session.refresh(market.profile)
    assert market.profile.review_count == 0
    assert market.profile.rating_avg == Decimal("0")

    with pytest.raises(NotFoundError):
        await service.delete_review(high.review_id, market.admin)


@pytest.mark.asyncio
async def test_reading_reviews(db_session):
    market = await seed_marketplace(db_session)
    service = ReviewService(db_session)
    pending = await book(db_session, market)
    done = await insert_appointment(db_session, market)
    other = await insert_appointment(db_session, market)
    await service.record_review(done.appointment_id, market.client, 5)
    await service.record_review(other.appointment_id, market.client, 3)
    await service.record_review(other.appointment_id, market.professional, 4)

    assert await service.get_for_appointment(pending.appointment_id, market.client) is None
    mine = await service.get_for_appointment(done.appointment_id, market.client)
    assert mine is not None and mine.rating == 5

    items, total = await service.list_for_professional(market.professional.user_id)
    assert total == 2
    assert {item.role_to for item in items} == {ParticipantRole.PROFESSIONAL}

    _, total = await service.list_reviews(to_user_id=market.professional.user_id, min_rating=4)
    assert total == 1
    _, total = await service.list_reviews(from_user_id=market.professional.user_id)
    assert total == 1

    stats = await service.user_stats(market.professional.user_id)
    assert stats.primary_role == ParticipantRole.PROFESSIONAL
    assert stats.total_reviews == 2
    assert stats.average_rating == Decimal("4.0")
    assert stats.rating_distribution == {"1": 0, "2": 0, "3": 1, "4": 0, "5": 1}
    assert stats.secondary_total_reviews == 0

    client_stats = await service.user_stats(market.client.user_id)
    assert client_stats.primary_role == ParticipantRole.CLIENT
    assert client_stats.total_reviews == 1
    assert client_stats.average_rating == Decimal("4.0")

    with pytest.raises(NotFoundError):
        await service.user_stats("01HZZZZZZZZZZZZZZZZZZZZZZZ")


@pytest.mark.asyncio
async def test_recalculate_all_restores_drifted_aggregates(db_session):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)
    await ReviewService(db_session).record_review(appointment.appointment_id, market.client, 4)

    market.profile.rating_avg = Decimal("1.0")
    market.profile.review_count = 9
    market.outsider.client_rating_avg = Decimal("2.5")
    market.outsider.client_review_count = 3
    await db_session.commit()

    touched = await recalculate_all(db_session)
    await db_session.commit()

    assert touched == 4
    await db_session.refresh(market.profile)
    await db_session.refresh(market.outsider)
    assert market.profile.rating_avg == Decimal("4.0")
    assert market.profile.review_count == 1
    assert market.outsider.client_rating_avg == Decimal("0")
    assert market.outsider.client_review_count == 0



@pytest.mark.asyncio
async def test_duplicate_missed_by_lookup_is_caught_as_conflict(db_session, monkeypatch):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)
    appointment_id = appointment.appointment_id
    service = ReviewService(db_session)
    await service.record_review(appointment_id, market.client, 5)

    # A concurrent writer commits between the lookup and the insert.
    async def not_found_yet(*_args):
        return None

    monkeypatch.setattr(service, "_find", not_found_yet)

    with pytest.raises(ConflictError):
        await service.record_review(appointment_id, market.client, 1)

    assert not db_session.in_transaction()
    total = (await db_session.execute(select(func.count(Review.review_id)))).scalar_one()
    assert total == 1
    await db_session.refresh(market.profile)
    assert market.profile.review_count == 1
    assert market.profile.rating_avg == Decimal("5.0")


@pytest.mark.asyncio
async def test_reviews_table_refuses_self_review_rows(db_session):
    market = await seed_marketplace(db_session)
    appointment = await insert_appointment(db_session, market)
    client_id = market.client.user_id

    db_session.add(
        Review(
            review_id=generate_ulid(),
            appointment_id=appointment.appointment_id,
            from_user_id=client_id,
            to_user_id=client_id,
            role_from=ParticipantRole.CLIENT,
            role_to=ParticipantRole.CLIENT,
            rating=5,
        )
    )
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()


def _load_migration(filename: str):
    path = Path(__file__).resolve().parents[1] / "alembic" / "versions" / filename
    spec = importlib.util.spec_from_file_location(path.stem, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.asyncio
async def test_self_review_migration_retargets_legacy_rows(db_session):
    migration = _load_migration("7b3e9d2c4f18_forbid_self_reviews.py")
    market = await seed_marketplace(db_session)
    first = await insert_appointment(db_session, market)
    second = await insert_appointment(db_session, market)
    client_id = market.client.user_id
    professional_id = market.professional.user_id
    outsider_id = market.outsider.user_id

    legacy = [
        Review(
            review_id=generate_ulid(),
            appointment_id=first.appointment_id,
            from_user_id=client_id,
            to_user_id=client_id,
            role_from=ParticipantRole.CLIENT,
            role_to=ParticipantRole.CLIENT,
            rating=5,
        ),
        Review(
            review_id=generate_ulid(),
            appointment_id=second.appointment_id,
            from_user_id=professional_id,
            to_user_id=professional_id,
            role_from=ParticipantRole.PROFESSIONAL,
            role_to=ParticipantRole.PROFESSIONAL,
            rating=2,
        ),
        Review(
            review_id=generate_ulid(),
            appointment_id=first.appointment_id,
            from_user_id=outsider_id,
            to_user_id=outsider_id,
            role_from=ParticipantRole.CLIENT,
            role_to=ParticipantRole.CLIENT,
            rating=1,
        ),
    ]
    by_client, by_professional, by_outsider = (review.review_id for review in legacy)

    # Rows written before the distinct-parties check existed.
    await db_session.execute(text("PRAGMA ignore_check_constraints = ON"))
    db_session.add_all(legacy)
    await db_session.commit()
    await db_session.execute(text("PRAGMA ignore_check_constraints = OFF"))

    for statement in migration.RETARGET_SELF_REVIEWS:
        await db_session.execute(text(statement))
    await recalculate_all(db_session)
    await db_session.commit()

    result = await db_session.execute(select(Review).execution_options(populate_existing=True))
    rows = {review.review_id: review for review in result.scalars()}
    assert set(rows) == {by_client, by_professional}
    assert rows[by_client].to_user_id == professional_id
    assert rows[by_client].role_to == ParticipantRole.PROFESSIONAL
    assert rows[by_professional].to_user_id == client_id
    assert rows[by_professional].role_from == ParticipantRole.PROFESSIONAL
    assert rows[by_professional].role_to == ParticipantRole.CLIENT

    await db_session.refresh(market.profile)
    await db_session.refresh(market.client)
    assert market.profile.review_count == 1
    assert market.profile.rating_avg == Decimal("5.0")
    assert market.client.client_review_count == 1
    assert market.client.client_rating_avg == Decimal("2.0")
