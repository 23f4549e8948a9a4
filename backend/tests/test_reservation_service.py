"""
Service-level tests for the reservation lifecycle: concurrency, lock
release on failures, busy handling and notifications.
"""

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from coworking.core.exceptions import BookingConflict, PersistenceFailure, ReservationBusy
from coworking.models.reservation import Reservation
from coworking.schemas.reservation import ReservationCreate
from coworking.services import reservation_service
from coworking.services.interfaces.memory_lock import InProcessLockManager
from coworking.services.reservation_service import (
    HOST_CREATED_EVENT,
    VISITOR_CREATED_EVENT,
    cancel_reservation,
    create_reservation,
    office_lock_key,
)
from tests.conftest import (
    HOST_ID,
    VISITOR_ID,
    RecordingNotifier,
    TestSessionLocal,
    days_from_today,
    make_office,
)


class CountingLockManager(InProcessLockManager):
    def __init__(self):
        super().__init__()
        self.acquire_calls = 0

    async def acquire(self, key, ttl, wait):
        self.acquire_calls += 1
        return await super().acquire(key, ttl, wait)


def booking(office_id: int, start: int, end: int) -> ReservationCreate:
    return ReservationCreate(
        office_id=office_id,
        start_date=days_from_today(start),
        end_date=days_from_today(end),
    )


async def count_active(office_id: int) -> int:
    async with TestSessionLocal() as session:
        result = await session.execute(
            select(func.count()).where(
                Reservation.office_id == office_id,
                Reservation.status == Reservation.STATUS_ACTIVE,
            )
        )
        return result.scalar()


@pytest.mark.asyncio
async def test_concurrent_overlapping_bookings_have_one_winner(db_session, test_office):
    locks = InProcessLockManager()
    notifier = RecordingNotifier()
    today = date.today()

    async def book(visitor_id: int, data: ReservationCreate):
        async with TestSessionLocal() as session:
            return await create_reservation(
                session, visitor_id, data, today=today, locks=locks, notifier=notifier
            )

    results = await asyncio.gather(
        book(10, booking(test_office.id, 3, 6)),
        book(11, booking(test_office.id, 5, 9)),
        book(12, booking(test_office.id, 6, 6 + 1)),
        book(13, booking(test_office.id, 1, 3)),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, Reservation)]
    conflicts = [r for r in results if isinstance(r, BookingConflict)]
    assert len(winners) + len(conflicts) == len(results)
    assert len(winners) >= 1
    assert await count_active(test_office.id) == len(winners)

    # No two winners overlap
    for a in winners:
        for b in winners:
            if a.id != b.id:
                assert a.end_date < b.start_date or b.end_date < a.start_date

    assert not locks.is_locked(office_lock_key(test_office.id))


@pytest.mark.asyncio
async def test_identical_concurrent_requests_book_once(db_session, test_office):
    locks = InProcessLockManager()
    today = date.today()

    async def book(visitor_id: int):
        async with TestSessionLocal() as session:
            return await create_reservation(
                session,
                visitor_id,
                booking(test_office.id, 2, 4),
                today=today,
                locks=locks,
                notifier=RecordingNotifier(),
            )

    results = await asyncio.gather(*(book(20 + i) for i in range(5)), return_exceptions=True)

    assert sum(isinstance(r, Reservation) for r in results) == 1
    assert sum(isinstance(r, BookingConflict) for r in results) == 4
    assert await count_active(test_office.id) == 1


@pytest.mark.asyncio
async def test_other_offices_are_not_blocked(db_session, test_office):
    other_office = await make_office(db_session, title="Garden Room")
    locks = InProcessLockManager()
    held = await locks.acquire(office_lock_key(test_office.id), ttl=30, wait=0)

    reservation = await asyncio.wait_for(
        create_reservation(
            db_session,
            VISITOR_ID,
            booking(other_office.id, 1, 2),
            today=date.today(),
            locks=locks,
            notifier=RecordingNotifier(),
        ),
        timeout=1,
    )

    assert reservation.office_id == other_office.id
    assert locks.is_locked(held.key)


@pytest.mark.asyncio
async def test_busy_after_bounded_retries(db_session, test_office, monkeypatch):
    monkeypatch.setattr(reservation_service.settings, "RESERVATION_LOCK_WAIT_SECONDS", 0.02)
    monkeypatch.setattr(reservation_service.settings, "RESERVATION_LOCK_ATTEMPTS", 2)

    locks = CountingLockManager()
    await locks.acquire(office_lock_key(test_office.id), ttl=30, wait=0)
    locks.acquire_calls = 0

    with pytest.raises(ReservationBusy):
        await create_reservation(
            db_session,
            VISITOR_ID,
            booking(test_office.id, 1, 2),
            today=date.today(),
            locks=locks,
            notifier=RecordingNotifier(),
        )

    assert locks.acquire_calls == 2
    assert await count_active(test_office.id) == 0


@pytest.mark.asyncio
async def test_overlap_check_failure_releases_lock(db_session, test_office, monkeypatch):
    async def broken_check(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(reservation_service, "has_conflict", broken_check)
    locks = InProcessLockManager()
    office_id = test_office.id

    with pytest.raises(PersistenceFailure):
        await create_reservation(
            db_session,
            VISITOR_ID,
            booking(office_id, 1, 2),
            today=date.today(),
            locks=locks,
            notifier=RecordingNotifier(),
        )

    assert not locks.is_locked(office_lock_key(office_id))


@pytest.mark.asyncio
async def test_insert_failure_releases_lock_and_writes_nothing(db_session, test_office, monkeypatch):
    # NOT NULL violation on wifi_password makes the INSERT fail
    monkeypatch.setattr(reservation_service, "generate_wifi_password", lambda: None)
    locks = InProcessLockManager()
    notifier = RecordingNotifier()
    office_id = test_office.id

    with pytest.raises(PersistenceFailure):
        await create_reservation(
            db_session,
            VISITOR_ID,
            booking(office_id, 1, 2),
            today=date.today(),
            locks=locks,
            notifier=notifier,
        )

    assert not locks.is_locked(office_lock_key(office_id))
    assert await count_active(office_id) == 0
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_conflict_releases_lock(db_session, test_office):
    locks = InProcessLockManager()
    today = date.today()
    await create_reservation(
        db_session, VISITOR_ID, booking(test_office.id, 1, 4),
        today=today, locks=locks, notifier=RecordingNotifier(),
    )

    with pytest.raises(BookingConflict):
        await create_reservation(
            db_session, 30, booking(test_office.id, 4, 8),
            today=today, locks=locks, notifier=RecordingNotifier(),
        )

    assert not locks.is_locked(office_lock_key(test_office.id))


@pytest.mark.asyncio
async def test_notifies_visitor_and_host(db_session, test_office):
    notifier = RecordingNotifier()
    reservation = await create_reservation(
        db_session,
        VISITOR_ID,
        booking(test_office.id, 1, 2),
        today=date.today(),
        locks=InProcessLockManager(),
        notifier=notifier,
    )

    sent = {(recipient, event) for recipient, event, _ in notifier.sent}
    assert sent == {(VISITOR_ID, VISITOR_CREATED_EVENT), (HOST_ID, HOST_CREATED_EVENT)}
    assert all(payload["reservation_id"] == reservation.id for _, _, payload in notifier.sent)


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_booking(db_session, test_office):
    reservation = await create_reservation(
        db_session,
        VISITOR_ID,
        booking(test_office.id, 1, 2),
        today=date.today(),
        locks=InProcessLockManager(),
        notifier=RecordingNotifier(fail=True),
    )

    assert reservation.id is not None
    assert reservation.status == Reservation.STATUS_ACTIVE
    assert await count_active(test_office.id) == 1


@pytest.mark.asyncio
async def test_cancel_lookup_failure_raises_persistence_failure(db_session, monkeypatch):
    async def lost_connection(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "execute", lost_connection)

    with pytest.raises(PersistenceFailure):
        await cancel_reservation(db_session, 1, VISITOR_ID, today=date.today())
