"""
Reservation service with concurrency-safe office booking.

CONCURRENCY STRATEGY: Per-office lock around check-then-insert
=============================================================

Problem:
  Two visitors ask for overlapping dates on the same office at the same time.
  Both run the overlap query, both see a free office, both insert.
  Result: Double booking.

Solution:
  The overlap query and the INSERT run inside a lock keyed by the office:

  1. Validate the request (office exists, not own office, bookable, dates)
  2. Acquire lock "reservations_office_<id>" (bounded wait, auto-expiring)
  3. SELECT EXISTS active reservation intersecting [start, end]
  4. Compute the price, INSERT the reservation, COMMIT
  5. Release the lock (always, on every exit path)
  6. Notify visitor and host, outside the lock, best effort

  The commit happens before the release so the next holder of the lock
  always sees the new row.

  This approach:
  - Serializes only bookings of the same office; other offices run in parallel
  - Lock expiry (TTL) keeps a crashed holder from blocking an office forever
  - A lock wait that runs out is retried a few times, then reported as busy

Alternative approaches considered:
  - Exclusion constraint (PostgreSQL daterange &&): strongest guarantee, but
    ties correctness to one database engine.
  - SELECT FOR UPDATE on the office row: same effect, but holds a DB
    connection while waiting.
  - SERIALIZABLE isolation + retry: correct, noisy under contention.
"""

import secrets
import time
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import get_settings
from coworking.core.exceptions import (
    BookingConflict,
    CannotCancel,
    InvalidEndDate,
    InvalidFilter,
    InvalidReference,
    InvalidStartDate,
    OfficeUnavailable,
    PersistenceFailure,
    ReservationBusy,
    ReservationValidationError,
    SelfReservation,
)
from coworking.core.logging import get_logger
from coworking.core.metrics import (
    reservation_latency,
    record_cancellation,
    record_notification_failure,
    record_reservation_attempt,
)
from coworking.models.office import Office
from coworking.models.reservation import Reservation
from coworking.schemas.reservation import ReservationCreate, ReservationFilter
from coworking.services.availability_service import has_conflict, overlapping
from coworking.services.interfaces.lock import LockManager, LockNotAcquired
from coworking.services.interfaces.notifier import Notifier
from coworking.services.office_service import get_office
from coworking.services.pricing_service import compute_price

logger = get_logger(__name__)
settings = get_settings()

VISITOR_CREATED_EVENT = "reservation.created.visitor"
HOST_CREATED_EVENT = "reservation.created.host"


def office_lock_key(office_id: int) -> str:
    return f"reservations_office_{office_id}"


def generate_wifi_password() -> str:
    return secrets.token_urlsafe(12)


async def create_reservation(
    db: AsyncSession,
    visitor_id: int,
    reservation_data: ReservationCreate,
    *,
    today: date,
    locks: LockManager,
    notifier: Notifier,
) -> Reservation:
    """
    Reserve an office for an inclusive date range.
    Validation failures leave no trace; the insert happens under the office lock.
    """
    started = time.perf_counter()
    try:
        office = await _validate_request(db, visitor_id, reservation_data, today)
        reservation = await _reserve_under_lock(db, office, visitor_id, reservation_data, locks)
    except BookingConflict:
        record_reservation_attempt("conflict")
        raise
    except ReservationValidationError as e:
        record_reservation_attempt("invalid")
        logger.info(
            "reservation_rejected",
            visitor_id=visitor_id,
            office_id=reservation_data.office_id,
            code=e.code,
        )
        raise
    except ReservationBusy:
        record_reservation_attempt("busy")
        raise
    except PersistenceFailure:
        record_reservation_attempt("error")
        raise
    finally:
        reservation_latency.observe(time.perf_counter() - started)

    record_reservation_attempt("success")
    await _notify_new_reservation(notifier, reservation, office)
    return reservation


async def _validate_request(
    db: AsyncSession,
    visitor_id: int,
    reservation_data: ReservationCreate,
    today: date,
) -> Office:
    try:
        office = await get_office(db, reservation_data.office_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("office_lookup_failed", office_id=reservation_data.office_id, error=str(e))
        raise PersistenceFailure() from e

    if office is None:
        raise InvalidReference()

    if office.owner_id == visitor_id:
        raise SelfReservation()

    if not office.is_bookable:
        raise OfficeUnavailable()

    if reservation_data.start_date <= today:
        raise InvalidStartDate()

    # end > start also guarantees the two-day minimum stay
    if reservation_data.end_date <= reservation_data.start_date:
        raise InvalidEndDate()

    return office


async def _reserve_under_lock(
    db: AsyncSession,
    office: Office,
    visitor_id: int,
    reservation_data: ReservationCreate,
    locks: LockManager,
) -> Reservation:
    key = office_lock_key(office.id)
    attempts = max(settings.RESERVATION_LOCK_ATTEMPTS, 1)

    for attempt in range(1, attempts + 1):
        try:
            async with locks.hold(
                key,
                ttl=settings.RESERVATION_LOCK_TTL_SECONDS,
                wait=settings.RESERVATION_LOCK_WAIT_SECONDS,
            ):
                return await _insert_reservation(db, office, visitor_id, reservation_data)
        except LockNotAcquired:
            logger.info(
                "reservation_lock_busy",
                office_id=office.id,
                attempt=attempt,
                max_attempts=attempts,
            )

    logger.warning("reservation_busy", office_id=office.id, visitor_id=visitor_id)
    raise ReservationBusy()


async def _insert_reservation(
    db: AsyncSession,
    office: Office,
    visitor_id: int,
    reservation_data: ReservationCreate,
) -> Reservation:
    # Plain values: a rollback expires the ORM objects
    office_id = office.id
    start_date = reservation_data.start_date
    end_date = reservation_data.end_date

    try:
        if await has_conflict(db, office_id, start_date, end_date):
            logger.warning(
                "reservation_conflict",
                office_id=office_id,
                visitor_id=visitor_id,
                start_date=str(start_date),
                end_date=str(end_date),
            )
            raise BookingConflict()

        reservation = Reservation(
            user_id=visitor_id,
            office=office,
            office_id=office_id,
            start_date=start_date,
            end_date=end_date,
            status=Reservation.STATUS_ACTIVE,
            price=compute_price(start_date, end_date, office.price_per_day, office.monthly_discount),
            wifi_password=generate_wifi_password(),
        )
        db.add(reservation)
        await db.flush()
        await db.refresh(reservation)
        # Commit while still holding the lock so the next holder sees this row
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "reservation_persist_failed",
            office_id=office_id,
            visitor_id=visitor_id,
            error=str(e),
        )
        raise PersistenceFailure() from e

    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        office_id=office_id,
        visitor_id=visitor_id,
        start_date=str(start_date),
        end_date=str(end_date),
        price=reservation.price,
    )
    return reservation


async def _notify_new_reservation(notifier: Notifier, reservation: Reservation, office: Office) -> None:
    """Tell visitor and host. Failures are logged and counted, never raised."""
    payload = {
        "reservation_id": reservation.id,
        "office_id": office.id,
        "office_title": office.title,
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "price": reservation.price,
    }
    recipients = (
        (reservation.user_id, VISITOR_CREATED_EVENT),
        (office.owner_id, HOST_CREATED_EVENT),
    )
    for recipient_id, event_type in recipients:
        try:
            await notifier.send(recipient_id, event_type, payload)
        except Exception as e:
            record_notification_failure(event_type)
            logger.error(
                "notification_failed",
                reservation_id=reservation.id,
                recipient_id=recipient_id,
                event_type=event_type,
                error=str(e),
            )


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: int,
    actor_id: int,
    *,
    today: date,
) -> Reservation:
    """
    Cancel a visitor's own upcoming reservation.
    The price is kept as booked. No lock: only this row's status changes.
    """
    try:
        result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
        reservation = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("reservation_lookup_failed", reservation_id=reservation_id, error=str(e))
        raise PersistenceFailure() from e

    if not reservation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reservation not found",
        )

    reason = None
    if reservation.user_id != actor_id:
        reason = "not_owner"
    elif reservation.status == Reservation.STATUS_CANCELLED:
        reason = "already_cancelled"
    elif reservation.start_date < today:
        reason = "already_started"

    # One error for all causes; the log keeps the distinction
    if reason:
        record_cancellation(cancelled=False)
        logger.info(
            "reservation_cancel_rejected",
            reservation_id=reservation_id,
            actor_id=actor_id,
            reason=reason,
        )
        raise CannotCancel()

    reservation.status = Reservation.STATUS_CANCELLED
    try:
        await db.flush()
        await db.refresh(reservation)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("reservation_cancel_failed", reservation_id=reservation_id, error=str(e))
        raise PersistenceFailure() from e

    record_cancellation(cancelled=True)
    logger.info(
        "reservation_cancelled",
        reservation_id=reservation.id,
        actor_id=actor_id,
        office_id=reservation.office_id,
    )
    return reservation


def _validate_filter(filters: ReservationFilter) -> None:
    if filters.from_date and not filters.to_date:
        raise InvalidFilter("The to_date field is required when from_date is present", field="to_date")
    if filters.to_date and not filters.from_date:
        raise InvalidFilter("The from_date field is required when to_date is present", field="from_date")
    if filters.from_date and filters.to_date and filters.to_date <= filters.from_date:
        raise InvalidFilter("The to_date must be a date after from_date", field="to_date")


async def list_reservations(
    db: AsyncSession,
    filters: ReservationFilter,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Reservation], int]:
    """
    List reservations with pagination.
    `user_id` limits to a visitor's stays, `host_id` to stays on a host's offices.
    A date window matches every reservation that intersects it.
    """
    _validate_filter(filters)

    query = select(Reservation)

    if filters.host_id is not None:
        query = query.join(Office, Office.id == Reservation.office_id).where(
            Office.owner_id == filters.host_id
        )
    if filters.user_id is not None:
        query = query.where(Reservation.user_id == filters.user_id)
    if filters.office_id is not None:
        query = query.where(Reservation.office_id == filters.office_id)
    if filters.status is not None:
        query = query.where(Reservation.status == filters.status)
    if filters.from_date and filters.to_date:
        query = query.where(overlapping(filters.from_date, filters.to_date))

    count_query = select(func.count()).select_from(query.subquery())
    try:
        total = (await db.execute(count_query)).scalar()
        result = await db.execute(
            query
            .order_by(Reservation.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("reservation_list_failed", error=str(e))
        raise PersistenceFailure() from e

    return list(result.scalars().all()), total
