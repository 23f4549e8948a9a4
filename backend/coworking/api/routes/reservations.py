"""
Visitor reservation endpoints: book, cancel and list own reservations.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import get_settings
from coworking.core.logging import get_logger
from coworking.core.security import get_current_user_id
from coworking.db.base import MAX_INTEGER_ID
from coworking.db.session import get_db
from coworking.schemas.reservation import (
    ErrorResponse,
    ReservationCreate,
    ReservationFilter,
    ReservationListResponse,
    ReservationStatus,
    VisitorReservationResponse,
)
from coworking.services.interfaces.lock import LockManager
from coworking.services.interfaces.notifier import Notifier
from coworking.services.reservation_service import (
    cancel_reservation,
    create_reservation,
    list_reservations,
)
from coworking.services.strategy_factory import get_lock_manager, get_notifier

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/reservations", tags=["Reservations"])


def get_today() -> date:
    """Calendar date used for booking rules."""
    return date.today()


@router.post(
    "/",
    response_model=VisitorReservationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def create_reservation_endpoint(
    reservation_data: ReservationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    locks: LockManager = Depends(get_lock_manager),
    notifier: Notifier = Depends(get_notifier),
    today: date = Depends(get_today),
):
    """
    Reserve an office for an inclusive date range (at least two days,
    starting tomorrow or later).

    Bookings of the same office are serialized by a per-office lock, so
    overlapping requests get exactly one winner; the others receive a 422
    conflict. A 503 means the office lock stayed busy and the request can
    be retried.
    """
    return await create_reservation(
        db, user_id, reservation_data, today=today, locks=locks, notifier=notifier
    )


@router.delete(
    "/{reservation_id}",
    response_model=VisitorReservationResponse,
    responses={422: {"model": ErrorResponse}},
)
async def cancel_reservation_endpoint(
    reservation_id: int = Path(..., ge=1, le=MAX_INTEGER_ID),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
):
    """Cancel one of your reservations that has not started yet."""
    return await cancel_reservation(db, reservation_id, user_id, today=today)


@router.get("/", response_model=ReservationListResponse, responses={422: {"model": ErrorResponse}})
async def list_visitor_reservations(
    office_id: Optional[int] = Query(None, ge=1, le=MAX_INTEGER_ID),
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1, le=MAX_INTEGER_ID),
    page_size: int = Query(settings.RESERVATIONS_PAGE_SIZE, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the authenticated visitor's reservations."""
    filters = ReservationFilter(
        user_id=user_id,
        office_id=office_id,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
    )
    reservations, total = await list_reservations(db, filters, page, page_size)
    return ReservationListResponse(
        reservations=[VisitorReservationResponse.model_validate(r) for r in reservations],
        total=total,
        page=page,
        page_size=page_size,
    )
