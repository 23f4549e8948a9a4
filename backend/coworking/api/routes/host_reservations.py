"""
Host endpoints: reservations made on the offices the caller owns.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import get_settings
from coworking.core.security import get_current_user_id
from coworking.db.base import MAX_INTEGER_ID
from coworking.db.session import get_db
from coworking.schemas.reservation import (
    ErrorResponse,
    HostReservationListResponse,
    ReservationFilter,
    ReservationResponse,
    ReservationStatus,
)
from coworking.services.reservation_service import list_reservations

settings = get_settings()
router = APIRouter(prefix="/host/reservations", tags=["Host Reservations"])


@router.get("/", response_model=HostReservationListResponse, responses={422: {"model": ErrorResponse}})
async def list_host_reservations(
    office_id: Optional[int] = Query(None, ge=1, le=MAX_INTEGER_ID),
    visitor_id: Optional[int] = Query(None, ge=1, le=MAX_INTEGER_ID),
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1, le=MAX_INTEGER_ID),
    page_size: int = Query(settings.RESERVATIONS_PAGE_SIZE, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List reservations on the host's offices. Stay secrets are not included."""
    filters = ReservationFilter(
        host_id=user_id,
        user_id=visitor_id,
        office_id=office_id,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
    )
    reservations, total = await list_reservations(db, filters, page, page_size)
    return HostReservationListResponse(
        reservations=[ReservationResponse.model_validate(r) for r in reservations],
        total=total,
        page=page,
        page_size=page_size,
    )
