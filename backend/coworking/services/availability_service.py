"""
Overlap check for office bookings.

Ranges are inclusive on both ends, so two stays sharing a single day
conflict. Must run inside the office lock together with the insert that
depends on it; results are never cached.
"""

from datetime import date

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.models.reservation import Reservation


def overlapping(start_date: date, end_date: date):
    """SQL criterion: reservation range intersects [start_date, end_date]."""
    return (Reservation.start_date <= end_date) & (Reservation.end_date >= start_date)


async def has_conflict(
    db: AsyncSession,
    office_id: int,
    start_date: date,
    end_date: date,
) -> bool:
    query = select(
        exists().where(
            Reservation.office_id == office_id,
            Reservation.status == Reservation.STATUS_ACTIVE,
            overlapping(start_date, end_date),
        )
    )
    return bool((await db.execute(query)).scalar())
