"""
Read access to offices. Office CRUD belongs to the listing service.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.models.office import Office


async def get_office(db: AsyncSession, office_id: int) -> Optional[Office]:
    result = await db.execute(select(Office).where(Office.id == office_id))
    return result.scalar_one_or_none()
