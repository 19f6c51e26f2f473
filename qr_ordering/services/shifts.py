"""
Cashier Shifts

A shift opens when a cashier logs in and closes when they log out.
Sales logs reference the shift they were recorded in.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.clock import utcnow
from qr_ordering.core.exceptions import NotFoundError
from qr_ordering.database import commit_or_conflict
from qr_ordering.models import Shift

logger = logging.getLogger(__name__)


async def open_shift(db: AsyncSession, cashier_id: str) -> Shift:
    shift = Shift(cashier_id=cashier_id, start_time=utcnow())
    db.add(shift)
    await commit_or_conflict(db, "Shift could not be opened")
    await db.refresh(shift)

    logger.info(f"Shift {shift.id} opened for cashier {cashier_id}")
    return shift


async def get_shift(db: AsyncSession, shift_id: str) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise NotFoundError(f"Shift {shift_id} not found")
    return shift


async def get_open_shift(db: AsyncSession, cashier_id: str) -> Optional[Shift]:
    """Most recently started open shift of the cashier, if any."""
    result = await db.execute(
        select(Shift)
        .where(Shift.cashier_id == cashier_id, Shift.end_time.is_(None))
        .order_by(Shift.start_time.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def close_shift(db: AsyncSession, shift_id: str) -> Shift:
    """Set the shift's end time. Closing an already closed shift changes nothing."""
    shift = await get_shift(db, shift_id)
    if not shift.is_open:
        return shift

    shift.end_time = utcnow()
    await commit_or_conflict(db, "Shift could not be closed")
    await db.refresh(shift)

    logger.info(f"Shift {shift.id} closed for cashier {shift.cashier_id}")
    return shift
