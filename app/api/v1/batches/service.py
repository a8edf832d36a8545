import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dates import add_months
from app.core.models import Batch

logger = logging.getLogger(__name__)


async def get_active_batch_id(db: AsyncSession, course_id: int) -> Optional[int]:
    """Newest active batch of the course, if any."""
    result = await db.execute(
        select(Batch.batch_id)
        .where(Batch.course_id == course_id, Batch.is_active.is_(True))
        .order_by(Batch.created_at.desc(), Batch.batch_id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_batch(db: AsyncSession, course_id: int, today: Optional[date] = None) -> int:
    """
    Batch a newly enrolled student joins: the newest active batch of the course, else a new
    batch starting today and lasting DEFAULT_BATCH_MONTHS.
    Never returns a batch of another course. An unknown course_id surfaces as an IntegrityError
    on flush. Does not commit.
    """
    batch_id = await get_active_batch_id(db, course_id)
    if batch_id is not None:
        return batch_id

    today = today or date.today()
    batch = Batch(
        course_id=course_id,
        batch_name=f"Batch for Course {course_id} - {today.isoformat()}",
        start_date=today,
        end_date=add_months(today, settings.default_batch_months),
        is_active=True,
    )
    db.add(batch)
    await db.flush()
    logger.info("Opened batch %s for course %s (%s to %s)", batch.batch_id, course_id, batch.start_date, batch.end_date)
    return batch.batch_id
