"""Batch lookup-or-create used when a student is enrolled."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.batches.service import resolve_batch
from app.core.exceptions import StorageError
from app.core.models import Batch
from app.db.transaction import transaction


@pytest.mark.asyncio
async def test_reuses_newest_active_batch(db_session: AsyncSession, make_course, make_batch) -> None:
    course_id = await make_course()
    await make_batch(course_id, "Older")
    newest = await make_batch(course_id, "Newer")
    await make_batch(course_id, "Closed", is_active=False)

    assert await resolve_batch(db_session, course_id) == newest


@pytest.mark.asyncio
async def test_never_returns_batch_of_other_course(db_session: AsyncSession, make_course, make_batch) -> None:
    course_a = await make_course("A")
    course_b = await make_course("B")
    other = await make_batch(course_a)

    batch_id = await resolve_batch(db_session, course_b, today=date(2024, 5, 1))
    await db_session.commit()

    assert batch_id != other
    course_of_batch = (
        await db_session.execute(select(Batch.course_id).where(Batch.batch_id == batch_id))
    ).scalar_one()
    assert course_of_batch == course_b


@pytest.mark.asyncio
async def test_creates_three_month_batch_when_none_active(
    db_session: AsyncSession, make_course, make_batch, count_rows
) -> None:
    course_id = await make_course()
    await make_batch(course_id, "Closed", is_active=False)

    batch_id = await resolve_batch(db_session, course_id, today=date(2024, 11, 30))
    await db_session.commit()

    row = (
        await db_session.execute(
            select(Batch.batch_name, Batch.start_date, Batch.end_date, Batch.is_active).where(
                Batch.batch_id == batch_id
            )
        )
    ).one()
    assert row.batch_name == f"Batch for Course {course_id} - 2024-11-30"
    assert row.start_date == date(2024, 11, 30)
    assert row.end_date == date(2025, 2, 28)
    assert row.is_active is True
    assert await count_rows(Batch, Batch.course_id == course_id) == 2


@pytest.mark.asyncio
async def test_unknown_course_is_storage_error(db_session: AsyncSession, count_rows) -> None:
    with pytest.raises(StorageError):
        async with transaction(db_session):
            await resolve_batch(db_session, 9999)
    assert await count_rows(Batch) == 0
