import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.models import Batch, CompetencyType, Course, Role
from app.db.session import Base, get_db


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite database per test, shared by all sessions via StaticPool."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        session.add(Role(role_id=1, role_name="student"))
        session.add(CompetencyType(type_name="Basic", passing_score=Decimal("75.00")))
        await session.commit()

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_course(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    async def _make_course(course_name: str = "Forex Fundamentals", course_id: Optional[int] = None) -> int:
        course = Course(course_name=course_name)
        if course_id is not None:
            course.course_id = course_id
        db_session.add(course)
        await db_session.commit()
        return course.course_id

    return _make_course


@pytest.fixture()
def make_batch(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    async def _make_batch(course_id: int, batch_name: str = "Cohort A", is_active: bool = True) -> int:
        batch = Batch(
            course_id=course_id,
            batch_name=batch_name,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 4, 1),
            is_active=is_active,
        )
        db_session.add(batch)
        await db_session.commit()
        return batch.batch_id

    return _make_batch


@pytest.fixture()
def count_rows(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Row count of a table, optionally filtered; used to assert that failed requests wrote nothing."""

    async def _count_rows(model, *criteria) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return (await db_session.execute(stmt)).scalar_one()

    return _count_rows
