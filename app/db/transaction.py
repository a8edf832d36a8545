"""
Transaction scope for multi-table workflows.

Every workflow that writes runs its statements inside `transaction(db)`: the scope
commits once when the block finishes and rolls back once on any failure, so no
partial account/student/enrollment/assessment rows survive an error.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError, StorageError

logger = logging.getLogger(__name__)


CONSTRAINT_VIOLATION_MESSAGE = "Constraint violation: the data conflicts with an existing record"
STORAGE_FAILURE_MESSAGE = "Database operation failed"


# Driver text (constraint names, values) is logged only, never returned to the client.
def _storage_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, IntegrityError):
        return CONSTRAINT_VIOLATION_MESSAGE
    return STORAGE_FAILURE_MESSAGE


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    try:
        yield db
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Transaction rolled back after database error")
        raise StorageError(_storage_message(exc)) from exc
    except BaseException:
        # Includes request cancellation.
        await db.rollback()
        raise
