"""
Seed script for reference rows the student workflows depend on.

This script:
1. Inserts the account roles (student role id must match STUDENT_ROLE_ID)
2. Inserts or updates the competency types and their passing scores

Run with: python -m app.db.seed_reference_data
"""
import asyncio
import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.models import CompetencyType, Role
from app.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

# (role_id, role_name)
ROLES: List[Tuple[int, str]] = [
    (1, "student"),
    (2, "admin"),
]

# (type_name, passing_score, description)
COMPETENCY_TYPES: List[Tuple[str, Decimal, str]] = [
    ("Basic", Decimal("75.00"), "Entry competency seeded at enrollment"),
    ("Intermediate", Decimal("80.00"), "Intermediate competency"),
    ("Advanced", Decimal("85.00"), "Advanced competency"),
]


async def seed_reference_data(db: AsyncSession) -> None:
    """Idempotent: existing rows are updated in place."""
    roles_created = 0
    for role_id, role_name in ROLES:
        existing = await db.get(Role, role_id)
        if existing:
            existing.role_name = role_name
        else:
            db.add(Role(role_id=role_id, role_name=role_name))
            roles_created += 1

    types_created = 0
    types_updated = 0
    for type_name, passing_score, description in COMPETENCY_TYPES:
        result = await db.execute(select(CompetencyType).where(CompetencyType.type_name == type_name))
        existing_type = result.scalar_one_or_none()
        if existing_type:
            existing_type.passing_score = passing_score
            existing_type.description = description
            types_updated += 1
        else:
            db.add(CompetencyType(type_name=type_name, passing_score=passing_score, description=description))
            types_created += 1

    await db.commit()
    logger.info("Roles created: %s (of %s)", roles_created, len(ROLES))
    logger.info("Competency types created: %s, updated: %s", types_created, types_updated)


async def main() -> None:
    configure_logging(settings.log_level)
    async with AsyncSessionLocal() as db:
        try:
            await seed_reference_data(db)
        except Exception:
            logger.exception("Error seeding reference data")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
