"""
Account username/email generation for new students.

Candidates are probed against the accounts table and suffixed 1, 2, 3, ... until free.
Nothing is locked: two concurrent requests can pick the same candidate, in which case the
account insert fails on the unique constraint and the request's transaction rolls back.
"""

import re
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.models import Account


async def _username_taken(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(Account.account_id).where(Account.username == username).limit(1))
    return result.first() is not None


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(Account.account_id).where(Account.email == email).limit(1))
    return result.first() is not None


def build_base_username(first_name: str, middle_name: Optional[str], last_name: str) -> str:
    """'Juan', 'de la', 'Cruz' -> 'juandelacruz'. Falls back to user<epoch-ms> when all names are blank."""
    base = re.sub(r"\s+", "", f"{first_name or ''}{middle_name or ''}{last_name or ''}").lower()
    return base or f"user{int(time.time() * 1000)}"


async def generate_username(
    db: AsyncSession,
    first_name: str,
    middle_name: Optional[str],
    last_name: str,
) -> str:
    base = build_base_username(first_name, middle_name, last_name)
    candidate = base
    suffix = 0
    while await _username_taken(db, candidate):
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


async def generate_email(
    db: AsyncSession,
    username: str,
    requested: Optional[str] = None,
    domain: Optional[str] = None,
) -> str:
    """Requested email or <username>@placeholder domain; on collision the suffix goes before '@'."""
    email = (requested or "").strip() or f"{username}@{domain or settings.placeholder_email_domain}"
    local, _, host = email.rpartition("@")
    candidate = email
    suffix = 0
    while await _email_taken(db, candidate):
        suffix += 1
        candidate = f"{local}{suffix}@{host}"
    return candidate
