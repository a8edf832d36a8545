"""Date helpers: calendar age and month arithmetic."""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole years between birth_date and today; None when birth_date is missing."""
    if birth_date is None:
        return None
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def add_months(day: date, months: int) -> date:
    """Same day `months` later, clamped to the end of the target month (Nov 30 + 3 -> Feb 28/29)."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def utcnow() -> datetime:
    """Timezone-aware current UTC time, used for created_at / updated_at columns."""
    return datetime.now(timezone.utc)
