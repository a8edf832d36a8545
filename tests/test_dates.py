"""Unit tests for calendar age and month arithmetic."""

from datetime import date, timedelta, timezone

from app.core.dates import add_months, calculate_age, utcnow


def test_age_before_birthday_this_year() -> None:
    assert calculate_age(date(2000, 3, 15), date(2024, 3, 14)) == 23


def test_age_on_birthday() -> None:
    assert calculate_age(date(2000, 3, 15), date(2024, 3, 15)) == 24


def test_age_earlier_month_later_day() -> None:
    """Birthday month already passed even though the day-of-month is later."""
    assert calculate_age(date(1990, 1, 31), date(2024, 2, 1)) == 34


def test_age_missing_birth_date() -> None:
    assert calculate_age(None, date(2024, 1, 1)) is None


def test_age_born_today_is_zero() -> None:
    assert calculate_age(date(2024, 6, 1), date(2024, 6, 1)) == 0


def test_leap_day_birthday() -> None:
    assert calculate_age(date(2004, 2, 29), date(2023, 2, 28)) == 18
    assert calculate_age(date(2004, 2, 29), date(2023, 3, 1)) == 19


def test_age_defaults_to_today() -> None:
    born = date(date.today().year - 30, 1, 1)
    assert calculate_age(born) == 30


def test_add_months_simple() -> None:
    assert add_months(date(2024, 1, 15), 3) == date(2024, 4, 15)


def test_add_months_crosses_year() -> None:
    assert add_months(date(2024, 11, 10), 3) == date(2025, 2, 10)


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(date(2023, 11, 30), 3) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_utcnow_is_timezone_aware() -> None:
    now = utcnow()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)
    assert now.tzinfo == timezone.utc
