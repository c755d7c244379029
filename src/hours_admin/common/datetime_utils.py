from __future__ import annotations

from datetime import date, datetime

from ..core.constants import DISPLAY_DATE_FORMAT, ISO_DATE_FORMAT
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip(), ISO_DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def display_to_iso(value: str) -> str:
    """Convert a DD.MM.YYYY date typed in the filters into YYYY-MM-DD."""
    try:
        parsed = datetime.strptime(value.strip(), DISPLAY_DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date {value!r} (expected DD.MM.YYYY)")
    return parsed.strftime(ISO_DATE_FORMAT)


def first_day_of_month(today: date) -> date:
    return today.replace(day=1)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
