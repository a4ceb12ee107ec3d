"""Clock helpers.

Services take a ``today`` callable so tests can pin the calendar date.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utcnow().date()
