"""Date parsing helpers for daily and monthly index series."""

from __future__ import annotations

from datetime import date, datetime

# Tried in order; the first format that parses wins.
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
)
_MONTH_FORMATS = (
    "%Y-%m",
    "%m-%Y",
)


def parse_date(value: str | date) -> date:
    """Parse ``value`` into a :class:`date`.

    Daily strings (``2024-03-15``, ``15-03-2024``, ``15/03/2024``) map to that
    day; monthly strings (``2024-03``, ``03-2024``) map to the first day of the
    month, which is how monthly series are keyed.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if "T" in raw:
        raw = raw.split("T", 1)[0]
    for fmt in _DATE_FORMATS + _MONTH_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unsupported date format: {value!r}")


def month_start(day: date) -> date:
    """Return the first day of the month containing ``day``."""

    return day.replace(day=1)


__all__ = ["month_start", "parse_date"]
