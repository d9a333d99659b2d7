"""Date/time parsing and UTC storage conversion."""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timezone

from .errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_storage_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime for the timezone-aware DateTime columns.

    Naive inputs are assumed to already be UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_storage_utc(value: datetime) -> datetime:
    """Attach UTC to a value read back from the store.

    SQLite hands back naive wall-clock UTC; PostgreSQL returns aware values.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(value: "str | date | None", *, field: str = "date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` value.

    A full ISO timestamp is accepted and reduced to its calendar date; any
    other trailing text is rejected.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"Missing {field}")
    raw = str(value).strip()
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        if len(raw) > 10 and raw[10] in "T ":
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise ValidationError(f"Malformed {field}: {value!r}") from exc
    raise ValidationError(f"Malformed {field}: {value!r}")


def parse_instant(value: "str | datetime | None") -> datetime:
    """Parse an ISO timestamp into an aware datetime; naive values are UTC."""

    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError(f"Malformed timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def add_months(start: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's length."""

    month = start.month - 1 + months
    year = start.year + month // 12
    month = month % 12 + 1
    day = min(start.day, monthrange(year, month)[1])
    return date(year, month, day)


def add_years(start: date, years: int) -> date:
    """Shift by calendar years; Feb 29 becomes Feb 28 in common years."""

    return add_months(start, 12 * years)
