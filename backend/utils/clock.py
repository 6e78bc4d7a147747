# backend/utils/clock.py
from datetime import date, datetime, time, timezone
from typing import Callable, Optional, Union

# Services receive a clock callable so expiry and invoice dates can be pinned in tests
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the way it is stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[Union[datetime, date]]) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
