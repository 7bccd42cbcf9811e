import datetime
from collections.abc import Callable
from functools import wraps
from typing import overload

import pytz


def _wrapper[T, **P](func: Callable[P, T]) -> Callable[P, T]:
    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        kwargs["tzinfo"] = pytz.UTC
        return func(*args, **kwargs)

    return wrapper


datetime_utc = _wrapper(datetime.datetime)
"""
Return a datetime object but with UTC information from pytz.
"""


def from_timestamp(ts: float) -> datetime.datetime:
    """Return a UTC datetime object from a timestamp."""
    return datetime.datetime.fromtimestamp(ts, tz=pytz.UTC)


def utc_now() -> datetime.datetime:
    """Get the current time in UTC."""
    return datetime.datetime.now(tz=pytz.UTC)


@overload
def to_utc(dt: datetime.datetime) -> datetime.datetime: ...


@overload
def to_utc(dt: datetime.datetime | None) -> datetime.datetime | None: ...


def to_utc(dt: datetime.datetime | None) -> datetime.datetime | None:
    """This converts a naive datetime object that represents UTC into
    an aware datetime object.

    :return: datetime object, or None if `dt` was None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=pytz.UTC)
    if dt.tzinfo == pytz.UTC:
        return dt
    return dt.astimezone(pytz.UTC)


def strptime_utc(date_string: str, format: str) -> datetime.datetime:
    """Parse a string that describes a time but includes no timezone,
    into a timezone-aware datetime object set to UTC.

    :raise ValueError: If `format` expects timezone information to be
        present in `date_string`.
    """
    if "%Z" in format or "%z" in format:
        raise ValueError(f"Cannot use strptime_utc with timezone-aware format {format}")
    return to_utc(datetime.datetime.strptime(date_string, format))


def second_timestamp(dt: datetime.datetime) -> datetime.datetime:
    """Second resolution timestamp by truncating the microseconds from a datetime object.

    OAI-PMH datestamps are exchanged at second granularity.
    """
    return to_utc(dt).replace(microsecond=0)
