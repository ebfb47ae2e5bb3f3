"""Miscellaneous utilities: conversions, Base 64 URL-safe, and time handling."""

import base64
import binascii
import re
import typing as t
from datetime import datetime
from datetime import timezone
from email.utils import format_datetime
from time import time

_B64_URLSAFE_RE = re.compile(rb'[A-Za-z0-9_-]*')
_ORDINAL_SUFFIXES = {1: 'st', 2: 'nd', 3: 'rd'}


def force_bytes(value: t.Union[str, bytes]) -> bytes:
    """Get given value as bytes, encoding strings as UTF-8.

    Raises:
        TypeError: Value is neither bytes nor string.
    """
    if isinstance(value, str):
        return value.encode('utf-8')

    if not isinstance(value, bytes):
        raise TypeError('value must be bytes or str')

    return value


def b64encode(data: bytes) -> bytes:
    """Encode data as Base 64 URL-safe with no padding, as JOSE segments are."""
    return base64.urlsafe_b64encode(data).rstrip(b'=')


def b64decode(data: bytes) -> bytes:
    """Decode a Base 64 URL-safe JOSE segment.

    Padding, whitespace and characters outside the URL-safe alphabet are rejected.

    Args:
        data: Segment to decode.

    Returns:
        Original data.

    Raises:
        binascii.Error: Data is not valid Base 64 URL-safe.
    """
    if not _B64_URLSAFE_RE.fullmatch(data):
        raise binascii.Error('data is not valid Base 64 URL-safe')

    return base64.urlsafe_b64decode(data + (b'=' * (-len(data) % 4)))


def timestamp_to_aware_datetime(timestamp: t.Union[int, float]) -> datetime:
    """Convert a UNIX timestamp into an aware datetime in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def http_date(value: datetime) -> str:
    """Format a datetime as an HTTP date, as used by the cookie `Expires` attribute.

    Naive datetimes are considered to be in UTC.

    Args:
        value: Datetime to format.

    Returns:
        The formatted date, such as `Wed, 21 Oct 2015 07:28:00 GMT`.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def ordinal(number: int) -> str:
    """Spell a position as an ordinal number, such as `1st` or `12th`.

    Examples:
        >>> ordinal(2)
        '2nd'
        >>> ordinal(11)
        '11th'
    """
    if number % 100 in (11, 12, 13):
        return f'{number}th'

    return f'{number}{_ORDINAL_SUFFIXES.get(number % 10, "th")}'


def get_current_time() -> float:
    """Return the current time in seconds since the Epoch."""
    return time()
