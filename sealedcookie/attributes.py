"""Cookie attributes: options, and `Cookie`/`Set-Cookie` header handling.

`Cookie` headers are split pair by pair. `Set-Cookie` headers are built with the
standard library `http.cookies.Morsel`, adapted to the options of this package.
"""

import math
import re
import typing
from datetime import datetime
from http.cookies import CookieError
from http.cookies import Morsel
from urllib.parse import quote
from urllib.parse import unquote

from .errors import EncodingError
from .errors import InvalidOptionError
from .utils import http_date

SAMESITE_CHOICES: typing.Final[typing.FrozenSet[str]] = frozenset(('lax', 'strict', 'none'))
# Keeps now + max_age well within the range of datetime
MAX_AGE_LIMIT: typing.Final[int] = 400 * 365 * 24 * 60 * 60

# RFC 6265 cookie-octet
_COOKIE_VALUE_RE = re.compile(r'[\x21\x23-\x2B\x2D-\x3A\x3C-\x5B\x5D-\x7E]*')
_ATTRIBUTE_VALUE_RE = re.compile(r'[\x20-\x3A\x3C-\x7E]+')

Codec = typing.Callable[[str], str]


def encode_value(value: str) -> str:
    """Percent-encode a cookie value (the default value encoder)."""
    return quote(value, safe='')


def decode_value(value: str) -> str:
    """Percent-decode a cookie value (the default value decoder)."""
    return unquote(value)


class CookieOptions(typing.NamedTuple):
    """Cookie attributes and value codecs.

    Fields left as None are unset: they are not serialized, and they don't
    override other options when merging.
    """

    path: typing.Optional[str] = None
    domain: typing.Optional[str] = None
    expires: typing.Optional[datetime] = None
    max_age: typing.Union[None, int, float] = None  # In seconds
    secure: typing.Optional[bool] = None
    httponly: typing.Optional[bool] = None
    samesite: typing.Optional[str] = None
    encode: typing.Optional[Codec] = None
    decode: typing.Optional[Codec] = None

    @classmethod
    def from_attributes(cls, attributes: typing.Mapping[str, typing.Any]) -> 'CookieOptions':
        """Create options from a mapping of attributes, validating them.

        Args:
            attributes: Cookie attributes by field name.

        Returns:
            Validated options.

        Raises:
            InvalidOptionError: An attribute is unknown or has an invalid value.
        """
        unknown = set(attributes).difference(cls._fields)
        if unknown:
            raise InvalidOptionError(f'unknown cookie attributes: {", ".join(sorted(unknown))}')

        options = cls(**attributes)
        options.validate()

        return options

    def validate(self) -> None:
        """Validate every set option.

        Raises:
            InvalidOptionError: An option has an invalid value.
        """
        for field in ('path', 'domain'):
            value = getattr(self, field)
            if value is None:
                continue

            if not isinstance(value, str) or not _ATTRIBUTE_VALUE_RE.fullmatch(value):
                raise InvalidOptionError(f'the {field} attribute is invalid')

        if self.expires is not None and not isinstance(self.expires, datetime):
            raise InvalidOptionError('the expires attribute must be a datetime')

        if self.max_age is not None and (
            isinstance(self.max_age, bool) or not isinstance(self.max_age, (int, float))
            or not math.isfinite(self.max_age)
        ):
            raise InvalidOptionError('the max_age attribute must be a number of seconds')

        if self.max_age is not None and abs(self.max_age) > MAX_AGE_LIMIT:
            raise InvalidOptionError(
                f'the max_age attribute must be at most {MAX_AGE_LIMIT} seconds in absolute value',
            )

        if self.samesite is not None and (
            not isinstance(self.samesite, str) or self.samesite.lower() not in SAMESITE_CHOICES
        ):
            raise InvalidOptionError(
                f'the samesite attribute must be one of: {", ".join(sorted(SAMESITE_CHOICES))}',
            )

        for field in ('encode', 'decode'):
            value = getattr(self, field)
            if value is not None and not callable(value):
                raise InvalidOptionError(f'the {field} option must be callable')

    def merge(self, overrides: typing.Optional['CookieOptions']) -> 'CookieOptions':
        """Return new options where every set field of the overrides wins.

        Args:
            overrides: Options that take precedence, field by field.

        Returns:
            Merged options.
        """
        if overrides is None:
            return self

        return self._replace(**{
            field: value
            for field, value in overrides._asdict().items()
            if value is not None
        })


def parse_cookies(
    header: str,
    *,
    decode: typing.Optional[Codec] = None,
) -> typing.Dict[str, str]:
    """Parse a `Cookie` header into a mapping of cookie names and values.

    Every `name=value` pair is read on its own, so a malformed pair doesn't hide
    the others: pairs without `=` are skipped, and when a name is repeated the
    first occurrence wins. Surrounding whitespace is trimmed and a double quoted
    value is unquoted before decoding it.

    Args:
        header: `Cookie` header value.

    Keyword Args:
        decode (optional): Function to decode each value (defaults to percent
            decoding).

    Returns:
        Cookie values by name.
    """
    decode_ = decode or decode_value
    cookies: typing.Dict[str, str] = {}

    for pair in header.split(';'):
        name, sep, value = pair.partition('=')
        name = name.strip()
        if not sep or not name or name in cookies:
            continue

        value = value.strip()
        if len(value) > 1 and value[0] == value[-1] == '"':
            value = value[1:-1]

        cookies[name] = decode_(value)

    return cookies


def serialize_cookie(name: str, value: str, options: CookieOptions) -> str:
    """Serialize a cookie with its attributes as a `Set-Cookie` header value.

    Args:
        name: Cookie name.
        value: Cookie value.
        options: Cookie attributes.

    Returns:
        A `Set-Cookie` header value.

    Raises:
        EncodingError: The encoded value contains characters not allowed in a cookie.
        InvalidOptionError: The name is not a valid cookie name.
    """
    encode = options.encode or encode_value
    coded_value = encode(value)
    if not isinstance(coded_value, str) or not _COOKIE_VALUE_RE.fullmatch(coded_value):
        raise EncodingError('encoded cookie value contains invalid characters')

    morsel: Morsel = Morsel()
    try:
        morsel.set(name, value, coded_value)
    except CookieError as exc:
        raise InvalidOptionError(f'invalid cookie name: {name!r}') from exc

    if options.path:
        morsel['path'] = options.path
    if options.domain:
        morsel['domain'] = options.domain
    if options.expires is not None:
        morsel['expires'] = http_date(options.expires)
    if options.max_age is not None:
        morsel['max-age'] = math.floor(options.max_age)
    if options.secure:
        morsel['secure'] = True
    if options.httponly:
        morsel['httponly'] = True
    if options.samesite:
        morsel['samesite'] = options.samesite.capitalize()

    return morsel.OutputString()
