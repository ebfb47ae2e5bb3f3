"""Cookies: logical containers for HTTP cookies whose values are sealed tokens."""

import typing
from datetime import datetime
from datetime import timedelta

from .attributes import CookieOptions
from .attributes import parse_cookies
from .attributes import serialize_cookie
from .codec import EMPTY
from .codec import CodecMode
from .codec import Secrets
from .codec import TokenCodec
from .diagnostics import warn_once
from .errors import InvalidOptionError
from .utils import get_current_time
from .utils import timestamp_to_aware_datetime

EXPIRES_WARNING: typing.Final[str] = (
    'The "{name}" cookie has an "expires" attribute set. This will cause every '
    + 'serialized cookie to expire at that same fixed date. Instead, you should set '
    + 'the "max_age" attribute, or the "expires" attribute when serializing the '
    + 'cookie: `cookie.serialize(value, expires=...)`.'
)


class Cookie:
    """A HTTP cookie.

    A Cookie is a logical container for metadata about a HTTP cookie: its name and
    attributes. It doesn't contain a value. Instead, it has `parse()` and
    `serialize()` methods that allow a single instance to be reused for parsing and
    encoding multiple different values, sealing them as tokens.

    Example:
        >>> cookie = Cookie('session', secrets=['the newest secret'], httponly=True)
        >>> header = cookie.serialize({'uid': 42})
        >>> # Send `header` as a `Set-Cookie` header, and when the browser sends it
        >>> # back in the `Cookie` header, parse it to recover the value
        >>> cookie.parse(request_headers.get('Cookie'))
        {'uid': 42}

    """

    DEFAULT_OPTIONS: CookieOptions = CookieOptions(path='/', samesite='lax')
    """Options used unless given otherwise during instantiation."""

    def __init__(
        self,
        name: str,
        *,
        secrets: Secrets = (),
        encrypt: bool = False,
        strict: bool = False,
        **attributes: typing.Any,
    ) -> None:
        """Create a cookie container.

        Args:
            name: Name of the cookie, used in the `Cookie` and `Set-Cookie` headers.

        Keyword Args:
            secrets (optional): Secret value, or sequence of secret values ordered
                from newest to oldest, used to sign or encrypt the cookie value. The
                first one is used to seal values, and all of them are used to open
                them, so new secrets should be added to the beginning. Without
                secrets, values are not secured at all.
            encrypt (optional): Encrypt values instead of only signing them, when
                there are secrets (defaults to False).
            strict (optional): Refuse values that can't be verified with any secret
                instead of reading them unsecured (defaults to False).
            **attributes: Cookie attributes, see `CookieOptions`: path (defaults to
                "/"), domain, expires, max_age, secure, httponly, samesite (defaults
                to "lax"), encode and decode.

        Raises:
            InvalidOptionError: The name, the secrets or an attribute is invalid.
        """
        self._name: str = self._validate_name(name)
        self._options: CookieOptions = self.DEFAULT_OPTIONS.merge(
            CookieOptions.from_attributes(attributes),
        )
        self._codec = TokenCodec(
            secrets,
            mode=CodecMode.encrypt if encrypt else CodecMode.sign,
            strict=strict,
        )

        warn_once(self._options.expires is None, EXPIRES_WARNING.format(name=name))

    @staticmethod
    def _validate_name(name: str) -> str:
        """Validate the cookie name and return it clean.

        Args:
            name: Cookie name to validate.

        Returns:
            Validated name.

        Raises:
            InvalidOptionError: The name is empty or not a valid cookie name.
        """
        if not isinstance(name, str) or not name:
            raise InvalidOptionError('the cookie name must be a non-empty string')

        # Reuse the serializer checks: reserved attribute names and illegal chars
        serialize_cookie(name, EMPTY, CookieOptions())

        return name

    @property
    def name(self) -> str:
        """Get the name of the cookie, used in the `Cookie` and `Set-Cookie` headers."""
        return self._name

    @property
    def is_signed(self) -> bool:
        """Return True if this cookie uses one or more secrets for verification."""
        return self._codec.is_secured

    @property
    def is_encrypted(self) -> bool:
        """Return True if this cookie encrypts its values."""
        return self.is_signed and self._codec.mode is CodecMode.encrypt

    @property
    def expires(self) -> typing.Optional[datetime]:
        """Get the date this cookie expires, if any.

        When `max_age` is set, it takes precedence over `expires`, and the date is
        calculated at access time.
        """
        if self._options.max_age is not None:
            now = timestamp_to_aware_datetime(get_current_time())

            return now + timedelta(seconds=self._options.max_age)

        return self._options.expires

    @property
    def options(self) -> CookieOptions:
        """Get the cookie options."""
        return self._options

    @property
    def codec(self) -> TokenCodec:
        """Get the codec used for the cookie values."""
        return self._codec

    def parse(self, header: typing.Optional[str], **attributes: typing.Any) -> typing.Any:
        """Parse a `Cookie` header and return the value of this cookie.

        Args:
            header: `Cookie` header value, or None if the request has none.

        Keyword Args:
            **attributes: Options overriding this cookie options for this call
                (only `decode` is relevant when parsing).

        Returns:
            The decoded value, the empty string if the cookie is empty, or None if
            the cookie is not present.

        Raises:
            InvalidOptionError: An attribute is invalid.
            DecodingError: The cookie value is not a valid token.
        """
        if not header:
            return None

        options = self._options.merge(CookieOptions.from_attributes(attributes))
        cookies = parse_cookies(header, decode=options.decode)

        if self._name not in cookies:
            return None

        raw_value = cookies[self._name]
        if raw_value == EMPTY:
            return EMPTY

        return self._codec.decode(raw_value)

    def serialize(self, value: typing.Any, **attributes: typing.Any) -> str:
        """Serialize given value and return the `Set-Cookie` header value.

        Args:
            value: Value to seal in the cookie. The empty string is kept as-is,
                otherwise it must be a mapping.

        Keyword Args:
            **attributes: Attributes overriding this cookie options for this call.

        Returns:
            The `Set-Cookie` header value.

        Raises:
            InvalidOptionError: An attribute is invalid.
            EncodingError: The value can't be encoded.
        """
        options = self._options.merge(CookieOptions.from_attributes(attributes))
        if isinstance(value, str) and value == EMPTY:
            raw_value = EMPTY
        else:
            raw_value = self._codec.encode(value)

        return serialize_cookie(self._name, raw_value, options)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._name!r}, is_signed={self.is_signed})'


def is_cookie(obj: typing.Any) -> bool:
    """Return True if given object is a cookie container.

    Any object having a string `name`, a boolean `is_signed`, and `parse` and
    `serialize` methods is considered a cookie container.
    """
    return (
        obj is not None
        and isinstance(getattr(obj, 'name', None), str)
        and isinstance(getattr(obj, 'is_signed', None), bool)
        and callable(getattr(obj, 'parse', None))
        and callable(getattr(obj, 'serialize', None))
    )
