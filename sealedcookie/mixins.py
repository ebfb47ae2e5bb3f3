"""Mixins: abstract classes that provide certain restricted functionality.

They work as a building block for other classes.
"""

import typing
from abc import ABC
from collections.abc import Mapping
from datetime import datetime

from .errors import SerializationError
from .errors import UnserializationError
from .interfaces import SerializerInterface
from .serializers import JSONSerializer
from .utils import get_current_time
from .utils import timestamp_to_aware_datetime

ISSUED_AT_CLAIM: typing.Final[str] = 'iat'


class ClaimsMixin(ABC):
    """Claims mixin.

    Frames values as token claims for a subclass: values are mappings that get
    serialized along with an issued-at claim, which is split from them when the
    claims are loaded back.
    """

    def __init__(
        self,
        *args: typing.Any,
        serializer: typing.Type[SerializerInterface] = JSONSerializer,
        **kwargs: typing.Any,
    ) -> None:  # noqa: D417
        """Add claims framing capabilities.

        Args:
            *args: Additional positional arguments.

        Keyword Args:
            serializer (optional): Serializer class to use for the claims (defaults
                to a JSON serializer).
            **kwargs: Additional keyword only arguments.
        """
        self._serializer = serializer()

        super().__init__(*args, **kwargs)

    def _dump_claims(self, value: typing.Any) -> bytes:
        """Build the claims for given value, and serialize them.

        Args:
            value: A mapping to use as claims.

        Returns:
            Serialized claims.

        Raises:
            SerializationError: The value is not a mapping, uses a reserved claim,
                or can't be serialized.
        """
        if not isinstance(value, Mapping):
            raise SerializationError('value must be a mapping to be used as token claims')

        if ISSUED_AT_CLAIM in value:
            raise SerializationError(f'the "{ISSUED_AT_CLAIM}" claim is reserved')

        claims = {**value, ISSUED_AT_CLAIM: int(get_current_time())}

        try:
            return self._serializer.serialize(claims)
        except Exception as exc:
            raise SerializationError('value can not be serialized as token claims') from exc

    def _load_claims(
        self,
        payload: bytes,
    ) -> typing.Tuple[typing.Dict[str, typing.Any], typing.Optional[datetime]]:
        """Unserialize claims, and split the issued-at claim from the value.

        Args:
            payload: Serialized claims.

        Returns:
            The value, and the issue date if the claims had one.

        Raises:
            UnserializationError: The payload is not a valid claims object.
        """
        try:
            claims = self._serializer.unserialize(payload)
        except Exception as exc:
            raise UnserializationError('token claims can not be unserialized') from exc

        if not isinstance(claims, dict):
            raise UnserializationError('token claims must be an object')

        issued_at = claims.pop(ISSUED_AT_CLAIM, None)
        if issued_at is None:
            return claims, None

        if isinstance(issued_at, bool) or not isinstance(issued_at, (int, float)):
            raise UnserializationError(f'the "{ISSUED_AT_CLAIM}" claim must be a number')

        try:
            return claims, timestamp_to_aware_datetime(issued_at)
        except (OverflowError, OSError, ValueError) as exc:
            raise UnserializationError(f'the "{ISSUED_AT_CLAIM}" claim is out of range') from exc
