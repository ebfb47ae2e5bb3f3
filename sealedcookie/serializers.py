"""Serializers: classes that implement the SerializerInterface."""

import json
import typing

from .interfaces import SerializerInterface


def _reject_duplicates(
    pairs: typing.List[typing.Tuple[str, typing.Any]],
) -> typing.Dict[str, typing.Any]:
    obj: typing.Dict[str, typing.Any] = {}
    for name, value in pairs:
        if name in obj:
            raise ValueError(f'duplicate member name: {name!r}')
        obj[name] = value

    return obj


def _reject_constant(constant: str) -> typing.NoReturn:
    raise ValueError(f'{constant} is not valid JSON')


class JSONSerializer(SerializerInterface):
    """Strict JSON serializer for token claims and headers.

    Serialization uses the compact encoding. Unserialization rejects objects with
    repeated member names, and the non-standard `NaN` and `Infinity` constants,
    so that every token has a single unambiguous reading.
    """

    def serialize(self, data: typing.Any, **kwargs: typing.Any) -> bytes:
        """Serialize given data to compact JSON.

        Args:
            data: Data to serialize.

        Keyword Args:
            **kwargs: Additional arguments for `json.dumps`.

        Returns:
            Serialized data.

        Raises:
            ValueError: Data contains NaN or Infinity.
            TypeError: Data contains values that are not JSON serializable.
        """
        kwargs.setdefault('separators', (',', ':'))
        kwargs.setdefault('allow_nan', False)

        return json.dumps(data, **kwargs).encode()

    def unserialize(self, data: bytes, **kwargs: typing.Any) -> typing.Any:
        """Unserialize given JSON data.

        Args:
            data: Serialized data to unserialize.

        Keyword Args:
            **kwargs: Additional arguments for `json.loads`.

        Returns:
            Original data.

        Raises:
            ValueError: Data is not valid, unambiguous JSON.
        """
        kwargs.setdefault('object_pairs_hook', _reject_duplicates)
        kwargs.setdefault('parse_constant', _reject_constant)

        return json.loads(data, **kwargs)
