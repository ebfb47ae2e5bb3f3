"""Interfaces: abstract classes to define serializers and token formats."""

import typing
from abc import ABC
from abc import abstractmethod


class SerializerInterface(ABC):
    """Claims serializer interface.

    A serializer turns token claims (and header objects) into bytes and back.
    """

    @abstractmethod
    def serialize(self, data: typing.Any, **kwargs: typing.Any) -> bytes:
        """Serialize given claims into bytes."""

    @abstractmethod
    def unserialize(self, data: bytes, **kwargs: typing.Any) -> typing.Any:
        """Unserialize bytes back into claims."""


class TokenFormatInterface(ABC):
    """Token format interface.

    Implement any compact token format inheriting from this class. A format seals
    a payload into a token using a single secret, and opens it back.
    """

    @property
    @abstractmethod
    def algorithm(self) -> str:
        """Get the algorithm identifier written in the token header."""

    @abstractmethod
    def seal(self, payload: bytes, *, secret: typing.Optional[bytes]) -> str:
        """Seal given payload into a compact token.

        Args:
            payload: Serialized claims to seal.

        Keyword Args:
            secret: Secret to derive the sealing key from, if the format uses one.

        Returns:
            A compact token.
        """

    @abstractmethod
    def unseal(self, token: str, *, secret: typing.Optional[bytes]) -> bytes:
        """Open a compact token and recover its payload.

        Args:
            token: Compact token to open.

        Keyword Args:
            secret: Secret to derive the opening key from, if the format uses one.

        Returns:
            Serialized claims.

        Raises:
            DecodingError: The token can't be opened with the given secret.
        """
