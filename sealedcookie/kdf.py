"""Password based key derivation, following PBES2 from RFC 7518 (section 4.8).

These are not meant to be used directly, but otherwise through a token format.
"""

import binascii
import os
import typing

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import InvalidTokenError
from .utils import b64decode
from .utils import b64encode

SALT_SIZE: typing.Final[int] = 16
"""Size in bytes of the random salt input generated for every token."""

MIN_SALT_SIZE: typing.Final[int] = 8
"""Minimum salt input size accepted from a token header, as per RFC 7518."""

DEFAULT_ITERATIONS: typing.Final[int] = 2048
"""Default PBKDF2 iteration count."""

MIN_ITERATIONS: typing.Final[int] = 1000
"""Minimum PBKDF2 iteration count, as recommended by RFC 7518."""

MAX_ITERATIONS: typing.Final[int] = 10000
"""Maximum PBKDF2 iteration count accepted from a token header."""


class PBES2Parameters(typing.NamedTuple):
    """PBES2 parameters carried in a token protected header."""

    salt_input: bytes
    iterations: int

    @classmethod
    def generate(cls, iterations: int = DEFAULT_ITERATIONS) -> 'PBES2Parameters':
        """Generate new parameters with a pseudorandom salt input."""
        return cls(salt_input=os.urandom(SALT_SIZE), iterations=iterations)

    @classmethod
    def from_header(cls, header: typing.Mapping[str, typing.Any]) -> 'PBES2Parameters':
        """Read the parameters from a token header (`p2s` and `p2c`).

        Args:
            header: Token protected header.

        Returns:
            The parameters found in the header.

        Raises:
            InvalidTokenError: The parameters are missing or out of bounds.
        """
        p2s = header.get('p2s')
        p2c = header.get('p2c')

        if not isinstance(p2s, str) or not isinstance(p2c, int) or isinstance(p2c, bool):
            raise InvalidTokenError('the PBES2 parameters are missing or have the wrong type')

        if not MIN_ITERATIONS <= p2c <= MAX_ITERATIONS:
            raise InvalidTokenError(
                f'the PBES2 iteration count must be between {MIN_ITERATIONS} and '
                + f'{MAX_ITERATIONS}',
            )

        try:
            salt_input = b64decode(p2s.encode('ascii'))
        except (UnicodeEncodeError, binascii.Error) as exc:
            raise InvalidTokenError('the PBES2 salt input can not be decoded') from exc

        if len(salt_input) < MIN_SALT_SIZE:
            raise InvalidTokenError(
                f'the PBES2 salt input must be at least {MIN_SALT_SIZE} bytes long',
            )

        return cls(salt_input=salt_input, iterations=p2c)

    def to_header(self) -> typing.Dict[str, typing.Any]:
        """Get the parameters as token header fields (`p2s` and `p2c`)."""
        return {
            'p2s': b64encode(self.salt_input).decode('ascii'),
            'p2c': self.iterations,
        }


def derive_key(
    secret: bytes,
    *,
    algorithm: str,
    parameters: PBES2Parameters,
    length: int,
) -> bytes:
    """Derive a key from a secret using PBKDF2 with HMAC-SHA512.

    The salt is composed of the algorithm identifier, a null byte, and the salt
    input, so that keys derived for different algorithms are unrelated.

    Args:
        secret: Secret to derive the key from.

    Keyword Args:
        algorithm: Algorithm identifier the key is meant for.
        parameters: Salt input and iteration count.
        length: Desired key length in bytes.

    Returns:
        The derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=length,
        salt=algorithm.encode('utf-8') + b'\x00' + parameters.salt_input,
        iterations=parameters.iterations,
    )

    return kdf.derive(secret)
