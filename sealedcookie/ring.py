"""Secret ring: the ordered collection of secrets used to seal and open tokens."""

import typing

from .errors import InvalidOptionError
from .utils import force_bytes
from .utils import ordinal

Secret = typing.Union[str, bytes]


class SecretRing:
    """Ordered, immutable collection of secrets allowing for secret rotation.

    The first secret is the only one used to sign or encrypt, and every secret
    is accepted to verify or decrypt, in order. New secrets should be added to the
    beginning of the ring, keeping old ones after it until tokens sealed with them
    are no longer in use.

    An empty ring is valid, and means that tokens are not secured at all.

    Example:
        >>> ring = SecretRing(['the newest secret', 'a retired secret'])
        >>> ring.signing_secret
        b'the newest secret'
        >>> len(ring.verification_secrets)
        2

    """

    def __init__(
        self,
        secrets: typing.Union[Secret, typing.Iterable[Secret]] = (),
    ) -> None:
        """Create a ring from a secret or a sequence of secrets, newest first.

        No policy is enforced regarding length or entropy of the secrets: that is
        responsibility of the caller.

        Args:
            secrets (optional): A secret value, or a sequence of them ordered from
                newest to oldest. Strings are encoded as UTF-8.

        Raises:
            InvalidOptionError: A secret is empty, repeated, or is neither bytes
                nor string.
        """
        self._secrets: typing.Tuple[bytes, ...] = self._validate_secrets(secrets)

    @staticmethod
    def _validate_secrets(
        secrets: typing.Union[Secret, typing.Iterable[Secret]],
    ) -> typing.Tuple[bytes, ...]:
        """Validate the secrets and return them clean.

        Args:
            secrets: Secret value, or values, to validate.

        Returns:
            Cleaned secrets tuple.

        Raises:
            InvalidOptionError: A secret is invalid.
        """
        if isinstance(secrets, SecretRing):
            return secrets.verification_secrets

        dirty_secrets: typing.Iterable[Secret]
        if isinstance(secrets, (str, bytes)):
            dirty_secrets = [secrets]
        else:
            dirty_secrets = secrets

        cleaned: typing.List[bytes] = []
        for position, dirty in enumerate(dirty_secrets, start=1):
            try:
                secret = force_bytes(dirty)
            except TypeError as exc:
                raise InvalidOptionError(
                    f'the {ordinal(position)} secret must be bytes or str',
                ) from exc

            if not secret:
                raise InvalidOptionError(f'the {ordinal(position)} secret must have a value')

            if secret in cleaned:
                previous = cleaned.index(secret) + 1
                raise InvalidOptionError(
                    f'the {ordinal(position)} secret is the same as the '
                    + f'{ordinal(previous)} one',
                )

            cleaned.append(secret)

        return tuple(cleaned)

    @property
    def signing_secret(self) -> typing.Optional[bytes]:
        """Get the secret used to sign or encrypt (the newest one), if any."""
        return self._secrets[0] if self._secrets else None

    @property
    def verification_secrets(self) -> typing.Tuple[bytes, ...]:
        """Get all the secrets used to verify or decrypt, from newest to oldest."""
        return self._secrets

    def __len__(self) -> int:
        return len(self._secrets)

    def __iter__(self) -> typing.Iterator[bytes]:
        return iter(self._secrets)

    def __bool__(self) -> bool:
        return bool(self._secrets)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretRing):
            return NotImplemented

        return self._secrets == other._secrets

    def __hash__(self) -> int:
        return hash(self._secrets)

    def __repr__(self) -> str:
        # Never show secret material
        return f'{self.__class__.__name__}(<{len(self._secrets)} secret(s)>)'
