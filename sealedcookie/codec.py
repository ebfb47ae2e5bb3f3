"""Codec: encode values into compact tokens, and decode them back."""

import logging
import typing
from datetime import datetime
from enum import Enum

from .errors import DecodingError
from .errors import InvalidOptionError
from .errors import InvalidTokenError
from .formats import EncryptedFormat
from .formats import SignedFormat
from .formats import UnsecuredFormat
from .interfaces import SerializerInterface
from .interfaces import TokenFormatInterface
from .kdf import DEFAULT_ITERATIONS
from .kdf import MAX_ITERATIONS
from .kdf import MIN_ITERATIONS
from .mixins import ClaimsMixin
from .ring import Secret
from .ring import SecretRing
from .serializers import JSONSerializer

LOGGER = logging.getLogger(__name__)

EMPTY: typing.Final[str] = ''
"""Sentinel value meaning "no value": it is never encoded nor decoded."""

Secrets = typing.Union[Secret, typing.Iterable[Secret]]


class CodecMode(str, Enum):
    """Codec mode choices, used when the codec has secrets."""

    sign = 'sign'
    encrypt = 'encrypt'


class DecodedToken(typing.NamedTuple):
    """Decoded token container."""

    value: typing.Any
    issued_at: typing.Optional[datetime]
    secret_position: typing.Optional[int]  # Index of the secret that opened the token

    @property
    def is_secured(self) -> bool:
        """Return True if the token was verified or decrypted with a secret."""
        return self.secret_position is not None


class TokenCodec(ClaimsMixin):
    """Turn values into opaque tokens, and back, with support for secret rotation.

    Without secrets, tokens are unsecured: anyone can read and forge them. With
    secrets, tokens are signed (integrity only, the value can be read by anyone)
    or encrypted (integrity and confidentiality), using the first secret. Every
    secret is tried in order when decoding.

    Example:
        >>> codec = TokenCodec(['the newest secret', 'a retired secret'])
        >>> token = codec.encode({'uid': 42})
        >>> codec.decode(token)
        {'uid': 42}

    Note:
        A token that can't be verified by any secret is decoded as an unsecured
        token, unless the codec is strict: this allows to read tokens issued before
        secrets were configured, but means that the decoded value can't be trusted
        unless `decode_parts` reports it as secured.
    """

    Modes = CodecMode  # Sugar to avoid having to import the enum

    def __init__(
        self,
        secrets: Secrets = (),
        *,
        mode: typing.Union[CodecMode, str] = CodecMode.sign,
        strict: bool = False,
        iterations: int = DEFAULT_ITERATIONS,
        serializer: typing.Type[SerializerInterface] = JSONSerializer,
    ) -> None:
        """Encode and decode values as compact tokens.

        Args:
            secrets (optional): Secret value, or sequence of secret values ordered
                from newest to oldest. The first one is used to sign or encrypt,
                and all of them are used to verify or decrypt, allowing secret
                rotation. Without secrets, tokens are unsecured.

        Keyword Args:
            mode (optional): Either sign (default) or encrypt tokens.
            strict (optional): Refuse tokens that can't be verified with any secret
                instead of decoding them as unsecured tokens (defaults to False).
            iterations (optional): PBKDF2 iteration count used to derive keys from
                secrets (defaults to 2048).
            serializer (optional): Serializer class to use for the token claims
                (defaults to a JSON serializer).

        Raises:
            InvalidOptionError: A parameter is invalid.
        """
        super().__init__(serializer=serializer)

        self._secrets: SecretRing = SecretRing(secrets)
        self._mode: CodecMode = self._validate_mode(mode)
        self._strict: bool = strict
        iterations = self._validate_iterations(iterations)

        self._unsecured_format = UnsecuredFormat()
        self._format: TokenFormatInterface
        if self._mode is CodecMode.encrypt:
            self._format = EncryptedFormat(iterations=iterations)
        else:
            self._format = SignedFormat(iterations=iterations)

    @staticmethod
    def _validate_mode(mode: typing.Union[CodecMode, str]) -> CodecMode:
        """Validate the mode choice.

        Args:
            mode: the mode choice to validate.

        Returns:
            A validated mode choice as CodecMode.

        Raises:
            InvalidOptionError: Invalid mode choice.
        """
        try:
            return CodecMode(mode)
        except ValueError:
            raise InvalidOptionError(
                f'invalid mode choice, must be one of: {", ".join(m for m in CodecMode)}',
            )

    @staticmethod
    def _validate_iterations(iterations: int) -> int:
        """Validate the PBKDF2 iteration count.

        Args:
            iterations: the iteration count to validate.

        Returns:
            The validated iteration count.

        Raises:
            InvalidOptionError: The iteration count is out of bounds.
        """
        if isinstance(iterations, bool) or not isinstance(iterations, int):
            raise InvalidOptionError('iterations must be an integer')

        if not MIN_ITERATIONS <= iterations <= MAX_ITERATIONS:
            raise InvalidOptionError(
                f'iterations must be between {MIN_ITERATIONS} and {MAX_ITERATIONS}',
            )

        return iterations

    @property
    def secrets(self) -> SecretRing:
        """Get the secret ring."""
        return self._secrets

    @property
    def mode(self) -> CodecMode:
        """Get the codec mode."""
        return self._mode

    @property
    def is_secured(self) -> bool:
        """Return True if this codec produces secured tokens (it has secrets)."""
        return bool(self._secrets)

    def encode(self, value: typing.Any) -> str:
        """Encode given value into a compact token.

        The empty string is returned as-is. Otherwise the value must be a mapping,
        which is used as the token claims along with an issued-at claim.

        Args:
            value: Value to encode.

        Returns:
            A compact token, or the empty string.

        Raises:
            SerializationError: Value can't be used as token claims.
        """
        if isinstance(value, str) and value == EMPTY:
            return EMPTY

        payload = self._dump_claims(value)

        secret = self._secrets.signing_secret
        if secret is None:
            return self._unsecured_format.seal(payload)

        return self._format.seal(payload, secret=secret)

    def decode_parts(self, token: str) -> DecodedToken:
        """Decode given token and return its value along with token information.

        Secrets are tried in order, and the first one that verifies or decrypts the
        token wins. If none does, the token is decoded as an unsecured token (see
        the class notes), unless this codec is strict.

        Args:
            token: Compact token to decode.

        Returns:
            A container with the value, the issue time and the position of the
            secret that verified the token (None if it wasn't verified).

        Raises:
            DecodingError: Token does not have the expected framing.
            UnserializationError: Token payload is not a valid claims object.
            InvalidTokenError: Token can't be verified with any secret and this
                codec is strict.
        """
        if not isinstance(token, str):
            raise DecodingError('token must be a string')

        if token == EMPTY:
            return DecodedToken(value=EMPTY, issued_at=None, secret_position=None)

        for position, secret in enumerate(self._secrets):
            try:
                value, issued_at = self._load_claims(self._format.unseal(token, secret=secret))
            except DecodingError:
                continue

            if position:
                LOGGER.debug('token opened with the retired secret at position %d', position)

            return DecodedToken(value=value, issued_at=issued_at, secret_position=position)

        if self._secrets:
            if self._strict:
                raise InvalidTokenError('token can not be verified with any of the secrets')

            LOGGER.debug('token can not be verified with any secret, decoding it unsecured')

        value, issued_at = self._load_claims(self._unsecured_format.unseal(token))

        return DecodedToken(value=value, issued_at=issued_at, secret_position=None)

    def decode(self, token: str) -> typing.Any:
        """Decode given token and return its value.

        The empty string is returned as-is.

        Args:
            token: Compact token to decode.

        Returns:
            The decoded value, or the empty string.

        Raises:
            DecodingError: Token does not have the expected framing.
            UnserializationError: Token payload is not a valid claims object.
            InvalidTokenError: Token can't be verified with any secret and this
                codec is strict.
        """
        return self.decode_parts(token).value


def encode(
    value: typing.Any,
    secrets: Secrets = (),
    mode: typing.Union[CodecMode, str] = CodecMode.sign,
) -> str:
    """Encode given value into a compact token using given secrets.

    See `TokenCodec.encode`.
    """
    return TokenCodec(secrets, mode=mode).encode(value)


def decode(
    token: str,
    secrets: Secrets = (),
    mode: typing.Union[CodecMode, str] = CodecMode.sign,
) -> typing.Any:
    """Decode given token into its value using given secrets.

    See `TokenCodec.decode`.
    """
    return TokenCodec(secrets, mode=mode).decode(token)
