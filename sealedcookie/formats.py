"""Formats: classes that implement the TokenFormatInterface.

All of them produce compact tokens made of base64 URL-safe segments separated by
dots, compatible with the JWS and JWE compact serializations (RFC 7515, RFC 7516).
"""

import binascii
import os
import typing

import jwt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.keywrap import InvalidUnwrap
from cryptography.hazmat.primitives.keywrap import aes_key_unwrap
from cryptography.hazmat.primitives.keywrap import aes_key_wrap
from jwt import api_jws

from .errors import DecodingError
from .errors import InvalidOptionError
from .errors import InvalidTokenError
from .interfaces import TokenFormatInterface
from .kdf import DEFAULT_ITERATIONS
from .kdf import PBES2Parameters
from .kdf import derive_key
from .serializers import JSONSerializer
from .utils import b64decode
from .utils import b64encode

SEPARATOR: typing.Final[str] = '.'


def count_segments(token: str) -> int:
    """Count the dot separated segments of a compact token."""
    return token.count(SEPARATOR) + 1


def require_secret(secret: typing.Optional[bytes]) -> bytes:
    """Return given secret, raising InvalidOptionError if there is none."""
    if secret is None:
        raise InvalidOptionError('a secret is required')

    return secret


class UnsecuredFormat(TokenFormatInterface):
    """Unsecured JWS: no signature, no encryption.

    Tokens look like `<header>.<payload>.`, where the header declares the `none`
    algorithm. When opening a token, the header algorithm is not checked: the
    payload segment is read as-is from any three segments token.
    """

    @property
    def algorithm(self) -> str:
        """Get the algorithm identifier written in the token header."""
        return 'none'

    def seal(self, payload: bytes, *, secret: typing.Optional[bytes] = None) -> str:
        """Frame given payload into an unsecured token, ignoring the secret."""
        return api_jws.encode(payload, None, algorithm=self.algorithm)

    def unseal(self, token: str, *, secret: typing.Optional[bytes] = None) -> bytes:
        """Read the payload from a token without verifying anything.

        Args:
            token: Compact token to read.

        Keyword Args:
            secret: Ignored.

        Returns:
            Serialized claims.

        Raises:
            DecodingError: The token does not have the expected framing.
        """
        if count_segments(token) != 3:
            raise DecodingError('token must have exactly 3 segments')

        try:
            decoded = api_jws.decode_complete(token, options={'verify_signature': False})
        except jwt.exceptions.PyJWTError as exc:
            raise DecodingError('token can not be decoded') from exc

        return decoded['payload']


class SignedFormat(TokenFormatInterface):
    """JWS signed with HMAC-SHA512, using a key derived from the secret with PBES2.

    The PBKDF2 salt input and iteration count travel in the protected header
    (`p2s` and `p2c`), so every token is signed with a different key. The payload
    is readable by anyone: this format provides integrity only.
    """

    KEY_SIZE: int = 64

    def __init__(self, *, iterations: int = DEFAULT_ITERATIONS) -> None:
        """Sign and verify tokens.

        Keyword Args:
            iterations (optional): PBKDF2 iteration count used when signing.
        """
        self._iterations = iterations

    @property
    def algorithm(self) -> str:
        """Get the algorithm identifier written in the token header."""
        return 'HS512'

    def _derive_key(self, secret: bytes, parameters: PBES2Parameters) -> bytes:
        return derive_key(
            secret,
            algorithm=self.algorithm,
            parameters=parameters,
            length=self.KEY_SIZE,
        )

    def seal(self, payload: bytes, *, secret: typing.Optional[bytes]) -> str:
        """Sign given payload producing a JWS.

        Args:
            payload: Serialized claims to sign.

        Keyword Args:
            secret: Secret to derive the signing key from.

        Returns:
            A signed compact token.
        """
        secret = require_secret(secret)
        parameters = PBES2Parameters.generate(self._iterations)

        return api_jws.encode(
            payload,
            self._derive_key(secret, parameters),
            algorithm=self.algorithm,
            headers=parameters.to_header(),
        )

    def unseal(self, token: str, *, secret: typing.Optional[bytes]) -> bytes:
        """Verify a JWS and recover its payload.

        Args:
            token: Compact token to verify.

        Keyword Args:
            secret: Secret to derive the verification key from.

        Returns:
            Serialized claims.

        Raises:
            DecodingError: The token does not have the expected framing.
            InvalidTokenError: The signature is not valid.
        """
        secret = require_secret(secret)
        if count_segments(token) != 3:
            raise DecodingError('signed token must have exactly 3 segments')

        try:
            header = api_jws.get_unverified_header(token)
        except jwt.exceptions.PyJWTError as exc:
            raise DecodingError('token header can not be decoded') from exc

        parameters = PBES2Parameters.from_header(header)

        try:
            return api_jws.decode(
                token,
                self._derive_key(secret, parameters),
                algorithms=[self.algorithm],
            )
        except jwt.exceptions.PyJWTError as exc:
            raise InvalidTokenError('token signature is not valid') from exc


class EncryptedFormat(TokenFormatInterface):
    """JWE using PBES2-HS512+A256KW for key management and A256GCM for content.

    A random content encryption key is generated for every token, and wrapped with
    a key derived from the secret. The payload is encrypted and authenticated,
    along with the protected header.
    """

    CEK_SIZE: int = 32
    KEK_SIZE: int = 32
    IV_SIZE: int = 12
    TAG_SIZE: int = 16

    def __init__(self, *, iterations: int = DEFAULT_ITERATIONS) -> None:
        """Encrypt and decrypt tokens.

        Keyword Args:
            iterations (optional): PBKDF2 iteration count used when encrypting.
        """
        self._iterations = iterations
        self._header_serializer = JSONSerializer()

    @property
    def algorithm(self) -> str:
        """Get the key management algorithm identifier written in the token header."""
        return 'PBES2-HS512+A256KW'

    @property
    def encryption(self) -> str:
        """Get the content encryption algorithm identifier written in the token header."""
        return 'A256GCM'

    def _derive_key(self, secret: bytes, parameters: PBES2Parameters) -> bytes:
        return derive_key(
            secret,
            algorithm=self.algorithm,
            parameters=parameters,
            length=self.KEK_SIZE,
        )

    def seal(self, payload: bytes, *, secret: typing.Optional[bytes]) -> str:
        """Encrypt given payload producing a JWE.

        Args:
            payload: Serialized claims to encrypt.

        Keyword Args:
            secret: Secret to derive the key encryption key from.

        Returns:
            An encrypted compact token.
        """
        secret = require_secret(secret)
        parameters = PBES2Parameters.generate(self._iterations)
        header = {'alg': self.algorithm, 'enc': self.encryption, **parameters.to_header()}
        protected = b64encode(self._header_serializer.serialize(header))

        cek = AESGCM.generate_key(bit_length=self.CEK_SIZE * 8)
        encrypted_key = aes_key_wrap(self._derive_key(secret, parameters), cek)
        iv = os.urandom(self.IV_SIZE)
        sealed = AESGCM(cek).encrypt(iv, payload, protected)
        ciphertext, tag = sealed[:-self.TAG_SIZE], sealed[-self.TAG_SIZE:]

        segments = (
            protected,
            b64encode(encrypted_key),
            b64encode(iv),
            b64encode(ciphertext),
            b64encode(tag),
        )

        return SEPARATOR.join(segment.decode('ascii') for segment in segments)

    def _read_header(self, protected: bytes) -> typing.Dict[str, typing.Any]:
        """Decode the protected header and check its algorithms.

        Raises:
            InvalidTokenError: The header is invalid or declares other algorithms.
        """
        try:
            header = self._header_serializer.unserialize(b64decode(protected))
        except (binascii.Error, ValueError) as exc:
            raise InvalidTokenError('token header can not be decoded') from exc

        if not isinstance(header, dict):
            raise InvalidTokenError('token header must be an object')

        if header.get('alg') != self.algorithm or header.get('enc') != self.encryption:
            raise InvalidTokenError('token header declares unsupported algorithms')

        return header

    def unseal(self, token: str, *, secret: typing.Optional[bytes]) -> bytes:
        """Decrypt a JWE and recover its payload.

        Args:
            token: Compact token to decrypt.

        Keyword Args:
            secret: Secret to derive the key encryption key from.

        Returns:
            Serialized claims.

        Raises:
            DecodingError: The token does not have the expected framing.
            InvalidTokenError: The token can't be decrypted or authenticated.
        """
        secret = require_secret(secret)
        if count_segments(token) != 5:
            raise DecodingError('encrypted token must have exactly 5 segments')

        try:
            segments = [segment.encode('ascii') for segment in token.split(SEPARATOR)]
        except UnicodeEncodeError as exc:
            raise DecodingError('token must be ASCII') from exc

        protected = segments[0]
        header = self._read_header(protected)
        parameters = PBES2Parameters.from_header(header)

        try:
            encrypted_key, iv, ciphertext, tag = (b64decode(segment) for segment in segments[1:])
        except binascii.Error as exc:
            raise InvalidTokenError('token segments can not be decoded') from exc

        if len(iv) != self.IV_SIZE or len(tag) != self.TAG_SIZE:
            raise InvalidTokenError('token initialization vector or tag has the wrong size')

        try:
            cek = aes_key_unwrap(self._derive_key(secret, parameters), encrypted_key)
            return AESGCM(cek).decrypt(iv, ciphertext + tag, protected)
        except (InvalidUnwrap, InvalidTag, ValueError) as exc:
            raise InvalidTokenError('token can not be decrypted') from exc
