"""Errors: contains all errors and exceptions raised by this lib.

Note:
    Here's the hierarchy tree:

        SealedCookieError
            |
            |-- InvalidOptionError: given option value is out of bounds, has the wrong
            |                       format or type.
            |
            |-- DataError: generic data error.
                    |
                    |-- EncodingError: given value could not be framed into a token.
                    |       |
                    |       |-- SerializationError: given value could not be
                    |                               serialized as token claims.
                    |
                    |-- DecodingError: given token does not match the expected
                            |          framing.
                            |
                            |-- UnserializationError: the token payload is not a
                            |                         valid claims object.
                            |
                            |-- InvalidTokenError: the token could not be verified
                                                   nor decrypted.
"""


class SealedCookieError(Exception):
    """Base exception for all errors."""


class InvalidOptionError(SealedCookieError):
    """Invalid option error.

    Means that given value is out of bounds or has the wrong format or type for
    the option.
    """


class DataError(SealedCookieError):
    """Data error.

    Generic data error meaning that given data could not be processed correctly.

    All exceptions regarding data handling depends on this one, so you can safely
    catch it to deal with data errors (both tokens and values to be encoded).
    """


class EncodingError(DataError):
    """Encoding error.

    Generic error that occurred for a value that is being encoded into a token.

    All exceptions regarding encoding depends on this one, so you can safely catch
    it to deal with errors produced during `encode` or `serialize`.
    """


class DecodingError(DataError):
    """Decoding error.

    Means that given token could not be parsed into the expected segmented
    structure. All exceptions regarding decoding depends on this one, so you can
    safely catch it to deal with errors produced during `decode` or `parse`.
    """


class SerializationError(EncodingError):
    """Serialization error.

    Means that given value could not be serialized as token claims.
    """


class UnserializationError(DecodingError):
    """Unserialization error.

    Means that the token payload could not be unserialized into a claims object.
    """


class InvalidTokenError(DecodingError):
    """Invalid token error.

    Means that the token signature or authentication tag is not valid for a given
    secret, or that no secret could verify it when decoding strictly.
    """
