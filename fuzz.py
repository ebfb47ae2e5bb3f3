"""Fuzz the codec and cookies to search for vulnerabilities.

This module is intended to be run using `pythonfuzz`. See
https://gitlab.com/gitlab-org/security-products/analyzers/fuzzers/pythonfuzz

Note:
    Install `pythonfuzz` via:
        pip install \
            --extra-index-url https://gitlab.com/api/v4/projects/19904939/packages/pypi/simple \
            pythonfuzz

Usage:
    python fuzz.py <target> [fuzzer args...]

    where target is one of:
        - tokencodec
        - cookie

    and fuzzer args are pythonfuzz options.

Example:
    python fuzz.py tokencodec .fuzzed_tokencodec --runs 10000
"""

import importlib.util
import signal
import sys
from contextvars import ContextVar
from functools import wraps
from types import FrameType
from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional

from sealedcookie import Cookie
from sealedcookie import TokenCodec
from sealedcookie.codec import CodecMode
from sealedcookie.errors import DecodingError
from sealedcookie.errors import EncodingError
from sealedcookie.errors import InvalidOptionError
from sealedcookie.kdf import MIN_ITERATIONS

FALLBACK_SECRET = b's' * 8

# Global codecs collection to save on instantiation time
codecs_ctx: ContextVar[Dict[str, TokenCodec]] = ContextVar('codecs_ctx', default={})


def kbinterrupt_handler(signum: int, _: Optional[FrameType]) -> None:
    """Handle keyboard interrupt (CTRL+C)."""
    print()
    print('Process interrupted!')
    sys.exit(128 + signum)


def get_codec(mode: CodecMode, *, secret: bytes) -> TokenCodec:
    """Get a codec for the given mode and secret.

    If the secret is improper, then a generic one will be used, caching the codec in a
    context variable for the duration of the script.

    Args:
        mode: A mode from `CodecMode`.

    Keyword Args:
        secret: A secret.

    Returns:
        A codec instance.
    """
    try:
        return TokenCodec(secret, mode=mode, iterations=MIN_ITERATIONS)
    except InvalidOptionError:
        codecs = codecs_ctx.get()
        codec_name = f'{TokenCodec.__name__}_{mode.value}'

        try:
            codec = codecs[codec_name]
        except KeyError:
            codec = TokenCodec(FALLBACK_SECRET, mode=mode, iterations=MIN_ITERATIONS)
            codecs[codec_name] = codec
            codecs_ctx.set(codecs)

        return codec


def check_round_trip(
    value: Any,
    *,
    encode: Callable[[Any], str],
    decode: Callable[[str], Any],
) -> None:
    """Check that a value survives encoding and decoding with given functions."""
    try:
        encoded = encode(value)
    except EncodingError:
        return

    decoded = decode(encoded)
    if decoded != value:
        raise ValueError(f'value mismatch: original:{value!r} != decoded:{decoded!r}')


def check_decoding(data: str, *, decode: Callable[[str], Any]) -> None:
    """Check that decoding arbitrary data fails only with a decoding error."""
    try:
        decode(data)
    except DecodingError:
        return


def import_pythonfuzz() -> Any:
    """Import PythonFuzz.

    Raises:
        ModuleNotFoundError: pythonfuzz is not installed.

    Returns:
        The PythonFuzz decorator class.
    """
    if importlib.util.find_spec('pythonfuzz') is None:
        raise ModuleNotFoundError(
            'pythonfuzz can not be used if it is not installed: '
            + 'python3 -m pip install --extra-index-url '
            + 'https://gitlab.com/api/v4/projects/19904939/packages/pypi/simple '
            + 'pythonfuzz',
            name='pythonfuzz',
        )

    from pythonfuzz.main import PythonFuzz  # type: ignore  # pylint: disable=C0415

    return PythonFuzz


def fuzz(func: Callable[[bytes], None]) -> Callable[[], None]:
    """Fuzz given function with pythonfuzzer.

    This decorator defers importing PythonFuzz until the fuzzer is run.

    Returns:
        The decorated function.
    """

    @wraps(func)
    def inner() -> None:
        """Run pythonfuzzer."""
        pythonfuzz = import_pythonfuzz()

        pythonfuzz(func)()

    return inner


@fuzz
def fuzz_tokencodec(buf: bytes) -> None:  # pragma: nocover
    """Fuzz TokenCodec to search for vulnerabilities.

    Raises:
        ValueError: decoded value doesn't match original value.
    """
    text = buf.decode('utf-8', errors='replace')
    for mode in CodecMode:
        codec = get_codec(mode, secret=buf)

        check_decoding(text, decode=codec.decode)
        check_round_trip({'data': text}, encode=codec.encode, decode=codec.decode)


@fuzz
def fuzz_cookie(buf: bytes) -> None:  # pragma: nocover
    """Fuzz Cookie parsing to search for vulnerabilities.

    Raises:
        ValueError: parsed value doesn't match original value.
    """
    text = buf.decode('utf-8', errors='replace')
    for mode in CodecMode:
        codec = get_codec(mode, secret=buf)
        cookie = Cookie(
            'session',
            secrets=codec.secrets,
            encrypt=mode is CodecMode.encrypt,
        )

        check_decoding(text, decode=cookie.parse)
        check_decoding(f'session={text}', decode=cookie.parse)
        check_round_trip({'data': text}, encode=cookie.serialize, decode=cookie.parse)


FUZZERS: Dict[str, Callable[[], None]] = {
    'tokencodec': fuzz_tokencodec,
    'cookie': fuzz_cookie,
}


def main() -> None:
    """Run the fuzzer named in the first argument, passing it the remaining ones."""
    if len(sys.argv) < 2:
        print(f'Usage: {sys.argv[0]} <target> [fuzzer args...]')
        print('Where target is one of:', ', '.join(FUZZERS))
        sys.exit(1)

    target = sys.argv.pop(1).lower()  # pythonfuzz parses the rest of argv
    fuzzer = FUZZERS.get(target)
    if fuzzer is None:
        print('Target can not be fuzzed: fuzzer not implemented for', target)
        sys.exit(1)

    print('Fuzzing for', target, '...')
    fuzzer()


signal.signal(signal.SIGINT, kbinterrupt_handler)

if __name__ == '__main__':  # pragma: nocover
    main()
