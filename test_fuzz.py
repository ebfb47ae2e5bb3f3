"""Test fuzzing script.

We are only testing helper, and main functions, not the actual fuzzing ones, because it
makes little sense to do so.
"""
import sys
from typing import Generator
from unittest import mock

import pytest

import fuzz  # noqa: I100, I202
from sealedcookie.codec import CodecMode  # noqa: I201
from sealedcookie.codec import TokenCodec
from sealedcookie.errors import DecodingError
from sealedcookie.errors import EncodingError
from sealedcookie.ring import SecretRing


@pytest.fixture
def mock_pythonfuzz() -> Generator[mock.MagicMock, None, None]:
    """Mock pythonfuzz package, getting a mocked PythonFuzz decorator."""
    module_name = 'pythonfuzz.main'
    old_module = sys.modules.get(module_name)
    module = mock.MagicMock()
    sys.modules[module_name] = module

    yield module

    if old_module is None:
        del sys.modules[module_name]
    else:
        sys.modules[module_name] = old_module


@pytest.mark.parametrize('mode', tuple(CodecMode))
def test_get_codec_happy_path(mode: CodecMode) -> None:
    """Test that get_codec works."""
    with mock.patch.object(fuzz, 'codecs_ctx') as mock_codecs_ctx:
        codec = fuzz.get_codec(mode, secret=b'secret')

    assert isinstance(codec, TokenCodec)
    assert mode is codec.mode
    assert SecretRing(b'secret') == codec.secrets
    mock_codecs_ctx.get.assert_not_called()


def test_get_codec_wrong_secret() -> None:
    """Test that get_codec gets/sets the global codecs collection."""
    mode = CodecMode.sign

    with mock.patch.object(fuzz, 'codecs_ctx') as mock_codecs_ctx:
        mock_codecs_ctx.get.return_value = {}

        codec = fuzz.get_codec(mode, secret=b'')

    assert SecretRing(fuzz.FALLBACK_SECRET) == codec.secrets
    mock_codecs_ctx.get.assert_called_once_with()
    mock_codecs_ctx.set.assert_called_once_with({
        f'TokenCodec_{mode.value}': codec,
    })

    with mock.patch.object(fuzz, 'codecs_ctx') as mock_codecs_ctx:
        mock_codecs_ctx.get.return_value = {
            f'TokenCodec_{mode.value}': codec,
        }

        new_codec = fuzz.get_codec(mode, secret=b'')

    assert new_codec is codec  # We got the stored one

    mock_codecs_ctx.get.assert_called_once_with()
    mock_codecs_ctx.set.assert_not_called()


def test_kbinterrupt_handler_happy_path(capsys: pytest.CaptureFixture) -> None:
    """Test that kbinterrupt_handler exits with given signal number."""
    with pytest.raises(SystemExit) as cm:  # pylint: disable=C0103
        fuzz.kbinterrupt_handler(2, None)

    assert 130 == cm.value.code
    assert '\nProcess interrupted!\n' == capsys.readouterr().out


def test_check_round_trip_happy_path() -> None:
    """Test check_round_trip happy path."""
    value = {'data': '1234'}
    encode = mock.MagicMock(return_value='abcd')
    decode = mock.MagicMock(return_value={'data': '1234'})

    fuzz.check_round_trip(value, encode=encode, decode=decode)

    encode.assert_called_once_with(value)
    decode.assert_called_once_with(encode.return_value)


def test_check_round_trip_value_mismatch() -> None:
    """Test that check_round_trip raises ValueError on value mismatch."""
    value = {'data': '1234'}
    encode = mock.MagicMock(return_value='abcd')
    decode = mock.MagicMock(return_value={'data': 'abcd'})

    with pytest.raises(ValueError, match='value mismatch'):
        fuzz.check_round_trip(value, encode=encode, decode=decode)


def test_check_round_trip_encoding_error() -> None:
    """Test that check_round_trip does nothing on EncodingError."""
    encode = mock.MagicMock(side_effect=EncodingError)
    decode = mock.MagicMock()

    fuzz.check_round_trip({'data': '1234'}, encode=encode, decode=decode)

    decode.assert_not_called()


def test_check_decoding() -> None:
    """Test that check_decoding allows decoding errors only."""
    fuzz.check_decoding('abcd', decode=mock.MagicMock(side_effect=DecodingError))
    fuzz.check_decoding('abcd', decode=mock.MagicMock(return_value={}))

    with pytest.raises(TypeError):
        fuzz.check_decoding('abcd', decode=mock.MagicMock(side_effect=TypeError))


def test_import_pythonfuzz_with_package(
    mock_pythonfuzz: mock.MagicMock,  # pylint: disable=W0621
) -> None:
    """Test that import_pythonfuzz imports pythonfuzz if it exists."""

    def func(_: bytes) -> None:
        """Test func."""

    with mock.patch.object(fuzz.importlib.util, 'find_spec') as mock_find_spec:
        pythonfuzz = fuzz.import_pythonfuzz()

    mock_find_spec.assert_called_once_with('pythonfuzz')

    pythonfuzz(func)
    mock_pythonfuzz.PythonFuzz.assert_called_once_with(func)


def test_import_pythonfuzz_without_package() -> None:
    """Test that import_pythonfuzz fails with a helpful message without the package."""
    with mock.patch.object(
            fuzz.importlib.util,
            'find_spec',
            return_value=None,
    ):
        with pytest.raises(ModuleNotFoundError, match='pythonfuzz can not be used if'):
            fuzz.import_pythonfuzz()


def test_fuzz_decorator() -> None:
    """Test that the fuzz decorator imports pythonfuzz when called."""

    def func(_: bytes) -> None:
        """Test func."""

    wrapped = fuzz.fuzz(func)

    with mock.patch.object(fuzz, 'import_pythonfuzz') as mock_import_pythonfuzz:
        wrapped()

    mock_import_pythonfuzz.return_value.assert_called_once_with(func)
    mock_import_pythonfuzz.return_value.return_value.assert_called_once_with()


def test_fuzzers_registry() -> None:
    """Test that every target is registered under its command line name."""
    assert {
        'tokencodec': fuzz.fuzz_tokencodec,
        'cookie': fuzz.fuzz_cookie,
    } == fuzz.FUZZERS


@pytest.mark.parametrize('target', ('test', 'TEST'))
def test_main_happy_path(target: str, capsys: pytest.CaptureFixture) -> None:
    """Test that main runs the chosen fuzzer, leaving only fuzzer args in argv."""
    fuzz_test = mock.MagicMock()
    argv = ['fuzz', target, 'corpus/', '--runs', '10']
    with mock.patch.object(fuzz.sys, 'argv', new=argv):
        with mock.patch.dict(fuzz.FUZZERS, {'test': fuzz_test}):
            fuzz.main()

    fuzz_test.assert_called_once_with()
    assert ['fuzz', 'corpus/', '--runs', '10'] == argv
    assert 'Fuzzing for test ...\n' == capsys.readouterr().out


def test_main_not_enough_args(capsys: pytest.CaptureFixture) -> None:
    """Test that main shows usage when args are not enough."""
    with mock.patch.object(fuzz.sys, 'argv', new=['fuzz']):
        with pytest.raises(SystemExit) as cm:  # pylint: disable=C0103
            fuzz.main()

    assert 1 == cm.value.code
    assert (
        'Usage: fuzz <target> [fuzzer args...]\n'
        'Where target is one of: tokencodec, cookie\n'
    ) == capsys.readouterr().out


def test_main_no_fuzzer(capsys: pytest.CaptureFixture) -> None:
    """Test that main shows error when there's no fuzzer."""
    with mock.patch.object(fuzz.sys, 'argv', new=['fuzz', 'test']):
        with pytest.raises(SystemExit) as cm:  # pylint: disable=C0103
            fuzz.main()

    assert 1 == cm.value.code
    assert (
        'Target can not be fuzzed: fuzzer not implemented for test\n'
    ) == capsys.readouterr().out
