"""Common fixtures."""

import typing
from unittest import mock

import pytest

from .. import diagnostics


@pytest.fixture(autouse=True)
def emitted_warnings() -> typing.Generator[typing.Set[str], None, None]:
    """Isolate the process-wide record of emitted warnings for every test."""
    emitted: typing.Set[str] = set()

    with mock.patch.object(diagnostics, '_emitted', new=emitted):
        yield emitted
