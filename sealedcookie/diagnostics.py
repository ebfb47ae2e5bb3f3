"""Diagnostics: warnings about misconfigurations, emitted once per process."""

import threading
import typing
import warnings


class CookieConfigurationWarning(UserWarning):
    """A cookie is configured in a way that is likely a mistake."""


_emitted: typing.Set[str] = set()
_lock = threading.Lock()


def warn_once(
    condition: typing.Any,
    message: str,
    *,
    category: typing.Type[Warning] = CookieConfigurationWarning,
    stacklevel: int = 3,
) -> bool:
    """Emit a warning with given message if the condition is falsy.

    Every distinct message is emitted at most once during the life of the process.

    Args:
        condition: The warning is emitted only if this is falsy.
        message: Message of the warning.

    Keyword Args:
        category (optional): Warning category (defaults to CookieConfigurationWarning).
        stacklevel (optional): Stack level of the warning, see `warnings.warn`
            (defaults to the caller of the caller of this function).

    Returns:
        True if the warning was emitted, False otherwise.
    """
    if condition:
        return False

    with _lock:
        if message in _emitted:
            return False

        _emitted.add(message)

    warnings.warn(message, category, stacklevel=stacklevel)

    return True
