"""Completion-callback routing for store calls."""

from __future__ import annotations

from typing import Any, Callable, Optional

Callback = Callable[[Optional[BaseException], Any], Any]


def complete(callback: Optional[Callback], operation: Callable[[], Any]) -> Any:
    """Run ``operation`` and report through ``callback`` when one is given.

    Without a callback the result is returned and errors propagate. With one,
    the callback receives ``(None, result)`` or ``(error, None)``; the error is
    not re-raised since the callback is the caller's error channel.
    """
    if callback is None:
        return operation()

    try:
        result = operation()
    except Exception as exc:
        callback(exc, None)
        return None

    callback(None, result)
    return result
