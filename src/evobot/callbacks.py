"""Callback registration helpers."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

_CallbackT = TypeVar("_CallbackT", bound=Callable)


def register_callback(callbacks: list[_CallbackT], callback: _CallbackT) -> Callable[[], None]:
    """Append callback to callbacks. Returns unsubscribe callable."""
    callbacks.append(callback)

    def _unsub() -> None:
        if callback in callbacks:
            callbacks.remove(callback)

    return _unsub
