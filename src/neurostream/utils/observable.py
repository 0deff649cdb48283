"""
Observer support for models that publish state changes.

Observers are plain callables taking the observable as their only argument.
They are invoked synchronously on the thread that changed the state, so they
should return quickly.
"""

import logging
from typing import Callable, List

from .validation import require_not_none

logger = logging.getLogger(__name__)

Observer = Callable[["Observable"], None]


class Observable:
    """Mix-in keeping an ordered list of observer callbacks."""

    def __init__(self) -> None:
        self._observers: List[Observer] = []

    def add_observer(self, observer: Observer) -> None:
        """Register ``observer``; registering the same callable twice is a no-op."""
        require_not_none(observer, "observer")
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        """Unregister ``observer`` if present."""
        require_not_none(observer, "observer")
        if observer in self._observers:
            self._observers.remove(observer)
        else:
            logger.debug(f"Observer {observer!r} was not registered")

    def notify_observers(self) -> None:
        """Invoke every registered observer with this object."""
        for observer in list(self._observers):
            observer(self)

    @property
    def observer_count(self) -> int:
        return len(self._observers)
