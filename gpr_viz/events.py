"""
Event subscription primitive shared by views, store and controllers.

Each component exposes one EventHook per event kind (e.g.
``slice_view.viewport_changed``) instead of a single assignable callback
slot, so any number of listeners can subscribe and later detach.
"""

import logging
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class EventHook(Generic[T]):
    """Ordered list of subscribers for one event kind.

    Subscribers run synchronously, in subscription order, on emit().
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Callable[[T], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, payload: T) -> None:
        # Copy so a subscriber may unsubscribe itself while running
        for callback in list(self._subscribers):
            callback(payload)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        return f"EventHook({self.name!r}, subscribers={len(self._subscribers)})"
