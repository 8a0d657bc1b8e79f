"""Thread-safe FIFO queue used to pass messages between threads."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any

__all__ = ["MessageQueue"]


class MessageQueue:
    """Unbounded FIFO queue whose ``pop`` blocks until an item is available."""

    def __init__(self) -> None:
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()

    def push(self, item: Any) -> None:
        """Append ``item`` to the tail of the queue; ``None`` is rejected."""
        if item is None:
            raise ValueError("cannot push None onto a message queue")
        with self._cond:
            self._items.append(item)
            self._cond.notify()

    def peek(self) -> Any:
        """Return the head item without removing it, or ``None`` if empty."""
        with self._cond:
            return self._items[0] if self._items else None

    def pop(self, timeout: float | None = None) -> Any:
        """Remove and return the head item, waiting for one if necessary.

        Raises ``TimeoutError`` if ``timeout`` seconds pass with the queue
        still empty.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._items, timeout):
                raise TimeoutError("no message arrived in time")
            item = self._items.popleft()
            self._cond.notify()
            return item

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)