"""Object pool that can cap the number of objects handed out."""

from __future__ import annotations

import threading
from typing import Any, Callable, List


class WaitPool:
    """Recycles objects; ``get`` blocks while ``max_size`` objects are out.

    A ``max_size`` of 0 means unbounded.
    """

    def __init__(self, max_size: int, factory: Callable[[], Any]) -> None:
        if max_size < 0:
            raise ValueError("max_size must not be negative")
        self._max = max_size
        self._factory = factory
        self._free: List[Any] = []
        self._count = 0
        self._cond = threading.Condition()

    @property
    def max_size(self) -> int:
        return self._max

    @property
    def in_use(self) -> int:
        """Objects currently handed out (tracked only when bounded)."""
        with self._cond:
            return self._count

    def get(self) -> Any:
        """Take an object, waiting if the pool is at its limit."""
        with self._cond:
            if self._max:
                while self._count >= self._max:
                    self._cond.wait()
                self._count += 1
            if self._free:
                return self._free.pop()
        return self._factory()

    def put(self, item: Any) -> None:
        """Return an object to the pool."""
        with self._cond:
            self._free.append(item)
            if self._max == 0:
                return
            self._count -= 1
            self._cond.notify()