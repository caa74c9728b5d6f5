"""Cancellable one-shot timers in the style of kernel timer lists."""

from __future__ import annotations

import threading
from typing import Callable, Optional


class Timer:
    """A one-shot timer that runs ``callback`` once its delay expires.

    ``mod`` arms or re-arms the timer, ``delete`` disarms it, and
    ``delete_sync`` also waits for a callback that is already running.
    Re-arming replaces any earlier schedule, so a superseded expiry never
    runs the callback.
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._modifying = threading.Lock()
        self._running = threading.RLock()
        self._pending = False
        self._generation = 0
        self._scheduled: Optional[threading.Timer] = None

    def _fire(self, generation: int) -> None:
        with self._running:
            with self._modifying:
                if not self._pending or generation != self._generation:
                    return
                self._pending = False
                self._scheduled = None
            self._callback()

    def _cancel_scheduled(self) -> None:
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None

    def mod(self, delay: float) -> None:
        """Arm the timer to expire ``delay`` seconds from now."""
        with self._modifying:
            self._cancel_scheduled()
            self._pending = True
            self._generation += 1
            scheduled = threading.Timer(
                max(delay, 0.0), self._fire, args=(self._generation,)
            )
            scheduled.daemon = True
            self._scheduled = scheduled
            scheduled.start()

    def delete(self) -> None:
        """Disarm the timer without waiting for a running callback."""
        with self._modifying:
            self._pending = False
            self._generation += 1
            self._cancel_scheduled()

    def delete_sync(self) -> None:
        """Disarm the timer and wait until no callback is running."""
        self.delete()
        with self._running:
            self.delete()

    def is_pending(self) -> bool:
        """Report whether the timer is armed and has not yet fired."""
        with self._modifying:
            return self._pending