"""Token-bucket rate limiting of handshake packets per source address."""

from __future__ import annotations

import ipaddress
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

PACKETS_PER_SECOND = 20
PACKETS_BURSTABLE = 5
GARBAGE_COLLECT_TIME = 1_000_000_000  # nanoseconds
PACKET_COST = 1_000_000_000 // PACKETS_PER_SECOND
MAX_TOKENS = PACKET_COST * PACKETS_BURSTABLE

_COLLECT_INTERVAL = 1.0  # seconds

IPLike = Union[str, bytes, int, ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass
class _Entry:
    last_time: int
    tokens: int


class Ratelimiter:
    """Allows a short burst per address, then a steady rate.

    ``time_now`` returns the current time in nanoseconds. Stale entries are
    collected by a background thread while the table is non-empty.
    """

    def __init__(self, time_now: Optional[Callable[[], int]] = None) -> None:
        self._time_now = time_now or time.monotonic_ns
        self._lock = threading.Lock()
        self._table: dict = {}
        self._stop = threading.Event()
        self._collector: Optional[threading.Thread] = None

    def __enter__(self) -> "Ratelimiter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Stop the background collector."""
        self._stop.set()

    def _sweep(self) -> bool:
        now = self._time_now()
        stale = [
            addr
            for addr, entry in self._table.items()
            if now - entry.last_time > GARBAGE_COLLECT_TIME
        ]
        for addr in stale:
            del self._table[addr]
        return not self._table

    def cleanup(self) -> bool:
        """Drop entries idle for over a second; report whether the table is empty."""
        with self._lock:
            return self._sweep()

    def _collect(self) -> None:
        while not self._stop.wait(_COLLECT_INTERVAL):
            with self._lock:
                if self._sweep():
                    self._collector = None
                    return
        with self._lock:
            self._collector = None

    def _start_collector(self) -> None:
        if self._collector is None and not self._stop.is_set():
            self._collector = threading.Thread(
                target=self._collect, name="ratelimiter-gc", daemon=True
            )
            self._collector.start()

    def allow(self, ip: IPLike) -> bool:
        """Report whether a packet from ``ip`` may be processed now."""
        addr = ipaddress.ip_address(ip)
        with self._lock:
            now = self._time_now()
            entry = self._table.get(addr)
            if entry is None:
                self._table[addr] = _Entry(now, MAX_TOKENS - PACKET_COST)
                self._start_collector()
                return True
            entry.tokens = min(entry.tokens + now - entry.last_time, MAX_TOKENS)
            entry.last_time = now
            if entry.tokens > PACKET_COST:
                entry.tokens -= PACKET_COST
                return True
            return False