"""TAI64N timestamps with whitened sub-second precision."""

from __future__ import annotations

import struct
import time
from datetime import datetime, timezone

TIMESTAMP_SIZE = 12
BASE = 0x400000000000000A
WHITENER_MASK = 0x1000000 - 1

_LAYOUT = struct.Struct(">QI")
_NS_PER_SECOND = 1_000_000_000


class Timestamp(bytes):
    """A 12-byte big-endian TAI64N label."""

    def __new__(cls, data: bytes = bytes(TIMESTAMP_SIZE)) -> "Timestamp":
        data = bytes(data)
        if len(data) != TIMESTAMP_SIZE:
            raise ValueError(
                f"timestamp must be {TIMESTAMP_SIZE} bytes, got {len(data)}"
            )
        return super().__new__(cls, data)

    @property
    def seconds(self) -> int:
        """Seconds since the Unix epoch."""
        return _LAYOUT.unpack(self)[0] - BASE

    @property
    def nanoseconds(self) -> int:
        """The (whitened) nanosecond part."""
        return _LAYOUT.unpack(self)[1]

    def after(self, other: "Timestamp") -> bool:
        """Report whether this timestamp is strictly later than ``other``."""
        return bytes(self) > bytes(other)

    def __str__(self) -> str:
        secs, nano = self.seconds, self.nanoseconds
        secs += nano // _NS_PER_SECOND
        nano %= _NS_PER_SECOND
        moment = datetime.fromtimestamp(secs, tz=timezone.utc)
        frac = f"{nano:09d}".rstrip("0")
        frac = f".{frac}" if frac else ""
        return f"{moment:%Y-%m-%d %H:%M:%S}{frac} +0000 UTC"


def stamp(unix_ns: int) -> Timestamp:
    """Build the timestamp for a time given in nanoseconds since the epoch."""
    secs, nano = divmod(unix_ns, _NS_PER_SECOND)
    secs = (BASE + secs) & 0xFFFFFFFFFFFFFFFF
    nano &= ~WHITENER_MASK & 0xFFFFFFFF
    return Timestamp(_LAYOUT.pack(secs, nano))


def now() -> Timestamp:
    """The timestamp for the current time."""
    return stamp(time.time_ns())