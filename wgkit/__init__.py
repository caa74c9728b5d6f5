"""Building blocks of a userspace WireGuard daemon: replay filtering, rate
limiting, TAI64N timestamps, timers, pools, cancellable I/O and the UAPI
configuration protocol."""

__version__ = "0.1.0"