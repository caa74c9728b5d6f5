# wgkit

Pieces of a userspace WireGuard implementation, written as plain Python
with no third-party dependencies. The modules rely on POSIX facilities
(`select.poll`, Unix domain sockets), so they are meant for Linux and other
POSIX systems.

## What is inside

| Module              | Provides                                                                  |
|---------------------|---------------------------------------------------------------------------|
| `wgkit.replay`      | `ReplayFilter`, a sliding-window anti-replay filter (RFC 6479)            |
| `wgkit.ratelimiter` | `Ratelimiter`, a per-address token bucket for handshake messages          |
| `wgkit.tai64n`      | `Timestamp`, `stamp()` and `now()` for whitened TAI64N timestamps         |
| `wgkit.pools`       | `WaitPool`, an object pool that can block once a size limit is reached    |
| `wgkit.timer`       | `Timer`, a re-armable one-shot timer with pending-state tracking          |
| `wgkit.rwcancel`    | `RWCancel` and `retry_after_error()` for cancellable fd reads and writes  |
| `wgkit.uapi`        | The configuration protocol: `parse_set()`, `format_get()`, `IPCError`     |
| `wgkit.ipc`         | `UAPIListener`, `uapi_open()`, `uapi_listen()`, `sock_path()`             |
| `wgkit.peername`    | `peer_name()`, the short form of a peer's public key used in logs         |
| `wgkit.packet`      | `calculate_padding_size()` and queue-size constants for transport packets |

## Examples

Rejecting replayed message counters:

```python
from wgkit.replay import ReplayFilter

limit = 2**64 - 2**13 - 1
window = ReplayFilter()
window.validate_counter(0, limit)   # True
window.validate_counter(1, limit)   # True
window.validate_counter(1, limit)   # False, already seen
window.reset()
```

Counters at or above `limit` are always rejected, as are counters that fall
behind the window.

Rate limiting by source address. `Ratelimiter` takes an optional clock that
returns nanoseconds (monotonic time by default); each address gets a small
burst and then about twenty packets a second. Idle entries are dropped by a
background thread, or on demand with `cleanup()`:

```python
from wgkit.ratelimiter import Ratelimiter

with Ratelimiter() as limiter:
    limiter.allow("192.0.2.1")   # True
```

TAI64N timestamps drop the low bits of the nanosecond field, so two
handshakes a few milliseconds apart compare as equal:

```python
from wgkit.tai64n import stamp

first = stamp(123_456_789)
second = stamp(123_456_789 + 20_000_000)
second.after(first)   # True
```

Timers take their delay in seconds:

```python
from wgkit.timer import Timer

timer = Timer(lambda: print("expired"))
timer.mod(0.5)
timer.is_pending()   # True
timer.delete_sync()
```

Padding a plaintext packet before encryption:

```python
from wgkit.packet import calculate_padding_size

calculate_padding_size(1, 1420)   # 15
calculate_padding_size(16, 0)     # 0
```

Naming a peer in log lines:

```python
from wgkit.peername import peer_name

peer_name(bytes(32))   # 'peer(AAAA…AAAA)'
```

## Configuration protocol

`wgkit.uapi.parse_set()` reads the text of a `set=1` request (lines of
`key=value`: `private_key`, `listen_port`, `fwmark`, `replace_peers`, and
after each `public_key` the peer keys `update_only`, `remove`,
`preshared_key`, `endpoint`, `persistent_keepalive_interval`,
`replace_allowed_ips`, `allowed_ip`, `protocol_version`) into a
`DeviceConfig` with its `PeerConfig` entries. A blank line ends the request.
`format_get()` turns a `DeviceConfig` back into the reply to `get=1`.
Malformed input raises `IPCError`; its `error_code()` is the negative errno
(see `IpcErrorCode`) that goes on the `errno=` line of the reply.

`wgkit.ipc` opens the Unix socket that carries this protocol, by default
`/var/run/wireguard/<interface>.sock` (see `sock_path()`). `uapi_open()`
replaces a stale socket file but refuses one that still accepts connections.
A `UAPIListener` hands out connections from `accept()`; once the socket file
is removed, `accept()` raises `FileNotFoundError`. `close()` removes the
socket file.

## What this package does not do

There is no daemon and no command to run. Nothing here creates a TUN
device, performs the Noise handshake, encrypts or sends packets, or keeps
peer state. `parse_set()` only reads a configuration into data classes; it
does not apply it to anything, and `format_get()` only renders data it is
given. Reading requests from a `UAPIListener` connection and acting on them
is left to the caller.