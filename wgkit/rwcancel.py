"""Cancellable reads and writes on a non-blocking file descriptor."""

from __future__ import annotations

import errno
import os
import select

_POLL_FAILURE = select.POLLERR | select.POLLHUP | select.POLLNVAL


def retry_after_error(error: BaseException) -> bool:
    """Report whether ``error`` means the operation should be retried."""
    return isinstance(error, OSError) and error.errno in (errno.EAGAIN, errno.EINTR)


def _cancelled() -> OSError:
    return OSError(errno.ECANCELED, os.strerror(errno.ECANCELED))


class RWCancel:
    """Wraps ``fd`` so that blocked reads and writes can be cancelled.

    The descriptor is switched to non-blocking mode. Calling ``cancel``
    wakes every waiting reader or writer, which then raises an ``OSError``
    with ``errno.ECANCELED``. The wrapped descriptor is not owned: ``close``
    releases only the internal cancellation pipe.
    """

    def __init__(self, fd: int) -> None:
        os.set_blocking(fd, False)
        self._fd = fd
        self._closing_reader, self._closing_writer = os.pipe()

    @property
    def fd(self) -> int:
        return self._fd

    def __enter__(self) -> "RWCancel":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _wait(self, events: int) -> bool:
        poller = select.poll()
        poller.register(self._fd, events)
        poller.register(self._closing_reader, select.POLLIN)
        while True:
            try:
                ready = dict(poller.poll())
            except OSError as exc:
                if retry_after_error(exc):
                    continue
                return False
            break
        if ready.get(self._closing_reader, 0):
            return False
        return bool(ready.get(self._fd, 0))

    def ready_read(self) -> bool:
        """Wait until the descriptor is readable; False if cancelled."""
        return self._wait(select.POLLIN)

    def ready_write(self) -> bool:
        """Wait until the descriptor is writable; False if cancelled."""
        return self._wait(select.POLLOUT)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, waiting for data unless cancelled."""
        while True:
            try:
                return os.read(self._fd, size)
            except OSError as exc:
                if not retry_after_error(exc):
                    raise
            if not self.ready_read():
                raise _cancelled()

    def write(self, data: bytes) -> int:
        """Write ``data``, waiting for room unless cancelled; return bytes written."""
        while True:
            try:
                return os.write(self._fd, data)
            except OSError as exc:
                if not retry_after_error(exc):
                    raise
            if not self.ready_write():
                raise _cancelled()

    def cancel(self) -> None:
        """Wake all waiting readers and writers."""
        os.write(self._closing_writer, b"\0")

    def close(self) -> None:
        """Release the cancellation pipe."""
        for fd in (self._closing_reader, self._closing_writer):
            try:
                os.close(fd)
            except OSError:
                pass