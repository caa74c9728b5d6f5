"""Unix-socket endpoint for the configuration protocol."""

from __future__ import annotations

import errno
import os
import queue
import socket
import threading
from typing import Union

from .rwcancel import RWCancel

SOCKET_DIRECTORY = "/var/run/wireguard"

_WATCH_INTERVAL = 0.2  # seconds between checks that the socket file still exists
_JOIN_TIMEOUT = 5.0


def sock_path(iface: str, directory: str = SOCKET_DIRECTORY) -> str:
    """Path of the control socket for interface ``iface``."""
    return f"{directory}/{iface}.sock"


def _bind(path: str) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(path)
        sock.listen()
    except OSError:
        sock.close()
        raise
    return sock


def _in_use(path: str) -> bool:
    probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        probe.connect(path)
    except OSError:
        return False
    finally:
        probe.close()
    return True


def uapi_open(name: str, directory: str = SOCKET_DIRECTORY) -> socket.socket:
    """Create the listening control socket for ``name``.

    The directory is created if needed and the socket is made accessible to
    its owner only. A stale socket file left behind by a dead process is
    replaced; one that still accepts connections raises ``EADDRINUSE``.
    """
    os.makedirs(directory, 0o755, exist_ok=True)
    path = sock_path(name, directory)
    old_umask = os.umask(0o077)
    try:
        try:
            return _bind(path)
        except OSError:
            pass
        if _in_use(path):
            raise OSError(errno.EADDRINUSE, "unix socket in use", path)
        os.remove(path)
        return _bind(path)
    finally:
        os.umask(old_umask)


def _closed_error() -> OSError:
    return OSError(errno.EBADF, "use of closed network connection")


class UAPIListener:
    """Accepts control connections and stops when the socket file is removed.

    ``sock`` is a listening Unix socket or its file descriptor. Once the file
    at ``socket_path`` disappears, ``accept`` raises ``FileNotFoundError``.
    Closing the listener removes the socket file.
    """

    def __init__(self, sock: Union[socket.socket, int], socket_path: str) -> None:
        if isinstance(sock, int):
            sock = socket.socket(fileno=sock)
        self._sock = sock
        self._path = socket_path
        self._addr = sock.getsockname()
        self._events: "queue.Queue[object]" = queue.Queue()
        self._stop = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False
        sock.setblocking(False)
        self._cancel = RWCancel(sock.fileno())
        self._watcher = threading.Thread(
            target=self._watch_loop, name="uapi-watch", daemon=True
        )
        self._acceptor = threading.Thread(
            target=self._accept_loop, name="uapi-accept", daemon=True
        )
        self._watcher.start()
        self._acceptor.start()

    def __enter__(self) -> "UAPIListener":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _watch_loop(self) -> None:
        while True:
            try:
                os.lstat(self._path)
            except FileNotFoundError as exc:
                self._events.put(exc)
                return
            except OSError:
                pass
            if self._stop.wait(_WATCH_INTERVAL):
                return

    def _accept_loop(self) -> None:
        while True:
            if not self._cancel.ready_read():
                self._events.put(_closed_error())
                return
            try:
                conn, _ = self._sock.accept()
            except (BlockingIOError, InterruptedError):
                continue
            except OSError as exc:
                self._events.put(exc)
                return
            conn.setblocking(True)
            self._events.put(conn)

    def accept(self) -> socket.socket:
        """Wait for the next connection; raise once the listener has failed."""
        item = self._events.get()
        if isinstance(item, BaseException):
            self._events.put(item)
            raise item
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop listening, drop pending connections and remove the socket file."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._stop.set()
        self._cancel.cancel()
        self._acceptor.join(_JOIN_TIMEOUT)
        self._watcher.join(_JOIN_TIMEOUT)
        self._cancel.close()
        self._sock.close()
        while True:
            try:
                item = self._events.get_nowait()
            except queue.Empty:
                break
            if isinstance(item, socket.socket):
                item.close()
        self._events.put(_closed_error())
        try:
            os.unlink(self._path)
        except FileNotFoundError:
            pass

    def addr(self) -> str:
        """The address the listener is bound to."""
        return self._addr


def uapi_listen(
    name: str, sock: Union[socket.socket, int], directory: str = SOCKET_DIRECTORY
) -> UAPIListener:
    """Serve control connections for ``name`` on an already opened socket."""
    path = sock_path(name, directory)
    os.lstat(path)
    return UAPIListener(sock, path)