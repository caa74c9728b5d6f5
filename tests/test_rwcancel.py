import errno
import os
import threading
import time

import pytest

from wgkit.rwcancel import RWCancel, retry_after_error


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


def test_retry_after_error_classification():
    assert retry_after_error(BlockingIOError(errno.EAGAIN, "again")) is True
    assert retry_after_error(InterruptedError(errno.EINTR, "interrupted")) is True
    assert retry_after_error(OSError(errno.EBADF, "bad fd")) is False
    assert retry_after_error(ValueError("nope")) is False


def test_sets_descriptor_non_blocking(pipe):
    read_fd, _ = pipe
    with RWCancel(read_fd) as rw:
        assert os.get_blocking(read_fd) is False
        assert rw.fd == read_fd


def test_read_returns_available_data(pipe):
    read_fd, write_fd = pipe
    with RWCancel(read_fd) as rw:
        os.write(write_fd, b"hello")
        assert rw.read(16) == b"hello"


def test_read_waits_for_data(pipe):
    read_fd, write_fd = pipe
    with RWCancel(read_fd) as rw:
        threading.Timer(0.05, os.write, args=(write_fd, b"late")).start()
        assert rw.read(16) == b"late"


def test_ready_read_true_when_data_pending(pipe):
    read_fd, write_fd = pipe
    with RWCancel(read_fd) as rw:
        os.write(write_fd, b"x")
        assert rw.ready_read() is True


def test_ready_read_false_after_cancel(pipe):
    read_fd, _ = pipe
    with RWCancel(read_fd) as rw:
        rw.cancel()
        assert rw.ready_read() is False


def test_cancel_interrupts_blocked_read(pipe):
    read_fd, _ = pipe
    with RWCancel(read_fd) as rw:
        result = {}

        def reader():
            try:
                rw.read(16)
            except OSError as exc:
                result["errno"] = exc.errno

        thread = threading.Thread(target=reader)
        thread.start()
        time.sleep(0.05)
        rw.cancel()
        thread.join(2.0)
        assert not thread.is_alive()
        assert result["errno"] == errno.ECANCELED
        with pytest.raises(OSError) as info:
            rw.read(16)
        assert info.value.errno == errno.ECANCELED


def test_write_round_trip(pipe):
    read_fd, write_fd = pipe
    with RWCancel(write_fd) as rw:
        written = rw.write(b"payload")
        assert written == len(b"payload")
        assert os.read(read_fd, 64) == b"payload"


def test_cancel_interrupts_blocked_write(pipe):
    _, write_fd = pipe
    with RWCancel(write_fd) as rw:
        chunk = b"\0" * 4096
        while True:
            try:
                os.write(write_fd, chunk)
            except BlockingIOError:
                break
        result = {}

        def writer():
            try:
                rw.write(chunk)
            except OSError as exc:
                result["errno"] = exc.errno

        thread = threading.Thread(target=writer)
        thread.start()
        time.sleep(0.05)
        rw.cancel()
        thread.join(2.0)
        assert not thread.is_alive()
        assert result["errno"] == errno.ECANCELED
        with pytest.raises(OSError) as info:
            rw.write(chunk)
        assert info.value.errno == errno.ECANCELED


def test_read_error_other_than_retry_is_raised(pipe):
    read_fd, write_fd = pipe
    rw = RWCancel(read_fd)
    os.close(read_fd)
    try:
        with pytest.raises(OSError) as info:
            rw.read(4)
        assert info.value.errno == errno.EBADF
    finally:
        rw.close()