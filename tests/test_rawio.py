import os
import socket
from unittest import mock

import pytest

from tradewire.rawio import sendmsg, xread, xwrite, xwritev


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


def test_write_then_read(pipe):
    read_fd, write_fd = pipe
    payload = b"8=FIX.4.4\x01"
    assert xwrite(write_fd, payload) == len(payload)
    assert xread(read_fd, 1024) == payload


def test_writev_concatenates(pipe):
    read_fd, write_fd = pipe
    parts = [b"head", b"body", b"", b"tail"]
    assert xwritev(write_fd, parts) == sum(len(p) for p in parts)
    assert xread(read_fd, 1024) == b"".join(parts)


def test_read_respects_count(pipe):
    read_fd, write_fd = pipe
    xwrite(write_fd, b"abcdef")
    assert xread(read_fd, 2) == b"ab"
    assert xread(read_fd, 10) == b"cdef"


def test_read_retries_on_eagain():
    with mock.patch("os.read", side_effect=[BlockingIOError(), InterruptedError(), b"xy"]) as fake:
        assert xread(5, 10) == b"xy"
    assert fake.call_count == 3


def test_write_retries_on_eagain():
    with mock.patch("os.write", side_effect=[BlockingIOError(), 3]) as fake:
        assert xwrite(5, b"abc") == 3
    assert fake.call_count == 2


def test_other_errors_propagate(pipe):
    read_fd, _ = pipe
    os.close(read_fd)
    with pytest.raises(OSError):
        xread(read_fd, 10)


def test_sendmsg_over_socketpair():
    left, right = socket.socketpair()
    with left, right:
        sent = sendmsg(left, [b"one", b"two", b"three"])
        assert sent == len(b"onetwothree")
        assert right.recv(64) == b"onetwothree"