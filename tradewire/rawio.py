"""Low-level I/O that retries on EAGAIN and EINTR."""

import os
import socket
from collections.abc import Iterable
from typing import Callable, TypeVar

__all__ = ["xread", "xwrite", "xwritev", "sendmsg"]

_T = TypeVar("_T")
_RETRYABLE = (BlockingIOError, InterruptedError)


def _retrying(call: Callable[[], _T]) -> _T:
    while True:
        try:
            return call()
        except _RETRYABLE:
            continue


def xread(fd: int, count: int) -> bytes:
    """Read up to ``count`` bytes from ``fd``, retrying on EAGAIN and EINTR."""
    return _retrying(lambda: os.read(fd, count))


def xwrite(fd: int, data: bytes) -> int:
    """Write ``data`` to ``fd``, retrying on EAGAIN and EINTR."""
    return _retrying(lambda: os.write(fd, data))


def xwritev(fd: int, buffers: Iterable[bytes]) -> int:
    """Gather-write ``buffers`` to ``fd``, retrying on EAGAIN and EINTR."""
    chunks = list(buffers)
    return _retrying(lambda: os.writev(fd, chunks))


def sendmsg(sock: socket.socket, buffers: Iterable[bytes], flags: int = 0) -> int:
    """Send ``buffers`` as one message on ``sock``; returns the bytes sent."""
    return sock.sendmsg(list(buffers), [], flags)