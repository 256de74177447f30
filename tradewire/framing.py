"""Framing of fixed-layout market data messages and SoupBinTCP packets."""

from __future__ import annotations

import socket
import struct

__all__ = [
    "IncompleteMessage",
    "SoupBin3Session",
    "lse_itch_decode",
    "xdp_decode",
    "nyse_taq_decode",
    "SOUPBIN3_RX_BUFFER_SIZE",
]

SOUPBIN3_RX_BUFFER_SIZE = 4096

_LE16 = struct.Struct("<H")
_BE16 = struct.Struct(">H")


class IncompleteMessage(Exception):
    """The buffer does not yet hold a whole message."""


def _take(buffer: bytes | bytearray, size: int) -> bytes:
    """Return the first ``size`` bytes, removing them if the buffer is mutable."""
    message = bytes(buffer[:size])
    if isinstance(buffer, bytearray):
        del buffer[:size]
    return message


def lse_itch_decode(buffer: bytes | bytearray) -> bytes:
    """Take one LSE ITCH message, whose first byte is its total length."""
    if not buffer:
        raise IncompleteMessage("buffer is empty")
    size = buffer[0]
    if len(buffer) < size:
        raise IncompleteMessage(f"need {size} bytes, have {len(buffer)}")
    return _take(buffer, size)


def xdp_decode(buffer: bytes | bytearray, size: int) -> bytes:
    """Take one XDP message, whose first two bytes are its little-endian length.

    Raises ValueError if the message is longer than ``size``.
    """
    if len(buffer) < _LE16.size:
        raise IncompleteMessage("message size is not yet available")
    (msg_size,) = _LE16.unpack_from(buffer)
    if msg_size > size:
        raise ValueError(f"message of {msg_size} bytes exceeds limit of {size}")
    if len(buffer) < msg_size:
        raise IncompleteMessage(f"need {msg_size} bytes, have {len(buffer)}")
    return _take(buffer, msg_size)


def nyse_taq_decode(buffer: bytes | bytearray, size: int) -> bytes:
    """Take one NYSE TAQ message of the given fixed ``size``."""
    if len(buffer) < size:
        raise IncompleteMessage(f"need {size} bytes, have {len(buffer)}")
    return _take(buffer, size)


class SoupBin3Session:
    """Receiving side of a SoupBinTCP 3.0 session over a stream socket."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self._rx = bytearray()

    def _decode(self) -> bytes | None:
        if len(self._rx) < _BE16.size:
            return None
        (length,) = _BE16.unpack_from(self._rx)
        end = _BE16.size + length
        if len(self._rx) < end:
            return None
        packet = bytes(self._rx[_BE16.size:end])
        del self._rx[:end]
        return packet

    def recv(self) -> bytes:
        """Return the next packet's payload: its type byte and the data after it.

        Raises ConnectionError when the peer closes the connection.
        """
        while True:
            packet = self._decode()
            if packet is not None:
                return packet
            data = self.sock.recv(SOUPBIN3_RX_BUFFER_SIZE)
            if not data:
                raise ConnectionError("connection closed by peer")
            self._rx += data