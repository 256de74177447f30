import socket
import struct

import pytest

from tradewire.framing import (
    IncompleteMessage,
    SoupBin3Session,
    lse_itch_decode,
    nyse_taq_decode,
    xdp_decode,
)


def test_lse_itch_takes_length_prefixed_message():
    buf = bytearray([3, 0x41, 0x42, 9, 9])
    assert lse_itch_decode(buf) == bytes([3, 0x41, 0x42])
    assert buf == bytearray([9, 9])


def test_lse_itch_accepts_immutable_bytes():
    data = bytes([2, 0x7A, 0x7B])
    assert lse_itch_decode(data) == bytes([2, 0x7A])


def test_lse_itch_empty_buffer():
    with pytest.raises(IncompleteMessage):
        lse_itch_decode(bytearray())


def test_lse_itch_short_buffer_left_untouched():
    buf = bytearray([5, 1, 2])
    with pytest.raises(IncompleteMessage):
        lse_itch_decode(buf)
    assert buf == bytearray([5, 1, 2])


def test_xdp_takes_little_endian_sized_message():
    message = struct.pack("<H", 6) + b"abcd"
    buf = bytearray(message + b"zz")
    assert xdp_decode(buf, 64) == message
    assert buf == bytearray(b"zz")


def test_xdp_message_larger_than_limit():
    buf = bytearray(struct.pack("<H", 6) + b"abcd")
    with pytest.raises(ValueError):
        xdp_decode(buf, 5)
    assert len(buf) == 6


def test_xdp_empty_and_partial():
    with pytest.raises(IncompleteMessage):
        xdp_decode(bytearray(), 64)
    with pytest.raises(IncompleteMessage):
        xdp_decode(bytearray(struct.pack("<H", 10) + b"ab"), 64)


def test_nyse_taq_fixed_size():
    buf = bytearray(b"ABCDEFG")
    assert nyse_taq_decode(buf, 4) == b"ABCD"
    assert buf == bytearray(b"EFG")
    with pytest.raises(IncompleteMessage):
        nyse_taq_decode(buf, 4)


def test_soupbin3_receives_packets_in_order():
    a, b = socket.socketpair()
    with a, b:
        a.sendall(struct.pack(">H", 3) + b"Sab" + struct.pack(">H", 1) + b"H")
        session = SoupBin3Session(b)
        assert session.recv() == b"Sab"
        assert session.recv() == b"H"


def test_soupbin3_reassembles_split_packet():
    a, b = socket.socketpair()
    with a, b:
        a.sendall(struct.pack(">H", 5) + b"He")
        a.sendall(b"llo")
        session = SoupBin3Session(b)
        assert session.recv() == b"Hello"


def test_soupbin3_connection_closed():
    a, b = socket.socketpair()
    with b:
        a.close()
        session = SoupBin3Session(b)
        with pytest.raises(ConnectionError):
            session.recv()