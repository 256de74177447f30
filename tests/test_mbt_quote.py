import pytest

from tradewire.mbt_quote import MbtQuoteDecodeError, MbtQuoteType, decode


def test_decode_logging_on():
    msg = decode(b"L|100=USERNAME;101=PASSWORD\n")
    assert msg.type == MbtQuoteType.LOGGING_ON
    assert msg.user_name == "USERNAME"
    assert msg.password == "PASSWORD"


def test_decode_consumes_bytearray():
    buf = bytearray(b"L|100=USERNAME;101=PASSWORD\nL|")
    decode(buf)
    assert buf == bytearray(b"L|")


def test_bad_header_delimiter():
    with pytest.raises(MbtQuoteDecodeError):
        decode(b"L;100=USERNAME;101=PASSWORD\n")


def test_unknown_type():
    with pytest.raises(MbtQuoteDecodeError):
        decode(b"Q|100=USERNAME;101=PASSWORD\n")


def test_missing_terminator():
    with pytest.raises(MbtQuoteDecodeError):
        decode(b"L|100=USERNAME;101=PASSWORD")


def test_missing_field():
    with pytest.raises(MbtQuoteDecodeError):
        decode(b"L|100=USERNAME\n")


def test_empty_buffer():
    with pytest.raises(MbtQuoteDecodeError):
        decode(b"")