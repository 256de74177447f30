"""Decoding of MBT quote protocol messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

__all__ = ["MbtQuoteType", "MbtQuoteLoggingOn", "MbtQuoteDecodeError", "decode"]

_FIELD_DELIM = ";"
_HEADER_DELIM = "|"
_MESSAGE_END = "\n"


class MbtQuoteType(str, Enum):
    LOGGING_ON = "L"


class MbtQuoteDecodeError(ValueError):
    """The data is not a valid MBT quote message."""


@dataclass(frozen=True)
class MbtQuoteLoggingOn:
    """A logon request carrying the user's credentials."""

    type: ClassVar[MbtQuoteType] = MbtQuoteType.LOGGING_ON

    user_name: str
    password: str


def _decode_field(text: str, pos: int) -> tuple[str, int]:
    eq = text.find("=", pos)
    if eq < 0:
        raise MbtQuoteDecodeError("field has no '='")
    start = eq + 1
    for end in range(start, len(text)):
        if text[end] in (_FIELD_DELIM, _MESSAGE_END):
            return text[start:end], end
    raise MbtQuoteDecodeError("field is not terminated")


def decode(buffer: bytes | bytearray) -> MbtQuoteLoggingOn:
    """Decode one message from the start of ``buffer``.

    A bytearray has the decoded message removed from its front. The fields
    are taken in the order they appear.
    """
    text = bytes(buffer).decode("latin-1")
    if len(text) < 2:
        raise MbtQuoteDecodeError("message header is incomplete")
    kind, delim = text[0], text[1]
    if delim != _HEADER_DELIM:
        raise MbtQuoteDecodeError(f"expected {_HEADER_DELIM!r} after message type")
    try:
        MbtQuoteType(kind)
    except ValueError:
        raise MbtQuoteDecodeError(f"unsupported message type {kind!r}") from None

    user_name, pos = _decode_field(text, 2)
    password, pos = _decode_field(text, pos)

    if text[pos:pos + 1] != _MESSAGE_END:
        raise MbtQuoteDecodeError("message is not terminated by a newline")
    pos += 1

    if isinstance(buffer, bytearray):
        del buffer[:pos]
    return MbtQuoteLoggingOn(user_name=user_name, password=password)