"""FIX fields and pre-built message templates."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from enum import Enum
from collections.abc import Iterable, Sequence

from tradewire import rawio
from tradewire.numtoa import dtoa2

__all__ = [
    "FieldType",
    "FixField",
    "FixTemplate",
    "unparse_field",
    "SOH",
    "BODY_LENGTH_WIDTH",
    "MSG_SEQ_NUM_WIDTH",
    "TIMESTAMP_PLACEHOLDER",
]

SOH = b"\x01"
BODY_LENGTH_WIDTH = 6
MSG_SEQ_NUM_WIDTH = 8
TIMESTAMP_PLACEHOLDER = "YYYYMMDD-HH:MM:SS.sss"
_FLOAT_PRECISION = 7

_TAG_BEGIN_STRING = 8
_TAG_BODY_LENGTH = 9
_TAG_CHECKSUM = 10
_TAG_MSG_SEQ_NUM = 34
_TAG_MSG_TYPE = 35
_TAG_SENDER_COMP_ID = 49
_TAG_SENDING_TIME = 52
_TAG_TARGET_COMP_ID = 56
_TAG_TRANSACT_TIME = 60


class FieldType(Enum):
    STRING = "string"
    STRING_8 = "string8"
    CHAR = "char"
    FLOAT = "float"
    INT = "int"
    CHECKSUM = "checksum"


@dataclass(frozen=True)
class FixField:
    """One tag=value pair of a FIX message."""

    tag: int
    type: FieldType
    value: str | int | float

    @classmethod
    def of_string(cls, tag: int, value: str) -> FixField:
        return cls(tag, FieldType.STRING, value)

    @classmethod
    def of_string8(cls, tag: int, value: str) -> FixField:
        return cls(tag, FieldType.STRING_8, value)

    @classmethod
    def of_char(cls, tag: int, value: str) -> FixField:
        return cls(tag, FieldType.CHAR, value)

    @classmethod
    def of_float(cls, tag: int, value: float) -> FixField:
        return cls(tag, FieldType.FLOAT, value)

    @classmethod
    def of_int(cls, tag: int, value: int) -> FixField:
        return cls(tag, FieldType.INT, value)

    @classmethod
    def of_checksum(cls, tag: int, value: int) -> FixField:
        return cls(tag, FieldType.CHECKSUM, value)

    @property
    def int_value(self) -> int:
        return int(self.value)

    @property
    def float_value(self) -> float:
        return float(self.value)

    @property
    def string_value(self) -> str:
        return str(self.value)


def _zero_padded(value: int, width: int) -> str:
    digits = str(abs(int(value))).rjust(width, "0")
    return "-" + digits if value < 0 else digits


def _value_text(field: FixField, zpad: int) -> str:
    if field.type is FieldType.STRING:
        return str(field.value)
    if field.type is FieldType.STRING_8:
        return str(field.value)[:8].split("\0", 1)[0]
    if field.type is FieldType.CHAR:
        return str(field.value)[:1]
    if field.type is FieldType.FLOAT:
        return dtoa2(float(field.value), _FLOAT_PRECISION)
    if field.type is FieldType.INT:
        return _zero_padded(int(field.value), zpad)
    return f"{int(field.value) % 1000:03d}"


def unparse_field(field: FixField, zpad: int = 0) -> bytes:
    """Wire form of ``field``: ``tag=value`` followed by SOH.

    Integers are zero padded to at least ``zpad`` digits; checksums always
    take three digits.
    """
    return f"{field.tag}={_value_text(field, zpad)}".encode("latin-1") + SOH


def _append(buffer: bytearray, field: FixField, zpad: int = 0) -> int:
    """Append ``field`` and return the offset where its value begins."""
    marker = len(buffer) + len(str(field.tag)) + 1
    buffer += unparse_field(field, zpad)
    return marker


def _overwrite(buffer: bytearray, marker: int, text: str, width: int) -> None:
    if len(text) != width:
        raise ValueError(f"{text!r} does not fit a field of width {width}")
    buffer[marker:marker + width] = text.encode("latin-1")


class FixTemplate:
    """A message whose header and constant fields are encoded once.

    Only the body, sequence number, sender, timestamps, body length and
    checksum change from one message to the next.
    """

    def __init__(
        self,
        begin_string: str,
        msg_type: str,
        sender_comp_id: str,
        target_comp_id: str,
        const_fields: Iterable[FixField] = (),
        manage_transact_time: bool = False,
    ) -> None:
        self._head = bytearray()
        self._const = bytearray()
        self._sys = bytearray()
        self._body = bytearray()
        self._csum = bytearray()

        _append(self._head, FixField.of_string(_TAG_BEGIN_STRING, begin_string))
        self._marker_body_length = _append(
            self._head, FixField.of_int(_TAG_BODY_LENGTH, 0), BODY_LENGTH_WIDTH
        )
        _append(self._const, FixField.of_string(_TAG_MSG_TYPE, msg_type))
        self._marker_msg_seq_num = _append(
            self._sys, FixField.of_int(_TAG_MSG_SEQ_NUM, 0), MSG_SEQ_NUM_WIDTH
        )
        self._marker_sender_comp_id = _append(
            self._sys, FixField.of_string(_TAG_SENDER_COMP_ID, sender_comp_id)
        )
        self._sender_comp_id_len = len(sender_comp_id)
        self._marker_sending_time = _append(
            self._sys, FixField.of_string(_TAG_SENDING_TIME, TIMESTAMP_PLACEHOLDER)
        )
        _append(self._const, FixField.of_string(_TAG_TARGET_COMP_ID, target_comp_id))

        self._marker_transact_time: int | None = None
        if manage_transact_time:
            self._marker_transact_time = _append(
                self._sys, FixField.of_string(_TAG_TRANSACT_TIME, TIMESTAMP_PLACEHOLDER)
            )

        for field in const_fields:
            _append(self._const, field)

        self._const_csum = sum(self._const)
        self._marker_check_sum = _append(self._csum, FixField.of_checksum(_TAG_CHECKSUM, 0), 3)

    def update_time(self, str_now: str) -> None:
        """Write a 21-character timestamp into SendingTime (and TransactTime)."""
        width = len(TIMESTAMP_PLACEHOLDER)
        _overwrite(self._sys, self._marker_sending_time, str_now, width)
        if self._marker_transact_time is not None:
            _overwrite(self._sys, self._marker_transact_time, str_now, width)

    def unparse(self, fields: Sequence[FixField], out_msg_seq_num: int, sender_comp_id: str) -> None:
        """Encode ``fields`` as the body and fill in the variable header parts."""
        self._body = bytearray()
        for field in fields:
            _append(self._body, field)

        body_length = len(self._body) + len(self._sys) + len(self._const)
        _overwrite(
            self._head,
            self._marker_body_length,
            _zero_padded(body_length, BODY_LENGTH_WIDTH),
            BODY_LENGTH_WIDTH,
        )
        _overwrite(
            self._sys,
            self._marker_msg_seq_num,
            _zero_padded(out_msg_seq_num, MSG_SEQ_NUM_WIDTH),
            MSG_SEQ_NUM_WIDTH,
        )
        _overwrite(self._sys, self._marker_sender_comp_id, sender_comp_id, self._sender_comp_id_len)

        checksum = (sum(self._head) + sum(self._sys) + self._const_csum + sum(self._body)) % 256
        _overwrite(self._csum, self._marker_check_sum, f"{checksum:03d}", 3)

    def _chunks(self) -> list[bytes]:
        return [
            bytes(self._head) + bytes(self._const),
            bytes(self._sys),
            bytes(self._body),
            bytes(self._csum),
        ]

    def to_bytes(self) -> bytes:
        """The complete encoded message."""
        return b"".join(self._chunks())

    def send(self, sock: socket.socket, flags: int = 0) -> int:
        """Send the message; returns the number of bytes left unsent."""
        chunks = self._chunks()
        sent = rawio.sendmsg(sock, chunks, flags)
        return sum(map(len, chunks)) - sent