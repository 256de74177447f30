"""FIX session layer: logon, heartbeats, sequence numbers and recovery."""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from collections.abc import Sequence

from tradewire.fix_field import SOH, FixField, unparse_field

__all__ = [
    "FixVersion",
    "FixMessage",
    "FixSessionConfig",
    "ConnectionClosed",
    "FixSession",
    "session_config",
    "MsgType",
    "Tag",
]


class Tag(IntEnum):
    BeginSeqNo = 7
    BeginString = 8
    BodyLength = 9
    CheckSum = 10
    EndSeqNo = 16
    MsgSeqNum = 34
    MsgType = 35
    NewSeqNo = 36
    PossDupFlag = 43
    RefSeqNum = 45
    SenderCompID = 49
    SendingTime = 52
    TargetCompID = 56
    Text = 58
    EncryptMethod = 98
    HeartBtInt = 108
    TestReqID = 112
    GapFillFlag = 123
    ResetSeqNumFlag = 141
    Password = 554


class MsgType:
    HEARTBEAT = "0"
    TEST_REQUEST = "1"
    RESEND_REQUEST = "2"
    REJECT = "3"
    SEQUENCE_RESET = "4"
    LOGOUT = "5"
    EXECUTION_REPORT = "8"
    ORDER_CANCEL_REJECT = "9"
    LOGON = "A"
    NEW_ORDER_SINGLE = "D"
    ORDER_CANCEL_REQUEST = "F"
    ORDER_CANCEL_REPLACE = "G"


class FixVersion(IntEnum):
    FIX_4_0 = 0
    FIX_4_1 = 1
    FIX_4_2 = 2
    FIX_4_3 = 3
    FIX_4_4 = 4
    FIXT_1_1 = 5

    @property
    def begin_string(self) -> str:
        return _BEGIN_STRINGS[self]


_BEGIN_STRINGS = {
    FixVersion.FIXT_1_1: "FIXT.1.1",
    FixVersion.FIX_4_4: "FIX.4.4",
    FixVersion.FIX_4_3: "FIX.4.3",
    FixVersion.FIX_4_2: "FIX.4.2",
    FixVersion.FIX_4_1: "FIX.4.1",
    FixVersion.FIX_4_0: "FIX.4.0",
}

_DIALECTS = {
    "fixt-1.1": FixVersion.FIXT_1_1,
    "fix-4.0": FixVersion.FIX_4_0,
    "fix-4.1": FixVersion.FIX_4_1,
    "fix-4.2": FixVersion.FIX_4_2,
    "fix-4.3": FixVersion.FIX_4_3,
}

_RECV_CHUNK = 4096
_LOGOUT_GRACE_SECONDS = 2
_POLL_INTERVAL = 0.001
_HEADER_TAGS = {
    Tag.BeginString, Tag.BodyLength, Tag.CheckSum, Tag.MsgType,
    Tag.MsgSeqNum, Tag.SenderCompID, Tag.TargetCompID, Tag.SendingTime,
}


class ConnectionClosed(Exception):
    """The peer closed the connection."""


@dataclass
class FixMessage:
    """A FIX message: type, header values and body fields."""

    msg_type: str
    fields: list[FixField] = field(default_factory=list)
    msg_seq_num: int = 0
    begin_string: str = ""
    sender_comp_id: str = ""
    target_comp_id: str = ""
    sending_time: str = ""

    def get_field(self, tag: int) -> FixField | None:
        return next((f for f in self.fields if f.tag == tag), None)

    def encode(self) -> bytes:
        body = bytearray()
        body += unparse_field(FixField.of_string(Tag.MsgType, self.msg_type))
        body += unparse_field(FixField.of_string(Tag.SenderCompID, self.sender_comp_id))
        body += unparse_field(FixField.of_string(Tag.TargetCompID, self.target_comp_id))
        body += unparse_field(FixField.of_int(Tag.MsgSeqNum, self.msg_seq_num))
        if self.sending_time:
            body += unparse_field(FixField.of_string(Tag.SendingTime, self.sending_time))
        for item in self.fields:
            body += unparse_field(item)
        head = unparse_field(FixField.of_string(Tag.BeginString, self.begin_string))
        head += unparse_field(FixField.of_int(Tag.BodyLength, len(body)))
        data = head + bytes(body)
        return data + unparse_field(FixField.of_checksum(Tag.CheckSum, sum(data) % 256))

    @classmethod
    def parse(cls, data: bytes) -> tuple[FixMessage, int] | None:
        """Parse one message from the start of ``data``.

        Returns the message and the bytes it took, or None if ``data`` holds
        only part of a message. Raises ValueError on malformed input.
        """
        data = bytes(data)
        if not data.startswith(b"8="):
            if b"8=".startswith(data):
                return None
            raise ValueError("message does not start with BeginString")
        begin_end = data.find(SOH)
        if begin_end < 0:
            return None
        if len(data) < begin_end + 3:
            return None
        if data[begin_end + 1:begin_end + 3] != b"9=":
            raise ValueError("BodyLength must follow BeginString")
        length_end = data.find(SOH, begin_end + 1)
        if length_end < 0:
            return None
        try:
            body_length = int(data[begin_end + 3:length_end])
        except ValueError as exc:
            raise ValueError("invalid BodyLength") from exc
        body_start = length_end + 1
        body_end = body_start + body_length
        total = body_end + 7
        if len(data) < total:
            return None
        trailer = data[body_end:total]
        if not trailer.startswith(b"10=") or not trailer.endswith(SOH):
            raise ValueError("invalid CheckSum field")
        if int(trailer[3:6]) != sum(data[:body_end]) % 256:
            raise ValueError("checksum mismatch")

        msg = cls(msg_type="", begin_string=data[2:begin_end].decode("latin-1"))
        for part in data[body_start:body_end].split(SOH):
            if not part:
                continue
            tag_text, sep, value_bytes = part.partition(b"=")
            if not sep:
                raise ValueError(f"malformed field {part!r}")
            tag = int(tag_text)
            value = value_bytes.decode("latin-1")
            if tag == Tag.MsgType:
                msg.msg_type = value
            elif tag == Tag.MsgSeqNum:
                msg.msg_seq_num = int(value)
            elif tag == Tag.SenderCompID:
                msg.sender_comp_id = value
            elif tag == Tag.TargetCompID:
                msg.target_comp_id = value
            elif tag == Tag.SendingTime:
                msg.sending_time = value
            elif tag not in _HEADER_TAGS:
                msg.fields.append(FixField.of_string(tag, value))
        return msg, total


@dataclass
class FixSessionConfig:
    sender_comp_id: str
    target_comp_id: str
    heartbtint: int
    version: FixVersion
    transport: socket.socket
    password: str | None = None
    in_msg_seq_num: int = 0
    out_msg_seq_num: int = 1


def session_config(
    sender_comp_id: str, target_comp_id: str, heartbtint: int, dialect: str, transport: socket.socket
) -> FixSessionConfig:
    """Build a config; unknown dialect names select FIX 4.4."""
    return FixSessionConfig(
        sender_comp_id=sender_comp_id,
        target_comp_id=target_comp_id,
        heartbtint=heartbtint,
        version=_DIALECTS.get(dialect, FixVersion.FIX_4_4),
        transport=transport,
    )


class FixSession:
    """One FIX session over a connected stream socket."""

    def __init__(self, cfg: FixSessionConfig) -> None:
        self.version = cfg.version
        self.begin_string = cfg.version.begin_string
        self.sender_comp_id = cfg.sender_comp_id
        self.target_comp_id = cfg.target_comp_id
        self.heartbtint = cfg.heartbtint
        self.password = cfg.password
        self.transport = cfg.transport
        self.in_msg_seq_num = max(cfg.in_msg_seq_num, 0)
        self.out_msg_seq_num = cfg.out_msg_seq_num if cfg.out_msg_seq_num > 1 else 1
        self.active = False
        self.tr_pending = False
        self.testreqid = ""
        self.now = 0.0
        self.str_now = ""
        self._rx = bytearray()
        self.time_update()
        self.rx_timestamp = self.now
        self.tx_timestamp = self.now
        self.tr_timestamp = self.now

    def time_update(self) -> None:
        self.time_update_monotonic(time.monotonic())
        self.time_update_realtime(time.time())

    def time_update_monotonic(self, monotonic: float) -> None:
        self.now = monotonic

    def time_update_realtime(self, realtime: float) -> None:
        stamp = datetime.fromtimestamp(realtime, timezone.utc)
        self.str_now = f"{stamp:%Y%m%d-%H:%M:%S}.{stamp.microsecond // 1000:03d}"

    def send(self, msg: FixMessage, preserve_seq_num: bool = False) -> int:
        """Stamp ``msg`` with the session header and send it; returns bytes sent."""
        msg.begin_string = self.begin_string
        msg.sender_comp_id = self.sender_comp_id
        msg.target_comp_id = self.target_comp_id
        if not preserve_seq_num:
            msg.msg_seq_num = self.out_msg_seq_num
            self.out_msg_seq_num += 1
        self.tx_timestamp = self.now
        msg.sending_time = self.str_now
        data = msg.encode()
        self.transport.sendall(data)
        return len(data)

    def _parse_buffered(self) -> FixMessage | None:
        parsed = FixMessage.parse(self._rx)
        if parsed is None:
            return None
        msg, consumed = parsed
        del self._rx[:consumed]
        self.rx_timestamp = self.now
        self.in_msg_seq_num += 1
        return msg

    def recv(self, dontwait: bool = False) -> FixMessage | None:
        """Return the next message, or None if none is complete yet.

        Raises ConnectionClosed when the peer has closed the connection.
        """
        msg = self._parse_buffered()
        if msg is not None:
            return msg
        flags = getattr(socket, "MSG_DONTWAIT", 0) if dontwait else 0
        try:
            data = self.transport.recv(_RECV_CHUNK, flags)
        except BlockingIOError:
            return None
        if not data:
            raise ConnectionClosed("connection closed by peer")
        self._rx += data
        return self._parse_buffered()

    def keepalive(self, now: float) -> bool:
        """Send test requests and heartbeats as due; False if the peer timed out."""
        if not self.tr_pending:
            if int(now) - int(self.rx_timestamp) > 1.2 * self.heartbtint:
                self.test_request()
        elif int(now) - int(self.tr_timestamp) > 0.5 * self.heartbtint:
            return False
        if int(now) - int(self.tx_timestamp) > self.heartbtint:
            self.heartbeat(None)
        return True

    def _expected(self, msg: FixMessage) -> bool:
        return msg.msg_seq_num == self.in_msg_seq_num

    def _do_unexpected(self, msg: FixMessage) -> bool:
        """Handle a sequence gap; True if the session was logged out."""
        if msg.msg_seq_num > self.in_msg_seq_num:
            end_seq_no = 999999 if self.version <= FixVersion.FIX_4_1 else 0
            self.resend_request(self.in_msg_seq_num, end_seq_no)
            self.in_msg_seq_num -= 1
        elif msg.msg_seq_num < self.in_msg_seq_num:
            text = (f"MsgSeqNum too low, expecting {self.in_msg_seq_num} "
                    f"received {msg.msg_seq_num}")
            self.in_msg_seq_num -= 1
            if msg.get_field(Tag.PossDupFlag) is None:
                self.logout(text)
                return True
        return False

    def admin(self, msg: FixMessage) -> bool:
        """Handle session-level messages; True if ``msg`` needs no further work."""
        if not self._expected(msg):
            self._do_unexpected(msg)
            return True

        if msg.msg_type == MsgType.HEARTBEAT:
            item = msg.get_field(Tag.TestReqID)
            if item is not None and item.string_value.startswith(self.testreqid):
                self.tr_pending = False
            return True

        if msg.msg_type == MsgType.TEST_REQUEST:
            item = msg.get_field(Tag.TestReqID)
            self.heartbeat(item.string_value if item is not None else "TestReqID")
            return True

        if msg.msg_type == MsgType.RESEND_REQUEST:
            begin = msg.get_field(Tag.BeginSeqNo)
            end = msg.get_field(Tag.EndSeqNo)
            if begin is None or end is None:
                return False
            self.sequence_reset(begin.int_value, end.int_value + 1, True)
            return True

        if msg.msg_type == MsgType.SEQUENCE_RESET:
            self._handle_sequence_reset(msg)
            return True

        return False

    def _handle_sequence_reset(self, msg: FixMessage) -> None:
        new_seq = msg.get_field(Tag.NewSeqNo)
        if new_seq is None:
            return
        exp_seq_num = self.in_msg_seq_num
        new_seq_num = new_seq.int_value
        gap_fill = msg.get_field(Tag.GapFillFlag)

        if gap_fill is not None and gap_fill.string_value.startswith("Y"):
            msg_seq_num = msg.msg_seq_num
            if msg_seq_num > exp_seq_num:
                self.resend_request(exp_seq_num, msg_seq_num)
                self.in_msg_seq_num -= 1
            elif msg_seq_num < exp_seq_num:
                self.in_msg_seq_num -= 1
                if msg.get_field(Tag.PossDupFlag) is None:
                    self.logout(f"MsgSeqNum too low, expecting {exp_seq_num} received {msg_seq_num}")
            elif new_seq_num > msg_seq_num:
                self.in_msg_seq_num = new_seq_num - 1
            else:
                self.reject(
                    msg_seq_num,
                    f"Attempt to lower sequence number, invalid value NewSeqNum = {new_seq_num}",
                )
        elif new_seq_num > exp_seq_num:
            self.in_msg_seq_num = new_seq_num - 1
        elif new_seq_num < exp_seq_num:
            self.in_msg_seq_num -= 1
            self.reject(exp_seq_num, f"Value is incorrect (too low) {new_seq_num}")

    def logon(self) -> bool:
        """Send Logon and wait for the answer; True if the peer logged on."""
        fields = [
            FixField.of_int(Tag.EncryptMethod, 0),
            FixField.of_string(Tag.ResetSeqNumFlag, "Y"),
            FixField.of_int(Tag.HeartBtInt, self.heartbtint),
        ]
        if self.password:
            fields.append(FixField.of_string(Tag.Password, self.password))
        self.send(FixMessage(MsgType.LOGON, fields))
        self.active = True

        while True:
            response = self.recv()
            if response is None:
                continue
            if not self._expected(response):
                if self._do_unexpected(response):
                    return False
                continue
            if response.msg_type != MsgType.LOGON:
                self.logout("First message not a logon")
                return False
            return True

    def logout(self, text: str | None = None) -> bool:
        """Send Logout and wait up to two seconds for the peer's Logout.

        Returns False only if an unexpected application message arrives.
        """
        fields = [FixField.of_string(Tag.Text, text)] if text is not None else []
        self.send(FixMessage(MsgType.LOGOUT, fields))
        start = time.monotonic()
        self.active = False

        while time.monotonic() - start <= _LOGOUT_GRACE_SECONDS:
            try:
                response = self.recv(dontwait=True)
            except ConnectionClosed:
                return True
            if response is None:
                time.sleep(_POLL_INTERVAL)
                continue
            if self.admin(response):
                continue
            return response.msg_type == MsgType.LOGOUT
        return True

    def heartbeat(self, test_req_id: str | None = None) -> int:
        fields = [FixField.of_string(Tag.TestReqID, test_req_id)] if test_req_id else []
        return self.send(FixMessage(MsgType.HEARTBEAT, fields))

    def test_request(self) -> int:
        self.testreqid = self.str_now
        self.tr_timestamp = self.now
        self.tr_pending = True
        return self.send(
            FixMessage(MsgType.TEST_REQUEST, [FixField.of_string(Tag.TestReqID, self.str_now)])
        )

    def resend_request(self, begin: int, end: int) -> int:
        return self.send(FixMessage(
            MsgType.RESEND_REQUEST,
            [FixField.of_int(Tag.BeginSeqNo, begin), FixField.of_int(Tag.EndSeqNo, end)],
        ))

    def reject(self, refseqnum: int, text: str | None = None) -> int:
        fields = [FixField.of_int(Tag.RefSeqNum, refseqnum)]
        if text is not None:
            fields.append(FixField.of_string(Tag.Text, text))
        return self.send(FixMessage(MsgType.REJECT, fields))

    def sequence_reset(self, msg_seq_num: int, new_seq_num: int, gap_fill: bool = False) -> int:
        fields = [FixField.of_int(Tag.NewSeqNo, new_seq_num)]
        if gap_fill:
            fields.append(FixField.of_string(Tag.GapFillFlag, "Y"))
        msg = FixMessage(MsgType.SEQUENCE_RESET, fields, msg_seq_num=msg_seq_num)
        return self.send(msg, preserve_seq_num=True)

    def new_order_single(self, fields: Sequence[FixField]) -> int:
        return self.send(FixMessage(MsgType.NEW_ORDER_SINGLE, list(fields)))

    def order_cancel_request(self, fields: Sequence[FixField]) -> int:
        return self.send(FixMessage(MsgType.ORDER_CANCEL_REQUEST, list(fields)))

    def order_cancel_replace(self, fields: Sequence[FixField]) -> int:
        return self.send(FixMessage(MsgType.ORDER_CANCEL_REPLACE, list(fields)))

    def execution_report(self, fields: Sequence[FixField]) -> int:
        return self.send(FixMessage(MsgType.EXECUTION_REPORT, list(fields)))