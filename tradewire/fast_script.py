"""Scripts of expected FAST messages, one message per line."""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "FastType",
    "FastField",
    "FastMessage",
    "ScriptContainer",
    "ScriptError",
    "parse_line",
    "read_script",
    "compare_messages",
    "format_message",
    "FAST_MAX_ELEMENTS",
    "FAST_MAX_LINE_LENGTH",
]

FAST_MAX_ELEMENTS = 32
FAST_MAX_LINE_LENGTH = 4096

_STRING_VALUE = re.compile(r"[^.,;|\n]+")
_INTEGER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_OUTPUT_DELIM = "|"
_UINT64 = 2**64


class FastType(Enum):
    INT = "int"
    UINT = "uInt"
    STRING = "string"
    VECTOR = "byteVector"
    DECIMAL = "decimal"
    SEQUENCE = "sequence"


class ScriptError(ValueError):
    """A script line does not match the message template."""


@dataclass
class FastField:
    """One field of a FAST message.

    A decimal's value is an ``(exponent, mantissa)`` pair; a sequence's
    value is a list of FastMessage elements.
    """

    type: FastType
    name: str = ""
    mandatory: bool = True
    op: str = "none"
    value: Any = None
    empty: bool = False


@dataclass
class FastMessage:
    fields: list[FastField] = field(default_factory=list)
    tid: int = 0

    def copy(self) -> FastMessage:
        return copy.deepcopy(self)


def _strtol(text: str, pos: int) -> tuple[int, int]:
    match = _INTEGER.match(text, pos)
    if match is None:
        return 0, pos
    return int(match.group(1)), match.end()


def parse_line(template: FastMessage, line: str) -> FastMessage:
    """Fill a copy of ``template`` with the values of one script line."""
    line = line[:FAST_MAX_LINE_LENGTH]
    msg = template.copy()
    msg.tid = 0
    pos = 0

    for item in msg.fields:
        if line.startswith("none", pos):
            if item.mandatory:
                raise ScriptError(f"mandatory field {item.name!r} cannot be none")
            item.empty = True
            item.value = None
            pos += 5
            continue

        item.empty = False
        if item.type is FastType.INT:
            item.value, end = _strtol(line, pos)
            pos = end + 1
        elif item.type is FastType.UINT:
            value, end = _strtol(line, pos)
            item.value = value % _UINT64
            pos = end + 1
        elif item.type is FastType.STRING:
            match = _STRING_VALUE.match(line, pos)
            if match is None:
                raise ScriptError(f"string field {item.name!r} has no value")
            item.value = match.group()
            pos = match.end() + 1
        elif item.type is FastType.DECIMAL:
            exp, end = _strtol(line, pos)
            pos = end + 1
            mnt, end = _strtol(line, pos)
            pos = end + 1
            item.value = (exp, mnt)
        else:
            raise ScriptError(f"fields of type {item.type.value} cannot be scripted")

    return msg


class ScriptContainer:
    """The template message followed by the scripted messages, with a cursor."""

    def __init__(self, template: FastMessage) -> None:
        self.template = template
        blank = template.copy()
        blank.tid = 0
        self._elements = [blank]
        self._cur = 0

    def __len__(self) -> int:
        return len(self._elements)

    def add(self, line: str) -> FastMessage:
        """Parse ``line`` and append the message it describes."""
        if len(self._elements) >= FAST_MAX_ELEMENTS:
            raise ScriptError(f"a script holds at most {FAST_MAX_ELEMENTS - 1} messages")
        msg = parse_line(self.template, line)
        self._elements.append(msg)
        return msg

    def current(self) -> FastMessage | None:
        if self._cur < len(self._elements):
            return self._elements[self._cur]
        return None

    def advance(self) -> FastMessage | None:
        self._cur += 1
        return self.current()


def read_script(stream: Iterable[str], template: FastMessage) -> ScriptContainer:
    """Read every line of ``stream`` into a container for ``template``."""
    container = ScriptContainer(template)
    for line in stream:
        if len(line) >= FAST_MAX_LINE_LENGTH:
            raise ScriptError("script line is too long")
        container.add(line)
    return container


def compare_messages(expected: FastMessage, actual: FastMessage) -> bool:
    """True if ``actual`` carries the fields and values ``expected`` describes."""
    if len(expected.fields) != len(actual.fields):
        return False

    for want, got in zip(expected.fields, actual.fields):
        if got.mandatory != want.mandatory or got.type != want.type or got.op != want.op:
            return False
        if got.empty:
            if want.empty:
                continue
            return False
        if want.type in (FastType.INT, FastType.UINT, FastType.STRING, FastType.DECIMAL):
            if got.value != want.value:
                return False
    return True


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def _format(msg: FastMessage) -> str:
    parts = [_OUTPUT_DELIM]
    for item in msg.fields:
        if item.empty:
            parts.append("none" + _OUTPUT_DELIM)
        elif item.type is FastType.DECIMAL:
            exp, mnt = item.value
            parts.append(f"{exp}{_OUTPUT_DELIM}{mnt}{_OUTPUT_DELIM}")
        elif item.type is FastType.SEQUENCE:
            elements = "".join(_format(element) + "\n" for element in item.value or [])
            parts.append(f"\n<sequence>\n{elements}</sequence>")
        else:
            parts.append(_text(item.value) + _OUTPUT_DELIM)
    return "".join(parts)


def format_message(msg: FastMessage) -> str:
    """One-line text of ``msg`` in the script notation, '|' separated."""
    return _format(msg)[:FAST_MAX_LINE_LENGTH - 1]