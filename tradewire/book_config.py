"""Order book configuration: market data feeds and the books to follow."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

__all__ = [
    "FeedConfig",
    "BookConfig",
    "BookSetConfig",
    "ConfigError",
    "parse_config",
    "parse_config_string",
]

_ATOI = re.compile(r"\s*([+-]?\d+)")


class ConfigError(ValueError):
    """The configuration document is missing or invalid."""


@dataclass
class FeedConfig:
    kind: str
    template: str
    port: int = 0
    ip: str = ""
    lip: str = ""
    sip: str = ""
    file: str = ""
    reset: bool = False
    preamble_bytes: int = 0


@dataclass
class BookConfig:
    symbol: str
    secid: int = 0
    tick_mnt: int = 0
    tick_exp: int = 0
    session: str = ""


@dataclass
class BookSetConfig:
    increment_feeds: list[FeedConfig] = field(default_factory=list)
    snapshot_feeds: list[FeedConfig] = field(default_factory=list)
    books: list[BookConfig] = field(default_factory=list)


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _value(elem: ET.Element) -> str:
    value = elem.get("value")
    if value is None:
        raise ConfigError(f"<{elem.tag}> has no value attribute")
    return value


def _parse_feeds(node: ET.Element, result: BookSetConfig, template: str) -> None:
    for elem in node:
        if elem.tag != "feed":
            raise ConfigError(f"unexpected <{elem.tag}> in <feeds>")
        kind = elem.get("type")
        if kind == "increment":
            target = result.increment_feeds
        elif kind == "snapshot":
            target = result.snapshot_feeds
        else:
            raise ConfigError(f"cannot add a feed of type {kind!r}")

        feed = FeedConfig(kind=kind, template=template)
        for item in elem:
            if item.tag == "port":
                feed.port = _atoi(_value(item))
            elif item.tag in ("ip", "lip", "sip", "file"):
                setattr(feed, item.tag, _value(item))
            elif item.tag == "reset":
                feed.reset = True
            elif item.tag == "preamble":
                feed.preamble_bytes = _atoi(_value(item))
        target.append(feed)


def _parse_books(node: ET.Element, result: BookSetConfig) -> None:
    for elem in node:
        if elem.tag != "book":
            raise ConfigError(f"unexpected <{elem.tag}> in <books>")
        symbol = elem.get("symbol")
        if symbol is None:
            raise ConfigError("<book> has no symbol attribute")
        book = BookConfig(symbol=symbol)
        for item in elem:
            value = _value(item)
            if item.tag == "id":
                book.secid = _atoi(value)
            elif item.tag == "tick_mnt":
                book.tick_mnt = _atoi(value)
            elif item.tag == "tick_exp":
                book.tick_exp = _atoi(value)
            elif item.tag == "session":
                book.session = value
        result.books.append(book)


def parse_config_string(text: str | bytes, template: str) -> BookSetConfig:
    """Parse a configuration document; every feed uses ``template``.

    The document must hold a <feeds> or <books> section before any other
    element.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ConfigError(f"malformed configuration: {exc}") from exc
    if root.tag != "config":
        raise ConfigError(f"root element is <{root.tag}>, not <config>")

    result = BookSetConfig()
    seen_section = False
    for node in root:
        if node.tag == "feeds":
            _parse_feeds(node, result, template)
            seen_section = True
        elif node.tag == "books":
            _parse_books(node, result)
            seen_section = True
        if not seen_section:
            raise ConfigError(f"unexpected <{node.tag}> before any section")
    if not seen_section:
        raise ConfigError("configuration has no feeds or books")
    return result


def parse_config(path: str, template: str) -> BookSetConfig:
    """Read and parse the configuration file at ``path``."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    return parse_config_string(data, template)