# tradewire

Building blocks for talking to trading venues at the wire level, in pure
Python with no third-party dependencies.

## What is inside

- `tradewire.numtoa` – fast, fixed-format number to text conversion:
  `itoa10`, `uitoa10`, `litoa10`, `ulitoa10` for integers, `dtoa` and
  `dtoa2` for floating point values with a given precision (`dtoa2` drops
  trailing zeros), and `uitoa16` for eight-digit upper-case hexadecimal.
- `tradewire.rawio` – reading and writing on file descriptors and sockets
  that retries on interrupted or would-block calls: `xread`, `xwrite`,
  `xwritev` and scatter/gather `sendmsg`.
- `tradewire.fix_field` – FIX field encoding (`FixField`, `FieldType`,
  `unparse_field`) and `FixTemplate`, a pre-rendered message whose
  sequence number, sender id, sending time and checksum are patched in
  place before each send.
- `tradewire.fix_session` – a FIX session (`FixSession`, configured with
  `session_config` or `FixSessionConfig`) covering logon and logout,
  heartbeats and test requests, resend requests, sequence resets, rejects
  and the common order-entry messages. `FixSession.admin` handles
  session-level messages so that application code only sees business
  messages.
- `tradewire.framing` – message framing for LSE ITCH, NYSE XDP and NYSE
  TAQ feeds, and `SoupBin3Session` for reading SoupBinTCP packets.
  Short input raises `IncompleteMessage`.
- `tradewire.mbt_quote` – decoding of MBT quote protocol messages into
  `MbtQuoteLoggingOn`; malformed input raises `MbtQuoteDecodeError`.
- `tradewire.fast_script` – script files describing expected FAST
  messages, one message per line: `read_script`, `parse_line`,
  `compare_messages`, `format_message` and the `ScriptContainer` cursor.
- `tradewire.book_config` – the XML configuration that lists market-data
  feeds and order books: `parse_config` and `parse_config_string` return a
  `BookSetConfig` of `FeedConfig` and `BookConfig` entries, or raise
  `ConfigError`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

`tradewire-config` prints the flags needed to build against the library,
or its version:

```
tradewire-config --version
tradewire-config --cflags --ldflags --libs
```

Run without options, or with an unknown one, it prints its usage to
standard error and exits with a failure status.