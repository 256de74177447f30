"""Command that prints build flags for programs using this library."""

import getopt
import os
import sys

__all__ = ["VERSION", "DEFAULT_PREFIX", "build_output", "main"]

VERSION = "0.1.0"
DEFAULT_PREFIX = sys.prefix

_USAGE = (
    "Usage: {program} <option>\n"
    "\n"
    "Options:\n"
    "  --version  Print libtrading version.\n"
    "  --cflags   C compiler flags for files that include libtrading headers.\n"
    "  --ldflags  Linker flags.\n"
    "  --libs     Libraries needed to link against libtrading.\n"
)

_SHORT_OPTIONS = "cdlv"
_LONG_OPTIONS = ["version", "ldflags", "cflags", "libs"]


def build_output(version: bool, cflags: bool, ldflags: bool, libs: bool, prefix: str) -> str:
    """Return the line the command prints for the selected options."""
    if version:
        return VERSION
    parts = []
    if cflags:
        parts.append(f"-I{prefix}/include ")
    if ldflags:
        parts.append(f"-L{prefix}/lib ")
    if libs:
        parts.append("-ltrading -lz ")
    return "".join(parts)


def _usage() -> None:
    program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "libtrading-config"
    sys.stderr.write(_USAGE.format(program=program))
    raise SystemExit(1)


def main(argv=None) -> int:
    """Parse options, print the requested flags and return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        _usage()

    try:
        options, _ = getopt.gnu_getopt(args, _SHORT_OPTIONS, _LONG_OPTIONS)
    except getopt.GetoptError:
        _usage()

    selected = {opt for opt, _ in options}
    print(
        build_output(
            version=bool(selected & {"-v", "--version"}),
            cflags=bool(selected & {"-c", "--cflags"}),
            ldflags=bool(selected & {"-d", "--ldflags"}),
            libs=bool(selected & {"-l", "--libs"}),
            prefix=DEFAULT_PREFIX,
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())