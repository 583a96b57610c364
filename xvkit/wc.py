"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Optional, Sequence

_SPACE = b" \r\t\n\v"
_CHUNK = 512


@dataclass(frozen=True)
class WordCount:
    """Totals for one input."""

    lines: int
    words: int
    chars: int


def count(stream: BinaryIO) -> WordCount:
    """Count newlines, whitespace-separated words and bytes in a binary stream."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(_CHUNK):
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _SPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def _report(result: WordCount, name: str) -> None:
    sys.stdout.write(f"{result.lines} {result.words} {result.chars} {name}\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print counts for each named file, or for standard input if none."""
    names = list(sys.argv[1:] if argv is None else argv)
    if not names:
        try:
            _report(count(sys.stdin.buffer), "")
        except OSError:
            sys.stdout.write("wc: read error\n")
            return 1
        return 0
    for name in names:
        try:
            stream = open(name, "rb")
        except OSError:
            sys.stdout.write(f"wc: cannot open {name}\n")
            return 1
        with stream:
            try:
                result = count(stream)
            except OSError:
                sys.stdout.write("wc: read error\n")
                return 1
        _report(result, name)
    return 0