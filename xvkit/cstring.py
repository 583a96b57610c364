"""Byte-string helpers with NUL-terminated semantics."""

from __future__ import annotations

from itertools import zip_longest
from typing import BinaryIO, Union

BytesLike = Union[bytes, bytearray, memoryview]

WHITESPACE = b" \t\r\n\v"


def _as_bytes(s: Union[BytesLike, str]) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: Union[BytesLike, str]) -> bytes:
    """The part of s before its first NUL."""
    data = _as_bytes(s)
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def memcmp(v1: BytesLike, v2: BytesLike, n: int) -> int:
    """Compare the first n bytes; the difference of the first unequal pair, or 0."""
    if n > len(v1) or n > len(v2):
        raise ValueError("memcmp: n exceeds buffer length")
    for a, b in zip(bytes(v1[:n]), bytes(v2[:n])):
        if a != b:
            return a - b
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes from src to dst within buf; overlapping ranges are safe."""
    if n < 0 or dst < 0 or src < 0 or dst + n > len(buf) or src + n > len(buf):
        raise IndexError("memmove: range outside buffer")
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def memset(buf: bytearray, dst: int, c: int, n: int) -> bytearray:
    """Fill n bytes of buf at dst with the low byte of c."""
    if n < 0 or dst < 0 or dst + n > len(buf):
        raise IndexError("memset: range outside buffer")
    buf[dst:dst + n] = bytes([c & 0xFF]) * n
    return buf


def strncmp(p: Union[BytesLike, str], q: Union[BytesLike, str], n: int) -> int:
    """Compare at most n characters of two NUL-terminated strings."""
    for a, b in zip_longest(_cstr(p)[:n], _cstr(q)[:n], fillvalue=0):
        if a != b:
            return a - b
    return 0


def strcmp(p: Union[BytesLike, str], q: Union[BytesLike, str]) -> int:
    """Compare two NUL-terminated strings."""
    for a, b in zip_longest(_cstr(p), _cstr(q), fillvalue=0):
        if a != b:
            return a - b
    return 0


def strncpy(t: Union[BytesLike, str], n: int) -> bytes:
    """Exactly n bytes: t up to its NUL, then zero padding; no terminator if t fills n."""
    if n <= 0:
        return b""
    return _cstr(t)[:n].ljust(n, b"\0")


def safestrcpy(t: Union[BytesLike, str], n: int) -> bytes:
    """Like strncpy into an n-byte buffer, but always NUL-terminated and unpadded."""
    if n <= 0:
        return b""
    return _cstr(t)[:n - 1] + b"\0"


def strlen(s: Union[BytesLike, str]) -> int:
    """Number of bytes before the first NUL."""
    return len(_cstr(s))


def strchr(s: Union[BytesLike, str], c: Union[int, bytes, str]) -> int | None:
    """Index of the first c before the terminating NUL, or None."""
    if not isinstance(c, int):
        c = _as_bytes(c)[0]
    index = _cstr(s).find(bytes([c & 0xFF]))
    return None if index < 0 else index


def atoi(s: Union[BytesLike, str]) -> int:
    """Value of the leading decimal digits; no sign or whitespace is accepted."""
    value = 0
    for ch in _as_bytes(s):
        if not 0x30 <= ch <= 0x39:
            break
        value = value * 10 + (ch - 0x30)
    return value


def gets(stream: BinaryIO, max: int) -> bytes:
    """Read at most max-1 bytes, stopping after a newline or carriage return."""
    out = bytearray()
    while len(out) + 1 < max:
        ch = stream.read(1)
        if not ch:
            break
        out += ch
        if ch in (b"\n", b"\r"):
            break
    return bytes(out)