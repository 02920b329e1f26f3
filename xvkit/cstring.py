"""C-style string and memory helpers over NUL-terminated byte strings."""

from __future__ import annotations

from typing import Union

Text = Union[bytes, bytearray, memoryview, str]


def _raw(s: Text) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: Text) -> bytes:
    """The bytes up to, not including, the first NUL."""
    raw = _raw(s)
    end = raw.find(b"\0")
    return raw if end < 0 else raw[:end]


def _at(s: bytes, i: int) -> int:
    return s[i] if i < len(s) else 0


def strcmp(p: Text, q: Text) -> int:
    """Compare two strings as unsigned chars; negative, zero or positive."""
    a, b = _cstr(p), _cstr(q)
    i = 0
    while _at(a, i) and _at(a, i) == _at(b, i):
        i += 1
    return _at(a, i) - _at(b, i)


def strncmp(p: Text, q: Text, n: int) -> int:
    """Compare at most n characters of two strings."""
    a, b = _cstr(p), _cstr(q)
    i = 0
    while n > 0 and _at(a, i) and _at(a, i) == _at(b, i):
        n -= 1
        i += 1
    if n <= 0:
        return 0
    return _at(a, i) - _at(b, i)


def memcmp(a: Text, b: Text, n: int) -> int:
    """Compare the first n bytes, NULs included."""
    x, y = _raw(a), _raw(b)
    if len(x) < n or len(y) < n:
        raise ValueError(f"memcmp needs {n} bytes from each operand")
    for c1, c2 in zip(x[:n], y[:n]):
        if c1 != c2:
            return c1 - c2
    return 0


def strncpy(src: Text, n: int) -> bytes:
    """Fill an n-byte buffer from src, padding with NULs; may leave it unterminated."""
    if n <= 0:
        return b""
    return _cstr(src)[:n].ljust(n, b"\0")


def safestrcpy(src: Text, n: int) -> bytes:
    """Copy src into an n-byte buffer that is always NUL-terminated.

    Returns the string stored, without its terminator.
    """
    if n <= 0:
        return b""
    return _cstr(src)[: n - 1]


def strchr(s: Text, c: Union[int, str, bytes]) -> int | None:
    """Index of the first c in the string, or None when absent."""
    if isinstance(c, (str, bytes)):
        if len(c) != 1:
            raise ValueError("strchr expects a single character")
        c = _raw(c)[0]
    c &= 0xFF
    idx = _cstr(s).find(bytes([c])) if c else -1
    return None if idx < 0 else idx


def atoi(s: Text) -> int:
    """Value of the leading decimal digits; zero when there are none."""
    n = 0
    for ch in _cstr(s):
        if not 0x30 <= ch <= 0x39:
            break
        n = n * 10 + ch - 0x30
    return n