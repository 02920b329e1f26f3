"""Minimal formatted output understanding %d, %x, %p, %s, %c and %%."""

from __future__ import annotations

from typing import Any, TextIO

_DIGITS = "0123456789ABCDEF"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def format_int(value: int, base: int, signed: bool) -> str:
    """Render a 32-bit integer in the given base with upper-case digits.

    When signed is false, negative values appear as their unsigned 32-bit form.
    """
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"unsupported base {base}")
    xx = _to_int32(int(value))
    negative = signed and xx < 0
    x = -xx if negative else xx & 0xFFFFFFFF
    out = []
    while True:
        out.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        out.append("-")
    return "".join(reversed(out))


def _string_arg(arg: Any) -> str:
    if arg is None:
        return "(null)"
    if isinstance(arg, (bytes, bytearray)):
        raw = bytes(arg)
        end = raw.find(b"\0")
        return (raw if end < 0 else raw[:end]).decode("latin-1")
    return str(arg)


def _char_arg(arg: Any) -> str:
    if isinstance(arg, str):
        return arg[:1]
    return chr(int(arg) & 0xFF)


def sprintf(fmt: str, *args: Any) -> str:
    """Format fmt with args; unknown conversions are copied through."""
    values = iter(args)

    def take() -> Any:
        try:
            return next(values)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    out: list[str] = []
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        if c == "d":
            out.append(format_int(take(), 10, True))
        elif c in ("x", "p"):
            out.append(format_int(take(), 16, False))
        elif c == "s":
            out.append(_string_arg(take()))
        elif c == "c":
            out.append(_char_arg(take()))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
        pending = False
    return "".join(out)


def fprintf(stream: TextIO, fmt: str, *args: Any) -> int:
    """Write the formatted text to stream; returns the number of characters."""
    text = sprintf(fmt, *args)
    stream.write(text)
    return len(text)