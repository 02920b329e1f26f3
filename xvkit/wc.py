"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass

from xvkit.printf import fprintf

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass(frozen=True)
class WordCount:
    """Line, word and byte totals."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def _count_chunks(chunks: Iterable[bytes]) -> WordCount:
    lines = words = chars = 0
    inword = False
    for chunk in chunks:
        chars += len(chunk)
        lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in _WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def count(data: bytes) -> WordCount:
    """Count newlines, whitespace-separated words and bytes in data."""
    return _count_chunks([bytes(data)])


def _read_chunks(stream) -> Iterable[bytes]:
    while chunk := stream.read(_CHUNK):
        yield chunk


def _report(result: WordCount, name: str) -> None:
    fprintf(sys.stdout, "%d %d %d %s\n", result.lines, result.words, result.chars, name)


def main(argv: list[str] | None = None) -> int:
    """Print counts for each named file, or for standard input when none is named."""
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        try:
            result = _count_chunks(_read_chunks(sys.stdin.buffer))
        except OSError:
            fprintf(sys.stdout, "wc: read error\n")
            return 1
        _report(result, "")
        return 0
    for path in argv:
        try:
            stream = open(path, "rb")
        except OSError:
            fprintf(sys.stdout, "wc: cannot open %s\n", path)
            return 1
        with stream:
            try:
                result = _count_chunks(_read_chunks(stream))
            except OSError:
                fprintf(sys.stdout, "wc: read error\n")
                return 1
        _report(result, path)
    return 0