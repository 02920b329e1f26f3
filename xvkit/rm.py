"""Remove files, and empty directories."""

from __future__ import annotations

import os
import sys

from xvkit.printf import fprintf


def _unlink(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.unlink(path)


def main(argv: list[str] | None = None) -> int:
    """Remove each named path; stop at the first that cannot be removed."""
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        fprintf(sys.stderr, "Usage: rm files...\n")
        return 1
    for path in argv:
        try:
            _unlink(path)
        except OSError:
            fprintf(sys.stderr, "rm: %s failed to delete\n", path)
            return 1
    return 0