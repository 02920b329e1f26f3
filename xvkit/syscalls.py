"""System call numbers, open-mode flags and the kernel's dispatch table."""

from __future__ import annotations

import sys
from collections.abc import Callable
from enum import IntEnum, IntFlag
from typing import TextIO

from xvkit.printf import fprintf

Handler = Callable[[], int]


class Syscall(IntEnum):
    """System call numbers as user code places them in %eax."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    DATE = 22
    GETGID = 24
    GETUID = 25
    GETPPID = 26
    SETGID = 27
    SETUID = 28
    GETPROCS = 29


class OpenFlag(IntFlag):
    """Mode bits accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


# One past the highest system call number; the table has this many slots.
_TABLE_SIZE = max(Syscall) + 1


def syscall_name(num: int) -> str:
    """Name of a system call number; ValueError for numbers with no call."""
    try:
        return Syscall(num).name.lower()
    except ValueError:
        raise ValueError(f"no system call numbered {num}") from None


def file_access(omode: int) -> tuple[bool, bool]:
    """Whether a file opened with omode is (readable, writable)."""
    readable = not (omode & OpenFlag.WRONLY)
    writable = bool(omode & OpenFlag.WRONLY) or bool(omode & OpenFlag.RDWR)
    return readable, writable


class SyscallTable:
    """Maps system call numbers to handlers and dispatches to them.

    A number without a handler yields -1 and a console message naming the
    calling process, as the kernel does.
    """

    def __init__(
        self,
        console: TextIO | None = None,
        pid: int = 0,
        name: str = "",
        trace: bool = False,
    ) -> None:
        self._handlers: dict[int, Handler] = {}
        self.console = console
        self.pid = pid
        self.name = name
        self.trace = trace

    def _out(self) -> TextIO:
        return self.console if self.console is not None else sys.stderr

    def register(self, num: int, handler: Handler) -> None:
        """Install handler for system call num."""
        call = Syscall(num)
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[call] = handler

    def __contains__(self, num: object) -> bool:
        return num in self._handlers

    def dispatch(self, num: int) -> int:
        """Run the handler for num and return its result, or -1 if there is none."""
        handler = self._handlers.get(num) if 0 < num < _TABLE_SIZE else None
        if handler is None:
            fprintf(self._out(), "%d %s: unknown sys call %d\n", self.pid, self.name, num)
            return -1
        result = handler()
        if self.trace:
            fprintf(self._out(), "%s --> %d\n", syscall_name(num), result)
        return result