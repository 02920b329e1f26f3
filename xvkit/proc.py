"""Process table: allocation, fork, exit, wait, sleep/wakeup, kill and listings."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from xvkit.mmu import KERNBASE, PGSIZE
from xvkit.printf import sprintf

NPROC = 64
NAME_SIZE = 16
DEFAULT_GID = 0
DEFAULT_UID = 0


class KernelPanic(RuntimeError):
    """An unrecoverable kernel condition."""


class ProcState(IntEnum):
    """Life-cycle states of a process table slot."""

    UNUSED = 0
    EMBRYO = 1
    SLEEPING = 2
    RUNNABLE = 3
    RUNNING = 4
    ZOMBIE = 5

    @property
    def label(self) -> str:
        """Six-character label used in listings."""
        return _STATE_LABELS[self]


_STATE_LABELS = {
    ProcState.UNUSED: "unused",
    ProcState.EMBRYO: "embryo",
    ProcState.SLEEPING: "sleep ",
    ProcState.RUNNABLE: "runble",
    ProcState.RUNNING: "run   ",
    ProcState.ZOMBIE: "zombie",
}


def _truncate_name(name: str) -> str:
    end = name.find("\0")
    if end >= 0:
        name = name[:end]
    return name[: NAME_SIZE - 1]


@dataclass(eq=False)
class Process:
    """One slot of the process table."""

    slot: int
    state: ProcState = ProcState.UNUSED
    pid: int = 0
    parent: Optional["Process"] = None
    sz: int = 0
    chan: Optional[Hashable] = None
    killed: bool = False
    name: str = ""
    uid: int = DEFAULT_UID
    gid: int = DEFAULT_GID

    @property
    def ppid(self) -> int:
        """Pid of the parent, or 0 when there is none."""
        return self.parent.pid if self.parent is not None else 0

    def _reset(self) -> None:
        self.state = ProcState.UNUSED
        self.pid = 0
        self.parent = None
        self.sz = 0
        self.chan = None
        self.killed = False
        self.name = ""


@dataclass(frozen=True)
class ProcessInfo:
    """A snapshot of one process as reported to user programs."""

    name: str
    pid: int
    uid: int
    gid: int
    ppid: int
    size: int
    state: str


class ProcessTable:
    """A fixed-size table of processes and the operations on it."""

    def __init__(self, nproc: int = NPROC) -> None:
        if nproc <= 0:
            raise ValueError("process table needs at least one slot")
        self._procs = [Process(slot=i) for i in range(nproc)]
        self._nextpid = 1
        self.initproc: Optional[Process] = None

    def __iter__(self) -> Iterator[Process]:
        return iter(self._procs)

    def allocate(self) -> Process:
        """Claim an unused slot, give it the next pid and make it an embryo."""
        for p in self._procs:
            if p.state == ProcState.UNUSED:
                p.state = ProcState.EMBRYO
                p.pid = self._nextpid
                self._nextpid += 1
                p.gid = DEFAULT_GID
                p.uid = DEFAULT_UID
                return p
        raise RuntimeError("process table is full")

    def userinit(self) -> Process:
        """Create the first user process, one page in size."""
        p = self.allocate()
        self.initproc = p
        p.sz = PGSIZE
        p.name = "initcode"
        p.state = ProcState.RUNNABLE
        return p

    def fork(self, parent: Process) -> Process:
        """Create a runnable copy of parent and return the child."""
        child = self.allocate()
        child.sz = parent.sz
        child.parent = parent
        child.gid = parent.gid
        child.uid = parent.uid
        child.name = _truncate_name(parent.name)
        child.state = ProcState.RUNNABLE
        return child

    def growproc(self, proc: Process, n: int) -> int:
        """Grow or shrink proc's memory by n bytes; return the old size.

        Raises MemoryError when the size would reach the kernel's addresses
        and ValueError when it would drop below zero.
        """
        old = proc.sz
        new = old + n
        if n > 0 and new >= KERNBASE:
            raise MemoryError(f"cannot grow process to {new} bytes")
        if n < 0 and new < 0:
            raise ValueError(f"cannot shrink process below zero bytes by {n}")
        proc.sz = new
        return old

    def _wakeup1(self, chan: Optional[Hashable]) -> int:
        woken = 0
        for p in self._procs:
            if p.state == ProcState.SLEEPING and p.chan is chan:
                p.state = ProcState.RUNNABLE
                p.chan = None
                woken += 1
        return woken

    def exit(self, proc: Process) -> None:
        """Turn proc into a zombie, waking its parent and handing its children to init."""
        if proc is self.initproc:
            raise KernelPanic("init exiting")
        if proc.parent is not None:
            self._wakeup1(proc.parent)
        for p in self._procs:
            if p.parent is proc:
                p.parent = self.initproc
                if p.state == ProcState.ZOMBIE and self.initproc is not None:
                    self._wakeup1(self.initproc)
        proc.state = ProcState.ZOMBIE

    def wait(self, proc: Process) -> Optional[int]:
        """Reap a zombie child of proc and return its pid.

        With living children but no zombie, proc goes to sleep until a child
        exits and None is returned. Raises ChildProcessError when proc has no
        children and InterruptedError when proc has been killed.
        """
        havekids = False
        for p in self._procs:
            if p.parent is not proc:
                continue
            havekids = True
            if p.state == ProcState.ZOMBIE:
                pid = p.pid
                p._reset()
                return pid
        if not havekids:
            raise ChildProcessError(f"process {proc.pid} has no children")
        if proc.killed:
            raise InterruptedError(f"process {proc.pid} was killed")
        self.sleep(proc, proc)
        return None

    def kill(self, pid: int) -> None:
        """Mark the process with pid killed, waking it if it sleeps."""
        for p in self._procs:
            if p.state != ProcState.UNUSED and p.pid == pid:
                p.killed = True
                if p.state == ProcState.SLEEPING:
                    p.state = ProcState.RUNNABLE
                    p.chan = None
                return
        raise ProcessLookupError(f"no process with pid {pid}")

    def sleep(self, proc: Optional[Process], chan: Hashable) -> None:
        """Put proc to sleep on chan."""
        if proc is None:
            raise KernelPanic("sleep")
        proc.chan = chan
        proc.state = ProcState.SLEEPING

    def wakeup(self, chan: Hashable) -> int:
        """Make every process sleeping on chan runnable; return how many woke."""
        return self._wakeup1(chan)

    def runnable(self) -> list[Process]:
        """Runnable processes in the order the scheduler visits them."""
        return [p for p in self._procs if p.state == ProcState.RUNNABLE]

    def yield_cpu(self, proc: Process) -> None:
        """Give up the processor for one scheduling round."""
        proc.state = ProcState.RUNNABLE

    def procdump(self) -> str:
        """A listing of every used slot, one line each."""
        return "".join(
            sprintf(
                "pid:%d uid:%d gid:%dstate:%s name:%s\n",
                p.pid,
                p.uid,
                p.gid,
                p.state.label,
                p.name,
            )
            for p in self._procs
            if p.state != ProcState.UNUSED
        )

    def getallprocinfo(self, max_entries: int) -> list[ProcessInfo]:
        """Snapshots of the leading used slots, at most max_entries.

        The scan stops at the first unused slot.
        """
        table = []
        for p in self._procs:
            if len(table) >= max_entries or p.state == ProcState.UNUSED:
                break
            table.append(
                ProcessInfo(
                    name=p.name,
                    pid=p.pid,
                    uid=p.uid,
                    gid=p.gid,
                    ppid=p.ppid,
                    size=p.sz,
                    state=p.state.label,
                )
            )
        return table