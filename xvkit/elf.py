"""ELF executable header and program header formats."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """Raised when data is not a well-formed ELF image."""


@dataclass
class ElfHeader:
    """ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = field(default=bytes(12))
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _HEADER.size

    @classmethod
    def parse(cls, data: bytes) -> ElfHeader:
        """Read the header at the start of data; the magic must match."""
        if len(data) < _HEADER.size:
            raise ElfFormatError("data too short for an ELF header")
        header = cls(*_HEADER.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        """Encode the header."""
        if len(self.elf) != 12:
            raise ValueError("elf identification must be 12 bytes")
        return _HEADER.pack(
            self.magic,
            bytes(self.elf),
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )


@dataclass
class ProgramHeader:
    """ELF program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE = _PROGHDR.size

    @property
    def loadable(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> ProgramHeader:
        """Read a program header at the given offset."""
        if offset < 0 or offset + _PROGHDR.size > len(data):
            raise ElfFormatError(f"program header at {offset} lies outside the data")
        return cls(*_PROGHDR.unpack_from(data, offset))

    def pack(self) -> bytes:
        """Encode the program header."""
        return _PROGHDR.pack(
            self.type,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.flags,
            self.align,
        )


def program_headers(data: bytes) -> Iterator[ProgramHeader]:
    """Yield each program header of an ELF image in table order."""
    header = ElfHeader.parse(data)
    offset = header.phoff
    for _ in range(header.phnum):
        yield ProgramHeader.parse(data, offset)
        offset += _PROGHDR.size