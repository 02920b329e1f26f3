import pytest

from xvkit.elf import (
    ELF_MAGIC,
    ELF_PROG_FLAG_EXEC,
    ELF_PROG_FLAG_READ,
    ELF_PROG_LOAD,
    ElfFormatError,
    ElfHeader,
    ProgramHeader,
    program_headers,
)


def _image(phdrs):
    hdr = ElfHeader(entry=0x1000, phoff=ElfHeader.SIZE, phnum=len(phdrs),
                    phentsize=ProgramHeader.SIZE)
    return hdr, hdr.pack() + b"".join(p.pack() for p in phdrs)


def test_magic_bytes():
    assert ElfHeader().pack()[:4] == b"\x7fELF"
    assert int.from_bytes(b"\x7fELF", "little") == ELF_MAGIC


def test_header_round_trip():
    hdr = ElfHeader(elf=b"\x01" * 12, type=2, machine=3, version=1,
                    entry=0x8048000, phoff=52, phnum=2, shstrndx=5)
    raw = hdr.pack()
    assert len(raw) == ElfHeader.SIZE
    assert ElfHeader.parse(raw) == hdr


def test_bad_magic():
    raw = bytearray(ElfHeader().pack())
    raw[0] = 0
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(bytes(raw))


def test_short_header():
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(ElfHeader().pack()[:-1])


def test_bad_ident_length():
    with pytest.raises(ValueError):
        ElfHeader(elf=b"abc").pack()


def test_program_header_round_trip():
    ph = ProgramHeader(type=ELF_PROG_LOAD, off=0x1000, vaddr=0, filesz=100,
                       memsz=200, flags=ELF_PROG_FLAG_READ | ELF_PROG_FLAG_EXEC,
                       align=4096)
    raw = ph.pack()
    assert len(raw) == ProgramHeader.SIZE
    assert ProgramHeader.parse(raw) == ph
    assert ph.loadable


def test_program_header_out_of_range():
    with pytest.raises(ElfFormatError):
        ProgramHeader.parse(b"\x00" * 10, 0)


def test_program_headers_listing():
    phdrs = [
        ProgramHeader(type=ELF_PROG_LOAD, off=0, filesz=10, memsz=10),
        ProgramHeader(type=0, off=64, filesz=1, memsz=1),
    ]
    _, data = _image(phdrs)
    found = list(program_headers(data))
    assert found == phdrs
    assert [p.loadable for p in found] == [True, False]


def test_program_headers_truncated():
    phdrs = [ProgramHeader(type=ELF_PROG_LOAD)]
    _, data = _image(phdrs)
    with pytest.raises(ElfFormatError):
        list(program_headers(data[:-4]))