"""Models of a small teaching Unix kernel: paging, ELF headers, processes, syscalls, a shell parser and user tools."""

__version__ = "0.1.0"