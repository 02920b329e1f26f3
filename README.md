# xvkit

Pure-Python models of the pieces of a small teaching Unix kernel for
32-bit x86 and of a few user programs that run on it. Each module can be
used on its own to explore, test or teach how those pieces behave.

## Installation

```
pip install xvkit
```

For running the test suite:

```
pip install "xvkit[test]"
pytest
```

## What is inside

| Module | Contents |
| --- | --- |
| `xvkit.mmu` | Eflags, control-register, segment, paging and memory-layout constants; page directory/table index helpers (`pdx`, `ptx`, `pgaddr`), page rounding (`pgroundup`, `pgrounddown`), PTE helpers (`pte_addr`, `pte_flags`), kernel address translation (`v2p`, `p2v`), segment and gate descriptors (`SegmentDescriptor`, `GateDescriptor`, `seg`, `seg16`, `seg_asm`, `make_gate`) |
| `xvkit.elf` | `ElfHeader` and `ProgramHeader` parsing and packing, `program_headers`, `ElfFormatError` |
| `xvkit.cstring` | C string semantics on bytes or text: `strcmp`, `strncmp`, `memcmp`, `strncpy`, `safestrcpy`, `strchr`, `atoi` |
| `xvkit.printf` | A small formatter understanding `%d`, `%x`, `%p`, `%s`, `%c` and `%%`: `format_int`, `sprintf`, `fprintf` |
| `xvkit.syscalls` | System call numbers (`Syscall`), open flags (`OpenFlag`), `syscall_name`, `file_access`, and a dispatching `SyscallTable` |
| `xvkit.sh` | The shell's tokenizer and recursive-descent parser (`tokenize`, `parse_command`) producing `ExecCommand`, `RedirCommand`, `PipeCommand`, `ListCommand` and `BackCommand` trees; the `_set`/`_get` uid/gid builtins (`set_builtin`, `get_builtin`, `run_builtin`, `Credentials`) |
| `xvkit.umalloc` | A first-fit, address-ordered free-list `Allocator` with `malloc`, `free` and `free_blocks` over a simulated heap |
| `xvkit.proc` | `ProcessTable` with `allocate`, `userinit`, `fork`, `growproc`, `exit`, `wait`, `kill`, `sleep`/`wakeup`, `runnable`, `yield_cpu`, `procdump` and `getallprocinfo` |
| `xvkit.vm` | A `PhysicalMemory` page pool and two-level `AddressSpace` page tables: mapping, loading, growing, shrinking, copying, `uva2ka` and `copyout` |
| `xvkit.wc` | Line, word and byte counting (`count`, `WordCount`) and the `xvkit-wc` command |
| `xvkit.rm` | The `xvkit-rm` command |

## Examples

Paging arithmetic:

```python
from xvkit.mmu import pdx, ptx, pgroundup

pdx(0x8040_3000)     # page directory index
ptx(0x8040_3000)     # page table index
pgroundup(4097)      # 8192
```

Formatting:

```python
from xvkit.printf import sprintf

sprintf("%d %x %s\n", -5, 255, "ok")   # '-5 FF ok\n'
```

Parsing a shell line:

```python
from xvkit.sh import parse_command

cmd = parse_command("cat README | grep kernel > out; echo done &")
```

Counting:

```python
from xvkit.wc import count

count(b"one two\nthree\n")   # WordCount(lines=2, words=3, chars=14)
```

Parse errors raise `ShellError`, kernel invariant violations raise
`KernelPanic` (processes) or `VMPanic` (virtual memory), and malformed
ELF data raises `ElfFormatError`.

## Command-line tools

Count lines, words and bytes of files, or of standard input when no file
is given:

```
xvkit-wc README.md
```

Remove files and empty directories, stopping at the first one that cannot
be removed:

```
xvkit-rm old.txt scratch.log
```

## What the package does not do

It is a set of models, not a running system. The shell module parses
command lines and runs its builtins but does not execute commands, set up
pipes or perform redirections. There is no file system, disk, console or
device handling: processes, page tables and the heap all live in Python
objects, and `SyscallTable` dispatches only to handlers you register.