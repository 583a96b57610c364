# xvkit

`xvkit` models the parts of a small 32-bit x86 teaching kernel that make
sense away from real hardware: address arithmetic, descriptor encoding,
page tables over simulated physical memory, locks, system-call argument
checking, and a few user-level tools. Each part is a plain Python module
with no dependencies beyond the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `xvkit.params` | Kernel limits (`NPROC`, `NOFILE`, `MAXARG`, ...), `FileType`, `OpenFlag` and the `Stat` record |
| `xvkit.mmu` | Memory-layout and trap constants; `pdx`, `ptx`, `pgaddr`, `pg_round_up`, `pg_round_down`, `pte_addr`, `pte_flags`, `v2p`, `p2v`; `SegmentDescriptor` (`normal`, `seg16`, `pack`), `seg_asm`, `GateDescriptor` (`make`, `pack`) and `build_idt` |
| `xvkit.cstring` | NUL-terminated byte-string routines: `memcmp`, `memmove`, `memset`, `strncmp`, `strcmp`, `strncpy`, `safestrcpy`, `strlen`, `strchr`, `atoi`, `gets` |
| `xvkit.elf` | `ElfHeader` and `ProgramHeader` with `parse` and `pack`, `read_program_headers`, and `ElfFormatError` |
| `xvkit.vm` | `PagePool` of simulated physical pages, `AddressSpace` (walk, map, grow, shrink, copy, copy out, read) and `setup_kvm`; errors are `VMError` and `OutOfMemory` |
| `xvkit.locks` | `Cpu` interrupt nesting (`push_cli`, `pop_cli`), `SpinLock`, `SleepLock` and `LockError` |
| `xvkit.shell` | The command-line grammar: `parse_cmd`, `split_cd`, `Parser`, the nodes `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd`, `BackCmd`, and `ShellSyntaxError` |
| `xvkit.umalloc` | A first-fit, address-ordered free-list `Allocator` with `malloc`, `free`, `sbrk` and `free_blocks` |
| `xvkit.wc` | Line, word and byte counting: `count`, `WordCount` and `main` |
| `xvkit.syscall` | `SyscallNumber`, a `UserProcess` whose memory is checked by `fetch_int`, `fetch_str`, `arg_int`, `arg_ptr`, `arg_str` (raising `BadAddress`), and `SyscallTable` for `register` and `dispatch` |
| `xvkit.sanity` | Scheduler statistics: `Workload`, `ProcessTimes`, `WorkloadSummary`, `classify`, `summarize`, `format_report` |

## Installation

```
pip install xvkit
```

## Examples

Where an address falls in the page tables:

```python
from xvkit.mmu import pdx, ptx, pg_round_down, pg_round_up

va = 0x0040_3123
print(pdx(va), ptx(va))
print(hex(pg_round_down(va)), hex(pg_round_up(va)))
```

Map and use user memory in a simulated address space:

```python
from xvkit.vm import PagePool, AddressSpace

pool = PagePool(64)
space = AddressSpace(pool)
space.alloc_uvm(0, 8192)
space.copy_out(4090, b"hello world")
print(space.read(4090, 11))
space.free()
```

Parse a shell line into a command tree:

```python
from xvkit.shell import parse_cmd, ShellSyntaxError

tree = parse_cmd("cat < input | grep x > out ; echo done &")
print(tree)

try:
    parse_cmd("(echo hi")
except ShellSyntaxError as exc:
    print("rejected:", exc)
```

Read the headers of an executable image:

```python
from pathlib import Path
from xvkit.elf import ElfHeader, read_program_headers

data = Path("program.elf").read_bytes()
header = ElfHeader.parse(data)
for ph in read_program_headers(data, header):
    print(ph)
```

Count a stream the way the word-count tool does:

```python
import io
from xvkit.wc import count

print(count(io.BytesIO(b"hello world\nsecond line\n")))
```

## Command line

The word-count tool is installed as `xvwc`:

```
xvwc notes.txt other.txt
```

Each output line holds the line count, word count, byte count and file
name. With no file names it reads standard input. If a file cannot be
opened it prints `wc: cannot open NAME` and stops with exit status 1.

## What it does not do

- There is no file system, inode layer, buffer cache or disk log; `Stat`
  and `OpenFlag` are records and flags only.
- There are no processes, scheduler or system-call implementations.
  `SyscallTable` dispatches to handlers you register yourself.
- The shell module parses command lines; it does not run them.
- `xvkit.sanity` averages timing records you supply; it does not start
  workloads or measure anything.
- Nothing boots or drives hardware: descriptors and page tables are
  encoded into bytes and simulated memory only.

## Running the tests

```
pip install "xvkit[test]"
pytest
```