# kernelsim

kernelsim is a small simulated operating system that runs in your terminal.
It gives you an interactive shell backed by:

- a **shell memory** of named string variables (`kernelsim.memory.ShellMemory`);
- a **paged RAM** of ten frames, each holding a page of up to four program lines
  (`kernelsim.memorymanager`);
- a **CPU** that runs a program two lines at a time (`kernelsim.cpu.CPU`);
- a **round-robin scheduler** that switches between programs and handles page
  faults (`kernelsim.kernel.Kernel`);
- a **disk driver** that keeps files in a partition file made of fixed-size
  blocks, reached through an I/O scheduler (`kernelsim.disk`).

It needs nothing beyond the Python standard library (Python 3.10 or later).

## Installing

```
pip install .
```

## Starting the shell

```
kernelsim
```

On start the kernel empties RAM and deletes and recreates the `BackingStore`
directory in the current working directory. The shell then prints a `$ `
prompt and reads one command per line until you type `quit` or input ends,
and finishes with `Good bye.`.

## Commands

| Command | What it does |
| --- | --- |
| `help` | List the commands |
| `quit` | Print `Bye.` and leave the shell |
| `set VAR STRING` | Store `STRING` under `VAR` |
| `print VAR` | Show the value stored under `VAR` (`(null)` if it was never set) |
| `run SCRIPT.TXT` | Run each line of `SCRIPT.TXT` as a shell command |
| `exec P1 P2 P3` | Load up to three programs into paged memory and run them round-robin |
| `Mount NAME BLOCK_SIZE TOTAL_BLOCKS` | Create the partition `NAME` if it does not exist, then mount it |
| `Write FILE [some words]` | Write the bracketed text to `FILE` on the mounted partition |
| `Read FILE VAR` | Read `FILE` from its start and store its contents in `VAR` |

A command line is split on spaces into at most four words; the third word may
be written in square brackets to hold spaces. Errors are printed as messages
such as `Command does not exist` or `Wrong number of set parameters`, and the
shell carries on.

### Scripts and programs

- `run` skips blank lines, and does not run a final line that lacks a newline.
  A `quit` inside a script stops the script and the shell.
- `exec` prints the programs it was given (for example
  `f1:prog.txt f2:(null) f3:(null)`), copies each one into `BackingStore` as
  `P1.txt`, `P2.txt` and `P3.txt`, loads its first two pages into free RAM
  frames and schedules the programs two lines at a time. Each program line is
  run as a shell command. When a program moves past its fourth line, a page
  fault loads the next page, evicting a frame that does not belong to the
  program if RAM is full. A `quit` inside a program ends only that program.
  A final line without a newline is not run.

### Disk partitions

Partitions are kept as text files in a `PARTITION` directory in the current
working directory. Each one holds the block size, the block count, a file
allocation table of twenty entries (ten block pointers per file) and a data
area in which a free block is marked with `0`. Every change is written back
to the partition file straight away, so a partition can be mounted again in a
later session.

`Write` fills whole blocks, and `Read` returns whole blocks, so the last block
of a file comes back padded with `0` characters.

## Example session

```
$ set greeting hello
$ print greeting
hello
$ Mount disk.txt 5 10
$ Write notes [hello world]
$ Read notes text
$ print text
hello world0000
$ quit
Bye.
Good bye.
```

## Using it from Python

The pieces can also be driven directly:

```python
import io

from kernelsim.memory import ShellMemory
from kernelsim.shell import Shell, parse

memory = ShellMemory()
memory.set("x", "42")
assert memory.get("x") == "42"

parsed = parse("Write notes [hello world]\n")
assert parsed.args[:3] == ("Write", "notes", "hello world")
assert parsed.complete

out = io.StringIO()
shell = Shell(out=out)
shell.prompt("set y 7\n")
shell.prompt("print y\n")
assert out.getvalue() == "7\n"
```

`Shell.prompt` runs one line and returns `True` when it asked to quit;
`Shell.loop` runs a whole stream. `kernelsim.kernel.Kernel(root=...)` keeps its
`BackingStore` and `PARTITION` directories below another directory, and
`Kernel.boot()` resets RAM, the backing store and the disk.

## Limits

- Files on a partition cannot be deleted or renamed, and a file has at most
  ten blocks.
- `Write` takes a single bracketed phrase; there is no way to append to a file
  other than writing again after its last block.
- Only one partition is mounted at a time.