"""Command interpreter for the shell."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from typing import TextIO

from kernelsim.disk import DiskError, IOCommand
from kernelsim.kernel import Kernel
from kernelsim.memory import ShellMemory

SET_ERROR = "Wrong number of set parameters"
PRINT_ERROR = "Wrong number of print parameters"
RUN_ERROR = "Run is  missing filename"
SCRIPT_NOT_FOUND = "Script filename not found"
EXEC_ERROR = "The exec progam was not found"
MOUNT_ERROR = "Missing parameters in Mount"
WRITE_ERROR = "Missing parameters in Write"
READ_ERROR = "Missing parameters in Read"
UNKNOWN_COMMAND = "Command does not exist"

HELP_TEXT = (
    "Legal commands:\n"
    "help              display this help\n"
    "quit              exits the shell\n"
    "set VAR STRING    assign STRING to VAR\n"
    "print VAR         display contents of VAR\n"
    "run SCRIPT.TXT    interpret SCRIPT.TXT\n"
    "exec P1 P2 P2     can run up to 3 distinct programs\n"
    "Mount number_of_blocks block_size\tmount partition\n"
    "Write filename [a bunch of words]\twrite to a file\n"
    "Read filename variable\tread a file from beginning"
)

MAX_PROGRAMS = 3
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class CommandError(Exception):
    """A command was malformed or could not be carried out."""


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _show(value: str | None) -> str:
    return "(null)" if value is None else value


class Interpreter:
    """Carries out parsed shell commands.

    ``prompt`` handles one raw input line and returns True when it asked to
    quit; scripts and launched programs are fed through it.
    """

    def __init__(
        self,
        kernel: Kernel,
        prompt: Callable[[str], bool],
        memory: ShellMemory | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.kernel = kernel
        self.prompt = prompt
        self.memory = memory if memory is not None else ShellMemory()
        self.out = out

    def _print(self, text: str) -> None:
        print(text, file=self.out)

    def execute(self, args: Sequence[str]) -> bool:
        """Run one command; return True if the shell should exit."""
        cmd, arg1, arg2, arg3 = (list(args) + [""] * 4)[:4]
        match cmd:
            case "help":
                self._print(HELP_TEXT)
            case "quit":
                self._print("Bye.")
                return True
            case "set":
                if not arg1 or not arg2:
                    raise CommandError(SET_ERROR)
                self.memory.set(arg1, arg2)
            case "print":
                if not arg1:
                    raise CommandError(PRINT_ERROR)
                self._print(_show(self.memory.get(arg1)))
            case "run":
                if not arg1:
                    raise CommandError(RUN_ERROR)
                return self.run_script(arg1)
            case "exec":
                if not arg1:
                    raise CommandError(EXEC_ERROR)
                self.exec_programs([arg1, arg2, arg3])
            case "Mount":
                self._mount(arg1, arg2, arg3)
            case "Write":
                if not arg1 or not arg2:
                    raise CommandError(WRITE_ERROR)
                self._use_file(arg1)
                try:
                    self.kernel.io.request(arg2, None, IOCommand.WRITE)
                except DiskError as exc:
                    self._print(str(exc))
            case "Read":
                if not arg1 or not arg2:
                    raise CommandError(READ_ERROR)
                self._use_file(arg1)
                try:
                    data = self.kernel.io.request(None, None, IOCommand.READ)
                except DiskError as exc:
                    self._print(str(exc))
                    data = ""
                self.memory.set(arg2, data)
            case _:
                raise CommandError(UNKNOWN_COMMAND)
        return False

    def run_script(self, filename: str) -> bool:
        """Feed each line of ``filename`` to the prompt.

        Blank lines are skipped and a final line without a newline is not
        run. Returns True if a line asked to quit.
        """
        try:
            handle = open(filename, "r")
        except OSError as exc:
            raise CommandError(SCRIPT_NOT_FOUND) from exc
        with handle:
            for line in handle:
                if not line.endswith("\n"):
                    break
                if len(line) > 1 and self.prompt(line):
                    return True
        return False

    def exec_programs(self, files: Iterable[str]) -> None:
        """Launch up to three programs and schedule them.

        The scheduler runs only if the last program named could be launched.
        """
        names = [name or None for name in files][:MAX_PROGRAMS]
        names += [None] * (MAX_PROGRAMS - len(names))
        self._print(
            " ".join(f"f{n}:{_show(name)}" for n, name in enumerate(names, start=1))
        )
        launched = False
        for position, name in enumerate(names, start=1):
            if name is None:
                continue
            try:
                self.kernel.launch(name, f"P{position}.txt")
            except (OSError, MemoryError):
                launched = False
            else:
                launched = True
        if launched:
            self.kernel.scheduler(self.prompt)

    def _mount(self, name: str, size_text: str, count_text: str) -> None:
        if not name or not size_text or not count_text:
            raise CommandError(MOUNT_ERROR)
        block_size = _atoi(size_text)
        total_blocks = _atoi(count_text)
        if block_size == 0 or total_blocks == 0:
            raise CommandError(MOUNT_ERROR)
        try:
            self.kernel.disk.partition(name, block_size, total_blocks)
            self.kernel.disk.mount(name)
        except DiskError as exc:
            raise CommandError(str(exc)) from exc

    def _use_file(self, name: str) -> None:
        try:
            index: int | None = self.kernel.disk.open_file(name)
        except DiskError as exc:
            self._print(str(exc))
            index = None
        self.kernel.io.file_to_use = index