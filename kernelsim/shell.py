"""Line parsing, the interactive prompt and the program entry point."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import NamedTuple, TextIO

from kernelsim.interpreter import CommandError, Interpreter
from kernelsim.kernel import Kernel
from kernelsim.memory import ShellMemory

_WORD_END = " \n\r"
_LINE_END = "\n\r"


class ParsedLine(NamedTuple):
    """Up to four words of a command and whether nothing was left over."""

    args: tuple[str, str, str, str]
    complete: bool


def parse(line: str) -> ParsedLine:
    """Split ``line`` into four space-separated words.

    The third word may be written as ``[several words]``; the scan then stops
    at the closing bracket, which begins the fourth word.
    """
    pos = 0

    def skip_spaces() -> None:
        nonlocal pos
        while pos < len(line) and line[pos] == " ":
            pos += 1

    def take(stop: str) -> str:
        nonlocal pos
        start = pos
        while pos < len(line) and line[pos] not in stop:
            pos += 1
        return line[start:pos]

    skip_spaces()
    arg0 = take(_WORD_END)
    skip_spaces()
    arg1 = take(_WORD_END)
    skip_spaces()
    if pos < len(line) and line[pos] == "[":
        pos += 1
        arg2 = take("]" + _LINE_END)
    else:
        arg2 = take(_WORD_END)
    skip_spaces()
    arg3 = take(_WORD_END)
    skip_spaces()
    complete = pos >= len(line) or line[pos] in _LINE_END
    return ParsedLine((arg0, arg1, arg2, arg3), complete)


class Shell:
    """Reads command lines and hands them to the interpreter."""

    def __init__(
        self,
        kernel: Kernel | None = None,
        memory: ShellMemory | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.kernel = kernel if kernel is not None else Kernel(out=out)
        self.memory = memory if memory is not None else ShellMemory()
        self.out = out
        self.interpreter = Interpreter(self.kernel, self.prompt, self.memory, out)

    def _print(self, text: str, end: str = "\n") -> None:
        print(text, end=end, file=self.out)

    def prompt(self, line: str) -> bool:
        """Run one command line; return True if it asked to quit."""
        parsed = parse(line)
        if not parsed.complete:
            self._print(
                f"Error: Command {line.rstrip(_LINE_END)} has too many characters"
            )
        try:
            return self.interpreter.execute(parsed.args)
        except CommandError as exc:
            self._print(str(exc))
            return False

    def loop(self, stream: TextIO) -> int:
        """Prompt for and run lines from ``stream`` until quit or end of input."""
        self._print("Welcome to the shell!")
        self._print("Version 3.0")
        while True:
            self._print("$ ", end="")
            line = stream.readline()
            if not line or self.prompt(line):
                break
        self._print("Good bye.")
        return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Boot the kernel and run the interactive shell on standard input."""
    parser = argparse.ArgumentParser(
        prog="kernelsim", description="Simulated kernel with a command shell."
    )
    parser.parse_args(argv)
    kernel = Kernel()
    kernel.boot()
    return Shell(kernel).loop(sys.stdin)


if __name__ == "__main__":
    sys.exit(main())