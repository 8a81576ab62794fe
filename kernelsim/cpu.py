"""The simulated processor that runs a program one page at a time."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from kernelsim.memorymanager import PAGE_SIZE, Page

DEFAULT_QUANTA = 2


class CpuResult(enum.IntEnum):
    """Why a CPU run stopped."""

    OK = 0
    PAGE_FAULT = 1
    END = 99


@dataclass
class CPU:
    """Instruction pointer (a page), instruction register and page offset."""

    quanta: int = DEFAULT_QUANTA
    ip: Page | None = None
    ir: str = ""
    offset: int = 0

    def load(self, page: Page, offset: int) -> None:
        """Point the CPU at line ``offset`` of ``page``."""
        self.ip = page
        self.ir = ""
        self.offset = offset

    def run(self, quanta: int, execute: Callable[[str], object]) -> CpuResult:
        """Execute up to ``quanta`` lines with ``execute``.

        ``execute`` gets each line as read, newline included, and returns a
        true value to stop the program. A final line with no newline ends the
        program without being executed.
        """
        if self.ip is None:
            raise RuntimeError("no page loaded")
        self.quanta = quanta
        while self.quanta > 0:
            if self.offset == PAGE_SIZE:
                self.offset = 0
                return CpuResult.PAGE_FAULT
            if self.offset >= len(self.ip.lines):
                return CpuResult.END
            line = self.ip.lines[self.offset]
            self.ir = line
            if not line.endswith("\n"):
                return CpuResult.END
            if execute(line):
                return CpuResult.END
            self.quanta -= 1
            self.offset += 1
        return CpuResult.OK