"""Process control blocks and the ready queue."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kernelsim.memorymanager import Page

PAGE_TABLE_SIZE = 10


def _empty_page_table() -> list[int | None]:
    return [None] * PAGE_TABLE_SIZE


@dataclass(eq=False)
class PCB:
    """State of one loaded program.

    ``start`` is the program's slot in the file table; ``page_table`` maps a
    page number to the RAM frame holding it, or None when the page is not
    resident.
    """

    pc: Page | None
    start: int
    pages_max: int
    page_table: list[int | None] = field(default_factory=_empty_page_table)
    pc_page: int = 0
    pc_offset: int = 0


class ReadyQueue:
    """First-in first-out queue of processes waiting for the CPU."""

    def __init__(self) -> None:
        self._queue: deque[PCB] = deque()

    def append(self, pcb: PCB) -> None:
        """Put ``pcb`` at the tail of the queue."""
        self._queue.append(pcb)

    def pop(self) -> PCB:
        """Remove and return the head of the queue."""
        if not self._queue:
            raise IndexError("ready queue is empty")
        return self._queue.popleft()

    def peek(self) -> PCB | None:
        """Return the head of the queue without removing it."""
        return self._queue[0] if self._queue else None

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __iter__(self) -> Iterator[PCB]:
        return iter(self._queue)

    def describe(self) -> str:
        """List the file-table slots of the queued processes, head first."""
        return "Addr:" + "".join(f" {pcb.start}" for pcb in self._queue)