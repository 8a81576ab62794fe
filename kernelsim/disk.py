"""Block storage on a partition file, and the I/O scheduler in front of it."""

from __future__ import annotations

import enum
import sys
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from kernelsim.pcb import PCB

FAT_SIZE = 20
BLOCKS_PER_FILE = 10
MAX_OPEN_FILES = 5
FAT_ENTRY_LINES = 13
HEADER_LINES = 2
EMPTY_NAME = " " * 88
FREE_MARK = "0"
REQUEST_QUEUE_SIZE = 10


class DiskError(Exception):
    """Raised when a disk operation cannot be carried out."""


def _empty_pointers() -> list[int | None]:
    return [None] * BLOCKS_PER_FILE


@dataclass
class FatEntry:
    """One file allocation table entry; unused fields are None."""

    filename: str | None = None
    file_length: int | None = None
    block_ptrs: list[int | None] = field(default_factory=_empty_pointers)
    current_location: int | None = None


@dataclass
class _OpenFile:
    fat_index: int | None = None
    active: bool = False


def _number(value: int | None) -> str:
    return "-1" if value is None else str(value)


def _parse_number(line: str) -> int | None:
    try:
        value = int(line.rstrip("\0").strip())
    except ValueError as exc:
        raise DiskError(f"corrupt partition line: {line!r}") from exc
    return None if value == -1 else value


def _render(
    block_size: int, total_blocks: int, fat: list[FatEntry], data: list[str]
) -> str:
    lines = [str(block_size), str(total_blocks)]
    for entry in fat:
        lines.append(EMPTY_NAME if entry.filename is None else entry.filename)
        lines.append(_number(entry.file_length))
        lines.extend(_number(ptr) for ptr in entry.block_ptrs)
        lines.append(_number(entry.current_location))
    lines.append("".join(data))
    return "\n".join(lines) + "\n"


class DiskDriver:
    """A partition file holding a FAT and a data area of fixed-size blocks.

    Partitions live under ``root``. A block whose first character is ``0``
    counts as free.
    """

    def __init__(self, root: str | Path = "PARTITION") -> None:
        self.root = Path(root)
        self.path: Path | None = None
        self.block_size = 0
        self.total_blocks = 0
        self.fat = [FatEntry() for _ in range(FAT_SIZE)]
        self.mounted = False
        self.block_buffer = ""
        self._data: list[str] = []
        self._open = [_OpenFile() for _ in range(MAX_OPEN_FILES)]

    def partition(self, name: str, block_size: int, total_blocks: int) -> Path:
        """Create and format partition ``name`` unless it already exists."""
        if block_size <= 0 or total_blocks <= 0:
            raise DiskError("block size and block count must be positive")
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / name
        self.path = path
        if path.exists():
            return path
        fresh = [FatEntry() for _ in range(FAT_SIZE)]
        data = [FREE_MARK] * (block_size * total_blocks)
        try:
            path.write_text(_render(block_size, total_blocks, fresh, data))
        except OSError as exc:
            raise DiskError(f"cannot create partition {name}") from exc
        return path

    def mount(self, name: str) -> None:
        """Load the FAT and data area of partition ``name``."""
        path = self.root / name
        try:
            lines = path.read_text().split("\n")
        except OSError as exc:
            raise DiskError(f"cannot mount partition {name}") from exc
        data_line = HEADER_LINES + FAT_SIZE * FAT_ENTRY_LINES
        if len(lines) <= data_line:
            raise DiskError(f"partition {name} is truncated")

        block_size = _parse_number(lines[0]) or 0
        total_blocks = _parse_number(lines[1]) or 0
        fat = []
        for index in range(FAT_SIZE):
            base = HEADER_LINES + index * FAT_ENTRY_LINES
            name_line = lines[base]
            entry = FatEntry(
                block_ptrs=[
                    _parse_number(line)
                    for line in lines[base + 2:base + 2 + BLOCKS_PER_FILE]
                ]
            )
            if name_line != EMPTY_NAME:
                entry.filename = name_line.rstrip("\0")
                entry.file_length = _parse_number(lines[base + 1])
            fat.append(entry)

        data = list(lines[data_line])
        if len(data) != block_size * total_blocks:
            raise DiskError(f"partition {name} has a damaged data area")

        self.path = path
        self.block_size = block_size
        self.total_blocks = total_blocks
        self.fat = fat
        self._data = data
        self.block_buffer = ""
        self.mounted = True

    def open_file(self, name: str) -> int:
        """Return the FAT index of ``name``, creating the entry if needed."""
        if not self.mounted:
            raise DiskError("Must mount a partition before read/write!")
        for index, entry in enumerate(self.fat):
            if entry.filename != name:
                continue
            for slot in self._open:
                if slot.fat_index == index:
                    slot.active = True
                    return index
            for slot in self._open:
                if not slot.active:
                    slot.active = True
                    slot.fat_index = index
                    return index
            raise DiskError("no open-file slot available during open file")
        for index, entry in enumerate(self.fat):
            if entry.filename is None:
                entry.filename = name
                self._save()
                return index
        raise DiskError("no free FAT entry")

    def read_file(self, fat_index: int) -> str:
        """Return the whole content of a file, block padding included."""
        self._require_mounted()
        self._claim_slot(fat_index, "read file")
        entry = self.fat[fat_index]
        if entry.block_ptrs[0] is None:
            return ""
        entry.current_location = 0
        chunks = []
        for block in entry.block_ptrs:
            if block is None:
                break
            chunks.append(self.read_block(block))
            entry.current_location += 1
        return "".join(chunks)

    def read_block(self, block_number: int) -> str:
        """Load block ``block_number`` into the block buffer and return it."""
        self._require_mounted()
        self._check_block(block_number)
        start = block_number * self.block_size
        self.block_buffer = "".join(self._data[start:start + self.block_size])
        return self.block_buffer

    def write_file(self, fat_index: int, data: str) -> None:
        """Write ``data`` into the file from its current block onwards."""
        self._require_mounted()
        slot = self._claim_slot(fat_index, "write file")
        entry = self.fat[fat_index]
        size = self.block_size
        ptr = entry.current_location or 0
        for start in range(0, len(data), size):
            if ptr >= BLOCKS_PER_FILE:
                raise DiskError("file has no more block pointers")
            block = entry.block_ptrs[ptr]
            if block is None:
                block = self.find_space()
            if block is None:
                raise DiskError("No more available space to write")
            entry.block_ptrs[ptr] = block
            self.clear_block(block)
            slot.active = True
            chunk = data[start:start + size]
            offset = block * size
            self._data[offset:offset + len(chunk)] = list(chunk)
            ptr += 1
            entry.current_location = ptr
            self._save()
        entry.file_length = sum(ptr is not None for ptr in entry.block_ptrs)
        self._save()

    def find_space(self) -> int | None:
        """Index of the first free block, or None when the disk is full."""
        self._require_mounted()
        for block in range(self.total_blocks):
            if self._data[block * self.block_size] == FREE_MARK:
                return block
        return None

    def clear_block(self, block_number: int) -> None:
        """Fill block ``block_number`` with the free mark."""
        self._require_mounted()
        self._check_block(block_number)
        start = block_number * self.block_size
        self._data[start:start + self.block_size] = [FREE_MARK] * self.block_size
        self._save()

    def _require_mounted(self) -> None:
        if not self.mounted:
            raise DiskError("Must mount a partition before read/write!")

    def _check_block(self, block_number: int) -> None:
        if not 0 <= block_number < self.total_blocks:
            raise DiskError(f"block {block_number} is outside the partition")

    def _claim_slot(self, fat_index: int, action: str) -> _OpenFile:
        matches = [slot for slot in self._open if slot.fat_index == fat_index]
        if matches:
            return matches[-1]
        for slot in self._open:
            if not slot.active:
                slot.fat_index = fat_index
                return slot
        raise DiskError(f"no open-file slot available during {action}")

    def _save(self) -> None:
        if self.path is None:
            raise DiskError("no partition selected")
        self.path.write_text(
            _render(self.block_size, self.total_blocks, self.fat, self._data)
        )


class IOCommand(enum.IntEnum):
    """Kind of disk request."""

    READ = 0
    WRITE = 1


@dataclass
class IORequest:
    """One request handed to the I/O scheduler."""

    data: str | None
    pcb: PCB | None
    cmd: int


class RequestQueue:
    """Bounded first-in first-out queue of I/O requests."""

    def __init__(self, capacity: int = REQUEST_QUEUE_SIZE) -> None:
        self.capacity = capacity
        self._requests: deque[IORequest] = deque()

    def enqueue(self, request: IORequest) -> None:
        """Add ``request`` at the tail; raise OverflowError when full."""
        if len(self._requests) >= self.capacity:
            raise OverflowError("request queue is full")
        self._requests.append(request)

    def dequeue(self) -> IORequest:
        """Remove and return the oldest request."""
        if not self._requests:
            raise IndexError("request queue is empty")
        return self._requests.popleft()

    def __len__(self) -> int:
        return len(self._requests)


class IOScheduler:
    """Records requests and carries them out on the file in ``file_to_use``."""

    def __init__(
        self,
        driver: DiskDriver,
        queue: RequestQueue | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.driver = driver
        self.queue = queue if queue is not None else RequestQueue()
        self.file_to_use: int | None = None
        self._out = out

    def request(self, data: str | None, pcb: PCB | None, cmd: int) -> str:
        """Perform a read or write; a read returns the file's content."""
        try:
            self.queue.enqueue(IORequest(data, pcb, cmd))
        except OverflowError:
            print("Queue is full!", file=self._out or sys.stdout)
        if self.file_to_use is None:
            return ""
        if cmd == IOCommand.WRITE:
            self.driver.write_file(self.file_to_use, data or "")
        elif cmd == IOCommand.READ:
            return self.driver.read_file(self.file_to_use)
        return ""