"""Paged memory: RAM frames, the backing store and process loading."""

from __future__ import annotations

import random
import shutil
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from kernelsim.pcb import PCB, ReadyQueue

RAM_FRAMES = 10
FILE_TABLE_SIZE = 10
PAGE_SIZE = 4
PRELOADED_PAGES = 2


@dataclass(frozen=True, eq=False)
class Page:
    """Up to ``PAGE_SIZE`` lines of a program, as read from the backing store.

    Pages compare by identity: two loads of the same page are distinct frames.
    """

    path: str
    number: int
    lines: tuple[str, ...]


def _read_lines(path: str | Path) -> list[str]:
    with open(path, "r") as handle:
        return handle.readlines()


def count_total_pages(path: str | Path) -> int:
    """Number of pages needed for the program at ``path``.

    An empty file still counts as one line, hence one page.
    """
    lines = max(len(_read_lines(path)), 1)
    return -(-lines // PAGE_SIZE)


def find_page(path: str | Path, page_number: int) -> Page:
    """Load page ``page_number`` of the program at ``path``."""
    lines = _read_lines(path)
    first = page_number * PAGE_SIZE
    return Page(str(path), page_number, tuple(lines[first:first + PAGE_SIZE]))


def find_victim(pcb: PCB, rng: random.Random | None = None) -> int:
    """Pick a frame to evict that holds none of ``pcb``'s own pages.

    Starts at a random frame and walks forward until one is found.
    """
    owned = {frame for frame in pcb.page_table if frame is not None}
    if len(owned) >= RAM_FRAMES:
        raise RuntimeError("every frame belongs to the process")
    frame = (rng or random).randrange(RAM_FRAMES)
    while frame in owned:
        frame = (frame + 1) % RAM_FRAMES
    return frame


def update_page_table(
    pcb: PCB, page_number: int, frame_number: int | None, victim_frame: int
) -> None:
    """Record where page ``page_number`` of ``pcb`` now lives."""
    pcb.page_table[page_number] = (
        victim_frame if frame_number is None else frame_number
    )


class Ram:
    """Fixed set of frames, each empty or holding one page."""

    def __init__(self, size: int = RAM_FRAMES) -> None:
        self._frames: list[Page | None] = [None] * size

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> Page | None:
        return self._frames[index]

    def __iter__(self) -> Iterator[Page | None]:
        return iter(self._frames)

    def add(self, page: Page) -> int:
        """Store ``page`` in the first empty frame and return its index."""
        if page is None:
            raise ValueError("no page to store")
        for index, frame in enumerate(self._frames):
            if frame is None:
                self._frames[index] = page
                return index
        raise MemoryError("RAM is full")

    def clear(self, index: int) -> None:
        """Empty frame ``index``."""
        self._frames[index] = None

    def find_frame(self, page: Page) -> int | None:
        """Frame already holding ``page``, else the first empty one, else None."""
        for index, frame in enumerate(self._frames):
            if frame is page:
                return index
        for index, frame in enumerate(self._frames):
            if frame is None:
                return index
        return None

    def update_frame(
        self, frame_number: int | None, victim_frame: int, page: Page
    ) -> None:
        """Place ``page`` in ``frame_number``, or in ``victim_frame`` if None."""
        target = victim_frame if frame_number is None else frame_number
        self._frames[target] = page

    def describe(self) -> str:
        """One marker per frame: ``x`` when empty, ``o`` when used."""
        return "".join(" x " if frame is None else " o " for frame in self._frames)


class FileTable:
    """Backing-store paths of the loaded programs."""

    def __init__(self, size: int = FILE_TABLE_SIZE) -> None:
        self._paths: list[str | None] = [None] * size

    def add(self, name: str) -> int:
        """Store ``name`` in the first free slot and return the slot."""
        if name is None:
            raise ValueError("no file name given")
        for index, path in enumerate(self._paths):
            if path is None:
                self._paths[index] = name
                return index
        raise MemoryError("file table is full")

    def __getitem__(self, index: int) -> str | None:
        return self._paths[index]


class MemoryManager:
    """Copies programs to the backing store and pages them into RAM."""

    def __init__(
        self,
        ram: Ram | None = None,
        file_table: FileTable | None = None,
        backing_store: str | Path = "BackingStore",
        rng: random.Random | None = None,
    ) -> None:
        self.ram = ram if ram is not None else Ram()
        self.file_table = file_table if file_table is not None else FileTable()
        self.backing_store = Path(backing_store)
        self.rng = rng if rng is not None else random.Random()

    def launch(self, source: str | Path, name: str, ready_queue: ReadyQueue) -> PCB:
        """Copy ``source`` into the backing store as ``name`` and queue it.

        The first pages of the program are loaded into free frames.
        """
        self.backing_store.mkdir(parents=True, exist_ok=True)
        path = self.backing_store / name
        shutil.copyfile(source, path)

        total_pages = count_total_pages(path)
        pcb = self.init_process(str(path), ready_queue)

        for page_number in range(min(PRELOADED_PAGES, total_pages)):
            page = find_page(path, page_number)
            for frame_number, frame in enumerate(self.ram):
                if frame is None:
                    self.ram.update_frame(frame_number, 0, page)
                    update_page_table(pcb, page_number, frame_number, 0)
                    break
        return pcb

    def init_process(self, path: str, ready_queue: ReadyQueue) -> PCB:
        """Register the program at ``path`` and append its PCB to the queue."""
        start = self.file_table.add(path)
        pcb = PCB(
            pc=find_page(path, 0),
            start=start,
            pages_max=count_total_pages(path),
        )
        ready_queue.append(pcb)
        return pcb