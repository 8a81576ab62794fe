"""The kernel: boots the machine, launches programs and schedules them."""

from __future__ import annotations

import random
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from kernelsim.cpu import CPU, CpuResult
from kernelsim.disk import DiskDriver, IOScheduler
from kernelsim.memorymanager import (
    FileTable,
    MemoryManager,
    Ram,
    find_page,
    find_victim,
    update_page_table,
)
from kernelsim.pcb import PAGE_TABLE_SIZE, PCB, ReadyQueue

QUANTA = 2


class Kernel:
    """Owns RAM, the ready queue, the backing store and the disk.

    The backing store and partitions are kept below ``root``.
    """

    def __init__(
        self,
        root: str | Path = ".",
        out: TextIO | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.root = Path(root)
        self.out = out
        self.ready_queue = ReadyQueue()
        self.memory_manager = MemoryManager(
            backing_store=self.root / "BackingStore", rng=rng
        )
        self.disk = DiskDriver(self.root / "PARTITION")
        self.io = IOScheduler(self.disk, out=out)

    @property
    def ram(self) -> Ram:
        return self.memory_manager.ram

    @property
    def backing_store(self) -> Path:
        return self.memory_manager.backing_store

    def boot(self) -> None:
        """Empty RAM, recreate the backing store and reset the disk."""
        for index in range(len(self.ram)):
            self.ram.clear(index)
        self.memory_manager.file_table = FileTable()
        shutil.rmtree(self.backing_store, ignore_errors=True)
        self.backing_store.mkdir(parents=True, exist_ok=True)
        self.disk = DiskDriver(self.root / "PARTITION")
        self.io = IOScheduler(self.disk, out=self.out)

    def launch(self, source: str | Path, name: str) -> PCB:
        """Copy ``source`` into the backing store as ``name`` and queue it."""
        return self.memory_manager.launch(source, name, self.ready_queue)

    def page_fault(self, pcb: PCB) -> CpuResult:
        """Move ``pcb`` to its next page, loading it into RAM if needed.

        Returns ``CpuResult.END`` when the program has no more pages.
        """
        pcb.pc_page += 1
        page_number = pcb.pc_page
        if page_number > pcb.pages_max - 1 or page_number > PAGE_TABLE_SIZE - 1:
            return CpuResult.END

        path = self.memory_manager.file_table[pcb.start]
        if path is None:
            raise RuntimeError(f"process slot {pcb.start} has no program")

        frame = pcb.page_table[page_number]
        resident = self.ram[frame] if frame is not None else None
        if (
            resident is not None
            and resident.path == path
            and resident.number == page_number
        ):
            pcb.pc = resident
        else:
            page = find_page(path, page_number)
            frame_index = self.ram.find_frame(page)
            victim = 0
            if frame_index is None:
                victim = find_victim(pcb, self.memory_manager.rng)
            self.ram.update_frame(frame_index, victim, page)
            update_page_table(pcb, page_number, frame_index, victim)
            pcb.pc = page
        pcb.pc_offset = 0
        return CpuResult.OK

    def scheduler(self, execute: Callable[[str], object]) -> None:
        """Run the queued programs round-robin until the queue is empty.

        ``execute`` runs one program line and returns a true value to end
        that program.
        """
        cpu = CPU()
        while self.ready_queue:
            pcb = self.ready_queue.pop()
            if pcb.pc is None:
                continue
            cpu.load(pcb.pc, pcb.pc_offset)
            result = cpu.run(QUANTA, execute)
            if result is CpuResult.OK:
                pcb.pc_offset += QUANTA
            elif result is CpuResult.PAGE_FAULT:
                result = self.page_fault(pcb)
            if result is not CpuResult.END:
                self.ready_queue.append(pcb)