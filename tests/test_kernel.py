import random

import pytest

from kernelsim.cpu import CpuResult
from kernelsim.kernel import Kernel
from kernelsim.memorymanager import Page


def _recorder():
    lines = []

    def execute(line):
        lines.append(line)
        return line.strip() == "quit"

    return lines, execute


def _program(tmp_path, name, lines):
    path = tmp_path / name
    path.write_text("".join(lines))
    return path


@pytest.fixture
def kernel(tmp_path):
    k = Kernel(root=tmp_path / "machine", rng=random.Random(0))
    k.boot()
    return k


def test_single_program_runs_every_line(kernel, tmp_path):
    lines = [f"l{n}\n" for n in range(6)]
    kernel.launch(_program(tmp_path, "prog.txt", lines), "P1.txt")
    executed, execute = _recorder()
    kernel.scheduler(execute)
    assert executed == lines
    assert len(kernel.ready_queue) == 0


def test_programs_interleave_by_quanta(kernel, tmp_path):
    a = ["a1\n", "a2\n", "a3\n"]
    b = ["b1\n", "b2\n", "b3\n"]
    kernel.launch(_program(tmp_path, "a.txt", a), "P1.txt")
    kernel.launch(_program(tmp_path, "b.txt", b), "P2.txt")
    executed, execute = _recorder()
    kernel.scheduler(execute)
    assert executed == [a[0], a[1], b[0], b[1], a[2], b[2]]


def test_quit_ends_only_that_program(kernel, tmp_path):
    kernel.launch(_program(tmp_path, "q.txt", ["x\n", "quit\n", "y\n"]), "P1.txt")
    other = ["o1\n", "o2\n", "o3\n"]
    kernel.launch(_program(tmp_path, "o.txt", other), "P2.txt")
    executed, execute = _recorder()
    kernel.scheduler(execute)
    assert executed == ["x\n", "quit\n", *other]
    assert len(kernel.ready_queue) == 0


def test_last_line_without_newline_is_not_executed(kernel, tmp_path):
    pcb = kernel.launch(_program(tmp_path, "n.txt", ["a\n", "b"]), "P1.txt")
    assert pcb.pages_max == 1
    executed, execute = _recorder()
    kernel.scheduler(execute)
    assert executed == ["a\n"]
    assert len(kernel.ready_queue) == 0


def test_program_spanning_pages_runs_in_order(kernel, tmp_path):
    lines = [f"line{n}\n" for n in range(10)]
    pcb = kernel.launch(_program(tmp_path, "long.txt", lines), "P1.txt")
    executed, execute = _recorder()
    kernel.scheduler(execute)
    assert executed == lines
    assert pcb.pages_max == 3
    assert pcb.page_table[2] is not None
    assert kernel.ram[pcb.page_table[2]].number == 2


def test_page_fault_past_last_page_ends_program(kernel, tmp_path):
    pcb = kernel.launch(_program(tmp_path, "s.txt", ["a\n", "b\n"]), "P1.txt")
    assert kernel.page_fault(pcb) is CpuResult.END


def test_page_fault_uses_resident_page(kernel, tmp_path):
    lines = [f"r{n}\n" for n in range(9)]
    pcb = kernel.launch(_program(tmp_path, "r.txt", lines), "P1.txt")
    assert kernel.page_fault(pcb) is CpuResult.OK
    assert pcb.pc is kernel.ram[pcb.page_table[1]]
    assert pcb.pc_offset == 0
    assert pcb.pc.lines == tuple(lines[4:8])


def test_page_fault_loads_missing_page(kernel, tmp_path):
    lines = [f"m{n}\n" for n in range(9)]
    pcb = kernel.launch(_program(tmp_path, "m.txt", lines), "P1.txt")
    pcb.pc_page = 1
    assert kernel.page_fault(pcb) is CpuResult.OK
    frame = pcb.page_table[2]
    assert kernel.ram[frame] is pcb.pc
    assert pcb.pc.lines == tuple(lines[8:])
    assert frame not in (pcb.page_table[0], pcb.page_table[1])


def test_page_fault_with_full_ram_evicts_foreign_frame(kernel, tmp_path):
    lines = [f"v{n}\n" for n in range(9)]
    pcb = kernel.launch(_program(tmp_path, "v.txt", lines), "P1.txt")
    while any(frame is None for frame in kernel.ram):
        kernel.ram.add(Page("other", 0, ("z\n",)))
    pcb.pc_page = 1
    assert kernel.page_fault(pcb) is CpuResult.OK
    frame = pcb.page_table[2]
    assert frame not in (pcb.page_table[0], pcb.page_table[1])
    assert kernel.ram[frame] is pcb.pc
    assert kernel.ram[frame].number == 2


def test_boot_clears_ram_and_backing_store(kernel, tmp_path):
    kernel.launch(_program(tmp_path, "b.txt", ["a\n"]), "P1.txt")
    assert any(frame is not None for frame in kernel.ram)
    kernel.boot()
    assert all(frame is None for frame in kernel.ram)
    assert kernel.backing_store.is_dir()
    assert list(kernel.backing_store.iterdir()) == []
    assert kernel.memory_manager.file_table[0] is None