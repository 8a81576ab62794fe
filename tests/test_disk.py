import io

import pytest

from kernelsim.disk import (
    EMPTY_NAME,
    DiskDriver,
    DiskError,
    IOCommand,
    IORequest,
    IOScheduler,
    RequestQueue,
)


def mounted(tmp_path, block_size=5, total_blocks=6, name="disk.txt"):
    driver = DiskDriver(tmp_path / "PARTITION")
    driver.partition(name, block_size, total_blocks)
    driver.mount(name)
    return driver


def test_partition_writes_header_empty_fat_and_free_data(tmp_path):
    driver = DiskDriver(tmp_path / "PARTITION")
    path = driver.partition("p.txt", 5, 3)
    lines = path.read_text().split("\n")
    assert lines[0] == "5"
    assert lines[1] == "3"
    assert lines[2] == EMPTY_NAME
    assert lines[3] == "-1"
    data = lines[2 + 20 * 13]
    assert len(data) == 5 * 3
    assert set(data) == {"0"}


def test_partition_rejects_non_positive_sizes(tmp_path):
    driver = DiskDriver(tmp_path)
    with pytest.raises(DiskError):
        driver.partition("p.txt", 0, 4)


def test_mount_missing_partition_fails(tmp_path):
    with pytest.raises(DiskError):
        DiskDriver(tmp_path).mount("absent.txt")


def test_open_before_mount_fails(tmp_path):
    with pytest.raises(DiskError):
        DiskDriver(tmp_path).open_file("a")


def test_open_file_assigns_and_reuses_fat_indices(tmp_path):
    driver = mounted(tmp_path)
    first = driver.open_file("a")
    second = driver.open_file("b")
    assert first == 0
    assert second == 1
    assert driver.open_file("a") == first
    assert driver.fat[first].filename == "a"


def test_fat_full_raises(tmp_path):
    driver = mounted(tmp_path)
    for number in range(20):
        driver.open_file(f"f{number}")
    with pytest.raises(DiskError):
        driver.open_file("one_too_many")


def test_write_then_read_round_trip(tmp_path):
    driver = mounted(tmp_path)
    index = driver.open_file("a")
    driver.write_file(index, "hello")
    assert driver.read_file(index) == "hello"


def test_short_data_is_padded_with_free_mark(tmp_path):
    driver = mounted(tmp_path, block_size=5)
    index = driver.open_file("a")
    driver.write_file(index, "hi")
    assert driver.read_file(index) == "hi000"


def test_multi_block_write_uses_several_blocks(tmp_path):
    driver = mounted(tmp_path, block_size=4, total_blocks=6)
    index = driver.open_file("a")
    data = "abcdefghij"
    driver.write_file(index, data)
    content = driver.read_file(index)
    assert content.startswith(data)
    assert len(content) % 4 == 0
    used = [ptr for ptr in driver.fat[index].block_ptrs if ptr is not None]
    assert driver.fat[index].file_length == len(used)
    assert len(used) * 4 == len(content)


def test_write_after_read_appends(tmp_path):
    driver = mounted(tmp_path, block_size=4)
    index = driver.open_file("a")
    driver.write_file(index, "abcd")
    driver.read_file(index)
    driver.write_file(index, "efgh")
    assert driver.read_file(index) == "abcdefgh"


def test_content_survives_remount(tmp_path):
    driver = mounted(tmp_path, name="keep.txt")
    driver.write_file(driver.open_file("notes"), "hello")

    again = DiskDriver(tmp_path / "PARTITION")
    again.partition("keep.txt", 5, 6)
    again.mount("keep.txt")
    index = again.open_file("notes")
    assert again.fat[index].filename == "notes"
    assert again.read_file(index) == "hello"


def test_running_out_of_space_raises(tmp_path):
    driver = mounted(tmp_path, block_size=2, total_blocks=1)
    index = driver.open_file("a")
    with pytest.raises(DiskError):
        driver.write_file(index, "abcd")


def test_find_space_and_clear_block(tmp_path):
    driver = mounted(tmp_path, block_size=3, total_blocks=4)
    assert driver.find_space() == 0
    driver.write_file(driver.open_file("a"), "xyz")
    assert driver.find_space() == 1
    driver.clear_block(0)
    assert driver.find_space() == 0
    assert driver.read_block(0) == "000"


def test_read_block_fills_buffer(tmp_path):
    driver = mounted(tmp_path, block_size=3)
    driver.write_file(driver.open_file("a"), "abc")
    block = driver.fat[0].block_ptrs[0]
    assert driver.read_block(block) == "abc"
    assert driver.block_buffer == "abc"


def test_read_block_outside_partition_raises(tmp_path):
    driver = mounted(tmp_path, total_blocks=2)
    with pytest.raises(DiskError):
        driver.read_block(2)


def test_empty_file_reads_as_empty_string(tmp_path):
    driver = mounted(tmp_path)
    assert driver.read_file(driver.open_file("empty")) == ""


def test_open_file_slots_run_out(tmp_path):
    driver = mounted(tmp_path, block_size=2, total_blocks=10)
    indices = [driver.open_file(f"f{number}") for number in range(6)]
    for index in indices[:5]:
        driver.write_file(index, "ab")
    with pytest.raises(DiskError):
        driver.write_file(indices[5], "ab")


def test_request_queue_is_fifo():
    queue = RequestQueue()
    queue.enqueue(IORequest("a", None, IOCommand.WRITE))
    queue.enqueue(IORequest("b", None, IOCommand.READ))
    assert queue.dequeue().data == "a"
    assert queue.dequeue().data == "b"
    with pytest.raises(IndexError):
        queue.dequeue()


def test_request_queue_capacity():
    queue = RequestQueue()
    for number in range(10):
        queue.enqueue(IORequest(str(number), None, IOCommand.READ))
    assert len(queue) == 10
    with pytest.raises(OverflowError):
        queue.enqueue(IORequest("x", None, IOCommand.READ))


def test_scheduler_write_then_read(tmp_path):
    driver = mounted(tmp_path)
    scheduler = IOScheduler(driver)
    scheduler.file_to_use = driver.open_file("a")
    assert scheduler.request("hello", None, IOCommand.WRITE) == ""
    assert scheduler.request(None, None, IOCommand.READ) == "hello"
    assert len(scheduler.queue) == 2


def test_scheduler_without_file_does_nothing(tmp_path):
    driver = mounted(tmp_path)
    scheduler = IOScheduler(driver)
    assert scheduler.request("data", None, IOCommand.WRITE) == ""
    assert scheduler.request(None, None, IOCommand.READ) == ""
    assert driver.find_space() == 0


def test_scheduler_keeps_working_when_queue_is_full(tmp_path):
    driver = mounted(tmp_path)
    out = io.StringIO()
    scheduler = IOScheduler(driver, RequestQueue(capacity=1), out=out)
    scheduler.file_to_use = driver.open_file("a")
    scheduler.request("hello", None, IOCommand.WRITE)
    assert scheduler.request(None, None, IOCommand.READ) == "hello"
    assert out.getvalue() == "Queue is full!\n"