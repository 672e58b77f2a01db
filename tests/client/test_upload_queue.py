import asyncio
from pathlib import Path

import pytest

from storage_bucket.client.upload_queue import (
    InvalidTransitionError,
    UploadQueue,
    UploadStatus,
    UploadTask,
)


class FakeUploader:
    """Records how many uploads run at once; fails for names containing 'bad'."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.calls = []

    async def __call__(self, path, on_progress):
        self.calls.append(path.name)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            for percent in (10, 50, 40, 90):
                on_progress(percent)
                await asyncio.sleep(self.delay)
            if "bad" in path.name:
                raise RuntimeError(f"server rejected {path.name}")
            return {"id": len(self.calls), "originalName": path.name}
        finally:
            self.active -= 1


def test_task_state_machine():
    task = UploadTask(path=Path("a.txt"))
    assert task.status is UploadStatus.PENDING

    task.start()
    assert task.report_progress(40) is True
    assert task.report_progress(30) is False
    assert task.progress == 40

    task.complete({"id": 1})
    assert task.status is UploadStatus.COMPLETED
    assert task.progress == 100
    assert task.is_terminal


@pytest.mark.parametrize(
    "prepare, action",
    [
        (lambda t: None, lambda t: t.complete({})),
        (lambda t: None, lambda t: t.fail("x")),
        (lambda t: None, lambda t: t.report_progress(5)),
        (lambda t: t.start(), lambda t: t.start()),
        (lambda t: (t.start(), t.complete({})), lambda t: t.fail("x")),
        (lambda t: (t.start(), t.fail("x")), lambda t: t.start()),
    ],
)
def test_illegal_transitions(prepare, action):
    task = UploadTask(path=Path("a.txt"))
    prepare(task)

    with pytest.raises(InvalidTransitionError):
        action(task)


@pytest.mark.asyncio
async def test_bounded_concurrency(tmp_path):
    """Ten files with a ceiling of three never upload more than three at once."""
    uploader = FakeUploader()
    uploading_counts = []

    def on_change(task):
        uploading_counts.append(sum(1 for t in queue.tasks if t.status is UploadStatus.UPLOADING))

    queue = UploadQueue(uploader, concurrency=3, on_change=on_change)
    queue.add_files([tmp_path / f"file-{i}.txt" for i in range(10)])

    await queue.wait()

    assert uploader.peak == 3
    assert max(uploading_counts) <= 3
    assert all(t.status is UploadStatus.COMPLETED for t in queue.tasks)
    assert not queue.is_uploading()


@pytest.mark.asyncio
async def test_failure_does_not_halt_siblings(tmp_path):
    uploader = FakeUploader()
    queue = UploadQueue(uploader, concurrency=2)
    names = ["one.txt", "bad.txt", "three.txt", "four.txt"]

    tasks = queue.add_files([tmp_path / name for name in names])
    await queue.wait()

    statuses = {t.name: t.status for t in tasks}
    assert statuses == {
        "one.txt": UploadStatus.COMPLETED,
        "bad.txt": UploadStatus.ERROR,
        "three.txt": UploadStatus.COMPLETED,
        "four.txt": UploadStatus.COMPLETED,
    }
    failed = queue.get(tasks[1].id)
    assert failed.error == "server rejected bad.txt"
    assert failed.progress < 100


@pytest.mark.asyncio
async def test_fifo_order_with_single_worker(tmp_path):
    uploader = FakeUploader(delay=0)
    queue = UploadQueue(uploader, concurrency=1)

    queue.add_files([tmp_path / f"{i}.txt" for i in range(5)])
    await queue.wait()

    assert uploader.calls == [f"{i}.txt" for i in range(5)]


@pytest.mark.asyncio
async def test_progress_is_monotonic(tmp_path):
    seen = []
    queue = UploadQueue(
        FakeUploader(delay=0),
        concurrency=1,
        on_change=lambda task: seen.append(task.progress),
    )

    queue.add_files([tmp_path / "a.txt"])
    await queue.wait()

    assert seen == sorted(seen)
    assert seen[-1] == 100


@pytest.mark.asyncio
async def test_adding_files_while_busy_and_after_idle(tmp_path):
    uploader = FakeUploader()
    queue = UploadQueue(uploader, concurrency=2)

    queue.add_files([tmp_path / "a.txt", tmp_path / "b.txt"])
    queue.add_files([tmp_path / "c.txt"])
    await queue.wait()
    assert not queue.is_uploading()

    queue.add_files([tmp_path / "d.txt"])
    assert queue.is_uploading()
    await queue.wait()

    assert sorted(uploader.calls) == ["a.txt", "b.txt", "c.txt", "d.txt"]
    assert uploader.peak <= 2


@pytest.mark.asyncio
async def test_removed_pending_task_is_skipped(tmp_path):
    uploader = FakeUploader()
    queue = UploadQueue(uploader, concurrency=1)

    tasks = queue.add_files([tmp_path / "a.txt", tmp_path / "b.txt"])
    assert queue.remove(tasks[1].id) is True
    await queue.wait()

    assert uploader.calls == ["a.txt"]
    assert [t.name for t in queue.tasks] == ["a.txt"]


@pytest.mark.asyncio
async def test_uploading_task_cannot_be_removed(tmp_path):
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_uploader(path, on_progress):
        started.set()
        await release.wait()
        return {}

    queue = UploadQueue(slow_uploader)
    task = queue.add_files([tmp_path / "a.txt"])[0]
    await started.wait()

    assert queue.remove(task.id) is False
    assert queue.clear_all() == 0

    release.set()
    await queue.wait()
    assert task.status is UploadStatus.COMPLETED


@pytest.mark.asyncio
async def test_clear_completed_and_clear_all(tmp_path):
    queue = UploadQueue(FakeUploader(delay=0), concurrency=3)
    queue.add_files([tmp_path / "ok.txt", tmp_path / "bad.txt"])
    await queue.wait()

    assert queue.clear_completed() == 1
    assert [t.name for t in queue.tasks] == ["bad.txt"]
    assert queue.clear_all() == 1
    assert queue.tasks == []


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        UploadQueue(FakeUploader(), concurrency=0)


@pytest.mark.asyncio
async def test_failing_listener_does_not_strand_queue(tmp_path, caplog):
    def on_change(task):
        if task.name == "0.txt" and task.status is UploadStatus.UPLOADING:
            raise RuntimeError("listener broke")

    queue = UploadQueue(FakeUploader(delay=0), concurrency=1, on_change=on_change)
    tasks = queue.add_files([tmp_path / f"{i}.txt" for i in range(3)])

    await asyncio.wait_for(queue.wait(), timeout=2)

    assert [t.status for t in tasks] == [UploadStatus.COMPLETED] * 3
    assert "Upload change listener failed for 0.txt" in caplog.text
