"""
Client-side upload queue.

Each UploadTask is a small state machine:

    pending -> uploading -> completed
                         -> error

Terminal tasks are never retried; they stay listed until removed. A FIFO
asyncio.Queue of pending tasks is drained by at most `concurrency` workers.
Workers start when files are added and exit as soon as the queue is empty.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable

from storage_bucket.logging_config import setup_logging

logger = setup_logging()

DEFAULT_CONCURRENCY = 3

Uploader = Callable[[Path, Callable[[int], None]], Awaitable[dict]]
ChangeListener = Callable[["UploadTask"], None]


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class InvalidTransitionError(Exception):
    """Raised when a task is moved out of a state that does not allow it."""

    def __init__(self, task_id: str, current: UploadStatus, action: str):
        self.task_id = task_id
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} task {task_id} in state {current.value}")


@dataclass
class UploadTask:
    path: Path
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    result: dict | None = None
    error: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_terminal(self) -> bool:
        return self.status in (UploadStatus.COMPLETED, UploadStatus.ERROR)

    def start(self) -> None:
        self._require(UploadStatus.PENDING, "start")
        self.status = UploadStatus.UPLOADING

    def report_progress(self, percent: int) -> bool:
        """Record progress; returns False when the value would not increase it."""
        self._require(UploadStatus.UPLOADING, "report progress on")
        percent = max(0, min(100, int(percent)))
        if percent <= self.progress:
            return False
        self.progress = percent
        return True

    def complete(self, result: dict) -> None:
        self._require(UploadStatus.UPLOADING, "complete")
        self.status = UploadStatus.COMPLETED
        self.progress = 100
        self.result = result

    def fail(self, message: str) -> None:
        self._require(UploadStatus.UPLOADING, "fail")
        self.status = UploadStatus.ERROR
        self.error = message

    def _require(self, expected: UploadStatus, action: str) -> None:
        if self.status is not expected:
            raise InvalidTransitionError(self.id, self.status, action)


class UploadQueue:
    """
    Bounded-concurrency upload scheduler.

    Args:
        uploader: Coroutine function (path, on_progress) -> server record,
            e.g. BucketClient.upload_file
        concurrency: Maximum number of tasks uploading at the same time
        on_change: Called with the task after every state or progress change
    """

    def __init__(
        self,
        uploader: Uploader,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_change: ChangeListener | None = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.uploader = uploader
        self.concurrency = concurrency
        self.on_change = on_change
        self._tasks: dict[str, UploadTask] = {}
        self._queue: asyncio.Queue[UploadTask] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []

    @property
    def tasks(self) -> list[UploadTask]:
        return list(self._tasks.values())

    def get(self, task_id: str) -> UploadTask | None:
        return self._tasks.get(task_id)

    def add_files(self, paths: Iterable[str | Path]) -> list[UploadTask]:
        """
        Queue files for upload and start workers if needed.

        Must be called from a running event loop.
        """
        added = []
        for path in paths:
            task = UploadTask(path=Path(path))
            self._tasks[task.id] = task
            self._queue.put_nowait(task)
            added.append(task)
            self._notify(task)

        self._ensure_workers()
        return added

    def remove(self, task_id: str) -> bool:
        """
        Drop a task from the list.

        In-flight uploads are not aborted and cannot be removed; a pending
        task that is removed is skipped when its turn comes.
        """
        task = self._tasks.get(task_id)
        if task is None or task.status is UploadStatus.UPLOADING:
            return False
        del self._tasks[task_id]
        return True

    def clear_completed(self) -> int:
        completed = [t.id for t in self._tasks.values() if t.status is UploadStatus.COMPLETED]
        for task_id in completed:
            del self._tasks[task_id]
        return len(completed)

    def clear_all(self) -> int:
        """Drop every task that is not currently uploading."""
        removable = [t.id for t in self._tasks.values() if t.status is not UploadStatus.UPLOADING]
        for task_id in removable:
            del self._tasks[task_id]
        return len(removable)

    def is_uploading(self) -> bool:
        return any(not t.is_terminal for t in self._tasks.values())

    async def wait(self) -> None:
        """Wait until every queued task has been processed."""
        await self._queue.join()

    def _ensure_workers(self) -> None:
        self._workers = [w for w in self._workers if not w.done()]
        missing = min(self.concurrency, self._queue.qsize()) - len(self._workers)
        for _ in range(missing):
            self._workers.append(asyncio.create_task(self._worker()))

    async def _worker(self) -> None:
        while True:
            try:
                task = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                # Removed while still queued
                if task.id in self._tasks and task.status is UploadStatus.PENDING:
                    await self._run(task)
            finally:
                self._queue.task_done()

    async def _run(self, task: UploadTask) -> None:
        task.start()
        self._notify(task)

        def on_progress(percent: int) -> None:
            if task.status is UploadStatus.UPLOADING and task.report_progress(percent):
                self._notify(task)

        try:
            result = await self.uploader(task.path, on_progress)
        except asyncio.CancelledError:
            task.fail("Upload cancelled")
            self._notify(task)
            raise
        except Exception as e:
            # One failed upload never stops the others
            logger.warning(f"Upload failed: {task.name}: {str(e)}")
            task.fail(str(e) or e.__class__.__name__)
        else:
            task.complete(result)
            logger.info(f"Upload completed: {task.name}")

        self._notify(task)

    def _notify(self, task: UploadTask) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(task)
        except Exception:
            # A broken listener must not strand the worker or its queue
            logger.exception(f"Upload change listener failed for {task.name}")
