"""BoundedJobQueue — FIFO dispatcher with a fixed concurrency ceiling.

Every caller (HTTP handlers, bot handlers) shares one event loop. All
bookkeeping happens in plain synchronous methods on that loop, with no
await between an admission check and the matching counter update, so two
submissions can never both claim the last free slot. Work functions run
as their own tasks, outside that bookkeeping.
"""

import asyncio
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from grabh.adapters.local.log_progress import LogProgressAdapter
from grabh.domain.models import QueueStatus
from grabh.errors import InvariantViolation
from grabh.ports.job_queue import JobQueuePort, WorkFunction
from grabh.ports.progress import ProgressPort

logger = logging.getLogger(__name__)


def _new_job_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


@dataclass
class Job:
    """One queued invocation of a work function."""
    id: str
    argument: Any
    work_fn: WorkFunction
    completion: "asyncio.Future[Any]"
    submitted_at: float = field(default_factory=time.monotonic)


class BoundedJobQueue(JobQueuePort):
    """Runs at most ``max_concurrent`` work functions at once, admitting the rest in FIFO order."""

    def __init__(self, max_concurrent: int = 2, progress: Optional[ProgressPort] = None):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self._max_concurrent = max_concurrent
        self._pending: deque[Job] = deque()
        self._active = 0
        self._tasks: set[asyncio.Task] = set()
        self._progress = progress or LogProgressAdapter()

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    def submit(self, argument: Any, work_fn: WorkFunction) -> "asyncio.Future[Any]":
        """Queue ``work_fn(argument)`` and return its completion future.

        Must be called from the event loop thread. Never blocks: the job is
        started right away when a slot is free, otherwise it waits in line.
        """
        loop = asyncio.get_running_loop()
        job = Job(
            id=_new_job_id(),
            argument=argument,
            work_fn=work_fn,
            completion=loop.create_future(),
        )
        self._pending.append(job)
        self._progress.report(
            job.id, "queued",
            detail=f"{len(self._pending)} waiting, {self._active} active",
        )
        self._admit()
        return job.completion

    def status(self) -> QueueStatus:
        return QueueStatus(
            waiting=len(self._pending),
            active=self._active,
            capacity=self._max_concurrent,
        )

    async def shutdown(self) -> None:
        """Cancel waiting jobs and running work functions, then wait for them to unwind."""
        while self._pending:
            job = self._pending.popleft()
            job.completion.cancel()
            self._progress.report(job.id, "discarded", detail="shutdown before start")
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Job queue shut down (%d running jobs cancelled)", len(tasks))

    def _admit(self) -> None:
        while self._active < self._max_concurrent and self._pending:
            job = self._pending.popleft()
            self._active += 1
            self._check_capacity()
            self._progress.report(
                job.id, "running",
                detail=f"{self._active}/{self._max_concurrent} slots, {len(self._pending)} waiting",
            )
            task = asyncio.get_running_loop().create_task(self._run(job), name=f"job-{job.id}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, job: Job) -> None:
        try:
            result = await job.work_fn(job.argument)
        except asyncio.CancelledError:
            self._complete(job, cancelled=True)
            raise
        except Exception as e:
            self._complete(job, error=e)
        else:
            self._complete(job, result=result)

    def _complete(
        self,
        job: Job,
        result: Any = None,
        error: Optional[BaseException] = None,
        cancelled: bool = False,
    ) -> None:
        self._active -= 1
        self._check_capacity()
        elapsed = time.monotonic() - job.submitted_at
        slots = f"{self._active}/{self._max_concurrent} slots, {len(self._pending)} waiting"

        if job.completion.cancelled():
            # The submitter stopped waiting; the outcome has nowhere to go.
            self._progress.report(job.id, "discarded", detail=f"caller gone, {slots}")
        elif job.completion.done():
            logger.critical("Job %s completion resolved twice", job.id)
            raise InvariantViolation(f"job {job.id} completion resolved twice")
        elif cancelled:
            job.completion.cancel()
            self._progress.report(job.id, "discarded", detail=f"cancelled, {slots}")
        elif error is not None:
            job.completion.set_exception(error)
            self._progress.report(job.id, "failed", detail=f"{error} ({elapsed:.1f}s, {slots})")
        else:
            job.completion.set_result(result)
            self._progress.report(job.id, "finished", detail=f"{elapsed:.1f}s, {slots}")

        self._admit()

    def _check_capacity(self) -> None:
        if not 0 <= self._active <= self._max_concurrent:
            logger.critical(
                "Active job count %d outside [0, %d]", self._active, self._max_concurrent
            )
            raise InvariantViolation(
                f"active={self._active} outside [0, {self._max_concurrent}]"
            )
