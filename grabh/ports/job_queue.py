"""JobQueuePort — abstract interface for bounded job submission."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from grabh.domain.models import QueueStatus

WorkFunction = Callable[[Any], Awaitable[Any]]


class JobQueuePort(ABC):
    @abstractmethod
    def submit(self, argument: Any, work_fn: WorkFunction) -> "asyncio.Future[Any]":
        """Queue work_fn(argument). Returns a future resolved with its outcome."""

    @abstractmethod
    def status(self) -> QueueStatus:
        """Return a point-in-time snapshot of waiting/active/capacity."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Drop waiting jobs and stop running ones."""
