"""Ordered processing of captured page events.

Playwright dispatches console and network events synchronously, but turning
them into entries needs awaitable reads (argument rendering, response bodies).
Handlers enqueue one job per event in dispatch order and a single worker task
runs the jobs one after another, so entries are appended in the order the
events fired, whatever each job awaits.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class EventPipeline:
    """Single-worker FIFO job queue bound to the running event loop."""

    def __init__(self, name: str = "capture"):
        self.name = name
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self.jobs_processed = 0
        self.jobs_failed = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker on the running loop."""
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Event pipeline '{self.name}' started")

    def submit(self, job: Job) -> bool:
        """Enqueue a job; returns False when the pipeline is stopped."""
        if not self.is_running:
            return False
        self._queue.put_nowait(job)
        return True

    async def drain(self) -> None:
        """Wait until every job enqueued so far has finished."""
        if self.is_running:
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel the worker and discard pending jobs."""
        worker, self._worker = self._worker, None
        queue, self._queue = self._queue, None
        if worker is None:
            return
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass

        # Release anyone waiting in drain()
        while not queue.empty():
            queue.get_nowait()
            queue.task_done()
        logger.debug(f"Event pipeline '{self.name}' stopped")

    async def _run(self) -> None:
        queue = self._queue
        while True:
            job = await queue.get()
            try:
                await job()
                self.jobs_processed += 1
            except Exception as e:
                self.jobs_failed += 1
                logger.error(f"Error processing {self.name} event: {e}")
            finally:
                queue.task_done()
