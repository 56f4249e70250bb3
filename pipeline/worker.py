# pipeline/worker.py
import asyncio
import functools
import logging
from typing import Awaitable, Callable, Optional

import anyio.to_thread

from pipeline.job_queue import Job

logger = logging.getLogger("transfer.worker")

Handler = Callable[[Job], Awaitable[None]]


async def run_sync(func, *args, **kwargs):
    """Run a blocking (database) call in a worker thread."""
    return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))


class QueueWorker:
    """
    Polling consumer for one named queue.

    ``concurrency`` consumers share the queue; with ``concurrency=1`` at most
    one job of this queue is in flight at any time.
    """

    def __init__(self, queue, queue_name: str, handler: Handler,
                 concurrency: int = 1, poll_interval: float = 2.0):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.queue = queue
        self.queue_name = queue_name
        self.handler = handler
        self.concurrency = concurrency
        self.poll_interval = poll_interval

    async def run(self, stop_event: asyncio.Event):
        logger.info(f"👷 worker[{self.queue_name}] started (concurrency={self.concurrency})")
        consumers = [
            asyncio.create_task(self._consume(stop_event))
            for _ in range(self.concurrency)
        ]
        try:
            await asyncio.gather(*consumers)
        finally:
            for task in consumers:
                task.cancel()
            logger.info(f"worker[{self.queue_name}] stopped")

    async def drain(self) -> int:
        """Run queued jobs until the queue is empty. Returns the number run."""
        handled = 0
        while True:
            job = await run_sync(self.queue.claim, self.queue_name)
            if job is None:
                return handled
            await self.run_job(job)
            handled += 1

    async def run_job(self, job: Job):
        logger.info(f"[JOB {job.id}] {job.name} started")
        try:
            await self.handler(job)
        except Exception as e:
            logger.error(f"[JOB {job.id}] {job.name} failed: {e}")
            await run_sync(self.queue.fail, job.id, str(e))
        else:
            await run_sync(self.queue.complete, job.id)
            logger.info(f"[JOB {job.id}] {job.name} completed")

    async def _consume(self, stop_event: asyncio.Event):
        while not stop_event.is_set():
            job: Optional[Job] = await run_sync(self.queue.claim, self.queue_name)
            if job is None:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
                continue

            await self.run_job(job)
