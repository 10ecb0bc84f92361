"""Background scheduling of ingestion work."""

import asyncio
import logging

from thoughtrag.errors import NotFoundError
from thoughtrag.ingestor import IngestionPipeline
from thoughtrag.models import EmbeddingStatus, Thought

logger = logging.getLogger(__name__)


class IngestionScheduler:
    """Runs ingestions as explicit asyncio tasks.

    Callers submit a thought id and get the task back; they may await it, poll
    status(), or ignore it entirely. Failures never escape a task: they are
    logged, persisted as the thought's failed status by the pipeline, and the
    task resolves to the persisted thought.

    At most ``max_concurrent`` ingestions run at once. A submission for a
    thought that already has a task in flight in this scheduler returns that
    task instead of starting a second run.

    Example:
        scheduler = IngestionScheduler(pipeline)
        scheduler.submit(thought.id)
        ...
        await scheduler.drain()
    """

    def __init__(self, pipeline: IngestionPipeline, max_concurrent: int = 4) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.pipeline = pipeline
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: dict[str, asyncio.Task[Thought | None]] = {}

    def submit(self, thought_id: str) -> asyncio.Task[Thought | None]:
        """Schedule ingestion of a thought."""
        return self._schedule(thought_id, retry=False)

    def submit_retry(self, thought_id: str) -> asyncio.Task[Thought | None]:
        """Schedule a retry, waiting out the policy's remaining backoff first."""
        return self._schedule(thought_id, retry=True)

    @property
    def in_flight(self) -> list[str]:
        """Ids of thoughts with an unfinished task."""
        return [thought_id for thought_id, task in self._tasks.items() if not task.done()]

    def status(self, thought_id: str) -> EmbeddingStatus | None:
        """Persisted embedding status of a thought, or None if it does not exist.

        A synchronous read of the store, for polling from plain code.
        """
        thought = self.pipeline.thought_store.get(thought_id)
        return thought.embedding_status if thought else None

    async def wait(self, thought_id: str) -> Thought | None:
        """Wait for the in-flight task of a thought, if any, and return it persisted."""
        task = self._tasks.get(thought_id)
        if task is not None:
            return await asyncio.shield(task)
        return await asyncio.to_thread(self.pipeline.thought_store.get, thought_id)

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        while pending := [task for task in self._tasks.values() if not task.done()]:
            await asyncio.gather(*pending, return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel every in-flight task and wait for them to settle."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _schedule(self, thought_id: str, retry: bool) -> asyncio.Task[Thought | None]:
        existing = self._tasks.get(thought_id)
        if existing is not None and not existing.done():
            logger.debug("Thought %s already in flight, joining existing task", thought_id)
            return existing

        task = asyncio.get_running_loop().create_task(
            self._execute(thought_id, retry),
            name=f"{'retry' if retry else 'ingest'}:{thought_id}",
        )
        self._tasks[thought_id] = task
        task.add_done_callback(lambda t: self._forget(thought_id, t))
        return task

    def _forget(self, thought_id: str, task: asyncio.Task[Thought | None]) -> None:
        if self._tasks.get(thought_id) is task:
            del self._tasks[thought_id]

    async def _execute(self, thought_id: str, retry: bool) -> Thought | None:
        operation = "retry" if retry else "ingestion"
        try:
            if retry:
                await self._wait_out_backoff(thought_id)
            async with self._semaphore:
                if retry:
                    return await self.pipeline.retry(thought_id)
                return await self.pipeline.ingest(thought_id)
        except asyncio.CancelledError:
            logger.info("Scheduled %s of thought %s was cancelled", operation, thought_id)
            raise
        except Exception as e:
            logger.warning("Scheduled %s of thought %s failed: %s", operation, thought_id, e)

        try:
            return await asyncio.to_thread(self.pipeline.thought_store.get, thought_id)
        except Exception:
            logger.exception("Could not reload thought %s after failed %s", thought_id, operation)
            return None

    async def _wait_out_backoff(self, thought_id: str) -> None:
        thought = await asyncio.to_thread(self.pipeline.thought_store.get, thought_id)
        if thought is None:
            raise NotFoundError(thought_id)
        delay = self.pipeline.retry_policy.remaining_delay(thought)
        if delay > 0:
            logger.info("Waiting %.1fs before retrying thought %s", delay, thought_id)
            await asyncio.sleep(delay)
