"""Ingestion pipeline for thoughtrag."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from thoughtrag.errors import (
    NotFoundError,
    RetryLimitExceededError,
    StatusWriteError,
    UpstreamError,
    ValidationError,
)
from thoughtrag.events import ChangePublisher, NullPublisher
from thoughtrag.models import EmbeddingStatus, Thought, ThoughtChange
from thoughtrag.models.thought import utc_now
from thoughtrag.providers import DescriptionService, EmbeddingService, guard_upstream
from thoughtrag.stores import ThoughtStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt cap and backoff for re-ingesting failed thoughts.

    The delay before attempt ``n + 1`` is
    ``min(max_delay, initial_delay * multiplier ** (n - 1))`` measured from
    the thought's ``last_attempt_at``, where ``n`` is its persisted
    ``embedding_attempts``. Nothing beyond those two fields is stored.

    Attributes:
        max_attempts: Total attempts allowed, including the first one.
                      None allows unlimited attempts.
        initial_delay: Seconds to wait before the first retry.
        multiplier: Growth factor applied per attempt.
        max_delay: Upper bound on the wait, in seconds.
    """

    max_attempts: int | None = 5
    initial_delay: float = 2.0
    multiplier: float = 2.0
    max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 or None")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    def allows(self, attempts: int) -> bool:
        """Whether another attempt may start after *attempts* attempts."""
        return self.max_attempts is None or attempts < self.max_attempts

    def delay_for(self, attempts: int) -> float:
        """Backoff in seconds owed after *attempts* attempts."""
        if attempts <= 0:
            return 0.0
        return min(self.max_delay, self.initial_delay * self.multiplier ** (attempts - 1))

    def remaining_delay(self, thought: Thought, now: datetime | None = None) -> float:
        """Seconds left before *thought* may be retried."""
        if thought.last_attempt_at is None:
            return 0.0
        now = now or utc_now()
        elapsed = (now - thought.last_attempt_at).total_seconds()
        return max(0.0, self.delay_for(thought.embedding_attempts) - elapsed)


class IngestionPipeline:
    """Turns a captured thought into a searchable, embedded record.

    Pipeline:
    1. Mark the thought processing (one status write, published)
    2. Load the thought
    3. Require an image URL
    4. Describe the image with the DescriptionService
    5. Embed the generated description with the EmbeddingService
    6. Persist description, embedding and completed status in one write

    Any failure in steps 2-6, cancellation included, is persisted as a failed
    status with no derived fields, published, and re-raised. The pipeline takes
    no locks: concurrent runs for the same thought are allowed and the last
    status write wins.
    """

    def __init__(
        self,
        thought_store: ThoughtStore,
        description_service: DescriptionService,
        embedding_service: EmbeddingService,
        publisher: ChangePublisher | None = None,
        description_timeout: float | None = 60.0,
        embedding_timeout: float | None = 30.0,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            thought_store: Store holding the thoughts and their status
            description_service: Vision model wrapper producing ai_description
            embedding_service: Embedding model wrapper
            publisher: Receives a ThoughtChange after every status write
            description_timeout: Seconds allowed for the description call
            embedding_timeout: Seconds allowed for the embedding call
            retry_policy: Attempt cap and backoff used by retry()
        """
        self.thought_store = thought_store
        self.description_service = description_service
        self.embedding_service = embedding_service
        self.publisher = publisher or NullPublisher()
        self.description_timeout = description_timeout
        self.embedding_timeout = embedding_timeout
        self.retry_policy = retry_policy or RetryPolicy()

    async def ingest(self, thought_id: str) -> Thought:
        """Generate the description and embedding for a thought.

        Returns:
            The persisted, completed thought.

        Raises:
            ValidationError: Blank id or missing image URL.
            NotFoundError: The thought does not exist.
            UpstreamError: The description or embedding call failed.
            StatusWriteError: The failed status could not be persisted.
        """
        if not thought_id or not thought_id.strip():
            raise ValidationError("thought_id must not be empty")
        return await self._run(thought_id)

    async def retry(self, thought_id: str) -> Thought:
        """Re-run ingestion for a thought, typically one that failed.

        Raises:
            RetryLimitExceededError: The retry policy's attempt cap is reached.
            Anything ingest() raises.
        """
        if not thought_id or not thought_id.strip():
            raise ValidationError("thought_id must not be empty")
        thought = await asyncio.to_thread(self.thought_store.get, thought_id)
        if thought is None:
            raise NotFoundError(thought_id)
        if not self.retry_policy.allows(thought.embedding_attempts):
            raise RetryLimitExceededError(
                thought_id,
                thought.embedding_attempts,
                self.retry_policy.max_attempts or thought.embedding_attempts,
            )
        logger.info(
            "Retrying thought %s (attempt %d, was %s)",
            thought_id,
            thought.embedding_attempts + 1,
            thought.embedding_status.value,
        )
        return await self._run(thought_id)

    async def _run(self, thought_id: str) -> Thought:
        started = False
        team_id: str | None = None
        try:
            started = await self._store_call(self.thought_store.mark_processing, thought_id)
            thought: Thought | None = None
            if started:
                thought = await self._store_call(self.thought_store.get, thought_id)
            if thought is None:
                raise NotFoundError(thought_id)
            team_id = thought.team_id
            self._publish(thought_id, team_id, EmbeddingStatus.PROCESSING)

            image_url = (thought.image_url or "").strip()
            if not image_url:
                raise ValidationError(f"Thought {thought_id} has no image URL to describe")

            ai_description = await self._describe(image_url)
            embedding = await self._embed(ai_description)

            written = await self._store_call(
                self.thought_store.mark_completed, thought_id, ai_description, embedding
            )
            if not written:
                raise NotFoundError(thought_id)
        except asyncio.CancelledError as e:
            # The processing write may have landed before the cancellation
            await self._record_failure(thought_id, team_id, e)
            raise
        except Exception as e:
            if started:
                await self._record_failure(thought_id, team_id, e)
            raise

        self._publish(thought_id, team_id, EmbeddingStatus.COMPLETED)
        logger.info("Embedded thought %s (%d dimensions)", thought_id, len(embedding))

        completed = await self._store_call(self.thought_store.get, thought_id)
        if completed is None:
            raise NotFoundError(thought_id)
        return completed

    @staticmethod
    async def _store_call(func: Callable[..., T], *args: Any) -> T:
        """Run a blocking store call in a worker thread.

        The call always runs to completion, even when the awaiting task is
        cancelled, so status writes land in the order they were issued.
        """
        call = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            return await asyncio.shield(call)
        except asyncio.CancelledError:
            await call
            raise

    async def _describe(self, image_url: str) -> str:
        description = await guard_upstream(
            self.description_service.describe(image_url),
            service="description",
            timeout=self.description_timeout,
        )
        if not isinstance(description, str) or not description.strip():
            raise UpstreamError("Description service returned empty content", service="description")
        return description.strip()

    async def _embed(self, text: str) -> list[float]:
        embedding = await guard_upstream(
            self.embedding_service.embed(text),
            service="embedding",
            timeout=self.embedding_timeout,
        )
        if not embedding:
            raise UpstreamError("Embedding service returned an empty vector", service="embedding")
        return [float(v) for v in embedding]

    async def _record_failure(
        self, thought_id: str, team_id: str | None, error: BaseException
    ) -> None:
        message = str(error) or type(error).__name__
        logger.warning("Ingestion of thought %s failed: %s", thought_id, message)
        try:
            written = await self._store_call(self.thought_store.mark_failed, thought_id, message)
        except Exception as write_error:
            logger.error(
                "Could not persist failed status for thought %s: %s", thought_id, write_error
            )
            raise StatusWriteError(error, write_error) from error
        if written:
            self._publish(thought_id, team_id, EmbeddingStatus.FAILED, message)

    def _publish(
        self,
        thought_id: str,
        team_id: str | None,
        status: EmbeddingStatus,
        error: str | None = None,
    ) -> None:
        change = ThoughtChange(
            thought_id=thought_id,
            team_id=team_id,
            embedding_status=status,
            error=error,
        )
        try:
            self.publisher.publish(change)
        except Exception:
            logger.exception("Publishing change for thought %s failed", thought_id)
