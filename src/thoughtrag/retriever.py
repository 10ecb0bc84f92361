"""Retrieval and answer pipeline for thoughtrag."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing
from typing import Any

from thoughtrag.errors import UpstreamError, ValidationError
from thoughtrag.models import AnswerResult, QueryRequest, RetrievedMatch
from thoughtrag.prompts import build_grounding_prompt
from thoughtrag.providers import CompletionService, EmbeddingService, guard_upstream
from thoughtrag.settings import RETRIEVAL_PRESETS, RetrievalPreset
from thoughtrag.stores import VectorStore
from thoughtrag.streaming import StreamRelay

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[str], None]
CompleteCallback = Callable[[], None]
ErrorCallback = Callable[[BaseException], None]

_END_OF_STREAM: Any = object()


async def _next_or_end(iterator: AsyncIterator[str]) -> Any:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return _END_OF_STREAM


class AnswerHandle:
    """Handle on a streaming answer started by QueryPipeline.answer_stream().

    cancel() stops delta delivery and releases the upstream stream. A
    cancelled answer fires neither on_complete nor on_error.
    """

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task
        self._cancelled = False

    def cancel(self) -> None:
        """Stop delivering deltas and close the stream."""
        if not self._task.done():
            self._cancelled = True
            self._task.cancel()

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Call *callback* once the answer has settled, however it ended."""
        self._task.add_done_callback(lambda _: callback())

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> None:
        """Wait until the answer has completed, failed or been cancelled."""
        await asyncio.wait([self._task])


class QueryPipeline:
    """Orchestrates question answering over a team-scoped knowledge base.

    Pipeline:
    1. Validate the question and team ids
    2. Embed the question
    3. Search the vector store with the relevant retrieval preset
    4. Build the grounding prompt from the matches
    5. Call the completion service, blocking or streamed

    Embedding and search failures abort the whole request. Zero matches is not
    a failure: the prompt goes out with an empty context block.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        completion_service: CompletionService,
        chat_preset: RetrievalPreset | None = None,
        search_preset: RetrievalPreset | None = None,
        prompt_template: str | None = None,
        embedding_timeout: float | None = 30.0,
        search_timeout: float | None = 30.0,
        completion_timeout: float | None = 120.0,
        stream_read_timeout: float | None = 30.0,
    ) -> None:
        """Initialize the query pipeline.

        Args:
            embedding_service: Embeds the question
            vector_store: Similarity search over completed thoughts
            completion_service: Generates the grounded answer
            chat_preset: Retrieval parameters for answers
                        (default: the "chat-answering" preset)
            search_preset: Retrieval parameters for search()
                        (default: the "interactive-search" preset)
            prompt_template: Grounding prompt with {context} and {question}
            embedding_timeout: Seconds allowed for the question embedding
            search_timeout: Seconds allowed for the vector search
            completion_timeout: Seconds allowed for a blocking completion
            stream_read_timeout: Seconds allowed between two stream deltas
        """
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.completion_service = completion_service
        self.chat_preset = chat_preset or RETRIEVAL_PRESETS["chat-answering"]
        self.search_preset = search_preset or RETRIEVAL_PRESETS["interactive-search"]
        self.prompt_template = prompt_template
        self.embedding_timeout = embedding_timeout
        self.search_timeout = search_timeout
        self.completion_timeout = completion_timeout
        self.stream_read_timeout = stream_read_timeout

    @staticmethod
    def build_request(question: str, team_ids: Sequence[str]) -> QueryRequest:
        """Validate and normalise a question and its team scope.

        The question is stripped; blank and repeated team ids are dropped,
        keeping first-seen order.

        Raises:
            ValidationError: Blank question or no usable team ids.
        """
        if not question or not question.strip():
            raise ValidationError("question must not be empty")
        teams = list(dict.fromkeys(t for t in team_ids or () if t and t.strip()))
        if not teams:
            raise ValidationError("team_ids must not be empty")
        return QueryRequest(question=question.strip(), team_ids=teams)

    async def retrieve(
        self,
        question: str,
        team_ids: Sequence[str],
        preset: RetrievalPreset | None = None,
    ) -> list[RetrievedMatch]:
        """Embed *question* and return its matches within *team_ids*.

        Raises:
            ValidationError: Blank question or no team ids.
            UpstreamError: The embedding or search call failed.
        """
        request = self.build_request(question, team_ids)
        teams = request.team_ids
        preset = preset or self.chat_preset

        query_embedding = await guard_upstream(
            self.embedding_service.embed(request.question),
            service="embedding",
            timeout=self.embedding_timeout,
        )
        if not query_embedding:
            raise UpstreamError("Embedding service returned an empty vector", service="embedding")

        matches = await guard_upstream(
            asyncio.to_thread(
                self.vector_store.search,
                list(query_embedding),
                teams,
                preset.match_threshold,
                preset.match_count,
            ),
            service="vector_search",
            timeout=self.search_timeout,
        )

        allowed = set(teams)
        scoped = [m for m in matches if m.team_id in allowed]
        if len(scoped) != len(matches):
            logger.warning(
                "Vector search returned %d matches outside the requested teams; dropped",
                len(matches) - len(scoped),
            )
        return scoped[: preset.match_count]

    async def search(self, query: str, team_ids: Sequence[str]) -> list[RetrievedMatch]:
        """Semantic search for the search UI, using the search preset."""
        return await self.retrieve(query, team_ids, self.search_preset)

    async def answer(self, question: str, team_ids: Sequence[str]) -> AnswerResult:
        """Answer a question and wait for the whole completion.

        Raises:
            ValidationError: Blank question or no team ids.
            UpstreamError: Any embedding, search or completion failure.
        """
        matches = await self.retrieve(question, team_ids, self.chat_preset)
        prompt = build_grounding_prompt(question, matches, self.prompt_template)
        logger.debug("Answering with %d context matches", len(matches))

        answer = await guard_upstream(
            self.completion_service.complete(prompt),
            service="completion",
            timeout=self.completion_timeout,
        )
        return AnswerResult(question=question, answer=answer.strip(), matches=matches)

    async def astream_answer(self, question: str, team_ids: Sequence[str]) -> AsyncIterator[str]:
        """Answer a question, yielding text deltas in arrival order.

        Closing the generator early closes the upstream stream.

        Raises:
            ValidationError: Blank question or no team ids.
            UpstreamError: Any embedding, search or completion failure,
                           including a stream that stalls or ends early.
        """
        matches = await self.retrieve(question, team_ids, self.chat_preset)
        async with aclosing(self.astream_completion(question, matches)) as deltas:
            async for delta in deltas:
                yield delta

    async def astream_completion(
        self,
        question: str,
        matches: Sequence[RetrievedMatch],
    ) -> AsyncIterator[str]:
        """Stream a grounded answer for matches that were already retrieved.

        Callers that show the matches alongside the answer use this after
        retrieve() to avoid searching twice.
        """
        prompt = build_grounding_prompt(question, matches, self.prompt_template)
        logger.debug("Streaming answer with %d context matches", len(matches))

        source = self.completion_service.stream(prompt)
        relay = StreamRelay()
        deltas = relay.relay(source)
        try:
            while True:
                delta = await guard_upstream(
                    _next_or_end(deltas),
                    service="completion",
                    timeout=self.stream_read_timeout,
                )
                if delta is _END_OF_STREAM:
                    break
                yield delta
        finally:
            await deltas.aclose()
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
            if relay.skipped_frames:
                logger.info("Skipped %d malformed stream frames", relay.skipped_frames)

    def answer_stream(
        self,
        question: str,
        team_ids: Sequence[str],
        on_delta: DeltaCallback,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> AnswerHandle:
        """Start a streamed answer that reports through callbacks.

        Exactly one of *on_complete* / *on_error* fires unless the returned
        handle is cancelled first. Errors raised by *on_delta* count as stream
        failures. Must be called from a running event loop.

        Example:
            handle = pipeline.answer_stream(
                "Where is the red bicycle?",
                ["team-a"],
                on_delta=lambda text: print(text, end=""),
                on_complete=lambda: print(),
                on_error=lambda err: print(f"Error: {err}"),
            )
            await handle.wait()
        """

        async def drive() -> None:
            try:
                async with aclosing(self.astream_answer(question, team_ids)) as deltas:
                    async for delta in deltas:
                        on_delta(delta)
            except asyncio.CancelledError:
                logger.debug("Streamed answer cancelled")
                raise
            except Exception as e:
                logger.warning("Streamed answer failed: %s", e)
                if on_error is not None:
                    try:
                        on_error(e)
                    except Exception:
                        logger.exception("on_error callback raised")
                return

            if on_complete is not None:
                try:
                    on_complete()
                except Exception:
                    logger.exception("on_complete callback raised")

        task = asyncio.get_running_loop().create_task(drive(), name="answer-stream")
        return AnswerHandle(task)
