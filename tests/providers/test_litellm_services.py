# tests/providers/test_litellm_services.py
"""Tests for the LiteLLM service implementations."""

from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("litellm", reason="Tests require litellm package")

from conftest import FakeEmbeddingService
from thoughtrag.errors import UpstreamError
from thoughtrag.providers.litellm import (
    ChatModels,
    EmbeddingModels,
    LiteLLMCompletionService,
    LiteLLMDescriptionService,
    LiteLLMEmbeddingService,
)
from thoughtrag.providers.litellm.client import DESCRIPTION_PROMPT
from thoughtrag.retriever import QueryPipeline
from thoughtrag.streaming import StreamRelay


def mock_completion_response(content: str | None):
    """Create a mock LiteLLM completion response."""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    return mock_response


def mock_embedding_response(*vectors: list[float]):
    mock_response = MagicMock()
    mock_response.data = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    return mock_response


async def mock_stream(*contents: str):
    for content in contents:
        yield {"choices": [{"index": 0, "delta": {"content": content}}]}


class ClosableStream:
    """Async iterator standing in for LiteLLM's CustomStreamWrapper."""

    def __init__(self, *contents: str):
        self._chunks = iter(contents)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            content = next(self._chunks)
        except StopIteration:
            raise StopAsyncIteration from None
        return {"choices": [{"index": 0, "delta": {"content": content}}]}

    async def aclose(self):
        self.closed = True


class TestLiteLLMEmbeddingService:
    def test_defaults(self):
        service = LiteLLMEmbeddingService()
        assert service.model == EmbeddingModels.TEXT_3_SMALL
        assert service.num_retries == 3

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.aembedding")
    async def test_embed(self, mock_aembedding):
        mock_aembedding.return_value = mock_embedding_response([0.1, 0.2, 0.3])
        service = LiteLLMEmbeddingService(timeout=5.0, api_key="sk-test")

        vector = await service.embed("a red bicycle")

        assert vector == [0.1, 0.2, 0.3]
        kwargs = mock_aembedding.call_args.kwargs
        assert kwargs["input"] == ["a red bicycle"]
        assert kwargs["timeout"] == 5.0
        assert kwargs["api_key"] == "sk-test"

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.aembedding")
    async def test_embed_without_data(self, mock_aembedding):
        mock_aembedding.return_value = mock_embedding_response()
        with pytest.raises(UpstreamError):
            await LiteLLMEmbeddingService().embed("text")


class TestLiteLLMDescriptionService:
    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_describe_sends_image(self, mock_acompletion):
        mock_acompletion.return_value = mock_completion_response("  a red bicycle \n")
        service = LiteLLMDescriptionService(model=ChatModels.GPT_4O)

        description = await service.describe("https://img.example/bike.png")

        assert description == "a red bicycle"
        kwargs = mock_acompletion.call_args.kwargs
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": DESCRIPTION_PROMPT}
        assert content[1]["image_url"]["url"] == "https://img.example/bike.png"
        assert kwargs["max_tokens"] == 300

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_custom_prompt(self, mock_acompletion):
        mock_acompletion.return_value = mock_completion_response("a bike")
        service = LiteLLMDescriptionService(prompt="List the objects.", max_tokens=50)

        await service.describe("https://img.example/bike.png")

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["messages"][0]["content"][0]["text"] == "List the objects."
        assert kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_empty_description_is_upstream_error(self, mock_acompletion, content):
        mock_acompletion.return_value = mock_completion_response(content)
        with pytest.raises(UpstreamError) as exc_info:
            await LiteLLMDescriptionService().describe("https://img.example/bike.png")
        assert exc_info.value.service == "description"


class TestLiteLLMCompletionService:
    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_complete(self, mock_acompletion):
        mock_acompletion.return_value = mock_completion_response("In the shed.")
        service = LiteLLMCompletionService(temperature=0.2)

        assert await service.complete("Where is the bike?") == "In the shed."
        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Where is the bike?"}]
        assert kwargs["temperature"] == 0.2
        assert kwargs["drop_params"] is True

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_complete_without_temperature(self, mock_acompletion):
        mock_acompletion.return_value = mock_completion_response("ok")
        await LiteLLMCompletionService().complete("hi")
        assert "temperature" not in mock_acompletion.call_args.kwargs

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_complete_none_content(self, mock_acompletion):
        mock_acompletion.return_value = mock_completion_response(None)
        with pytest.raises(UpstreamError):
            await LiteLLMCompletionService().complete("hi")

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_stream_emits_sse_frames(self, mock_acompletion):
        mock_acompletion.return_value = mock_stream("In the ", "shed.")
        service = LiteLLMCompletionService()

        frames = [frame async for frame in service.stream("Where is the bike?")]

        assert mock_acompletion.call_args.kwargs["stream"] is True
        assert frames[-1] == b"data: [DONE]\n\n"
        assert all(frame.startswith(b"data: ") for frame in frames)

        relay = StreamRelay()
        deltas = [d for frame in frames for d in relay.feed(frame)]
        assert deltas == ["In the ", "shed."]
        assert relay.done

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_stream_closed_early_closes_response(self, mock_acompletion):
        response = ClosableStream("In the ", "shed.", " Next to the rake.")
        mock_acompletion.return_value = response
        frames = LiteLLMCompletionService().stream("Where is the bike?")

        await anext(frames)
        assert not response.closed
        await frames.aclose()

        assert response.closed

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_stream_closes_response_when_exhausted(self, mock_acompletion):
        response = ClosableStream("ok")
        mock_acompletion.return_value = response

        frames = [frame async for frame in LiteLLMCompletionService().stream("hi")]

        assert frames[-1] == b"data: [DONE]\n\n"
        assert response.closed

    @pytest.mark.asyncio
    @patch("thoughtrag.providers.litellm.client.litellm.acompletion")
    async def test_cancelled_answer_closes_response(self, mock_acompletion, store):
        response = ClosableStream("The bicycle ", "is in the shed.")
        mock_acompletion.return_value = response
        pipeline = QueryPipeline(
            embedding_service=FakeEmbeddingService(),
            vector_store=store,
            completion_service=LiteLLMCompletionService(),
        )
        received = []

        handle = pipeline.answer_stream(
            "Where is the bike?",
            ["team-a"],
            on_delta=lambda text: (received.append(text), handle.cancel()),
        )
        await handle.wait()

        assert received == ["The bicycle "]
        assert handle.cancelled
        assert response.closed
