"""Tests for the ThoughtRAG central class."""

import pytest

from thoughtrag.chat import ChatSession
from thoughtrag.configuration import LocalStorage
from thoughtrag.errors import NotFoundError, ValidationError
from thoughtrag.events import ChangeBus, NullPublisher
from thoughtrag.ingestor import IngestionPipeline
from thoughtrag.models import EmbeddingStatus, ThoughtKind, ThoughtStatus
from thoughtrag.retriever import QueryPipeline
from thoughtrag.scheduler import IngestionScheduler
from thoughtrag.settings import Settings
from thoughtrag.thoughtrag import ThoughtRAG


class TestConstruction:
    def test_with_storage_bundle(self, provider, tmp_path):
        rag = ThoughtRAG(provider=provider, storage=LocalStorage(str(tmp_path)))
        assert rag.thought_store is rag.vector_store
        assert isinstance(rag.changes, ChangeBus)
        assert rag.settings == Settings()

    def test_with_explicit_stores(self, rag, store, provider):
        assert rag.thought_store is store
        assert rag.embedding_service is provider.embedding_service

    def test_cannot_mix_storage_and_stores(self, provider, store, tmp_path):
        with pytest.raises(ValueError, match="Cannot mix"):
            ThoughtRAG(provider=provider, storage=LocalStorage(str(tmp_path)), thought_store=store)

    def test_requires_storage(self, provider, store):
        with pytest.raises(ValueError, match="Must provide"):
            ThoughtRAG(provider=provider, thought_store=store)

    def test_custom_publisher(self, provider, store):
        publisher = NullPublisher()
        rag = ThoughtRAG.from_stores(
            provider=provider, thought_store=store, vector_store=store, publisher=publisher
        )
        assert rag.changes is publisher


class TestCapture:
    def test_capture_document(self, rag, store):
        thought = rag.capture(
            user_id="u1",
            team_id="team-a",
            title="Bike",
            image_url="https://img.example/bike.png",
        )

        stored = store.get(thought.id)
        assert stored.kind == ThoughtKind.DOCUMENT
        assert stored.status == ThoughtStatus.CLOSED
        assert stored.embedding_status == EmbeddingStatus.PENDING
        assert stored.embedding is None

    def test_question_starts_open(self, rag):
        thought = rag.capture(user_id="u1", team_id="team-a", kind=ThoughtKind.QUESTION)
        assert thought.status == ThoughtStatus.OPEN

    def test_answer_links_to_question(self, rag):
        question = rag.capture(user_id="u1", team_id="team-a", kind=ThoughtKind.QUESTION)
        answer = rag.capture(
            user_id="u2",
            team_id="team-a",
            kind=ThoughtKind.ANSWER,
            parent_question_id=question.id,
        )
        assert answer.parent_question_id == question.id

    @pytest.mark.parametrize(("user_id", "team_id"), [("", "team-a"), ("u1", " ")])
    def test_requires_user_and_team(self, rag, user_id, team_id):
        with pytest.raises(ValidationError):
            rag.capture(user_id=user_id, team_id=team_id)

    def test_parent_must_exist(self, rag):
        with pytest.raises(NotFoundError):
            rag.capture(
                user_id="u1", team_id="team-a", kind=ThoughtKind.ANSWER, parent_question_id="nope"
            )

    def test_parent_must_be_question(self, rag):
        document = rag.capture(user_id="u1", team_id="team-a")
        with pytest.raises(ValidationError):
            rag.capture(
                user_id="u1",
                team_id="team-a",
                kind=ThoughtKind.ANSWER,
                parent_question_id=document.id,
            )

    def test_question_cannot_have_parent(self, rag):
        question = rag.capture(user_id="u1", team_id="team-a", kind=ThoughtKind.QUESTION)
        with pytest.raises(ValidationError):
            rag.capture(
                user_id="u1",
                team_id="team-a",
                kind=ThoughtKind.QUESTION,
                parent_question_id=question.id,
            )


class TestFactories:
    def test_ingestion_pipeline_uses_settings(self, provider, store):
        rag = ThoughtRAG.from_stores(
            provider=provider,
            thought_store=store,
            vector_store=store,
            settings=Settings(max_embedding_attempts=2, description_timeout=5.0),
        )
        pipeline = rag.ingestion_pipeline()

        assert isinstance(pipeline, IngestionPipeline)
        assert pipeline.retry_policy.max_attempts == 2
        assert pipeline.description_timeout == 5.0
        assert pipeline.publisher is rag.changes

    def test_scheduler_is_shared(self, rag):
        scheduler = rag.scheduler()
        assert isinstance(scheduler, IngestionScheduler)
        assert rag.scheduler() is scheduler
        assert scheduler.max_concurrent == 4

    def test_query_pipeline_uses_presets(self, provider, store):
        rag = ThoughtRAG.from_stores(
            provider=provider,
            thought_store=store,
            vector_store=store,
            settings=Settings(match_count=3, grounding_prompt="{context}|{question}"),
        )
        pipeline = rag.query_pipeline()

        assert isinstance(pipeline, QueryPipeline)
        assert pipeline.chat_preset.match_count == 3
        assert pipeline.search_preset.match_threshold == 0.7
        assert pipeline.prompt_template == "{context}|{question}"
        assert rag.query_pipeline(prompt_template="{question}").prompt_template == "{question}"

    def test_chat(self, rag):
        session = rag.chat(["team-a"])
        assert isinstance(session, ChatSession)
        assert session.team_ids == ["team-a"]


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_capture_ingest_and_answer(self, rag, completion_service):
        changes = []
        rag.changes.subscribe(["team-a"], changes.append)
        thought = rag.capture(
            user_id="u1",
            team_id="team-a",
            title="Bike",
            image_url="https://img.example/bike.png",
        )

        completed = await rag.scheduler().submit(thought.id)
        assert completed.embedding_status == EmbeddingStatus.COMPLETED
        assert [c.embedding_status for c in changes] == [
            EmbeddingStatus.PROCESSING,
            EmbeddingStatus.COMPLETED,
        ]

        result = await rag.query_pipeline().answer("Where is my bike?", ["team-a"])
        assert [m.id for m in result.matches] == [thought.id]
        assert "a red bicycle" in completion_service.prompts[-1]

        other_team = await rag.query_pipeline().search("Where is my bike?", ["team-b"])
        assert other_team == []
