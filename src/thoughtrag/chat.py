"""In-memory chat session that accumulates streamed answers."""

import logging
from collections.abc import Sequence
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from thoughtrag.errors import ValidationError
from thoughtrag.retriever import AnswerHandle, QueryPipeline

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One chat message."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    content: str = ""


class ChatSession:
    """Conversation state for a chat UI.

    ask() appends the user's question and an empty assistant message, then
    grows that assistant message as deltas arrive. ``is_loading`` is True
    until the answer completes, fails or is cancelled; a failure is kept in
    ``error``.

    Example:
        session = ChatSession(query_pipeline, team_ids=["team-a"])
        handle = session.ask("Where did we leave the bicycle?")
        await handle.wait()
        print(session.messages[-1].content)
    """

    def __init__(self, pipeline: QueryPipeline, team_ids: Sequence[str]) -> None:
        self.pipeline = pipeline
        self.team_ids = list(team_ids)
        self.messages: list[Message] = []
        self.is_loading = False
        self.error: BaseException | None = None
        self._handle: AnswerHandle | None = None

    def add_message(self, message: Message) -> None:
        self.messages.append(message)

    def update_last_message(self, content_chunk: str) -> None:
        """Append a chunk to the last message if it is the assistant's."""
        if self.messages and self.messages[-1].role == MessageRole.ASSISTANT:
            self.messages[-1].content += content_chunk

    def ask(self, question: str) -> AnswerHandle:
        """Ask a question and stream the answer into the session.

        Raises:
            ValidationError: Blank question, or an answer is already streaming.
        """
        if not question or not question.strip():
            raise ValidationError("question must not be empty")
        if self.is_loading:
            raise ValidationError("An answer is already being generated")

        self.error = None
        self.add_message(Message(role=MessageRole.USER, content=question.strip()))
        self.add_message(Message(role=MessageRole.ASSISTANT))
        self.is_loading = True

        handle = self.pipeline.answer_stream(
            question,
            self.team_ids,
            on_delta=self.update_last_message,
            on_complete=self._on_complete,
            on_error=self._on_error,
        )
        handle.add_done_callback(lambda: self._settle(handle))
        self._handle = handle
        return handle

    def cancel(self) -> None:
        """Cancel the answer being streamed, if any."""
        if self._handle is not None:
            self._handle.cancel()

    def reset(self) -> None:
        """Cancel any streaming answer and clear the conversation."""
        self.cancel()
        self.messages = []
        self.is_loading = False
        self.error = None
        self._handle = None

    def _on_complete(self) -> None:
        self.is_loading = False

    def _on_error(self, error: BaseException) -> None:
        logger.warning("Chat answer failed: %s", error)
        self.error = error
        self.is_loading = False

    def _settle(self, handle: AnswerHandle) -> None:
        if handle is self._handle:
            self.is_loading = False
