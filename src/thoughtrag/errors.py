# src/thoughtrag/errors.py
"""Exception taxonomy for thoughtrag.

- ValidationError: caller supplied empty or malformed input. Never retried.
- NotFoundError: the referenced thought does not exist. Never retried.
- UpstreamError: an embedding, description, completion or vector search
  call failed or timed out.
- StreamParseError: a malformed stream frame. Logged and skipped by the relay.
"""


class ThoughtRAGError(Exception):
    """Base class for all thoughtrag errors."""


class ValidationError(ThoughtRAGError):
    """Raised when caller input is empty or malformed."""


class RetryLimitExceededError(ValidationError):
    """Raised when a retry is refused because the attempt cap is reached.

    Attributes:
        thought_id: The thought that was not retried.
        attempts: Number of attempts already made.
    """

    def __init__(self, thought_id: str, attempts: int, max_attempts: int) -> None:
        super().__init__(
            f"Thought {thought_id} has used {attempts} of {max_attempts} embedding attempts"
        )
        self.thought_id = thought_id
        self.attempts = attempts
        self.max_attempts = max_attempts


class NotFoundError(ThoughtRAGError):
    """Raised when a thought does not exist."""

    def __init__(self, thought_id: str) -> None:
        super().__init__(f"Thought not found: {thought_id}")
        self.thought_id = thought_id


class UpstreamError(ThoughtRAGError):
    """Raised when an external model or search call fails or times out.

    Attributes:
        service: Name of the failing service ("embedding", "description",
                 "completion" or "vector_search").
    """

    def __init__(self, message: str, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class StreamParseError(ThoughtRAGError):
    """Raised for a stream frame that cannot be decoded.

    Attributes:
        frame: The raw frame text.
    """

    def __init__(self, message: str, frame: str) -> None:
        super().__init__(message)
        self.frame = frame


class StatusWriteError(ThoughtRAGError):
    """Raised when persisting the failed status itself fails.

    Attributes:
        original: The error that made the ingestion fail.
        write_error: The error raised while writing the failed status.
    """

    def __init__(self, original: BaseException, write_error: BaseException) -> None:
        super().__init__(
            f"Ingestion failed ({original}) and the failed status could not be "
            f"persisted ({write_error})"
        )
        self.original = original
        self.write_error = write_error
