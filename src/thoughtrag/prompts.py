"""Grounding prompt construction for question answering."""

from collections.abc import Sequence

from thoughtrag.models import RetrievedMatch

CONTEXT_DELIMITER = "\n---\n"

GROUNDING_PROMPT = """You are a helpful assistant for a team knowledge base.
Answer the user's question based on the following context provided from their team's knowledge base.
Your answer should be concise and directly based on the provided context.
If the context does not contain the answer, say explicitly that you couldn't find an answer in the knowledge base, then answer from your general knowledge.

Context:
{context}

Question:
{question}"""


def format_match(match: RetrievedMatch) -> str:
    """Render one match as a context block: its title, then its best text."""
    parts = [part.strip() for part in (match.title, match.context_text) if part and part.strip()]
    return "\n".join(parts)


def build_context(matches: Sequence[RetrievedMatch]) -> str:
    """Join the context blocks of *matches*, dropping empty ones."""
    blocks = [block for block in (format_match(m) for m in matches) if block]
    return CONTEXT_DELIMITER.join(blocks)


def build_grounding_prompt(
    question: str,
    matches: Sequence[RetrievedMatch],
    template: str | None = None,
) -> str:
    """Build the completion prompt for *question* grounded in *matches*.

    With no matches the context block is empty and the template's fallback
    instruction decides what the model says.
    """
    return (template or GROUNDING_PROMPT).format(
        context=build_context(matches),
        question=question.strip(),
    )
