# src/thoughtrag/stores/sqlite_thought.py
"""SQLite thought store with local cosine-similarity search."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from thoughtrag.models import (
    EmbeddingStatus,
    RetrievedMatch,
    Thought,
    ThoughtKind,
    ThoughtStatus,
)
from thoughtrag.models.thought import utc_now
from thoughtrag.stores.base import ThoughtStore, VectorStore
from thoughtrag.stores.similarity import cosine_similarities, to_match_score

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, kind, user_id, team_id, title, description, image_url, status, "
    "parent_question_id, ai_description, embedding, embedding_status, "
    "embedding_attempts, embedding_error, last_attempt_at, created_at, updated_at"
)


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteThoughtStore(ThoughtStore, VectorStore):
    """SQLite-based thought store.

    Embeddings live in the same row as the thought, so the completed write is a
    single UPDATE and search never sees a half-written record. Search loads
    the completed embeddings of the requested teams and ranks them by cosine
    similarity.

    Search is a linear scan: every query decodes and scores all completed
    embeddings of the requested teams, so its cost grows with the number of
    thoughts those teams hold. There is no approximate index.
    """

    def __init__(self, db_path: str) -> None:
        """Initialize the SQLite store."""
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS thoughts (
                    id TEXT PRIMARY KEY,
                    kind TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    team_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    image_url TEXT,
                    status TEXT NOT NULL,
                    parent_question_id TEXT,
                    ai_description TEXT,
                    embedding TEXT,
                    embedding_status TEXT NOT NULL,
                    embedding_attempts INTEGER NOT NULL DEFAULT 0,
                    embedding_error TEXT,
                    last_attempt_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_team ON thoughts(team_id)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_embedding_status ON thoughts(embedding_status)"
            )
            conn.commit()

    @staticmethod
    def _row_to_thought(row: tuple) -> Thought:
        return Thought(
            id=row[0],
            kind=ThoughtKind(row[1]),
            user_id=row[2],
            team_id=row[3],
            title=row[4],
            description=row[5],
            image_url=row[6],
            status=ThoughtStatus(row[7]),
            parent_question_id=row[8],
            ai_description=row[9],
            embedding=json.loads(row[10]) if row[10] is not None else None,
            embedding_status=EmbeddingStatus(row[11]),
            embedding_attempts=row[12],
            embedding_error=row[13],
            last_attempt_at=_parse_ts(row[14]),
            created_at=_parse_ts(row[15]),
            updated_at=_parse_ts(row[16]),
        )

    def put(self, thought: Thought) -> None:
        """Store a thought, overwriting if exists."""
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO thoughts ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    thought.id,
                    thought.kind.value,
                    thought.user_id,
                    thought.team_id,
                    thought.title,
                    thought.description,
                    thought.image_url,
                    thought.status.value,
                    thought.parent_question_id,
                    thought.ai_description,
                    json.dumps(thought.embedding) if thought.embedding is not None else None,
                    thought.embedding_status.value,
                    thought.embedding_attempts,
                    thought.embedding_error,
                    _ts(thought.last_attempt_at),
                    _ts(thought.created_at),
                    _ts(thought.updated_at),
                ),
            )
            conn.commit()

    def get(self, thought_id: str) -> Thought | None:
        """Retrieve a thought by ID."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM thoughts WHERE id = ?", (thought_id,)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_thought(row)

    def delete(self, thought_id: str) -> None:
        """Delete a thought by ID."""
        with self._connect() as conn:
            conn.execute("DELETE FROM thoughts WHERE id = ?", (thought_id,))
            conn.commit()

    def list_thoughts(
        self,
        team_ids: list[str] | None = None,
        embedding_status: EmbeddingStatus | None = None,
    ) -> list[Thought]:
        """List thoughts, newest first."""
        if team_ids is not None and not team_ids:
            return []
        clauses = []
        params: list[str] = []
        if team_ids is not None:
            clauses.append(f"team_id IN ({','.join('?' * len(team_ids))})")
            params.extend(team_ids)
        if embedding_status is not None:
            clauses.append("embedding_status = ?")
            params.append(embedding_status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM thoughts {where} ORDER BY created_at DESC, id",
                params,
            )
            return [self._row_to_thought(row) for row in cursor.fetchall()]

    def count_by_status(self, team_ids: list[str] | None = None) -> dict[EmbeddingStatus, int]:
        """Count thoughts per embedding status."""
        counts = {status: 0 for status in EmbeddingStatus}
        if team_ids is not None and not team_ids:
            return counts
        sql = "SELECT embedding_status, COUNT(id) FROM thoughts"
        params: list[str] = []
        if team_ids is not None:
            sql += f" WHERE team_id IN ({','.join('?' * len(team_ids))})"
            params.extend(team_ids)
        sql += " GROUP BY embedding_status"
        with self._connect() as conn:
            for status, count in conn.execute(sql, params).fetchall():
                counts[EmbeddingStatus(status)] = count
        return counts

    def count_thoughts(self) -> int:
        """Count the total number of thoughts in the store."""
        with self._connect() as conn:
            count = conn.execute("SELECT COUNT(id) FROM thoughts").fetchone()
            return count[0] if count else 0

    def _update(self, sql: str, params: tuple) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.rowcount > 0

    def mark_processing(self, thought_id: str) -> bool:
        now = _ts(utc_now())
        return self._update(
            """
            UPDATE thoughts
            SET embedding_status = ?, embedding = NULL, ai_description = NULL,
                embedding_attempts = embedding_attempts + 1, last_attempt_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (EmbeddingStatus.PROCESSING.value, now, now, thought_id),
        )

    def mark_completed(self, thought_id: str, ai_description: str, embedding: list[float]) -> bool:
        return self._update(
            """
            UPDATE thoughts
            SET ai_description = ?, embedding = ?, embedding_status = ?,
                embedding_error = NULL, updated_at = ?
            WHERE id = ?
            """,
            (
                ai_description,
                json.dumps(embedding),
                EmbeddingStatus.COMPLETED.value,
                _ts(utc_now()),
                thought_id,
            ),
        )

    def mark_failed(self, thought_id: str, error: str | None = None) -> bool:
        return self._update(
            """
            UPDATE thoughts
            SET embedding_status = ?, embedding = NULL, ai_description = NULL,
                embedding_error = ?, updated_at = ?
            WHERE id = ?
            """,
            (EmbeddingStatus.FAILED.value, error, _ts(utc_now()), thought_id),
        )

    def search(
        self,
        query_embedding: list[float],
        team_ids: list[str],
        match_threshold: float,
        match_count: int,
    ) -> list[RetrievedMatch]:
        """Search completed thoughts of *team_ids* by cosine similarity."""
        if not team_ids or match_count <= 0:
            return []

        placeholders = ",".join("?" * len(team_ids))
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT id, team_id, kind, title, description, ai_description,
                       image_url, embedding, created_at
                FROM thoughts
                WHERE embedding_status = ? AND embedding IS NOT NULL
                  AND team_id IN ({placeholders})
                """,
                (EmbeddingStatus.COMPLETED.value, *team_ids),
            ).fetchall()

        if not rows:
            return []

        dim = len(query_embedding)
        candidates = []
        vectors = []
        for row in rows:
            vector = json.loads(row[7])
            if len(vector) != dim:
                logger.warning(
                    "Skipping thought %s: embedding has %d dimensions, query has %d",
                    row[0],
                    len(vector),
                    dim,
                )
                continue
            candidates.append(row)
            vectors.append(vector)

        sims = cosine_similarities(query_embedding, vectors)

        scored = [
            (to_match_score(sim), row)
            for sim, row in zip(sims.tolist(), candidates, strict=True)
            if sim >= match_threshold
        ]
        # Ties: oldest first, then id, so results are stable across calls
        scored.sort(key=lambda item: (-item[0], item[1][8], item[1][0]))

        return [
            RetrievedMatch(
                id=row[0],
                team_id=row[1],
                kind=ThoughtKind(row[2]),
                title=row[3],
                description=row[4],
                ai_description=row[5],
                image_url=row[6],
                similarity=score,
            )
            for score, row in scored[:match_count]
        ]
