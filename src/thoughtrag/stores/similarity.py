# src/thoughtrag/stores/similarity.py
"""Cosine similarity helpers for the local vector search."""

import numpy as np


def cosine_similarities(query: list[float], vectors: list[list[float]]) -> np.ndarray:
    """Cosine similarity of *query* against each row of *vectors*.

    Zero-length vectors score 0.0.

    Raises:
        ValueError: If a vector's dimension differs from the query's.
    """
    if not vectors:
        return np.zeros(0)

    q = np.asarray(query, dtype=np.float64)
    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] != q.shape[0]:
        raise ValueError(
            f"Dimension mismatch: query has {q.shape[0]} dimensions, "
            f"vectors have shape {matrix.shape}"
        )

    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(denom > 0, dots / denom, 0.0)
    return sims


def to_match_score(similarity: float) -> float:
    """Clamp a cosine similarity into the [0, 1] match score range."""
    return float(min(1.0, max(0.0, similarity)))
