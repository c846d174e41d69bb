"""Item-item cosine similarity over learned MF item factors."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Unit-normalize each row; zero-norm rows stay all-zero."""
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim != 2:
        raise ValueError(f"expected a 2-D matrix, got shape {m.shape}")
    norms = np.linalg.norm(m, axis=1, keepdims=True)
    out = np.zeros_like(m)
    np.divide(m, norms, out=out, where=norms > 0.0)
    return out


def normalize_vector(v: np.ndarray) -> np.ndarray:
    return normalize_rows(np.asarray(v, dtype=np.float64).reshape(1, -1)).reshape(-1)


@dataclass(frozen=True)
class SimilarItem:
    item_index: int
    similarity: float


@dataclass(frozen=True)
class NormalizedIndex:
    """Read-only table of unit-length item vectors."""

    vectors: np.ndarray

    @classmethod
    def build(cls, item_factors: np.ndarray) -> "NormalizedIndex":
        vectors = normalize_rows(item_factors)
        vectors.setflags(write=False)
        return cls(vectors=vectors)

    @property
    def n_items(self) -> int:
        return int(self.vectors.shape[0])

    def is_valid(self, item_index: object) -> bool:
        if isinstance(item_index, bool) or not isinstance(item_index, (int, np.integer)):
            return False
        return 0 <= int(item_index) < self.n_items

    def similarity(self, i: int, j: int) -> float:
        if not (self.is_valid(i) and self.is_valid(j)):
            raise IndexError(f"item index out of range: {i}, {j}")
        # Rows are unit length, so the dot product is the cosine.
        return float(np.dot(self.vectors[int(i)], self.vectors[int(j)]))

    def top_k_similar(self, item_index: int, k: int = 5) -> list[SimilarItem]:
        """Return up to k items most similar to `item_index`, best first.

        Never raises for an unknown index; returns [] instead.
        """
        if int(k) <= 0 or not self.is_valid(item_index):
            return []

        idx = int(item_index)
        sims = self.vectors @ self.vectors[idx]

        candidates = np.delete(np.arange(self.n_items), idx)
        cand_sims = sims[candidates]
        # Stable sort keeps ties in index order.
        order = np.argsort(-cand_sims, kind="stable")[: int(k)]

        return [SimilarItem(item_index=int(candidates[o]), similarity=float(cand_sims[o])) for o in order]
