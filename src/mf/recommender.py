from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Literal, Optional

import numpy as np
import pandas as pd

from ..config import AppConfig
from ..data import IndexAssignment, build_index_assignment, load_raw_data, to_indexed_ratings
from ..fallback.popularity import popular_movies
from ..utils import make_rng
from .errors import TrainingError
from .index import NormalizedIndex
from .model import TrainedModel
from .train import MFTrainConfig, TrainingProgress, YieldFn, train


logger = logging.getLogger(__name__)

State = Literal["pending", "training", "ready", "failed"]
Mode = Literal["mf", "popularity"]


@dataclass(frozen=True)
class TrainingStatus:
    state: State
    message: str
    epoch: int = 0
    total_epochs: int = 0
    rmse: float | None = None


@dataclass(frozen=True)
class RecommendedMovie:
    movieId: int
    title: str
    similarity: float


class MFMovieRecommender:
    """Similar-movie recommender backed by an SGD-trained MF model.

    Until training succeeds (and for good if it fails) queries are answered by a
    popularity ranking instead.
    """

    def __init__(
        self,
        movies: pd.DataFrame,
        ratings: pd.DataFrame,
        *,
        cfg: MFTrainConfig | None = None,
        rng: np.random.Generator | None = None,
        yield_fn: Optional[YieldFn] = None,
    ) -> None:
        self.movies = movies[["movieId", "title"]].copy()
        self.ratings = ratings[["userId", "movieId", "rating"]].copy()
        self.cfg = cfg or MFTrainConfig()
        self.rng = rng
        self.yield_fn = yield_fn

        self._titles: dict[int, str] = {
            int(mid): str(title) for mid, title in zip(self.movies["movieId"], self.movies["title"])
        }
        self.assignment: IndexAssignment = build_index_assignment(self.ratings)

        self.model: TrainedModel | None = None
        self.index: NormalizedIndex | None = None
        self._status = TrainingStatus(state="pending", message="Model not trained yet.")

    @classmethod
    def from_config(cls, config: AppConfig, *, yield_fn: Optional[YieldFn] = None) -> "MFMovieRecommender":
        paths = config.paths
        data = load_raw_data(
            paths.raw_dir,
            items_file=config.dataset.items_file,
            ratings_file=config.dataset.ratings_file,
            max_ratings=config.dataset.max_ratings,
        )
        logger.info(
            "Loaded movies=%d ratings=%d from %s (max_ratings=%s)",
            len(data.movies),
            len(data.ratings),
            paths.raw_dir,
            config.dataset.max_ratings,
        )
        return cls(
            data.movies,
            data.ratings,
            cfg=config.mf,
            rng=make_rng(config.reproducibility),
            yield_fn=yield_fn,
        )

    @property
    def status(self) -> TrainingStatus:
        return self._status

    @property
    def mode(self) -> Mode:
        return "mf" if self._status.state == "ready" else "popularity"

    def _on_progress(self, p: TrainingProgress) -> None:
        self._status = TrainingStatus(
            state="training",
            message=p.message,
            epoch=int(p.epoch),
            total_epochs=int(p.total_epochs),
            rmse=p.rmse,
        )

    async def train(self) -> bool:
        """Train the model and build the similarity index. Returns False on failure."""
        self._status = TrainingStatus(
            state="training",
            message="Training Matrix Factorization model…",
            total_epochs=int(self.cfg.epochs),
        )
        triplets = to_indexed_ratings(self.ratings, self.assignment)
        try:
            model = await train(
                triplets,
                self.assignment.n_users,
                self.assignment.n_items,
                self.cfg,
                rng=self.rng,
                progress=self._on_progress,
                yield_fn=self.yield_fn,
            )
        except TrainingError as exc:
            logger.error("MF training failed: %s", exc)
            self._status = TrainingStatus(state="failed", message=f"Training failed: {exc}")
            return False

        self.model = model
        self.index = NormalizedIndex.build(model.item_factors)
        # Only report ready once the index exists.
        self._status = replace(self._status, state="ready", message="Model ready. Select a movie to get recommendations.")
        logger.info("MF model ready: items=%d k=%d", model.n_items, model.k)
        return True

    def train_blocking(self) -> bool:
        return asyncio.run(self.train())

    def title_for(self, movie_id: int) -> str:
        return self._titles.get(int(movie_id), f"Item {int(movie_id)}")

    def has_movie(self, movie_id: int) -> bool:
        return self.assignment.has_item(int(movie_id))

    def usable_movies(self) -> list[dict[str, Any]]:
        """Movies that have an item index, sorted by title."""
        usable = [
            {"movieId": int(mid), "title": title}
            for mid, title in self._titles.items()
            if self.assignment.has_item(mid)
        ]
        usable.sort(key=lambda m: m["title"])
        return usable

    def similar_movies(self, movie_id: int, *, k: int = 5) -> list[RecommendedMovie]:
        """Top-k similar movies; an empty list means no recommendation is available."""
        if self.mode == "mf" and self.index is not None:
            idx = self.assignment.item_to_idx.get(int(movie_id))
            if idx is None:
                return []
            return [
                RecommendedMovie(
                    movieId=self.assignment.item_ids[s.item_index],
                    title=self.title_for(self.assignment.item_ids[s.item_index]),
                    similarity=s.similarity,
                )
                for s in self.index.top_k_similar(idx, int(k))
            ]

        # Popularity carries no similarity score.
        return [
            RecommendedMovie(movieId=mid, title=self.title_for(mid), similarity=0.0)
            for mid, _count in popular_movies(self.ratings, exclude_movie_id=int(movie_id), k=int(k))
        ]
