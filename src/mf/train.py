from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, NamedTuple, Optional, Sequence

import numpy as np

from .errors import EmptyDatasetError, InvalidIndexError
from .model import ParameterState, TrainedModel


logger = logging.getLogger(__name__)

Stage = Literal["start", "epoch", "done"]


class IndexedRating(NamedTuple):
    u: int
    i: int
    r: float


@dataclass(frozen=True)
class MFTrainConfig:
    k: int = 20
    epochs: int = 12
    learning_rate: float = 0.01
    regularization: float = 0.05
    shuffle_each_epoch: bool = True
    yield_every: int = 5000
    init_scale: float = 0.05

    def __post_init__(self) -> None:
        if int(self.k) < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if int(self.epochs) < 0:
            raise ValueError(f"epochs must be >= 0, got {self.epochs}")
        if not float(self.learning_rate) > 0.0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if float(self.regularization) < 0.0:
            raise ValueError(f"regularization must be >= 0, got {self.regularization}")
        if int(self.yield_every) < 1:
            raise ValueError(f"yield_every must be >= 1, got {self.yield_every}")
        if float(self.init_scale) < 0.0:
            raise ValueError(f"init_scale must be >= 0, got {self.init_scale}")


@dataclass(frozen=True)
class TrainingProgress:
    stage: Stage
    epoch: int
    total_epochs: int
    rmse: float | None = None

    @property
    def message(self) -> str:
        if self.stage == "start":
            return "Training Matrix Factorization model…"
        if self.stage == "done":
            return "Model ready."
        return f"Training epoch {self.epoch}/{self.total_epochs} complete, RMSE ≈ {float(self.rmse or 0.0):.4f}"


ProgressCallback = Callable[[TrainingProgress], None]
YieldFn = Callable[[], Awaitable[None]]


async def next_tick() -> None:
    """Give the event loop one scheduling turn."""
    await asyncio.sleep(0)


def sgd_step(state: ParameterState, u: int, i: int, r: float, *, lr: float, reg: float) -> float:
    """Apply one SGD update for rating (u, i, r) in place and return the residual.

    Both factor rows are updated from the same pre-update (p, q) pair.
    """
    p = state.user_factors[u].copy()
    q = state.item_factors[i].copy()

    e = float(r) - (state.global_mean + state.user_bias[u] + state.item_bias[i] + float(np.dot(p, q)))

    state.user_bias[u] += lr * (e - reg * state.user_bias[u])
    state.item_bias[i] += lr * (e - reg * state.item_bias[i])

    state.user_factors[u] = p + lr * (e * q - reg * p)
    state.item_factors[i] = q + lr * (e * p - reg * q)
    return e


def _as_arrays(ratings: Sequence[IndexedRating]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    users = np.fromiter((int(x[0]) for x in ratings), dtype=np.int64, count=len(ratings))
    items = np.fromiter((int(x[1]) for x in ratings), dtype=np.int64, count=len(ratings))
    values = np.fromiter((float(x[2]) for x in ratings), dtype=np.float64, count=len(ratings))
    return users, items, values


def validate_inputs(ratings: Sequence[IndexedRating], num_users: int, num_items: int) -> None:
    """Raise before anything is allocated if training cannot proceed."""
    if len(ratings) == 0 or int(num_users) == 0 or int(num_items) == 0:
        raise EmptyDatasetError(
            f"Empty dataset: ratings={len(ratings)} users={int(num_users)} items={int(num_items)}. "
            "Check u.item / u.data and the max_ratings cap."
        )

    for n, (u, i, _r) in enumerate(ratings):
        if not 0 <= int(u) < int(num_users):
            raise InvalidIndexError(f"rating #{n} has user index {u} outside [0, {int(num_users)})")
        if not 0 <= int(i) < int(num_items):
            raise InvalidIndexError(f"rating #{n} has item index {i} outside [0, {int(num_items)})")


async def train(
    ratings: Sequence[IndexedRating],
    num_users: int,
    num_items: int,
    cfg: MFTrainConfig | None = None,
    *,
    rng: np.random.Generator | None = None,
    progress: Optional[ProgressCallback] = None,
    yield_fn: Optional[YieldFn] = None,
) -> TrainedModel:
    """Train a biased MF model by per-sample SGD and return it frozen.

    Suspends through `yield_fn` every `cfg.yield_every` updates and at the end of
    every epoch, never in the middle of an update. Either returns a complete model
    or raises; the in-progress parameters are never exposed.
    """
    cfg = cfg or MFTrainConfig()
    validate_inputs(ratings, num_users, num_items)

    rng = rng if rng is not None else np.random.default_rng()
    yield_fn = yield_fn or next_tick

    def _report(p: TrainingProgress) -> None:
        if progress is not None:
            progress(p)

    users, items, values = _as_arrays(ratings)
    global_mean = float(np.mean(values))
    state = ParameterState.initialize(
        int(num_users),
        int(num_items),
        k=int(cfg.k),
        global_mean=global_mean,
        init_scale=float(cfg.init_scale),
        rng=rng,
    )

    lr = float(cfg.learning_rate)
    reg = float(cfg.regularization)
    total_epochs = int(cfg.epochs)
    yield_every = int(cfg.yield_every)

    logger.info(
        "MF training: users=%d items=%d ratings=%d k=%d epochs=%d lr=%g reg=%g mean_rating=%.4f",
        int(num_users),
        int(num_items),
        len(values),
        int(cfg.k),
        total_epochs,
        lr,
        reg,
        global_mean,
    )
    _report(TrainingProgress(stage="start", epoch=0, total_epochs=total_epochs))

    order = np.arange(len(values))
    history: list[float] = []
    for epoch in range(1, total_epochs + 1):
        if cfg.shuffle_each_epoch:
            rng.shuffle(order)

        sq_err = 0.0
        since_yield = 0
        for n in order:
            e = sgd_step(state, int(users[n]), int(items[n]), float(values[n]), lr=lr, reg=reg)
            sq_err += e * e

            since_yield += 1
            if since_yield >= yield_every:
                since_yield = 0
                await yield_fn()

        rmse = math.sqrt(sq_err / max(1, len(order)))
        history.append(rmse)
        logger.info("MF epoch=%d/%d train_rmse=%.4f", epoch, total_epochs, rmse)
        _report(TrainingProgress(stage="epoch", epoch=epoch, total_epochs=total_epochs, rmse=rmse))
        await yield_fn()

    model = state.freeze(tuple(history))
    _report(
        TrainingProgress(
            stage="done",
            epoch=total_epochs,
            total_epochs=total_epochs,
            rmse=(history[-1] if history else None),
        )
    )
    return model


def train_blocking(
    ratings: Sequence[IndexedRating],
    num_users: int,
    num_items: int,
    cfg: MFTrainConfig | None = None,
    *,
    rng: np.random.Generator | None = None,
    progress: Optional[ProgressCallback] = None,
    yield_fn: Optional[YieldFn] = None,
) -> TrainedModel:
    """Run `train` to completion on a fresh event loop (CLI, tests)."""
    return asyncio.run(
        train(ratings, num_users, num_items, cfg, rng=rng, progress=progress, yield_fn=yield_fn)
    )
