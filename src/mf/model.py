from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@dataclass
class ParameterState:
    """Mutable MF parameters, owned by a single training run.

    r_hat(u, i) = global_mean + user_bias[u] + item_bias[i] + dot(user_factors[u], item_factors[i])
    """

    global_mean: float
    user_bias: np.ndarray
    item_bias: np.ndarray
    user_factors: np.ndarray
    item_factors: np.ndarray

    @classmethod
    def initialize(
        cls,
        n_users: int,
        n_items: int,
        *,
        k: int,
        global_mean: float,
        init_scale: float,
        rng: np.random.Generator,
    ) -> "ParameterState":
        # Small symmetric init breaks symmetry between factors without early overflow.
        return cls(
            global_mean=float(global_mean),
            user_bias=np.zeros(int(n_users), dtype=np.float64),
            item_bias=np.zeros(int(n_items), dtype=np.float64),
            user_factors=rng.uniform(-init_scale, init_scale, size=(int(n_users), int(k))),
            item_factors=rng.uniform(-init_scale, init_scale, size=(int(n_items), int(k))),
        )

    def freeze(self, rmse_history: tuple[float, ...] = ()) -> "TrainedModel":
        """Hand the parameters over as a read-only `TrainedModel`."""
        return TrainedModel(
            global_mean=float(self.global_mean),
            user_bias=_readonly(self.user_bias),
            item_bias=_readonly(self.item_bias),
            user_factors=_readonly(self.user_factors),
            item_factors=_readonly(self.item_factors),
            rmse_history=tuple(float(x) for x in rmse_history),
        )


@dataclass(frozen=True)
class TrainedModel:
    """Frozen output of a completed training run."""

    global_mean: float
    user_bias: np.ndarray
    item_bias: np.ndarray
    user_factors: np.ndarray
    item_factors: np.ndarray
    rmse_history: tuple[float, ...] = ()

    @property
    def n_users(self) -> int:
        return int(self.user_factors.shape[0])

    @property
    def n_items(self) -> int:
        return int(self.item_factors.shape[0])

    @property
    def k(self) -> int:
        return int(self.item_factors.shape[1])

    def predict(self, u: int, i: int) -> float:
        return float(
            self.global_mean
            + self.user_bias[u]
            + self.item_bias[i]
            + np.dot(self.user_factors[u], self.item_factors[i])
        )
