from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

import pandas as pd

from ..config import load_config
from ..utils import ReproducibilityConfig, setup_logging
from .recommender import MFMovieRecommender


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Movies similar to a given movie (MF latent-space cosine)")
    p.add_argument("--movie-id", type=int, required=True, help="MovieLens item id (from u.item)")
    p.add_argument("--k", type=int, default=None, help="How many similar movies to return")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: <repo>/config.yaml)")
    p.add_argument("--epochs", type=int, default=None, help="Override epochs")
    p.add_argument("--k-factors", type=int, default=None, help="Override latent dimensionality")
    p.add_argument("--lr", type=float, default=None, help="Override learning rate")
    p.add_argument("--max-ratings", type=int, default=None, help="Override the rating cap")
    p.add_argument("--seed", type=int, default=None, help="Override the random seed")
    p.add_argument("--log-level", type=str, default="INFO")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    config = load_config(args.config)
    mf_overrides = {
        name: value
        for name, value in (("epochs", args.epochs), ("k", args.k_factors), ("learning_rate", args.lr))
        if value is not None
    }
    config = dataclasses.replace(config, mf=dataclasses.replace(config.mf, **mf_overrides))
    if args.max_ratings is not None:
        config = dataclasses.replace(
            config, dataset=dataclasses.replace(config.dataset, max_ratings=int(args.max_ratings))
        )
    if args.seed is not None:
        config = dataclasses.replace(config, reproducibility=ReproducibilityConfig(seed=int(args.seed)))

    rec = MFMovieRecommender.from_config(config)
    if not rec.train_blocking():
        logger.warning("%s", rec.status.message)
        print("Showing popularity-based fallback (model unavailable).")

    k = int(args.k) if args.k is not None else int(config.service.default_k)
    recs = rec.similar_movies(int(args.movie_id), k=k)

    print(f"\n=== Movies similar to {rec.title_for(int(args.movie_id))!r} ({rec.mode}) ===")
    if recs:
        df = pd.DataFrame([r.__dict__ for r in recs])
        print(df.to_string(index=False))
    else:
        print("No recommendations available for this title (insufficient training data).")


if __name__ == "__main__":
    main()
