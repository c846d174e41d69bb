from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .mf.train import IndexedRating


@dataclass(frozen=True)
class RawMovieLensData:
    movies: pd.DataFrame
    ratings: pd.DataFrame


REQUIRED_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "movies": ("movieId", "title"),
    "ratings": ("userId", "movieId", "rating"),
}


def load_movies(path: Path) -> pd.DataFrame:
    """Load a MovieLens-100k `u.item` file into (movieId, title).

    Lines are `id|title|release date|video date|IMDb URL|genre flags...`, latin-1
    encoded. Rows with a non-numeric id or an empty title are skipped.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Item file not found: {path}")

    df = pd.read_csv(
        path,
        sep="|",
        header=None,
        usecols=[0, 1],
        dtype=str,
        encoding="latin-1",
        quoting=csv.QUOTE_NONE,
        on_bad_lines="skip",
        skip_blank_lines=True,
    ).rename(columns={0: "movieId", 1: "title"})
    df["movieId"] = pd.to_numeric(df["movieId"], errors="coerce")
    df["title"] = df["title"].fillna("").str.strip()
    df = df[df["movieId"].notna() & (df["title"] != "")].copy()

    df["movieId"] = df["movieId"].astype("int64")
    df["title"] = df["title"].astype("string")
    return df.reset_index(drop=True)


def load_ratings(path: Path, *, max_ratings: Optional[int] = None) -> pd.DataFrame:
    """Load a MovieLens-100k `u.data` file into (userId, movieId, rating).

    Lines are tab separated `userId, itemId, rating, timestamp`. Malformed rows are
    skipped; afterwards at most `max_ratings` rows are kept, in file order.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ratings file not found: {path}")

    cols = ["userId", "movieId", "rating"]
    try:
        df = pd.read_csv(
            path,
            sep="\t",
            header=None,
            usecols=[0, 1, 2],
            dtype=str,
            on_bad_lines="skip",
            skip_blank_lines=True,
        ).rename(columns={0: "userId", 1: "movieId", 2: "rating"})
    except pd.errors.EmptyDataError:
        df = pd.DataFrame(columns=cols)

    for col in cols:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df = df[np.isfinite(df[cols].astype("float64")).all(axis=1)]

    if max_ratings is not None:
        df = df.head(int(max_ratings))

    df = df.astype({"userId": "int64", "movieId": "int64", "rating": "float64"})
    return df.reset_index(drop=True)


def load_raw_data(
    raw_dir: Path,
    *,
    items_file: str = "u.item",
    ratings_file: str = "u.data",
    max_ratings: Optional[int] = None,
) -> RawMovieLensData:
    """Load the MovieLens-100k item catalog and (capped) rating events."""
    raw_dir = Path(raw_dir)
    movies = load_movies(raw_dir / items_file)
    ratings = load_ratings(raw_dir / ratings_file, max_ratings=max_ratings)

    data = RawMovieLensData(movies=movies, ratings=ratings)
    validate_schema(data)
    return data


def validate_schema(data: RawMovieLensData) -> None:
    """Validate that all required columns exist and basic constraints hold."""
    for name, cols in REQUIRED_COLUMNS.items():
        df = getattr(data, name)
        missing = [c for c in cols if c not in df.columns]
        if missing:
            raise ValueError(f"{name} missing columns: {missing}")

    if data.movies["movieId"].duplicated().any():
        raise ValueError("item catalog has duplicate movieId values")


@dataclass(frozen=True)
class IndexAssignment:
    """Frozen bijections between raw ids and dense zero-based indices."""

    user_ids: Tuple[int, ...]
    item_ids: Tuple[int, ...]
    user_to_idx: Mapping[int, int]
    item_to_idx: Mapping[int, int]

    @property
    def n_users(self) -> int:
        return len(self.user_ids)

    @property
    def n_items(self) -> int:
        return len(self.item_ids)

    def has_item(self, movie_id: int) -> bool:
        return int(movie_id) in self.item_to_idx


def build_index_assignment(ratings: pd.DataFrame) -> IndexAssignment:
    """Assign contiguous indices to users and items in order of first appearance."""
    # factorize(sort=False) numbers values by first occurrence.
    _, user_uniques = pd.factorize(ratings["userId"].astype("int64"), sort=False)
    _, item_uniques = pd.factorize(ratings["movieId"].astype("int64"), sort=False)

    user_ids = tuple(int(u) for u in user_uniques.tolist())
    item_ids = tuple(int(m) for m in item_uniques.tolist())
    return IndexAssignment(
        user_ids=user_ids,
        item_ids=item_ids,
        user_to_idx=MappingProxyType({u: n for n, u in enumerate(user_ids)}),
        item_to_idx=MappingProxyType({m: n for n, m in enumerate(item_ids)}),
    )


def to_indexed_ratings(ratings: pd.DataFrame, assignment: IndexAssignment) -> list[IndexedRating]:
    """Translate raw rating rows to (userIndex, itemIndex, rating) triples."""
    out: list[IndexedRating] = []
    for uid, mid, r in ratings[["userId", "movieId", "rating"]].itertuples(index=False, name=None):
        out.append(
            IndexedRating(
                u=assignment.user_to_idx[int(uid)],
                i=assignment.item_to_idx[int(mid)],
                r=float(r),
            )
        )
    return out
