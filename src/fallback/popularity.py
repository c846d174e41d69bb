"""Popularity ranking used when the MF model is unavailable."""

from __future__ import annotations

from typing import List, Optional, Tuple

import pandas as pd


def popular_movies(
    ratings: pd.DataFrame,
    *,
    exclude_movie_id: Optional[int] = None,
    k: int = 5,
) -> List[Tuple[int, int]]:
    """Rank movies by number of ratings received.

    Returns
    -------
    List[(movieId, rating_count)]
        Sorted desc by count. Ties keep first-appearance order in `ratings`.
    """
    if int(k) <= 0 or ratings.empty:
        return []

    counts = ratings.groupby("movieId", sort=False).size()
    if exclude_movie_id is not None:
        counts = counts.drop(index=int(exclude_movie_id), errors="ignore")

    counts = counts.sort_values(ascending=False, kind="mergesort").head(int(k))
    return [(int(mid), int(c)) for mid, c in counts.items()]
