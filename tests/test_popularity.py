from __future__ import annotations

import pandas as pd

from src.fallback.popularity import popular_movies


def _ratings() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "userId": [1, 1, 2, 2, 3, 3, 4],
            "movieId": [10, 20, 30, 20, 10, 30, 20],
            "rating": [5.0, 3.0, 4.0, 2.0, 1.0, 5.0, 4.0],
        }
    )


def test_ranks_by_rating_count_with_first_appearance_tie_break() -> None:
    assert popular_movies(_ratings(), k=5) == [(20, 3), (10, 2), (30, 2)]


def test_excludes_query_movie_and_caps() -> None:
    assert popular_movies(_ratings(), exclude_movie_id=20, k=5) == [(10, 2), (30, 2)]
    assert popular_movies(_ratings(), exclude_movie_id=999, k=1) == [(20, 3)]


def test_empty_inputs() -> None:
    assert popular_movies(_ratings(), k=0) == []
    assert popular_movies(pd.DataFrame({"userId": [], "movieId": [], "rating": []}), k=5) == []
