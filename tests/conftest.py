from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import pytest

# Ensure `import src...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

# Items 10 and 20 are liked by users 1-2 and disliked by users 3-4; item 30 the opposite.
TASTE_RATINGS = [
    (1, 10, 5.0), (1, 20, 5.0), (1, 30, 1.0), (1, 40, 3.0),
    (2, 10, 5.0), (2, 20, 4.0), (2, 30, 1.0), (2, 50, 2.0),
    (3, 10, 1.0), (3, 20, 1.0), (3, 30, 5.0), (3, 40, 4.0),
    (4, 10, 1.0), (4, 20, 2.0), (4, 30, 5.0), (4, 50, 3.0),
]

TASTE_MOVIES = [
    (10, "Alien (1979)"),
    (20, "Aliens (1986)"),
    (30, "Sense and Sensibility (1995)"),
    (40, "Heat (1995)"),
    (60, "Never Rated (1990)"),
]


@pytest.fixture()
def taste_ratings() -> pd.DataFrame:
    return pd.DataFrame(TASTE_RATINGS, columns=["userId", "movieId", "rating"])


@pytest.fixture()
def taste_movies() -> pd.DataFrame:
    return pd.DataFrame(TASTE_MOVIES, columns=["movieId", "title"])


@pytest.fixture()
def raw_dir(tmp_path: Path) -> Path:
    """MovieLens-100k style u.item / u.data files holding the taste dataset."""
    d = tmp_path / "raw"
    d.mkdir()
    (d / "u.item").write_text(
        "\n".join(f"{mid}|{title}|01-Jan-1995" for mid, title in TASTE_MOVIES) + "\n",
        encoding="latin-1",
    )
    (d / "u.data").write_text(
        "\n".join(f"{u}\t{m}\t{int(r)}\t88125{n:04d}" for n, (u, m, r) in enumerate(TASTE_RATINGS)) + "\n"
    )
    return d
