"""FastAPI service entrypoint for the MF similar-movies recommender."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException

from ..config import load_config
from ..mf.recommender import MFMovieRecommender
from ..paths import get_repo_root
from ..utils import setup_logging
from .schemas import MoviesResponse, RecommendRequest, RecommendResponse, StatusResponse

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    p = Path(str(raw))
    return p if p.is_absolute() else (get_repo_root() / p).resolve()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    config_path = _get_env_path("CONFIG_PATH", get_repo_root() / "config.yaml")
    config = load_config(config_path)
    logger.info("Starting service with config=%s raw_dir=%s", config_path, config.paths.raw_dir)

    rec = MFMovieRecommender.from_config(config)
    app.state.recommender = rec
    app.state.default_k = int(config.service.default_k)

    # Training yields to the event loop, so requests are served (by the
    # popularity fallback) while it runs.
    task = asyncio.create_task(rec.train())
    app.state.training_task = task
    if config.service.wait_for_training:
        await task
    try:
        yield
    finally:
        if not task.done():
            logger.info("Shutting down: cancelling unfinished training")
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


app = FastAPI(title="MovieLens MF Similar-Movies Service", lifespan=lifespan)


def _recommender(app_: FastAPI) -> MFMovieRecommender:
    rec = getattr(app_.state, "recommender", None)
    if rec is None:
        raise HTTPException(status_code=503, detail="Recommender not initialized")
    return rec


@app.get("/status", response_model=StatusResponse)
def status() -> dict:
    """Training progress ("Training epoch 5/12 ...", "Model ready.")."""
    st = _recommender(app).status
    return {
        "state": st.state,
        "message": st.message,
        "epoch": int(st.epoch),
        "total_epochs": int(st.total_epochs),
        "rmse": st.rmse,
    }


@app.get("/movies", response_model=MoviesResponse)
def movies() -> dict:
    """Movies that can be queried, sorted by title."""
    return {"results": _recommender(app).usable_movies()}


@app.post("/recommend", response_model=RecommendResponse)
def recommend(req: RecommendRequest) -> dict:
    """Movies similar to `movieId` (MF latent-space cosine, or popularity while the model is unavailable)."""
    rec = _recommender(app)
    k = int(req.k) if req.k is not None else int(getattr(app.state, "default_k", 5))
    recs = rec.similar_movies(int(req.movieId), k=k)
    return {
        "movieId": int(req.movieId),
        "title": rec.title_for(int(req.movieId)),
        "mode": rec.mode,
        "k": k,
        "results": [r.__dict__ for r in recs],
    }
