"""Pydantic schemas for the online recommendation API."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class RecommendRequest(BaseModel):
    """Request payload for the `/recommend` endpoint."""

    movieId: int = Field(..., description="MovieLens item id (from u.item / u.data).")
    k: Optional[int] = Field(None, ge=1, le=50, description="Number of similar movies to return (1..50); config default if omitted.")


class RecommendationItem(BaseModel):
    movieId: int
    title: str
    similarity: float


class RecommendResponse(BaseModel):
    """An empty `results` list means no recommendation is available for the movie."""

    movieId: int
    title: str
    mode: Literal["mf", "popularity"]
    k: int
    results: list[RecommendationItem]


class MovieItem(BaseModel):
    movieId: int
    title: str


class MoviesResponse(BaseModel):
    results: list[MovieItem]


class StatusResponse(BaseModel):
    state: Literal["pending", "training", "ready", "failed"]
    message: str
    epoch: int
    total_epochs: int
    rmse: Optional[float] = None
