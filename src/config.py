"""Typed view over `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .mf.train import MFTrainConfig
from .paths import ProjectPaths, get_repo_root
from .utils import ReproducibilityConfig


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    obj = yaml.safe_load(path.read_text())
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"Expected YAML mapping at {path}, got {type(obj)}")
    return obj


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    raw = cfg.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"config section {name!r} must be a mapping, got {type(raw)}")
    return raw


@dataclass(frozen=True)
class DatasetConfig:
    raw_dir: str = "data/raw"
    items_file: str = "u.item"
    ratings_file: str = "u.data"
    max_ratings: Optional[int] = 30000

    def paths(self, repo_root: Path) -> ProjectPaths:
        return ProjectPaths.from_repo_root(
            repo_root,
            raw_dir=self.raw_dir,
            items_file=self.items_file,
            ratings_file=self.ratings_file,
        )


@dataclass(frozen=True)
class ServiceConfig:
    default_k: int = 5
    # When true the service finishes training before accepting requests.
    wait_for_training: bool = False


@dataclass(frozen=True)
class AppConfig:
    repo_root: Path
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    mf: MFTrainConfig = field(default_factory=MFTrainConfig)
    reproducibility: ReproducibilityConfig = field(default_factory=ReproducibilityConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)

    @property
    def paths(self) -> ProjectPaths:
        return self.dataset.paths(self.repo_root)


def parse_config(raw: dict[str, Any], *, repo_root: Path) -> AppConfig:
    dataset_raw = _section(raw, "dataset")
    mf_raw = _section(raw, "mf")
    service_raw = _section(raw, "service")

    max_ratings_raw = dataset_raw.get("max_ratings", 30000)
    dataset = DatasetConfig(
        raw_dir=str(dataset_raw.get("raw_dir", "data/raw")),
        items_file=str(dataset_raw.get("items_file", "u.item")),
        ratings_file=str(dataset_raw.get("ratings_file", "u.data")),
        max_ratings=(None if max_ratings_raw is None else int(max_ratings_raw)),
    )

    defaults = MFTrainConfig()
    mf = MFTrainConfig(
        k=int(mf_raw.get("k", defaults.k)),
        epochs=int(mf_raw.get("epochs", defaults.epochs)),
        learning_rate=float(mf_raw.get("learning_rate", defaults.learning_rate)),
        regularization=float(mf_raw.get("regularization", defaults.regularization)),
        shuffle_each_epoch=bool(mf_raw.get("shuffle_each_epoch", defaults.shuffle_each_epoch)),
        yield_every=int(mf_raw.get("yield_every", defaults.yield_every)),
        init_scale=float(mf_raw.get("init_scale", defaults.init_scale)),
    )

    seed_raw = mf_raw.get("seed", 42)
    service = ServiceConfig(
        default_k=int(service_raw.get("default_k", 5)),
        wait_for_training=bool(service_raw.get("wait_for_training", False)),
    )
    return AppConfig(
        repo_root=repo_root,
        dataset=dataset,
        mf=mf,
        reproducibility=ReproducibilityConfig(seed=(None if seed_raw is None else int(seed_raw))),
        service=service,
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load `config.yaml` (repo root by default); relative data paths resolve against the repo root."""
    repo_root = get_repo_root()
    path = Path(config_path) if config_path is not None else repo_root / "config.yaml"
    if not path.is_absolute():
        path = (repo_root / path).resolve()
    return parse_config(_load_yaml(path), repo_root=repo_root)
