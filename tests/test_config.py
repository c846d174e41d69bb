from __future__ import annotations

from pathlib import Path

import pytest

from src.config import load_config, parse_config
from src.mf.train import MFTrainConfig


def test_repo_config_matches_training_defaults() -> None:
    cfg = load_config(Path(__file__).resolve().parents[1] / "config.yaml")
    assert cfg.mf == MFTrainConfig()
    assert cfg.dataset.max_ratings == 30000
    assert cfg.paths.items_path.name == "u.item"
    assert cfg.paths.ratings_path.name == "u.data"


def test_missing_sections_fall_back_to_defaults(tmp_path: Path) -> None:
    cfg = parse_config({}, repo_root=tmp_path)
    assert cfg.mf == MFTrainConfig()
    assert cfg.reproducibility.seed == 42
    assert cfg.service.default_k == 5
    assert cfg.paths.raw_dir == (tmp_path / "data" / "raw").resolve()


def test_overrides_and_null_values(tmp_path: Path) -> None:
    cfg = parse_config(
        {
            "dataset": {"raw_dir": str(tmp_path / "ml"), "max_ratings": None},
            "mf": {"k": 8, "epochs": 3, "seed": None, "shuffle_each_epoch": False},
            "service": {"wait_for_training": True},
        },
        repo_root=tmp_path,
    )
    assert cfg.dataset.max_ratings is None
    assert cfg.paths.raw_dir == (tmp_path / "ml").resolve()
    assert (cfg.mf.k, cfg.mf.epochs, cfg.mf.shuffle_each_epoch) == (8, 3, False)
    assert cfg.reproducibility.seed is None
    assert cfg.service.wait_for_training is True


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        parse_config({"mf": {"learning_rate": -1}}, repo_root=tmp_path)
    with pytest.raises(ValueError):
        parse_config({"mf": [1, 2]}, repo_root=tmp_path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
