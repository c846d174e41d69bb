from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from src.mf.cli import main


def _write_config(tmp_path: Path, raw_dir: Path, **mf: object) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"dataset": {"raw_dir": str(raw_dir)}, "mf": {"k": 4, "epochs": 2, **mf}}))
    return path


def test_cli_prints_similar_movies(raw_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = _write_config(tmp_path, raw_dir)
    main(["--movie-id", "10", "--k", "2", "--config", str(config_path), "--epochs", "3", "--seed", "1"])

    out = capsys.readouterr().out
    assert "=== Movies similar to 'Alien (1979)' (mf) ===" in out
    assert "similarity" in out


def test_cli_falls_back_when_no_ratings_are_loaded(
    raw_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = _write_config(tmp_path, raw_dir)
    main(["--movie-id", "10", "--config", str(config_path), "--max-ratings", "0"])

    out = capsys.readouterr().out
    assert "popularity-based fallback" in out
    assert "No recommendations available" in out
