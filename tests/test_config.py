from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from rigperf import AnalysisConfig, analyze, load_config
from rigperf.logs import setup_logger
from rigs import glow_rig


def _write(tmp_path: Path, data) -> Path:
    p = tmp_path / "config.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def _drop_file_handlers() -> None:
    logger = logging.getLogger("rigperf")
    for h in list(logger.handlers):
        if isinstance(h, logging.FileHandler):
            logger.removeHandler(h)
            h.close()
    logger.setLevel(logging.NOTSET)


def test_defaults_when_keys_missing(tmp_path) -> None:
    cfg = load_config(_write(tmp_path, {}))
    assert cfg == AnalysisConfig()
    assert cfg.sample_rate == 30.0
    assert cfg.blend_sample_rate == 60.0
    assert cfg.log_path is None


def test_values_are_cast(tmp_path) -> None:
    cfg = load_config(_write(tmp_path, {"sample_rate": 15, "high_vertex_threshold": "250", "log_path": "logs/x.log"}))
    assert cfg.sample_rate == 15.0
    assert cfg.high_vertex_threshold == 250
    assert cfg.log_path == Path("logs/x.log")


def test_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


def test_malformed_content(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, {"sample_rate": "fast"}))
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, [1, 2]))
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(bad)


def test_setup_logger_adds_one_file_handler(tmp_path) -> None:
    path = tmp_path / "logs" / "rigperf.log"
    try:
        logger = setup_logger(path)
        setup_logger(path)
        assert path.parent.is_dir()
        assert sum(isinstance(h, logging.FileHandler) for h in logger.handlers) == 1
    finally:
        _drop_file_handlers()


def test_analyze_writes_log_file(tmp_path) -> None:
    path = tmp_path / "analysis.log"
    try:
        analyze(glow_rig(), config=AnalysisConfig(log_path=path))
        text = path.read_text(encoding="utf-8")
    finally:
        _drop_file_handlers()
    assert "Analyzing rig 'glow'" in text
    assert "Animation 'pulse': score=" in text
