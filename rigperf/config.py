#config.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

CONFIG_FIELDS = [
    ("sample_rate", float, 30.0),
    ("blend_sample_rate", float, 60.0),

    # report statistics
    ("high_vertex_threshold", int, 500),
    ("poor_score_threshold", float, 55.0),

    ("log_path", Path, None),
]


@dataclass(frozen=True)
class AnalysisConfig:
    sample_rate: float = 30.0
    blend_sample_rate: float = 60.0
    high_vertex_threshold: int = 500
    poor_score_threshold: float = 55.0
    log_path: Optional[Path] = None


def load_config(config_path: Path) -> AnalysisConfig:
    raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"config root must be an object: {config_path}")

    values = {}
    for entry in CONFIG_FIELDS:
        key = entry[0]
        cast = entry[1]
        default = entry[2] if len(entry) > 2 else None

        if key in raw:
            value = raw[key]
        else:
            value = default() if callable(default) else default

        if value is not None and cast is not None:
            try:
                value = cast(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"bad value for {key!r}: {value!r}") from e

        values[key] = value

    return AnalysisConfig(**values)
