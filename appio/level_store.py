# ================================
# file: appio/level_store.py
# ================================
from __future__ import annotations
"""Custom level persistence: the documented level schema as a JSON file.

Accepted file shapes: {"levels": [ ... ]} or a bare list of level objects.
"""
import json
from typing import List, Sequence

from core.level import LevelConfig


def load_levels(path: str, log_file=None) -> List[LevelConfig]:
    """Read levels from JSON. Raises ValueError on a malformed file."""
    if log_file:
        from appio.logger import log_to_file
        log_to_file(log_file, f"Loading level file: {path}", "LEVELS")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON ({e})") from e

    if isinstance(data, dict):
        data = data.get("levels")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of levels or {{\"levels\": [...]}}")

    levels = [LevelConfig.from_dict(d) for d in data]
    print(f"[LEVELS] Loaded {len(levels)} level(s) from {path}")
    return levels


def save_levels(path: str, levels: Sequence[LevelConfig]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"levels": [lvl.to_dict() for lvl in levels]}, f, indent=2, ensure_ascii=False)
