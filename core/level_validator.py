# ================================
# file: core/level_validator.py
# ================================
from __future__ import annotations
"""Level validation module.
Checks bounds and overlaps of every level item, door/key pairing, budgets,
and whether each star can be reached from the robot start.
"""
from typing import Tuple, List

import numpy as np
from scipy import ndimage

from core.config import KEY_IDS, PAINT_COLORS, ROUTINE_NAMES
from core.grid import in_bounds, check_collision
from core.level import LevelConfig, is_valid_star_position

# 4-connected structuring element: the robot never moves diagonally
_FOUR_CONNECTED = np.array([[0, 1, 0],
                            [1, 1, 1],
                            [0, 1, 0]], dtype=bool)


class LevelValidator:
    """Validates a LevelConfig before it is handed to the engine."""

    def __init__(self, logger_func=None, log_file=None):
        self.logger_func = logger_func
        self.log_file = log_file

    def _log(self, message: str, module: str = "LEVEL_VALID") -> None:
        """Log message using the provided logger function"""
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, module)

    def validate(self, level: LevelConfig) -> Tuple[bool, List[str]]:
        """Validate one level.

        Returns
        -------
        Tuple[bool, List[str]]
            (validation_success, issues)
        """
        issues: List[str] = []

        if level.grid_size < 1:
            issues.append(f"gridSize must be >= 1 (got {level.grid_size})")
            return False, issues

        walls = set(level.obstacles)

        issues.extend(self._check_positions(level, walls))
        issues.extend(self._check_keys_and_doors(level, walls))
        issues.extend(self._check_paint(level, walls))
        issues.extend(self._check_budgets(level))
        if not issues:
            issues.extend(self._check_reachability(level))

        ok = not issues
        self._log(f"Level {level.id} ({level.name}): {'OK' if ok else f'{len(issues)} issue(s)'}")
        for issue in issues:
            self._log(f"  - {issue}")
        return ok, issues

    def validate_all(self, levels) -> Tuple[bool, dict]:
        """Validate a list of levels; duplicate ids are reported too."""
        report = {}
        seen = set()
        for level in levels:
            _, issues = self.validate(level)
            if level.id in seen:
                issues = issues + [f"duplicate level id {level.id}"]
            seen.add(level.id)
            if issues:
                report[level.id] = issues
        return not report, report

    # ----------------- individual checks -----------------
    def _check_positions(self, level: LevelConfig, walls: set) -> List[str]:
        issues = []
        n = level.grid_size
        start = level.robot_start
        if not in_bounds(start, n):
            issues.append(f"robotStart {tuple(start)} outside {n}x{n} grid")
        if check_collision(start, walls):
            issues.append(f"robotStart {tuple(start)} is on an obstacle")
        if level.start_rotation % 90 != 0:
            issues.append(f"robotStart rotation {level.start_rotation} is not a right angle")

        if not level.star_positions:
            issues.append("level has no stars")
        for star in level.star_positions:
            if not in_bounds(star, n):
                issues.append(f"star {tuple(star)} outside grid")
            elif check_collision(star, walls):
                issues.append(f"star {tuple(star)} is on an obstacle")
            if not is_valid_star_position(star, start):
                issues.append(f"star {tuple(star)} is on the robot start")

        for obs in level.obstacles:
            if not in_bounds(obs, n):
                issues.append(f"obstacle {tuple(obs)} outside grid")
        return issues

    def _check_keys_and_doors(self, level: LevelConfig, walls: set) -> List[str]:
        issues = []
        n = level.grid_size
        key_ids = {k.id for k in level.keys}
        for item, kind in [(k, "key") for k in level.keys] + [(d, "door") for d in level.doors]:
            if not in_bounds(item.position, n):
                issues.append(f"{kind} {item.id!r} at {tuple(item.position)} outside grid")
            elif check_collision(item.position, walls):
                issues.append(f"{kind} {item.id!r} at {tuple(item.position)} is on an obstacle")
            if item.id not in KEY_IDS:
                issues.append(f"{kind} id {item.id!r} is not a known key id")
        for door in level.doors:
            if door.id not in key_ids:
                issues.append(f"door {door.id!r} has no matching key")
            if door.position == level.robot_start:
                issues.append(f"door {door.id!r} is on the robot start")
        return issues

    def _check_paint(self, level: LevelConfig, walls: set) -> List[str]:
        issues = []
        palette = {c.lower() for c in PAINT_COLORS}
        seen = set()
        for cell in level.colored_cells:
            if not in_bounds(cell.position, level.grid_size):
                issues.append(f"coloured cell {tuple(cell.position)} outside grid")
            elif check_collision(cell.position, walls):
                issues.append(f"coloured cell {tuple(cell.position)} is on an obstacle")
            if cell.color not in palette:
                issues.append(f"coloured cell {tuple(cell.position)} has unknown colour {cell.color!r}")
            if cell.position in seen:
                issues.append(f"coloured cell {tuple(cell.position)} painted twice")
            seen.add(cell.position)
        return issues

    def _check_budgets(self, level: LevelConfig) -> List[str]:
        issues = []
        if level.max_commands is not None and level.max_commands < 1:
            issues.append(f"maxCommands must be >= 1 (got {level.max_commands})")
        for name, limit in level.function_limits.items():
            if name not in ROUTINE_NAMES:
                issues.append(f"functionLimits names unknown routine {name!r}")
            elif limit is not None and limit < 0:
                issues.append(f"functionLimits[{name}] must be >= 0 (got {limit})")
        if level.time_limit is not None and level.time_limit <= 0:
            issues.append(f"timeLimit must be > 0 (got {level.time_limit})")
        return issues

    def _check_reachability(self, level: LevelConfig) -> List[str]:
        """Stars must share a 4-connected free component with the start.
        Doors count as free: their keys can be picked up on the way."""
        free = self.free_mask(level)
        labels, _ = ndimage.label(free, structure=_FOUR_CONNECTED)
        start_label = labels[level.robot_start.y, level.robot_start.x]
        issues = []
        for star in level.star_positions:
            if labels[star.y, star.x] != start_label:
                issues.append(f"star {tuple(star)} is unreachable from the robot start")
        return issues

    @staticmethod
    def free_mask(level: LevelConfig) -> np.ndarray:
        """Boolean (H, W) grid, True where the robot may stand."""
        free = np.ones((level.grid_size, level.grid_size), dtype=bool)
        for obs in level.obstacles:
            if in_bounds(obs, level.grid_size):
                free[obs.y, obs.x] = False
        return free


def validate_level(level: LevelConfig, logger_func=None, log_file=None) -> Tuple[bool, List[str]]:
    return LevelValidator(logger_func, log_file).validate(level)
