# ================================
# file: sim/grid_map.py
# ================================
from __future__ import annotations
from typing import Sequence, Dict, List, Optional
import numpy as np

from core.grid import in_bounds, check_win
from core.level import LevelConfig
from core.types import Position, KeyItem, DoorItem

FREE: int = 0
WALL: int = 1


class GridMap:
    """Static layout of one level built for O(1) lookups during a run.

    The grid uses values: 0=free, 1=wall. Doors are kept by cell; whether one
    is open depends on the run's collected keys. Indexed as grid[y, x].
    Keys are kept per cell; goals are de-duplicated, first occurrence order kept.
    """
    def __init__(self, grid_size: int,
                 obstacles: Sequence[Position] = (),
                 keys: Sequence[KeyItem] = (),
                 doors: Sequence[DoorItem] = (),
                 goals: Sequence[Position] = ()) -> None:
        self.grid_size = int(grid_size)
        self.grid: np.ndarray = np.full((self.grid_size, self.grid_size), FREE, dtype=np.uint8)
        self.doors: Dict[Position, str] = {}
        self.keys: Dict[Position, List[str]] = {}
        self.goals: List[Position] = []

        for obs in obstacles:
            obs = Position.from_dict(obs)
            if in_bounds(obs, self.grid_size):
                self.grid[obs.y, obs.x] = WALL
        for door in doors:
            self.doors[door.position] = door.id
        for key in keys:
            self.keys.setdefault(key.position, []).append(key.id)
        for goal in goals:
            goal = Position.from_dict(goal)
            if goal not in self.goals:
                self.goals.append(goal)

    @classmethod
    def from_level(cls, level: LevelConfig) -> "GridMap":
        return cls(level.grid_size, level.obstacles, level.keys, level.doors, level.star_positions)

    @property
    def goal_count(self) -> int:
        """Number of distinct goal cells."""
        return len(self.goals)

    def is_obstacle(self, pos: Position) -> bool:
        if not in_bounds(pos, self.grid_size):
            return False
        return bool(self.grid[pos.y, pos.x] == WALL)

    def door_at(self, pos: Position) -> Optional[str]:
        return self.doors.get(pos)

    def keys_at(self, pos: Position) -> List[str]:
        return self.keys.get(pos, [])

    def has_goal(self, pos: Position) -> bool:
        return any(check_win(pos, goal) for goal in self.goals)
