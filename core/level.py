# ================================
# file: core/level.py
# ================================
from __future__ import annotations
"""Level schema: static, read-only description of one puzzle.

JSON keys follow the level editor format (camelCase):
- "id", "name", "gridSize"
- "robotStart": {"x","y"[,"rotation"]}
- "starPositions": [{"x","y"}]   (legacy single "starPosition" accepted)
- "obstacles": [{"x","y"}]
- "keys" / "doors": [{"id", "position": {"x","y"}}]
- "coloredCells": [{"position": {"x","y"}, "color"}]
- "maxCommands", "functionLimits": {"F0","F1","F2"}, "timeLimit" (optional)
"""
from typing import Optional, Dict, List, Sequence

from core.config import DEFAULT_GRID_SIZE, DEFAULT_ROBOT_ROTATION
from core.types import Position, RobotState, KeyItem, DoorItem, ColoredCell


class LevelConfig:
    """One puzzle. Never mutated by the engine."""

    def __init__(self, id: int, name: str, robot_start: Position,
                 star_positions: Sequence[Position],
                 obstacles: Sequence[Position] = (),
                 keys: Sequence[KeyItem] = (),
                 doors: Sequence[DoorItem] = (),
                 colored_cells: Sequence[ColoredCell] = (),
                 grid_size: int = DEFAULT_GRID_SIZE,
                 max_commands: Optional[int] = None,
                 function_limits: Optional[Dict[str, int]] = None,
                 time_limit: Optional[int] = None,
                 start_rotation: int = DEFAULT_ROBOT_ROTATION) -> None:
        self.id = int(id)
        self.name = name
        self.robot_start = Position.from_dict(robot_start)
        self.start_rotation = int(start_rotation)
        self.star_positions: List[Position] = [Position.from_dict(p) for p in star_positions]
        self.obstacles: List[Position] = [Position.from_dict(p) for p in obstacles]
        self.keys: List[KeyItem] = list(keys)
        self.doors: List[DoorItem] = list(doors)
        self.colored_cells: List[ColoredCell] = list(colored_cells)
        self.grid_size = int(grid_size)
        self.max_commands = max_commands
        self.function_limits: Dict[str, int] = dict(function_limits or {})
        self.time_limit = time_limit

    def initial_robot(self) -> RobotState:
        return RobotState(self.robot_start.x, self.robot_start.y, self.start_rotation)

    def distinct_goals(self) -> List[Position]:
        """Stars with duplicates removed, first occurrence order kept."""
        seen = set()
        goals = []
        for p in self.star_positions:
            if p not in seen:
                seen.add(p)
                goals.append(p)
        return goals

    # ----------------- JSON (de)serialisation -----------------
    @classmethod
    def from_dict(cls, data: Dict) -> "LevelConfig":
        """Build a level from its JSON dict. Raises ValueError if malformed."""
        try:
            start = data["robotStart"]
            if "starPositions" in data:
                stars = data["starPositions"]
            elif "starPosition" in data:
                stars = [data["starPosition"]]
            else:
                stars = []
            return cls(
                id=data["id"],
                name=data.get("name", f"Level {data['id']}"),
                robot_start=Position.from_dict(start),
                start_rotation=start.get("rotation", DEFAULT_ROBOT_ROTATION)
                if isinstance(start, dict) else DEFAULT_ROBOT_ROTATION,
                star_positions=[Position.from_dict(p) for p in stars],
                obstacles=[Position.from_dict(p) for p in data.get("obstacles") or []],
                keys=[KeyItem.from_dict(k) for k in data.get("keys") or []],
                doors=[DoorItem.from_dict(d) for d in data.get("doors") or []],
                colored_cells=[ColoredCell.from_dict(c) for c in data.get("coloredCells") or []],
                grid_size=data.get("gridSize", DEFAULT_GRID_SIZE),
                max_commands=data.get("maxCommands"),
                function_limits=data.get("functionLimits"),
                time_limit=data.get("timeLimit"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed level definition: {e!r}") from e

    def to_dict(self) -> Dict:
        start = self.robot_start.to_dict()
        start["rotation"] = self.start_rotation
        data = {
            "id": self.id,
            "name": self.name,
            "gridSize": self.grid_size,
            "robotStart": start,
            "starPositions": [p.to_dict() for p in self.star_positions],
            "obstacles": [p.to_dict() for p in self.obstacles],
            "keys": [k.to_dict() for k in self.keys],
            "doors": [d.to_dict() for d in self.doors],
            "coloredCells": [c.to_dict() for c in self.colored_cells],
        }
        if self.max_commands is not None:
            data["maxCommands"] = self.max_commands
        if self.function_limits:
            data["functionLimits"] = dict(self.function_limits)
        if self.time_limit is not None:
            data["timeLimit"] = self.time_limit
        return data

    def __repr__(self) -> str:
        return f"LevelConfig(id={self.id}, name={self.name!r}, grid_size={self.grid_size})"


# ================================
# Built-in levels
# ================================
_DEFAULT_LEVEL_DATA: List[Dict] = [
    {
        "id": 1,
        "name": "Level 1 - First Step",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 4, "y": 4}],
        "gridSize": 5,
    },
    {
        "id": 2,
        "name": "Level 2 - Intermediate",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 3, "y": 2}],
        "gridSize": 5,
    },
    {
        "id": 3,
        "name": "Level 3 - Advanced",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 2, "y": 4}],
        "gridSize": 5,
    },
    {
        "id": 4,
        "name": "Level 4 - Around the Wall",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 4, "y": 0}],
        "obstacles": [{"x": 2, "y": 0}, {"x": 2, "y": 1}],
        "gridSize": 5,
        "maxCommands": 12,
    },
    {
        "id": 5,
        "name": "Level 5 - Locked Door",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 4, "y": 0}],
        "obstacles": [{"x": 2, "y": 1}, {"x": 2, "y": 2}, {"x": 2, "y": 3}, {"x": 2, "y": 4}],
        "keys": [{"id": "blue", "position": {"x": 0, "y": 2}}],
        "doors": [{"id": "blue", "position": {"x": 2, "y": 0}}],
        "gridSize": 5,
    },
    {
        "id": 6,
        "name": "Level 6 - Reuse",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 5, "y": 0}, {"x": 5, "y": 5}],
        "gridSize": 6,
        "maxCommands": 3,
        "functionLimits": {"F0": 5, "F1": 0, "F2": 0},
    },
    {
        "id": 7,
        "name": "Level 7 - Follow the Paint",
        "robotStart": {"x": 0, "y": 0},
        "starPositions": [{"x": 2, "y": 4}],
        "coloredCells": [{"position": {"x": 2, "y": 0}, "color": "red"}],
        "gridSize": 5,
        "maxCommands": 1,
        "functionLimits": {"F0": 4},
        "timeLimit": 90,
    },
]

DEFAULT_LEVELS: List[LevelConfig] = [LevelConfig.from_dict(d) for d in _DEFAULT_LEVEL_DATA]


def get_level(level_id: int, levels: Optional[Sequence[LevelConfig]] = None) -> Optional[LevelConfig]:
    """Level with the given id, or None."""
    for level in (levels if levels is not None else DEFAULT_LEVELS):
        if level.id == level_id:
            return level
    return None


def get_total_levels(levels: Optional[Sequence[LevelConfig]] = None) -> int:
    return len(levels if levels is not None else DEFAULT_LEVELS)


def is_valid_star_position(star: Position, robot: Position) -> bool:
    """A star may not sit on the robot's start cell."""
    return not (star.x == robot.x and star.y == robot.y)
