# ================================
# file: core/grid.py
# ================================
from __future__ import annotations
"""Grid & robot model: rotation/facing arithmetic, one-cell motion with edge
clamping, and exact-match collision/win tests. Pure functions, no state.
"""
from enum import Enum
from typing import Iterable

from core.config import CMD_LEFT, CMD_RIGHT, ROTATION_STEP_DEG
from core.types import Position, RobotState


class Direction(Enum):
    NORTH = 0
    EAST = 90
    SOUTH = 180
    WEST = 270


# (dx, dy) per facing; y grows downwards so North is y-1
_STEP = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}


def normalize_rotation(rotation: int) -> int:
    """Reduce any degree value into [0, 360)."""
    return int(rotation) % 360


def facing(rotation: int) -> Direction:
    """Cardinal facing for a rotation. Only right angles are ever produced by
    LEFT/RIGHT; anything else snaps down to the previous cardinal."""
    angle = normalize_rotation(rotation)
    return Direction(angle - angle % ROTATION_STEP_DEG)


def rotate(robot: RobotState, command: str) -> RobotState:
    """Return a new pose turned by LEFT/RIGHT. The raw angle is kept
    (e.g. -90) and normalised only when a facing is needed."""
    turned = robot.copy()
    if command == CMD_LEFT:
        turned.rotation = robot.rotation - ROTATION_STEP_DEG
    elif command == CMD_RIGHT:
        turned.rotation = robot.rotation + ROTATION_STEP_DEG
    return turned


def calculate_next_position(current: Position, rotation: int, grid_size: int) -> Position:
    """Cell one step ahead, clamped to [0, grid_size-1] on both axes.
    Moving off the grid yields the same edge coordinate (no wrap, no error)."""
    dx, dy = _STEP[facing(rotation)]
    nx = max(0, min(grid_size - 1, current.x + dx))
    ny = max(0, min(grid_size - 1, current.y + dy))
    return Position(nx, ny)


def check_collision(position: Position, obstacles: Iterable[Position]) -> bool:
    return any(obs.x == position.x and obs.y == position.y for obs in obstacles)


def check_win(robot_position: Position, target_position: Position) -> bool:
    return robot_position.x == target_position.x and robot_position.y == target_position.y


def in_bounds(position: Position, grid_size: int) -> bool:
    return 0 <= position.x < grid_size and 0 <= position.y < grid_size
