# ================================
# file: appio/logger.py
# ================================
from __future__ import annotations
from typing import Dict, Optional, Sequence
from datetime import datetime
import time
import numpy as np

from core.config import PAINT_COLORS
from core.types import Position, RobotState

# Paint map codes in saved traces: 0 = unpainted, i+1 = PAINT_COLORS[i]
PAINT_CODES: Dict[str, int] = {c.lower(): i + 1 for i, c in enumerate(PAINT_COLORS)}


def log_to_file(log_file, message, module="MAIN"):
    """Write message to log file with timestamp and module"""
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    log_entry = f"[{timestamp}] [{module}] {message}\n"
    log_file.write(log_entry)
    log_file.flush()  # Ensure immediate write
    print(log_entry.strip())  # Also print to console


def paint_grid(painted: Dict[Position, str], grid_size: int) -> np.ndarray:
    """(H, W) uint8 grid of paint codes, indexed [y, x]."""
    grid = np.zeros((grid_size, grid_size), dtype=np.uint8)
    for pos, color in painted.items():
        if 0 <= pos.x < grid_size and 0 <= pos.y < grid_size:
            grid[pos.y, pos.x] = PAINT_CODES.get(color, 0)
    return grid


class DataLogger:
    """Simple NPZ logger for run traces: poses, commands, events and paint maps."""
    def __init__(self) -> None:
        self.t0 = time.time()
        self.poses = []
        self.cmds = []
        self.events = []
        self.maps = []

    def _t(self) -> float:
        return time.time() - self.t0

    def log_pose(self, robot: RobotState) -> None:
        self.poses.append((self._t(), float(robot.x), float(robot.y), float(robot.rotation)))

    def log_command(self, index: int, command: str) -> None:
        self.cmds.append((self._t(), int(index), str(command)))

    def log_event(self, kind: str, pos: Optional[Position] = None, detail: str = "") -> None:
        x, y = (pos.x, pos.y) if pos is not None else (-1, -1)
        self.events.append((self._t(), str(kind), int(x), int(y), str(detail)))

    def log_map(self, painted: Dict[Position, str], grid_size: int) -> None:
        self.maps.append(paint_grid(painted, grid_size))

    def log_step(self, step) -> None:
        """Record one engine StepResult."""
        self.log_command(step.index, step.command)
        self.log_pose(step.robot)
        if step.blocked:
            self.log_event("blocked", step.robot.position, step.blocked_by or "")
        if step.skipped_index is not None:
            self.log_event("skip", step.robot.position, str(step.skipped_index))
        for key_id in step.collected_keys:
            self.log_event("key", step.robot.position, key_id)
        for goal in step.collected_goals:
            self.log_event("goal", goal)
        if step.painted is not None:
            pos, color = step.painted
            self.log_event("paint", pos, color)
        if step.won:
            self.log_event("won", step.robot.position)

    @staticmethod
    def _column(rows: Sequence[tuple], i: int, dtype) -> np.ndarray:
        return np.array([r[i] for r in rows], dtype=dtype)

    def save(self, path: str) -> None:
        poses = np.array(self.poses, dtype=np.float64).reshape(-1, 4)
        maps = np.stack(self.maps) if self.maps else np.zeros((0, 0, 0), dtype=np.uint8)
        np.savez_compressed(
            path,
            poses=poses,
            cmd_t=self._column(self.cmds, 0, np.float64),
            cmd_index=self._column(self.cmds, 1, np.int64),
            cmd_name=self._column(self.cmds, 2, str),
            event_t=self._column(self.events, 0, np.float64),
            event_kind=self._column(self.events, 1, str),
            event_cell=np.array([(e[2], e[3]) for e in self.events], dtype=np.int64).reshape(-1, 2),
            event_detail=self._column(self.events, 4, str),
            maps=maps,
        )
