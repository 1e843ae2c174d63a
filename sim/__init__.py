# ================================
# file: sim/__init__.py
# ================================
"""Simulation: routine expansion, the execution engine and the game session.
NOTE: Everything here is headless. Hosts render from StepResult/RobotState
updates and pace ticks themselves.
"""
from .grid_map import GridMap
from .expander import CommandExpander, ExpandResult, expand_commands
from .engine import (
    ExecutionEngine, RunCallbacks, RunContext, RunResult, RunState, StepResult, run_commands,
)
from .session import GameSession, LevelTimer


__all__ = [
    "GridMap",
    "CommandExpander", "ExpandResult", "expand_commands",
    "ExecutionEngine", "RunCallbacks", "RunContext", "RunResult", "RunState", "StepResult",
    "run_commands",
    "GameSession", "LevelTimer",
]
