# ================================
# file: core/__init__.py
# ================================
"""
Core Package

Exports fundamental types, the grid & robot model, level schema and configuration.
"""
from core.types import Position, RobotState, KeyItem, DoorItem, ColoredCell, FunctionDefinition
from core.grid import (
    Direction, normalize_rotation, facing, rotate,
    calculate_next_position, check_collision, check_win, in_bounds,
)
from core.config import (
    # Limits
    MAX_RECURSION_DEPTH, MAX_FUNCTION_CALLS, MAX_EXECUTION_STEPS,

    # Pacing
    EXECUTION_DELAY_S, PAINT_DELAY_S,

    # Defaults & vocabulary
    DEFAULT_GRID_SIZE, ROUTINE_NAMES, PAINT_COLORS,
)
from core.level import LevelConfig, DEFAULT_LEVELS, get_level, get_total_levels, is_valid_star_position
from core.level_validator import LevelValidator, validate_level

__all__ = [
    # Types
    'Position', 'RobotState', 'KeyItem', 'DoorItem', 'ColoredCell', 'FunctionDefinition',

    # Grid & robot model
    'Direction', 'normalize_rotation', 'facing', 'rotate',
    'calculate_next_position', 'check_collision', 'check_win', 'in_bounds',

    # Configuration
    'MAX_RECURSION_DEPTH', 'MAX_FUNCTION_CALLS', 'MAX_EXECUTION_STEPS',
    'EXECUTION_DELAY_S', 'PAINT_DELAY_S',
    'DEFAULT_GRID_SIZE', 'ROUTINE_NAMES', 'PAINT_COLORS',

    # Levels
    'LevelConfig', 'DEFAULT_LEVELS', 'get_level', 'get_total_levels', 'is_valid_star_position',
    'LevelValidator', 'validate_level',
]
