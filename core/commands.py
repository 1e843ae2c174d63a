# ================================
# file: core/commands.py
# ================================
"""Command vocabulary: plain string tokens.
The expander only looks at routine tokens; the engine interprets the rest.
"""
from __future__ import annotations
from typing import Optional, Sequence, List

from core.config import (
    CMD_MOVE, CMD_LEFT, CMD_RIGHT, ROUTINE_NAMES,
    PAINT_PREFIX, IF_PREFIX, PAINT_COLORS,
)

MOTION_COMMANDS: tuple = (CMD_MOVE, CMD_LEFT, CMD_RIGHT)
PAINT_COMMANDS: tuple = tuple(PAINT_PREFIX + c for c in PAINT_COLORS)
IF_COMMANDS: tuple = tuple(IF_PREFIX + c for c in PAINT_COLORS)
ALL_COMMANDS: frozenset = frozenset(
    MOTION_COMMANDS + tuple(ROUTINE_NAMES) + PAINT_COMMANDS + IF_COMMANDS
)


def is_routine(cmd: str) -> bool:
    return cmd in ROUTINE_NAMES


def is_motion(cmd: str) -> bool:
    return cmd in MOTION_COMMANDS


def is_known(cmd: str) -> bool:
    return cmd in ALL_COMMANDS


def paint_color(cmd: str) -> Optional[str]:
    """'PAINT_RED' -> 'red'; None for any other token."""
    if cmd in PAINT_COMMANDS:
        return cmd[len(PAINT_PREFIX):].lower()
    return None


def condition_color(cmd: str) -> Optional[str]:
    """'IF_RED' -> 'red'; None for any other token."""
    if cmd in IF_COMMANDS:
        return cmd[len(IF_PREFIX):].lower()
    return None


def parse_program(text: str) -> List[str]:
    """Split a program written as "MOVE, LEFT F0" into upper-case tokens.

    Raises ValueError on a token outside the vocabulary.
    """
    tokens = [t.strip().upper() for t in text.replace(",", " ").split()]
    unknown = [t for t in tokens if t and t not in ALL_COMMANDS]
    if unknown:
        raise ValueError(f"Unknown command(s): {', '.join(unknown)}")
    return [t for t in tokens if t]


def format_program(commands: Sequence[str]) -> str:
    return " ".join(commands) if commands else "(empty)"
