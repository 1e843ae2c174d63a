# ================================
# file: core/config.py
# ================================
"""
Global configuration for the grid robot command puzzle.
Grid units are cells, rotations are degrees, delays are seconds.

Organization:
1. Grid & Robot Defaults
2. Command Vocabulary
3. Expansion & Execution Limits
4. Pacing
5. Keys, Doors & Paint
6. Logging
"""
from __future__ import annotations

# ================================
# 1. GRID & ROBOT DEFAULTS
# ================================
DEFAULT_GRID_SIZE: int = 5          # Grid size when a level does not set one (5x5)
DEFAULT_ROBOT_ROTATION: int = 90    # Robot faces East when a level is loaded
ROTATION_STEP_DEG: int = 90         # LEFT/RIGHT always turn by exactly this much

# ================================
# 2. COMMAND VOCABULARY
# ================================
CMD_MOVE: str = "MOVE"
CMD_LEFT: str = "LEFT"
CMD_RIGHT: str = "RIGHT"
ROUTINE_NAMES: tuple = ("F0", "F1", "F2")   # Closed set of sub-routine slots
PAINT_PREFIX: str = "PAINT_"
IF_PREFIX: str = "IF_"

# ================================
# 3. EXPANSION & EXECUTION LIMITS
# ================================
MAX_RECURSION_DEPTH: int = 50       # Nested routine expansions open at once
MAX_FUNCTION_CALLS: int = 10        # Same routine on one call-stack path
MAX_EXECUTION_STEPS: int = 1000     # Flat program length accepted by the engine
MAX_EXPANSION_WORK: int = 10000     # Routine tokens visited per expansion before giving up

# ================================
# 4. PACING (host courtesy only, no effect on results)
# ================================
EXECUTION_DELAY_S: float = 0.30     # Between motion commands
PAINT_DELAY_S: float = 0.15         # After PAINT_/IF_ commands
WIN_DELAY_S: float = 0.20           # Robot shown on the last star before win hand-off

# ================================
# 5. KEYS, DOORS & PAINT
# ================================
# Key/door ids a level may use; a door opens for the key with the same id
KEY_IDS: tuple = ("red", "blue", "green", "yellow", "purple", "orange", "pink", "cyan")

# Paint colours usable in PAINT_<COLOR> / IF_<COLOR>; index+1 is the trace code
PAINT_COLORS: tuple = ("RED", "GREEN", "BLUE")

# ================================
# 6. LOGGING
# ================================
ENGINE_DEBUG: bool = False          # Print per-step [ENGINE]/[EXPAND] lines to console
SESSION_DEBUG: bool = True          # Print [SESSION] level/run lines to console
LOG_FILE_PREFIX: str = "robot_run_log"
