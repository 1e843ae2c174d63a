# ================================
# file: sim/session.py
# ================================
from __future__ import annotations
"""Game session: the host side of the engine.

Owns the current level, the command queue, the three routine slots and the
run-local state, and enforces what the engine leaves to its host: command
budgets, per-routine limits, the level time limit and one run at a time.
"""
import time
from typing import Callable, Iterator, List, Optional, Sequence

from core.config import ROUTINE_NAMES, SESSION_DEBUG
from core.commands import is_known, is_routine, format_program
from core.level import LevelConfig, DEFAULT_LEVELS
from core.types import FunctionDefinition
from sim.engine import ExecutionEngine, RunContext, RunResult, RunState, StepResult
from sim.grid_map import GridMap

TIME_UP_ERROR = "⏰ Time is up! Reset the level to try again."


class LevelTimer:
    """Countdown for a level's time limit (seconds). No limit -> never expires."""
    def __init__(self, time_limit: Optional[float], clock: Callable[[], float] = time.monotonic) -> None:
        self.time_limit = time_limit
        self.clock = clock
        self.started_at: Optional[float] = None

    def start(self) -> None:
        self.started_at = self.clock()

    def remaining(self) -> Optional[float]:
        if self.time_limit is None:
            return None
        if self.started_at is None:
            return float(self.time_limit)
        return max(0.0, self.time_limit - (self.clock() - self.started_at))

    @property
    def expired(self) -> bool:
        left = self.remaining()
        return left is not None and left <= 0.0


class GameSession:
    """Level navigation, queue/routine editing and run orchestration."""

    def __init__(self, levels: Optional[Sequence[LevelConfig]] = None,
                 logger_func=None, log_file=None, data_logger=None,
                 on_win: Optional[Callable[[LevelConfig], None]] = None,
                 auto_advance: bool = False,
                 clock: Callable[[], float] = time.monotonic,
                 verbose: bool = SESSION_DEBUG) -> None:
        self.levels: List[LevelConfig] = list(levels) if levels else list(DEFAULT_LEVELS)
        self.logger_func = logger_func
        self.log_file = log_file
        self.data_logger = data_logger
        self.on_win = on_win
        self.auto_advance = auto_advance
        self.clock = clock
        self.verbose = verbose

        self.command_queue: List[str] = []
        self.functions: List[FunctionDefinition] = [FunctionDefinition(n) for n in ROUTINE_NAMES]
        self.is_executing = False
        self.recursion_warning: Optional[str] = None
        self.last_result: Optional[RunResult] = None

        self.current_level: LevelConfig = self.levels[0]
        self.ctx = RunContext.from_level(self.current_level)
        self.load_level(self.current_level.id)

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[SESSION] {message}")
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, "SESSION")

    # ----------------- levels -----------------
    def _index_of(self, level_id: int) -> int:
        for i, level in enumerate(self.levels):
            if level.id == level_id:
                return i
        raise KeyError(f"Level not found: {level_id}")

    def load_level(self, level_id: int) -> LevelConfig:
        """(Re)load a level: robot back to start, collected sets and paint reset."""
        level = self.levels[self._index_of(level_id)]
        self.current_level = level
        self.grid_map = GridMap.from_level(level)
        self.ctx.reset(level)
        self.timer = LevelTimer(level.time_limit, self.clock)
        self.timer.start()
        self.recursion_warning = None
        self._log(f"Loaded {level.name}: robot {tuple(level.robot_start)}, "
                  f"stars {[tuple(p) for p in level.star_positions]}")
        return level

    def reset_level(self) -> None:
        self.load_level(self.current_level.id)
        self.command_queue = []

    def next_level(self) -> bool:
        if self.is_last_level:
            return False
        self.load_level(self.levels[self._index_of(self.current_level.id) + 1].id)
        return True

    def previous_level(self) -> bool:
        if self.is_first_level:
            return False
        self.load_level(self.levels[self._index_of(self.current_level.id) - 1].id)
        return True

    @property
    def total_levels(self) -> int:
        return len(self.levels)

    @property
    def is_first_level(self) -> bool:
        return self._index_of(self.current_level.id) == 0

    @property
    def is_last_level(self) -> bool:
        return self._index_of(self.current_level.id) == len(self.levels) - 1

    @property
    def robot(self):
        return self.ctx.robot

    @property
    def collected_goals(self) -> set:
        return self.ctx.collected_goals

    @property
    def collected_keys(self) -> set:
        return self.ctx.collected_keys

    # ----------------- command queue -----------------
    def function_limit(self, name: str) -> Optional[int]:
        return self.current_level.function_limits.get(name)

    def routine_enabled(self, name: str) -> bool:
        return self.function_limit(name) != 0

    def add_command(self, cmd: str) -> bool:
        """Append to the queue. False when executing, the queue is full, or
        the routine is disabled on this level."""
        if not is_known(cmd):
            raise ValueError(f"Unknown command: {cmd!r}")
        if self.is_executing:
            return False
        max_cmds = self.current_level.max_commands
        if max_cmds is not None and len(self.command_queue) >= max_cmds:
            self._log(f"Queue full ({max_cmds} commands), {cmd} refused")
            return False
        if is_routine(cmd) and not self.routine_enabled(cmd):
            return False
        self.command_queue.append(cmd)
        return True

    def remove_command(self, index: int) -> bool:
        if self.is_executing:
            return False
        del self.command_queue[index]
        return True

    def clear_queue(self) -> bool:
        if self.is_executing:
            return False
        self.command_queue = []
        return True

    # ----------------- routines -----------------
    def get_function(self, name: str) -> FunctionDefinition:
        if name not in ROUTINE_NAMES:
            raise ValueError(f"Unknown routine slot: {name!r}")
        for func in self.functions:
            if func.name == name:
                return func
        func = FunctionDefinition(name)
        self.functions.append(func)
        return func

    def _body_allowed(self, name: str, body: Sequence[str]) -> bool:
        for cmd in body:
            if not is_known(cmd):
                raise ValueError(f"Unknown command: {cmd!r}")
        limit = self.function_limit(name)
        if limit is not None and len(body) > limit:
            return False
        return all(self.routine_enabled(c) for c in body if is_routine(c))

    def set_function(self, name: str, commands: Sequence[str]) -> bool:
        func = self.get_function(name)
        if self.is_executing or not self._body_allowed(name, commands):
            return False
        func.commands = list(commands)
        return True

    def add_function_command(self, name: str, cmd: str) -> bool:
        func = self.get_function(name)
        return self.set_function(name, func.commands + [cmd])

    def remove_function_command(self, name: str, index: int) -> bool:
        func = self.get_function(name)
        if self.is_executing:
            return False
        del func.commands[index]
        return True

    def clear_function(self, name: str) -> bool:
        return self.set_function(name, [])

    def clear_warning(self) -> None:
        self.recursion_warning = None

    # ----------------- time limit -----------------
    def time_remaining(self) -> Optional[float]:
        return self.timer.remaining()

    @property
    def is_time_up(self) -> bool:
        return self.timer.expired

    # ----------------- running -----------------
    def _record(self, step: StepResult) -> None:
        if self.data_logger is None:
            return
        self.data_logger.log_step(step)
        if step.painted is not None:
            self.data_logger.log_map(self.ctx.painted, self.current_level.grid_size)

    def iter_run(self) -> Iterator[StepResult]:
        """Run the queue one tick per `next()`. The host paces the ticks and
        may stop pulling at any time; `last_result` is set on completion."""
        if self.is_executing:
            raise RuntimeError("A run is already executing")

        level = self.current_level
        self.recursion_warning = None
        self.last_result = None
        if self.timer.expired:
            self._log(TIME_UP_ERROR)
            self.last_result = RunResult(RunState.IDLE, False, 0, [], self.ctx.robot.copy(),
                                         error=TIME_UP_ERROR, time_up=True)
            return

        engine = ExecutionEngine(self.grid_map, logger_func=self.logger_func, log_file=self.log_file)
        self.is_executing = True
        try:
            expansion = engine.prepare(self.command_queue, self.functions)
            self.recursion_warning = expansion.warning
            self._log(f"Queue {format_program(self.command_queue)} -> {len(expansion.commands)} commands")
            if expansion.warning:
                self._log(expansion.warning)
            if engine.state == RunState.ABORTED:
                self._log(engine.error)
                self.last_result = RunResult(engine.state, False, 0, expansion.commands,
                                             self.ctx.robot.copy(), warning=expansion.warning,
                                             error=engine.error)
                return

            if self.data_logger is not None:
                self.data_logger.log_pose(self.ctx.robot)
                self.data_logger.log_map(self.ctx.painted, level.grid_size)

            count = 0
            time_up = False
            for step in engine.steps(expansion.commands, self.ctx):
                count += 1
                self._record(step)
                yield step
                if not step.won and self.timer.expired:
                    time_up = True
                    break

            state = RunState.STOPPED if time_up else engine.state
            self.last_result = RunResult(state, state == RunState.WON, count,
                                         expansion.commands, self.ctx.robot.copy(),
                                         warning=expansion.warning,
                                         error=TIME_UP_ERROR if time_up else None,
                                         time_up=time_up)
        finally:
            self.is_executing = False

        self._log(f"Run finished: {self.last_result.state.name} after {count} step(s)")
        if self.last_result.won:
            self._handle_win(level)

    def run(self, pace: bool = False, sleep: Callable[[float], None] = time.sleep) -> RunResult:
        """Drive iter_run() to completion; with pace=True sleep between ticks."""
        for step in self.iter_run():
            if pace:
                sleep(step.delay)
        return self.last_result

    def _handle_win(self, level: LevelConfig) -> None:
        self._log(f"✅ {level.name} completed!")
        if self.on_win:
            self.on_win(level)
        if self.auto_advance:
            if not self.next_level():
                self._log("🎉 All levels completed! Back to the first one.")
                self.load_level(self.levels[0].id)
