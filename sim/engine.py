# ================================
# file: sim/engine.py
# ================================
from __future__ import annotations
"""Execution engine: steps a flat command list against run-local state.

State machine per invocation:
    IDLE -> EXPANDING -> (ABORTED | RUNNING) -> (WON | EXHAUSTED)

The engine owns no timing. `steps()` yields once per instruction and the host
decides when (or whether) to pull the next one; `run()` is the synchronous
driver that may sleep the suggested pacing delay between ticks.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from core.config import (
    CMD_MOVE, CMD_LEFT, CMD_RIGHT, MAX_EXECUTION_STEPS,
    EXECUTION_DELAY_S, PAINT_DELAY_S, WIN_DELAY_S, ENGINE_DEBUG,
)
from core.commands import paint_color, condition_color, format_program
from core.grid import calculate_next_position, rotate, facing
from core.level import LevelConfig
from core.types import Position, RobotState, ColoredCell, KeyItem, DoorItem
from sim.expander import CommandExpander, ExpandResult, FunctionTable
from sim.grid_map import GridMap


class RunState(Enum):
    IDLE = 0
    EXPANDING = 1
    ABORTED = 2      # Expanded program longer than the step limit
    RUNNING = 3
    WON = 4
    EXHAUSTED = 5    # Program finished without collecting every goal
    STOPPED = 6      # Host stopped pulling ticks before the end (time limit)


def step_limit_error(length: int, max_steps: int) -> str:
    return (f"⚠️ Too many commands! {length} steps exceed the limit of {max_steps}. "
            f"Check your routines for infinite recursion.")


def expansion_limit_error(work: int) -> str:
    return (f"⚠️ Too many commands! Expansion gave up after {work} routine calls. "
            f"Check your routines for infinite recursion.")


class RunContext:
    """Run-local transient state shared by consecutive runs of one level attempt.

    Collected sets only grow; they are emptied by `reset()` (level reload).
    `painted` maps (x, y) -> lower-case colour and starts as a copy of the
    level's initial paint layout.
    """
    def __init__(self, robot: RobotState,
                 collected_goals: Optional[set] = None,
                 collected_keys: Optional[set] = None,
                 colored_cells: Sequence[ColoredCell] = ()) -> None:
        self.robot = robot
        self.collected_goals: set = collected_goals if collected_goals is not None else set()
        self.collected_keys: set = collected_keys if collected_keys is not None else set()
        self.painted: Dict[Position, str] = {c.position: c.color for c in colored_cells}

    @classmethod
    def from_level(cls, level: LevelConfig) -> "RunContext":
        return cls(level.initial_robot(), colored_cells=level.colored_cells)

    def reset(self, level: LevelConfig) -> None:
        self.robot = level.initial_robot()
        self.collected_goals.clear()
        self.collected_keys.clear()
        self.painted = {c.position: c.color for c in level.colored_cells}

    def color_at(self, pos: Position) -> Optional[str]:
        return self.painted.get(pos)


@dataclass
class RunCallbacks:
    """Optional host hooks; each is called synchronously inside a tick."""
    apply_robot: Optional[Callable[[RobotState], None]] = None
    on_goal_collected: Optional[Callable[[Position], None]] = None
    on_key_collected: Optional[Callable[[str], None]] = None
    on_paint: Optional[Callable[[Position, str], None]] = None


@dataclass
class StepResult:
    """What one tick did. `skipped_index` is set when an IF_ test failed."""
    index: int
    command: str
    robot: RobotState
    blocked: bool = False
    blocked_by: Optional[str] = None
    skipped_index: Optional[int] = None
    collected_goals: List[Position] = field(default_factory=list)
    collected_keys: List[str] = field(default_factory=list)
    painted: Optional[Tuple[Position, str]] = None
    won: bool = False
    delay: float = EXECUTION_DELAY_S


@dataclass
class RunResult:
    state: RunState
    won: bool
    steps: int
    program: List[str]
    robot: RobotState
    warning: Optional[str] = None
    error: Optional[str] = None
    time_up: bool = False


class ExecutionEngine:
    """Interprets expanded programs on one level layout.
    Thread-safety: one run at a time; the host enforces mutual exclusion.
    """
    def __init__(self, grid_map: GridMap, max_steps: int = MAX_EXECUTION_STEPS,
                 expander: Optional[CommandExpander] = None,
                 logger_func=None, log_file=None, verbose: bool = ENGINE_DEBUG) -> None:
        self.grid_map = grid_map
        self.max_steps = max_steps
        self.logger_func = logger_func
        self.log_file = log_file
        self.verbose = verbose
        self.expander = expander or CommandExpander(max_output=max_steps,
                                                    logger_func=logger_func, log_file=log_file,
                                                    verbose=verbose)
        self.state = RunState.IDLE
        self.error: Optional[str] = None
        self.last_expansion: Optional[ExpandResult] = None

    @classmethod
    def for_level(cls, level: LevelConfig, **kwargs) -> "ExecutionEngine":
        return cls(GridMap.from_level(level), **kwargs)

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[ENGINE] {message}")
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, "ENGINE")

    # ----------------- expansion -----------------
    def prepare(self, commands: Sequence[str], functions: Optional[FunctionTable] = None) -> ExpandResult:
        """EXPANDING: flatten the queue; ABORTED if it is longer than max_steps
        or the expander stopped early."""
        self.state = RunState.EXPANDING
        self.error = None
        result = self.expander.expand(commands, functions)
        self.last_expansion = result
        if len(result.commands) > self.max_steps:
            self.state = RunState.ABORTED
            self.error = step_limit_error(len(result.commands), self.max_steps)
        elif result.truncated:
            self.state = RunState.ABORTED
            self.error = expansion_limit_error(self.expander.max_work)
        if self.error:
            self._log(self.error)
        return result

    # ----------------- stepping -----------------
    def is_won(self, ctx: RunContext) -> bool:
        return all(goal.key() in ctx.collected_goals for goal in self.grid_map.goals)

    def steps(self, program: Sequence[str], ctx: RunContext,
              callbacks: Optional[RunCallbacks] = None) -> Iterator[StepResult]:
        """Yield one StepResult per executed instruction, strictly in order.

        Ends after the winning instruction (state WON) or when the program is
        exhausted (state EXHAUSTED). Skipped instructions are not yielded.
        """
        cb = callbacks or RunCallbacks()
        self.state = RunState.RUNNING
        self._log(f"Running {len(program)} commands: {format_program(program)}")

        i = 0
        while i < len(program):
            cmd = program[i]
            step = self._execute(i, cmd, ctx, cb)
            if step.skipped_index is not None:
                i += 2
            else:
                i += 1

            if self.is_won(ctx):
                step.won = True
                self.state = RunState.WON
                self._log(f"Step {step.index}: all {self.grid_map.goal_count} goal(s) collected")
                yield step
                return
            yield step

        self.state = RunState.EXHAUSTED
        self._log(f"Program exhausted at {ctx.robot!r}; "
                  f"{len(ctx.collected_goals)}/{self.grid_map.goal_count} goal(s)")

    def _execute(self, index: int, cmd: str, ctx: RunContext, cb: RunCallbacks) -> StepResult:
        pos = ctx.robot.position

        color = paint_color(cmd)
        if color is not None:
            ctx.painted[pos] = color
            if cb.on_paint:
                cb.on_paint(pos, color)
            self._log(f"Step {index}: {cmd} at {tuple(pos)}")
            return StepResult(index, cmd, ctx.robot.copy(), painted=(pos, color), delay=PAINT_DELAY_S)

        color = condition_color(cmd)
        if color is not None:
            step = StepResult(index, cmd, ctx.robot.copy(), delay=PAINT_DELAY_S)
            if ctx.color_at(pos) != color:
                step.skipped_index = index + 1
            self._log(f"Step {index}: {cmd} at {tuple(pos)} -> "
                      f"{'true' if step.skipped_index is None else 'false, skip next'}")
            return step

        if cmd not in (CMD_MOVE, CMD_LEFT, CMD_RIGHT):
            # Unknown tokens are consumed without effect
            self._log(f"Step {index}: ignoring {cmd!r}")
            return StepResult(index, cmd, ctx.robot.copy(), delay=0.0)

        step = StepResult(index, cmd, ctx.robot)
        if cmd == CMD_MOVE:
            candidate = calculate_next_position(pos, ctx.robot.rotation, self.grid_map.grid_size)
            door_id = self.grid_map.door_at(candidate)
            if door_id is not None and door_id not in ctx.collected_keys:
                step.blocked, step.blocked_by = True, f"door:{door_id}"
            elif self.grid_map.is_obstacle(candidate):
                step.blocked, step.blocked_by = True, "obstacle"
            else:
                ctx.robot = RobotState(candidate.x, candidate.y, ctx.robot.rotation)
        else:
            ctx.robot = rotate(ctx.robot, cmd)

        self._collect(ctx, cb, step)
        step.robot = ctx.robot.copy()
        if cb.apply_robot:
            cb.apply_robot(ctx.robot.copy())
        self._log(f"Step {index}: {cmd} -> ({ctx.robot.x},{ctx.robot.y}) facing "
                  f"{facing(ctx.robot.rotation).name}"
                  + (f" [blocked by {step.blocked_by}]" if step.blocked else ""))
        return step

    def _collect(self, ctx: RunContext, cb: RunCallbacks, step: StepResult) -> None:
        pos = ctx.robot.position
        for key_id in self.grid_map.keys_at(pos):
            if key_id not in ctx.collected_keys:
                ctx.collected_keys.add(key_id)
                step.collected_keys.append(key_id)
                if cb.on_key_collected:
                    cb.on_key_collected(key_id)
        if self.grid_map.has_goal(pos) and pos.key() not in ctx.collected_goals:
            ctx.collected_goals.add(pos.key())
            step.collected_goals.append(pos)
            if cb.on_goal_collected:
                cb.on_goal_collected(pos)

    # ----------------- synchronous driver -----------------
    def run(self, commands: Sequence[str], functions: Optional[FunctionTable], ctx: RunContext,
            callbacks: Optional[RunCallbacks] = None, pace: bool = False,
            sleep: Callable[[float], None] = time.sleep) -> RunResult:
        """Expand and execute in one call. With pace=True the suggested delay
        is slept between ticks; results are identical either way."""
        expansion = self.prepare(commands, functions)
        if self.state == RunState.ABORTED:
            return RunResult(self.state, False, 0, expansion.commands, ctx.robot.copy(),
                             warning=expansion.warning, error=self.error)

        count = 0
        for step in self.steps(expansion.commands, ctx, callbacks):
            count += 1
            if pace:
                sleep(step.delay)
                if step.won:
                    sleep(WIN_DELAY_S)

        won = self.state == RunState.WON
        return RunResult(self.state, won, count, expansion.commands, ctx.robot.copy(),
                         warning=expansion.warning)


def run_commands(commands: Sequence[str],
                 functions: Optional[FunctionTable],
                 robot: RobotState,
                 apply_robot: Optional[Callable[[RobotState], None]],
                 goals: Sequence[Position],
                 collected_goals: set,
                 on_goal_collected: Optional[Callable[[Position], None]],
                 collected_key_ids: set,
                 on_key_collected: Optional[Callable[[str], None]],
                 grid_size: int,
                 obstacles: Sequence[Position],
                 keys: Sequence[KeyItem],
                 doors: Sequence[DoorItem],
                 colored_cells: Sequence[ColoredCell],
                 on_paint: Optional[Callable[[Position, str], None]],
                 pace: bool = False) -> bool:
    """Expand and run a queue against loose level data; True when won.

    `collected_goals` ("x,y" keys) and `collected_key_ids` are mutated in
    place. The caller's `robot` is not; pose updates go to `apply_robot`.
    """
    grid_map = GridMap(grid_size, obstacles, keys, doors, goals)
    ctx = RunContext(robot.copy(), collected_goals, collected_key_ids, colored_cells)
    callbacks = RunCallbacks(apply_robot, on_goal_collected, on_key_collected, on_paint)
    return ExecutionEngine(grid_map).run(commands, functions, ctx, callbacks, pace=pace).won
