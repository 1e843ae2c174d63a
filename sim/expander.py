# ================================
# file: sim/expander.py
# ================================
from __future__ import annotations
"""Command expander: inlines F0/F1/F2 calls into a flat command list.

Expansion is left-to-right, depth-first. Three limits keep it finite:
- MAX_RECURSION_DEPTH: nested routine expansions open at once;
- MAX_FUNCTION_CALLS: occurrences of one routine on the current call-stack path;
- MAX_EXPANSION_WORK: routine tokens visited in one expansion, so bodies that
  call themselves many times without emitting anything still finish quickly.
Limit hits never raise; they drop work and leave a warning (last one wins).
Running out of output room or work budget sets `truncated` instead.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Dict, Union

from core.config import MAX_RECURSION_DEPTH, MAX_FUNCTION_CALLS, MAX_EXPANSION_WORK, ENGINE_DEBUG
from core.commands import is_routine
from core.types import FunctionDefinition

FunctionTable = Union[Sequence[FunctionDefinition], Dict[str, Sequence[str]]]


@dataclass
class ExpandResult:
    """Flat program plus at most one human-readable warning."""
    commands: List[str]
    warning: Optional[str] = None
    truncated: bool = False


def depth_limit_warning(max_depth: int) -> str:
    return (f"⚠️ Depth limit reached ({max_depth} levels). "
            f"Expansion was stopped to avoid a hang.")


def call_limit_warning(name: str, max_calls: int) -> str:
    return (f"⚠️ Recursion limit reached for {name} ({max_calls} calls). "
            f"The routine was expanded {max_calls} times and stopped to avoid an infinite loop.")


class CommandExpander:
    """Expands routine calls against a snapshot of the routine table."""

    def __init__(self, max_depth: int = MAX_RECURSION_DEPTH,
                 max_calls: int = MAX_FUNCTION_CALLS,
                 max_output: Optional[int] = None,
                 max_work: Optional[int] = MAX_EXPANSION_WORK,
                 logger_func=None, log_file=None, verbose: bool = ENGINE_DEBUG) -> None:
        self.max_depth = max_depth
        self.max_calls = max_calls
        self.max_output = max_output
        self.max_work = max_work
        self.logger_func = logger_func
        self.log_file = log_file
        self.verbose = verbose

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[EXPAND] {message}")
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, "EXPAND")

    @staticmethod
    def _snapshot(functions: Optional[FunctionTable]) -> Dict[str, List[str]]:
        """name -> body copy; first definition of a name wins."""
        table: Dict[str, List[str]] = {}
        if not functions:
            return table
        if isinstance(functions, dict):
            for name, body in functions.items():
                table[name] = list(body)
            return table
        for func in functions:
            if func.name not in table:
                table[func.name] = list(func.commands)
        return table

    def expand(self, commands: Sequence[str], functions: Optional[FunctionTable] = None) -> ExpandResult:
        """Flatten `commands`. Never raises for in-domain input."""
        table = self._snapshot(functions)
        out: List[str] = []
        state = {"warning": None, "truncated": False, "work": 0}
        self._expand_into(list(commands), table, 0, [], out, state)
        if state["truncated"]:
            self._log(f"Stopped early: {len(out)} commands, {state['work']} routine tokens visited")
        self._log(f"{len(commands)} queued -> {len(out)} flat commands"
                  + (f" (warning: {state['warning']})" if state["warning"] else ""))
        return ExpandResult(out, state["warning"], state["truncated"])

    def _full(self, out: List[str]) -> bool:
        return self.max_output is not None and len(out) > self.max_output

    def _expand_into(self, commands: List[str], table: Dict[str, List[str]], depth: int,
                     call_stack: List[str], out: List[str], state: dict) -> None:
        if depth > self.max_depth:
            # This level contributes nothing; callers keep going
            state["warning"] = depth_limit_warning(self.max_depth)
            return

        for cmd in commands:
            if state["truncated"] or self._full(out):
                state["truncated"] = True
                return
            if not is_routine(cmd):
                out.append(cmd)
                continue

            state["work"] += 1
            if self.max_work is not None and state["work"] > self.max_work:
                state["truncated"] = True
                return

            body = table.get(cmd)
            if not body:
                continue

            # Counted on the path from the root, not globally
            if call_stack.count(cmd) >= self.max_calls:
                state["warning"] = call_limit_warning(cmd, self.max_calls)
                continue

            call_stack.append(cmd)
            self._expand_into(body, table, depth + 1, call_stack, out, state)
            call_stack.pop()


def expand_commands(commands: Sequence[str], functions: Optional[FunctionTable] = None,
                    max_output: Optional[int] = None) -> ExpandResult:
    """Module-level convenience wrapper around CommandExpander."""
    return CommandExpander(max_output=max_output).expand(commands, functions)
