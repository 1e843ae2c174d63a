# ================================
# file: test_expander.py
# ================================
"""Routine expansion: passthrough, inlining, per-path call caps, depth cap."""
from core.config import MAX_FUNCTION_CALLS
from core.types import FunctionDefinition
from sim.expander import CommandExpander, expand_commands


def test_passthrough_without_routines():
    program = ["MOVE", "LEFT", "PAINT_RED", "IF_BLUE", "RIGHT"]
    result = expand_commands(program, [])
    assert result.commands == program
    assert result.warning is None
    assert not result.truncated


def test_routine_is_inlined_in_place():
    funcs = [FunctionDefinition("F0", ["MOVE", "RIGHT"])]
    result = expand_commands(["LEFT", "F0", "MOVE", "F0"], funcs)
    assert result.commands == ["LEFT", "MOVE", "RIGHT", "MOVE", "MOVE", "RIGHT"]
    assert result.warning is None


def test_undefined_or_empty_routine_is_dropped_silently():
    funcs = [FunctionDefinition("F0", []), FunctionDefinition("F1", ["MOVE"])]
    result = expand_commands(["F0", "F2", "F1"], funcs)
    assert result.commands == ["MOVE"]
    assert result.warning is None


def test_self_recursion_stops_after_max_calls():
    funcs = [FunctionDefinition("F0", ["MOVE", "F0"])]
    result = expand_commands(["F0"], funcs)
    assert result.commands == ["MOVE"] * MAX_FUNCTION_CALLS
    assert result.warning is not None
    assert "F0" in result.warning


def test_call_count_is_per_path_not_global():
    funcs = {"F0": ["MOVE"]}
    result = expand_commands(["F0"] * 15, funcs)
    assert result.commands == ["MOVE"] * 15
    assert result.warning is None


def test_mutual_recursion_is_bounded():
    funcs = [FunctionDefinition("F0", ["MOVE", "F1"]), FunctionDefinition("F1", ["LEFT", "F0"])]
    result = expand_commands(["F0"], funcs)
    assert result.commands == ["MOVE", "LEFT"] * MAX_FUNCTION_CALLS
    assert result.warning is not None


def test_depth_limit_returns_nothing_for_that_level():
    funcs = {"F0": ["MOVE", "F1"], "F1": ["MOVE", "F2"], "F2": ["MOVE", "F0"]}
    result = CommandExpander(max_depth=3).expand(["F0"], funcs)
    assert result.commands == ["MOVE", "MOVE", "MOVE"]
    assert "Depth limit" in result.warning


def test_last_warning_in_traversal_order_wins():
    funcs = {"F0": ["MOVE", "F0"], "F1": ["F2"], "F2": ["MOVE", "F0"]}
    expander = CommandExpander(max_depth=2, max_calls=1)

    depth_last = expander.expand(["F0", "F1"], funcs)
    assert depth_last.commands == ["MOVE", "MOVE"]
    assert "Depth limit" in depth_last.warning

    calls_last = expander.expand(["F1", "F0"], funcs)
    assert calls_last.commands == ["MOVE", "MOVE"]
    assert "Recursion limit" in calls_last.warning


def test_wide_recursion_is_finite_and_can_be_bounded():
    funcs = {"F0": ["F0", "F0", "MOVE"]}
    full = expand_commands(["F0"], funcs)
    assert len(full.commands) == 2 ** MAX_FUNCTION_CALLS - 1
    assert full.warning is not None

    bounded = expand_commands(["F0"], funcs, max_output=100)
    assert len(bounded.commands) == 101
    assert bounded.truncated


def test_expansion_uses_a_snapshot_of_the_routines():
    func = FunctionDefinition("F0", ["MOVE"])
    expander = CommandExpander()
    first = expander.expand(["F0"], [func])
    func.commands.append("LEFT")
    assert first.commands == ["MOVE"]
    assert expander.expand(["F0"], [func]).commands == ["MOVE", "LEFT"]


def test_recursion_that_emits_nothing_stops_on_the_work_budget():
    result = expand_commands(["F0"], {"F0": ["F0"] * 10})
    assert result.commands == []
    assert result.truncated


def test_work_budget_counts_routine_tokens():
    result = CommandExpander(max_work=5).expand(["F0"], {"F0": ["MOVE", "F0"]})
    assert result.commands == ["MOVE"] * 5
    assert result.truncated
