# ================================
# file: test_session.py
# ================================
"""Game session: budgets, routine slots, built-in level solutions, timer, run lifecycle."""
import pytest

from core.level import DEFAULT_LEVELS
from core.types import RobotState
from sim.engine import RunState
from sim.session import GameSession, LevelTimer, TIME_UP_ERROR
from appio.logger import DataLogger


def _session(level_id=1, **kwargs):
    s = GameSession(DEFAULT_LEVELS, verbose=False, **kwargs)
    s.load_level(level_id)
    return s


def _queue(session, *commands):
    for cmd in commands:
        assert session.add_command(cmd), cmd


def test_starts_on_first_level_facing_east():
    s = GameSession(verbose=False)
    assert s.current_level.id == 1
    assert s.robot == RobotState(0, 0, 90)
    assert s.is_first_level and not s.is_last_level
    assert s.total_levels == len(DEFAULT_LEVELS)


def test_level_navigation():
    s = _session()
    assert not s.previous_level()
    assert s.next_level()
    assert s.current_level.id == 2
    s.load_level(DEFAULT_LEVELS[-1].id)
    assert s.is_last_level
    assert not s.next_level()
    with pytest.raises(KeyError):
        s.load_level(999)


def test_queue_respects_max_commands():
    s = _session(6)
    _queue(s, "F0", "RIGHT", "F0")
    assert not s.add_command("MOVE")
    assert s.command_queue == ["F0", "RIGHT", "F0"]
    assert s.remove_command(1)
    assert s.add_command("LEFT")


def test_unknown_command_and_slot_are_rejected():
    s = _session()
    with pytest.raises(ValueError):
        s.add_command("JUMP")
    with pytest.raises(ValueError):
        s.get_function("F9")
    with pytest.raises(ValueError):
        s.set_function("F0", ["MOVE", "FLY"])


def test_routine_limits():
    s = _session(6)
    assert not s.routine_enabled("F1")
    assert not s.add_command("F1")
    assert not s.set_function("F1", ["MOVE"])
    assert not s.set_function("F0", ["MOVE"] * 6)
    assert s.set_function("F0", ["MOVE"] * 5)
    assert not s.add_function_command("F0", "MOVE")
    # disabled routines cannot be called from an enabled one either
    assert not s.set_function("F0", ["MOVE", "F2"])
    assert s.get_function("F0").commands == ["MOVE"] * 5
    assert s.clear_function("F0")
    assert s.get_function("F0").commands == []


def test_level_4_goes_around_the_wall():
    s = _session(4)
    _queue(s, "MOVE", "RIGHT", "MOVE", "MOVE", "LEFT", "MOVE", "MOVE", "MOVE",
           "LEFT", "MOVE", "MOVE")
    result = s.run()
    assert result.won
    assert s.robot.x == 4 and s.robot.y == 0


def test_level_5_needs_the_key():
    s = _session(5)
    _queue(s, "MOVE", "MOVE", "MOVE", "MOVE")
    result = s.run()
    assert not result.won
    assert s.robot.x == 1 and s.robot.y == 0

    s.reset_level()
    _queue(s, "RIGHT", "MOVE", "MOVE", "LEFT", "LEFT", "MOVE", "MOVE",
           "RIGHT", "MOVE", "MOVE", "MOVE", "MOVE")
    result = s.run()
    assert result.won
    assert s.collected_keys == {"blue"}


def test_level_6_solution_fires_win_once():
    wins = []
    s = _session(6, on_win=wins.append)
    assert s.set_function("F0", ["MOVE"] * 5)
    _queue(s, "F0", "RIGHT", "F0")
    result = s.run()
    assert result.won
    assert result.state == RunState.WON
    assert result.steps == 11
    assert s.collected_goals == {"5,0", "5,5"}
    assert [lvl.id for lvl in wins] == [6]
    assert s.current_level.id == 6


def test_level_7_recursion_follows_the_paint():
    s = _session(7)
    assert s.set_function("F0", ["MOVE", "IF_RED", "RIGHT", "F0"])
    _queue(s, "F0")
    result = s.run()
    assert result.won
    assert result.warning is not None
    assert s.recursion_warning == result.warning
    s.clear_warning()
    assert s.recursion_warning is None


def test_auto_advance_and_wrap_around():
    s = _session(6, auto_advance=True)
    s.set_function("F0", ["MOVE"] * 5)
    _queue(s, "F0", "RIGHT", "F0")
    s.run()
    assert s.current_level.id == 7

    s.set_function("F0", ["MOVE", "IF_RED", "RIGHT", "F0"])
    s.command_queue = ["F0"]
    s.run()
    assert s.current_level.id == DEFAULT_LEVELS[0].id


def test_reset_level_restores_start_state():
    s = _session(5)
    _queue(s, "RIGHT", "MOVE", "MOVE")
    s.run()
    assert s.collected_keys == {"blue"}
    s.reset_level()
    assert s.robot == RobotState(0, 0, 90)
    assert s.collected_keys == set()
    assert s.collected_goals == set()
    assert s.command_queue == []


def test_runaway_recursion_is_reported_not_run():
    s = _session(1)
    s.set_function("F0", ["F0", "F0", "MOVE"])
    _queue(s, "F0")
    result = s.run()
    assert result.state == RunState.ABORTED
    assert "Too many commands" in result.error
    assert s.robot == RobotState(0, 0, 90)
    assert not s.is_executing


def test_one_run_at_a_time():
    s = _session(1)
    _queue(s, "MOVE", "MOVE")
    gen = s.iter_run()
    next(gen)
    assert s.is_executing
    assert not s.add_command("MOVE")
    assert not s.clear_queue()
    with pytest.raises(RuntimeError):
        next(s.iter_run())
    gen.close()
    assert not s.is_executing
    assert s.add_command("MOVE")


def test_level_timer_with_fake_clock():
    now = [100.0]
    timer = LevelTimer(30, clock=lambda: now[0])
    assert timer.remaining() == 30.0
    timer.start()
    now[0] += 10
    assert timer.remaining() == 20.0
    assert not timer.expired
    now[0] += 25
    assert timer.remaining() == 0.0
    assert timer.expired
    assert LevelTimer(None).remaining() is None
    assert not LevelTimer(None).expired


def test_time_up_blocks_the_run():
    now = [0.0]
    s = _session(7, clock=lambda: now[0])
    assert s.time_remaining() == 90.0
    s.set_function("F0", ["MOVE", "IF_RED", "RIGHT", "F0"])
    _queue(s, "F0")
    now[0] += 91
    assert s.is_time_up
    result = s.run()
    assert result.time_up
    assert result.error == TIME_UP_ERROR
    assert result.steps == 0
    assert s.robot == RobotState(0, 0, 90)

    s.reset_level()
    assert not s.is_time_up


def test_time_running_out_mid_run_stops_it():
    now = [0.0]

    def slow_sleep(_delay):
        now[0] += 100

    s = _session(7, clock=lambda: now[0])
    s.set_function("F0", ["MOVE", "IF_RED", "RIGHT", "F0"])
    _queue(s, "F0")
    result = s.run(pace=True, sleep=slow_sleep)
    assert result.time_up
    assert result.state == RunState.STOPPED
    assert not result.won
    assert result.steps == 1
    assert s.robot.x == 1 and s.robot.y == 0


def test_run_trace_is_recorded():
    data_logger = DataLogger()
    s = _session(1, data_logger=data_logger)
    _queue(s, "MOVE", "PAINT_GREEN", "MOVE")
    result = s.run()
    assert result.steps == 3
    # start pose plus one per step
    assert len(data_logger.poses) == 4
    assert [c[2] for c in data_logger.cmds] == ["MOVE", "PAINT_GREEN", "MOVE"]
    assert any(e[1] == "paint" for e in data_logger.events)
    # initial map plus one after the paint
    assert len(data_logger.maps) == 2


def test_routine_calling_itself_without_output_is_aborted():
    s = _session(1)
    assert s.set_function("F0", ["F0"] * 6)
    _queue(s, "F0")
    result = s.run()
    assert result.state == RunState.ABORTED
    assert "Too many commands" in result.error
    assert not s.is_executing
    assert s.robot == RobotState(0, 0, 90)
