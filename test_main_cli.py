# ================================
# file: test_main_cli.py
# ================================
"""Headless runner exit codes, run traces and the text log helper."""
import io
import os

import numpy as np

import main
from appio.level_store import save_levels
from appio.logger import DataLogger, log_to_file, paint_grid, PAINT_CODES
from core.config import LOG_FILE_PREFIX
from core.level import get_level
from core.types import Position, RobotState


def test_solved_program_exits_zero():
    code = main.run(["--level", "6", "--program", "F0 RIGHT F0", "--f0", "MOVE MOVE MOVE MOVE MOVE"])
    assert code == main.EXIT_WON


def test_unsolved_program_exits_one():
    assert main.run(["--level", "1", "--program", "MOVE, MOVE"]) == main.EXIT_NOT_WON


def test_bad_input_exits_two(capsys):
    assert main.run(["--program", "MOVE JUMP"]) == main.EXIT_ERROR
    assert main.run(["--level", "999", "--program", "MOVE"]) == main.EXIT_ERROR
    # over the queue budget of level 6
    assert main.run(["--level", "6", "--program", "MOVE MOVE MOVE MOVE"]) == main.EXIT_ERROR
    # F1 is disabled on level 6
    assert main.run(["--level", "6", "--program", "F1", "--f1", "MOVE"]) == main.EXIT_ERROR
    out = capsys.readouterr().out
    assert "[ERROR]" in out


def test_runaway_recursion_exits_two():
    assert main.run(["--program", "F0", "--f0", "F0 F0 MOVE"]) == main.EXIT_ERROR


def test_list_and_validate(capsys):
    assert main.run(["--list"]) == main.EXIT_WON
    out = capsys.readouterr().out
    assert "Level 6 - Reuse" in out
    assert main.run(["--validate"]) == main.EXIT_WON
    assert "all valid" in capsys.readouterr().out


def test_custom_level_file(tmp_path):
    path = tmp_path / "levels.json"
    save_levels(str(path), [get_level(4)])
    assert main.run(["--levels", str(path), "--validate"]) == main.EXIT_WON
    assert main.run(["--levels", str(path), "--program", "MOVE MOVE"]) == main.EXIT_NOT_WON
    assert main.run(["--levels", str(tmp_path / "missing.json")]) == main.EXIT_ERROR


def test_trace_file_is_written(tmp_path):
    trace = tmp_path / "run.npz"
    code = main.run(["--level", "5", "--trace", str(trace),
                     "--program", "RIGHT MOVE MOVE LEFT LEFT MOVE MOVE RIGHT MOVE MOVE MOVE MOVE"])
    assert code == main.EXIT_WON
    data = np.load(str(trace))
    assert data["poses"].shape == (13, 4)
    assert list(data["cmd_name"]) == ["RIGHT", "MOVE", "MOVE", "LEFT", "LEFT", "MOVE", "MOVE",
                                      "RIGHT", "MOVE", "MOVE", "MOVE", "MOVE"]
    kinds = list(data["event_kind"])
    assert "key" in kinds
    assert kinds[-1] == "won"
    assert data["event_cell"].shape == (len(kinds), 2)
    assert tuple(data["poses"][-1][1:3]) == (4.0, 0.0)


def test_log_flag_writes_a_log_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main.run(["--log", "--program", "MOVE"]) == main.EXIT_NOT_WON
    logs = [f for f in os.listdir(tmp_path) if f.startswith(LOG_FILE_PREFIX)]
    assert len(logs) == 1
    with open(tmp_path / logs[0], encoding="utf-8") as f:
        text = f.read()
    assert "[SESSION]" in text


def test_log_to_file_format():
    buf = io.StringIO()
    log_to_file(buf, "hello", "ENGINE")
    line = buf.getvalue()
    assert line.endswith("[ENGINE] hello\n")
    assert line.startswith("[")


def test_empty_data_logger_saves(tmp_path):
    path = tmp_path / "empty.npz"
    DataLogger().save(str(path))
    data = np.load(str(path))
    assert data["poses"].shape == (0, 4)
    assert data["event_cell"].shape == (0, 2)
    assert data["cmd_name"].shape == (0,)


def test_paint_grid_codes():
    grid = paint_grid({Position(1, 2): "blue", Position(9, 9): "red"}, 3)
    assert grid.shape == (3, 3)
    assert grid[2, 1] == PAINT_CODES["blue"]
    assert int(grid.sum()) == PAINT_CODES["blue"]


def test_data_logger_pose_rows():
    logger = DataLogger()
    logger.log_pose(RobotState(2, 3, -90))
    assert logger.poses[0][1:] == (2.0, 3.0, -90.0)
