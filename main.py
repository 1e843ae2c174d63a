# ================================
# file: main.py
# ================================
from __future__ import annotations
"""Project entrypoint: plays a command program against one level, headless.

Usage:
    python main.py --level 6 --program "F0 RIGHT F0" --f0 "MOVE MOVE MOVE MOVE MOVE"
    python main.py --levels ./my_levels.json --list
    python main.py --levels ./my_levels.json --validate
    python main.py --level 7 --program F0 --f0 "MOVE IF_RED RIGHT F0" --trace run.npz --log
"""
import argparse
import os
import sys
from datetime import datetime
from typing import Optional, List

from core.commands import parse_program, format_program
from core.config import LOG_FILE_PREFIX
from core.grid import facing
from core.level import DEFAULT_LEVELS
from core.level_validator import LevelValidator
from sim import GameSession
from appio import DataLogger, load_levels, log_to_file

EXIT_WON = 0
EXIT_NOT_WON = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Grid robot command puzzle (headless runner)")
    p.add_argument("--levels", type=str, default=None, help="Level JSON file (default: built-in levels)")
    p.add_argument("--level", type=int, default=None, help="Level id to play (default: first level)")
    p.add_argument("--program", type=str, default="", help='Main queue, e.g. "MOVE LEFT F0"')
    p.add_argument("--f0", type=str, default="", help="Body of routine F0")
    p.add_argument("--f1", type=str, default="", help="Body of routine F1")
    p.add_argument("--f2", type=str, default="", help="Body of routine F2")
    p.add_argument("--pace", action="store_true", help="Sleep the animation delay between steps")
    p.add_argument("--trace", type=str, default=None, help="Write an NPZ run trace to this path")
    p.add_argument("--log", action="store_true", help="Also write a timestamped text log")
    p.add_argument("--validate", action="store_true", help="Validate the levels and exit")
    p.add_argument("--list", action="store_true", help="List the levels and exit")
    return p


def _list_levels(levels) -> int:
    for lvl in levels:
        extras = []
        if lvl.max_commands is not None:
            extras.append(f"max {lvl.max_commands} cmds")
        if lvl.function_limits:
            extras.append("limits " + ", ".join(f"{k}={v}" for k, v in sorted(lvl.function_limits.items())))
        if lvl.time_limit is not None:
            extras.append(f"{lvl.time_limit}s")
        print(f"{lvl.id:>3}  {lvl.name}  ({lvl.grid_size}x{lvl.grid_size}, "
              f"{len(lvl.star_positions)} star(s)){'  [' + '; '.join(extras) + ']' if extras else ''}")
    return EXIT_WON


def _validate_levels(levels, log_file=None) -> int:
    validator = LevelValidator(logger_func=log_to_file if log_file else None, log_file=log_file)
    ok, report = validator.validate_all(levels)
    for level_id, issues in report.items():
        print(f"[VALIDATE] Level {level_id}:")
        for issue in issues:
            print(f"[VALIDATE]   - {issue}")
    print(f"[VALIDATE] {len(levels)} level(s): {'all valid' if ok else f'{len(report)} with issues'}")
    return EXIT_WON if ok else EXIT_ERROR


def run(argv: Optional[List[str]] = None) -> int:
    """Wire modules, play the program, return the process exit code."""
    args = build_parser().parse_args(argv)

    log_file = None
    if args.log:
        log_filename = f"{LOG_FILE_PREFIX}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
        log_file = open(os.path.join(os.getcwd(), log_filename), "w", encoding="utf-8")

    try:
        try:
            levels = load_levels(args.levels, log_file) if args.levels else list(DEFAULT_LEVELS)
        except (OSError, ValueError) as e:
            print(f"[ERROR] Could not load levels: {e}")
            return EXIT_ERROR
        if not levels:
            print("[ERROR] Level file contains no levels")
            return EXIT_ERROR

        if args.list:
            return _list_levels(levels)
        if args.validate:
            return _validate_levels(levels, log_file)

        try:
            queue = parse_program(args.program)
            bodies = {name: parse_program(text) for name, text in
                      (("F0", args.f0), ("F1", args.f1), ("F2", args.f2))}
        except ValueError as e:
            print(f"[ERROR] {e}")
            return EXIT_ERROR

        data_logger = DataLogger() if args.trace else None
        session = GameSession(levels, logger_func=log_to_file if log_file else None,
                              log_file=log_file, data_logger=data_logger)
        if args.level is not None:
            try:
                session.load_level(args.level)
            except KeyError as e:
                print(f"[ERROR] {e.args[0]}")
                return EXIT_ERROR

        for name, body in bodies.items():
            if body and not session.set_function(name, body):
                print(f"[ERROR] {name} refused by level limits "
                      f"(limit {session.function_limit(name)}): {format_program(body)}")
                return EXIT_ERROR
        for cmd in queue:
            if not session.add_command(cmd):
                print(f"[ERROR] {cmd} refused: queue limit is {session.current_level.max_commands} "
                      f"or the routine is disabled on this level")
                return EXIT_ERROR

        result = session.run(pace=args.pace)

        if data_logger is not None:
            data_logger.save(args.trace)
            print(f"[TRACE] Saved run trace to {args.trace}")

        robot = result.robot
        print(f"[RESULT] {result.state.name}: robot at ({robot.x},{robot.y}) facing "
              f"{facing(robot.rotation).name}, {len(session.collected_goals)}/"
              f"{len(session.current_level.distinct_goals())} star(s), {result.steps} step(s)")
        if result.warning:
            print(f"[WARN] {result.warning}")
        if result.error:
            print(f"[ERROR] {result.error}")
            return EXIT_ERROR
        return EXIT_WON if result.won else EXIT_NOT_WON
    finally:
        if log_file is not None:
            log_file.close()


if __name__ == "__main__":
    sys.exit(run())
