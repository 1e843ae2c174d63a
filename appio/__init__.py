# ================================
# file: appio/__init__.py
# ================================
from appio.logger import DataLogger, log_to_file
from appio.level_store import load_levels, save_levels

__all__ = ["DataLogger", "log_to_file", "load_levels", "save_levels"]
