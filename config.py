# config.py
import os

# Default board, same as the classic 16x16 intermediate layout
DEFAULT_ROWS = 16
DEFAULT_COLS = 16
DEFAULT_MINES = 40

# Analytics report defaults
ANALYTICS_BOARDS = 100
ANALYTICS_SEED = 42
ANALYTICS_REPORTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "analytics_reports")

# Logging
LOG_LEVEL = os.environ.get("MINESWEEPER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
