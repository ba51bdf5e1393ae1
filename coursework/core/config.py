import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR}/coursework.db")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Grading scale
PERCENT_MAX_POINTS = float(os.environ.get("PERCENT_MAX_POINTS", "100"))
DEFAULT_MAX_POINTS = float(os.environ.get("DEFAULT_MAX_POINTS", "10"))  # POINTS10 mode

# Stage weights of a task must add up to exactly this value
TOTAL_WEIGHT_PERCENT = int(os.environ.get("TOTAL_WEIGHT_PERCENT", "100"))

# Late policy
MINUTES_PER_LATE_DAY = 24 * 60
