"""
performance_engine/config.py

Paths and settings used by the CLI tools and the dashboard. Each value can be
overridden through the environment; CLI flags override them again per run.
"""

from __future__ import annotations

import os
from pathlib import Path


ARTIFACT_DIR = Path(os.getenv("PERF_ARTIFACT_DIR", "artifacts"))
DATA_DIR = Path(os.getenv("PERF_DATA_DIR", "data"))
MODEL_FILENAME = os.getenv("PERF_MODEL_FILENAME", "forest.json")

DEFAULT_DATA_PATH = DATA_DIR / "students_synthetic.csv"
DEFAULT_MODEL_PATH = ARTIFACT_DIR / MODEL_FILENAME

LOG_LEVEL = os.getenv("PERF_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
