# signage/settings.py
"""
Base settings (paths, TZ, logging, auth switches). Everything can be overridden
from the environment.
"""
from __future__ import annotations
import os
from pathlib import Path
from zoneinfo import ZoneInfo

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_PATH = Path(os.environ.get("SIGNAGE_DATA") or PROJECT_ROOT / "data.json")
TZ = ZoneInfo(os.environ.get("SIGNAGE_TZ") or "UTC")

LOG_DIR = Path(os.environ.get("SIGNAGE_LOG_DIR") or PROJECT_ROOT / "logs")
LOG_LEVEL = (os.environ.get("SIGNAGE_LOG_LEVEL") or "INFO").upper()

# Seeded on the admin user when the store is created
ADMIN_KEY = (os.environ.get("SIGNAGE_ADMIN_KEY") or "").strip() or None

ROOT_FOLDER_ID = 1
