# config.py
"""
Runtime configuration for the SCML -> kanim converter.

Values come from the environment (a local .env file is merged first) so the
CLI, the web surface and the tests all read the same settings.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


# Output
OUTPUT_DIR = os.environ.get("KANIM_OUTPUT_DIR", "output")
DEBUG = _env_flag("KANIM_DEBUG")

# Packer settings
ATLAS_MAX_SIZE = int(os.environ.get("KANIM_ATLAS_MAX_SIZE", "4096"))
ATLAS_PADDING = int(os.environ.get("KANIM_ATLAS_PADDING", "2"))
ATLAS_SQUARE = _env_flag("KANIM_ATLAS_SQUARE", "1")

# Web surface
WORK_DIR = os.environ.get("KANIM_WORK_DIR", "work")
PORT = int(os.environ.get("PORT", "5006"))

# Format constants
BILD_VERSION = 10
ANIM_VERSION = 5
MS_PER_S = 1000
DEFAULT_FRAME_INTERVAL_MS = 33


def debug_print(message: str):
    """Print a DEBUG line when KANIM_DEBUG is enabled."""
    if DEBUG:
        print(f"DEBUG {message}")
