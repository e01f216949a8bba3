"""
rental_docs/core/paths.py — Centralized Path Configuration

Single source of truth for directory paths. The sqlite store and the log
directory both live under DATA_DIR.
"""

import os
import logging

log = logging.getLogger("rental.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


# Priority: RENTAL_DATA_DIR env → project data/
def resolve_data_dir() -> str:
    """Find the data directory, honouring the RENTAL_DATA_DIR override."""
    env_dir = os.environ.get("RENTAL_DATA_DIR", "")
    if env_dir:
        return env_dir
    return _DEFAULT_DATA_DIR


DATA_DIR = resolve_data_dir()
LOG_DIR = os.path.join(DATA_DIR, "logs")
DB_PATH = os.path.join(DATA_DIR, "rental.db")


def validate_paths(data_dir: str = None) -> dict:
    """Check that the data directory exists and is writable.

    Returns:
        {"ok": bool, "errors": [str], "resolved": {name: path}}
    """
    data_dir = data_dir or DATA_DIR
    result = {"ok": True, "errors": [], "resolved": {"DATA_DIR": data_dir}}
    try:
        os.makedirs(data_dir, exist_ok=True)
        test_file = os.path.join(data_dir, ".write_test")
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"DATA_DIR not writable: {e}")
        result["ok"] = False
        log.warning("DATA_DIR %s not writable: %s", data_dir, e)
    return result
