"""
quotebuilder/core/paths.py — Centralized Path Configuration

Single source of truth for all directory paths across the application.
Every module imports from here instead of computing its own DATA_DIR.

QUOTEBUILDER_DATA_DIR points drafts, logs and generated PDFs at a persistent
location; without it the project-local data/ folder is used.
"""

import os
import json
import logging

log = logging.getLogger("quotebuilder.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_LOCAL_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


# ── Resolve DATA_DIR ─────────────────────────────────────────────────────────
# Priority: QUOTEBUILDER_DATA_DIR env → project data/
def _resolve_data_dir() -> str:
    """Find the data directory, creating it when needed."""
    env_dir = os.environ.get("QUOTEBUILDER_DATA_DIR", "")
    if env_dir:
        return env_dir
    return _LOCAL_DATA_DIR

DATA_DIR = _resolve_data_dir()

# ── Core Directories ─────────────────────────────────────────────────────────
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
CONFIG_PATH = os.environ.get("QUOTEBUILDER_CONFIG",
                             os.path.join(PROJECT_ROOT, "quotebuilder_config.json"))
DRAFT_PATH = os.path.join(DATA_DIR, "quotation_draft.json")

for _d in [DATA_DIR, OUTPUT_DIR]:
    os.makedirs(_d, exist_ok=True)


def load_config_file(path: str = None) -> dict:
    """Read the optional JSON config file. Missing or unreadable → {}."""
    path = path or CONFIG_PATH
    if not os.path.exists(path):
        return {}
    try:
        with open(path) as f:
            data = json.load(f)
    except (ValueError, OSError) as e:
        log.warning("Config file %s unreadable: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def validate_paths() -> dict:
    """Runtime validation — call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, True),
        "CONFIG_PATH": (CONFIG_PATH, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    test_file = os.path.join(DATA_DIR, ".write_test")
    try:
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"DATA_DIR not writable: {e}")
        result["ok"] = False

    return result
