"""
inventory_portal/core/paths.py - Centralized Configuration

Single source of truth for directories and environment-driven settings.
Every module imports from here instead of reading os.environ itself.

Env vars:
  PORTAL_DATA_DIR          - data directory (logs live under data/logs)
  MONGODB_URI              - MongoDB connection string
  MONGODB_DB               - database name
  SECRET_KEY               - Flask secret
  PDF_STRATEGY_TIMEOUT     - seconds allowed per rendering strategy
  CHROMIUM_EXECUTABLE_PATH - server-tuned chromium build for PDF rendering
  PUBLIC_BASE_URL          - base for shareable quotation links
"""

import os
import logging

log = logging.getLogger("portal.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


def _resolve_data_dir() -> str:
    """Explicit override first, then the project data/ folder."""
    env_dir = os.environ.get("PORTAL_DATA_DIR", "")
    if env_dir:
        return env_dir
    return _DEFAULT_DATA_DIR


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


DATA_DIR = _resolve_data_dir()
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Store ─────────────────────────────────────────────────────────────────────
MONGODB_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.environ.get("MONGODB_DB", "inventory_portal")

# ── Web ───────────────────────────────────────────────────────────────────────
SECRET_KEY = os.environ.get("SECRET_KEY", "inventory-portal-dev")
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:5000").rstrip("/")

# ── PDF rendering ─────────────────────────────────────────────────────────────
PDF_STRATEGY_TIMEOUT = _env_float("PDF_STRATEGY_TIMEOUT", 45.0)
CHROMIUM_EXECUTABLE_PATH = os.environ.get("CHROMIUM_EXECUTABLE_PATH", "")


def validate_paths() -> dict:
    """Runtime validation - call at app startup to catch config issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: value}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}
    result["resolved"] = {
        "PROJECT_ROOT": PROJECT_ROOT,
        "DATA_DIR": DATA_DIR,
        "LOG_DIR": LOG_DIR,
        "MONGODB_DB": MONGODB_DB,
        "PDF_STRATEGY_TIMEOUT": str(PDF_STRATEGY_TIMEOUT),
    }

    try:
        os.makedirs(DATA_DIR, exist_ok=True)
        test_file = os.path.join(DATA_DIR, ".write_test")
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"DATA_DIR not writable: {e}")
        result["ok"] = False

    if SECRET_KEY == "inventory-portal-dev" and os.environ.get("FLASK_ENV") == "production":
        result["warnings"].append("SECRET_KEY is the development default")
    if CHROMIUM_EXECUTABLE_PATH and not os.path.exists(CHROMIUM_EXECUTABLE_PATH):
        result["warnings"].append(
            f"CHROMIUM_EXECUTABLE_PATH not found: {CHROMIUM_EXECUTABLE_PATH}")
    if PDF_STRATEGY_TIMEOUT <= 0:
        result["errors"].append("PDF_STRATEGY_TIMEOUT must be positive")
        result["ok"] = False

    return result
