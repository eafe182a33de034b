"""Static configuration for telewatch.

Tunables (windows, timeouts, W2G endpoints, storage, logging) live in an
optional config.json at the project root. Secrets stay in the environment
(.env) and are read by client.py and app.py.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema; missing file -> defaults."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Attribution engine windows.
# - PROMPT_GRACE_SECONDS: how long an invitation ("send me a link") stays open
# - RECENCY_WINDOW_SECONDS: how long the last message may be reused by a mention
# - USED_IDS_CAPACITY: consumed message ids remembered per chat
_engine = _CONFIG.get("engine", {})
PROMPT_GRACE_SECONDS = float(_engine.get("prompt_grace_seconds", 60))
RECENCY_WINDOW_SECONDS = float(_engine.get("recency_window_seconds", 30))
USED_IDS_CAPACITY = int(_engine.get("used_ids_capacity", 20))

# Network calls carry their own timeout, separate from the per-message deadline.
_timeouts = _CONFIG.get("timeouts", {})
CALL_TIMEOUT_SECONDS = float(_timeouts.get("call_seconds", 5))
SCRAPE_TIMEOUT_SECONDS = float(_timeouts.get("scrape_seconds", 3))
HANDLER_TIMEOUT_SECONDS = float(_timeouts.get("handler_seconds", 30))

_w2g = _CONFIG.get("w2g", {})
W2G_API_BASE = _w2g.get("api_base", "https://api.w2g.tv")
W2G_ROOM_URL_BASE = _w2g.get("room_url_base", "https://w2g.tv/rooms")

# Where to store the SQLite database (chat -> room mapping).
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "telewatch.db"))

# Logging configuration (optional).
LOGGING = _CONFIG.get(
    "logging",
    {
        "enabled": True,
        "level": "INFO",
        "redact": {
            "enabled": True,
            "patterns": ["TELEGRAM_BOT_TOKEN", "W2G_API_KEY", "API_HASH"],
        },
    },
)
