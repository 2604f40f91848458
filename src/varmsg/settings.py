"""Static service settings for varmsg.

Message definitions live in their own JSON files (see -f/-d). This module
only covers the service itself: where the variable store is, how often the
scheduler ticks, and how logging is set up. Values come from an optional
JSON settings file and the environment (a .env file is honoured).
"""

import json
import os

from dotenv import load_dotenv

load_dotenv()

# Service settings file; missing means defaults everywhere.
SETTINGS_PATH = os.getenv("VARMSG_SETTINGS", "varmsg.json")


def _load_json_settings(path: str) -> dict:
    """Load the settings file, or return an empty dict if there is none."""

    if not os.path.exists(path):
        return {}

    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


_SETTINGS = _load_json_settings(SETTINGS_PATH)

# Variable store database. The environment wins over the settings file so
# deployments can point at a shared store without editing JSON.
_store = _SETTINGS.get("store", {})
STORE_PATH = os.getenv("VARMSG_STORE") or _store.get("path", "varstore.db")

# Scheduler pulse period in seconds. Message intervals count these pulses.
_scheduler = _SETTINGS.get("scheduler", {})
TICK_SECONDS = float(_scheduler.get("tick_seconds", 1))

# Logging configuration (optional). Logs go to stderr or a file, never to
# stdout, which is reserved for stdout message output.
LOGGING = _SETTINGS.get("logging", {})
