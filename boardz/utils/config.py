# boardz/utils/config.py
import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import DB_PATH, config_dir

SETTINGS_NAME = "settings.json"

RECONCILE_MODES = ("atomic", "best_effort")
STORE_BACKENDS = ("sqlite", "memory")

_DEFAULTS: Dict[str, Any] = {
    "store": {
        "backend": "sqlite",
        "path": str(DB_PATH),
    },
    "cascade": {
        "reconcile_mode": "atomic",
    },
}


def settings_file() -> Path:
    return config_dir() / SETTINGS_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Defaults deep-merged with the JSON settings file; BOARDZ_DB overrides store.path."""
    path = path or settings_file()
    data = deepcopy(_DEFAULTS)
    if path.exists():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(loaded, dict):
                raise ValueError("settings root must be an object")
            data = _merge(_DEFAULTS, loaded)
        except (ValueError, OSError):
            logging.getLogger("boardz.config").warning("Ignoring unreadable settings file %s", path)
            data = deepcopy(_DEFAULTS)

    for section, defaults in _DEFAULTS.items():
        if not isinstance(data.get(section), dict):
            logging.getLogger("boardz.config").warning("Ignoring malformed settings section %r in %s", section, path)
            data[section] = deepcopy(defaults)

    env_db = os.environ.get("BOARDZ_DB")
    if env_db:
        data["store"]["path"] = env_db

    if data["store"].get("backend") not in STORE_BACKENDS:
        data["store"]["backend"] = _DEFAULTS["store"]["backend"]
    if data["cascade"].get("reconcile_mode") not in RECONCILE_MODES:
        data["cascade"]["reconcile_mode"] = _DEFAULTS["cascade"]["reconcile_mode"]
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")

# Rev 0.1.0
