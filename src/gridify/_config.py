from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

from gridify.modeling.csg import BACKENDS
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "GRIDIFY_CONFIG_DIR"
CONFIG_NAME = "gridify.cfg"
DEFAULT_CONFIG: Dict[str, Any] = {
    "_comment": "backend: manifold (default) or vtk. Tolerances are in millimeters.",
    "backend": "manifold",
    "tolerances": asdict(DEFAULT_TOLERANCES),
}


@dataclass(frozen=True)
class UserSettings:
    """Resolved settings from gridify.cfg."""

    backend: str
    tolerances: Tolerances


def config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override) if override else Path.home() / ".gridify"


def config_file() -> Path:
    return config_dir() / CONFIG_NAME


def ensure_user_config() -> None:
    """Ensure gridify.cfg exists with sane defaults."""

    try:
        config_dir().mkdir(parents=True, exist_ok=True)
    except OSError:
        return

    path = config_file()
    if path.exists():
        return

    try:
        path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n")
    except OSError:
        return


def _load_user_config() -> Dict[str, Any]:
    ensure_user_config()
    try:
        loaded = json.loads(config_file().read_text())
    except (OSError, json.JSONDecodeError):
        return dict(DEFAULT_CONFIG)
    return loaded if isinstance(loaded, dict) else dict(DEFAULT_CONFIG)


def _resolve_tolerances(raw: Any) -> Tolerances:
    if not isinstance(raw, dict):
        return DEFAULT_TOLERANCES
    known = {key: raw[key] for key in asdict(DEFAULT_TOLERANCES) if key in raw}
    try:
        return Tolerances(**{**asdict(DEFAULT_TOLERANCES), **known})
    except (TypeError, ValueError) as exc:
        logger.warning("ignoring invalid tolerances in %s: %s", config_file(), exc)
        return DEFAULT_TOLERANCES


def get_user_settings() -> UserSettings:
    """Return the configured backend and tolerances, falling back to defaults."""

    raw_config = _load_user_config()
    backend = str(raw_config.get("backend", DEFAULT_CONFIG["backend"])).strip().lower()
    if backend not in BACKENDS:
        backend = DEFAULT_CONFIG["backend"]
    return UserSettings(backend=backend, tolerances=_resolve_tolerances(raw_config.get("tolerances")))
