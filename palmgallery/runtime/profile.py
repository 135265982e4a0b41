"""
User profile: per-field overrides on top of a preset, stored as JSON.

    {
      "gates": {"open_palm": {"threshold": 0.55, "hold_frames": 10}},
      "dwell": {"threshold_s": 1.0},
      "navigation": {"swipe_dx": 0.025}
    }

Unknown groups/fields and badly typed values are logged and skipped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Optional

from palmgallery.core.config import Preset

logger = logging.getLogger(__name__)


def _profile_path() -> Path:
    p = Path.home() / ".config" / "palmgallery"
    p.mkdir(parents=True, exist_ok=True)
    return p / "profile.json"


def load_profile(path: str | Path | None = None) -> Optional[dict]:
    p = Path(path).expanduser() if path else _profile_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text())
    except ValueError as e:
        logger.warning("Ignoring unreadable profile %s: %s", p, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring profile %s: top level must be an object", p)
        return None
    return data


def save_profile(preset: Preset, path: str | Path | None = None) -> Path:
    p = Path(path).expanduser() if path else _profile_path()
    data = asdict(preset)
    data.pop("name", None)
    p.write_text(json.dumps(data, indent=2))
    return p


def _coerce(current: Any, value: Any, where: str) -> Any:
    if is_dataclass(current):
        if not isinstance(value, dict):
            raise TypeError(f"{where}: expected an object")
        return _merge(current, value, where)
    if isinstance(current, bool) or isinstance(value, bool):
        if not isinstance(value, bool) or not isinstance(current, bool):
            raise TypeError(f"{where}: expected bool")
        return value
    if isinstance(current, int):
        if not isinstance(value, int):
            raise TypeError(f"{where}: expected int")
        return value
    if isinstance(current, float):
        if not isinstance(value, (int, float)):
            raise TypeError(f"{where}: expected number")
        return float(value)
    if isinstance(current, tuple):
        if not isinstance(value, list) or len(value) != len(current):
            raise TypeError(f"{where}: expected list of {len(current)}")
        return tuple(float(v) for v in value)
    raise TypeError(f"{where}: not overridable")


def _merge(obj: Any, overrides: dict, where: str = "") -> Any:
    known = {f.name for f in fields(obj)}
    changes = {}
    for key, value in overrides.items():
        path = f"{where}.{key}" if where else key
        if key not in known or key == "name":
            logger.warning("Profile: unknown setting '%s'", path)
            continue
        try:
            changes[key] = _coerce(getattr(obj, key), value, path)
        except TypeError as e:
            logger.warning("Profile: %s", e)
    return replace(obj, **changes) if changes else obj


def apply_profile(preset: Preset, profile: Optional[dict]) -> Preset:
    if not profile:
        return preset
    out = _merge(preset, profile)
    logger.info("Applied profile overrides to preset %s", preset.name.value)
    return out
