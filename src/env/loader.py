from __future__ import annotations

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from voxel_nav.nav.movement_config import MovementsConfig

from .schema import PathfinderProfile, PathfinderSettings

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG = CONFIG_ROOT / "pathfinder.yaml"

# Overrides the `profile:` key of the config file.
PROFILE_ENV_VAR = "VOXEL_NAV_PROFILE"

# Movement config fields that YAML cannot express.
_CALLABLE_FIELDS = ("exclusion_areas_step", "exclusion_areas_break", "exclusion_areas_place")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(
    cfg: Dict[str, Any], override: Optional[str] = None
) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = override or cfg.get("profile")
    if not profile_name:
        raise ValueError("pathfinder.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("pathfinder.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in pathfinder.yaml profiles.")
    return profile_name, profiles[profile_name] or {}


def _build(cls, raw: Dict[str, Any], section: str, skip: Tuple[str, ...] = ()):
    """Instantiate a config dataclass from a mapping, rejecting unknown keys."""
    known = {f.name: f for f in fields(cls) if f.name not in skip}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(unknown)}")

    defaults = cls()
    kwargs: Dict[str, Any] = {}
    for name, value in raw.items():
        default = getattr(defaults, name)
        if isinstance(default, set):
            value = set(value or ())
        elif isinstance(default, list):
            value = list(value or ())
        elif isinstance(value, str) and value.lower() in (".inf", "inf"):
            value = float("inf")
        kwargs[name] = value
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_pathfinder_profile(
    path: Optional[Path] = None,
    profile: Optional[str] = None,
) -> PathfinderProfile:
    """
    Main entry point: returns the resolved PathfinderProfile.

    Selection order for the profile name: the `profile` argument, then
    the VOXEL_NAV_PROFILE environment variable, then the file's
    `profile:` key.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG
    cfg = _load_yaml(cfg_path)

    override = profile or os.getenv(PROFILE_ENV_VAR) or None
    name, raw = _select_profile(cfg, override)

    settings = _build(PathfinderSettings, raw.get("pathfinder") or {}, "pathfinder")
    movements = _build(
        MovementsConfig, raw.get("movements") or {}, "movements", skip=_CALLABLE_FIELDS
    )
    log.debug("loaded pathfinder profile %s from %s", name, cfg_path)
    return PathfinderProfile(name=name, settings=settings, movements=movements)
