"""
YAML → CompositionPolicy loader.

Loads policy overrides from composer.yaml (bundled with the package) and
optionally merges user overrides from ~/.routine-composer/composer.yaml.

Usage:
    from routine_composer.core.engine.config_loader import load_policy
    policy = load_policy()
    rest = policy.group_rest_seconds

If the bundled YAML cannot be parsed, the Python defaults from config.py are
used.  If the user override file has parse errors or invalid values, a
warning is logged and the file is ignored.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import DEFAULT_POLICY, CompositionPolicy, policy_from_dict

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} when it is unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Ignoring unreadable config {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled composer.yaml, or None if not found."""
    # config_loader.py lives at src/routine_composer/core/engine/
    candidate = Path(__file__).parent.parent.parent / "composer.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.routine-composer/composer.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".routine-composer" / "composer.yaml"
    return p if p.exists() else None


def load_model_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge the raw configuration mapping.

    Load order (later overrides earlier):
    1. Bundled src/routine_composer/composer.yaml
    2. User override (``user_path`` or ~/.routine-composer/composer.yaml)

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_policy(user_path: Path | None = None) -> CompositionPolicy:
    """
    Return the effective CompositionPolicy.

    Reads the ``policy`` section of the merged YAML configuration.  Invalid
    values fall back to the defaults with a logged warning rather than
    stopping the editor from starting.
    """
    section = load_model_config(user_path).get("policy", {})
    if not isinstance(section, dict) or not section:
        return DEFAULT_POLICY
    try:
        return policy_from_dict(section)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Invalid policy configuration ({exc}); using defaults")
        return DEFAULT_POLICY
