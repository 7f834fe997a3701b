"""Settings resolution.

Settings come from built-in defaults, an optional ``.superrepo-sync.yaml``
at the superrepo root, then environment variables. Nothing is written back.

Environment variables:
    SUPERREPO_SYNC_REMOTE: remote whose HEAD names the default branch (default: origin)
    SUPERREPO_SYNC_FALLBACK_BRANCH: branch used when the remote HEAD is unknown (default: main)
    SUPERREPO_SYNC_ASSUME_YES: answer confirmations yes without prompting (default: false)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

SETTINGS_FILENAME = ".superrepo-sync.yaml"

_ENV_VARS = {
    "remote": "SUPERREPO_SYNC_REMOTE",
    "fallback_branch": "SUPERREPO_SYNC_FALLBACK_BRANCH",
    "assume_yes": "SUPERREPO_SYNC_ASSUME_YES",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class SyncSettings:
    remote: str = "origin"
    fallback_branch: str = "main"
    confirm_default: bool = True
    assume_yes: bool = False

    def __post_init__(self):
        for name in ("remote", "fallback_branch"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Invalid setting {name!r}: expected a non-empty string")
        for name in ("confirm_default", "assume_yes"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"Invalid setting {name!r}: expected true or false")


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Invalid setting {key!r}: {raw!r} is not a boolean")


def read_settings_file(path: Path | str) -> dict:
    """Read a settings YAML file.

    Raises:
        ValueError: If the file is not a YAML mapping or names unknown keys.
        yaml.YAMLError: If the YAML is malformed.
    """
    settings_path = Path(path)
    with open(settings_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{settings_path} is not a YAML mapping")

    known = {f.name for f in fields(SyncSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown setting(s) in {settings_path}: {', '.join(unknown)}")
    return data


def load_settings(root: Path | str | None = None, environ: dict | None = None) -> SyncSettings:
    """Resolve settings for the superrepo at ``root``."""
    env = os.environ if environ is None else environ
    values: dict = {}

    if root is not None:
        settings_file = Path(root) / SETTINGS_FILENAME
        if settings_file.is_file():
            values.update(read_settings_file(settings_file))

    for key, var in _ENV_VARS.items():
        raw = env.get(var)
        if raw is None:
            continue
        values[key] = _parse_bool(key, raw) if key == "assume_yes" else raw.strip()

    return SyncSettings(**values)
