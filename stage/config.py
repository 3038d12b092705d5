"""Stage settings: locate the config directory, read it, resolve storage paths.

Lookup order for the config directory when none is given:
``./config`` under the working directory, then ``config/`` beside the
source checkout. An installed copy has no checkout config, so it only
works from a directory that carries its own ``config/settings.yaml``.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

SETTINGS_FILE = "settings.yaml"
CHECKOUT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class ConfigNotFoundError(FileNotFoundError):
    """Raised when no settings.yaml can be located."""


def find_config_dir(config_dir: str | Path | None = None) -> Path:
    if config_dir is not None:
        candidates = [Path(config_dir)]
    else:
        candidates = [Path.cwd() / "config", CHECKOUT_CONFIG_DIR]

    for candidate in candidates:
        if (candidate / SETTINGS_FILE).is_file():
            return candidate.resolve()

    searched = ", ".join(str(c / SETTINGS_FILE) for c in candidates)
    raise ConfigNotFoundError(f"No {SETTINGS_FILE} found (looked in: {searched})")


def load_config(config_dir: str | Path | None = None) -> dict:
    """Read settings.yaml plus the optional .env next to it."""
    config_dir = find_config_dir(config_dir)
    load_dotenv(config_dir / ".env")

    with open(config_dir / SETTINGS_FILE, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    cfg["_config_dir"] = str(config_dir)
    cfg["_env"] = {
        "character_name": os.getenv("STAGE_CHARACTER_NAME", ""),
        "user_name": os.getenv("STAGE_USER_NAME", ""),
    }
    return cfg


def storage_path(cfg: dict, key: str, default: str) -> Path:
    """Resolve a ``storage`` entry; relative paths hang off the config dir's parent."""
    raw = (cfg.get("storage", {}) or {}).get(key) or default
    path = Path(raw)
    if path.is_absolute():
        return path
    base = Path(cfg.get("_config_dir") or Path.cwd() / "config").parent
    return base / path
