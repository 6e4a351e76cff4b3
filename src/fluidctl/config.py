"""Configuration loading: .fluidctl.toml (CWD) > ~/.config/fluidstack/config.toml > defaults.

OAuth endpoints and the token location are fixed in ``constants`` and are
deliberately not configurable here.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    DEFAULT_API_URL,
    DEFAULT_OUTPUT,
    GLOBAL_CONFIG_PATH,
    LOCAL_CONFIG_FILE,
)


@dataclass
class FluidctlConfig:
    """Resolved configuration."""

    url: str = DEFAULT_API_URL
    output: str = DEFAULT_OUTPUT
    project: str | None = None


def _read_toml(path: Path) -> dict:
    """Read a TOML file, returning empty dict if missing/invalid."""
    if not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError):
        return {}


def load_config(
    global_path: Path | None = None,
    local_path: Path | None = None,
) -> FluidctlConfig:
    """Load config by merging env > local > global > defaults."""
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    local_cfg = _read_toml(local_path or Path.cwd() / LOCAL_CONFIG_FILE)

    defaults = {**global_cfg.get("defaults", {}), **local_cfg.get("defaults", {})}

    # Local config may also set the project at top level
    if "project" in local_cfg:
        defaults["project"] = local_cfg["project"]

    cfg = FluidctlConfig()
    cfg.url = os.getenv("FLUIDCTL_URL") or defaults.get("url", cfg.url)
    cfg.output = os.getenv("FLUIDCTL_FORMAT") or defaults.get("format", cfg.output)
    cfg.project = os.getenv("FLUIDCTL_PROJECT") or defaults.get("project", cfg.project)
    return cfg
