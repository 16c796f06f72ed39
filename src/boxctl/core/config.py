"""Configuration: env, box paths, search roots."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from boxctl.core.errors import ConfigError
from boxctl.modules.models import CORE_RANK, OVERRIDE_RANK, ModuleSource

BOX_DIR_NAME = ".box"
MODULES_DIR_NAME = "modules"

# Modules shipped with the package.
CORE_MODULES_DIR = Path(__file__).resolve().parent.parent / "builtins"

_TRUTHY = ("1", "true", "yes", "on")


def find_box_root(start: Path) -> Path | None:
    """Return the nearest directory at or above *start* holding .box/."""
    start = start.resolve()
    for d in (start, *start.parents):
        if (d / BOX_DIR_NAME).is_dir():
            return d
    return None


@dataclass
class Config:
    cwd: Path = field(default_factory=Path.cwd)
    box_dir: Path | None = None  # explicit box root; None = search upward from cwd
    core_dir: Path = CORE_MODULES_DIR
    verbose: bool = False
    load_hooks: bool = True
    disabled_modules: list[str] = field(default_factory=list)

    @property
    def box_root(self) -> Path:
        if self.box_dir is not None:
            return self.box_dir
        return find_box_root(self.cwd) or self.cwd

    @property
    def box_config_dir(self) -> Path:
        return self.box_root / BOX_DIR_NAME

    @property
    def override_dir(self) -> Path:
        return self.box_config_dir / MODULES_DIR_NAME

    def sources(self) -> list[ModuleSource]:
        return [
            ModuleSource(self.override_dir, OVERRIDE_RANK, label="box"),
            ModuleSource(self.core_dir, CORE_RANK, label="core"),
        ]


def _apply_settings(config: Config, path: Path) -> None:
    """Apply a single settings.json file to config."""
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(path, f"invalid settings: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(path, "settings must be a JSON object")

    if "verbose" in data:
        config.verbose = bool(data["verbose"])
    if "loadHooks" in data:
        config.load_hooks = bool(data["loadHooks"])
    if isinstance(data.get("disabledModules"), list):
        for name in data["disabledModules"]:
            if isinstance(name, str) and name not in config.disabled_modules:
                config.disabled_modules.append(name)


def load_config(
    box_dir: str | Path | None = None,
    core_dir: str | Path | None = None,
    verbose: bool = False,
    cwd: Path | None = None,
) -> Config:
    """Load config with priority: CLI args > env > .env > settings.json > defaults."""
    load_dotenv()

    config = Config(cwd=cwd or Path.cwd())

    if box_dir is not None:
        config.box_dir = Path(box_dir).resolve()
    elif env_box := os.getenv("BOX_DIR"):
        config.box_dir = Path(env_box).resolve()

    if core_dir is not None:
        config.core_dir = Path(core_dir).resolve()
    elif env_core := os.getenv("BOX_CORE_DIR"):
        config.core_dir = Path(env_core).resolve()

    _apply_settings(config, config.box_config_dir / "settings.json")
    _apply_settings(config, config.box_config_dir / "settings.local.json")

    if env_verbose := os.getenv("BOX_VERBOSE"):
        config.verbose = env_verbose.strip().lower() in _TRUTHY

    if verbose:
        config.verbose = True

    return config
