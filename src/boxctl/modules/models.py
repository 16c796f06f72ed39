"""Module data models: ModuleManifest, CommandBinding, ModuleSource, RegisteredCommand."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

HANDLER = "handler"
DISPATCHER = "dispatcher"
BINDING_KINDS = (HANDLER, DISPATCHER)

# Conventional ranks; any positive int works, lower wins.
OVERRIDE_RANK = 1
CORE_RANK = 2

MANIFEST_NAME = "module.json"


@dataclass(frozen=True)
class CommandBinding:
    """A command bound to either a leaf handler or a routing dispatcher."""

    kind: str  # "handler" or "dispatcher"
    function: str
    synopsis: str = ""

    @property
    def is_dispatcher(self) -> bool:
        return self.kind == DISPATCHER


@dataclass(frozen=True)
class ModuleManifest:
    """Parsed from <root>/<module>/module.json."""

    name: str
    version: str
    path: Path
    description: str = ""
    commands: dict[str, CommandBinding] = field(default_factory=dict)
    hooks: dict[str, str] = field(default_factory=dict)
    problems: tuple = ()

    @property
    def directory(self) -> Path:
        return self.path.parent


@dataclass(frozen=True)
class ModuleSource:
    """A search root and its priority rank."""

    root: Path
    rank: int
    label: str = ""

    def __str__(self) -> str:
        return self.label or str(self.root)


@dataclass(frozen=True)
class LoadedModule:
    manifest: ModuleManifest
    source: ModuleSource


@dataclass(frozen=True)
class RegisteredCommand:
    """A binding plus where it came from."""

    name: str
    binding: CommandBinding
    module: ModuleManifest
    source: ModuleSource

    @property
    def function(self) -> str:
        return self.binding.function

    @property
    def rank(self) -> int:
        return self.source.rank

    def describe(self) -> str:
        return f"{self.module.name}:{self.binding.function} ({self.source})"
