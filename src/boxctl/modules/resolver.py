"""Module resolver: build_registry merges search roots into a read-only Registry."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from itertools import groupby
from types import MappingProxyType

from boxctl.core.errors import AmbiguousRegistrationError, BoxError, ManifestLoadError

from .loader import discover_manifests, load_manifest
from .models import LoadedModule, ModuleSource, RegisteredCommand


@dataclass(frozen=True)
class RegistryEntry:
    """The winning binding for a command and, when overridden, the next tier's."""

    primary: RegisteredCommand
    fallback: RegisteredCommand | None = None

    @property
    def overridden(self) -> bool:
        return self.fallback is not None


@dataclass(frozen=True)
class Registry:
    commands: Mapping[str, RegistryEntry] = field(default_factory=lambda: MappingProxyType({}))
    modules: tuple[LoadedModule, ...] = ()
    ambiguous: Mapping[str, AmbiguousRegistrationError] = field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: tuple[BoxError, ...] = ()
    excluded: tuple[str, ...] = ()

    def get(self, name: str) -> RegistryEntry | None:
        return self.commands.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.commands

    def names(self) -> list[str]:
        return sorted(self.commands)

    @property
    def warnings(self) -> list[str]:
        return [str(e) for e in self.errors]

    def modules_with_hook(self, hook: str) -> list[LoadedModule]:
        return [m for m in self.modules if hook in m.manifest.hooks]


def _load_source(
    source: ModuleSource,
    exclude: set[str],
    errors: list[BoxError],
    skipped: list[str],
) -> list[LoadedModule]:
    loaded = []
    for path in discover_manifests(source.root):
        try:
            manifest = load_manifest(path)
        except ManifestLoadError as e:
            errors.append(e)
            continue
        errors.extend(manifest.problems)
        if manifest.name in exclude:
            skipped.append(manifest.name)
            continue
        loaded.append(LoadedModule(manifest=manifest, source=source))
    return loaded


def build_registry(
    sources: Iterable[ModuleSource], exclude: Iterable[str] = ()
) -> Registry:
    """Scan *sources* in rank order and resolve every declared command.

    Within one rank a command name must be unique; a clash makes the command
    unresolvable and is reported, never silently resolved. Across ranks the
    lowest rank wins and the next rank's binding is kept as its fallback.
    """
    ordered = sorted(sources, key=lambda s: s.rank)
    excluded = set(exclude)
    errors: list[BoxError] = []
    modules: list[LoadedModule] = []
    skipped: list[str] = []
    # command name -> [(rank, [candidates])] in ascending rank order
    tiers: dict[str, list[tuple[int, list[RegisteredCommand]]]] = {}

    for rank, group in groupby(ordered, key=lambda s: s.rank):
        per_rank: dict[str, list[RegisteredCommand]] = {}
        for source in group:
            for module in _load_source(source, excluded, errors, skipped):
                modules.append(module)
                for name, binding in module.manifest.commands.items():
                    per_rank.setdefault(name, []).append(
                        RegisteredCommand(
                            name=name, binding=binding, module=module.manifest, source=source
                        )
                    )
        for name, candidates in per_rank.items():
            tiers.setdefault(name, []).append((rank, candidates))

    commands: dict[str, RegistryEntry] = {}
    ambiguous: dict[str, AmbiguousRegistrationError] = {}
    for name, by_rank in tiers.items():
        resolved: list[RegisteredCommand | None] = []
        for rank, candidates in by_rank:
            if len(candidates) > 1:
                err = AmbiguousRegistrationError(
                    name, rank, [c.module.name for c in candidates]
                )
                errors.append(err)
                if not resolved:
                    ambiguous[name] = err
                resolved.append(None)
            else:
                resolved.append(candidates[0])
        if name in ambiguous:
            continue
        # Fallback is bounded to the very next tier.
        fallback = resolved[1] if len(resolved) > 1 else None
        commands[name] = RegistryEntry(primary=resolved[0], fallback=fallback)

    return Registry(
        commands=MappingProxyType(commands),
        modules=tuple(modules),
        ambiguous=MappingProxyType(ambiguous),
        errors=tuple(errors),
        excluded=tuple(skipped),
    )
