"""Modules: manifest loading, search-root resolution, function lookup."""

from .loader import discover_manifests, load_manifest
from .lookup import FunctionLookup, MappingLookup, ModuleFunctionLookup, candidate_names
from .models import (
    CORE_RANK,
    DISPATCHER,
    HANDLER,
    OVERRIDE_RANK,
    CommandBinding,
    LoadedModule,
    ModuleManifest,
    ModuleSource,
    RegisteredCommand,
)
from .resolver import Registry, RegistryEntry, build_registry

__all__ = [
    "CORE_RANK",
    "DISPATCHER",
    "HANDLER",
    "OVERRIDE_RANK",
    "CommandBinding",
    "FunctionLookup",
    "LoadedModule",
    "MappingLookup",
    "ModuleFunctionLookup",
    "ModuleManifest",
    "ModuleSource",
    "RegisteredCommand",
    "Registry",
    "RegistryEntry",
    "build_registry",
    "candidate_names",
    "discover_manifests",
    "load_manifest",
]
