"""Hooks: lifecycle functions declared in module manifests."""

from .engine import ON_LOAD, HookResult, raise_for_hooks, run_hooks

__all__ = [
    "ON_LOAD",
    "HookResult",
    "raise_for_hooks",
    "run_hooks",
]
