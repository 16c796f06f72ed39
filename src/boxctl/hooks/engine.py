"""Hook execution engine: run_hooks, raise_for_hooks, HookResult."""

from __future__ import annotations

from dataclasses import dataclass

from boxctl.commands.dispatcher import exit_code_of, system_exit_code
from boxctl.core.errors import BoxError, HookError, InvocationError
from boxctl.modules.lookup import FunctionLookup
from boxctl.modules.resolver import Registry

ON_LOAD = "on_load"


@dataclass
class HookResult:
    """Result of one module's hook function."""

    hook: str
    module: str
    function: str
    exit_code: int = 0
    error: BoxError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0


def run_hooks(hook: str, registry: Registry, lookup: FunctionLookup) -> list[HookResult]:
    """Call every module's *hook* function in discovery order.

    A failing hook never stops the ones after it.
    """
    results: list[HookResult] = []
    for loaded in registry.modules_with_hook(hook):
        manifest = loaded.manifest
        function = manifest.hooks[hook]
        result = HookResult(hook=hook, module=manifest.name, function=function)
        try:
            fn = lookup.resolve(manifest, function)
            result.exit_code = exit_code_of(function, fn([hook], []))
        except SystemExit as e:
            result.exit_code = system_exit_code(e.code)
        except BoxError as e:
            result.error = e
            result.exit_code = e.exit_code
        except Exception as e:
            result.error = InvocationError(function, f"{type(e).__name__}: {e}")
            result.exit_code = result.error.exit_code
        results.append(result)
    return results


def raise_for_hooks(results: list[HookResult]) -> None:
    """Raise one HookError covering every failed hook, if any failed."""
    failures = [r for r in results if not r.ok]
    if failures:
        raise HookError(failures[0].hook, failures)
