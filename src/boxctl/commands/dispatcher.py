"""Command dispatch: route one invocation through the registry with one-level fallback."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from boxctl.core.errors import (
    BoxError,
    DispatchError,
    InvocationError,
    UnknownCommandError,
)
from boxctl.modules.lookup import FunctionLookup
from boxctl.modules.models import RegisteredCommand
from boxctl.modules.resolver import Registry, RegistryEntry


@dataclass
class Outcome:
    """Result of dispatching one command line."""

    exit_code: int = 0
    error: BoxError | None = None
    command: RegisteredCommand | None = None
    fell_back: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.error is None


def exit_code_of(function: str, result: object) -> int:
    if result is None:
        return 0
    if isinstance(result, bool):
        return 0 if result else 1
    if isinstance(result, int):
        return result
    raise InvocationError(function, f"returned unsupported outcome {type(result).__name__}")


def system_exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def invoke(
    command: RegisteredCommand,
    command_path: Sequence[str],
    arguments: Sequence[str],
    lookup: FunctionLookup,
) -> int:
    """Resolve and call one bound function; return its exit code.

    Handlers receive the path below their own name, dispatchers receive the
    whole path. Anything raised while resolving or running the function is an
    InvocationError; a SystemExit from the function is a deliberate exit and is
    returned as a code.
    """
    path = list(command_path) if command.binding.is_dispatcher else list(command_path[1:])
    try:
        fn = lookup.resolve(command.module, command.function)
        result = fn(path, list(arguments))
    except SystemExit as e:
        return system_exit_code(e.code)
    except InvocationError:
        raise
    except Exception as e:
        raise InvocationError(command.function, f"{type(e).__name__}: {e}") from e
    return exit_code_of(command.function, result)


def _run(
    command: RegisteredCommand,
    command_path: list[str],
    arguments: list[str],
    lookup: FunctionLookup,
) -> Outcome:
    code = invoke(command, command_path, arguments, lookup)
    return Outcome(exit_code=code, command=command)


def dispatch(
    command_path: Sequence[str],
    arguments: Sequence[str],
    registry: Registry,
    lookup: FunctionLookup,
    on_fallback: Callable[[RegistryEntry, InvocationError], None] | None = None,
) -> Outcome:
    """Route ``command_path[0]`` to its binding and run it.

    An overridden command whose override fails to resolve or raises is retried
    exactly once with the next tier's binding. A clean non-zero exit from the
    override is returned as is.
    """
    path = list(command_path)
    args = list(arguments)
    name = path[0] if path else ""

    if name in registry.ambiguous:
        err = registry.ambiguous[name]
        return Outcome(exit_code=err.exit_code, error=err)

    entry = registry.get(name)
    if entry is None:
        unknown = UnknownCommandError(name)
        return Outcome(exit_code=unknown.exit_code, error=unknown)

    try:
        return _run(entry.primary, path, args, lookup)
    except InvocationError as e:
        failure = e

    if entry.fallback is None:
        err = DispatchError(name, failure)
        return Outcome(exit_code=err.exit_code, error=err, command=entry.primary)

    if on_fallback is not None:
        on_fallback(entry, failure)
    try:
        outcome = _run(entry.fallback, path, args, lookup)
    except InvocationError as fallback_failure:
        err = DispatchError(name, failure, fallback_failure)
        return Outcome(exit_code=err.exit_code, error=err, command=entry.primary, fell_back=True)
    outcome.fell_back = True
    return outcome
