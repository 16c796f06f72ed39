"""Error taxonomy for module loading, resolution, dispatch and hooks."""

from __future__ import annotations

EXIT_AMBIGUOUS = 125
EXIT_DISPATCH_FAILED = 126
EXIT_UNKNOWN_COMMAND = 127


class BoxError(Exception):
    """Base class for boxctl errors."""

    exit_code = 1


class ManifestLoadError(BoxError):
    """A module manifest could not be read or parsed."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MalformedBindingError(BoxError):
    """A single command (or hook) entry in a manifest is invalid."""

    def __init__(self, module: str, entry: str, reason: str):
        super().__init__(f"{module}: entry '{entry}' {reason}")
        self.module = module
        self.entry = entry
        self.reason = reason


class AmbiguousRegistrationError(BoxError):
    """Two modules of the same priority rank declare the same command."""

    exit_code = EXIT_AMBIGUOUS

    def __init__(self, command: str, rank: int, modules: list[str]):
        joined = ", ".join(modules)
        super().__init__(f"command '{command}' declared more than once at rank {rank} ({joined})")
        self.command = command
        self.rank = rank
        self.modules = modules


class UnknownCommandError(BoxError):
    exit_code = EXIT_UNKNOWN_COMMAND

    def __init__(self, command: str):
        super().__init__(f"unknown command: {command}" if command else "no command given")
        self.command = command


class InvocationError(BoxError):
    """A resolved function could not be invoked or failed while running."""

    exit_code = EXIT_DISPATCH_FAILED

    def __init__(self, function: str, reason: str):
        super().__init__(f"{function}: {reason}")
        self.function = function
        self.reason = reason


class FunctionNotFoundError(InvocationError):
    pass


class ModuleImportError(InvocationError):
    pass


class DispatchError(BoxError):
    """Invocation failed and no fallback rescued it."""

    exit_code = EXIT_DISPATCH_FAILED

    def __init__(
        self,
        command: str,
        error: InvocationError,
        fallback_error: InvocationError | None = None,
    ):
        message = f"command '{command}' failed: {error}"
        if fallback_error is not None:
            message += f" (fallback also failed: {fallback_error})"
        super().__init__(message)
        self.command = command
        self.error = error
        self.fallback_error = fallback_error


class HookError(BoxError):
    """One or more hooks failed; carries every failure of the run."""

    def __init__(self, hook: str, failures: list):
        details = "; ".join(f"{r.module}.{r.function}: {r.error or r.exit_code}" for r in failures)
        super().__init__(f"{len(failures)} '{hook}' hook(s) failed: {details}")
        self.hook = hook
        self.failures = failures


class ConfigError(BoxError):
    """A settings file could not be parsed."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
