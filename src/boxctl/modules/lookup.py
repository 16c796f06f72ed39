"""Function lookup: resolve manifest function names to callables.

The default lookup imports a module directory's ``__init__.py`` the first time
one of its functions is needed:

    # .box/modules/install/__init__.py
    def box_install(command_path, arguments):
        ...
        return 0
"""

from __future__ import annotations

import hashlib
import re
import sys
from collections.abc import Callable, Mapping
from importlib.util import module_from_spec, spec_from_file_location
from pathlib import Path
from types import ModuleType
from typing import Protocol

from boxctl.core.errors import FunctionNotFoundError, ModuleImportError

from .models import ModuleManifest

BoxFunction = Callable[[list[str], list[str]], object]

_NON_IDENT_RE = re.compile(r"\W")


def candidate_names(function: str) -> list[str]:
    """``Invoke-Box-Install`` is also looked up as ``invoke_box_install``."""
    snake = _NON_IDENT_RE.sub("_", function.replace("-", "_")).lower()
    return [function] if snake == function else [function, snake]


class FunctionLookup(Protocol):
    def resolve(self, module: ModuleManifest, function: str) -> BoxFunction: ...


class ModuleFunctionLookup:
    """Import module code from its directory and fetch functions by name."""

    def __init__(self, prefix: str = "boxctl_mod"):
        self.prefix = prefix
        self._modules: dict[Path, ModuleType] = {}
        self._failures: dict[Path, ModuleImportError] = {}

    def _module_name(self, directory: Path) -> str:
        digest = hashlib.sha1(str(directory).encode()).hexdigest()[:8]
        return f"{self.prefix}_{_NON_IDENT_RE.sub('_', directory.name)}_{digest}"

    def load(self, module: ModuleManifest) -> ModuleType:
        """Import the module directory once; a failed import is remembered and re-raised."""
        directory = module.directory.resolve()
        if directory in self._modules:
            return self._modules[directory]
        if directory in self._failures:
            raise self._failures[directory]
        try:
            code = self._import(module, directory)
        except ModuleImportError as e:
            self._failures[directory] = e
            raise
        self._modules[directory] = code
        return code

    def _import(self, module: ModuleManifest, directory: Path) -> ModuleType:
        init_file = directory / "__init__.py"
        if not init_file.is_file():
            raise ModuleImportError(module.name, f"no __init__.py in {directory}")

        module_name = self._module_name(directory)
        spec = spec_from_file_location(module_name, init_file)
        if spec is None or spec.loader is None:
            raise ModuleImportError(module.name, "could not create module spec")

        code = module_from_spec(spec)
        sys.modules[module_name] = code
        try:
            spec.loader.exec_module(code)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ModuleImportError(module.name, f"{type(e).__name__}: {e}") from e
        return code

    def resolve(self, module: ModuleManifest, function: str) -> BoxFunction:
        code = self.load(module)
        for name in candidate_names(function):
            fn = getattr(code, name, None)
            if callable(fn):
                return fn
        raise FunctionNotFoundError(function, f"not defined in module '{module.name}'")


class MappingLookup:
    """Resolve from a plain mapping; keys are ``module:function`` or ``function``."""

    def __init__(self, functions: Mapping[str, BoxFunction]):
        self.functions = dict(functions)

    def resolve(self, module: ModuleManifest, function: str) -> BoxFunction:
        for name in candidate_names(function):
            for key in (f"{module.name}:{name}", name):
                if key in self.functions:
                    return self.functions[key]
        raise FunctionNotFoundError(function, f"not registered for module '{module.name}'")
