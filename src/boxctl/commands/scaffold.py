"""Box scaffolding: init_box and new_module."""

from __future__ import annotations

import json
import re
from pathlib import Path

from boxctl.core.config import BOX_DIR_NAME, MODULES_DIR_NAME
from boxctl.modules.models import MANIFEST_NAME

_DEFAULT_SETTINGS: dict = {
    "verbose": False,
    "loadHooks": True,
    "disabledModules": [],
}

_GITIGNORE = """\
settings.local.json
__pycache__/
"""

_MODULES_README = """\
# Box modules

Each directory here is a module: a `module.json` manifest and an `__init__.py`
holding the functions it names. `box module new <name>` writes a skeleton.

A command declared here replaces the built-in command of the same name. If the
replacement cannot be imported or raises, the built-in runs instead.
"""

_MODULE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

_MODULE_HEADER = '''\
"""{name} box module.

Functions are called with (command_path, arguments) and return an exit code.
"""
'''

_HANDLER_STUB = '''

def {function}(command_path, arguments):
    print("{command}: not implemented yet")
    return 0
'''


def function_name(command: str) -> str:
    return "box_" + re.sub(r"\W", "_", command.replace("-", "_")).lower()


def _box_files() -> dict[str, str]:
    """Files written under .box/, keyed by path relative to it."""
    return {
        "settings.json": json.dumps(_DEFAULT_SETTINGS, indent=2) + "\n",
        ".gitignore": _GITIGNORE,
        f"{MODULES_DIR_NAME}/README.md": _MODULES_README,
    }


def init_box(cwd: Path | None = None) -> list[str]:
    """Scaffold .box/ in *cwd*: settings, .gitignore and a documented modules/ dir.

    Existing files are left alone. Returns the paths created, relative to *cwd*.
    """
    cwd = cwd or Path.cwd()
    box_dir = cwd / BOX_DIR_NAME
    created: list[str] = []

    modules_dir = box_dir / MODULES_DIR_NAME
    if not modules_dir.is_dir():
        modules_dir.mkdir(parents=True)
        created.append(str(modules_dir.relative_to(cwd)) + "/")

    for relative, content in _box_files().items():
        path = box_dir / relative
        if path.exists():
            continue
        path.write_text(content)
        created.append(str(path.relative_to(cwd)))

    return created


def new_module(modules_dir: Path, name: str, commands: list[str] | None = None) -> list[Path]:
    """Write a module skeleton with one handler stub per command.

    Raises ValueError for an invalid name and FileExistsError when the module
    directory already exists.
    """
    if not _MODULE_NAME_RE.match(name):
        raise ValueError(f"invalid module name: {name!r}")
    commands = commands or [name]
    module_dir = modules_dir / name
    if module_dir.exists():
        raise FileExistsError(f"module already exists: {module_dir}")
    module_dir.mkdir(parents=True)

    manifest = {
        "name": name,
        "version": "0.1.0",
        "description": f"{name} box module",
        "commands": {
            cmd: {"handler": function_name(cmd), "synopsis": f"{cmd} (box override)"}
            for cmd in commands
        },
    }
    manifest_path = module_dir / MANIFEST_NAME
    manifest_path.write_text(json.dumps(manifest, indent=2) + "\n")

    source = _MODULE_HEADER.format(name=name)
    for cmd in commands:
        source += _HANDLER_STUB.format(function=function_name(cmd), command=cmd)
    init_path = module_dir / "__init__.py"
    init_path.write_text(source)

    return [manifest_path, init_path]
