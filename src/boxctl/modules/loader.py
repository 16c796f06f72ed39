"""Manifest loader: load_manifest, discover_manifests."""

from __future__ import annotations

import json
from pathlib import Path

from boxctl.core.errors import MalformedBindingError, ManifestLoadError

from .models import BINDING_KINDS, MANIFEST_NAME, CommandBinding, ModuleManifest


class _DuplicateKey(ValueError):
    pass


def _reject_duplicates(pairs: list[tuple[str, object]]) -> dict:
    result: dict = {}
    for key, value in pairs:
        if key in result:
            raise _DuplicateKey(key)
        result[key] = value
    return result


def _read_json(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestLoadError(path, f"cannot read manifest: {e}") from e
    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicates)
    except _DuplicateKey as e:
        raise ManifestLoadError(path, f"duplicate key '{e}'") from e
    except json.JSONDecodeError as e:
        raise ManifestLoadError(path, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ManifestLoadError(path, "manifest must be a JSON object")
    return data


def _parse_binding(module: str, name: str, raw) -> CommandBinding:
    if not isinstance(raw, dict):
        raise MalformedBindingError(module, name, "must be an object")
    targets = [k for k in BINDING_KINDS if raw.get(k) is not None]
    if not targets:
        raise MalformedBindingError(module, name, "declares neither handler nor dispatcher")
    if len(targets) > 1:
        raise MalformedBindingError(module, name, "declares both handler and dispatcher")
    kind = targets[0]
    function = raw[kind]
    if not isinstance(function, str) or not function:
        raise MalformedBindingError(module, name, f"{kind} must be a function name")
    synopsis = raw.get("synopsis", "")
    return CommandBinding(kind=kind, function=function, synopsis=str(synopsis or ""))


def load_manifest(path: Path) -> ModuleManifest:
    """Parse a module.json file.

    Bad command or hook entries are skipped and recorded in ``problems``;
    anything that makes the whole file unusable raises ManifestLoadError.
    """
    path = Path(path)
    data = _read_json(path)

    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ManifestLoadError(path, "missing required field 'name'")
    version = data.get("version")
    if not isinstance(version, str) or not version:
        raise ManifestLoadError(path, "missing required field 'version'")
    raw_commands = data.get("commands")
    if not isinstance(raw_commands, dict):
        raise ManifestLoadError(path, "'commands' must be an object")
    raw_hooks = data.get("hooks") or {}
    if not isinstance(raw_hooks, dict):
        raise ManifestLoadError(path, "'hooks' must be an object")

    problems: list[MalformedBindingError] = []
    commands: dict[str, CommandBinding] = {}
    for cmd_name, raw in raw_commands.items():
        try:
            commands[cmd_name] = _parse_binding(name, cmd_name, raw)
        except MalformedBindingError as e:
            problems.append(e)

    hooks: dict[str, str] = {}
    for hook_name, function in raw_hooks.items():
        if isinstance(function, str) and function:
            hooks[hook_name] = function
        else:
            problems.append(MalformedBindingError(name, hook_name, "hook must name a function"))

    return ModuleManifest(
        name=name,
        version=version,
        path=path,
        description=str(data.get("description", "") or ""),
        commands=commands,
        hooks=hooks,
        problems=tuple(problems),
    )


def discover_manifests(root: Path) -> list[Path]:
    """Return module.json paths for each module directory under *root*."""
    root = Path(root)
    if not root.is_dir():
        return []
    found = []
    for subdir in sorted(root.iterdir()):
        if not subdir.is_dir() or subdir.name.startswith((".", "_")):
            continue
        manifest = subdir / MANIFEST_NAME
        if manifest.is_file():
            found.append(manifest)
    return found
