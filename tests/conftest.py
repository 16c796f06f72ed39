import json
from pathlib import Path

import pytest


def _write_module(root: Path, dirname: str, manifest: dict, source: str | None = None) -> Path:
    module_dir = root / dirname
    module_dir.mkdir(parents=True, exist_ok=True)
    path = module_dir / "module.json"
    path.write_text(json.dumps(manifest, indent=2))
    if source is not None:
        (module_dir / "__init__.py").write_text(source)
    return path


@pytest.fixture
def write_module():
    """Write <root>/<dirname>/module.json (and optional __init__.py)."""
    return _write_module


@pytest.fixture
def roots(tmp_path):
    """(override_root, core_root) under tmp_path."""
    override = tmp_path / "box" / ".box" / "modules"
    core = tmp_path / "core"
    override.mkdir(parents=True)
    core.mkdir()
    return override, core
