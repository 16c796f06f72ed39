"""Path helpers and command-line tokenizing."""

from __future__ import annotations

from pathlib import Path


def split_invocation(tokens: list[str] | tuple[str, ...]) -> tuple[list[str], list[str]]:
    """Split CLI tokens into (command_path, arguments).

    The path ends at the first option-like token or at ``--``; a bare ``--``
    is dropped.
    """
    path: list[str] = []
    rest = list(tokens)
    while rest:
        tok = rest[0]
        if tok == "--":
            rest.pop(0)
            break
        if tok.startswith("-"):
            break
        path.append(rest.pop(0))
    return path, rest


def short_cwd(p: Path) -> str:
    """Return path relative to home directory, using ~ prefix."""
    try:
        rel = p.relative_to(Path.home())
        return f"~/{rel}" if str(rel) != "." else "~"
    except ValueError:
        return str(p)
