"""Core box commands: help, version, init, module."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from boxctl import __version__
from boxctl.commands.context import current_context
from boxctl.commands.scaffold import init_box, new_module
from boxctl.core.config import find_box_root
from boxctl.core.utils import short_cwd

console = Console()

_MODULE_USAGE = "usage: box module list | show <command> | new <name> [command...]"


def box_help(command_path, arguments):
    ctx = current_context()
    registry = ctx.registry
    if command_path:
        return _show_command(command_path[0])

    console.print()
    console.print("usage: box <command> [tokens...] [-- args...]", style="dim")
    console.print()
    for name in registry.names():
        entry = registry.get(name)
        primary = entry.primary
        tag = f"[cyan]{primary.source}[/cyan]"
        if entry.overridden:
            tag += " [dim](overrides core)[/dim]"
        synopsis = escape(primary.binding.synopsis)
        console.print(f"  [bold]{name:<12}[/bold] [dim]{synopsis}[/dim]  {tag}")
    for name in sorted(registry.ambiguous):
        console.print(f"  [bold]{name:<12}[/bold] [red]ambiguous[/red]")
    console.print()
    return 0


def box_version(command_path, arguments):
    console.print(f"boxctl {__version__}")
    return 0


def box_init(command_path, arguments):
    ctx = current_context()
    target = ctx.config.box_dir or find_box_root(ctx.config.cwd) or ctx.config.cwd
    created = init_box(target)
    if not created:
        console.print(f"already initialized: {short_cwd(target)}", style="dim")
    else:
        console.print("created: " + ", ".join(created))
    return 0


def box_module(command_path, arguments):
    sub = command_path[1] if len(command_path) > 1 else ""
    rest = command_path[2:]

    if sub == "list":
        return _list_modules()
    if sub == "show" and rest:
        return _show_command(rest[0])
    if sub == "new" and rest:
        return _new_module(rest[0], rest[1:])

    console.print(_MODULE_USAGE, style="dim")
    return 2


def _list_modules():
    registry = current_context().registry
    if not registry.modules:
        console.print("[dim]no modules loaded[/dim]")
        return 0
    console.print()
    for loaded in registry.modules:
        m = loaded.manifest
        cmds = ", ".join(m.commands) or "-"
        console.print(
            f"  [bold]{m.name}[/bold] [dim]{m.version}[/dim]  [cyan]{loaded.source}[/cyan]  {cmds}"
        )
    console.print()
    return 0


def _show_command(name):
    registry = current_context().registry
    if name in registry.ambiguous:
        console.print(f"[red]{escape(str(registry.ambiguous[name]))}[/red]")
        return 1
    entry = registry.get(name)
    if entry is None:
        console.print(f"unknown command: {name}", style="bold")
        return 1
    console.print(f"[bold]{name}[/bold]  {entry.primary.binding.kind}  {entry.primary.describe()}")
    if entry.primary.binding.synopsis:
        console.print(f"  {escape(entry.primary.binding.synopsis)}", style="dim")
    if entry.fallback is not None:
        console.print(f"  fallback: {entry.fallback.describe()}", style="dim")
    return 0


def _new_module(name, commands):
    ctx = current_context()
    try:
        created = new_module(ctx.config.override_dir, name, commands or None)
    except (ValueError, FileExistsError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1
    for path in created:
        console.print(f"created: {short_cwd(path)}")
    return 0
