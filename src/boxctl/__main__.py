"""CLI entry point: tokenize, build the registry, fire load hooks, dispatch."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .commands import InvocationContext, dispatch, use_context
from .core.config import Config, load_config
from .core.errors import BoxError, HookError, UnknownCommandError
from .core.utils import split_invocation
from .hooks import ON_LOAD, raise_for_hooks, run_hooks
from .modules import FunctionLookup, ModuleFunctionLookup, build_registry

err_console = Console(stderr=True)


def _warn(message: str) -> None:
    err_console.print(f"[yellow]warning: {escape(message)}[/yellow]", soft_wrap=True)


def run(config: Config, tokens: list[str], lookup: FunctionLookup | None = None) -> int:
    """Run one box invocation and return its exit code."""
    command_path, arguments = split_invocation(tokens)
    if not command_path:
        command_path = ["help"]

    registry = build_registry(config.sources(), exclude=config.disabled_modules)
    for warning in registry.warnings:
        _warn(warning)
    if config.verbose:
        for name in registry.excluded:
            _warn(f"module '{name}' is disabled by settings")

    lookup = lookup or ModuleFunctionLookup()

    def _on_fallback(entry, error):
        if config.verbose:
            _warn(f"{entry.primary.describe()} failed ({error}); using {entry.fallback.describe()}")

    with use_context(InvocationContext(config=config, registry=registry, lookup=lookup)):
        if config.load_hooks:
            try:
                raise_for_hooks(run_hooks(ON_LOAD, registry, lookup))
            except HookError as e:
                _warn(str(e))

        outcome = dispatch(command_path, arguments, registry, lookup, on_fallback=_on_fallback)

    if outcome.error is not None:
        err_console.print(
            f"error: {escape(str(outcome.error))}", style="bold red", soft_wrap=True
        )
        if isinstance(outcome.error, UnknownCommandError):
            err_console.print("run `box help` for available commands", style="dim")
    elif outcome.fell_back and config.verbose:
        _warn(f"'{command_path[0]}' ran its core fallback")
    return outcome.exit_code


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.argument("tokens", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--box-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Box root (default: nearest directory with .box/)",
)
@click.option(
    "--core-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Replace the built-in core modules directory",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(__version__, prog_name="boxctl")
def _click_main(
    tokens: tuple[str, ...], box_dir: str | None, core_dir: str | None, verbose: bool
):
    """box: scaffold boxes and run their commands."""
    try:
        config = load_config(box_dir=box_dir, core_dir=core_dir, verbose=verbose)
    except BoxError as e:
        err_console.print(f"error: {escape(str(e))}", style="bold red")
        sys.exit(1)
    sys.exit(run(config, list(tokens)))


def main():
    _click_main()


if __name__ == "__main__":
    main()
