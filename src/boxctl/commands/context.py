"""Invocation context: gives handlers access to the active config and registry."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from boxctl.core.config import Config
    from boxctl.modules.lookup import FunctionLookup
    from boxctl.modules.resolver import Registry


@dataclass(frozen=True)
class InvocationContext:
    config: Config
    registry: Registry
    lookup: FunctionLookup


_current: ContextVar[InvocationContext | None] = ContextVar("boxctl_context", default=None)


def current_context() -> InvocationContext:
    ctx = _current.get()
    if ctx is None:
        raise RuntimeError("no active box invocation")
    return ctx


@contextmanager
def use_context(ctx: InvocationContext) -> Iterator[InvocationContext]:
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
