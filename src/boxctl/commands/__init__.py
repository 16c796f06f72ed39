"""Commands: dispatch, invocation context, and box scaffolding."""

from .context import InvocationContext, current_context, use_context
from .dispatcher import Outcome, dispatch, invoke
from .scaffold import BOX_DIR_NAME, MODULES_DIR_NAME, init_box, new_module

__all__ = [
    "BOX_DIR_NAME",
    "MODULES_DIR_NAME",
    "InvocationContext",
    "Outcome",
    "current_context",
    "dispatch",
    "init_box",
    "invoke",
    "new_module",
    "use_context",
]
