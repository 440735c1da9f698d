"""Execution context propagation for tool handlers.

Carries the identifiers of the current agent step through tool execution
via contextvars, so that any handler (or code it calls) can read them for
logging without explicit parameter threading.

The context is set by the ToolDispatcher around each handler invocation.
Tasks created inside that scope (the handler's async work) inherit a copy
of it.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolExecutionContext:
    """Identifiers of the agent step a tool call belongs to.

    Attributes:
        agent_step_id: ID of the current agent step.
        client_session_id: ID of the client session (connection).
        user_input_id: ID of the user prompt being answered.
        user_id: Authenticated user, when known.
        fingerprint_id: Client fingerprint, when known.
        repo_id: Repository the agent works in, when known.
    """

    agent_step_id: str
    client_session_id: str
    user_input_id: str
    user_id: str | None = None
    fingerprint_id: str | None = None
    repo_id: str | None = None


# Context variable holding the active execution context
_exec_ctx: ContextVar[ToolExecutionContext | None] = ContextVar(
    "tool_execution_context", default=None
)


def get_execution_context() -> ToolExecutionContext | None:
    """Get the active execution context.

    Returns:
        Current ToolExecutionContext or None if no context is active.
    """
    return _exec_ctx.get()


def set_execution_context(ctx: ToolExecutionContext) -> None:
    """Set the active execution context.

    Args:
        ctx: The ToolExecutionContext to set.
    """
    _exec_ctx.set(ctx)


def clear_execution_context() -> None:
    """Clear the active execution context."""
    _exec_ctx.set(None)


@contextmanager
def execution_context(ctx: ToolExecutionContext) -> Generator[ToolExecutionContext, None, None]:
    """Context manager that sets the active execution context.

    Saves and restores the previous context on exit, so nested
    calls are safe.

    Args:
        ctx: Context to activate.

    Yields:
        The newly active ToolExecutionContext.
    """
    token = _exec_ctx.set(ctx)
    try:
        yield ctx
    finally:
        _exec_ctx.reset(token)


__all__ = [
    "ToolExecutionContext",
    "clear_execution_context",
    "execution_context",
    "get_execution_context",
    "set_execution_context",
]
