"""agentstream exception hierarchy.

Base exceptions for the streaming layer with correlation ID support.

Most failures in a streaming turn are absorbed into the transcript as
error-shaped tool results; these exceptions mark the points where a
condition is raised before that conversion happens (or cannot happen).

Usage:
    from agentstream.exceptions import ToolCallParseError

    try:
        call = decode_body(body)
    except ToolCallParseError as e:
        logger.warning("Bad tool call %s (correlation_id=%s)", e.tool_name, e.correlation_id)
"""

import uuid
from typing import Any


class AgentStreamError(Exception):
    """Base exception for all agentstream errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ToolCallParseError(AgentStreamError):
    """A tagged payload could not be decoded into a tool call.

    Raised for malformed bodies, missing tool names, unknown tools, and
    inputs that fail validation.
    """

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        raw_input: dict[str, Any] | None = None,
        **kwargs,
    ):
        self.tool_name = tool_name
        self.raw_input = raw_input or {}
        super().__init__(message, **kwargs)


class ToolExecutionError(AgentStreamError):
    """A tool handler raised, rejected, or timed out."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        tool_call_id: str | None = None,
        timeout: bool = False,
        **kwargs,
    ):
        self.tool_name = tool_name
        self.tool_call_id = tool_call_id
        self.timeout = timeout
        super().__init__(message, **kwargs)


class StreamSourceError(AgentStreamError):
    """Errors from the upstream model stream."""

    def __init__(self, message: str, *, provider: str | None = None, **kwargs):
        self.provider = provider
        super().__init__(message, **kwargs)


class ConfigurationError(AgentStreamError):
    """Errors from tool registry or application configuration."""

    pass
