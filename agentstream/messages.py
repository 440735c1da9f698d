"""Conversation transcript models.

Messages are plain pydantic models so the orchestrating agent loop can
serialize them with ``model_dump()`` for persistence elsewhere. Tool
results use a single shape for success and failure: failures carry an
``errorMessage`` key inside a JSON output part.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

TimeToLive = Literal["agentStep", "userPrompt"]


class ToolResultOutput(BaseModel):
    """One output part of a tool result."""

    type: Literal["json"] = "json"
    value: Any = None


class ToolResultPart(BaseModel):
    """The outcome of a single tool call.

    Attributes:
        tool_call_id: ID of the call this result answers.
        tool_name: Name of the tool that ran (or failed to).
        output: Output parts; error results hold one part whose value is
            ``{"errorMessage": ...}``.
    """

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    output: list[ToolResultOutput] = Field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return any(
            isinstance(part.value, dict) and "errorMessage" in part.value for part in self.output
        )


class Message(BaseModel):
    """A transcript entry.

    Attributes:
        role: Author of the message.
        content: Text for system/user/assistant messages, a ToolResultPart
            for tool messages.
        time_to_live: When set, the message is dropped by expire_messages()
            at the end of the named scope.
    """

    role: Literal["system", "user", "assistant", "tool"]
    content: str | ToolResultPart
    time_to_live: TimeToLive | None = None

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)

    @classmethod
    def tool(cls, result: ToolResultPart) -> Message:
        return cls(role="tool", content=result)


def json_output(value: Any) -> list[ToolResultOutput]:
    """Wrap a JSON-serializable value as tool result output."""
    return [ToolResultOutput(type="json", value=value)]


def error_output(message: str) -> list[ToolResultOutput]:
    """Build the error-shaped output used for failed tool calls."""
    return json_output({"errorMessage": message})


def expire_messages(messages: list[Message], end_of: TimeToLive) -> list[Message]:
    """Drop messages whose time-to-live ends with the given scope.

    ``agentStep`` messages live for one agent step. At the end of a user
    prompt both ``agentStep`` and ``userPrompt`` messages are dropped.

    Args:
        messages: Current transcript.
        end_of: The scope that just ended.

    Returns:
        A new list without the expired messages.
    """
    if end_of == "agentStep":
        return [m for m in messages if m.time_to_live != "agentStep"]
    return [m for m in messages if m.time_to_live is None]
