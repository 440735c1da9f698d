"""Event types for the streaming pipeline.

Upstream: the model stream source yields ``StreamChunk`` values (text,
reasoning and error chunks) and always finishes with one ``StreamDone``
carrying the provider's message id.

Downstream: the renderer callback receives plain ``str`` display text and
``StreamEvent`` dicts for tool calls, tool results, and errors.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class TextChunk:
    """Model output text."""

    text: str
    type: Literal["text"] = field(default="text", init=False)


@dataclass(frozen=True)
class ReasoningChunk:
    """Model "thinking" text, shown to the user but not part of the reply."""

    text: str
    type: Literal["reasoning"] = field(default="reasoning", init=False)


@dataclass(frozen=True)
class ErrorChunk:
    """Provider-level failure; no further chunks follow except StreamDone."""

    message: str
    type: Literal["error"] = field(default="error", init=False)


@dataclass(frozen=True)
class StreamDone:
    """Terminating sentinel of a model stream."""

    message_id: str | None = None
    type: Literal["done"] = field(default="done", init=False)


StreamChunk = TextChunk | ReasoningChunk | ErrorChunk | StreamDone


class StreamEvent(dict[str, Any]):
    """A typed dict for display events forwarded to the renderer.

    Attributes:
        type: Event type (tool_call, tool_result, error)
        content: Text content (error message for error events)
        tool: Tool name (for tool events)
        tool_call_id: ID of the tool call (for tool events)
        input: Tool input (for tool_call events)
        result: Output parts (for tool_result events)
    """

    def __init__(
        self,
        type: str,
        content: str | None = None,
        tool: str | None = None,
        tool_call_id: str | None = None,
        input: dict[str, Any] | None = None,
        result: list[dict[str, Any]] | None = None,
        **kwargs: object,
    ):
        super().__init__(
            type=type,
            content=content,
            tool=tool,
            tool_call_id=tool_call_id,
            input=input,
            result=result,
            **kwargs,
        )


async def deliver(callback: Callable[[Any], Any] | None, item: Any) -> None:
    """Hand an item to a sync or async callback."""
    if callback is None:
        return
    outcome = callback(item)
    if inspect.isawaitable(outcome):
        await outcome
