"""Tool call parser — decode tagged payloads into typed tool calls.

Pure-function decoding of a TaggedSegment body (JSON object text with a
reserved tool-name key). Built-in tools are validated against their
pydantic input model; custom tools against their JSON Schema. Every
failure comes back as a ToolCallError value instead of being raised, so
the stream keeps flowing and the error takes the call's place in the
transcript.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, assert_never

import jsonschema  # type: ignore[import-untyped,unused-ignore]
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from agentstream.exceptions import ToolCallParseError
from agentstream.messages import ToolResultPart, error_output
from agentstream.tools.constants import TOOL_NAME_PARAM, ToolName
from agentstream.tools.definitions import (
    ENDS_AGENT_STEP,
    TOOL_INPUT_MODELS,
    CustomToolDefinition,
)

logger = logging.getLogger(__name__)


def generate_tool_call_id() -> str:
    """Short random id for a tool call."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class BuiltinToolCall:
    """A call to one of the built-in tools.

    Attributes:
        tool_call_id: Unique ID of the call.
        tool_name: Tool name as it appeared in the body.
        input: Raw decoded arguments (tool-name key removed).
        order_index: Position of the call within the turn.
        tool: The built-in tool.
        params: Validated input model.
    """

    tool_call_id: str
    tool_name: str
    input: dict[str, Any]
    order_index: int
    tool: ToolName
    params: BaseModel


@dataclass(frozen=True)
class CustomToolCall:
    """A call to a caller-defined tool; ``input`` is passed through as-is."""

    tool_call_id: str
    tool_name: str
    input: dict[str, Any]
    order_index: int
    definition: CustomToolDefinition


ToolCall = BuiltinToolCall | CustomToolCall


def ends_agent_step(call: ToolCall) -> bool:
    """Whether a call finishes the current agent step."""
    match call:
        case BuiltinToolCall(tool=tool):
            return tool in ENDS_AGENT_STEP
        case CustomToolCall(definition=definition):
            return definition.ends_agent_step
        case _:
            assert_never(call)


@dataclass(frozen=True)
class ToolCallError:
    """A tool call that failed to parse or to execute.

    Attributes:
        tool_name: Offending tool name ("unknown" if it could not be read).
        tool_call_id: ID assigned to the failed call.
        input: Raw arguments, as far as they could be decoded.
        error: Human-readable error message.
        order_index: Position of the call within the turn.
    """

    tool_name: str
    tool_call_id: str
    error: str
    order_index: int
    input: dict[str, Any] = field(default_factory=dict)

    def to_result_part(self) -> ToolResultPart:
        return ToolResultPart(
            tool_call_id=self.tool_call_id,
            tool_name=self.tool_name,
            output=error_output(self.error),
        )


def decode_tool_call_body(body: str) -> tuple[str, dict[str, Any]]:
    """Decode a body into (tool name, input).

    Raises:
        ToolCallParseError: If the body is not a JSON object with a
            non-empty string under the tool-name key.
    """
    try:
        data = json.loads(body.strip())
    except json.JSONDecodeError as e:
        raise ToolCallParseError(f"Tool call body is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ToolCallParseError("Tool call body must be a JSON object")

    raw_name = data.pop(TOOL_NAME_PARAM, None)
    if not isinstance(raw_name, str) or not raw_name:
        raise ToolCallParseError(
            f"Tool call body is missing the {TOOL_NAME_PARAM!r} key", raw_input=data
        )
    return raw_name, data


def parse_tool_call(
    body: str,
    *,
    order_index: int,
    custom_tool_definitions: Mapping[str, CustomToolDefinition] | None = None,
    tool_call_id: str | None = None,
) -> ToolCall | ToolCallError:
    """Parse one tagged payload.

    Args:
        body: TaggedSegment body.
        order_index: Position of this call within the turn.
        custom_tool_definitions: Caller-defined tools by name.
        tool_call_id: ID to assign (generated when omitted).

    Returns:
        A BuiltinToolCall, a CustomToolCall, or a ToolCallError.
    """
    call_id = tool_call_id or generate_tool_call_id()
    tool_name = "unknown"
    input: dict[str, Any] = {}
    try:
        tool_name, input = decode_tool_call_body(body)
        return _build_call(
            tool_name,
            input,
            tool_call_id=call_id,
            order_index=order_index,
            custom_tool_definitions=custom_tool_definitions or {},
        )
    except ToolCallParseError as e:
        logger.warning(
            "Invalid tool call %s (%s): %s",
            e.tool_name or tool_name,
            call_id,
            e,
        )
        return ToolCallError(
            tool_name=e.tool_name or tool_name,
            tool_call_id=call_id,
            error=str(e),
            order_index=order_index,
            input=e.raw_input or input,
        )


def _build_call(
    tool_name: str,
    input: dict[str, Any],
    *,
    tool_call_id: str,
    order_index: int,
    custom_tool_definitions: Mapping[str, CustomToolDefinition],
) -> ToolCall:
    if tool_name in TOOL_INPUT_MODELS:
        tool = ToolName(tool_name)
        try:
            params = TOOL_INPUT_MODELS[tool].model_validate(input)
        except PydanticValidationError as e:
            raise ToolCallParseError(
                f"Invalid parameters for {tool_name}: {_summarize(e)}",
                tool_name=tool_name,
                raw_input=input,
            ) from e
        return BuiltinToolCall(
            tool_call_id=tool_call_id,
            tool_name=tool_name,
            input=input,
            order_index=order_index,
            tool=tool,
            params=params,
        )

    definition = custom_tool_definitions.get(tool_name)
    if definition is None:
        raise ToolCallParseError(
            f"Tool {tool_name} not found", tool_name=tool_name, raw_input=input
        )
    try:
        definition.validate_input(input)
    except jsonschema.ValidationError as e:
        raise ToolCallParseError(
            f"Invalid parameters for {tool_name}: {e.message}",
            tool_name=tool_name,
            raw_input=input,
        ) from e
    return CustomToolCall(
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        input=input,
        order_index=order_index,
        definition=definition,
    )


def _summarize(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
        for err in error.errors()
    )
