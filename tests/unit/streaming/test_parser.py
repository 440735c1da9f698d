"""Unit tests for tool call parsing.

Tests decoding of tagged bodies into BuiltinToolCall / CustomToolCall,
the ToolCallError values produced for every kind of malformed call, and
which calls end the agent step.
"""

import pytest

from agentstream.agents.streaming.parser import (
    BuiltinToolCall,
    CustomToolCall,
    ToolCallError,
    decode_tool_call_body,
    ends_agent_step,
    generate_tool_call_id,
    parse_tool_call,
)
from agentstream.exceptions import ToolCallParseError
from agentstream.tools.constants import ToolName
from agentstream.tools.definitions import CustomToolDefinition, WebSearchInput

LOOKUP = CustomToolDefinition(
    tool_name="lookup_entity",
    description="Look up an entity",
    input_schema={
        "type": "object",
        "properties": {"entity_id": {"type": "string"}},
        "required": ["entity_id"],
    },
)


class TestDecodeToolCallBody:
    def test_pops_tool_name(self):
        name, input = decode_tool_call_body('\n{"tool_name": "web_search", "query": "x"}\n')

        assert name == "web_search"
        assert input == {"query": "x"}

    def test_invalid_json(self):
        with pytest.raises(ToolCallParseError, match="not valid JSON"):
            decode_tool_call_body("{not json")

    def test_non_object(self):
        with pytest.raises(ToolCallParseError, match="JSON object"):
            decode_tool_call_body('["web_search"]')

    def test_missing_tool_name(self):
        with pytest.raises(ToolCallParseError, match="tool_name") as exc_info:
            decode_tool_call_body('{"query": "x"}')

        assert exc_info.value.raw_input == {"query": "x"}


class TestParseBuiltinTools:
    """Built-in tools are validated against their pydantic input models."""

    def test_web_search(self):
        call = parse_tool_call(
            '{"tool_name": "web_search", "query": "python asyncio", "depth": "deep"}',
            order_index=0,
        )

        assert isinstance(call, BuiltinToolCall)
        assert call.tool is ToolName.WEB_SEARCH
        assert isinstance(call.params, WebSearchInput)
        assert call.params.depth == "deep"
        assert call.input == {"query": "python asyncio", "depth": "deep"}

    def test_end_turn_without_arguments(self):
        call = parse_tool_call('{"tool_name": "end_turn"}', order_index=3)

        assert isinstance(call, BuiltinToolCall)
        assert call.tool is ToolName.END_TURN
        assert call.order_index == 3

    def test_browser_logs_accepts_camel_case_alias(self):
        call = parse_tool_call(
            '{"tool_name": "browser_logs", "type": "navigate", '
            '"url": "http://localhost:3000", "waitUntil": "load"}',
            order_index=0,
        )

        assert isinstance(call, BuiltinToolCall)
        assert call.params.wait_until == "load"

    def test_invalid_parameters(self):
        result = parse_tool_call('{"tool_name": "read_files", "paths": []}', order_index=1)

        assert isinstance(result, ToolCallError)
        assert result.tool_name == "read_files"
        assert result.error.startswith("Invalid parameters for read_files")
        assert "paths" in result.error
        assert result.order_index == 1
        assert result.input == {"paths": []}

    def test_explicit_tool_call_id(self):
        call = parse_tool_call('{"tool_name": "end_turn"}', order_index=0, tool_call_id="abc")

        assert call.tool_call_id == "abc"


class TestParseCustomTools:
    """Unknown names fall back to the custom tool definitions."""

    def test_custom_tool(self):
        call = parse_tool_call(
            '{"tool_name": "lookup_entity", "entity_id": "light.kitchen"}',
            order_index=0,
            custom_tool_definitions={"lookup_entity": LOOKUP},
        )

        assert isinstance(call, CustomToolCall)
        assert call.definition is LOOKUP
        assert call.input == {"entity_id": "light.kitchen"}

    def test_custom_tool_schema_violation(self):
        result = parse_tool_call(
            '{"tool_name": "lookup_entity"}',
            order_index=0,
            custom_tool_definitions={"lookup_entity": LOOKUP},
        )

        assert isinstance(result, ToolCallError)
        assert "entity_id" in result.error

    def test_custom_tool_without_schema_accepts_anything(self):
        definition = CustomToolDefinition(tool_name="ping")
        call = parse_tool_call(
            '{"tool_name": "ping", "anything": [1, 2]}',
            order_index=0,
            custom_tool_definitions={"ping": definition},
        )

        assert isinstance(call, CustomToolCall)

    def test_unknown_tool(self):
        result = parse_tool_call('{"tool_name": "teleport"}', order_index=0)

        assert isinstance(result, ToolCallError)
        assert result.error == "Tool teleport not found"
        assert result.tool_name == "teleport"


class TestToolCallError:
    def test_malformed_body_uses_unknown_name(self):
        result = parse_tool_call("{oops", order_index=2)

        assert isinstance(result, ToolCallError)
        assert result.tool_name == "unknown"
        assert result.order_index == 2

    def test_to_result_part_is_error_shaped(self):
        error = ToolCallError(
            tool_name="teleport", tool_call_id="id-1", error="Tool teleport not found", order_index=0
        )

        part = error.to_result_part()

        assert part.is_error
        assert part.tool_call_id == "id-1"
        assert part.output[0].model_dump() == {
            "type": "json",
            "value": {"errorMessage": "Tool teleport not found"},
        }

    def test_generated_ids_are_unique(self):
        assert len({generate_tool_call_id() for _ in range(100)}) == 100


class TestEndsAgentStep:
    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ('{"tool_name": "end_turn"}', True),
            ('{"tool_name": "set_messages", "messages": []}', True),
            ('{"tool_name": "think_deeply", "thought": "x"}', False),
        ],
    )
    def test_builtin(self, body, expected):
        assert ends_agent_step(parse_tool_call(body, order_index=0)) is expected

    def test_custom_follows_definition(self):
        hand_off = CustomToolDefinition(tool_name="hand_off", ends_agent_step=True)
        definitions = {"hand_off": hand_off, "lookup_entity": LOOKUP}

        ending = parse_tool_call(
            '{"tool_name": "hand_off"}', order_index=0, custom_tool_definitions=definitions
        )
        ongoing = parse_tool_call(
            '{"tool_name": "lookup_entity", "entity_id": "light.x"}',
            order_index=1,
            custom_tool_definitions=definitions,
        )

        assert ends_agent_step(ending) is True
        assert ends_agent_step(ongoing) is False
