"""Unit tests for the per-turn tool registry."""

import pytest

from agentstream.exceptions import ConfigurationError
from agentstream.tools.constants import ToolName
from agentstream.tools.definitions import CustomToolDefinition
from agentstream.tools.handlers import BUILTIN_STATE_HANDLERS, ToolHandlerResult
from agentstream.tools.registry import ToolRegistry


def search_handler(*, tool_call, previous_call_finished, state, context):
    return ToolHandlerResult(result=[])


class TestToolRegistry:
    def test_state_handlers_registered_by_default(self):
        registry = ToolRegistry()

        for tool in BUILTIN_STATE_HANDLERS:
            assert registry.handler_for(tool) is BUILTIN_STATE_HANDLERS[tool]
        assert registry.handler_for(ToolName.WEB_SEARCH) is None

    def test_without_state_handlers(self):
        registry = ToolRegistry(include_state_handlers=False)
        assert registry.handler_for(ToolName.END_TURN) is None

    def test_caller_handlers(self):
        registry = ToolRegistry({"web_search": search_handler})

        assert registry.handler_for(ToolName.WEB_SEARCH) is search_handler

    def test_caller_handler_overrides_bundled(self):
        registry = ToolRegistry({"end_turn": search_handler})
        assert registry.handler_for(ToolName.END_TURN) is search_handler

    def test_unknown_builtin_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown built-in tool: teleport"):
            ToolRegistry({"teleport": search_handler})

    def test_custom_definitions(self):
        definition = CustomToolDefinition(tool_name="lookup_entity")
        registry = ToolRegistry(custom_tool_definitions=[definition], custom_handler=search_handler)

        assert registry.custom_tool_definitions == {"lookup_entity": definition}
        assert registry.custom_handler is search_handler

    def test_custom_tool_cannot_shadow_builtin(self):
        with pytest.raises(ConfigurationError, match="shadows"):
            ToolRegistry(custom_tool_definitions=[CustomToolDefinition(tool_name="web_search")])

    def test_duplicate_custom_tool_rejected(self):
        definitions = [CustomToolDefinition(tool_name="x"), CustomToolDefinition(tool_name="x")]
        with pytest.raises(ConfigurationError, match="Duplicate"):
            ToolRegistry(custom_tool_definitions=definitions, custom_handler=search_handler)

    def test_warns_when_custom_tools_have_no_handler(self, caplog):
        with caplog.at_level("WARNING"):
            ToolRegistry(custom_tool_definitions=[CustomToolDefinition(tool_name="x")])
        assert "without a custom handler" in caplog.text
