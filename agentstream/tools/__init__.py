"""Tool definitions, handlers, and the per-turn registry."""

from agentstream.tools.constants import TOOL_NAME_PARAM, ToolName, get_tool_call_string
from agentstream.tools.definitions import TOOL_INPUT_MODELS, CustomToolDefinition
from agentstream.tools.handlers import AgentTurnState, ToolHandler, ToolHandlerResult
from agentstream.tools.registry import ToolRegistry

__all__ = [
    "TOOL_INPUT_MODELS",
    "TOOL_NAME_PARAM",
    "AgentTurnState",
    "CustomToolDefinition",
    "ToolHandler",
    "ToolHandlerResult",
    "ToolName",
    "ToolRegistry",
    "get_tool_call_string",
]
