"""Tool registry: name-keyed handlers for one streaming turn.

Holds the handlers for built-in tools, the caller's custom tool
definitions, and the single generic handler that serves every custom
tool. The registry is read-only once a turn starts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from agentstream.exceptions import ConfigurationError
from agentstream.tools.constants import ToolName
from agentstream.tools.handlers import BUILTIN_STATE_HANDLERS

if TYPE_CHECKING:
    from agentstream.tools.definitions import CustomToolDefinition
    from agentstream.tools.handlers import ToolHandler

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Handlers available to the dispatcher.

    Args:
        handlers: Built-in tool handlers keyed by tool name. These override
            the bundled state handlers for the same name.
        custom_tool_definitions: Tools defined by the active agent/session.
        custom_handler: Generic handler invoked for every custom tool.
        include_state_handlers: Register the bundled handlers for
            ``think_deeply``, ``end_turn``, ``set_messages`` and
            ``add_message``.

    Raises:
        ConfigurationError: On an unknown built-in name, a custom tool that
            shadows a built-in, or a duplicated custom tool name.
    """

    def __init__(
        self,
        handlers: Mapping[str, ToolHandler] | None = None,
        *,
        custom_tool_definitions: Iterable[CustomToolDefinition] = (),
        custom_handler: ToolHandler | None = None,
        include_state_handlers: bool = True,
    ) -> None:
        self._handlers: dict[ToolName, ToolHandler] = (
            dict(BUILTIN_STATE_HANDLERS) if include_state_handlers else {}
        )
        for name, handler in (handlers or {}).items():
            try:
                tool = ToolName(name)
            except ValueError as e:
                raise ConfigurationError(f"Unknown built-in tool: {name}") from e
            self._handlers[tool] = handler

        self._custom: dict[str, CustomToolDefinition] = {}
        for definition in custom_tool_definitions:
            name = definition.tool_name
            if name in {tool.value for tool in ToolName}:
                raise ConfigurationError(f"Custom tool {name} shadows a built-in tool")
            if name in self._custom:
                raise ConfigurationError(f"Duplicate custom tool definition: {name}")
            self._custom[name] = definition

        self._custom_handler = custom_handler

        if self._custom and custom_handler is None:
            logger.warning(
                "%d custom tool(s) defined without a custom handler; calls will fail",
                len(self._custom),
            )

    def handler_for(self, tool: ToolName) -> ToolHandler | None:
        """Return the handler registered for a built-in tool, if any."""
        return self._handlers.get(tool)

    @property
    def custom_handler(self) -> ToolHandler | None:
        return self._custom_handler

    @property
    def custom_tool_definitions(self) -> Mapping[str, CustomToolDefinition]:
        return self._custom
