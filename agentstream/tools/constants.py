"""Tool-call wire format constants and the closed set of built-in tools."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from agentstream.settings import get_settings

# Reserved key naming the tool inside a tool-call body
TOOL_NAME_PARAM = "tool_name"


class ToolName(StrEnum):
    """Built-in tools understood by the parser.

    Anything else is routed to the custom-tool registry.
    """

    THINK_DEEPLY = "think_deeply"
    END_TURN = "end_turn"
    SET_MESSAGES = "set_messages"
    ADD_MESSAGE = "add_message"
    CREATE_PLAN = "create_plan"
    BROWSER_LOGS = "browser_logs"
    WEB_SEARCH = "web_search"
    READ_FILES = "read_files"
    WRITE_FILE = "write_file"


def get_tool_call_string(
    tool_name: str,
    input: dict[str, Any],
    *,
    start_tag: str | None = None,
    end_tag: str | None = None,
) -> str:
    """Render a tool call in the inline markup format.

    Used for prompt examples and to build test fixtures.
    """
    settings = get_settings()
    body = json.dumps({TOOL_NAME_PARAM: tool_name, **input}, indent=2)
    return f"{start_tag or settings.tool_start_tag}{body}{end_tag or settings.tool_end_tag}"
