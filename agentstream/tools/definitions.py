"""Input schemas for built-in tools and custom tool definitions.

Built-in tool inputs are pydantic models so the parser can reject a
malformed call before it reaches a handler. Custom tools describe their
input with a JSON Schema supplied by the caller and are validated with
jsonschema.
"""

from __future__ import annotations

from typing import Any, Literal

import jsonschema  # type: ignore[import-untyped,unused-ignore]
from pydantic import BaseModel, ConfigDict, Field

from agentstream.messages import Message
from agentstream.tools.constants import ToolName


class ToolInput(BaseModel):
    """Base for built-in tool inputs."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ThinkDeeplyInput(ToolInput):
    thought: str


class EndTurnInput(ToolInput):
    pass


class SetMessagesInput(ToolInput):
    messages: list[Message]


class AddMessageInput(ToolInput):
    role: Literal["user", "assistant"]
    content: str


class CreatePlanInput(ToolInput):
    path: str = Field(min_length=1)
    plan: str


class BrowserLogsInput(ToolInput):
    type: Literal["navigate"]
    url: str = Field(min_length=1)
    wait_until: Literal["load", "domcontentloaded", "networkidle0"] = Field(alias="waitUntil")


class WebSearchInput(ToolInput):
    query: str = Field(min_length=1)
    depth: Literal["standard", "deep"] = "standard"


class ReadFilesInput(ToolInput):
    paths: list[str] = Field(min_length=1)


class WriteFileInput(ToolInput):
    path: str = Field(min_length=1)
    instructions: str = ""
    content: str


TOOL_INPUT_MODELS: dict[ToolName, type[ToolInput]] = {
    ToolName.THINK_DEEPLY: ThinkDeeplyInput,
    ToolName.END_TURN: EndTurnInput,
    ToolName.SET_MESSAGES: SetMessagesInput,
    ToolName.ADD_MESSAGE: AddMessageInput,
    ToolName.CREATE_PLAN: CreatePlanInput,
    ToolName.BROWSER_LOGS: BrowserLogsInput,
    ToolName.WEB_SEARCH: WebSearchInput,
    ToolName.READ_FILES: ReadFilesInput,
    ToolName.WRITE_FILE: WriteFileInput,
}

# Tools whose call finishes the current agent step
ENDS_AGENT_STEP: frozenset[ToolName] = frozenset({ToolName.END_TURN, ToolName.SET_MESSAGES})


class CustomToolDefinition(BaseModel):
    """A caller-defined tool routed to the generic custom handler.

    Attributes:
        tool_name: Name the model uses in the tool-call body.
        description: Prompt-facing description.
        input_schema: Optional JSON Schema for the input object.
        ends_agent_step: Whether a call finishes the current agent step.
    """

    tool_name: str = Field(min_length=1)
    description: str = ""
    input_schema: dict[str, Any] | None = None
    ends_agent_step: bool = False

    def validate_input(self, input: dict[str, Any]) -> None:
        """Validate a call's input against ``input_schema``.

        Raises:
            jsonschema.ValidationError: If the input does not conform.
        """
        if self.input_schema is not None:
            jsonschema.validate(instance=input, schema=self.input_schema)
