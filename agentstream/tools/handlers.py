"""Tool handler contract and the built-in state handlers.

A handler is invoked synchronously by the dispatcher, in call order. It
returns immediately with:

- ``result``: an awaitable resolving to the tool's output parts. The
  dispatcher starts it as a task right away, so the handler's own async
  work (a network request, say) overlaps with the rest of the stream.
  The awaitable must wait for ``previous_call_finished`` before committing
  any side effect.
- ``state``: a partial update applied to the shared AgentTurnState before
  the next handler is invoked.

Only the tools that purely manipulate turn state ship with handlers here;
networked and filesystem tools are supplied by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, cast

from agentstream.messages import Message, ToolResultOutput
from agentstream.tools.constants import ToolName

if TYPE_CHECKING:
    from agentstream.agents.execution_context import ToolExecutionContext
    from agentstream.agents.streaming.parser import BuiltinToolCall, ToolCall
    from agentstream.tools.definitions import AddMessageInput, SetMessagesInput, ThinkDeeplyInput

logger = logging.getLogger(__name__)


@dataclass
class AgentTurnState:
    """Mutable state threaded through handlers in call order.

    Attributes:
        messages: Conversation transcript for the current agent.
        system: System prompt in effect for the turn.
        agent_context: Free-form per-agent context (subgoals, notes).
        end_turn_requested: Set once a tool asks to end the turn.
        extras: Caller-specific values handlers may read or update.
    """

    messages: list[Message] = field(default_factory=list)
    system: str = ""
    agent_context: dict[str, Any] = field(default_factory=dict)
    end_turn_requested: bool = False
    extras: dict[str, Any] = field(default_factory=dict)

    def apply(self, update: Mapping[str, Any]) -> None:
        """Apply a handler's partial state update.

        Known fields are replaced; any other key lands in ``extras``.
        """
        for key, value in update.items():
            if key in _STATE_FIELDS:
                setattr(self, key, value)
            else:
                self.extras[key] = value


_STATE_FIELDS = frozenset({"messages", "system", "agent_context", "end_turn_requested"})


@dataclass
class ToolHandlerResult:
    """What a handler hands back to the dispatcher."""

    result: Awaitable[list[ToolResultOutput]] | list[ToolResultOutput]
    state: Mapping[str, Any] = field(default_factory=dict)


class ToolHandler(Protocol):
    """Callable contract shared by built-in and custom tool handlers."""

    def __call__(
        self,
        *,
        tool_call: ToolCall,
        previous_call_finished: Awaitable[None],
        state: AgentTurnState,
        context: ToolExecutionContext,
    ) -> ToolHandlerResult: ...


async def _after(previous_call_finished: Awaitable[None]) -> list[ToolResultOutput]:
    await previous_call_finished
    return []


def handle_think_deeply(
    *,
    tool_call: BuiltinToolCall,
    previous_call_finished: Awaitable[None],
    state: AgentTurnState,
    context: ToolExecutionContext,
) -> ToolHandlerResult:
    params = cast("ThinkDeeplyInput", tool_call.params)
    logger.debug(
        "Thought (step=%s, call=%s): %s",
        context.agent_step_id,
        tool_call.tool_call_id,
        params.thought[:200],
    )
    return ToolHandlerResult(result=_after(previous_call_finished))


def handle_end_turn(
    *,
    tool_call: BuiltinToolCall,
    previous_call_finished: Awaitable[None],
    state: AgentTurnState,
    context: ToolExecutionContext,
) -> ToolHandlerResult:
    return ToolHandlerResult(
        result=_after(previous_call_finished),
        state={"end_turn_requested": True},
    )


def handle_set_messages(
    *,
    tool_call: BuiltinToolCall,
    previous_call_finished: Awaitable[None],
    state: AgentTurnState,
    context: ToolExecutionContext,
) -> ToolHandlerResult:
    """Replace the transcript wholesale."""
    params = cast("SetMessagesInput", tool_call.params)
    return ToolHandlerResult(
        result=_after(previous_call_finished),
        state={"messages": list(params.messages)},
    )


def handle_add_message(
    *,
    tool_call: BuiltinToolCall,
    previous_call_finished: Awaitable[None],
    state: AgentTurnState,
    context: ToolExecutionContext,
) -> ToolHandlerResult:
    """Append one user or assistant message to the transcript."""
    params = cast("AddMessageInput", tool_call.params)
    message = Message(role=params.role, content=params.content)
    return ToolHandlerResult(
        result=_after(previous_call_finished),
        state={"messages": [*state.messages, message]},
    )


BUILTIN_STATE_HANDLERS: dict[ToolName, ToolHandler] = {
    ToolName.THINK_DEEPLY: handle_think_deeply,  # type: ignore[dict-item]
    ToolName.END_TURN: handle_end_turn,  # type: ignore[dict-item]
    ToolName.SET_MESSAGES: handle_set_messages,  # type: ignore[dict-item]
    ToolName.ADD_MESSAGE: handle_add_message,  # type: ignore[dict-item]
}
