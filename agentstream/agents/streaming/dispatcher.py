"""Tool dispatcher: execute streamed tool calls in commit order.

Tool calls are dispatched as soon as the scanner finds them, while the
model keeps streaming text. Each handler is invoked right away (so its
async work starts immediately) but its result is committed through a
chain of completion links: link *n* first waits for link *n-1*, then for
its own result, then records it. Results and ``tool_result`` events are
therefore always in call order, whatever order the underlying work
finishes in.

The chain starts at a caller-supplied head (the "stream finished" signal
in a streaming turn), so no tool commits before the model has finished
its reply.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, assert_never

from agentstream.agents.execution_context import execution_context
from agentstream.agents.streaming.events import StreamEvent, deliver
from agentstream.agents.streaming.parser import (
    BuiltinToolCall,
    CustomToolCall,
    ToolCall,
    ToolCallError,
    parse_tool_call,
)
from agentstream.exceptions import ToolExecutionError
from agentstream.messages import ToolResultOutput, ToolResultPart, json_output
from agentstream.settings import get_settings

if TYPE_CHECKING:
    from agentstream.agents.execution_context import ToolExecutionContext
    from agentstream.agents.streaming.scanner import TaggedSegment
    from agentstream.tools.handlers import AgentTurnState, ToolHandler
    from agentstream.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Dispatch tool calls for one streaming turn.

    Args:
        registry: Handlers for built-in and custom tools.
        state: Turn state threaded through handlers in call order.
        context: Identifiers of the current agent step.
        chain_head: Awaitable the first call waits on before committing.
        on_event: Sync or async callback receiving ``tool_call`` and
            ``tool_result`` StreamEvents.
        tool_timeout: Seconds to wait for a result once its predecessor has
            committed (defaults to settings.tool_timeout_seconds).

    Attributes:
        tool_calls: Successfully parsed calls, in dispatch order.
        tool_results: Committed results (errors included), in call order.
        errors: The ToolCallErrors among the results.
        previous_call_finished: Completion of the most recent link.
    """

    def __init__(
        self,
        *,
        registry: ToolRegistry,
        state: AgentTurnState,
        context: ToolExecutionContext,
        chain_head: Awaitable[None],
        on_event: Callable[[StreamEvent], Any] | None = None,
        tool_timeout: float | None = None,
    ) -> None:
        self._registry = registry
        self._state = state
        self._context = context
        self._on_event = on_event
        self._tool_timeout = (
            tool_timeout if tool_timeout is not None else get_settings().tool_timeout_seconds
        )
        self._next_index = 0
        self._tasks: list[asyncio.Future[Any]] = []

        self.tool_calls: list[ToolCall] = []
        self.tool_results: list[ToolResultPart] = []
        self.errors: list[ToolCallError] = []
        self.previous_call_finished: asyncio.Future[Any] = asyncio.ensure_future(chain_head)

    @property
    def state(self) -> AgentTurnState:
        return self._state

    async def dispatch_segment(self, segment: TaggedSegment) -> ToolCall | ToolCallError:
        """Parse a tagged segment and dispatch the result."""
        parsed = parse_tool_call(
            segment.body,
            order_index=self._next_index,
            custom_tool_definitions=self._registry.custom_tool_definitions,
        )
        await self.dispatch(parsed)
        return parsed

    async def dispatch(self, call: ToolCall | ToolCallError) -> None:
        """Start a tool call and chain its commit after the previous one.

        Returns once the handler has been invoked and its state update
        applied; never waits for the tool to finish.
        """
        self._next_index = max(self._next_index, call.order_index + 1)

        handler: ToolHandler | None
        match call:
            case ToolCallError():
                self._chain(call, pending=None, error=call)
                return
            case BuiltinToolCall(tool=tool):
                handler = self._registry.handler_for(tool)
            case CustomToolCall():
                handler = self._registry.custom_handler
            case _:
                assert_never(call)

        self.tool_calls.append(call)
        await deliver(
            self._on_event,
            StreamEvent(
                type="tool_call",
                tool=call.tool_name,
                tool_call_id=call.tool_call_id,
                input=call.input,
            ),
        )

        if handler is None:
            self._chain(
                call,
                pending=None,
                error=self._error(call, f"No handler registered for tool {call.tool_name}"),
            )
            return

        pending: asyncio.Future[Any] | None = None
        error: ToolCallError | None = None
        with execution_context(self._context):
            try:
                outcome = handler(
                    tool_call=call,
                    previous_call_finished=self.previous_call_finished,
                    state=self._state,
                    context=self._context,
                )
                self._state.apply(outcome.state)
                pending = _start(outcome.result)
                self._tasks.append(pending)
            except Exception as e:
                self._log_failure(call, e)
                error = self._error(call, f"Error executing tool {call.tool_name}: {e}")
        self._chain(call, pending=pending, error=error)

    async def wait_all(self) -> None:
        """Wait until every dispatched call has committed."""
        await self.previous_call_finished

    def cancel(self) -> None:
        """Cancel outstanding tool work and commit links.

        Used when the turn itself is cancelled; results not yet committed
        are dropped.
        """
        for task in self._tasks:
            task.cancel()

    def _chain(
        self,
        call: ToolCall | ToolCallError,
        *,
        pending: asyncio.Future[Any] | None,
        error: ToolCallError | None,
    ) -> None:
        previous = self.previous_call_finished
        self.previous_call_finished = asyncio.ensure_future(
            self._commit(call, previous=previous, pending=pending, error=error)
        )
        self._tasks.append(self.previous_call_finished)

    async def _commit(
        self,
        call: ToolCall | ToolCallError,
        *,
        previous: asyncio.Future[Any],
        pending: asyncio.Future[Any] | None,
        error: ToolCallError | None,
    ) -> None:
        try:
            await previous
        except Exception as e:
            logger.error(
                "Previous link failed before committing %s (session=%s): %s",
                call.tool_call_id,
                self._context.client_session_id,
                e,
                exc_info=e,
            )

        output: list[ToolResultOutput] = []
        if error is None and pending is not None:
            try:
                output = _coerce_output(await asyncio.wait_for(pending, self._tool_timeout))
            except TimeoutError:
                exc = ToolExecutionError(
                    f"Tool {call.tool_name} timed out after {self._tool_timeout}s",
                    tool_name=call.tool_name,
                    tool_call_id=call.tool_call_id,
                    timeout=True,
                )
                logger.warning(
                    "%s (session=%s, step=%s, correlation_id=%s)",
                    exc,
                    self._context.client_session_id,
                    self._context.agent_step_id,
                    exc.correlation_id,
                )
                error = self._error(call, str(exc))
            except Exception as e:
                self._log_failure(call, e)
                error = self._error(call, f"Error executing tool {call.tool_name}: {e}")

        if error is not None:
            self.errors.append(error)
            part = error.to_result_part()
        else:
            part = ToolResultPart(
                tool_call_id=call.tool_call_id,
                tool_name=call.tool_name,
                output=output,
            )
        self.tool_results.append(part)
        try:
            await deliver(
                self._on_event,
                StreamEvent(
                    type="tool_result",
                    tool=part.tool_name,
                    tool_call_id=part.tool_call_id,
                    result=[o.model_dump() for o in part.output],
                ),
            )
        except Exception as e:
            logger.error(
                "Display callback failed for tool result %s (session=%s): %s",
                part.tool_call_id,
                self._context.client_session_id,
                e,
                exc_info=e,
            )

    @staticmethod
    def _error(call: ToolCall | ToolCallError, message: str) -> ToolCallError:
        return ToolCallError(
            tool_name=call.tool_name,
            tool_call_id=call.tool_call_id,
            error=message,
            order_index=call.order_index,
            input=call.input,
        )

    def _log_failure(self, call: ToolCall | ToolCallError, error: Exception) -> None:
        logger.error(
            "Tool %s failed (call=%s, session=%s, step=%s, user_input=%s, input=%s): %s",
            call.tool_name,
            call.tool_call_id,
            self._context.client_session_id,
            self._context.agent_step_id,
            self._context.user_input_id,
            str(call.input)[:200],
            error,
            exc_info=error,
        )


def _start(result: Any) -> asyncio.Future[Any]:
    if inspect.isawaitable(result):
        return asyncio.ensure_future(result)
    done: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    done.set_result(result)
    return done


def _is_output_part(item: Any) -> bool:
    if isinstance(item, ToolResultOutput):
        return True
    return (
        isinstance(item, dict) and set(item) == {"type", "value"} and item["type"] == "json"
    )


def _coerce_output(value: Any) -> list[ToolResultOutput]:
    """Normalize a handler's return value into result output parts.

    ``None`` and ``[]`` mean no output. A list is taken as ready-made parts
    only when every item already looks like one; any other value (plain
    lists included) is wrapped as JSON.
    """
    if value is None or value == []:
        return []
    if isinstance(value, list) and all(_is_output_part(item) for item in value):
        return [
            item if isinstance(item, ToolResultOutput) else ToolResultOutput.model_validate(item)
            for item in value
        ]
    return json_output(value)
