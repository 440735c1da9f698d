"""Stream processor — run one model stream through the tool-call pipeline.

Consumes a sequence of ``StreamChunk`` values and drives:

- the display callback (plain text, reasoning markup, tool and error
  events, in arrival order),
- the tag scanner, whose segments are parsed and dispatched while the
  stream keeps flowing,
- transcript reassembly once the stream is done.

Tool results commit only after the stream has ended; they are appended
to the transcript after the assistant message, in call order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, assert_never

from agentstream.agents.streaming.dispatcher import ToolDispatcher
from agentstream.agents.streaming.events import (
    ErrorChunk,
    ReasoningChunk,
    StreamChunk,
    StreamDone,
    StreamEvent,
    TextChunk,
    deliver,
)
from agentstream.agents.streaming.parser import ends_agent_step
from agentstream.agents.streaming.reasoning import ReasoningWrapper
from agentstream.agents.streaming.scanner import TaggedSegment, TagScanner, resolve_tags
from agentstream.exceptions import StreamSourceError
from agentstream.messages import Message, expire_messages

if TYPE_CHECKING:
    from agentstream.agents.execution_context import ToolExecutionContext
    from agentstream.agents.live_user_inputs import LivenessOracle
    from agentstream.agents.streaming.parser import ToolCall
    from agentstream.messages import ToolResultPart
    from agentstream.tools.handlers import AgentTurnState
    from agentstream.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

ResponseChunkCallback = Callable[[str | StreamEvent], Any]


@dataclass
class StreamProcessingResult:
    """Outcome of one streaming turn.

    Attributes:
        tool_calls: Successfully parsed tool calls, in stream order.
        tool_results: Results of every tool call (errors included), in
            call order.
        state: The turn state after all handlers ran; ``state.messages``
            holds the updated transcript.
        full_response: The model's complete text, markup included.
        full_response_chunks: Text chunks as received.
        message_id: Provider message id from the done sentinel.
        error: Upstream error message, if the stream failed.
        should_end_turn: Whether a call in this turn finished the agent
            step (end_turn, set_messages, or a custom tool defined with
            ``ends_agent_step``).
    """

    tool_calls: list[ToolCall]
    tool_results: list[ToolResultPart]
    state: AgentTurnState
    full_response: str
    full_response_chunks: list[str] = field(default_factory=list)
    message_id: str | None = None
    error: str | None = None
    should_end_turn: bool = False


async def process_stream_with_tools(
    stream: AsyncIterable[StreamChunk],
    *,
    registry: ToolRegistry,
    state: AgentTurnState,
    context: ToolExecutionContext,
    on_response_chunk: ResponseChunkCallback | None = None,
    start_tag: str | None = None,
    end_tag: str | None = None,
    tool_timeout: float | None = None,
) -> StreamProcessingResult:
    """Process a model stream, executing tool calls as they appear.

    Args:
        stream: Chunks from the model stream source.
        registry: Tool handlers for this turn.
        state: Turn state; handlers update it in call order and the
            transcript is rewritten in place at the end.
        context: Identifiers of the agent step.
        on_response_chunk: Sync or async display callback. Receives ``str``
            for text and ``StreamEvent`` for tool calls, tool results and
            errors.
        start_tag: Tool-call start marker (defaults to settings).
        end_tag: Tool-call end marker (defaults to settings).
        tool_timeout: Per-result timeout (defaults to settings).

    Returns:
        StreamProcessingResult for the turn.
    """
    start_tag, end_tag = resolve_tags(start_tag, end_tag)
    scanner = TagScanner(start_tag=start_tag, end_tag=end_tag)
    reasoning = ReasoningWrapper(start_tag=start_tag, end_tag=end_tag)

    stream_done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    dispatcher = ToolDispatcher(
        registry=registry,
        state=state,
        context=context,
        chain_head=stream_done,
        on_event=on_response_chunk,
        tool_timeout=tool_timeout,
    )

    full_response_chunks: list[str] = []
    message_id: str | None = None
    error: str | None = None

    async def emit(item: str | StreamEvent) -> None:
        if item:
            await deliver(on_response_chunk, item)

    async def on_error(message: str) -> None:
        await emit(reasoning.error())
        await emit(StreamEvent(type="error", content=message))

    try:
        try:
            async for chunk in stream:
                match chunk:
                    case ReasoningChunk(text=text):
                        await emit(reasoning.reasoning(text))
                    case TextChunk(text=text):
                        await emit(reasoning.text())
                        full_response_chunks.append(text)
                        for part in scanner.feed(text).parts:
                            if isinstance(part, TaggedSegment):
                                await dispatcher.dispatch_segment(part)
                            else:
                                await emit(part)
                    case ErrorChunk(message=message):
                        logger.warning(
                            "Model stream error (session=%s, step=%s): %s",
                            context.client_session_id,
                            context.agent_step_id,
                            message,
                        )
                        error = message
                        await on_error(message)
                        break
                    case StreamDone(message_id=done_id):
                        message_id = done_id
                        break
                    case _:
                        assert_never(chunk)
        except Exception as e:
            source_error = StreamSourceError(f"Error from stream: {e}")
            logger.error(
                "Model stream raised (session=%s, step=%s, correlation_id=%s): %s",
                context.client_session_id,
                context.agent_step_id,
                source_error.correlation_id,
                e,
                exc_info=e,
            )
            error = str(source_error)
            await on_error(error)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        await emit(reasoning.end())
        await emit(scanner.flush())

        stream_done.set_result(None)
        await dispatcher.wait_all()
    except asyncio.CancelledError:
        logger.info(
            "Stream turn cancelled (session=%s, step=%s), cancelling pending tool calls",
            context.client_session_id,
            context.agent_step_id,
        )
        dispatcher.cancel()
        raise
    finally:
        # Links chained on the stream must never wait on a future nobody resolves
        if not stream_done.done():
            stream_done.set_result(None)

    full_response = "".join(full_response_chunks)
    state.messages = [
        *expire_messages(state.messages, "agentStep"),
        *([Message.assistant(full_response)] if full_response else []),
        *(Message.tool(result) for result in dispatcher.tool_results),
    ]

    return StreamProcessingResult(
        tool_calls=dispatcher.tool_calls,
        tool_results=dispatcher.tool_results,
        state=state,
        full_response=full_response,
        full_response_chunks=full_response_chunks,
        message_id=message_id,
        error=error,
        should_end_turn=state.end_turn_requested
        or any(ends_agent_step(call) for call in dispatcher.tool_calls),
    )


async def run_stream_turn(
    get_stream: Callable[[], AsyncIterable[StreamChunk]],
    *,
    liveness: LivenessOracle | None,
    registry: ToolRegistry,
    state: AgentTurnState,
    context: ToolExecutionContext,
    on_response_chunk: ResponseChunkCallback | None = None,
    start_tag: str | None = None,
    end_tag: str | None = None,
    tool_timeout: float | None = None,
) -> StreamProcessingResult | None:
    """Start a streaming turn unless its user input is no longer live.

    The liveness check runs before ``get_stream`` is called, so a canceled
    prompt never reaches the provider. Nothing is emitted in that case.

    Args:
        get_stream: Creates the model stream (e.g. wraps consume_stream()).
        liveness: Oracle consulted before starting; None means always live.
        registry: Tool handlers for this turn.
        state: Turn state.
        context: Identifiers of the agent step and user input.
        on_response_chunk: Display callback.
        start_tag: Tool-call start marker (defaults to settings).
        end_tag: Tool-call end marker (defaults to settings).
        tool_timeout: Per-result timeout (defaults to settings).

    Returns:
        The StreamProcessingResult, or None if the input was canceled.
    """
    if liveness is not None and not liveness.is_live(
        user_id=context.user_id,
        user_input_id=context.user_input_id,
        client_session_id=context.client_session_id,
    ):
        logger.info(
            "Skipping stream due to canceled user input (user_id=%s, user_input_id=%s)",
            context.user_id,
            context.user_input_id,
        )
        return None

    return await process_stream_with_tools(
        get_stream(),
        registry=registry,
        state=state,
        context=context,
        on_response_chunk=on_response_chunk,
        start_tag=start_tag,
        end_tag=end_tag,
        tool_timeout=tool_timeout,
    )
