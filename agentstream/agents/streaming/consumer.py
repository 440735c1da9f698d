"""Stream consumer — adapt a LangChain astream into StreamChunks.

The streaming core never talks to a provider. It is handed a sequence of
``StreamChunk`` values; this module produces that sequence from the
``AIMessageChunk`` stream of any LangChain chat model (``llm.astream()``).

Mapping:

- ``content`` (string, or a list of content blocks) -> ``TextChunk``,
  through the client-side stop-sequence handler
- ``additional_kwargs["reasoning_content"]`` and ``thinking`` content
  blocks -> ``ReasoningChunk``
- an exception raised by the provider -> one ``ErrorChunk``, then
  ``StreamDone(None)``
- the last non-empty chunk ``id`` -> ``StreamDone(message_id)``

Usage reported in ``response_metadata["usage"]`` (``cost`` plus
``cost_details.upstream_inference_cost``, as OpenRouter-compatible
endpoints report it) is handed to ``on_cost_calculated`` in dollars.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from agentstream.agents.streaming.events import (
    ErrorChunk,
    ReasoningChunk,
    StreamChunk,
    StreamDone,
    TextChunk,
    deliver,
)
from agentstream.agents.streaming.stop_sequence import StopSequenceHandler
from agentstream.exceptions import StreamSourceError
from agentstream.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Iterable

    from langchain_core.messages import AIMessageChunk

logger = logging.getLogger(__name__)


def split_content(content: str | list[Any]) -> tuple[str, str]:
    """Split message content into (text, reasoning).

    Args:
        content: ``AIMessageChunk.content``, a string or a list of content
            blocks (strings or dicts with a ``type`` key).

    Returns:
        Concatenated text and concatenated reasoning.
    """
    if isinstance(content, str):
        return content, ""

    text: list[str] = []
    reasoning: list[str] = []
    for block in content:
        if isinstance(block, str):
            text.append(block)
        elif isinstance(block, dict):
            block_type = block.get("type")
            if block_type == "text":
                text.append(block.get("text") or "")
            elif block_type in ("thinking", "reasoning"):
                reasoning.append(block.get(block_type) or block.get("text") or "")
    return "".join(text), "".join(reasoning)


def _usage_cost(chunk: AIMessageChunk) -> tuple[float | None, float | None]:
    usage = (getattr(chunk, "response_metadata", None) or {}).get("usage") or {}
    if not isinstance(usage, dict):
        return None, None
    cost = usage.get("cost")
    upstream = (usage.get("cost_details") or {}).get("upstream_inference_cost")
    return (
        float(cost) if isinstance(cost, int | float) else None,
        float(upstream) if isinstance(upstream, int | float) else None,
    )


async def consume_stream(
    astream: AsyncIterator[AIMessageChunk],
    *,
    model: str = "unknown",
    stop_sequences: Iterable[str] | None = None,
    on_cost_calculated: Callable[[float], Any] | None = None,
) -> AsyncGenerator[StreamChunk, None]:
    """Consume an LLM astream, yielding StreamChunks.

    Always ends with exactly one ``StreamDone``. Provider exceptions are
    not raised; they are logged and become an ``ErrorChunk``.

    Args:
        astream: Async iterator of LangChain message chunks.
        model: Model name, used in error messages and logs.
        stop_sequences: Text is cut at the first of these (defaults to
            settings.stop_sequences).
        on_cost_calculated: Sync or async callback receiving the turn's
            cost in dollars, when the provider reports one.

    Yields:
        TextChunk, ReasoningChunk and ErrorChunk values, then StreamDone.
    """
    if stop_sequences is None:
        stop_sequences = get_settings().stop_sequences
    stop_handler = StopSequenceHandler(stop_sequences)

    message_id: str | None = None
    cost: float | None = None
    upstream_cost: float | None = None

    try:
        async for chunk in astream:
            if chunk.id:
                message_id = chunk.id

            chunk_cost, chunk_upstream = _usage_cost(chunk)
            cost = chunk_cost if chunk_cost is not None else cost
            upstream_cost = chunk_upstream if chunk_upstream is not None else upstream_cost

            text, reasoning = split_content(chunk.content)
            extra_reasoning = (chunk.additional_kwargs or {}).get("reasoning_content")
            if isinstance(extra_reasoning, str):
                reasoning = extra_reasoning + reasoning

            if reasoning:
                # Held-back text belongs before the reasoning
                flushed = stop_handler.flush()
                if flushed:
                    yield TextChunk(flushed)
                yield ReasoningChunk(reasoning)

            if text:
                result = stop_handler.process(text)
                if result.text:
                    yield TextChunk(result.text)
    except Exception as e:
        error = StreamSourceError(f"Error from LLM (model {model}): {e}", provider=model)
        logger.error(
            "Model stream failed (model=%s, correlation_id=%s): %s",
            model,
            error.correlation_id,
            e,
            exc_info=e,
        )
        flushed = stop_handler.flush()
        if flushed:
            yield TextChunk(flushed)
        yield ErrorChunk(str(error))
        yield StreamDone(None)
        return

    flushed = stop_handler.flush()
    if flushed:
        yield TextChunk(flushed)

    total = (cost or 0.0) + (upstream_cost or 0.0)
    if on_cost_calculated is not None and total:
        await deliver(on_cost_calculated, total)

    yield StreamDone(message_id)
