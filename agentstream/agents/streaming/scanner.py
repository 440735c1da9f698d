"""Tag scanner — split streamed text into display text and tool-call payloads.

The scanner sees model output one chunk at a time. Chunks are arbitrary
slices of the text, so a start or end marker can be split anywhere. The
scanner keeps a small buffer between calls:

- from an open start marker onward while a tool call is still arriving, or
- the longest suffix that could still grow into a start marker.

Everything else is emitted as plain text as soon as it is known to be
plain. Tool-call bodies are withheld from the text channel and returned
as ``TaggedSegment``s.

``scan()`` is a pure function; ``TagScanner`` and ``scan_stream()`` wrap
it for push-style and async-iterator callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agentstream.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaggedSegment:
    """A complete tool-call payload found in the stream.

    Attributes:
        body: Text between the markers, not validated here.
        start_tag: The start marker that opened the segment.
        end_tag: The end marker that closed it.
    """

    body: str
    start_tag: str
    end_tag: str

    @property
    def raw(self) -> str:
        return f"{self.start_tag}{self.body}{self.end_tag}"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one chunk.

    Attributes:
        parts: Plain-text emissions and tagged segments, in stream order.
            Emissions are never empty.
        buffer: Unclassified suffix to pass to the next scan() call.
    """

    parts: list[str | TaggedSegment] = field(default_factory=list)
    buffer: str = ""

    @property
    def emissions(self) -> list[str]:
        return [part for part in self.parts if isinstance(part, str)]

    @property
    def segments(self) -> list[TaggedSegment]:
        return [part for part in self.parts if isinstance(part, TaggedSegment)]


def suffix_prefix_overlap(text: str, marker: str) -> str:
    """Return the longest suffix of ``text`` that is a prefix of ``marker``."""
    for length in range(min(len(text), len(marker)), 0, -1):
        if text.endswith(marker[:length]):
            return text[-length:]
    return ""


def resolve_tags(start_tag: str | None, end_tag: str | None) -> tuple[str, str]:
    """Fill in unset markers from settings."""
    if start_tag is None or end_tag is None:
        settings = get_settings()
        start_tag = start_tag if start_tag is not None else settings.tool_start_tag
        end_tag = end_tag if end_tag is not None else settings.tool_end_tag
    return start_tag, end_tag


def scan(
    buffer: str,
    chunk: str,
    *,
    start_tag: str | None = None,
    end_tag: str | None = None,
) -> ScanResult:
    """Scan one chunk of streamed text.

    Args:
        buffer: The buffer returned by the previous call ("" at stream start).
        chunk: Newly received text.
        start_tag: Start marker (defaults to settings.tool_start_tag).
        end_tag: End marker (defaults to settings.tool_end_tag).

    Returns:
        ScanResult with ordered parts and the next buffer.
    """
    start_tag, end_tag = resolve_tags(start_tag, end_tag)
    working = buffer + chunk
    parts: list[str | TaggedSegment] = []

    start = working.find(start_tag)
    end = working.find(end_tag)
    while end != -1:
        cut = end + len(end_tag)
        if start == -1 or start > end:
            # End marker with no start marker before it: plain text
            logger.debug("Orphan end marker at offset %d, emitting as text", end)
            parts.append(working[:cut])
        else:
            if start > 0:
                parts.append(working[:start])
            parts.append(
                TaggedSegment(
                    body=working[start + len(start_tag) : end],
                    start_tag=start_tag,
                    end_tag=end_tag,
                )
            )
        working = working[cut:]
        start = working.find(start_tag)
        end = working.find(end_tag)

    # Open tag: hold everything from the start marker on
    if start != -1:
        if start > 0:
            parts.append(working[:start])
        return ScanResult(parts=parts, buffer=working[start:])

    # Possible start marker split across chunks
    overlap = suffix_prefix_overlap(working, start_tag)
    if len(overlap) < len(working):
        parts.append(working[: len(working) - len(overlap)])
    return ScanResult(parts=parts, buffer=overlap)


class TagScanner:
    """Stateful wrapper around scan() for push-style callers.

    Not safe for concurrent use; feed chunks in arrival order.
    """

    def __init__(self, *, start_tag: str | None = None, end_tag: str | None = None) -> None:
        self.start_tag, self.end_tag = resolve_tags(start_tag, end_tag)
        self.buffer = ""

    def feed(self, chunk: str) -> ScanResult:
        result = scan(self.buffer, chunk, start_tag=self.start_tag, end_tag=self.end_tag)
        self.buffer = result.buffer
        return result

    def flush(self) -> str:
        """Empty the buffer at stream end and return its contents.

        An unterminated tool call is returned as plain text rather than
        dropped; it is never parsed.
        """
        leftover, self.buffer = self.buffer, ""
        if leftover.startswith(self.start_tag):
            logger.warning(
                "Stream ended inside an unterminated tool call; flushing %d chars as text",
                len(leftover),
            )
        return leftover


async def scan_stream(
    chunks: AsyncIterable[str],
    *,
    start_tag: str | None = None,
    end_tag: str | None = None,
) -> AsyncGenerator[str | TaggedSegment, None]:
    """Scan an async text stream, yielding emissions and segments in order.

    The leftover buffer is yielded as text when the stream ends.
    """
    scanner = TagScanner(start_tag=start_tag, end_tag=end_tag)
    async for chunk in chunks:
        for part in scanner.feed(chunk).parts:
            yield part
    leftover = scanner.flush()
    if leftover:
        yield leftover
