"""Client-side stop sequences for streamed text.

Providers do not always honour stop sequences, so the stream source cuts
the text itself. A suffix that might be the start of a stop sequence is
held back until the next chunk shows whether it is one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from agentstream.agents.streaming.scanner import suffix_prefix_overlap


@dataclass(frozen=True)
class StopSequenceResult:
    """Text that is safe to emit, and whether a stop sequence was hit."""

    text: str
    stopped: bool = False


class StopSequenceHandler:
    """Truncate a text stream at the first occurrence of any stop sequence.

    Once a stop sequence is seen, everything from it onward is dropped and
    every later call returns empty text with ``stopped=True``.
    """

    def __init__(self, stop_sequences: Iterable[str] = ()) -> None:
        self.stop_sequences = [s for s in stop_sequences if s]
        self._held = ""
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def process(self, text: str) -> StopSequenceResult:
        if self._stopped:
            return StopSequenceResult("", stopped=True)
        if not self.stop_sequences:
            return StopSequenceResult(text)

        working = self._held + text
        hits = [i for i in (working.find(s) for s in self.stop_sequences) if i != -1]
        if hits:
            self._held = ""
            self._stopped = True
            return StopSequenceResult(working[: min(hits)], stopped=True)

        held = max(
            (suffix_prefix_overlap(working, s) for s in self.stop_sequences),
            key=len,
        )
        self._held = held
        return StopSequenceResult(working[: len(working) - len(held)])

    def flush(self) -> str:
        """Release text held back at stream end."""
        held, self._held = self._held, ""
        return held
