"""Reasoning wrapper: render model "thinking" tokens as a think_deeply call.

Reasoning tokens are not plain text: they are wrapped in a synthetic
``think_deeply`` tool-call markup so the renderer can tell them apart. The
wrapper opens on the first reasoning token and closes, exactly once, on the
first event that is not reasoning.

Transition table::

    state           event       -> state          emits
    NOT_REASONING   reasoning   -> REASONING      open marker + escaped text
    NOT_REASONING   text        -> NOT_REASONING  -
    NOT_REASONING   error       -> NOT_REASONING  -
    NOT_REASONING   end         -> NOT_REASONING  -
    REASONING       reasoning   -> REASONING      escaped text
    REASONING       text        -> NOT_REASONING  close marker
    REASONING       error       -> NOT_REASONING  close marker
    REASONING       end         -> NOT_REASONING  close marker
"""

from __future__ import annotations

import json
from enum import StrEnum

from agentstream.agents.streaming.scanner import resolve_tags
from agentstream.tools.constants import TOOL_NAME_PARAM, ToolName


class ReasoningState(StrEnum):
    NOT_REASONING = "not_reasoning"
    REASONING = "reasoning"


class ReasoningEvent(StrEnum):
    REASONING = "reasoning"
    TEXT = "text"
    ERROR = "error"
    END = "end"


_TRANSITIONS: dict[tuple[ReasoningState, ReasoningEvent], tuple[ReasoningState, str]] = {
    (ReasoningState.NOT_REASONING, ReasoningEvent.REASONING): (ReasoningState.REASONING, "open"),
    (ReasoningState.NOT_REASONING, ReasoningEvent.TEXT): (ReasoningState.NOT_REASONING, ""),
    (ReasoningState.NOT_REASONING, ReasoningEvent.ERROR): (ReasoningState.NOT_REASONING, ""),
    (ReasoningState.NOT_REASONING, ReasoningEvent.END): (ReasoningState.NOT_REASONING, ""),
    (ReasoningState.REASONING, ReasoningEvent.REASONING): (ReasoningState.REASONING, ""),
    (ReasoningState.REASONING, ReasoningEvent.TEXT): (ReasoningState.NOT_REASONING, "close"),
    (ReasoningState.REASONING, ReasoningEvent.ERROR): (ReasoningState.NOT_REASONING, "close"),
    (ReasoningState.REASONING, ReasoningEvent.END): (ReasoningState.NOT_REASONING, "close"),
}


def escape_reasoning(text: str) -> str:
    """Escape text for embedding inside a JSON string literal."""
    return json.dumps(text)[1:-1]


class ReasoningWrapper:
    """Track reasoning state and produce the markup to emit for each event.

    Args:
        start_tag: Tool-call start marker (defaults to settings).
        end_tag: Tool-call end marker (defaults to settings).
    """

    def __init__(self, *, start_tag: str | None = None, end_tag: str | None = None) -> None:
        start_tag, end_tag = resolve_tags(start_tag, end_tag)
        self.open_marker = (
            "\n\n"
            + start_tag
            + "{\n"
            + f'  "{TOOL_NAME_PARAM}": "{ToolName.THINK_DEEPLY.value}",\n'
            + '  "thought": "'
        )
        self.close_marker = '"\n}' + end_tag + "\n\n"
        self.state = ReasoningState.NOT_REASONING

    def transition(self, event: ReasoningEvent, text: str = "") -> str:
        """Advance the state machine and return the markup to emit.

        For reasoning events the returned string includes the escaped
        reasoning text; for other events only the close marker (if any),
        the caller emits the event's own payload after it.
        """
        self.state, action = _TRANSITIONS[(self.state, event)]
        out = ""
        if action == "open":
            out = self.open_marker
        elif action == "close":
            out = self.close_marker
        if event is ReasoningEvent.REASONING:
            out += escape_reasoning(text)
        return out

    def reasoning(self, text: str) -> str:
        return self.transition(ReasoningEvent.REASONING, text)

    def text(self) -> str:
        return self.transition(ReasoningEvent.TEXT)

    def error(self) -> str:
        return self.transition(ReasoningEvent.ERROR)

    def end(self) -> str:
        return self.transition(ReasoningEvent.END)

    @property
    def is_reasoning(self) -> bool:
        return self.state is ReasoningState.REASONING
