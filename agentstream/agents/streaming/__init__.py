"""Streaming module — tag scanning, tool dispatch and transcript reassembly.

Provides independently testable components: a pure incremental tag
scanner, a tool-call parser, an order-preserving dispatcher, the
reasoning wrapper, and the processor that drives them over a model
stream.
"""

from agentstream.agents.streaming.consumer import consume_stream
from agentstream.agents.streaming.dispatcher import ToolDispatcher
from agentstream.agents.streaming.events import (
    ErrorChunk,
    ReasoningChunk,
    StreamChunk,
    StreamDone,
    StreamEvent,
    TextChunk,
)
from agentstream.agents.streaming.parser import (
    BuiltinToolCall,
    CustomToolCall,
    ToolCall,
    ToolCallError,
    parse_tool_call,
)
from agentstream.agents.streaming.processor import (
    StreamProcessingResult,
    process_stream_with_tools,
    run_stream_turn,
)
from agentstream.agents.streaming.reasoning import ReasoningWrapper
from agentstream.agents.streaming.scanner import (
    ScanResult,
    TaggedSegment,
    TagScanner,
    scan,
    scan_stream,
)
from agentstream.agents.streaming.stop_sequence import StopSequenceHandler, StopSequenceResult

__all__ = [
    "BuiltinToolCall",
    "CustomToolCall",
    "ErrorChunk",
    "ReasoningChunk",
    "ReasoningWrapper",
    "ScanResult",
    "StopSequenceHandler",
    "StopSequenceResult",
    "StreamChunk",
    "StreamDone",
    "StreamEvent",
    "StreamProcessingResult",
    "TagScanner",
    "TaggedSegment",
    "TextChunk",
    "ToolCall",
    "ToolCallError",
    "ToolDispatcher",
    "consume_stream",
    "parse_tool_call",
    "process_stream_with_tools",
    "run_stream_turn",
    "scan",
    "scan_stream",
]
