"""Tests for exception hierarchy and correlation ID support."""

import uuid

import pytest

from agentstream.exceptions import (
    AgentStreamError,
    ConfigurationError,
    StreamSourceError,
    ToolCallParseError,
    ToolExecutionError,
)


class TestAgentStreamError:
    """Test base AgentStreamError class."""

    def test_auto_generates_correlation_id(self):
        """Test that correlation ID is auto-generated if not provided."""
        error = AgentStreamError("Test error")
        assert error.correlation_id is not None
        uuid.UUID(error.correlation_id)

    def test_accepts_custom_correlation_id(self):
        custom_id = str(uuid.uuid4())
        error = AgentStreamError("Test error", correlation_id=custom_id)
        assert error.correlation_id == custom_id

    def test_unique_correlation_ids(self):
        assert AgentStreamError("a").correlation_id != AgentStreamError("b").correlation_id

    def test_message_propagation(self):
        assert str(AgentStreamError("Test message")) == "Test message"


class TestToolCallParseError:
    def test_attributes(self):
        error = ToolCallParseError("bad", tool_name="web_search", raw_input={"q": 1})
        assert error.tool_name == "web_search"
        assert error.raw_input == {"q": 1}

    def test_raw_input_defaults_to_empty(self):
        assert ToolCallParseError("bad").raw_input == {}

    def test_passes_correlation_id_through(self):
        error = ToolCallParseError("bad", correlation_id="corr-1")
        assert error.correlation_id == "corr-1"


class TestToolExecutionError:
    def test_timeout_flag(self):
        error = ToolExecutionError("slow", tool_name="web_search", tool_call_id="c1", timeout=True)
        assert error.timeout is True
        assert error.tool_call_id == "c1"


class TestStreamSourceError:
    def test_provider(self):
        assert StreamSourceError("down", provider="gpt-test").provider == "gpt-test"


@pytest.mark.parametrize(
    "exc_type",
    [ToolCallParseError, ToolExecutionError, StreamSourceError, ConfigurationError],
)
def test_subclasses_share_base(exc_type):
    """All errors can be caught as AgentStreamError."""
    with pytest.raises(AgentStreamError):
        raise exc_type("boom")
