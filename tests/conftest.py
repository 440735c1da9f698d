"""Shared test fixtures for agentstream.

Provides common fixtures used across the unit tests: a fresh settings
cache, an execution context and turn state.
"""

from collections.abc import Generator

import pytest

from agentstream.agents.execution_context import ToolExecutionContext
from agentstream.settings import get_settings
from agentstream.tools.handlers import AgentTurnState

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Clear the cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# TURN STATE
# =============================================================================


@pytest.fixture
def context() -> ToolExecutionContext:
    """Execution context for a single agent step."""
    return ToolExecutionContext(
        agent_step_id="step-1",
        client_session_id="session-1",
        user_input_id="input-1",
        user_id="user-1",
    )


@pytest.fixture
def state() -> AgentTurnState:
    """Empty turn state."""
    return AgentTurnState()
