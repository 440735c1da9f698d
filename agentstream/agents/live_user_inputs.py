"""Live user input tracking.

Decides whether a user prompt is still eligible to receive streamed
output: the user may have canceled it, or the client session that sent it
may have disconnected. The check runs before a stream is started; it never
interrupts tool calls already in flight.

The registry is an explicit object injected where streams are started,
rather than module state. Both checks start disabled, which is the mode
for embedded/SDK use where every input counts as live.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class LivenessOracle(Protocol):
    """Answers whether a user input may still receive output."""

    def is_live(
        self,
        *,
        user_id: str | None,
        user_input_id: str,
        client_session_id: str,
    ) -> bool: ...


class LiveUserInputRegistry:
    """In-process LivenessOracle backed by per-user input lists.

    Input ids match by prefix: sub-steps of a prompt use ids derived from
    the prompt id, so they stay live while the prompt is.

    Args:
        input_check_enabled: Track started/canceled user inputs.
        session_check_enabled: Also require the client session to be
            connected (only consulted when the input check is enabled).
    """

    def __init__(
        self,
        *,
        input_check_enabled: bool = False,
        session_check_enabled: bool = False,
    ) -> None:
        self._input_check_enabled = input_check_enabled
        self._session_check_enabled = session_check_enabled
        self._live_inputs: dict[str, list[str]] = {}
        self._sessions: set[str] = set()

    @classmethod
    def from_settings(cls) -> LiveUserInputRegistry:
        from agentstream.settings import get_settings

        settings = get_settings()
        return cls(
            input_check_enabled=settings.live_user_input_check_enabled,
            session_check_enabled=settings.session_connection_check_enabled,
        )

    # -- lifecycle -------------------------------------------------------

    def enable(self, *, sessions: bool = True) -> None:
        """Turn on the input check (and optionally the session check)."""
        self._input_check_enabled = True
        self._session_check_enabled = sessions

    def disable(self) -> None:
        """Turn both checks off; every input is reported live."""
        self._input_check_enabled = False
        self._session_check_enabled = False

    def reset(self) -> None:
        """Forget all tracked inputs and sessions."""
        self._live_inputs.clear()
        self._sessions.clear()

    @property
    def enabled(self) -> bool:
        return self._input_check_enabled

    # -- tracking --------------------------------------------------------

    def start_user_input(self, user_id: str, user_input_id: str) -> None:
        self._live_inputs.setdefault(user_id, []).append(user_input_id)

    def end_user_input(self, user_id: str, user_input_id: str) -> None:
        self._remove(user_id, user_input_id)

    def cancel_user_input(self, user_id: str, user_input_id: str) -> None:
        if not self._remove(user_id, user_input_id):
            logger.debug(
                "Tried to cancel user input with incorrect user_id or user_input_id "
                "(user_id=%s, user_input_id=%s)",
                user_id,
                user_input_id,
            )
            return
        logger.info("Canceled user input %s for user %s", user_input_id, user_id)

    def set_session_connected(self, client_session_id: str, connected: bool) -> None:
        if connected:
            self._sessions.add(client_session_id)
        else:
            self._sessions.discard(client_session_id)

    def get_live_user_input_ids(self, user_id: str | None) -> list[str] | None:
        if user_id is None:
            return None
        ids = self._live_inputs.get(user_id)
        return list(ids) if ids is not None else None

    def _remove(self, user_id: str, user_input_id: str) -> bool:
        ids = self._live_inputs.get(user_id)
        if not ids or user_input_id not in ids:
            return False
        ids.remove(user_input_id)
        if not ids:
            del self._live_inputs[user_id]
        return True

    # -- oracle ----------------------------------------------------------

    def is_live(
        self,
        *,
        user_id: str | None,
        user_input_id: str,
        client_session_id: str,
    ) -> bool:
        if not self._input_check_enabled:
            return True
        if user_id is None:
            return False
        if self._session_check_enabled and client_session_id not in self._sessions:
            return False
        return any(user_input_id.startswith(live) for live in self._live_inputs.get(user_id, []))


__all__ = ["LiveUserInputRegistry", "LivenessOracle"]
