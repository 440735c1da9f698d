"""Agent-side runtime pieces: execution context, liveness, streaming."""
