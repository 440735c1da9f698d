"""agentstream: streaming tool-call protocol layer for LLM agents.

Splits a model's token stream into prose and inline tool calls, executes
the tools in commit order while text keeps streaming, and reassembles the
conversation transcript.
"""

__version__ = "0.1.0"
