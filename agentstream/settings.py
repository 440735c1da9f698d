"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Streaming layer configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Inline tool-call markup
    tool_start_tag: str = Field(
        default="<tool_call>\n",
        description="Literal marker opening an inline tool call in model output",
    )
    tool_end_tag: str = Field(
        default="\n</tool_call>",
        description="Literal marker closing an inline tool call in model output",
    )

    # Tool execution
    tool_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        le=3600,
        description="Maximum wait for a tool result once the previous call has committed",
    )

    # Upstream stream
    stop_sequences: list[str] = Field(
        default_factory=list,
        description="Sequences that end the model stream; text after them is discarded",
    )

    # Liveness tracking (disabled = embedded/SDK mode, every input is live)
    live_user_input_check_enabled: bool = Field(
        default=False,
        description="Skip streams whose user input was canceled",
    )
    session_connection_check_enabled: bool = Field(
        default=False,
        description="Skip streams whose client session is disconnected",
    )

    @model_validator(mode="after")
    def _check_tool_tags(self) -> "Settings":
        if not self.tool_start_tag or not self.tool_end_tag:
            raise ValueError("tool_start_tag and tool_end_tag must be non-empty")
        if self.tool_start_tag == self.tool_end_tag:
            raise ValueError("tool_start_tag and tool_end_tag must differ")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
