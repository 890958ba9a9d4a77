"""Event source configuration using pydantic-settings.

This module defines the EventSourceSettings class that reads configuration
from environment variables with the EVENT_SOURCE_ prefix. Credentials are
not part of the process configuration: each trigger carries its own
access token.
"""

from typing import Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


FEED_OPERATION_START = "START"
FEED_OPERATION_STOP = "STOP"

# Level names shared by the logging module and uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class EventSourceSettings(BaseSettings):
    """GitHub event source configuration from environment variables.

    All environment variables are prefixed with EVENT_SOURCE_
    (e.g., EVENT_SOURCE_PORT).

    In ``server`` mode the process serves start/stop requests until it is
    terminated. In ``job`` mode it performs the single operation described
    by the ``feed_*`` fields and exits.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVENT_SOURCE_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # Timeout in seconds for each GitHub API request
    request_timeout_seconds: float = 30.0

    # -------------------------------------------------------------------------
    # Run-loop Configuration
    # -------------------------------------------------------------------------
    mode: Literal["server", "job"] = "server"

    # Host address to bind the server to
    host: str = "0.0.0.0"

    # Port number for the server
    port: int = 8080

    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Job Configuration (mode=job only)
    # -------------------------------------------------------------------------
    # START or STOP
    feed_operation: Optional[str] = None

    # JSON trigger: {"resource": "owner/repo", "parameters": {...}}
    feed_trigger: Optional[str] = None

    # JSON feed context from a previous START: {"context": {"id": "..."}}
    feed_context: Optional[str] = None

    # Delivery route for START, host and path without scheme
    feed_target: Optional[str] = None

    # File the feed context is written to after START
    termination_message_path: str = "/dev/termination-log"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_base_url")
    @classmethod
    def validate_github_base_url(cls, v: str) -> str:
        """Validate that the GitHub base URL is a valid URL format."""
        if not v or not v.strip():
            raise ValueError("github_base_url cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is understood by both logging and uvicorn."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v}"
            )
        return level

    @field_validator("feed_operation")
    @classmethod
    def validate_feed_operation(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        operation = v.upper()
        if operation not in (FEED_OPERATION_START, FEED_OPERATION_STOP):
            raise ValueError("feed_operation must be START or STOP")
        return operation

    @model_validator(mode="after")
    def validate_job_fields(self) -> "EventSourceSettings":
        """Validate that job mode has everything its operation needs."""
        if self.mode != "job":
            return self
        if self.feed_operation is None:
            raise ValueError("feed_operation is required in job mode")
        if not self.feed_trigger:
            raise ValueError("feed_trigger is required in job mode")
        if self.feed_operation == FEED_OPERATION_START and not self.feed_target:
            raise ValueError("feed_target is required to start a feed")
        return self


def get_settings() -> EventSourceSettings:
    """Create and return EventSourceSettings instance.

    Raises:
        pydantic.ValidationError: If fields are missing or invalid.
    """
    return EventSourceSettings()
