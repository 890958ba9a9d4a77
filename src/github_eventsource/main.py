"""Process entry point for the GitHub event source.

Loads configuration, sets up logging and hands a GitHubEventSource to the
run-loop, which owns the process until it is terminated.
"""

import logging
import sys

from .config import EventSourceSettings, get_settings
from .eventsource import GitHubEventSource
from .sources.runner import run_event_source

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


def _log_configuration(settings: EventSourceSettings) -> None:
    """Log configuration values on startup."""
    logger.info("Event source configuration:")
    logger.info(f"  GitHub Base URL: {settings.github_base_url}")
    logger.info(f"  Request Timeout Seconds: {settings.request_timeout_seconds}")
    logger.info(f"  Mode: {settings.mode}")
    if settings.mode == "job":
        logger.info(f"  Feed Operation: {settings.feed_operation}")
        logger.info(f"  Feed Target: {settings.feed_target}")
        logger.info(f"  Termination Message Path: {settings.termination_message_path}")
    else:
        logger.info(f"  Host: {settings.host}")
        logger.info(f"  Port: {settings.port}")


def main() -> None:
    settings = get_settings()
    _configure_logging(settings.log_level)
    _log_configuration(settings)

    source = GitHubEventSource(
        base_url=settings.github_base_url,
        timeout=settings.request_timeout_seconds,
    )
    run_event_source(source, settings)
    logger.info("Event source done")


if __name__ == "__main__":
    main()
