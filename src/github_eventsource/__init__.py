"""GitHub event source for pull request webhooks.

This package registers and removes GitHub repository webhooks on behalf of
an event-delivery framework:
- Webhook creation and deletion through the GitHub REST API
- The start/stop feed lifecycle the framework drives
- A run-loop serving that lifecycle over HTTP or as a one-shot job
"""

from .eventsource import (
    GitHubAccessParameters,
    GitHubEventSource,
    GitHubFeedParameters,
    parse_repository,
)

__all__ = [
    "GitHubAccessParameters",
    "GitHubEventSource",
    "GitHubFeedParameters",
    "parse_repository",
]
