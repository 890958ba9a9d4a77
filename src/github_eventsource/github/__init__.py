"""GitHub API client for repository webhook management.

This module provides a wrapper around the GitHub API for:
- Creating repository webhooks
- Deleting repository webhooks

Failures are reported as structured errors carrying the HTTP status code.
"""

from .client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)
from .models import Hook, HookConfig, HookSpec, PULL_REQUEST_EVENT

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "Hook",
    "HookConfig",
    "HookSpec",
    "PULL_REQUEST_EVENT",
    "RateLimitError",
]
