"""GitHub API client for repository webhook management.

This module provides an async wrapper around the GitHub REST API for:
- Creating repository webhooks
- Deleting repository webhooks

Every call issues exactly one HTTP request. Failures are classified into
structured errors carrying the HTTP status code so callers can branch on
the status instead of on GitHub's human-readable messages. Retry and
backoff policy is left to the caller.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .models import Hook, HookSpec


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, or None when the
            request never produced a response (connection errors, timeouts).
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
        github_message: The ``message`` field of GitHub's JSON error body,
            when present.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        github_message: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        self.github_message = github_message
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        """True when GitHub reported the resource as missing."""
        return self.status_code == 404


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded.

    Attributes:
        reset_at: Unix timestamp when the rate limit resets.
        retry_after: Seconds to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


class GitHubClient:
    """Async GitHub API client for webhook registration.

    The client authenticates with a static bearer token and supports both
    github.com and GitHub Enterprise Server through ``base_url``.

    Attributes:
        token: GitHub API token (PAT or GitHub App token).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        timeout: Request timeout in seconds.

    Example:
        >>> async with GitHubClient(token="ghp_xxx") as client:
        ...     hook = await client.create_hook("acme", "widgets", spec)
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used to route requests
                       somewhere other than the network.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "GitHubEventSource/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        await self.close()

    def _parse_int_header(
        self,
        headers: httpx.Headers,
        name: str,
    ) -> Optional[int]:
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return None

    def _github_message(self, response: httpx.Response) -> Optional[str]:
        """Extract the ``message`` field from a GitHub JSON error body."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return None

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            remaining = self._parse_int_header(
                response.headers,
                "x-ratelimit-remaining",
            )
            return remaining == 0
        return False

    def _rate_limit_error(self, response: httpx.Response) -> RateLimitError:
        """Build a RateLimitError from a rate-limited response.

        The reset information is reported to the caller; this client never
        waits for the window to reset.
        """
        reset_at = self._parse_int_header(response.headers, "x-ratelimit-reset")
        retry_after = self._parse_int_header(response.headers, "retry-after")

        logger.warning(
            "GitHub API rate limit exceeded",
            extra={
                "reset_at": reset_at,
                "retry_after": retry_after,
                "limit": self._parse_int_header(
                    response.headers, "x-ratelimit-limit"
                ),
            },
        )

        return RateLimitError(
            message="GitHub API rate limit exceeded",
            status_code=response.status_code,
            response_body=response.text,
            request_url=str(response.url),
            github_message=self._github_message(response),
            reset_at=reset_at,
            retry_after=retry_after,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request and classify failures.

        Args:
            method: HTTP method (GET, POST, DELETE).
            path: API path (e.g., /repos/owner/repo/hooks).
            json_data: Optional JSON body for the request.

        Returns:
            The HTTP response from GitHub.

        Raises:
            GitHubAPIError: If the request fails or GitHub returns an error.
            RateLimitError: If rate limit is exceeded.
        """
        try:
            response = await self.client.request(
                method=method,
                url=path,
                json=json_data,
            )
        except httpx.RequestError as e:
            logger.error(
                "GitHub API request failed",
                extra={"path": path, "method": method, "error": str(e)},
            )
            raise GitHubAPIError(
                message=f"GitHub API request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        if self._is_rate_limited(response):
            raise self._rate_limit_error(response)

        if response.status_code >= 400:
            error_body = response.text
            github_message = self._github_message(response)
            logger.error(
                "GitHub API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise GitHubAPIError(
                message=(
                    f"GitHub API error: {response.status_code}"
                    + (f" {github_message}" if github_message else "")
                ),
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.url),
                github_message=github_message,
            )

        return response

    async def create_hook(
        self,
        owner: str,
        repo: str,
        spec: HookSpec,
    ) -> Hook:
        """Create a repository webhook.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            spec: The webhook to register.

        Returns:
            The created hook as reported by GitHub.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/hooks"

        logger.info(
            "Creating repository webhook",
            extra={
                "owner": owner,
                "repo": repo,
                "events": spec.events,
                "target_url": spec.config.url,
            },
        )

        response = await self._request(
            method="POST",
            path=path,
            json_data=spec.to_payload(),
        )

        try:
            hook = Hook.from_github_response(response.json())
        except ValueError as e:
            # The hook may exist on GitHub even though its id is unknown here
            logger.error(
                "Unexpected webhook response from GitHub",
                extra={
                    "owner": owner,
                    "repo": repo,
                    "status_code": response.status_code,
                    "response_body": response.text[:500],
                },
            )
            raise GitHubAPIError(
                message=(
                    f"Unexpected webhook response from GitHub: "
                    f"{response.status_code}"
                ),
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.url),
            ) from e

        logger.info(
            "Webhook created successfully",
            extra={"owner": owner, "repo": repo, "hook_id": hook.id},
        )

        return hook

    async def delete_hook(
        self,
        owner: str,
        repo: str,
        hook_id: int,
    ) -> None:
        """Delete a repository webhook.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            hook_id: Identifier of the webhook to delete.

        Raises:
            GitHubAPIError: If the request fails, including 404 when the
                webhook does not exist.
        """
        path = f"/repos/{owner}/{repo}/hooks/{hook_id}"

        logger.info(
            "Deleting repository webhook",
            extra={"owner": owner, "repo": repo, "hook_id": hook_id},
        )

        await self._request(method="DELETE", path=path)
