"""GitHub event source.

Registers a repository webhook delivering ``pull_request`` events when a
feed starts, and removes it when the feed stops. The webhook id is the only
state kept, and it lives in the feed context held by the framework.

Trigger shape:
{
  "resource": "owner/repo",
  "parameters": {
    "accessToken": "ghp_...",
    "secretToken": "shared-secret"
  }
}
"""

import logging
import re
from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .github.client import DEFAULT_BASE_URL, GitHubAPIError, GitHubClient
from .github.models import HookSpec
from .sources.base import EventSource
from .sources.errors import InvalidTriggerError
from .sources.models import EventTrigger, FeedContext

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GitHubClient]

_GITHUB_NAME_RE = re.compile(r"[A-Za-z0-9_.-]+")


class GitHubAccessParameters(BaseModel):
    """Trigger parameters needed to call the GitHub API.

    Attributes:
        access_token: Token used to manage the repository's webhooks.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(..., alias="accessToken", min_length=1)

    @classmethod
    def from_trigger(cls, trigger: EventTrigger) -> "GitHubAccessParameters":
        """Validate a trigger's parameters.

        Raises:
            InvalidTriggerError: If a token is missing, empty, or not a string.
        """
        try:
            return cls.model_validate(trigger.parameters)
        except ValidationError as e:
            fields = sorted(
                {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
            )
            raise InvalidTriggerError(
                f"Invalid GitHub trigger parameters: {', '.join(fields)}",
                resource=trigger.resource,
            ) from e


class GitHubFeedParameters(GitHubAccessParameters):
    """Trigger parameters needed to start a feed.

    Attributes:
        secret_token: Secret GitHub signs webhook deliveries with.
    """

    secret_token: str = Field(..., alias="secretToken", min_length=1)


def _is_github_name(name: str) -> bool:
    return bool(_GITHUB_NAME_RE.fullmatch(name)) and name not in (".", "..")


def parse_repository(resource: str) -> Tuple[str, str]:
    """Split an ``owner/repo`` resource into its two components.

    Owner and repository names are limited to the characters GitHub allows
    in them, so they can be placed in an API path as they are.

    Raises:
        InvalidTriggerError: If the resource is not exactly two valid
            names separated by ``/``.
    """
    components = resource.split("/")
    if len(components) != 2 or not all(_is_github_name(c) for c in components):
        raise InvalidTriggerError(
            f"Resource must be of the form owner/repo, got {resource!r}",
            resource=resource,
        )
    return components[0], components[1]


class GitHubEventSource(EventSource):
    """Event source backed by GitHub repository webhooks.

    Each call builds its own client from the token in the trigger, so one
    instance can serve concurrent feeds for different repositories and
    credentials.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the event source.

        Args:
            client_factory: Builds a GitHub client for an access token.
                Defaults to a GitHubClient against ``base_url``.
            base_url: GitHub API base URL for the default factory.
            timeout: Request timeout in seconds for the default factory.
        """
        if client_factory is None:

            def client_factory(token: str) -> GitHubClient:
                return GitHubClient(token=token, base_url=base_url, timeout=timeout)

        self._client_factory = client_factory

    async def start_feed(self, trigger: EventTrigger, route: str) -> FeedContext:
        """Create a pull_request webhook on the trigger's repository.

        Args:
            trigger: Repository and credentials to subscribe with.
            route: Delivery endpoint, host and path without scheme.

        Returns:
            FeedContext holding the created webhook's id.

        Raises:
            InvalidTriggerError: If the trigger is malformed.
            GitHubAPIError: If GitHub rejects the request.
        """
        logger.info(
            "Creating GitHub webhook",
            extra={"resource": trigger.resource, "route": route},
        )

        params = GitHubFeedParameters.from_trigger(trigger)
        spec = HookSpec.for_route(route, secret=params.secret_token)
        owner, repo = parse_repository(trigger.resource)

        try:
            async with self._client_factory(params.access_token) as client:
                hook = await client.create_hook(owner, repo, spec)
        except GitHubAPIError as e:
            logger.error(
                "Failed to create the webhook: %s",
                e,
                extra={"owner": owner, "repo": repo, "status_code": e.status_code},
            )
            raise

        logger.info(
            "Created webhook %s",
            hook.id,
            extra={"owner": owner, "repo": repo, "hook_id": hook.id},
        )
        return FeedContext(webhook_id=hook.id)

    async def stop_feed(self, trigger: EventTrigger, feed_context: FeedContext) -> None:
        """Delete the webhook recorded in ``feed_context``.

        A context without a webhook id, or a webhook GitHub no longer knows
        about, is treated as already stopped.

        Raises:
            InvalidTriggerError: If the trigger is malformed.
            GitHubAPIError: If GitHub rejects the request with anything
                other than 404.
        """
        logger.info(
            "Stopping GitHub webhook feed",
            extra={"resource": trigger.resource, "context": feed_context.to_context()},
        )

        owner, repo = parse_repository(trigger.resource)

        if not feed_context.has_webhook:
            logger.info("No webhook id found, nothing to delete")
            return

        webhook_id = feed_context.webhook_id
        params = GitHubAccessParameters.from_trigger(trigger)

        try:
            async with self._client_factory(params.access_token) as client:
                await client.delete_hook(owner, repo, webhook_id)
        except GitHubAPIError as e:
            if e.is_not_found:
                logger.info(
                    "Webhook %s doesn't exist, nothing to delete",
                    webhook_id,
                    extra={"owner": owner, "repo": repo, "hook_id": webhook_id},
                )
                return
            logger.error(
                "Failed to delete the webhook: %s",
                e,
                extra={
                    "owner": owner,
                    "repo": repo,
                    "hook_id": webhook_id,
                    "status_code": e.status_code,
                },
            )
            raise

        logger.info(
            "Deleted webhook %s successfully",
            webhook_id,
            extra={"owner": owner, "repo": repo, "hook_id": webhook_id},
        )

