"""GitHub webhook models.

These models describe the repository webhook record as GitHub's REST API
accepts and returns it. Only the fields this event source reads or writes
are modelled; anything else in GitHub's responses is ignored.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


PULL_REQUEST_EVENT = "pull_request"

WEB_HOOK_NAME = "web"


class HookConfig(BaseModel):
    """Delivery configuration of a webhook.

    Attributes:
        url: The URL GitHub delivers payloads to.
        content_type: Payload encoding, "json" or "form".
        secret: Shared secret GitHub signs deliveries with.
        insecure_ssl: "0" to verify TLS certificates on delivery, "1" to skip.
    """

    url: str = Field(..., min_length=1)
    content_type: str = "json"
    secret: Optional[str] = None
    insecure_ssl: str = "0"


class HookSpec(BaseModel):
    """The webhook to register on a repository."""

    name: str = WEB_HOOK_NAME
    active: bool = True
    url: str = Field(..., min_length=1)
    events: List[str] = Field(default_factory=lambda: [PULL_REQUEST_EVENT])
    config: HookConfig

    @classmethod
    def for_route(cls, route: str, secret: str) -> "HookSpec":
        """Build the pull request webhook delivering to ``route``.

        Args:
            route: Host and path of the delivery endpoint, without scheme.
            secret: Shared secret for payload signatures.

        Returns:
            HookSpec subscribed to pull_request events only.
        """
        target_url = f"http://{route}"
        return cls(
            name=WEB_HOOK_NAME,
            active=True,
            url=target_url,
            events=[PULL_REQUEST_EVENT],
            config=HookConfig(
                url=target_url,
                content_type="json",
                secret=secret,
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the body of ``POST /repos/{owner}/{repo}/hooks``."""
        return self.model_dump(exclude_none=True)


class Hook(BaseModel):
    """A webhook as reported by GitHub."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., gt=0, lt=2**63)
    name: str = WEB_HOOK_NAME
    active: bool = True
    events: List[str] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    url: Optional[str] = None

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "Hook":
        return cls.model_validate(data)
