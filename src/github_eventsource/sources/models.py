"""Models exchanged between the event framework and an event source.

A trigger names what to subscribe to; a feed context is the only state an
event source hands back, and the framework returns it unchanged when the
subscription is torn down.

Wire formats:
    trigger:      {"resource": "owner/repo", "parameters": {...}}
    feed context: {"context": {"id": "555"}}
"""

import re
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from .errors import InvalidFeedContextError


WEBHOOK_ID_KEY = "id"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


class EventTrigger(BaseModel):
    """Caller-supplied description of a subscription.

    Attributes:
        resource: What to subscribe to, for GitHub "owner/repo".
        parameters: Source-specific parameters such as credentials.
    """

    resource: str = Field(..., description="Subscribed resource, e.g. owner/repo")

    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Source-specific parameters",
    )


class FeedContext(BaseModel):
    """State produced by starting a feed and required to stop it.

    ``webhook_id`` is None when the feed never finished starting, in which
    case there is nothing to remove.
    """

    webhook_id: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX)

    @property
    def has_webhook(self) -> bool:
        return self.webhook_id is not None

    def to_context(self) -> Dict[str, str]:
        """Serialize to the framework's string-keyed context mapping."""
        if self.webhook_id is None:
            return {}
        return {WEBHOOK_ID_KEY: str(self.webhook_id)}

    @classmethod
    def from_context(cls, context: Optional[Mapping[str, Any]]) -> "FeedContext":
        """Parse the framework's context mapping.

        Args:
            context: Mapping previously produced by ``to_context``. None and
                mappings without an id are accepted as "no webhook".

        Returns:
            The parsed FeedContext.

        Raises:
            InvalidFeedContextError: If the stored id is not a 64-bit
                decimal integer.
        """
        if not context or WEBHOOK_ID_KEY not in context:
            return cls()

        raw = context[WEBHOOK_ID_KEY]
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise InvalidFeedContextError(
                f"Webhook id must be a string, got {type(raw).__name__}"
            )

        if isinstance(raw, str):
            if not _DECIMAL_RE.fullmatch(raw):
                raise InvalidFeedContextError(
                    f"Failed to convert webhook {raw!r} to int64"
                )
            value = int(raw)
        else:
            value = raw

        if not INT64_MIN <= value <= INT64_MAX:
            raise InvalidFeedContextError(
                f"Webhook id {raw!r} is out of int64 range"
            )

        return cls(webhook_id=value)
