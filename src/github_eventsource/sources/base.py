"""Abstract event source interface."""

from abc import ABC, abstractmethod

from .models import EventTrigger, FeedContext


class EventSource(ABC):
    """Lifecycle contract between the event framework and a source.

    Implementations must not keep per-subscription state: the framework
    may start and stop different feeds concurrently, and correlates each
    feed with its context itself.
    """

    @abstractmethod
    async def start_feed(self, trigger: EventTrigger, route: str) -> FeedContext:
        """Begin delivering events for ``trigger`` to ``route``.

        Returns:
            The context the framework must pass back to ``stop_feed``.
        """

    @abstractmethod
    async def stop_feed(self, trigger: EventTrigger, feed_context: FeedContext) -> None:
        """Stop the feed previously started for ``trigger``.

        Stopping a feed that is already gone must succeed.
        """
