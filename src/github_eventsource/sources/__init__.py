"""Contract between the event framework and event sources.

This package defines:
- EventTrigger and FeedContext, the data passed across the contract
- EventSource, the start/stop lifecycle every source implements
- run_event_source, the run-loop that hosts a source for the process lifetime
"""

from .base import EventSource
from .errors import EventSourceError, InvalidFeedContextError, InvalidTriggerError
from .models import EventTrigger, FeedContext
from .runner import create_app, run_event_source, run_feed_job

__all__ = [
    "EventSource",
    "EventSourceError",
    "EventTrigger",
    "FeedContext",
    "InvalidFeedContextError",
    "InvalidTriggerError",
    "create_app",
    "run_event_source",
    "run_feed_job",
]
