"""Errors raised across the event source contract."""


class EventSourceError(Exception):
    """Base class for event source failures that are not API errors."""


class InvalidTriggerError(EventSourceError, ValueError):
    """Raised when a trigger's resource or parameters are unusable.

    Attributes:
        resource: The trigger resource being processed.
    """

    def __init__(self, message: str, resource: str = ""):
        self.resource = resource
        super().__init__(message)


class InvalidFeedContextError(EventSourceError, ValueError):
    """Raised when a feed context handed back by the caller is corrupt."""
