"""Run-loop hosting an event source.

The run-loop owns process lifetime. It receives the event source by
injection and either serves start/stop requests over HTTP until the
process is terminated (``server`` mode) or performs one operation taken
from configuration and returns (``job`` mode).

HTTP API (server mode):
    POST /feeds/start  {"trigger": {...}, "route": "host/path"}
                       -> {"context": {"id": "555"}}
    POST /feeds/stop   {"trigger": {...}, "context": {"id": "555"}}
                       -> {"status": "stopped"}
    GET  /health       -> {"status": "healthy"}
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from ..config import FEED_OPERATION_START, EventSourceSettings
from ..github.client import GitHubAPIError
from .base import EventSource
from .errors import EventSourceError
from .models import EventTrigger, FeedContext

logger = logging.getLogger(__name__)


class StartFeedRequest(BaseModel):
    trigger: EventTrigger
    route: str = Field(..., min_length=1, description="Delivery endpoint without scheme")


class StopFeedRequest(BaseModel):
    trigger: EventTrigger
    context: Dict[str, Any] = Field(default_factory=dict)


class StartFeedResponse(BaseModel):
    context: Dict[str, str]


def _api_error_detail(error: GitHubAPIError) -> Dict[str, Any]:
    return {
        "message": error.message,
        "status_code": error.status_code,
    }


def create_app(source: EventSource) -> FastAPI:
    """Build the HTTP application serving ``source``.

    Args:
        source: The event source that handles start and stop requests.

    Returns:
        FastAPI application with the feed lifecycle endpoints.
    """
    app = FastAPI(
        title="GitHub Event Source",
        description="Registers GitHub webhooks for event feeds",
        version="1.0.0",
    )
    app.state.source = source

    @app.get("/health")
    async def health():
        """Liveness probe endpoint."""
        return {"status": "healthy"}

    @app.post("/feeds/start", response_model=StartFeedResponse)
    async def start_feed(request: StartFeedRequest):
        """Start a feed and return the context needed to stop it."""
        try:
            feed_context = await app.state.source.start_feed(
                request.trigger, request.route
            )
        except EventSourceError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except GitHubAPIError as e:
            raise HTTPException(status_code=502, detail=_api_error_detail(e))

        return StartFeedResponse(context=feed_context.to_context())

    @app.post("/feeds/stop")
    async def stop_feed(request: StopFeedRequest):
        """Stop a feed previously started with the given context."""
        try:
            feed_context = FeedContext.from_context(request.context)
            await app.state.source.stop_feed(request.trigger, feed_context)
        except EventSourceError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except GitHubAPIError as e:
            raise HTTPException(status_code=502, detail=_api_error_detail(e))

        return {"status": "stopped"}

    return app


def _load_trigger(raw: str) -> EventTrigger:
    try:
        return EventTrigger.model_validate_json(raw)
    except ValidationError as e:
        raise EventSourceError(f"Invalid feed trigger: {e}") from e


def _load_feed_context(raw: str) -> FeedContext:
    """Parse a serialized ``{"context": {...}}`` document."""
    try:
        document = json.loads(raw)
    except ValueError as e:
        raise EventSourceError(f"Invalid feed context JSON: {e}") from e
    if not isinstance(document, dict):
        raise EventSourceError("Feed context must be a JSON object")
    context = document.get("context")
    if context is None:
        return FeedContext()
    if not isinstance(context, dict):
        raise EventSourceError("Feed context 'context' must be a JSON object")
    return FeedContext.from_context(context)


async def run_feed_job(source: EventSource, settings: EventSourceSettings) -> None:
    """Perform the single feed operation described by ``settings``.

    After a successful start, the feed context is written to
    ``settings.termination_message_path`` so the framework can record it.

    Raises:
        EventSourceError: If the trigger or context is malformed.
        GitHubAPIError: If the GitHub call fails.
    """
    trigger = _load_trigger(settings.feed_trigger or "")

    logger.info(
        "Running feed job",
        extra={"operation": settings.feed_operation, "resource": trigger.resource},
    )

    if settings.feed_operation == FEED_OPERATION_START:
        feed_context = await source.start_feed(trigger, settings.feed_target or "")
        output = json.dumps({"context": feed_context.to_context()})
        Path(settings.termination_message_path).write_text(output)
        logger.info(
            "Feed started",
            extra={"path": settings.termination_message_path},
        )
        return

    feed_context = _load_feed_context(settings.feed_context or "{}")
    await source.stop_feed(trigger, feed_context)
    logger.info("Feed stopped", extra={"resource": trigger.resource})


def run_event_source(source: EventSource, settings: EventSourceSettings) -> None:
    """Run ``source`` until the process is asked to stop.

    Blocks for the lifetime of the server in ``server`` mode; returns after
    the single operation in ``job`` mode.
    """
    if settings.mode == "job":
        asyncio.run(run_feed_job(source, settings))
        return

    app = create_app(source)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
