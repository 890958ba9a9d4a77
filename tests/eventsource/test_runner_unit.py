"""Unit tests for the event source run-loop.

Covers the HTTP API served in server mode and the single-operation job
mode, with the GitHub client replaced by a mock.
"""

import asyncio
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fakes import FakeClientFactory

from github_eventsource.config import EventSourceSettings
from github_eventsource.eventsource import GitHubEventSource
from github_eventsource.github.client import GitHubAPIError
from github_eventsource.sources.errors import EventSourceError, InvalidTriggerError
from github_eventsource.sources.runner import create_app, run_event_source, run_feed_job


TRIGGER = {
    "resource": "acme/widgets",
    "parameters": {"accessToken": "tok123", "secretToken": "shh"},
}


def run_async(coro):
    return asyncio.run(coro)


def _make_http_client(client_factory: FakeClientFactory) -> TestClient:
    source = GitHubEventSource(client_factory=client_factory)
    return TestClient(create_app(source))


def _job_settings(**overrides) -> EventSourceSettings:
    values = {
        "mode": "job",
        "feed_operation": "START",
        "feed_trigger": json.dumps(TRIGGER),
        "feed_target": "example.com/hook",
    }
    values.update(overrides)
    return EventSourceSettings(**values)


class TestHealthEndpoint:
    def test_health(self, client_factory):
        response = _make_http_client(client_factory).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestStartEndpoint:
    def test_returns_feed_context(self, client_factory):
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/start", json={"trigger": TRIGGER, "route": "example.com/hook"}
        )

        assert response.status_code == 200
        assert response.json() == {"context": {"id": "555"}}
        args = client_factory.client.create_hook.await_args.args
        assert args[:2] == ("acme", "widgets")

    def test_malformed_resource_is_bad_request(self, client_factory):
        http = _make_http_client(client_factory)
        trigger = dict(TRIGGER, resource="widgets")

        response = http.post(
            "/feeds/start", json={"trigger": trigger, "route": "example.com/hook"}
        )

        assert response.status_code == 400
        assert client_factory.calls == 0

    def test_missing_route_is_rejected(self, client_factory):
        http = _make_http_client(client_factory)

        response = http.post("/feeds/start", json={"trigger": TRIGGER})

        assert response.status_code == 422

    def test_github_failure_is_bad_gateway(self):
        client_factory = FakeClientFactory(
            create_error=GitHubAPIError(message="GitHub API error: 401", status_code=401)
        )
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/start", json={"trigger": TRIGGER, "route": "example.com/hook"}
        )

        assert response.status_code == 502
        assert response.json()["detail"]["status_code"] == 401


class TestStopEndpoint:
    def test_deletes_hook_from_context(self, client_factory):
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/stop", json={"trigger": TRIGGER, "context": {"id": "555"}}
        )

        assert response.status_code == 200
        assert response.json() == {"status": "stopped"}
        client_factory.client.delete_hook.assert_awaited_once_with(
            "acme", "widgets", 555
        )

    def test_empty_context_is_noop(self, client_factory):
        http = _make_http_client(client_factory)

        response = http.post("/feeds/stop", json={"trigger": TRIGGER})

        assert response.status_code == 200
        assert client_factory.calls == 0

    def test_corrupt_id_is_bad_request(self, client_factory):
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/stop", json={"trigger": TRIGGER, "context": {"id": "abc"}}
        )

        assert response.status_code == 400
        assert client_factory.calls == 0

    def test_hook_already_gone_is_success(self):
        client_factory = FakeClientFactory(
            delete_error=GitHubAPIError(message="Not Found", status_code=404)
        )
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/stop", json={"trigger": TRIGGER, "context": {"id": "555"}}
        )

        assert response.status_code == 200

    def test_other_github_failure_is_bad_gateway(self):
        client_factory = FakeClientFactory(
            delete_error=GitHubAPIError(message="GitHub API error: 500", status_code=500)
        )
        http = _make_http_client(client_factory)

        response = http.post(
            "/feeds/stop", json={"trigger": TRIGGER, "context": {"id": "555"}}
        )

        assert response.status_code == 502
        assert response.json()["detail"]["status_code"] == 500


class TestFeedJob:
    def test_start_writes_feed_context(self, client_factory, tmp_path):
        output = tmp_path / "termination-log"
        settings = _job_settings(termination_message_path=str(output))
        source = GitHubEventSource(client_factory=client_factory)

        run_async(run_feed_job(source, settings))

        assert json.loads(output.read_text()) == {"context": {"id": "555"}}
        assert client_factory.client.create_hook.await_args.args[2].url == (
            "http://example.com/hook"
        )

    def test_stop_deletes_hook_from_context(self, client_factory):
        settings = _job_settings(
            feed_operation="STOP",
            feed_target=None,
            feed_context=json.dumps({"context": {"id": "555"}}),
        )
        source = GitHubEventSource(client_factory=client_factory)

        run_async(run_feed_job(source, settings))

        client_factory.client.delete_hook.assert_awaited_once_with(
            "acme", "widgets", 555
        )

    def test_stop_without_context_is_noop(self, client_factory):
        settings = _job_settings(feed_operation="STOP")
        source = GitHubEventSource(client_factory=client_factory)

        run_async(run_feed_job(source, settings))

        assert client_factory.calls == 0

    def test_invalid_trigger_json_raises(self, client_factory):
        settings = _job_settings(feed_trigger="not json")
        source = GitHubEventSource(client_factory=client_factory)

        with pytest.raises(EventSourceError):
            run_async(run_feed_job(source, settings))

    def test_invalid_context_json_raises(self, client_factory):
        settings = _job_settings(feed_operation="STOP", feed_context="[1, 2]")
        source = GitHubEventSource(client_factory=client_factory)

        with pytest.raises(EventSourceError):
            run_async(run_feed_job(source, settings))

    @pytest.mark.parametrize("context", [[], "", 0, "555"])
    def test_non_object_context_raises(self, client_factory, context):
        settings = _job_settings(
            feed_operation="STOP", feed_context=json.dumps({"context": context})
        )
        source = GitHubEventSource(client_factory=client_factory)

        with pytest.raises(EventSourceError):
            run_async(run_feed_job(source, settings))

        assert client_factory.calls == 0

    def test_null_context_is_noop(self, client_factory):
        settings = _job_settings(
            feed_operation="STOP", feed_context=json.dumps({"context": None})
        )
        source = GitHubEventSource(client_factory=client_factory)

        run_async(run_feed_job(source, settings))

        assert client_factory.calls == 0

    def test_failures_propagate(self, tmp_path):
        output = tmp_path / "termination-log"
        settings = _job_settings(
            feed_trigger=json.dumps(dict(TRIGGER, resource="acme")),
            termination_message_path=str(output),
        )
        source = GitHubEventSource(client_factory=FakeClientFactory())

        with pytest.raises(InvalidTriggerError):
            run_async(run_feed_job(source, settings))

        assert not output.exists()


class TestRunEventSource:
    def test_server_mode_serves_app_with_uvicorn(self, client_factory):
        source = GitHubEventSource(client_factory=client_factory)
        settings = EventSourceSettings(host="127.0.0.1", port=9090)

        with patch("github_eventsource.sources.runner.uvicorn.run") as uvicorn_run:
            run_event_source(source, settings)

        uvicorn_run.assert_called_once()
        app = uvicorn_run.call_args.args[0]
        assert app.state.source is source
        assert uvicorn_run.call_args.kwargs["host"] == "127.0.0.1"
        assert uvicorn_run.call_args.kwargs["port"] == 9090

    def test_job_mode_runs_single_operation(self, client_factory, tmp_path):
        output = tmp_path / "termination-log"
        source = GitHubEventSource(client_factory=client_factory)

        with patch("github_eventsource.sources.runner.uvicorn.run") as uvicorn_run:
            run_event_source(
                source, _job_settings(termination_message_path=str(output))
            )

        uvicorn_run.assert_not_called()
        assert json.loads(output.read_text()) == {"context": {"id": "555"}}
