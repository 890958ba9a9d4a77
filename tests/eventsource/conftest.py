"""Fixtures for event source tests."""

import pytest

from fakes import FakeClientFactory, make_trigger

from github_eventsource.sources.models import EventTrigger


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def trigger() -> EventTrigger:
    return make_trigger()
