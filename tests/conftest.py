"""Pytest fixtures for the automerge tests."""

from __future__ import annotations

import pytest

from automerge.models import Repository
from tests.fakes import FakeGraphQLClient, RecordingSleep


@pytest.fixture
def fake_client() -> FakeGraphQLClient:
    """Return an empty scripted GraphQL client."""
    return FakeGraphQLClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Return a sleep replacement that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def repository() -> Repository:
    """Return the repository used by the tests."""
    return Repository(owner="acme", name="widgets")
