"""Shared test fixtures and configuration for bug capture tests."""

import pytest

from bugcapture.capture.buffers import BoundedBuffer
from bugcapture.capture.pipeline import EventPipeline

from tests.fakes import FakePage


@pytest.fixture
def page():
    """Fake Playwright page."""
    return FakePage()


@pytest.fixture
async def pipeline():
    """Running event pipeline, stopped after the test."""
    pipeline = EventPipeline(name="test")
    pipeline.start()
    yield pipeline
    await pipeline.stop()


@pytest.fixture
def console_buffer():
    return BoundedBuffer(100)


@pytest.fixture
def network_buffer():
    return BoundedBuffer(50)


@pytest.fixture
def action_buffer():
    return BoundedBuffer(50)


@pytest.fixture
def capture_config():
    """Minimal valid engine configuration, camelCase as embedded pages write it."""
    return {
        "projectKey": "proj_test_123",
        "apiEndpoint": "https://bugs.example.com",
        "showButton": False,
    }
