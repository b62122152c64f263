import httpx
import pytest

from postlog.client import PostlogAnalytics
from tests.stubs import RecordingHandler


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def http_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def analytics(http_client):
    """Client with a stubbed transport, initialized with test_token."""
    client = PostlogAnalytics(transport=http_client)
    client.initialize("test_token")
    return client
