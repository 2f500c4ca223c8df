"""
Shared Test Fixtures for the SocialAT PDS Client

This module provides common fixtures used across all test modules.
Fixtures include a mocked atproto client, test settings, HTTP responses,
log capture and data factories for sessions and blobs.
"""

import pytest
from unittest.mock import MagicMock, patch
from types import SimpleNamespace
from typing import Optional, Dict
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from atproto_client.exceptions import AtProtocolError
from atproto_client.models.blob_ref import BlobRef, IpldLink

from config import settings
from data.models import ContentRef, Session


TEST_SERVER = "https://pds.example.com"


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """
    Patch the settings module with safe test values.

    This fixture prevents tests from using real credentials or a real server
    configured through the environment or a .env file.

    Returns:
        module: The settings module with patched attributes.
    """
    values = {
        "PDS_SERVER": TEST_SERVER,
        "PDS_HANDLE": "alice.pds.example.com",
        "PDS_PASSWORD": "test-password",
        "PDS_ADMIN_TOKEN": "test-admin-token",
        "REQUEST_TIMEOUT": 10.0,
        "UPLOAD_MAX_WORKERS": 4,
        "TIMELINE_FETCH_LIMIT": 50,
        "STRICT_EMBED_COUNTS": False,
        "LOG_LEVEL": "INFO",
    }
    with patch.multiple(settings, **values):
        yield settings


# =============================================================================
# AT Protocol Client Fixtures
# =============================================================================

class FakeRequestError(AtProtocolError):
    """An SDK request error carrying an upstream status and XRPC error body."""

    def __init__(self, status: int = 401, error: str = "AuthenticationRequired",
                 message: str = "Invalid identifier or password"):
        super().__init__(message)
        self.response = SimpleNamespace(
            status_code=status,
            content=SimpleNamespace(error=error, message=message),
        )


@pytest.fixture
def request_error():
    """Factory for SDK request errors."""
    return FakeRequestError


@pytest.fixture
def session_response():
    """Factory for createSession/createAccount responses."""
    def _create(handle: str = "alice.pds.example.com", did: str = "did:plc:alice123",
                access_jwt: str = "access-jwt", refresh_jwt: str = "refresh-jwt"):
        return SimpleNamespace(
            access_jwt=access_jwt,
            refresh_jwt=refresh_jwt,
            handle=handle,
            did=did,
        )
    return _create


@pytest.fixture
def test_session():
    """An active session."""
    return Session(
        access_jwt="access-jwt",
        refresh_jwt="refresh-jwt",
        handle="alice.pds.example.com",
        did="did:plc:alice123",
    )


@pytest.fixture
def mock_at_client(session_response):
    """
    Patch the atproto Client used by the transport.

    Every Transport created while this fixture is active gets the same mock,
    so calls from probe and admin transports are visible on it too.

    Returns:
        tuple: (MockClient class, mock client instance)
    """
    with patch('services.transport.Client') as MockClient:
        mock_client = MagicMock()
        mock_client.com.atproto.server.create_session.return_value = session_response()
        mock_client.com.atproto.server.get_session.return_value = SimpleNamespace(
            handle="alice.pds.example.com", did="did:plc:alice123"
        )
        mock_client.com.atproto.repo.create_record.return_value = SimpleNamespace(
            uri="at://did:plc:alice123/app.bsky.feed.post/3kabc",
            cid="bafyreiabc123",
        )
        MockClient.return_value = mock_client
        yield MockClient, mock_client


@pytest.fixture
def upload_response():
    """Factory for uploadBlob responses."""
    def _create(link: str = "bafkreiblob1", mime_type: str = "image/jpeg", size: int = 1024):
        return SimpleNamespace(
            blob=BlobRef(mime_type=mime_type, size=size, ref=IpldLink(link=link))
        )
    return _create


@pytest.fixture
def content_ref():
    """Factory for ContentRef objects."""
    def _create(link: str = "bafkreiblob1", mime_type: str = "image/jpeg", size: int = 1024):
        return ContentRef.from_link(link, mime_type, size)
    return _create


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)

    yield handler.records

    root_logger.removeHandler(handler)
    root_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_fetch(mock_http_response):
            response = mock_http_response(status_code=200, content=b'bytes')

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        content: bytes = b'',
        headers: Optional[Dict[str, str]] = None,
        url: str = 'https://example.com/image.jpg'
    ) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.content = content
        mock_response.url = url
        mock_response.headers = headers or {'Content-Type': 'image/jpeg'}
        mock_response.ok = status_code < 400
        return mock_response

    return _create_response
