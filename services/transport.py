"""
Transport Module

This module binds an AT Protocol XRPC client to a single remote host and
carries the optional bearer or administrative credentials for it.
"""

import base64
from typing import Optional, Tuple

from atproto import Client
from atproto_client.exceptions import AtProtocolError

from config import settings
from utils.helpers import normalize_server
from utils.logger import get_logger

logger = get_logger(__name__)

AUTHORIZATION_HEADER = "Authorization"


class Transport:
    """XRPC client bound to one server, with at most one credential attached."""

    def __init__(self, server: Optional[str] = None):
        """
        Initialize the transport.

        Args:
            server: Base address of the server. Defaults to settings.PDS_SERVER.
        """
        self.server = normalize_server(server or settings.PDS_SERVER)
        self.client = Client(base_url=f"{self.server}/xrpc")

    @property
    def xrpc(self):
        """The ``com.atproto`` namespace of the underlying client."""
        return self.client.com.atproto

    @property
    def app(self):
        """The ``app.bsky`` namespace of the underlying client."""
        return self.client.app.bsky

    def set_bearer(self, access_jwt: str) -> None:
        """Authenticate subsequent calls with a session access token."""
        self.client.request.add_additional_header(AUTHORIZATION_HEADER, f"Bearer {access_jwt}")

    def set_admin_token(self, admin_token: str) -> None:
        """Authenticate subsequent calls as the server administrator (HTTP Basic)."""
        encoded = base64.b64encode(f"admin:{admin_token}".encode("utf-8")).decode("ascii")
        self.client.request.add_additional_header(AUTHORIZATION_HEADER, f"Basic {encoded}")

    def __repr__(self) -> str:
        return f"Transport(server={self.server!r})"


def describe_error(error: AtProtocolError) -> Tuple[Optional[int], str]:
    """
    Extract the upstream HTTP status and a readable message from an SDK error.

    Args:
        error: The exception raised by the atproto client.

    Returns:
        Tuple of (status code or None, message).
    """
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if not isinstance(status, int):
        status = None

    content = getattr(response, "content", None)
    error_name = getattr(content, "error", None)
    message = getattr(content, "message", None)
    if isinstance(error_name, str) and isinstance(message, str):
        return status, f"{error_name}: {message}"
    if isinstance(error_name, str):
        return status, error_name
    return status, str(error) or error.__class__.__name__
