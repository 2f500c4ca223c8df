"""
Helper Utility Module

This module provides various helper functions used throughout the SocialAT client.
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

DEFAULT_SERVER = "https://bsky.social"


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def normalize_server(server: Optional[str]) -> str:
    """
    Normalize a server base address.

    Falls back to the public host when unset, adds an https scheme when the
    address is a bare host, and strips trailing slashes.

    Args:
        server: The configured server address (may be None or empty)

    Returns:
        str: The normalized base address, e.g. ``https://pds.example.com``
    """
    if not server or not server.strip():
        return DEFAULT_SERVER
    server = server.strip()
    if "://" not in server:
        server = "https://" + server
    return server.rstrip("/")


def domain_of(server: str) -> str:
    """
    Get the host name of a server address, without scheme or port.

    Args:
        server: A server address such as ``https://pds.example.com:2583``

    Returns:
        str: The lower-cased host name, e.g. ``pds.example.com``
    """
    return (urlparse(normalize_server(server)).hostname or "").lower()


def handle_from_username(server: str, username: str) -> str:
    """
    Derive a protocol handle from a username and the server's domain.

    Args:
        server: The server address
        username: The local username

    Returns:
        str: ``username.domain``
    """
    return f"{username}.{domain_of(server)}"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a moment as an ISO-8601 UTC timestamp with millisecond precision.

    Args:
        moment: The moment to format; defaults to now

    Returns:
        str: e.g. ``2024-01-15T10:00:00.000Z``
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as returned by the server.

    Args:
        value: Timestamp string, possibly ending in ``Z``

    Returns:
        datetime or None if the value is missing or unparseable
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated
