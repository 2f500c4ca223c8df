"""
Custom Exception Classes for the SocialAT PDS Client

This module defines custom exceptions for better error handling and
categorization of failures across the client. Every failure raised by the
agent, the blob uploader or the post builder is one of these types.
"""

from typing import Optional


class SocialAtError(Exception):
    """Base exception for all SocialAT client errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(SocialAtError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Agent / Session Errors
# =============================================================================

class AgentError(SocialAtError):
    """Base exception for errors reported by the remote repository server.

    Attributes:
        status: HTTP status code of the upstream response, if one was received.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthError(AgentError):
    """Raised on bad credentials, an unreachable server or a malformed session response."""
    pass


class ProvisionError(AgentError):
    """Raised when invite code issuance or account creation fails."""
    pass


class SubmitError(AgentError):
    """Raised when a post record cannot be created on the remote repository."""
    pass


class Unauthenticated(SubmitError):
    """Raised when an authenticated call is attempted without an active session."""
    pass


class TimelineError(AgentError):
    """Raised when the home timeline cannot be fetched."""
    pass


# =============================================================================
# Blob Errors
# =============================================================================

class BlobError(SocialAtError):
    """Base exception for attachment fetch and upload errors."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class FetchError(BlobError):
    """Raised when attachment bytes cannot be retrieved from their source URL."""
    pass


class UploadError(BlobError):
    """Raised when the remote server rejects or fails a blob upload."""
    pass


# =============================================================================
# Post Building Errors
# =============================================================================

class PostBuildError(SocialAtError):
    """Base exception for post record assembly errors."""
    pass


class AnnotationNotFound(PostBuildError):
    """Raised when an annotation's anchor text does not occur in the post text."""

    def __init__(self, match_text: str):
        super().__init__(f"Annotation text not found in post: {match_text!r}")
        self.match_text = match_text


class BuildError(PostBuildError):
    """Raised when a post record precondition is violated."""
    pass
