"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for the services used by the
command-line workflow. These protocols enable loose coupling, dependency
injection, and easier testing.

Protocols defined:
- AgentProtocol: Interface for an authenticated repository agent
"""

from typing import List, Optional, Protocol, Sequence

from data.models import (
    ContentRef, ImageDescriptor, PostRecord, PostRef, Session, TimelinePage,
)


class AgentProtocol(Protocol):
    """Protocol defining the interface for a repository agent.

    Implementations should provide methods for:
    - Logging in and re-establishing sessions
    - Uploading image attachments
    - Submitting post records and reading the timeline
    """

    def connect(self, handle: str, password: str) -> Session:
        """Log in and make the session active.

        Raises:
            AuthError: If the login fails.
        """
        ...

    def reconnect_if_stale(self, handle: str, password: str,
                           session: Optional[Session] = None) -> Session:
        """Return a valid session, logging in again if the given one is stale."""
        ...

    def upload_images(self, images: Sequence[ImageDescriptor]) -> List[ContentRef]:
        """Upload images; result i belongs to images[i]."""
        ...

    def submit(self, record: PostRecord, session: Optional[Session] = None) -> PostRef:
        """Create the post record.

        Raises:
            Unauthenticated: If there is no active session.
            SubmitError: If the server refuses the record.
        """
        ...

    def get_timeline(self, cursor: Optional[str] = None,
                     limit: Optional[int] = None) -> TimelinePage:
        """Fetch one page of the home timeline."""
        ...

