"""
Session Service Module

This module handles the account side of the AT Protocol client: logging in,
probing and re-establishing sessions, issuing invite codes, creating
accounts, submitting post records and reading the home timeline.
"""

from typing import List, Optional, Sequence

from atproto import models
from atproto_client.exceptions import AtProtocolError

from config import settings
from data.models import (
    AccountResult, ContentRef, FeedPost, ImageDescriptor, PostRecord, PostRef,
    Session, SessionStatus, TimelinePage,
)
from services.blob_service import BlobService
from services.transport import Transport, describe_error
from utils.exceptions import (
    AuthError, ProvisionError, SubmitError, TimelineError, Unauthenticated,
)
from utils.helpers import handle_from_username, parse_timestamp
from utils.logger import get_logger

logger = get_logger(__name__)


class SessionService:
    """
    Agent for one account on one server.

    Holds at most one active session; it is replaced only after a fully
    successful login. Instances are not meant to be shared across threads.
    """

    def __init__(self, server: Optional[str] = None):
        """
        Initialize the agent.

        Args:
            server: Base address of the server. Defaults to settings.PDS_SERVER.
        """
        self.transport = Transport(server)
        self.session: Optional[Session] = None

    @property
    def server(self) -> str:
        return self.transport.server

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def connect(self, handle: str, password: str) -> Session:
        """
        Log in and make the resulting session active.

        Args:
            handle: Account handle or DID.
            password: Account password.

        Returns:
            Session: The new active session.

        Raises:
            AuthError: On bad credentials, an unreachable server or a malformed
                response. Any previous session stays active.
        """
        if not handle or not password:
            logger.error("Missing PDS credentials")
            raise AuthError("Missing handle or password")

        # Log in without any earlier bearer token attached.
        transport = Transport(self.server)
        try:
            response = transport.xrpc.server.create_session(
                models.ComAtprotoServerCreateSession.Data(identifier=handle, password=password)
            )
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Failed to authenticate with {self.server} as {handle}: {message}")
            raise AuthError(f"Unable to connect as {handle}: {message}", status=status) from e

        try:
            session = Session.from_response(response)
        except ValueError as e:
            logger.error(f"Malformed session response from {self.server}: {e}")
            raise AuthError(f"Malformed session response: {e}") from e

        self.transport = transport
        self._activate(session)
        logger.info(f"Successfully logged in to {self.server} as {session.handle}")
        return session

    def use_session(self, session: Session) -> None:
        """Adopt a session obtained elsewhere (e.g. restored by the caller)."""
        if not session.is_active:
            raise AuthError("Session has no DID or access token")
        self._activate(session)

    def _activate(self, session: Session) -> None:
        self.transport.set_bearer(session.access_jwt)
        self.session = session

    def validate(self, session: Optional[Session] = None) -> SessionStatus:
        """
        Probe whether a session is still accepted by the server.

        The probe runs on a separate transport; the agent's state is not touched.

        Args:
            session: The session to probe. Defaults to the active session.

        Returns:
            SessionStatus.VALID or SessionStatus.STALE.
        """
        session = session or self.session
        if session is None or not session.is_active:
            return SessionStatus.STALE

        probe = Transport(self.server)
        probe.set_bearer(session.access_jwt)
        try:
            probe.xrpc.server.get_session()
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.warning(f"Session for {session.handle} is stale ({status}): {message}")
            return SessionStatus.STALE

        logger.debug(f"Session for {session.handle} is valid")
        return SessionStatus.VALID

    def reconnect_if_stale(self, handle: str, password: str,
                           session: Optional[Session] = None) -> Session:
        """
        Return a usable session, logging in again with the password if needed.

        The refresh token is not used; the long-lived password is.

        Args:
            handle: Account handle.
            password: Account password.
            session: Session to check. Defaults to the active session.

        Returns:
            Session: The still-valid session (made active) or a fresh one.

        Raises:
            AuthError: If a fresh login is needed and fails.
        """
        session = session or self.session
        if session is not None and self.validate(session) is SessionStatus.VALID:
            if session is not self.session:
                self._activate(session)
            return session

        logger.info(f"Reconnecting to {self.server} as {handle}")
        return self.connect(handle, password)

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    def issue_invite_code(self, admin_token: Optional[str] = None) -> str:
        """
        Issue a single-use invite code.

        Args:
            admin_token: Server admin password. Defaults to settings.PDS_ADMIN_TOKEN.

        Returns:
            str: The invite code.

        Raises:
            ProvisionError: If no admin token is available, the server refuses,
                or the response carries no code.
        """
        admin_token = admin_token or settings.PDS_ADMIN_TOKEN
        if not admin_token:
            raise ProvisionError("An admin token is required to issue invite codes")

        admin = Transport(self.server)
        admin.set_admin_token(admin_token)
        try:
            response = admin.xrpc.server.create_invite_code(
                models.ComAtprotoServerCreateInviteCode.Data(use_count=settings.INVITE_CODE_USE_COUNT)
            )
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Unable to create invite code on {self.server}: {message}")
            raise ProvisionError(f"Unable to create invite code: {message}", status=status) from e

        code = getattr(response, "code", None)
        if not isinstance(code, str) or not code:
            logger.error(f"Invite code response from {self.server} has no code")
            raise ProvisionError("Malformed invite code response")

        logger.info(f"Issued invite code on {self.server}")
        return code

    def create_account(self, username: str, password: str, email: str,
                       invite_code: Optional[str] = None) -> AccountResult:
        """
        Create an account whose handle is ``username.<server domain>``.

        Does not change the agent's active session.

        Returns:
            AccountResult: DID, handle and initial session of the new account.

        Raises:
            ProvisionError: If the server refuses or returns a malformed response.
        """
        if not username or not password:
            raise ProvisionError("Username and password are required")

        handle = handle_from_username(self.server, username)
        data = models.ComAtprotoServerCreateAccount.Data(
            handle=handle,
            password=password,
            email=email,
            invite_code=invite_code,
        )

        try:
            response = Transport(self.server).xrpc.server.create_account(data)
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Unable to create account {handle}: {message}")
            raise ProvisionError(f"Unable to create account {handle}: {message}", status=status) from e

        try:
            session = Session.from_response(response)
        except ValueError as e:
            logger.error(f"Malformed account creation response for {handle}: {e}")
            raise ProvisionError(f"Malformed account creation response: {e}") from e

        logger.info(f"Created account {session.handle} ({session.did})")
        return AccountResult(did=session.did, handle=session.handle, session=session)

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    def _require_session(self, session: Optional[Session]) -> Session:
        session = session or self.session
        if session is None or not session.is_active:
            raise Unauthenticated("No active session; connect first")
        if session is not self.session:
            self._activate(session)
        return session

    def blob_service(self) -> BlobService:
        """Blob uploader bound to this agent's authenticated transport."""
        self._require_session(None)
        return BlobService(self.transport)

    def upload_image(self, image: ImageDescriptor) -> ContentRef:
        return self.blob_service().upload(image.uri)

    def upload_images(self, images: Sequence[ImageDescriptor]) -> List[ContentRef]:
        return self.blob_service().upload_images(images)

    def submit(self, record: PostRecord, session: Optional[Session] = None) -> PostRef:
        """
        Create the post record in the session's repository.

        Args:
            record: The built post.
            session: Session to post with. Defaults to the active session.

        Returns:
            PostRef: CID and at:// URI of the created record.

        Raises:
            Unauthenticated: If there is no active session. No remote call is made.
            SubmitError: If the server refuses the record.
        """
        session = self._require_session(session)

        try:
            response = self.transport.xrpc.repo.create_record(
                models.ComAtprotoRepoCreateRecord.Data(
                    repo=session.did,
                    collection=settings.POST_COLLECTION,
                    record=record.to_model(),
                )
            )
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Unable to post as {session.handle}: {message}")
            raise SubmitError(f"Unable to post: {message}", status=status) from e

        cid = getattr(response, "cid", None)
        uri = getattr(response, "uri", None)
        if not isinstance(cid, str) or not isinstance(uri, str):
            raise SubmitError("Malformed createRecord response")

        logger.info(f"Successfully posted as {session.handle}: {uri}")
        return PostRef(cid=cid, uri=uri)

    def get_timeline(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> TimelinePage:
        """
        Fetch a page of the reverse-chronological home timeline.

        Args:
            cursor: Cursor from a previous page.
            limit: Page size. Defaults to settings.TIMELINE_FETCH_LIMIT.

        Raises:
            Unauthenticated: If there is no active session.
            TimelineError: If the server refuses.
        """
        session = self._require_session(None)
        params = {
            "algorithm": settings.TIMELINE_ALGORITHM,
            "limit": limit or settings.TIMELINE_FETCH_LIMIT,
        }
        if cursor:
            params["cursor"] = cursor

        try:
            response = self.transport.app.feed.get_timeline(
                models.AppBskyFeedGetTimeline.Params(**params)
            )
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Unable to get timeline for {session.handle}: {message}")
            raise TimelineError(f"Unable to get timeline: {message}", status=status) from e

        posts = [self._feed_post(item) for item in (getattr(response, "feed", None) or [])]
        logger.info(f"Successfully retrieved {len(posts)} timeline posts")
        return TimelinePage(posts=posts, cursor=getattr(response, "cursor", None))

    @staticmethod
    def _feed_post(item) -> FeedPost:
        post = item.post
        url = None
        title = None

        # Extract embed data if available
        embed = getattr(post, "embed", None)
        external = getattr(embed, "external", None) if embed else None
        if external is not None:
            url = external.uri
            title = external.title

        record = getattr(post, "record", None)
        text = getattr(record, "text", "") or ""
        author = getattr(post, "author", None)

        return FeedPost(
            text=text,
            url=url,
            title=title,
            timestamp=parse_timestamp(getattr(post, "indexed_at", None)),
            uri=getattr(post, "uri", None),
            cid=getattr(post, "cid", None),
            author_handle=getattr(author, "handle", None),
        )
