"""
SocialAT Client Application

This is the command-line entry point for the SocialAT PDS client.
It logs in to a personal data server, uploads attachments, builds a
rich-text post and submits it; it can also issue invite codes, create
accounts and read the home timeline.
"""

import sys
import json
import argparse
import logging
from typing import Optional, List, Sequence

from atproto import models

from config import settings
from config.validators import validate_settings, get_config_summary
from data.models import (
    Credentials, ExternalLink, FacetKind, FacetSpec, ImageDescriptor, PostRef, Session,
    TimelinePage,
)
from services.post_builder import build_post
from services.protocols import AgentProtocol
from services.session_service import SessionService
from utils.exceptions import SocialAtError, ConfigurationError
from utils.helpers import truncate_text
from utils.logger import get_logger, setup_file_logging, set_console_level

# Set up logging
logger = get_logger(__name__)


class SocialAtPoster:
    """
    Main application class for the SocialAT client.

    This class orchestrates the login, upload, build and submit steps
    for a single configured account.
    """

    def __init__(self, agent: Optional[AgentProtocol] = None,
                 credentials: Optional[Credentials] = None, validate: bool = True):
        """
        Initialize the poster.

        Args:
            agent: Agent to use. Defaults to a SessionService for settings.PDS_SERVER.
            credentials: Account to post as. Defaults to PDS_HANDLE/PDS_PASSWORD.
            validate: Validate settings (including credentials) first.
        """
        if validate and credentials is None:
            validate_settings(require_credentials=True)
        self.credentials = credentials or Credentials(
            handle=settings.PDS_HANDLE,
            password=settings.PDS_PASSWORD,
        )
        self.agent = agent or SessionService(settings.PDS_SERVER)

    def login(self, session: Optional[Session] = None) -> Session:
        """Return a usable session for the configured account."""
        return self.agent.reconnect_if_stale(
            self.credentials.handle, self.credentials.password, session
        )

    def post(self, text: str, facets: Sequence[FacetSpec] = (),
             link: Optional[ExternalLink] = None,
             images: Sequence[ImageDescriptor] = (),
             test_mode: bool = False) -> Optional[PostRef]:
        """
        Publish a post.

        Args:
            text: The post text.
            facets: Rich-text annotations.
            link: Optional external link card; wins over images when titled.
            images: Images to upload and attach.
            test_mode: Build the record and log it without submitting.

        Returns:
            PostRef of the created post, or None in test mode.
        """
        self.login()

        content_refs = []
        if images and link is not None and link.title:
            logger.info(f"External link embed given; not uploading {len(images)} images")
        elif images:
            content_refs = self.agent.upload_images(images)

        record = build_post(text, facets=facets, link=link, images=images, content_refs=content_refs)

        if test_mode:
            wire = models.get_model_as_json(record.to_model())
            logger.info(f"Test mode - record not submitted: {wire}")
            return None

        return self.agent.submit(record)

    def timeline(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> TimelinePage:
        self.login()
        return self.agent.get_timeline(cursor=cursor, limit=limit)


def parse_image(value: str) -> ImageDescriptor:
    """Parse ``URL`` or ``URL|alt text``."""
    uri, _, alt = value.partition("|")
    return ImageDescriptor(uri=uri.strip(), alt=alt.strip())


def collect_facets(args) -> List[FacetSpec]:
    """Build facet specs from the repeatable post arguments."""
    facets = []
    for uri, match_text in args.link_facet or []:
        facets.append(FacetSpec(FacetKind.LINK, uri, match_text))
    for did, match_text in args.mention or []:
        facets.append(FacetSpec(FacetKind.MENTION, did, match_text))
    for tag in args.tag or []:
        tag = tag.lstrip("#")
        facets.append(FacetSpec(FacetKind.TAG, tag, f"#{tag}"))
    return facets


def parse_arguments(argv: Optional[Sequence[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='SocialAT PDS Client')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=settings.LOG_LEVEL, help='Logging level')
    parser.add_argument('--server', type=str, default=None,
                        help='PDS base address (defaults to PDS_SERVER)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    post = subparsers.add_parser('post', help='Publish a post')
    post.add_argument('text', help='Post text')
    post.add_argument('--test', action='store_true', help='Build the record without submitting it')
    post.add_argument('--link', type=str, default=None, help='External link URL for a link card')
    post.add_argument('--title', type=str, default='', help='Link card title')
    post.add_argument('--description', type=str, default=None, help='Link card description')
    post.add_argument('--image', action='append', type=parse_image, default=[],
                      help='Image URL, optionally followed by |alt text (repeatable)')
    post.add_argument('--link-facet', action='append', nargs=2, metavar=('URI', 'TEXT'),
                      help='Annotate TEXT as a link to URI (repeatable)')
    post.add_argument('--mention', action='append', nargs=2, metavar=('DID', 'TEXT'),
                      help='Annotate TEXT as a mention of DID (repeatable)')
    post.add_argument('--tag', action='append', help='Annotate #TAG as a hashtag (repeatable)')

    invite = subparsers.add_parser('invite', help='Issue a single-use invite code')
    invite.add_argument('--admin-token', type=str, default=None,
                        help='Admin token (defaults to PDS_ADMIN_TOKEN)')

    account = subparsers.add_parser('create-account', help='Create an account on the server')
    account.add_argument('username')
    account.add_argument('password')
    account.add_argument('email')
    account.add_argument('--invite-code', type=str, default=None,
                         help='Invite code; one is issued with the admin token when omitted')

    timeline = subparsers.add_parser('timeline', help='Show the home timeline')
    timeline.add_argument('--cursor', type=str, default=None)
    timeline.add_argument('--limit', type=int, default=None)

    return parser.parse_args(argv)


def run_command(args) -> int:
    """Run the parsed command and return the exit code."""
    server = args.server or settings.PDS_SERVER

    if args.command == 'invite':
        code = SessionService(server).issue_invite_code(args.admin_token)
        print(code)
        return 0

    if args.command == 'create-account':
        validate_settings()
        agent = SessionService(server)
        invite_code = args.invite_code or agent.issue_invite_code()
        result = agent.create_account(args.username, args.password, args.email, invite_code)
        print(json.dumps({"did": result.did, "handle": result.handle}))
        return 0

    poster = SocialAtPoster(agent=SessionService(server))

    if args.command == 'timeline':
        page = poster.timeline(cursor=args.cursor, limit=args.limit)
        for item in page.posts:
            print(f"@{item.author_handle}: {item.text}")
        if page.cursor:
            logger.info(f"Next cursor: {page.cursor}")
        return 0

    link = None
    if args.link:
        description = args.description
        if description is None:
            description = truncate_text(args.text, settings.EMBED_DESCRIPTION_LENGTH)
        link = ExternalLink(title=args.title, uri=args.link, description=description)

    ref = poster.post(
        args.text,
        facets=collect_facets(args),
        link=link,
        images=args.image,
        test_mode=args.test,
    )
    if ref is not None:
        print(json.dumps({"cid": ref.cid, "uri": ref.uri}))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    log_level = logging.getLevelName(args.log_level.upper())
    if not isinstance(log_level, int):
        logger.error(f"Invalid log level: {args.log_level}")
        return 1
    if args.log_file:
        setup_file_logging(args.log_file, log_level)
    else:
        set_console_level(log_level)

    logger.info(f"Starting SocialAT client: {args.command}")
    logger.debug(f"Configuration: {get_config_summary()}")

    try:
        exit_code = run_command(args)
    except ConfigurationError as e:
        logger.error(str(e))
        exit_code = 1
    except SocialAtError as e:
        logger.error(f"{args.command} failed: {e}")
        exit_code = 1
    except Exception as e:
        logger.error(f"Unhandled exception in SocialAT client: {e}", exc_info=True)
        exit_code = 2

    logger.info(f"SocialAT client finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
