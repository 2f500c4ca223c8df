"""
Blob Service Module

This module fetches attachment bytes from their source URLs and uploads them
to the remote repository as content-addressed blobs.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import requests
from atproto_client.exceptions import AtProtocolError

from config import settings
from data.models import ContentRef, ImageDescriptor
from services.transport import Transport, describe_error
from utils.exceptions import FetchError, UploadError
from utils.logger import get_logger

logger = get_logger(__name__)


class BlobService:
    """Uploads attachments through an authenticated transport."""

    def __init__(self, transport: Transport, max_workers: Optional[int] = None):
        """
        Initialize the blob service.

        Args:
            transport: Transport carrying a session's bearer credential.
            max_workers: Parallel fetches per upload_many call. Defaults to settings.UPLOAD_MAX_WORKERS.
        """
        self.transport = transport
        self.max_workers = max_workers or settings.UPLOAD_MAX_WORKERS

    def fetch(self, source_url: str) -> bytes:
        """
        Download the attachment, fully buffered.

        Args:
            source_url: Where to fetch the bytes from.

        Returns:
            bytes: The response body.

        Raises:
            FetchError: On a connection failure or a non-2xx status.
        """
        try:
            response = requests.get(
                source_url,
                headers=settings.REQUEST_HEADERS,
                timeout=settings.REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.error(f"Failed to fetch attachment {source_url}: {e}")
            raise FetchError(f"Failed to fetch {source_url}: {e}", url=source_url) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Failed to fetch attachment {source_url}: HTTP {response.status_code}")
            raise FetchError(
                f"Failed to fetch {source_url}: HTTP {response.status_code}",
                url=source_url,
                status=response.status_code
            )

        return response.content

    def upload_bytes(self, data: bytes, source_url: Optional[str] = None) -> ContentRef:
        """
        Upload buffered bytes as a blob.

        Args:
            data: The attachment bytes.
            source_url: Origin of the bytes, for error context.

        Returns:
            ContentRef: The server's reference to the stored blob.

        Raises:
            UploadError: If the server rejects the upload or returns no blob reference.
        """
        try:
            response = self.transport.xrpc.repo.upload_blob(data)
        except AtProtocolError as e:
            status, message = describe_error(e)
            logger.error(f"Blob upload failed for {source_url or 'attachment'}: {message}")
            raise UploadError(f"Blob upload failed: {message}", url=source_url, status=status) from e

        try:
            ref = ContentRef.from_blob(getattr(response, "blob", None))
        except ValueError as e:
            logger.error(f"Malformed blob upload response for {source_url or 'attachment'}: {e}")
            raise UploadError(f"Malformed blob upload response: {e}", url=source_url) from e

        logger.info(f"Uploaded blob {ref.link} ({ref.mime_type}, {ref.size} bytes)")
        return ref

    def upload(self, source_url: str) -> ContentRef:
        """
        Fetch an attachment and upload it.

        Raises:
            FetchError: If the attachment cannot be downloaded.
            UploadError: If the upload fails.
        """
        data = self.fetch(source_url)
        return self.upload_bytes(data, source_url=source_url)

    def upload_many(self, source_urls: Sequence[str]) -> List[ContentRef]:
        """
        Upload several attachments, returning one ContentRef per URL in input order.

        Fetches run in parallel; uploads run one at a time on the transport, in
        input order. The first failure aborts the whole call.

        Raises:
            FetchError: If any attachment cannot be downloaded.
            UploadError: If any upload fails.
        """
        source_urls = list(source_urls)
        if not source_urls:
            return []

        workers = min(self.max_workers, len(source_urls))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            payloads = list(executor.map(self.fetch, source_urls))

        refs = []
        for source_url, data in zip(source_urls, payloads):
            refs.append(self.upload_bytes(data, source_url=source_url))

        logger.info(f"Uploaded {len(refs)} attachments")
        return refs

    def upload_images(self, images: Sequence[ImageDescriptor]) -> List[ContentRef]:
        """Upload image descriptors; result i belongs to images[i]."""
        return self.upload_many([image.uri for image in images])
