"""
Post Builder Module

This module assembles post records: text, byte-indexed rich-text facets and
at most one embed (an external link card or an image gallery).
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from config import settings
from data.models import (
    ContentRef, EmbedBlock, ExternalLink, FacetKind, FacetSpec, GalleryImage,
    ImageDescriptor, ImageGallery, PostRecord,
)
from services.richtext import index_annotations
from utils.exceptions import BuildError
from utils.logger import get_logger

logger = get_logger(__name__)


def select_embed(link: Optional[ExternalLink],
                 images: Sequence[ImageDescriptor],
                 content_refs: Sequence[ContentRef],
                 strict: bool = False) -> Optional[EmbedBlock]:
    """
    Choose the single embed of a post.

    An external link with a non-empty title wins and any images are ignored.
    Otherwise images become a gallery when there is exactly one uploaded blob
    per image, zipped by position. On a count mismatch no embed is produced,
    unless strict is set, in which case BuildError is raised.

    Args:
        link: Optional external link card.
        images: Image descriptors, in upload order.
        content_refs: Uploaded blobs, one per image, same order.
        strict: Fail on an image/blob count mismatch instead of skipping.

    Returns:
        The embed, or None.
    """
    if link is not None and link.title:
        if images:
            logger.debug(f"External link embed takes precedence; ignoring {len(images)} images")
        return link

    if not images:
        return None

    if len(images) != len(content_refs):
        message = (f"{len(images)} images but {len(content_refs)} uploaded blobs; "
                   f"image embed skipped")
        if strict:
            raise BuildError(message)
        logger.warning(message)
        return None

    return ImageGallery(images=tuple(
        GalleryImage(alt=image.alt, image=ref) for image, ref in zip(images, content_refs)
    ))


class PostBuilder:
    """Fluent builder for a single post record."""

    def __init__(self, text: str):
        self.text = text
        self.facets: List[FacetSpec] = []
        self.link: Optional[ExternalLink] = None
        self.images: List[ImageDescriptor] = []
        self.content_refs: List[ContentRef] = []

    def with_facet(self, kind: FacetKind, value: str, match_text: str) -> "PostBuilder":
        """Annotate the first occurrence of match_text as a link, mention or tag."""
        self.facets.append(FacetSpec(kind=kind, value=value, match_text=match_text))
        return self

    def with_link(self, uri: str, match_text: str) -> "PostBuilder":
        return self.with_facet(FacetKind.LINK, uri, match_text)

    def with_mention(self, did: str, match_text: str) -> "PostBuilder":
        return self.with_facet(FacetKind.MENTION, did, match_text)

    def with_tag(self, tag: str, match_text: Optional[str] = None) -> "PostBuilder":
        return self.with_facet(FacetKind.TAG, tag, match_text or f"#{tag}")

    def with_external_link(self, title: str, uri: str, description: str = "",
                           thumb: Optional[ContentRef] = None) -> "PostBuilder":
        """Attach an external link card."""
        self.link = ExternalLink(title=title, uri=uri, description=description, thumb=thumb)
        return self

    def with_images(self, content_refs: Sequence[ContentRef],
                    images: Sequence[ImageDescriptor]) -> "PostBuilder":
        """Attach uploaded images; content_refs[i] belongs to images[i]."""
        self.content_refs = list(content_refs)
        self.images = list(images)
        return self

    def build(self, strict: Optional[bool] = None) -> PostRecord:
        """
        Build the post record.

        The creation timestamp is taken now, at build time.

        Args:
            strict: Override settings.STRICT_EMBED_COUNTS for this build.

        Returns:
            PostRecord: The immutable record.

        Raises:
            AnnotationNotFound: If a facet's text does not occur in the post.
            BuildError: On an image/blob count mismatch in strict mode.
        """
        if strict is None:
            strict = settings.STRICT_EMBED_COUNTS

        created_at = datetime.now(timezone.utc)
        annotations = index_annotations(self.text, self.facets)
        embed = select_embed(self.link, self.images, self.content_refs, strict=strict)

        record = PostRecord(
            text=self.text,
            created_at=created_at,
            annotations=tuple(annotations),
            embed=embed,
        )
        logger.debug(f"Built post with {len(annotations)} facets and "
                     f"{type(embed).__name__ if embed else 'no'} embed")
        return record


def build_post(text: str,
               facets: Sequence[FacetSpec] = (),
               link: Optional[ExternalLink] = None,
               images: Sequence[ImageDescriptor] = (),
               content_refs: Sequence[ContentRef] = (),
               strict: Optional[bool] = None) -> PostRecord:
    """
    Build a post record in one call.

    See PostBuilder.build for the embed rules and raised errors.
    """
    builder = PostBuilder(text)
    for facet in facets:
        builder.with_facet(facet.kind, facet.value, facet.match_text)
    if link is not None:
        builder.with_external_link(link.title, link.uri, link.description, link.thumb)
    builder.with_images(content_refs, images)
    return builder.build(strict=strict)
