"""
Data Models for the SocialAT PDS Client

This module contains the data classes exchanged between the agent, the blob
uploader and the post builder, and their conversion to atproto record models.
Remote responses are decoded into these types at the transport boundary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from atproto import models
from atproto_client.models.blob_ref import BlobRef, IpldLink

from utils.helpers import utc_timestamp


# =============================================================================
# Account and Session
# =============================================================================

@dataclass
class Credentials:
    """Long-lived account credentials, supplied by the caller and never persisted here."""
    handle: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(handle={self.handle!r})"


@dataclass(frozen=True)
class Session:
    """An authenticated session on the remote server."""
    access_jwt: str
    refresh_jwt: str
    handle: str
    did: str

    @classmethod
    def from_response(cls, response: Any) -> "Session":
        """
        Decode a createSession/createAccount response.

        Raises:
            ValueError: If any session field is missing or empty.
        """
        values = {}
        for name in ("access_jwt", "refresh_jwt", "handle", "did"):
            value = getattr(response, name, None)
            if not isinstance(value, str) or not value:
                raise ValueError(f"session response is missing '{name}'")
            values[name] = value
        return cls(**values)

    @property
    def is_active(self) -> bool:
        return bool(self.did and self.access_jwt)

    def __repr__(self) -> str:
        return f"Session(handle={self.handle!r}, did={self.did!r})"


class SessionStatus(Enum):
    """Result of probing a session."""
    VALID = "valid"
    STALE = "stale"


@dataclass(frozen=True)
class AccountResult:
    """A newly created account and its initial session."""
    did: str
    handle: str
    session: Session


# =============================================================================
# Blobs
# =============================================================================

@dataclass(frozen=True)
class ContentRef:
    """An uploaded blob, kept as the SDK's blob reference."""
    blob: BlobRef

    @classmethod
    def from_blob(cls, blob: Any) -> "ContentRef":
        """
        Wrap the blob reference returned by uploadBlob.

        Raises:
            ValueError: If the blob is missing, has no MIME type or has a negative size.
        """
        if not isinstance(blob, BlobRef):
            raise ValueError("upload response carries no blob reference")
        if not blob.mime_type:
            raise ValueError("blob reference has no MIME type")
        if blob.size < 0:
            raise ValueError("blob reference has a negative size")
        return cls(blob=blob)

    @classmethod
    def from_link(cls, link: str, mime_type: str, size: int) -> "ContentRef":
        return cls(blob=BlobRef(mime_type=mime_type, size=size, ref=IpldLink(link=link)))

    @property
    def link(self) -> str:
        """CID of the blob content."""
        if isinstance(self.blob.ref, IpldLink):
            return self.blob.ref.link
        return str(self.blob.cid)

    @property
    def mime_type(self) -> str:
        return self.blob.mime_type

    @property
    def size(self) -> int:
        return self.blob.size


@dataclass(frozen=True)
class ImageDescriptor:
    """An image attachment: where to fetch it from and its alt text."""
    uri: str
    alt: str = ""


# =============================================================================
# Rich Text
# =============================================================================

class FacetKind(Enum):
    """Rich-text feature kinds, valued by their lexicon type."""
    LINK = "app.bsky.richtext.facet#link"
    MENTION = "app.bsky.richtext.facet#mention"
    TAG = "app.bsky.richtext.facet#tag"

    def feature(self, value: str):
        """The facet feature carrying ``value`` for this kind."""
        if self is FacetKind.LINK:
            return models.AppBskyRichtextFacet.Link(uri=value)
        if self is FacetKind.MENTION:
            return models.AppBskyRichtextFacet.Mention(did=value)
        return models.AppBskyRichtextFacet.Tag(tag=value)


@dataclass(frozen=True)
class FacetSpec:
    """A caller-supplied annotation: kind, semantic value and the text it anchors to."""
    kind: FacetKind
    value: str
    match_text: str


@dataclass(frozen=True)
class Annotation:
    """An annotation resolved to a half-open UTF-8 byte range of the post text."""
    kind: FacetKind
    value: str
    match_text: str
    byte_start: int
    byte_end: int

    def to_model(self) -> models.AppBskyRichtextFacet.Main:
        return models.AppBskyRichtextFacet.Main(
            features=[self.kind.feature(self.value)],
            index=models.AppBskyRichtextFacet.ByteSlice(
                byte_start=self.byte_start,
                byte_end=self.byte_end,
            ),
        )


# =============================================================================
# Embeds
# =============================================================================

@dataclass(frozen=True)
class ExternalLink:
    """External link preview card."""
    title: str
    uri: str
    description: str = ""
    thumb: Optional[ContentRef] = None

    def to_model(self) -> models.AppBskyEmbedExternal.Main:
        return models.AppBskyEmbedExternal.Main(
            external=models.AppBskyEmbedExternal.External(
                title=self.title,
                uri=self.uri,
                description=self.description,
                thumb=self.thumb.blob if self.thumb is not None else None,
            )
        )


@dataclass(frozen=True)
class GalleryImage:
    alt: str
    image: ContentRef

    def to_model(self) -> models.AppBskyEmbedImages.Image:
        return models.AppBskyEmbedImages.Image(alt=self.alt, image=self.image.blob)


@dataclass(frozen=True)
class ImageGallery:
    """Ordered image gallery."""
    images: Tuple[GalleryImage, ...]

    def to_model(self) -> models.AppBskyEmbedImages.Main:
        return models.AppBskyEmbedImages.Main(images=[image.to_model() for image in self.images])


EmbedBlock = Union[ExternalLink, ImageGallery]


# =============================================================================
# Posts
# =============================================================================

@dataclass(frozen=True)
class PostRecord:
    """A fully assembled post, ready for submission."""
    text: str
    created_at: datetime
    annotations: Tuple[Annotation, ...] = ()
    embed: Optional[EmbedBlock] = None

    def to_model(self) -> models.AppBskyFeedPost.Record:
        """The ``app.bsky.feed.post`` record; unset facets and embed stay None and are not sent."""
        return models.AppBskyFeedPost.Record(
            text=self.text,
            created_at=utc_timestamp(self.created_at),
            facets=[annotation.to_model() for annotation in self.annotations] or None,
            embed=self.embed.to_model() if self.embed is not None else None,
        )


@dataclass(frozen=True)
class PostRef:
    """Durable identity of a submitted post."""
    cid: str
    uri: str


@dataclass
class FeedPost:
    """Data class to store feed post content from the timeline."""
    text: str
    url: Optional[str]
    title: Optional[str]
    timestamp: Optional[datetime]
    uri: Optional[str] = None
    cid: Optional[str] = None
    author_handle: Optional[str] = None


@dataclass
class TimelinePage:
    """One page of the home timeline."""
    posts: List[FeedPost] = field(default_factory=list)
    cursor: Optional[str] = None
