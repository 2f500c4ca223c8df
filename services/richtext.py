"""
Rich Text Module

Resolves annotation anchor text to UTF-8 byte ranges of a post body.
Offsets are byte offsets, as the AT Protocol facet index requires, so
any text outside ASCII shifts them away from Python string indices.
"""

from typing import Iterable, List

from data.models import Annotation, FacetSpec
from utils.exceptions import AnnotationNotFound
from utils.logger import get_logger

logger = get_logger(__name__)


def find_byte_range(text: str, match_text: str):
    """
    Locate the first occurrence of match_text in text, byte-wise.

    Args:
        text: The post body.
        match_text: The literal, case-sensitive anchor text.

    Returns:
        Tuple of (byte_start, byte_end), half-open.

    Raises:
        AnnotationNotFound: If match_text is empty or does not occur in text.
    """
    if not match_text:
        raise AnnotationNotFound(match_text)

    needle = match_text.encode("utf-8")
    start = text.encode("utf-8").find(needle)
    if start == -1:
        raise AnnotationNotFound(match_text)
    return start, start + len(needle)


def index_annotations(text: str, specs: Iterable[FacetSpec]) -> List[Annotation]:
    """
    Resolve every annotation to its byte range, preserving input order.

    Two specs with the same match_text both resolve to the first occurrence.
    Nothing is returned unless every spec resolves.

    Raises:
        AnnotationNotFound: For the first spec whose text is absent.
    """
    annotations = []
    for spec in specs:
        byte_start, byte_end = find_byte_range(text, spec.match_text)
        annotations.append(Annotation(
            kind=spec.kind,
            value=spec.value,
            match_text=spec.match_text,
            byte_start=byte_start,
            byte_end=byte_end,
        ))
    logger.debug(f"Indexed {len(annotations)} annotations")
    return annotations


def byte_slice(text: str, byte_start: int, byte_end: int) -> str:
    """Return the text covered by a byte range."""
    return text.encode("utf-8")[byte_start:byte_end].decode("utf-8")
