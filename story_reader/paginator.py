"""Group segments into fixed-size pages behind a reserved cover page."""

from collections.abc import Sequence

from story_reader.constants import CHUNK_SIZE, COVER_PAGE
from story_reader.models import Page, Segment


def _check_chunk_size(chunk_size: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")


def paginate(segments: Sequence[Segment], chunk_size: int = CHUNK_SIZE) -> list[Page]:
    """Split segments into ceil(n / chunk_size) content pages.

    The cover page is not produced here; content pages are numbered from 1.
    """
    _check_chunk_size(chunk_size)
    pages = []
    for start in range(0, len(segments), chunk_size):
        pages.append(Page(
            number=start // chunk_size + 1,
            start=start,
            segments=tuple(segments[start:start + chunk_size]),
        ))
    return pages


def page_of(index: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Page number holding the segment at a flattened index (cover is page 0)."""
    _check_chunk_size(chunk_size)
    if index < 0:
        raise ValueError(f"Segment index must be non-negative, got {index}")
    return index // chunk_size + 1


def total_pages(segment_count: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Content pages plus the cover: ceil(count / chunk_size) + 1."""
    _check_chunk_size(chunk_size)
    return -(-segment_count // chunk_size) + 1


class Paginator:
    """Pages derived from one segment sequence.

    Built fresh whenever the sequence changes; never updated in place.
    """

    def __init__(self, segments: Sequence[Segment], chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size
        self.pages = paginate(segments, chunk_size)
        self.total_pages = total_pages(len(segments), chunk_size)

    def page_of(self, index: int) -> int:
        return page_of(index, self.chunk_size)

    def page(self, number: int) -> tuple[Segment, ...]:
        """Segments shown on a page; empty for the cover and unknown pages."""
        if number == COVER_PAGE or not 1 <= number <= len(self.pages):
            return ()
        return self.pages[number - 1].segments
