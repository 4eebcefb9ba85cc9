"""Data models for the story reader."""

from dataclasses import dataclass, field

from story_reader.constants import COVER_PAGE


@dataclass(frozen=True)
class Segment:
    start: float       # seconds into the voice track
    end: float
    text: str


@dataclass
class Story:
    id: str
    title: dict[str, str] = field(default_factory=dict)         # language -> title
    cover: str = ""
    voice: dict[str, str] = field(default_factory=dict)         # language -> voice track
    chapters: list[dict[str, list[Segment]]] = field(default_factory=list)


@dataclass(frozen=True)
class Page:
    number: int        # 1-based; page 0 is the cover
    start: int         # flattened index of the first segment
    segments: tuple[Segment, ...]

    @property
    def end(self) -> int:
        """Flattened index one past the last segment on this page."""
        return self.start + len(self.segments)


@dataclass
class NavigatorState:
    """Page and highlight state for one loaded story in one language.

    Written only by the sync controller and the navigation gate.
    """
    total_pages: int = 1
    current_page: int = COVER_PAGE
    active_segment: Segment | None = None
    active_index: int | None = None
