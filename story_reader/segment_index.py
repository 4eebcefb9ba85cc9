"""Timestamp lookup over a story's language-selected segments."""

import math
from bisect import bisect_left, bisect_right
from collections.abc import Sequence

from story_reader.models import Segment


class SegmentIndex:
    """Immutable, time-ordered view answering "which segment owns t".

    Segments must already be ordered by start (the story loader enforces
    this). Lookups are O(log n): a bisect on starts bounds the candidates,
    and a bisect on the running maximum of ends finds the first candidate
    that still covers t. When boundaries touch, the earlier segment wins.
    """

    def __init__(self, segments: Sequence[Segment] = ()):
        self._segments = tuple(segments)
        self._starts = [s.start for s in self._segments]
        self._reach = []
        furthest = -math.inf
        for s in self._segments:
            furthest = max(furthest, s.end)
            self._reach.append(furthest)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self):
        return iter(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    def locate_index(self, t: float) -> int | None:
        """Flattened index of the segment with start <= t <= end, or None."""
        if t is None or math.isnan(t):
            return None
        hi = bisect_right(self._starts, t)
        first = bisect_left(self._reach, t, 0, hi)
        if first < hi:
            return first
        return None

    def locate(self, t: float) -> Segment | None:
        """Segment being spoken at t, or None in a gap or outside the span."""
        index = self.locate_index(t)
        return None if index is None else self._segments[index]

    def index_of(self, segment: Segment) -> int:
        """Position of a segment in the flattened sequence.

        Raises ValueError if the segment is not part of this index.
        """
        return self._segments.index(segment)
