"""Drive the highlighted segment and page from playback time."""

import logging
from typing import NamedTuple

from story_reader.constants import STICKY_HIGHLIGHT
from story_reader.gate import SYNC, NavigationGate
from story_reader.models import NavigatorState, Segment
from story_reader.paginator import Paginator
from story_reader.segment_index import SegmentIndex

logger = logging.getLogger(__name__)


class SyncResult(NamedTuple):
    segment: Segment | None     # active segment after the event
    page: int                   # current page after the event
    changed: bool               # whether the active segment changed


class PlaybackSyncController:
    """Map time-update events onto the NavigatorState.

    A lookup miss is normal: with sticky_highlight the previous segment stays
    active through silent gaps, otherwise the highlight is cleared. Only a
    change of active segment can produce a page request, and that request
    goes through the gate like any other.
    """

    def __init__(
        self,
        state: NavigatorState,
        gate: NavigationGate,
        index: SegmentIndex | None = None,
        paginator: Paginator | None = None,
        sticky_highlight: bool = STICKY_HIGHLIGHT,
    ):
        self.state = state
        self.gate = gate
        self.sticky_highlight = sticky_highlight
        self.generation = 0
        self.index = index if index is not None else SegmentIndex()
        self.paginator = paginator if paginator is not None else Paginator(self.index.segments)

    def reset(self, index: SegmentIndex, paginator: Paginator) -> int:
        """Swap in a new segment sequence. Returns the new generation stamp."""
        self.index = index
        self.paginator = paginator
        self.generation += 1
        return self.generation

    def on_time_update(self, t: float, generation: int | None = None) -> SyncResult | None:
        """Process one time event. Returns None if the event is stale."""
        if generation is not None and generation != self.generation:
            logger.debug("Ignored time update %.3f from generation %d", t, generation)
            return None

        state = self.state
        index = self.index.locate_index(t)

        if index is None:
            changed = False
            if not self.sticky_highlight and state.active_index is not None:
                state.active_segment = None
                state.active_index = None
                changed = True
            return SyncResult(state.active_segment, state.current_page, changed)

        if index == state.active_index:
            return SyncResult(state.active_segment, state.current_page, False)

        state.active_index = index
        state.active_segment = self.index[index]

        desired = self.paginator.page_of(index)
        if desired != state.current_page and 0 <= desired < self.paginator.total_pages:
            logger.debug("t=%.3f: segment %d is on page %d, turning", t, index, desired)
            self.gate.request_page(desired, SYNC)

        return SyncResult(state.active_segment, state.current_page, True)
