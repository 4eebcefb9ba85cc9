"""Arbitrate sync-driven and manual page requests."""

import logging

from story_reader.constants import SYNC_HOLD_AFTER_MANUAL
from story_reader.models import NavigatorState

logger = logging.getLogger(__name__)

SYNC = "sync"
MANUAL = "manual"
ORIGINS = (SYNC, MANUAL)

# Manual turn direction -> page offset
DIRECTIONS = {"next": 1, "prev": -1}


class NavigationGate:
    """Commit page changes to a NavigatorState.

    Every request is clamped to [0, total_pages - 1] and the last processed
    request wins, whatever its origin. With sync_hold_after_manual > 0 the
    next N sync requests after a manual turn are dropped instead.
    """

    def __init__(self, state: NavigatorState, sync_hold_after_manual: int = SYNC_HOLD_AFTER_MANUAL):
        self.state = state
        self.sync_hold_after_manual = sync_hold_after_manual
        self.on_commit = []     # callbacks(page, origin)
        self._held = 0

    def clamp(self, target: int) -> int:
        return max(0, min(target, self.state.total_pages - 1))

    def request_page(self, target: int, origin: str) -> int:
        """Commit a clamped target page. Returns the committed page."""
        if origin not in ORIGINS:
            raise ValueError(f"Unknown origin: {origin!r}")

        if origin == SYNC and self._held > 0:
            self._held -= 1
            logger.debug("Dropped sync request for page %d (%d held)", target, self._held)
            return self.state.current_page
        if origin == MANUAL:
            self._held = self.sync_hold_after_manual

        page = self.clamp(target)
        if page != self.state.current_page:
            self.state.current_page = page
            for callback in self.on_commit:
                callback(page, origin)
        return page

    def turn_page(self, direction: str) -> int:
        """Manual turn by exactly one page."""
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction!r}")
        return self.request_page(self.state.current_page + DIRECTIONS[direction], MANUAL)

    def reset(self) -> None:
        self._held = 0
