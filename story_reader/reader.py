"""Story reader: the composition that owns navigator state for one story."""

import logging
from dataclasses import dataclass

from story_reader.constants import (
    CHUNK_SIZE,
    COVER_PAGE,
    DEFAULT_LANGUAGE,
    STICKY_HIGHLIGHT,
    SYNC_HOLD_AFTER_MANUAL,
)
from story_reader.gate import NavigationGate
from story_reader.models import NavigatorState, Segment, Story
from story_reader.paginator import Paginator
from story_reader.playback import PlaybackController
from story_reader.segment_index import SegmentIndex
from story_reader.story import select_segments, story_cover, story_title, story_voice
from story_reader.sync import PlaybackSyncController, SyncResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageView:
    """What the presentation layer needs to draw the current page."""
    page: int
    total_pages: int
    is_cover: bool
    segments: tuple[Segment, ...]
    active_offset: int | None    # position of the highlighted segment on this page
    title: str
    cover: str

    @property
    def indicator(self) -> str:
        return f"{self.page + 1} / {self.total_pages}"

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1


class StoryReader:
    """Wire playback, sync and manual navigation around one NavigatorState.

    Loading a story or switching language is a reset: the index and pages are
    rebuilt from the newly selected segments, the state is re-seeded on the
    cover, and the generation stamp moves on so stale time updates are
    ignored.
    """

    def __init__(
        self,
        playback: PlaybackController | None = None,
        chunk_size: int = CHUNK_SIZE,
        sticky_highlight: bool = STICKY_HIGHLIGHT,
        sync_hold_after_manual: int = SYNC_HOLD_AFTER_MANUAL,
    ):
        self.chunk_size = chunk_size
        self.state = NavigatorState()
        self.gate = NavigationGate(self.state, sync_hold_after_manual=sync_hold_after_manual)
        self.sync = PlaybackSyncController(self.state, self.gate, sticky_highlight=sticky_highlight)
        self.playback = playback if playback is not None else PlaybackController()
        self._time_listener = self._listen(self.sync.generation)
        self.playback.time_listeners.append(self._time_listener)
        self.playback.loaded_listeners.append(self._on_loaded)

        self.story = None
        self.language = DEFAULT_LANGUAGE
        self.audio_loaded = False

    @property
    def generation(self) -> int:
        return self.sync.generation

    @property
    def paginator(self) -> Paginator:
        return self.sync.paginator

    def load_story(self, story: Story | None, language: str | None = None) -> None:
        self.story = story
        if language is not None:
            self.language = language
        self._rebuild()

    def set_language(self, language: str) -> None:
        if language == self.language:
            return
        self.language = language
        self._rebuild()

    def _rebuild(self) -> None:
        self.playback.stop()
        segments = select_segments(self.story, self.language)
        index = SegmentIndex(segments)
        paginator = Paginator(segments, self.chunk_size)

        self.state.total_pages = paginator.total_pages
        self.state.current_page = COVER_PAGE
        self.state.active_segment = None
        self.state.active_index = None
        self.gate.reset()
        self.audio_loaded = False
        generation = self.sync.reset(index, paginator)
        self._restamp(generation)
        logger.info(
            "Loaded %s [%s]: %d segments, %d pages (generation %d)",
            self.story.id if self.story else "no story", self.language,
            len(index), paginator.total_pages, generation,
        )

        if self.story is not None:
            self.playback.load(story_voice(self.story, self.language))

    # --- Events ---

    def on_time_update(self, t: float, generation: int | None = None) -> SyncResult | None:
        return self.sync.on_time_update(t, generation=generation)

    def _listen(self, generation: int):
        def on_time(t):
            self.sync.on_time_update(t, generation=generation)
        return on_time

    def _restamp(self, generation: int) -> None:
        """Swap in a time listener bound to the new generation, in place."""
        listener = self._listen(generation)
        listeners = self.playback.time_listeners
        if self._time_listener in listeners:
            listeners[listeners.index(self._time_listener)] = listener
        else:
            listeners.append(listener)
        self._time_listener = listener

    def _on_loaded(self, duration: float) -> None:
        self.audio_loaded = True

    def turn_page(self, direction: str) -> int:
        return self.gate.turn_page(direction)

    def handle_click(self, x: float, width: float) -> int:
        """Left half of the page goes back, right half goes forward."""
        return self.turn_page("prev" if x < width / 2 else "next")

    # --- Presentation ---

    def view(self) -> PageView:
        page = self.state.current_page
        segments = self.paginator.page(page)
        active_offset = None
        if self.state.active_index is not None and segments:
            first = (page - 1) * self.chunk_size
            if first <= self.state.active_index < first + len(segments):
                active_offset = self.state.active_index - first
        story = self.story
        return PageView(
            page=page,
            total_pages=self.state.total_pages,
            is_cover=page == COVER_PAGE,
            segments=segments,
            active_offset=active_offset,
            title=story_title(story, self.language) if story else "",
            cover=story_cover(story) if story else "",
        )
