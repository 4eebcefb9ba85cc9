"""Offline audio transport: a pydub-loaded voice track on a simulated clock."""

import logging

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from story_reader.constants import TIME_UPDATE_INTERVAL_MS

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a voice track cannot be loaded."""


class PydubTransport:
    """Stand-in for a media element.

    Decodes the voice track once to learn its duration, then emits time
    updates every `tick` seconds of simulated playback. Nothing is played
    out loud; `muted` is only recorded.
    """

    def __init__(self, tick: float = TIME_UPDATE_INTERVAL_MS / 1000):
        if tick <= 0:
            raise ValueError(f"tick must be positive, got {tick}")
        self.tick = tick
        self.listener = None
        self.audio = None
        self.duration = 0.0
        self.position = 0.0
        self.playing = False
        self.muted = False

    def connect(self, listener) -> None:
        """Register the object receiving on_time_update/on_loaded_metadata/on_ended."""
        self.listener = listener

    def load(self, source: str) -> None:
        try:
            self.audio = AudioSegment.from_file(source)
        except (FileNotFoundError, CouldntDecodeError) as e:
            raise TransportError(f"Could not load voice track {source}: {e}") from e
        self.duration = len(self.audio) / 1000
        self.position = 0.0
        self.playing = False
        logger.info("Loaded voice track %s (%.2fs)", source, self.duration)
        if self.listener is not None:
            self.listener.on_loaded_metadata(self.duration)

    def unload(self) -> None:
        self.audio = None
        self.duration = 0.0
        self.position = 0.0
        self.playing = False

    def play(self) -> None:
        if self.audio is not None:
            self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek(self, t: float) -> None:
        self.position = max(0.0, min(t, self.duration))
        self._emit_time()

    def advance(self, seconds: float) -> int:
        """Run the clock forward while playing. Returns time updates emitted."""
        emitted = 0
        remaining = seconds
        while self.playing and remaining > 1e-9:
            step = min(self.tick, remaining)
            self.position = min(self.position + step, self.duration)
            remaining -= step
            self._emit_time()
            emitted += 1
            if self.position >= self.duration:
                self.playing = False
                self.position = 0.0
                if self.listener is not None:
                    self.listener.on_ended()
                break
        return emitted

    def _emit_time(self) -> None:
        if self.listener is not None:
            self.listener.on_time_update(self.position)
