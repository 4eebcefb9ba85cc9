"""Play/pause/mute state and the time signal from the audio transport."""

import math


def format_time(seconds: float | None) -> str:
    """Format seconds as m:ss. Non-finite or missing input gives 0:00."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


class PlaybackController:
    """Thin owner of playback flags.

    The transport is any object with load(source), unload(), play(), pause(),
    a writable `muted` attribute and connect(listener); it calls back
    on_time_update, on_loaded_metadata and on_ended. Commands are no-ops
    without a transport or a loaded track.
    """

    def __init__(self, transport=None):
        self.transport = transport
        self.is_playing = False
        self.is_muted = False
        self.current_time = 0.0
        self.duration = 0.0
        self.source = None
        self.time_listeners = []     # callbacks(t)
        self.loaded_listeners = []   # callbacks(duration)
        if transport is not None:
            transport.connect(self)

    @property
    def progress(self) -> float:
        """Playback position as a percentage of the track."""
        if self.duration > 0:
            return self.current_time / self.duration * 100
        return 0.0

    def load(self, source: str | None) -> None:
        """Point the transport at a new voice track; ignored without a source."""
        if not source:
            return
        self.stop()
        if self.transport is not None:
            self.transport.load(source)
        self.source = source

    def stop(self) -> None:
        """Halt playback and forget the current track."""
        if self.transport is not None:
            self.transport.unload()
        self.source = None
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0

    def toggle_play_pause(self) -> bool:
        if self.transport is None or self.source is None:
            return self.is_playing
        if self.is_playing:
            self.transport.pause()
        else:
            self.transport.play()
        self.is_playing = not self.is_playing
        return self.is_playing

    def toggle_mute(self) -> bool:
        if self.transport is None:
            return self.is_muted
        self.transport.muted = not self.is_muted
        self.is_muted = not self.is_muted
        return self.is_muted

    # --- Transport events ---

    def on_time_update(self, t: float) -> None:
        self.current_time = t
        for callback in self.time_listeners:
            callback(t)

    def on_loaded_metadata(self, duration: float) -> None:
        self.duration = duration
        for callback in self.loaded_listeners:
            callback(duration)

    def on_ended(self) -> None:
        """Track finished: stop and rewind, so listeners re-sync at 0."""
        self.is_playing = False
        self.on_time_update(0.0)
