"""All magic numbers and configuration constants."""

CHUNK_SIZE = 4                               # segments per content page
COVER_PAGE = 0                               # reserved page with no segments
DEFAULT_LANGUAGE = "en"                      # fallback for chapters, titles, voice tracks
DEFAULT_COVER = "assets/covers/story1.png"   # cover used when a story has none
STICKY_HIGHLIGHT = True                      # keep the last segment highlighted through gaps
SYNC_HOLD_AFTER_MANUAL = 0                   # sync requests dropped after a manual turn (0 = off)
TIME_UPDATE_INTERVAL_MS = 250                # transport time-update granularity
SEGMENT_PAUSE_MS = 300                       # silence between narrated segments
TTS_RETRY_COUNT = 3                          # max retries per TTS segment
TTS_RETRY_BASE_DELAY = 1.0                   # seconds, base delay for exponential backoff
TTS_RATE = "-10%"                            # speech rate: -10% = 10% slower than default
LANGUAGE_VOICES = {                          # narrator voice per story language
    "en": "en-US-AnaNeural",
    "fil": "fil-PH-BlessicaNeural",
}
SETTINGS_SUFFIX = ".reader.json"             # per-story settings sidecar
OUTPUT_DIR = "output"
VERSION = "0.1.0"
