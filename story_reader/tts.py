"""Narrate story text via edge-tts, recording each segment's time span."""

import asyncio
import logging
import os
import re
import time

import edge_tts
from pydub import AudioSegment

from story_reader.constants import (
    DEFAULT_LANGUAGE,
    LANGUAGE_VOICES,
    SEGMENT_PAUSE_MS,
    TTS_RATE,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
)
from story_reader.models import Segment, Story

logger = logging.getLogger(__name__)


class NarrationError(Exception):
    """Raised when edge-tts cannot produce a clip after every retry."""


def generate_single(text: str, voice: str, output_path: str, rate: str = TTS_RATE) -> None:
    """Narrate one segment to an mp3 clip, retrying with exponential backoff.

    An empty clip counts as a failed attempt.
    """
    for attempt in range(1, TTS_RETRY_COUNT + 1):
        cause = None
        try:
            asyncio.run(edge_tts.Communicate(text, voice, rate=rate).save(output_path))
        except Exception as e:
            cause = e
            reason = str(e) or type(e).__name__
        else:
            if os.path.exists(output_path) and os.path.getsize(output_path) > 0:
                return
            reason = "empty clip"

        if attempt == TTS_RETRY_COUNT:
            raise NarrationError(f"Could not narrate {text[:40]!r} with {voice}: {reason}") from cause
        delay = TTS_RETRY_BASE_DELAY * 2 ** (attempt - 1)
        logger.warning("Narration attempt %d/%d failed (%s), retrying in %.1fs",
                       attempt, TTS_RETRY_COUNT, reason, delay)
        time.sleep(delay)


def split_sentences(text: str) -> list[str]:
    """Split story text into narration segments at sentence boundaries."""
    sentences = []
    for paragraph in re.split(r"\n\s*\n", text.strip()):
        paragraph = " ".join(paragraph.split())
        if not paragraph:
            continue
        sentences.extend(s for s in re.split(r"(?<=[.!?])\s+", paragraph) if s)
    return sentences


def narrate_segments(
    texts: list[str],
    voice: str,
    output_dir: str,
    rate: str = TTS_RATE,
    pause_ms: int = SEGMENT_PAUSE_MS,
) -> tuple[str, list[Segment]]:
    """Narrate each text and join the clips into one voice track.

    Returns the voice track path and one Segment per text whose start/end
    are the clip's position in the track, in seconds. Clips already on disk
    are reused.
    """
    clip_dir = os.path.join(output_dir, "clips")
    os.makedirs(clip_dir, exist_ok=True)

    total = len(texts)
    track = AudioSegment.silent(duration=0)
    segments = []

    for i, text in enumerate(texts):
        clip_path = os.path.join(clip_dir, f"{i:03d}.mp3")
        if os.path.exists(clip_path) and os.path.getsize(clip_path) > 0:
            print(f"  [skip] Segment {i + 1}/{total}")
        else:
            print(f"  Narrating segment {i + 1}/{total}")
            generate_single(text, voice, clip_path, rate=rate)

        if i > 0:
            track += AudioSegment.silent(duration=pause_ms)
        start = len(track) / 1000
        track += AudioSegment.from_mp3(clip_path)
        end = len(track) / 1000
        segments.append(Segment(start=start, end=end, text=text))

    track_path = os.path.join(output_dir, "voice.mp3")
    track.export(track_path, format="mp3")
    return track_path, segments


def narrate_story(
    story_id: str,
    text: str,
    output_dir: str,
    language: str = DEFAULT_LANGUAGE,
    voice: str | None = None,
    title: str | None = None,
    rate: str = TTS_RATE,
) -> Story:
    """Build a single-chapter Story with a narrated voice track."""
    if voice is None:
        voice = LANGUAGE_VOICES.get(language, LANGUAGE_VOICES[DEFAULT_LANGUAGE])
    texts = split_sentences(text)
    if not texts:
        raise ValueError("No narratable text found")

    track_path, segments = narrate_segments(texts, voice, output_dir, rate=rate)
    return Story(
        id=story_id,
        title={language: title or story_id},
        voice={language: os.path.relpath(track_path, output_dir)},
        chapters=[{language: segments}],
    )
