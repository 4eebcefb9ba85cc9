"""Shared fixtures for story reader tests."""

import json

import pytest
from pydub import AudioSegment

from story_reader.models import Segment, Story


@pytest.fixture
def once_upon_segments():
    """Five one-second segments: two content pages at chunk size 4."""
    return [
        Segment(0, 1, "Once"),
        Segment(1, 2, "upon"),
        Segment(2, 3, "a"),
        Segment(3, 4, "time"),
        Segment(4, 5, "the"),
    ]


@pytest.fixture
def bilingual_story(once_upon_segments):
    """Two chapters; the second has no Filipino text and falls back to English."""
    return Story(
        id="fox",
        title={"en": "The Fox", "fil": "Ang Soro"},
        cover="covers/fox.png",
        voice={"en": "fox_en.wav"},
        chapters=[
            {
                "en": once_upon_segments[:3],
                "fil": [Segment(0, 1, "Noong"), Segment(1, 2, "unang"), Segment(2, 3, "panahon")],
            },
            {"en": once_upon_segments[3:]},
        ],
    )


@pytest.fixture
def voice_track(tmp_path):
    """Generate a 5s silent WAV voice track (decoded without ffmpeg)."""
    path = tmp_path / "voice.wav"
    AudioSegment.silent(duration=5000).export(str(path), format="wav")
    return path


@pytest.fixture
def story_file(tmp_path, voice_track):
    """Write a story JSON next to its voice track and return the path."""
    data = {
        "id": "once",
        "title": {"en": "Once Upon a Time", "fil": "Noong Unang Panahon"},
        "voice": {"en": voice_track.name},
        "chapters": [
            {"en": [
                {"start": 0, "end": 1, "text": "Once"},
                {"start": 1, "end": 2, "text": "upon"},
                {"start": 2, "end": 3, "text": "a"},
                {"start": 3, "end": 4, "text": "time"},
            ]},
            {"en": [{"start": 4, "end": 5, "text": "the"}]},
        ],
    }
    path = tmp_path / "once.json"
    path.write_text(json.dumps(data))
    return path
