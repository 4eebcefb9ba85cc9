"""Integration tests (Layer 4): narrate a text, then page and replay the result."""

import json
from unittest.mock import MagicMock, patch

import pytest
from pydub import AudioSegment

from story_reader.cli import main
from story_reader.playback import PlaybackController
from story_reader.reader import StoryReader
from story_reader.story import load_story
from story_reader.transport import PydubTransport

FOX_TEXT = """Once upon a time. There was a fox.

The fox was quick. It ran home."""


def _mock_tts_communicate():
    """Create a mock edge_tts.Communicate factory writing one-second clips."""
    def factory(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            AudioSegment.silent(duration=1000).export(path, format="mp3")
        mock.save = save
        return mock
    return factory


def _run(argv):
    with patch("sys.argv", ["story-reader", *argv]):
        main()


@pytest.fixture
def narrated(tmp_path):
    """Narrate the fox story through the CLI and return its story.json path."""
    text_file = tmp_path / "fox.txt"
    text_file.write_text(FOX_TEXT)
    out_dir = tmp_path / "fox"
    with patch("story_reader.tts.edge_tts.Communicate", side_effect=_mock_tts_communicate()):
        _run(["narrate", str(text_file), "-o", str(out_dir), "--title", "The Fox"])
    return out_dir / "story.json"


def test_narrated_story_is_well_formed(narrated):
    data = json.loads(narrated.read_text())
    segments = data["chapters"][0]["en"]
    assert [s["text"] for s in segments] == [
        "Once upon a time.", "There was a fox.", "The fox was quick.", "It ran home.",
    ]
    for prev, curr in zip(segments, segments[1:]):
        assert curr["start"] > prev["end"]


def test_narrate_then_pages(narrated, capsys):
    capsys.readouterr()
    _run(["pages", str(narrated), "--chunk-size", "2"])
    out = capsys.readouterr().out
    assert "Story:    The Fox [en]" in out
    assert "Pages:    3 (cover + 2)" in out
    assert "Once upon a time. | There was a fox." in out


def test_narrate_then_replay(narrated, capsys):
    capsys.readouterr()
    _run(["replay", str(narrated), "--chunk-size", "2"])
    out = capsys.readouterr().out
    assert "highlight #0: Once upon a time." in out
    assert "highlight #3: It ran home." in out
    assert "page 2/3 (sync)" in out
    assert "page 3/3 (sync)" in out
    assert "Finished:" in out


def test_narrated_story_drives_reader(narrated):
    """The narrated timings line up with the narrated voice track."""
    transport = PydubTransport(tick=0.1)
    playback = PlaybackController(transport)
    reader = StoryReader(playback, chunk_size=2)
    story = load_story(str(narrated))
    reader.load_story(story, "en")
    assert reader.audio_loaded

    last = story.chapters[0]["en"][-1]
    assert transport.duration == pytest.approx(last.end, abs=0.1)

    seen = []
    playback.time_listeners.append(lambda t: seen.append(reader.state.active_index))
    playback.toggle_play_pause()
    transport.advance(last.start + 0.2)
    assert reader.state.current_page == 2
    assert [i for i in dict.fromkeys(seen) if i is not None] == [0, 1, 2, 3]
