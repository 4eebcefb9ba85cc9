"""Tests for narration (Layer 1d)."""

import logging
import os
from unittest.mock import MagicMock, patch

import pytest
from pydub import AudioSegment

from story_reader.constants import LANGUAGE_VOICES
from story_reader.story import select_segments
from story_reader.tts import NarrationError, generate_single, narrate_segments, narrate_story, split_sentences


def _make_mock_communicate(duration_ms=100):
    """Create a mock edge_tts.Communicate that writes a short silent MP3."""
    def factory(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            AudioSegment.silent(duration=duration_ms).export(path, format="mp3")
        mock.save = save
        return mock
    return factory


@patch("story_reader.tts.edge_tts.Communicate")
def test_generate_single(mock_comm, tmp_path):
    """Single TTS file created at specified path."""
    output = tmp_path / "test.mp3"
    mock_comm.side_effect = _make_mock_communicate()
    generate_single("Once upon a time", "en-US-AnaNeural", str(output))
    assert output.exists()
    assert output.stat().st_size > 0


@patch("story_reader.tts.time.sleep")
@patch("story_reader.tts.edge_tts.Communicate")
def test_generate_single_retry(mock_comm, mock_sleep, tmp_path):
    """Retry works when first attempt fails."""
    output = tmp_path / "test.mp3"
    call_count = 0

    def fail_then_succeed(text, voice, **kwargs):
        nonlocal call_count
        call_count += 1
        mock = MagicMock()
        if call_count == 1:
            async def fail_save(path):
                raise Exception("Network error")
            mock.save = fail_save
        else:
            async def ok_save(path):
                AudioSegment.silent(duration=100).export(path, format="mp3")
            mock.save = ok_save
        return mock

    mock_comm.side_effect = fail_then_succeed
    generate_single("Hello", "en-US-AnaNeural", str(output))
    assert output.exists()
    assert call_count == 2
    mock_sleep.assert_called_once()


@patch("story_reader.tts.time.sleep")
@patch("story_reader.tts.edge_tts.Communicate")
def test_generate_single_retry_exhausted(mock_comm, mock_sleep, tmp_path):
    """Raises after all retries exhausted."""
    def always_fail(text, voice, **kwargs):
        mock = MagicMock()
        async def fail_save(path):
            raise Exception("Permanent failure")
        mock.save = fail_save
        return mock

    mock_comm.side_effect = always_fail
    with pytest.raises(NarrationError, match="Permanent failure"):
        generate_single("Hello", "en-US-AnaNeural", str(tmp_path / "fail.mp3"))
    assert mock_sleep.call_count == 2


@patch("story_reader.tts.time.sleep")
@patch("story_reader.tts.edge_tts.Communicate")
def test_generate_single_zero_byte_is_failure(mock_comm, mock_sleep, tmp_path):
    """0-byte output treated as failure."""
    attempts = [0]

    def write_empty(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            attempts[0] += 1
            if attempts[0] <= 2:
                open(path, "w").close()
            else:
                AudioSegment.silent(duration=100).export(path, format="mp3")
        mock.save = save
        return mock

    mock_comm.side_effect = write_empty
    output = tmp_path / "test.mp3"
    generate_single("Hello", "en-US-AnaNeural", str(output))
    assert output.stat().st_size > 0
    assert attempts[0] == 3


def test_split_sentences():
    text = "Once upon a time. There was a fox!\n\nThe fox was   quick?\nYes."
    assert split_sentences(text) == [
        "Once upon a time.",
        "There was a fox!",
        "The fox was quick?",
        "Yes.",
    ]


def test_split_sentences_empty():
    assert split_sentences("   \n\n  ") == []


@patch("story_reader.tts.edge_tts.Communicate")
def test_narrate_segments_timings(mock_comm, tmp_path):
    """Segments follow the clips in order, separated by the pause."""
    mock_comm.side_effect = _make_mock_communicate(duration_ms=1000)
    track, segments = narrate_segments(["One.", "Two.", "Three."], "en-US-AnaNeural", str(tmp_path), pause_ms=500)

    assert os.path.exists(track)
    assert [s.text for s in segments] == ["One.", "Two.", "Three."]
    for seg in segments:
        assert seg.end > seg.start
    for prev, curr in zip(segments, segments[1:]):
        assert curr.start == pytest.approx(prev.end + 0.5, abs=0.06)
    assert segments[0].start == 0.0


@patch("story_reader.tts.edge_tts.Communicate")
def test_narrate_segments_reuses_clips(mock_comm, tmp_path, capsys):
    """Clips already on disk are not regenerated."""
    mock_comm.side_effect = _make_mock_communicate()
    narrate_segments(["One.", "Two."], "en-US-AnaNeural", str(tmp_path))
    calls = mock_comm.call_count
    narrate_segments(["One.", "Two."], "en-US-AnaNeural", str(tmp_path))
    assert mock_comm.call_count == calls
    assert "[skip] Segment 2/2" in capsys.readouterr().out


@patch("story_reader.tts.edge_tts.Communicate")
def test_narrate_story_uses_language_voice(mock_comm, tmp_path):
    mock_comm.side_effect = _make_mock_communicate()
    story = narrate_story("fox", "Noong unang panahon. May isang soro.", str(tmp_path), language="fil")

    assert mock_comm.call_args[0][1] == LANGUAGE_VOICES["fil"]
    assert story.voice == {"fil": "voice.mp3"}
    assert story.title == {"fil": "fox"}
    assert len(select_segments(story, "fil")) == 2


def test_narrate_story_no_text(tmp_path):
    with pytest.raises(ValueError):
        narrate_story("empty", "  ", str(tmp_path))


@patch("story_reader.tts.time.sleep")
@patch("story_reader.tts.edge_tts.Communicate")
def test_generate_single_backoff_doubles(mock_comm, mock_sleep, tmp_path, caplog):
    """Every failed attempt but the last waits twice as long and logs a warning."""
    def always_empty(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            open(path, "w").close()
        mock.save = save
        return mock

    mock_comm.side_effect = always_empty
    with caplog.at_level(logging.WARNING):
        with pytest.raises(NarrationError, match="empty clip"):
            generate_single("Hello", "en-US-AnaNeural", str(tmp_path / "empty.mp3"))
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]
    assert "attempt 1/3 failed" in caplog.text
