"""Load story files and select the segment sequence for a language."""

import json
import logging
import os

from story_reader.constants import DEFAULT_COVER, DEFAULT_LANGUAGE, SETTINGS_SUFFIX
from story_reader.models import Segment, Story

logger = logging.getLogger(__name__)


class StoryFormatError(ValueError):
    """Raised when a story file cannot be read as a story."""


def _resolve(base_dir: str, ref: str) -> str:
    """Resolve a relative asset reference against the story file's directory."""
    if not ref or not base_dir or "://" in ref or os.path.isabs(ref):
        return ref
    return os.path.join(base_dir, ref)


def parse_segments(raw: list, where: str = "") -> list[Segment]:
    """Build Segments from raw dicts, dropping entries that break ordering.

    An entry is dropped when it is missing fields, when end <= start, or when
    its start precedes the previously kept start. Kept entries are never
    reordered.
    """
    segments = []
    last_start = None
    for i, item in enumerate(raw or []):
        try:
            start = float(item["start"])
            end = float(item["end"])
            text = str(item.get("text", ""))
        except (KeyError, TypeError, ValueError):
            logger.warning("Dropping unreadable segment %d%s: %r", i, where, item)
            continue
        if end <= start:
            logger.warning("Dropping segment %d%s: end %.3f <= start %.3f", i, where, end, start)
            continue
        if last_start is not None and start < last_start:
            logger.warning("Dropping segment %d%s: start %.3f is out of order", i, where, start)
            continue
        segments.append(Segment(start=start, end=end, text=text))
        last_start = start
    return segments


def _localized_field(data: dict, key: str) -> dict:
    """A per-language field: a bare string is taken as the default language."""
    value = data.get(key) or {}
    if isinstance(value, str):
        return {DEFAULT_LANGUAGE: value}
    if not isinstance(value, dict):
        raise StoryFormatError(f"Story {key} must be a string or an object, got {type(value).__name__}")
    for language, entry in value.items():
        if entry is not None and not isinstance(entry, str):
            raise StoryFormatError(f"Story {key} for '{language}' must be a string")
    return value


def story_from_dict(data: dict, base_dir: str = "") -> Story:
    """Build a Story from parsed JSON data."""
    if not isinstance(data, dict):
        raise StoryFormatError("Story root must be a JSON object")

    raw_chapters = data.get("chapters") or []
    if not isinstance(raw_chapters, list):
        raise StoryFormatError("Story chapters must be a list")

    chapters = []
    for n, chapter in enumerate(raw_chapters):
        if not isinstance(chapter, dict):
            raise StoryFormatError(f"Chapter {n} must map language codes to segments")
        for language, raw in chapter.items():
            if raw is not None and not isinstance(raw, list):
                raise StoryFormatError(f"Chapter {n} [{language}] must be a list of segments")
        chapters.append({
            language: parse_segments(raw, where=f" (chapter {n}, {language})")
            for language, raw in chapter.items()
        })

    title = _localized_field(data, "title")
    voice = _localized_field(data, "voice")
    cover = data.get("cover") or ""
    if not isinstance(cover, str):
        raise StoryFormatError("Story cover must be a string")

    return Story(
        id=str(data.get("id", "")),
        title=dict(title),
        cover=_resolve(base_dir, cover),
        voice={language: _resolve(base_dir, ref) for language, ref in voice.items()},
        chapters=chapters,
    )


def load_story(path: str) -> Story:
    """Read a story JSON file.

    Raises StoryFormatError if the file is missing or not a valid story.
    """
    if not os.path.exists(path):
        raise StoryFormatError(f"Story file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise StoryFormatError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise StoryFormatError(f"Story file is not UTF-8: {path}") from e
    except OSError as e:
        raise StoryFormatError(f"Could not read story file {path}: {e}") from e

    story = story_from_dict(data, base_dir=os.path.dirname(os.path.abspath(path)))
    if not story.id:
        story.id = os.path.splitext(os.path.basename(path))[0]
    return story


def story_to_dict(story: Story) -> dict:
    """Serialize a Story back to the JSON file shape."""
    return {
        "id": story.id,
        "title": dict(story.title),
        "cover": story.cover,
        "voice": dict(story.voice),
        "chapters": [
            {
                language: [{"start": s.start, "end": s.end, "text": s.text} for s in segments]
                for language, segments in chapter.items()
            }
            for chapter in story.chapters
        ],
    }


def localized(mapping: dict, language: str, default: str = DEFAULT_LANGUAGE):
    """Look up a language entry, falling back to the default language.

    Only an absent (or null) entry falls back; an empty entry is kept.
    """
    value = mapping.get(language)
    if value is None:
        value = mapping.get(default)
    return value


def select_segments(story: Story | None, language: str, default: str = DEFAULT_LANGUAGE) -> list[Segment]:
    """Flatten every chapter's segments for a language.

    Each chapter falls back to the default language on its own. A missing
    story or missing content gives an empty list.
    """
    if story is None:
        return []
    segments = []
    for chapter in story.chapters:
        segments.extend(localized(chapter, language, default) or [])
    return segments


def story_title(story: Story, language: str) -> str:
    return localized(story.title, language) or story.id or "Untitled"


def story_voice(story: Story, language: str) -> str | None:
    return localized(story.voice, language)


def story_cover(story: Story) -> str:
    return story.cover or DEFAULT_COVER


def load_settings(story_path: str) -> dict:
    """Load the <story>.reader.json settings sidecar if it exists.

    Returns settings dict or empty dict if not found or malformed.
    """
    base = os.path.splitext(story_path)[0]
    settings_path = base + SETTINGS_SUFFIX
    if not os.path.exists(settings_path):
        return {}
    try:
        with open(settings_path, encoding="utf-8") as f:
            settings = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Malformed settings file: %s, using defaults", settings_path)
        return {}
    if not isinstance(settings, dict):
        logger.warning("Settings file %s is not an object, using defaults", settings_path)
        return {}
    return settings
