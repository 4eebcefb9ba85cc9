"""CLI interface: inspect pagination, replay narration, narrate stories."""

import argparse
import json
import logging
import os
import sys

from story_reader.constants import (
    CHUNK_SIZE,
    DEFAULT_LANGUAGE,
    OUTPUT_DIR,
    STICKY_HIGHLIGHT,
    SYNC_HOLD_AFTER_MANUAL,
    TIME_UPDATE_INTERVAL_MS,
    VERSION,
)
from story_reader.paginator import Paginator
from story_reader.playback import PlaybackController, format_time
from story_reader.reader import StoryReader
from story_reader.story import (
    StoryFormatError,
    load_settings,
    load_story,
    select_segments,
    story_title,
    story_to_dict,
    story_voice,
)
from story_reader.transport import PydubTransport, TransportError
from story_reader.tts import NarrationError, narrate_story


def _load_story_or_exit(path: str):
    try:
        return load_story(path)
    except StoryFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


def _resolve_settings(args) -> dict:
    """Sidecar settings, overridden by any flag given on the command line."""
    settings = {
        "language": DEFAULT_LANGUAGE,
        "chunk_size": CHUNK_SIZE,
        "sticky_highlight": STICKY_HIGHLIGHT,
        "sync_hold_after_manual": SYNC_HOLD_AFTER_MANUAL,
    }
    settings.update(load_settings(args.story))
    for key in settings:
        value = getattr(args, key, None)
        if value is not None:
            settings[key] = value

    chunk_size = settings["chunk_size"]
    if not _is_int(chunk_size) or chunk_size <= 0:
        _settings_error(f"chunk size must be a positive integer, got {chunk_size!r}")
    hold = settings["sync_hold_after_manual"]
    if not _is_int(hold) or hold < 0:
        _settings_error(f"sync hold must be a non-negative integer, got {hold!r}")
    if not isinstance(settings["sticky_highlight"], bool):
        _settings_error(f"sticky highlight must be true or false, got {settings['sticky_highlight']!r}")
    if not isinstance(settings["language"], str) or not settings["language"]:
        _settings_error(f"language must be a language code, got {settings['language']!r}")
    return settings


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _settings_error(message: str):
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(1)


def _parse_click(value: str) -> tuple[float, str]:
    """Parse TIME:next|prev."""
    try:
        at, direction = value.rsplit(":", 1)
        at = float(at)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid click '{value}', expected TIME:next|prev")
    if direction not in ("next", "prev"):
        raise argparse.ArgumentTypeError(f"Invalid click direction '{direction}', expected next or prev")
    return at, direction


def cmd_pages(args):
    """Show how a story's segments fall onto pages."""
    story = _load_story_or_exit(args.story)
    settings = _resolve_settings(args)
    language = settings["language"]

    segments = select_segments(story, language)
    paginator = Paginator(segments, settings["chunk_size"])

    print(f"Story:    {story_title(story, language)} [{language}]")
    print(f"Segments: {len(segments)}")
    print(f"Pages:    {paginator.total_pages} (cover + {len(paginator.pages)})")
    print("  page 1: [cover]")
    for page in paginator.pages:
        texts = " | ".join(s.text for s in page.segments)
        span = f"{format_time(page.segments[0].start)}-{format_time(page.segments[-1].end)}"
        print(f"  page {page.number + 1}: {span}  {texts}")


def cmd_replay(args):
    """Play a story's voice track on a simulated clock and trace navigation."""
    story = _load_story_or_exit(args.story)
    settings = _resolve_settings(args)
    language = settings["language"]

    if not story_voice(story, language):
        print(f"Error: Story '{story.id}' has no voice track for '{language}'.", file=sys.stderr)
        raise SystemExit(1)

    transport = PydubTransport(tick=args.tick)
    playback = PlaybackController(transport)
    reader = StoryReader(
        playback,
        chunk_size=settings["chunk_size"],
        sticky_highlight=settings["sticky_highlight"],
        sync_hold_after_manual=settings["sync_hold_after_manual"],
    )

    def on_commit(page, origin):
        print(f"  [{playback.current_time:7.2f}s] page {page + 1}/{reader.state.total_pages} ({origin})")

    last_index = None

    def on_time(t):
        nonlocal last_index
        index = reader.state.active_index
        if index != last_index:
            last_index = index
            text = reader.state.active_segment.text if index is not None else "-"
            print(f"  [{t:7.2f}s] highlight #{index}: {text}")

    reader.gate.on_commit.append(on_commit)
    playback.time_listeners.append(on_time)

    try:
        reader.load_story(story, language)
    except TransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    until = transport.duration if args.until is None else min(args.until, transport.duration)
    clicks = sorted(args.click or [])

    print(f"Replaying {story_title(story, language)} [{language}], "
          f"{format_time(transport.duration)}, {reader.state.total_pages} pages")

    playback.toggle_play_pause()
    while playback.is_playing and until - transport.position > 1e-9:
        while clicks and clicks[0][0] <= transport.position:
            _, direction = clicks.pop(0)
            reader.turn_page(direction)
        transport.advance(min(transport.tick, until - transport.position))

    if playback.is_playing:
        playback.toggle_play_pause()
        print(f"Stopped at {format_time(playback.current_time)} on {reader.view().indicator}")
    else:
        print(f"Finished: {format_time(transport.duration)}, {reader.view().indicator}")


def cmd_narrate(args):
    """Narrate a plain-text story into a voice track and story file."""
    if not os.path.exists(args.file):
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        raise SystemExit(1)

    with open(args.file, encoding="utf-8") as f:
        text = f.read()

    if not text.strip():
        print(f"Error: File is empty: {args.file}", file=sys.stderr)
        raise SystemExit(1)

    story_id = os.path.splitext(os.path.basename(args.file))[0]
    output_dir = args.output or os.path.join(OUTPUT_DIR, story_id)
    os.makedirs(output_dir, exist_ok=True)

    try:
        story = narrate_story(
            story_id, text, output_dir,
            language=args.language, voice=args.voice, title=args.title,
        )
    except NarrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    story_path = os.path.join(output_dir, "story.json")
    with open(story_path, "w", encoding="utf-8") as f:
        json.dump(story_to_dict(story), f, indent=2, ensure_ascii=False)

    segments = select_segments(story, args.language)
    print(f"Narrated {len(segments)} segments ({format_time(segments[-1].end)})")
    print(f"Story written to {story_path}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="story-reader",
        description="Story Reader: narrated, paginated stories with synchronized highlighting",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # pages
    pages_parser = subparsers.add_parser("pages", help="Show a story's pagination")
    pages_parser.add_argument("story", help="Path to the story JSON file")
    pages_parser.add_argument("--language", help="Story language (default: en)")
    pages_parser.add_argument("--chunk-size", type=int, help="Segments per page")
    pages_parser.set_defaults(func=cmd_pages)

    # replay
    replay_parser = subparsers.add_parser("replay", help="Replay narration and trace page turns")
    replay_parser.add_argument("story", help="Path to the story JSON file")
    replay_parser.add_argument("--language", help="Story language (default: en)")
    replay_parser.add_argument("--chunk-size", type=int, help="Segments per page")
    replay_parser.add_argument("--until", type=float, help="Stop after this many seconds")
    replay_parser.add_argument("--tick", type=float, default=TIME_UPDATE_INTERVAL_MS / 1000,
                               help="Seconds between time updates")
    replay_parser.add_argument("--click", type=_parse_click, action="append",
                               help="Manual page turn, e.g. 3.5:next (repeatable)")
    replay_parser.add_argument("--no-sticky", dest="sticky_highlight", action="store_false", default=None,
                               help="Clear the highlight in gaps between segments")
    replay_parser.add_argument("--sync-hold", dest="sync_hold_after_manual", type=int,
                               help="Drop this many sync page turns after a manual turn")
    replay_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    replay_parser.set_defaults(func=cmd_replay)

    # narrate
    narrate_parser = subparsers.add_parser("narrate", help="Narrate a text file into a story")
    narrate_parser.add_argument("file", help="Path to the story text file")
    narrate_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Story language")
    narrate_parser.add_argument("--voice", help="edge-tts voice (default: per language)")
    narrate_parser.add_argument("--title", help="Story title (default: file name)")
    narrate_parser.add_argument("-o", "--output", help="Output directory")
    narrate_parser.set_defaults(func=cmd_narrate)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s",
    )
    args.func(args)
