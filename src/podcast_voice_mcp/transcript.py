"""Transcript parsing and time-window queries.

Two textual formats are accepted:

* subtitle blocks (SRT, and VTT files laid out the same way): an index line,
  a ``HH:MM:SS,mmm --> HH:MM:SS,mmm`` line (``.`` is accepted as the
  millisecond separator) and one or more text lines, blocks separated by a
  blank line;
* JSON, either ``{"segments": [...]}`` or a bare array, where every entry has
  ``start``/``end`` in seconds, ``text`` and an optional ``speaker``.

Parsing is best-effort: a malformed block or entry is dropped and logged,
only an unrecognized JSON document fails the whole transcript.
"""

import json
import logging
import re
from typing import Any

from podcast_voice_mcp.errors import FormatError
from podcast_voice_mcp.models import Transcript, TranscriptFormat, TranscriptSegment

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW_MS = 120_000

_BLOCK_SEPARATOR = re.compile(r"\n\n+")
_TIME_LINE = re.compile(
    r"(\d{2}):(\d{2}):(\d{2})[,.](\d{3})\s*-->\s*(\d{2}):(\d{2}):(\d{2})[,.](\d{3})"
)


def _to_ms(hours: str, minutes: str, seconds: str, millis: str) -> int:
    return int(hours) * 3_600_000 + int(minutes) * 60_000 + int(seconds) * 1000 + int(millis)


def parse_subtitles(raw_text: str) -> list[TranscriptSegment]:
    """Parse subtitle blocks into segments, in source order."""
    segments: list[TranscriptSegment] = []
    text = raw_text.replace("\r\n", "\n").strip()
    if not text:
        return segments

    for number, block in enumerate(_BLOCK_SEPARATOR.split(text), 1):
        lines = block.split("\n")
        if len(lines) < 3:
            logger.debug("Skipping block %d: expected at least 3 lines", number)
            continue

        match = _TIME_LINE.search(lines[1])
        if not match:
            logger.debug("Skipping block %d: no timestamp in %r", number, lines[1])
            continue

        groups = match.groups()
        start = _to_ms(*groups[:4])
        end = _to_ms(*groups[4:])
        if end <= start:
            logger.debug("Skipping block %d: end %d is not after start %d", number, end, start)
            continue

        segments.append(
            TranscriptSegment(start_time=start, end_time=end, text=" ".join(lines[2:]))
        )
    return segments


def _segment_from_entry(
    entry: Any, start_key: str, end_key: str, scale: int
) -> TranscriptSegment | None:
    try:
        start = round(float(entry[start_key]) * scale)
        end = round(float(entry[end_key]) * scale)
        text = entry["text"]
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if not isinstance(text, str) or end <= start:
        return None
    speaker = entry.get("speaker")
    return TranscriptSegment(
        start_time=start,
        end_time=end,
        text=text,
        speaker=speaker if isinstance(speaker, str) else None,
    )


def parse_json(raw_text: str) -> list[TranscriptSegment]:
    """Parse a JSON transcript whose entries carry times in seconds."""
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON transcript: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("segments"), list):
        entries = data["segments"]
    elif isinstance(data, list):
        entries = data
    else:
        raise FormatError("Unrecognized JSON transcript format")

    return segments_from_entries(entries)


def segments_from_entries(
    entries: list[Any],
    start_key: str = "start",
    end_key: str = "end",
    scale: int = 1000,
) -> list[TranscriptSegment]:
    """Build segments from decoded entries, dropping malformed ones.

    ``scale`` converts the entry's time unit to milliseconds (1000 for
    seconds, 1 for entries that are already in milliseconds).
    """
    segments = []
    for index, entry in enumerate(entries):
        segment = _segment_from_entry(entry, start_key, end_key, scale)
        if segment is None:
            logger.debug("Skipping entry %d: %r", index, entry)
            continue
        segments.append(segment)
    return segments


def parse_transcript(
    raw_text: str, source_format: TranscriptFormat | str
) -> list[TranscriptSegment]:
    """Parse raw transcript text in the given format."""
    try:
        fmt = TranscriptFormat(source_format)
    except ValueError:
        raise FormatError(f"Unsupported transcript format: {source_format}") from None

    if fmt == TranscriptFormat.JSON:
        return parse_json(raw_text)
    return parse_subtitles(raw_text)


def build_transcript(
    episode_id: str, raw_text: str, source_format: TranscriptFormat | str
) -> Transcript:
    segments = parse_transcript(raw_text, source_format)
    return Transcript(
        episode_id=episode_id,
        segments=segments,
        format=TranscriptFormat(source_format),
    )


def segment_at(transcript: Transcript, timestamp_ms: int) -> TranscriptSegment | None:
    """Return the first segment covering ``timestamp_ms`` (bounds inclusive)."""
    for seg in transcript.segments:
        if seg.start_time <= timestamp_ms <= seg.end_time:
            return seg
    return None


def segments_near(
    transcript: Transcript,
    timestamp_ms: int,
    window_ms: int = DEFAULT_CONTEXT_WINDOW_MS,
) -> list[TranscriptSegment]:
    """Return segments lying entirely within ``timestamp_ms +/- window_ms``.

    Segments that only partially overlap the window are not included.
    """
    start = timestamp_ms - window_ms
    end = timestamp_ms + window_ms
    return [
        seg for seg in transcript.segments
        if seg.start_time >= start and seg.end_time <= end
    ]


def search_segments(transcript: Transcript, query: str) -> list[TranscriptSegment]:
    """Case-insensitive substring search, in transcript order."""
    query_lower = query.lower()
    return [seg for seg in transcript.segments if query_lower in seg.text.lower()]
