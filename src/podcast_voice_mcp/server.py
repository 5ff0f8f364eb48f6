"""Podcast Voice MCP Server."""

import logging
import sys
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Annotated

from pydantic import Field
from mcp.server.fastmcp import FastMCP

from podcast_voice_mcp.cache import TranscriptStore
from podcast_voice_mcp.config import Settings, Transport
from podcast_voice_mcp.intents import parse_intent
from podcast_voice_mcp.models import Transcript, TranscriptSegment
from podcast_voice_mcp.providers.http import HttpTranscriptProvider
from podcast_voice_mcp.utils import format_timestamp

# Logging to stderr (MCP convention)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("podcast-voice-mcp")

# Lifespan-owned state
_provider = None
_store = None
_settings = None
_rate_window = deque()

TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "openWorldHint": False,
}
FETCH_ANNOTATIONS = {**TOOL_ANNOTATIONS, "readOnlyHint": False, "openWorldHint": True}


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    global _provider, _store, _settings, _rate_window
    _settings = Settings()
    _store = TranscriptStore(
        max_size=_settings.transcript_cache_max_size,
        ttl=_settings.transcript_cache_ttl_seconds,
        context_window_ms=_settings.transcript_context_window_ms,
    )
    _provider = HttpTranscriptProvider(asr_base_url=_settings.asr_server_url)
    _rate_window = deque()

    logger.info("Server started")
    yield

    if _provider:
        await _provider.close()
    logger.info("Server stopped")


mcp = FastMCP(
    "Podcast Voice",
    instructions="Load podcast transcripts, query them by time or text, and interpret voice commands",
    lifespan=app_lifespan,
)


def _check_rate_limit():
    """Sliding window rate limit."""
    now = time.time()
    limit = (_settings.rate_limit_per_minute if _settings else 60)
    while _rate_window and _rate_window[0] < now - 60:
        _rate_window.popleft()
    if len(_rate_window) >= limit:
        raise ValueError(
            f"Rate limit exceeded ({limit}/min). Try again in a few seconds."
        )
    _rate_window.append(now)


def _segments_to_markdown(segments: list[TranscriptSegment]) -> str:
    """Format segments as markdown with timestamps."""
    lines = []
    for seg in segments:
        ts = format_timestamp(seg.start_time)
        speaker = f"{seg.speaker}: " if seg.speaker else ""
        lines.append(f"**[{ts}]** {speaker}{seg.text}")
    return "\n".join(lines)


def _missing(episode_id: str) -> str:
    return f"Error: No transcript loaded for episode {episode_id}. Use load_transcript first."


def _loaded_summary(transcript: Transcript) -> str:
    if not transcript.segments:
        return f"Loaded transcript for {transcript.episode_id}, but no segments could be parsed."

    last = max(seg.end_time for seg in transcript.segments)
    return (
        f"## Loaded: {transcript.episode_id}\n"
        f"**Format:** {transcript.format.value} | **Segments:** {len(transcript.segments)} | "
        f"**Length:** {format_timestamp(last)}"
    )


@mcp.tool(annotations=FETCH_ANNOTATIONS)
async def load_transcript(
    episode_id: Annotated[str, Field(description="Identifier the transcript is stored under")],
    url: Annotated[str, Field(description="URL of the published transcript file")],
    mime_type: Annotated[str, Field(default="application/srt", description="Transcript MIME type: application/srt, text/vtt or application/json")] = "application/srt",
) -> str:
    """Download and index an episode transcript, replacing any previously loaded one."""
    _check_rate_limit()

    try:
        transcript = await _provider.fetch_transcript(episode_id, url, mime_type)
    except Exception as e:
        return f"Error fetching transcript for {episode_id}: {e}"

    _store.put(transcript)
    return _loaded_summary(transcript)


@mcp.tool(annotations=FETCH_ANNOTATIONS)
async def transcribe_episode(
    episode_id: Annotated[str, Field(description="Identifier the transcript is stored under")],
    audio_url: Annotated[str, Field(description="URL of the episode audio to transcribe")],
) -> str:
    """Transcribe an episode without a published transcript via the ASR server."""
    _check_rate_limit()

    try:
        transcript = await _provider.request_asr(episode_id, audio_url)
    except Exception as e:
        return f"Error transcribing {episode_id}: {e}"

    _store.put(transcript)
    return _loaded_summary(transcript)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def transcript_at(
    episode_id: Annotated[str, Field(description="Episode whose transcript to query")],
    timestamp_ms: Annotated[int, Field(ge=0, description="Playhead position in milliseconds")],
) -> str:
    """Return the transcript segment being spoken at a playhead position."""
    _check_rate_limit()

    if episode_id not in _store:
        return _missing(episode_id)

    segment = _store.segment_at(episode_id, timestamp_ms)
    if segment is None:
        return f"No transcript segment at {format_timestamp(timestamp_ms)} in {episode_id}."
    return _segments_to_markdown([segment])


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def transcript_context(
    episode_id: Annotated[str, Field(description="Episode whose transcript to query")],
    timestamp_ms: Annotated[int, Field(ge=0, description="Playhead position in milliseconds")],
    window_ms: Annotated[int | None, Field(default=None, ge=0, description="Half-width of the window in milliseconds (default: configured context window)")] = None,
) -> str:
    """Return the segments that lie entirely within a window around the playhead."""
    _check_rate_limit()

    if episode_id not in _store:
        return _missing(episode_id)

    segments = _store.segments_near(episode_id, timestamp_ms, window_ms)
    if not segments:
        return f"No complete segments near {format_timestamp(timestamp_ms)} in {episode_id}."

    header = (
        f"## Context: {episode_id} @ {format_timestamp(timestamp_ms)}\n"
        f"**{len(segments)} segment(s)**\n"
    )
    return f"{header}\n{_segments_to_markdown(segments)}"


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def search_transcript(
    episode_id: Annotated[str, Field(description="Episode whose transcript to search")],
    query: Annotated[str, Field(description="Search query string (case-insensitive keyword or phrase)")],
) -> str:
    """Search a loaded transcript and return matching segments with timestamps."""
    _check_rate_limit()

    if not query.strip():
        return "Error: Search query cannot be empty."
    if episode_id not in _store:
        return _missing(episode_id)

    matches = _store.search(episode_id, query)
    if not matches:
        return f"No matches found for '{query}' in {episode_id}."

    header = (
        f"## Search Results: '{query}' in {episode_id}\n"
        f"**{len(matches)} match(es) found**\n"
    )
    return f"{header}\n{_segments_to_markdown(matches)}"


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def interpret_command(
    utterance: Annotated[str, Field(description="Transcribed voice command, e.g. 'skip forward 15 seconds'")],
) -> str:
    """Interpret a spoken player command and return the resulting intent as JSON."""
    _check_rate_limit()
    return parse_intent(utterance).model_dump_json(exclude_none=True)


# -- MCP Resources --


@mcp.resource("podcast://voice-commands")
def help_resource() -> str:
    """Voice commands understood by the command parser."""
    return """# Podcast Voice Commands

| Say | Intent |
|---|---|
| "pause", "stop" | pause |
| "play", "resume", "continue" | resume |
| "go back 15 seconds", "rewind fifteen" | seek_backward |
| "skip forward 15 seconds" | seek_forward |
| "set speed to 1.5" | set_speed |
| "next chapter" / "previous chapter" | next_chapter / previous_chapter |
| "bookmark this", "save this spot" | bookmark |
| "show bookmarks" | show_bookmarks |
| "what did they just say" | rewind_and_play |
| "summarize the last minute" | summarize |
| "explain ...", "what is ...", "tell me about ..." | explain |
| "jump to 12:30" | jump_to |

## Tools
- load_transcript: fetch an SRT, VTT or JSON transcript for an episode
- transcribe_episode: transcribe episode audio on the ASR server
- transcript_at / transcript_context: look up what is said at or around a playhead
- search_transcript: case-insensitive text search
- interpret_command: parse an utterance into an intent
"""


def main():
    settings = Settings()
    if settings.transport == Transport.STREAMABLE_HTTP:
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
