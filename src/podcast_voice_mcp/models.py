"""Data models for transcripts, intents, and playback state."""

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def now_ms() -> int:
    return int(time.time() * 1000)


class TranscriptFormat(str, Enum):
    SRT = "srt"
    JSON = "json"
    VTT = "vtt"


class TranscriptSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: int
    end_time: int
    text: str
    speaker: str | None = None

    @model_validator(mode="after")
    def _check_times(self) -> "TranscriptSegment":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Transcript(BaseModel):
    episode_id: str
    segments: list[TranscriptSegment] = []
    format: TranscriptFormat = TranscriptFormat.SRT
    last_updated: int = Field(default_factory=now_ms)


class IntentType(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"
    SEEK_BACKWARD = "seek_backward"
    SEEK_FORWARD = "seek_forward"
    SET_SPEED = "set_speed"
    NEXT_CHAPTER = "next_chapter"
    PREVIOUS_CHAPTER = "previous_chapter"
    BOOKMARK = "bookmark"
    SHOW_BOOKMARKS = "show_bookmarks"
    REWIND_AND_PLAY = "rewind_and_play"
    SUMMARIZE = "summarize"
    EXPLAIN = "explain"
    QUESTION = "question"
    JUMP_TO = "jump_to"
    UNKNOWN = "unknown"


class VoiceIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: IntentType
    utterance: str
    confidence: float = Field(ge=0.0, le=1.0)
    # None (never {}) when the matching rule extracts nothing
    parameters: dict[str, Any] | None = None


class PlaybackState(BaseModel):
    episode_id: str | None = None
    position: int = 0
    duration: int = 0
    is_playing: bool = False
    rate: float = 1.0
    buffering: bool = False


class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: int
    title: str
    end_time: int | None = None
    url: str | None = None
    image_url: str | None = None


class Episode(BaseModel):
    id: str
    title: str = ""
    audio_url: str = ""
    chapters: list[Chapter] = []
    transcript_url: str | None = None
    transcript_type: str | None = None


class Bookmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    episode_id: str
    timestamp: int
    created_at: int
    note: str | None = None


class CommandResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool
    message: str | None = None
    needs_server_processing: bool | None = None
    context: dict[str, Any] | None = None
    bookmarks: list[Bookmark] | None = None


class VoiceCommand(BaseModel):
    """History record for one execution attempt."""

    intent: VoiceIntent
    timestamp: int = Field(default_factory=now_ms)
    executed: bool = False
    result: CommandResult | None = None
    error: str | None = None


class VoiceContext(BaseModel):
    """Podcast context forwarded to the voice agent with the token request."""

    podcast_rss_url: str | None = None
    episode_url: str | None = None
    current_timestamp: int | None = None


class TransportEventKind(str, Enum):
    CONNECTED = "connected"
    PARTICIPANT_CONNECTED = "participant_connected"
    TRACK_SUBSCRIBED = "track_subscribed"
    TRACK_UNSUBSCRIBED = "track_unsubscribed"
    TRANSCRIPTION = "transcription"
    AGENT_RESPONSE = "agent_response"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    RECONNECTED = "reconnected"


class TransportEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransportEventKind
    participant_identity: str | None = None
    track_kind: str | None = None
    text: str | None = None
