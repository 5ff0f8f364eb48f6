"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from podcast_voice_mcp.capabilities import PlaybackControl
from podcast_voice_mcp.executor import CommandExecutor
from podcast_voice_mcp.history import CommandHistory
from podcast_voice_mcp.models import Chapter, Episode, Transcript, TranscriptSegment
from podcast_voice_mcp.state import InMemoryApplicationState


SAMPLE_SRT = """1
00:00:00,000 --> 00:00:05,500
Welcome to the show.

2
00:00:05,500 --> 00:00:12,000
Today we discuss AI and machine learning.

3
00:00:12,000 --> 00:00:18,500
Let's dive into the technical details."""


@pytest.fixture
def sample_segments():
    return [
        TranscriptSegment(start_time=0, end_time=5000, text="First"),
        TranscriptSegment(start_time=5000, end_time=10000, text="Second"),
        TranscriptSegment(start_time=10000, end_time=15000, text="Third"),
        TranscriptSegment(start_time=15000, end_time=20000, text="Fourth"),
        TranscriptSegment(start_time=20000, end_time=25000, text="Fifth"),
    ]


@pytest.fixture
def sample_transcript(sample_segments):
    return Transcript(episode_id="ep1", segments=sample_segments)


@pytest.fixture
def episode():
    return Episode(
        id="ep1",
        title="Episode 1",
        chapters=[
            Chapter(start_time=0, title="Intro"),
            Chapter(start_time=60000, title="Interview"),
            Chapter(start_time=300000, title="Wrap-up"),
        ],
    )


@pytest.fixture
def playback():
    playback = MagicMock(spec=PlaybackControl)
    playback.seek_interval_ms = 15000
    return playback


@pytest.fixture
def app_state(episode):
    state = InMemoryApplicationState()
    state.add_episode(episode)
    state.set_playback(episode_id="ep1", position=90000, duration=600000, is_playing=True)
    return state


@pytest.fixture
def history():
    return CommandHistory()


@pytest.fixture
def executor(playback, app_state, history):
    return CommandExecutor(playback, app_state, history=history)


@pytest.fixture
def sample_srt():
    return SAMPLE_SRT
