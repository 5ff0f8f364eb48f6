"""Tests for the in-memory application state and command history."""

from itertools import count

from podcast_voice_mcp.history import CommandHistory
from podcast_voice_mcp.models import IntentType, VoiceCommand, VoiceIntent
from podcast_voice_mcp.state import InMemoryApplicationState


class TestPlayback:
    def test_partial_update(self):
        state = InMemoryApplicationState()
        state.set_playback(episode_id="ep1", is_playing=True, duration=360000)
        playback = state.get_playback()
        assert playback.episode_id == "ep1"
        assert playback.is_playing is True
        assert playback.rate == 1.0

    def test_snapshot_is_a_copy(self):
        state = InMemoryApplicationState()
        snapshot = state.get_playback()
        state.set_rate(2.0)
        assert snapshot.rate == 1.0

    def test_seek_by(self):
        state = InMemoryApplicationState()
        state.set_playback(position=60000, duration=360000)
        state.seek_by(15000)
        assert state.get_playback().position == 75000

    def test_seek_clamped(self):
        state = InMemoryApplicationState()
        state.set_playback(position=350000, duration=360000)
        state.seek_by(20000)
        assert state.get_playback().position == 360000
        state.set_position(5000)
        state.seek_by(-10000)
        assert state.get_playback().position == 0

    def test_reset(self):
        state = InMemoryApplicationState()
        state.set_playback(episode_id="ep1", position=10)
        state.reset()
        assert state.get_playback().episode_id is None


class TestBookmarks:
    def test_add_bookmark(self):
        state = InMemoryApplicationState(clock=lambda: 1700)
        bookmark = state.add_bookmark("ep1", 120000, note="Interesting point")
        assert bookmark.id == "ep1_1700"
        bookmarks = state.bookmarks_for("ep1")
        assert len(bookmarks) == 1
        assert bookmarks[0].note == "Interesting point"

    def test_sorted_by_timestamp(self):
        ticks = count(1)
        state = InMemoryApplicationState(clock=lambda: next(ticks))
        state.add_bookmark("ep1", 90000)
        state.add_bookmark("ep1", 30000)
        state.add_bookmark("ep2", 10000)
        assert [b.timestamp for b in state.bookmarks_for("ep1")] == [30000, 90000]
        assert [b.created_at for b in state.all_bookmarks()] == [3, 2, 1]

    def test_same_millisecond_last_write_wins(self):
        state = InMemoryApplicationState(clock=lambda: 42)
        state.add_bookmark("ep1", 1000)
        state.add_bookmark("ep1", 2000)
        bookmarks = state.bookmarks_for("ep1")
        assert len(bookmarks) == 1
        assert bookmarks[0].timestamp == 2000

    def test_remove_bookmark(self):
        state = InMemoryApplicationState()
        bookmark = state.add_bookmark("ep1", 120000)
        state.remove_bookmark(bookmark.id)
        assert state.bookmarks_for("ep1") == []


class TestCommandHistory:
    def _command(self, error=None):
        intent = VoiceIntent(type=IntentType.PAUSE, utterance="pause", confidence=0.9)
        return VoiceCommand(intent=intent, executed=error is None, error=error)

    def test_append_and_entries(self):
        history = CommandHistory()
        history.append(self._command())
        history.append(self._command(error="boom"))
        assert len(history) == 2
        assert [c.error for c in history.failures()] == ["boom"]
        assert history.last().error == "boom"

    def test_entries_is_a_copy(self):
        history = CommandHistory()
        history.entries().append(self._command())
        assert len(history) == 0

    def test_clear(self):
        history = CommandHistory()
        history.append(self._command())
        history.reset()
        assert len(history) == 0
        assert history.last() is None
