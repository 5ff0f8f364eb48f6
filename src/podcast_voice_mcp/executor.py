"""Executes parsed voice intents against playback and application state."""

import asyncio
import logging
from typing import Awaitable, Callable

from podcast_voice_mcp.capabilities import ApplicationState, PlaybackControl
from podcast_voice_mcp.history import CommandHistory
from podcast_voice_mcp.intents import parse_intent
from podcast_voice_mcp.models import (
    CommandResult,
    IntentType,
    PlaybackState,
    VoiceCommand,
    VoiceIntent,
)
from podcast_voice_mcp.utils import format_timestamp

logger = logging.getLogger(__name__)

ProgressSink = Callable[[PlaybackState], Awaitable[None]]

NO_EPISODE = "No episode playing"


def _format_rate(rate: float) -> str:
    """Integral rates without a trailing ``.0``, others as given."""
    return str(int(rate)) if float(rate).is_integer() else repr(rate)


class CommandExecutor:
    """Turns one intent into one state change plus at most one playback call.

    Every execution is recorded in the command history exactly once. Missing
    preconditions are reported as ``success=False`` results; errors raised by
    the playback capability are recorded and then re-raised.
    """

    def __init__(
        self,
        playback: PlaybackControl,
        state: ApplicationState,
        history: CommandHistory | None = None,
        progress_sink: ProgressSink | None = None,
    ):
        self._playback = playback
        self._state = state
        self.history = history if history is not None else CommandHistory()
        self._progress_sink = progress_sink
        self._pending: set[asyncio.Task] = set()
        self._handlers = {
            IntentType.PAUSE: self._pause,
            IntentType.RESUME: self._resume,
            IntentType.SEEK_BACKWARD: self._seek_backward,
            IntentType.SEEK_FORWARD: self._seek_forward,
            IntentType.SET_SPEED: self._set_speed,
            IntentType.NEXT_CHAPTER: self._next_chapter,
            IntentType.PREVIOUS_CHAPTER: self._previous_chapter,
            IntentType.BOOKMARK: self._bookmark,
            IntentType.SHOW_BOOKMARKS: self._show_bookmarks,
            IntentType.REWIND_AND_PLAY: self._rewind_and_play,
            IntentType.SUMMARIZE: self._summarize,
            IntentType.EXPLAIN: self._answer_question,
            IntentType.QUESTION: self._answer_question,
            IntentType.JUMP_TO: self._jump_to,
        }

    async def execute_intent(self, intent: VoiceIntent) -> CommandResult:
        command = VoiceCommand(intent=intent)
        handler = self._handlers.get(intent.type, self._unknown)
        try:
            result = await handler(intent)
        except BaseException as e:
            # cancellation from a caller timeout is recorded too
            command.error = str(e) or type(e).__name__
            self.history.append(command)
            logger.warning("Voice command %s failed: %s", intent.type.value, command.error)
            raise

        command.executed = True
        command.result = result
        self.history.append(command)
        self._schedule_sync()
        return result

    async def handle_utterance(self, utterance: str) -> CommandResult:
        return await self.execute_intent(parse_intent(utterance))

    async def drain(self) -> None:
        """Wait for scheduled progress syncs to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # -- background sync --

    def _schedule_sync(self) -> None:
        if self._progress_sink is None:
            return
        task = asyncio.get_running_loop().create_task(self._sync(self._state.get_playback()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _sync(self, snapshot: PlaybackState) -> None:
        try:
            await self._progress_sink(snapshot)
        except Exception as e:
            logger.warning("Progress sync failed for %s: %s", snapshot.episode_id, e)

    # -- handlers --

    async def _pause(self, intent: VoiceIntent) -> CommandResult:
        await self._playback.pause()
        self._state.set_playing(False)
        return CommandResult(success=True, message="Paused")

    async def _resume(self, intent: VoiceIntent) -> CommandResult:
        await self._playback.play()
        self._state.set_playing(True)
        return CommandResult(success=True, message="Playing")

    async def _seek_backward(self, intent: VoiceIntent) -> CommandResult:
        await self._playback.jump_backward()
        seconds = self._playback.seek_interval_ms // 1000
        return CommandResult(success=True, message=f"Rewound {seconds} seconds")

    async def _seek_forward(self, intent: VoiceIntent) -> CommandResult:
        await self._playback.jump_forward()
        seconds = self._playback.seek_interval_ms // 1000
        return CommandResult(success=True, message=f"Forwarded {seconds} seconds")

    async def _set_speed(self, intent: VoiceIntent) -> CommandResult:
        rate = (intent.parameters or {}).get("rate") or 1.0
        await self._playback.set_rate(rate)
        self._state.set_rate(rate)
        return CommandResult(success=True, message=f"Speed set to {_format_rate(rate)}x")

    async def _next_chapter(self, intent: VoiceIntent) -> CommandResult:
        return await self._navigate_chapter(forward=True)

    async def _previous_chapter(self, intent: VoiceIntent) -> CommandResult:
        return await self._navigate_chapter(forward=False)

    async def _navigate_chapter(self, forward: bool) -> CommandResult:
        playback = self._state.get_playback()
        episode = self._state.get_episode(playback.episode_id or "")
        if episode is None or not episode.chapters:
            return CommandResult(success=False, message="No chapters available")

        # chapters are assumed to be sorted by start time
        position = playback.position
        if forward:
            target = next((ch for ch in episode.chapters if ch.start_time > position), None)
            if target is None:
                return CommandResult(success=False, message="No next chapter")
            await self._playback.seek_to(target.start_time)
            return CommandResult(success=True, message=f"Skipped to: {target.title}")

        earlier = [ch for ch in episode.chapters if ch.start_time < position]
        if not earlier:
            return CommandResult(success=False, message="No previous chapter")
        target = earlier[-1]
        await self._playback.seek_to(target.start_time)
        return CommandResult(success=True, message=f"Returned to: {target.title}")

    async def _bookmark(self, intent: VoiceIntent) -> CommandResult:
        playback = self._state.get_playback()
        if not playback.episode_id:
            return CommandResult(success=False, message=NO_EPISODE)
        self._state.add_bookmark(playback.episode_id, playback.position)
        return CommandResult(success=True, message="Bookmark created")

    async def _show_bookmarks(self, intent: VoiceIntent) -> CommandResult:
        playback = self._state.get_playback()
        if not playback.episode_id:
            return CommandResult(success=False, message=NO_EPISODE)
        return CommandResult(
            success=True, bookmarks=self._state.bookmarks_for(playback.episode_id)
        )

    async def _rewind_and_play(self, intent: VoiceIntent) -> CommandResult:
        await self._playback.seek_by(-self._playback.seek_interval_ms)
        await self._playback.play()
        return CommandResult(success=True, message="Rewinding and playing")

    async def _summarize(self, intent: VoiceIntent) -> CommandResult:
        playback = self._state.get_playback()
        return CommandResult(
            success=True,
            needs_server_processing=True,
            context={
                "episodeId": playback.episode_id,
                "playheadMs": playback.position,
                "request": "summarize_last_minute",
            },
        )

    async def _answer_question(self, intent: VoiceIntent) -> CommandResult:
        playback = self._state.get_playback()
        query = (intent.parameters or {}).get("topic") or intent.utterance
        return CommandResult(
            success=True,
            needs_server_processing=True,
            context={
                "episodeId": playback.episode_id,
                "playheadMs": playback.position,
                "query": query,
            },
        )

    async def _jump_to(self, intent: VoiceIntent) -> CommandResult:
        timestamp_ms = (intent.parameters or {}).get("timestampMs") or 0
        await self._playback.seek_to(timestamp_ms)
        return CommandResult(success=True, message=f"Jumped to {format_timestamp(timestamp_ms)}")

    async def _unknown(self, intent: VoiceIntent) -> CommandResult:
        return CommandResult(
            success=False, message="Unknown command", needs_server_processing=True
        )
