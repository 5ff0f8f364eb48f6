"""Voice assistant session lifecycle.

A ``VoiceSession`` owns at most one transport connection. Lifecycle calls
(``connect``, ``start_listening``, ``stop_listening``, ``disconnect``) must
be awaited one at a time; transport events are delivered on the event loop
through ``handle_event``.

    DISCONNECTED -> CONNECTING -> CONNECTED <-> LISTENING
    CONNECTED/LISTENING -> DISCONNECTING -> DISCONNECTED
"""

import asyncio
import logging
from enum import Enum
from typing import Callable

from podcast_voice_mcp.capabilities import (
    ApplicationState,
    PlaybackControl,
    TokenIssuer,
    TransportSession,
)
from podcast_voice_mcp.config import Settings
from podcast_voice_mcp.errors import NotConnectedError, ResponseTimeoutError
from podcast_voice_mcp.executor import CommandExecutor, ProgressSink
from podcast_voice_mcp.models import (
    CommandResult,
    TransportEvent,
    TransportEventKind,
    VoiceContext,
)
from podcast_voice_mcp.tokens import HttpTokenIssuer

logger = logging.getLogger(__name__)

DEFAULT_ROOM = "podcast-voice-room"
AGENT_MARKER = "agent"


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LISTENING = "listening"
    DISCONNECTING = "disconnecting"


class VoiceSession:
    def __init__(
        self,
        token_issuer: TokenIssuer,
        transport: TransportSession,
        url: str,
        executor: CommandExecutor | None = None,
        response_timeout_ms: int = 3000,
        owns_token_issuer: bool = False,
    ):
        self._token_issuer = token_issuer
        self._owns_token_issuer = owns_token_issuer
        self._transport = transport
        self._url = url
        self._executor = executor
        self._response_timeout_ms = response_timeout_ms

        self._state = SessionState.DISCONNECTED
        self._has_handle = False
        self._on_response: Callable[[str], None] | None = None
        self._on_agent_speaking: Callable[[bool], None] | None = None
        self._on_disconnect: Callable[[], None] | None = None
        self._waiter: asyncio.Future | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closing: asyncio.Task | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in (SessionState.CONNECTED, SessionState.LISTENING)

    @property
    def is_listening(self) -> bool:
        return self._state == SessionState.LISTENING

    # -- callbacks (one subscriber each, later registration wins) --

    def on_response(self, callback: Callable[[str], None]) -> None:
        self._on_response = callback

    def on_agent_speaking(self, callback: Callable[[bool], None]) -> None:
        self._on_agent_speaking = callback

    def on_disconnect(self, callback: Callable[[], None]) -> None:
        self._on_disconnect = callback

    # -- lifecycle --

    async def connect(
        self,
        room_name: str = DEFAULT_ROOM,
        participant_name: str = "user",
        context: VoiceContext | None = None,
    ) -> None:
        if self.is_active:
            logger.info("Already connected to %s, reusing session", room_name)
            return

        # a remote disconnect may still be closing the previous room
        await self._wait_closed()

        if self._has_handle:
            logger.info("Cleaning up stale voice session")
            try:
                await self._transport.disconnect()
            except Exception as e:
                logger.warning("Error closing stale voice session: %s", e)
            self._has_handle = False

        self._state = SessionState.CONNECTING
        logger.info("Connecting to voice room %s", room_name)
        try:
            token = await self._token_issuer.issue_token(room_name, participant_name, context)
            self._transport.set_event_handler(self.handle_event)
            self._has_handle = True
            await self._transport.connect(self._url, token)
        except Exception as e:
            logger.error("Failed to connect to voice room %s: %s", room_name, e)
            self._state = SessionState.DISCONNECTED
            raise

        self._state = SessionState.CONNECTED
        logger.info("Connected to voice room %s", room_name)

    async def start_listening(self) -> None:
        if self._state == SessionState.LISTENING:
            return
        if self._state != SessionState.CONNECTED:
            raise NotConnectedError(f"Cannot start listening while {self._state.value}")

        try:
            await self._transport.start_audio_session()
        except Exception as e:
            logger.warning("Failed to start audio session: %s", e)

        await self._transport.enable_local_audio(True)
        self._state = SessionState.LISTENING
        logger.info("Microphone enabled")

    async def stop_listening(self) -> None:
        if self._state != SessionState.LISTENING:
            return
        await self._transport.enable_local_audio(False)
        self._state = SessionState.CONNECTED
        logger.info("Stopped listening")

    async def disconnect(self) -> None:
        """Tear everything down. Never raises."""
        await self._wait_closed()
        was_listening = self._state == SessionState.LISTENING
        had_handle = self._has_handle
        self._state = SessionState.DISCONNECTING
        await self._close_transport(was_listening, had_handle)
        self._reset()

    async def close(self) -> None:
        """Disconnect, then release the token issuer if this session owns it."""
        await self.disconnect()
        if self._owns_token_issuer:
            await self._token_issuer.close()

    async def _wait_closed(self) -> None:
        closing, self._closing = self._closing, None
        if closing is not None:
            await closing

    async def _close_transport(self, was_listening: bool, had_handle: bool) -> None:
        if was_listening:
            try:
                await self._transport.enable_local_audio(False)
            except Exception as e:
                logger.warning("Failed to disable microphone: %s", e)

        try:
            await self._transport.stop_audio_session()
        except Exception as e:
            logger.warning("Failed to stop audio session: %s", e)

        if had_handle:
            try:
                await self._transport.disconnect()
            except Exception as e:
                logger.warning("Error closing voice session: %s", e)
        logger.info("Voice session disconnected")

    def _reset(self) -> None:
        try:
            self._transport.set_event_handler(None)
        except Exception as e:
            logger.warning("Failed to unregister transport events: %s", e)
        self._state = SessionState.DISCONNECTED
        self._has_handle = False
        self._on_response = None
        self._on_agent_speaking = None
        self._on_disconnect = None
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_exception(NotConnectedError("Voice session disconnected"))
        self._waiter = None

    # -- responses --

    async def wait_for_response(self, timeout_ms: int | None = None) -> str:
        """Wait for the next response text, or raise ResponseTimeoutError."""
        if not self.is_active:
            raise NotConnectedError("Voice session is not connected")
        if timeout_ms is None:
            timeout_ms = self._response_timeout_ms

        self._waiter = asyncio.get_running_loop().create_future()
        try:
            return await asyncio.wait_for(self._waiter, timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise ResponseTimeoutError(f"No response within {timeout_ms}ms") from None
        finally:
            self._waiter = None

    def _notify(self, callback: Callable | None, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning("Voice session callback failed: %s", e)

    def _emit_response(self, text: str) -> None:
        self._notify(self._on_response, text)
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(text)

    def _emit_error(self, error: Exception) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_exception(error)

    async def process_utterance(self, text: str) -> CommandResult | None:
        """Route transcribed user speech through the executor, if one is attached."""
        logger.info("User said: %s", text)
        if self._executor is None:
            self._emit_response(text)
            return None
        try:
            result = await self._executor.handle_utterance(text)
        except Exception as e:
            self._emit_error(e)
            raise
        self._emit_response(result.message or text)
        return result

    # -- transport events --

    def handle_event(self, event: TransportEvent) -> None:
        kind = event.kind
        identity = event.participant_identity or ""
        is_agent_audio = event.track_kind == "audio" and AGENT_MARKER in identity

        if kind == TransportEventKind.TRANSCRIPTION and event.text:
            self._spawn(self._run_utterance(event.text))
        elif kind == TransportEventKind.AGENT_RESPONSE and event.text:
            logger.info("Agent said: %s", event.text)
            self._emit_response(event.text)
        elif kind == TransportEventKind.TRACK_SUBSCRIBED and is_agent_audio:
            self._notify(self._on_agent_speaking, True)
        elif kind == TransportEventKind.TRACK_UNSUBSCRIBED and is_agent_audio:
            self._notify(self._on_agent_speaking, False)
        elif kind == TransportEventKind.PARTICIPANT_CONNECTED:
            if AGENT_MARKER in identity:
                logger.info("Voice agent joined the room")
        elif kind == TransportEventKind.DISCONNECTED:
            self._handle_remote_disconnect()
        else:
            logger.debug("Transport event: %s", kind.value)

    def _handle_remote_disconnect(self) -> None:
        if self._state in (SessionState.DISCONNECTED, SessionState.DISCONNECTING):
            return
        logger.info("Voice room disconnected by remote")
        was_listening = self._state == SessionState.LISTENING
        had_handle = self._has_handle
        callback = self._on_disconnect
        # reset now so a reconnect from the callback starts from a clean state
        self._reset()
        self._closing = self._spawn(self._close_transport(was_listening, had_handle))
        self._notify(callback)

    async def _run_utterance(self, text: str) -> None:
        try:
            await self.process_utterance(text)
        except Exception as e:
            logger.warning("Voice command for %r failed: %s", text, e)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for event-driven work (utterances, remote teardown) to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


def voice_session_from_settings(
    transport: TransportSession,
    playback: PlaybackControl,
    state: ApplicationState,
    settings: Settings | None = None,
    progress_sink: ProgressSink | None = None,
) -> VoiceSession:
    """Wire a session, token issuer and executor from environment settings."""
    settings = settings or Settings()
    executor = CommandExecutor(playback, state, progress_sink=progress_sink)
    issuer = HttpTokenIssuer(settings.token_endpoint_url, api_key=settings.token_api_key)
    return VoiceSession(
        issuer,
        transport,
        settings.voice_url,
        executor=executor,
        response_timeout_ms=settings.qa_timeout_ms,
        owns_token_issuer=True,
    )
