"""Append-only record of voice command executions."""

from typing import Iterator

from podcast_voice_mcp.models import VoiceCommand


class CommandHistory:
    def __init__(self):
        self._entries: list[VoiceCommand] = []

    def append(self, command: VoiceCommand) -> None:
        self._entries.append(command)

    def entries(self) -> list[VoiceCommand]:
        return list(self._entries)

    def failures(self) -> list[VoiceCommand]:
        return [c for c in self._entries if c.error is not None]

    def last(self) -> VoiceCommand | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries = []

    reset = clear

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VoiceCommand]:
        return iter(list(self._entries))
