"""Pattern-based voice intent parser.

Rules are evaluated in order and the first match wins, so more specific
phrasings must come before more general ones. Confidence is a fixed value
per rule; anything above zero means "recognized".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from podcast_voice_mcp.models import IntentType, VoiceIntent

_SPEED = re.compile(r"(?:set )?speed (?:to )?(\d+\.?\d*)")
_TOPIC = re.compile(r"(?:explain|what is|what's|tell me about) (.+)")
_JUMP = re.compile(r"jump to (\d+):(\d+)")


@dataclass(frozen=True)
class IntentRule:
    intent: IntentType
    confidence: float
    matches: Callable[[str], bool]
    build: Callable[[str], dict[str, Any]] | None = None


def _prefix(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda text: compiled.match(text) is not None


def _contains(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda text: compiled.search(text) is not None


def _all_of(*patterns: str) -> Callable[[str], bool]:
    checks = [_contains(p) for p in patterns]
    return lambda text: all(check(text) for check in checks)


def _speed_params(text: str) -> dict[str, Any]:
    return {"rate": float(_SPEED.search(text).group(1))}


def _topic_params(text: str) -> dict[str, Any]:
    match = _TOPIC.search(text)
    return {"topic": match.group(1).strip() if match else ""}


def _jump_params(text: str) -> dict[str, Any]:
    match = _JUMP.search(text)
    minutes, seconds = int(match.group(1)), int(match.group(2))
    return {"timestampMs": (minutes * 60 + seconds) * 1000}


RULES: list[IntentRule] = [
    IntentRule(IntentType.PAUSE, 0.9, _prefix(r"pause|stop")),
    IntentRule(IntentType.RESUME, 0.9, _prefix(r"play|resume|continue")),
    IntentRule(IntentType.SEEK_BACKWARD, 0.85, _all_of(r"back|rewind|backward", r"15|fifteen")),
    IntentRule(IntentType.SEEK_FORWARD, 0.85, _all_of(r"forward|ahead", r"15|fifteen")),
    IntentRule(IntentType.SET_SPEED, 0.9, _contains(_SPEED.pattern), _speed_params),
    IntentRule(IntentType.NEXT_CHAPTER, 0.85, _contains(r"next chapter")),
    IntentRule(IntentType.PREVIOUS_CHAPTER, 0.85, _contains(r"previous chapter|last chapter")),
    IntentRule(
        IntentType.BOOKMARK, 0.9, _contains(r"bookmark this|save (?:this )?(?:spot|position)")
    ),
    IntentRule(IntentType.SHOW_BOOKMARKS, 0.9, _contains(r"show bookmarks|list bookmarks")),
    IntentRule(
        IntentType.REWIND_AND_PLAY,
        0.85,
        _contains(r"what (?:did|was) (?:they|he|she) (?:just )?say"),
    ),
    IntentRule(
        IntentType.SUMMARIZE, 0.8, _all_of(r"summarize|summary", r"last (?:minute|few minutes)")
    ),
    IntentRule(
        IntentType.EXPLAIN, 0.75, _contains(r"explain|what is|what's|tell me about"), _topic_params
    ),
    IntentRule(IntentType.JUMP_TO, 0.9, _contains(_JUMP.pattern), _jump_params),
]


def parse_intent(utterance: str) -> VoiceIntent:
    """Map a transcribed utterance to a typed intent. Pure and deterministic."""
    text = utterance.lower().strip()
    for rule in RULES:
        if rule.matches(text):
            return VoiceIntent(
                type=rule.intent,
                utterance=utterance,
                confidence=rule.confidence,
                parameters=rule.build(text) if rule.build else None,
            )
    return VoiceIntent(type=IntentType.UNKNOWN, utterance=utterance, confidence=0.0)
