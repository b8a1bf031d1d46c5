"""Session log models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Direction(StrEnum):
    """Who a log entry is addressed to."""

    FROM_ENGINE = "say"
    TO_ENGINE = "ask"


class EntryKind(StrEnum):
    TEXT = "text"
    ERROR = "error"
    TOOL = "tool"
    COMPLETION_RESULT = "completion_result"
    FOLLOWUP = "followup"
    COMMAND = "command"
    API_REQ_STARTED = "api_req_started"


@dataclass(frozen=True)
class LogEntry:
    """One record of the append-only session message log.

    ``timestamp`` is the identity of the entry inside its log: a later entry
    with the same timestamp supersedes the earlier one.
    """

    timestamp: float
    direction: Direction
    kind: EntryKind = EntryKind.TEXT
    text: str | None = None
    partial: bool = False
    images: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LogChange:
    """Notification that one log slot was appended or replaced."""

    entry: LogEntry
    replaced: bool = False


@dataclass(frozen=True)
class PendingAction:
    """Engine operation waiting for external approval."""

    action_id: str
    description: str
    requested_at: float
