"""Session state: message log and gated actions."""

from chatbridge.session.log import MessageLog
from chatbridge.session.models import Direction, EntryKind, LogChange, LogEntry, PendingAction
from chatbridge.session.session import InMemorySession, Session

__all__ = [
    "Direction",
    "EntryKind",
    "InMemorySession",
    "LogChange",
    "LogEntry",
    "MessageLog",
    "PendingAction",
    "Session",
]
