"""chatbridge - drive a chat UI you cannot reach directly."""

from chatbridge.api import ChatBridgeApi, create_chat_api
from chatbridge.config import BridgeSettings, get_settings
from chatbridge.pipeline import Subscription
from chatbridge.session import Direction, EntryKind, InMemorySession, LogEntry, Session

__version__ = "0.1.0"

__all__ = [
    "BridgeSettings",
    "ChatBridgeApi",
    "Direction",
    "EntryKind",
    "InMemorySession",
    "LogEntry",
    "Session",
    "Subscription",
    "create_chat_api",
    "get_settings",
]
