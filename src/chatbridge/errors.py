"""Application-level exception types for chatbridge."""

from __future__ import annotations


class ChatBridgeError(Exception):
    """Base exception for chatbridge."""


class ConfigurationError(ChatBridgeError):
    """Raised when settings fail validation."""


class SessionNotBoundError(ChatBridgeError):
    """Raised internally when an operation needs a session and none is bound."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"No session bound for operation '{operation}'")
        self.operation = operation


class ChannelPayloadError(ChatBridgeError):
    """Raised when a wire payload cannot be decoded into a reply."""


class LogOrderError(ChatBridgeError):
    """Raised when an entry would break the timestamp order of the message log."""

    def __init__(self, timestamp: float, last_timestamp: float) -> None:
        super().__init__(f"Entry timestamp {timestamp} precedes last log timestamp {last_timestamp}")
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp


class ActionAlreadyPendingError(ChatBridgeError):
    """Raised when the engine requests approval while another action is pending."""

    def __init__(self, action_id: str) -> None:
        super().__init__(f"Gated action '{action_id}' is already awaiting approval")
        self.action_id = action_id
