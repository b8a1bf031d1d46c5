"""Message channel and wire models."""

from chatbridge.channels.bus import MessageChannel
from chatbridge.channels.events import (
    Command,
    GetInputCommand,
    InputValueReply,
    SetInputCommand,
    SubmitCommand,
    parse_reply,
)

__all__ = [
    "Command",
    "GetInputCommand",
    "InputValueReply",
    "MessageChannel",
    "SetInputCommand",
    "SubmitCommand",
    "parse_reply",
]
