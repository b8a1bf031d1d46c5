"""Channel command and reply models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from chatbridge.errors import ChannelPayloadError

SET_INPUT = "setUserInput"
GET_INPUT = "getUserInput"
INVOKE = "invoke"
SEND_MESSAGE = "sendMessage"
INPUT_RESPONSE = "userInputResponse"


@dataclass(frozen=True)
class SetInputCommand:
    """Replace the text of the UI input field."""

    type: ClassVar[str] = SET_INPUT

    value: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class GetInputCommand:
    """Ask the UI to reply with the current input field text."""

    type: ClassVar[str] = GET_INPUT

    request_id: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "requestId": self.request_id}


@dataclass(frozen=True)
class SubmitCommand:
    """Submit a message from the UI.

    ``text=None`` means "submit whatever the input field holds".
    """

    type: ClassVar[str] = INVOKE

    text: str | None = None
    images: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "invoke": SEND_MESSAGE, "text": self.text, "images": list(self.images)}


type Command = SetInputCommand | GetInputCommand | SubmitCommand


@dataclass(frozen=True)
class InputValueReply:
    """UI answer to a GetInputCommand."""

    type: ClassVar[str] = INPUT_RESPONSE

    value: str
    request_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "value": self.value, "requestId": self.request_id}


def parse_reply(payload: Mapping[str, Any]) -> InputValueReply:
    """Decode a reply payload coming back from the UI."""

    if not isinstance(payload, Mapping):
        raise ChannelPayloadError(f"reply payload must be a mapping, got {type(payload).__name__}")
    kind = payload.get("type")
    if kind != INPUT_RESPONSE:
        raise ChannelPayloadError(f"unsupported reply type: {kind!r}")
    value = payload.get("value")
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ChannelPayloadError(f"reply value must be a string, got {type(value).__name__}")
    request_id = payload.get("requestId")
    if request_id is not None and not isinstance(request_id, str):
        raise ChannelPayloadError("reply requestId must be a string")
    return InputValueReply(value=value, request_id=request_id)
