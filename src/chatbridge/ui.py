"""In-process stand-in for the chat UI on the far side of the channel."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from chatbridge.channels.bus import MessageChannel
from chatbridge.channels.events import (
    Command,
    GetInputCommand,
    InputValueReply,
    SetInputCommand,
    SubmitCommand,
)

SubmitHandler = Callable[[str, tuple[str, ...]], None]


class SimulatedChatUI:
    """Keeps an input field and answers bridge commands like a chat view would."""

    def __init__(
        self,
        channel: MessageChannel,
        *,
        respond: bool = True,
        echo_request_id: bool = True,
        on_submit: SubmitHandler | None = None,
    ) -> None:
        self.channel = channel
        self.respond = respond
        self.echo_request_id = echo_request_id
        self.on_submit = on_submit
        self.input_text = ""
        self.received: list[dict[str, Any]] = []
        self.submitted: list[str] = []
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.channel.on_command(self.handle_command)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_command(self, command: Command) -> None:
        self.received.append(command.to_payload())
        match command:
            case SetInputCommand(value=value):
                self.input_text = value
            case GetInputCommand(request_id=request_id):
                if not self.respond:
                    return
                reply_id = request_id if self.echo_request_id else None
                # Replies leave the UI as raw wire messages.
                await self.channel.deliver_reply(InputValueReply(value=self.input_text, request_id=reply_id).to_payload())
            case SubmitCommand(text=text, images=images):
                message = text if text is not None else self.input_text
                self.input_text = ""
                self.submitted.append(message)
                if self.on_submit is not None:
                    try:
                        self.on_submit(message, images)
                    except Exception:
                        logger.opt(exception=True).warning("ui.submit_handler_failed chars={}", len(message))
            case _:
                logger.warning("ui.unknown_command type={}", getattr(command, "type", "?"))
