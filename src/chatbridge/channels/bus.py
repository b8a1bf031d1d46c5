"""Signal-based message channel between the bridge and the UI."""

from __future__ import annotations

from collections.abc import Callable, Coroutine, Mapping
from typing import Any

from blinker import Signal

from chatbridge.channels.events import Command, InputValueReply, parse_reply

CommandHandler = Callable[[Command], Coroutine[Any, Any, None]]
ReplyHandler = Callable[[InputValueReply], Coroutine[Any, Any, None]]


class MessageChannel:
    """In-process, order-preserving channel backed by blinker signals.

    Commands travel bridge -> UI, replies travel UI -> bridge. The channel
    itself knows nothing about which reply answers which command.
    """

    def __init__(self, name: str = "chatbridge") -> None:
        self.name = name
        self._commands = Signal(f"{name}.commands")
        self._replies = Signal(f"{name}.replies")

    async def post_command(self, command: Command) -> None:
        await self._commands.send_async(self, message=command)

    async def post_reply(self, reply: InputValueReply) -> None:
        await self._replies.send_async(self, message=reply)

    async def deliver_reply(self, payload: Mapping[str, Any]) -> InputValueReply:
        """Decode a raw UI message and post it as a reply.

        Raises:
            ChannelPayloadError: if the payload is not a valid reply
        """
        reply = parse_reply(payload)
        await self.post_reply(reply)
        return reply

    def on_command(self, handler: CommandHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, message: Command) -> None:
            await handler(message)

        self._commands.connect(_receiver, weak=False)
        return lambda: self._commands.disconnect(_receiver)

    def on_reply(self, handler: ReplyHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, message: InputValueReply) -> None:
            await handler(message)

        self._replies.connect(_receiver, weak=False)
        return lambda: self._replies.disconnect(_receiver)

    @property
    def has_listeners(self) -> bool:
        return bool(self._commands.receivers)

    @property
    def has_reply_listeners(self) -> bool:
        return bool(self._replies.receivers)
