"""Request/response bridge over the one-way UI message channel."""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from loguru import logger

from chatbridge.channels.bus import MessageChannel
from chatbridge.channels.events import GetInputCommand, InputValueReply, SetInputCommand, SubmitCommand
from chatbridge.config import DEFAULT_READ_TIMEOUT_SECONDS


@dataclass(frozen=True)
class BridgeRequest:
    """One in-flight read waiting for a UI reply."""

    request_id: str
    issued_at: float
    future: asyncio.Future[str | None]


class InputBridge:
    """Turn channel traffic into awaitable reads and fire-and-forget writes.

    Every read carries its own correlation token, so overlapping reads are
    resolved independently. Replies without a token go to the oldest
    outstanding read.
    """

    def __init__(self, channel: MessageChannel, *, timeout_seconds: float = DEFAULT_READ_TIMEOUT_SECONDS) -> None:
        self.channel = channel
        self.timeout_seconds = timeout_seconds
        self._requests: dict[str, BridgeRequest] = {}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    @property
    def pending_requests(self) -> int:
        return len(self._requests)

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.channel.on_reply(self._handle_reply)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for request in list(self._requests.values()):
            self._settle(request, None)
        self._requests.clear()

    async def read_current_input(self) -> str | None:
        """Ask the UI for its input text; ``None`` if it does not answer in time."""

        loop = asyncio.get_running_loop()
        request = BridgeRequest(request_id=uuid.uuid4().hex, issued_at=time.monotonic(), future=loop.create_future())
        # Registered before posting: a UI may answer while the command is still being delivered.
        self._requests[request.request_id] = request
        try:
            if not self.channel.has_listeners:
                logger.debug("bridge.read_no_ui request={}", request.request_id)
            await self.channel.post_command(GetInputCommand(request_id=request.request_id))
            try:
                return await asyncio.wait_for(request.future, timeout=self.timeout_seconds)
            except TimeoutError:
                logger.warning(
                    "bridge.read_timeout request={} timeout={}s",
                    request.request_id,
                    self.timeout_seconds,
                )
                return None
        finally:
            self._requests.pop(request.request_id, None)
            if not request.future.done():
                request.future.cancel()

    async def set_current_input(self, text: str) -> None:
        await self.channel.post_command(SetInputCommand(value=text))

    async def submit(self, text: str | None = None, images: Sequence[str] = ()) -> None:
        if text is not None:
            await self.set_current_input(text)
        await self.channel.post_command(SubmitCommand(text=text, images=tuple(images)))

    async def _handle_reply(self, reply: InputValueReply) -> None:
        request = self._match(reply)
        if request is None:
            logger.warning("bridge.reply_unmatched request={}", reply.request_id)
            return
        self._requests.pop(request.request_id, None)
        logger.debug(
            "bridge.reply request={} elapsed={:.3f}s",
            request.request_id,
            time.monotonic() - request.issued_at,
        )
        self._settle(request, reply.value)

    def _match(self, reply: InputValueReply) -> BridgeRequest | None:
        if reply.request_id is not None:
            return self._requests.get(reply.request_id)
        return next((request for request in self._requests.values() if not request.future.done()), None)

    @staticmethod
    def _settle(request: BridgeRequest, value: str | None) -> None:
        if not request.future.done():
            request.future.set_result(value)
