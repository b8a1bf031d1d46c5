"""Session contract consumed by the bridge, plus an in-memory implementation."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from loguru import logger

from chatbridge.channels.bus import MessageChannel
from chatbridge.errors import ActionAlreadyPendingError
from chatbridge.session.log import MessageLog
from chatbridge.session.models import Direction, EntryKind, LogChange, LogEntry, PendingAction

ApprovalHandler = Callable[[PendingAction], None]


@runtime_checkable
class Session(Protocol):
    """What the facade needs from the conversation engine."""

    @property
    def name(self) -> str: ...

    @property
    def log(self) -> MessageLog: ...

    @property
    def channel(self) -> MessageChannel: ...

    def has_pending_action(self) -> bool: ...

    def approve_pending_action(self) -> None: ...


class InMemorySession:
    """Single-process session holding a message log and one gated action slot."""

    def __init__(
        self,
        name: str = "default",
        *,
        channel: MessageChannel | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._name = name
        self._log = MessageLog()
        self._channel = channel or MessageChannel(name)
        self._clock = clock
        self._pending: PendingAction | None = None
        self._approval_handlers: list[ApprovalHandler] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def log(self) -> MessageLog:
        return self._log

    @property
    def channel(self) -> MessageChannel:
        return self._channel

    @property
    def pending_action(self) -> PendingAction | None:
        return self._pending

    def say(self, text: str | None, *, kind: EntryKind = EntryKind.TEXT, partial: bool = False) -> LogEntry:
        """Append engine output."""
        return self._append(Direction.FROM_ENGINE, kind, text, partial=partial)

    def ask(self, text: str | None, *, kind: EntryKind = EntryKind.FOLLOWUP) -> LogEntry:
        """Append a question directed at the user."""
        return self._append(Direction.TO_ENGINE, kind, text)

    def update(self, entry: LogEntry, text: str | None, *, partial: bool = False) -> LogChange:
        """Supersede ``entry`` with new content, keeping its timestamp."""
        replacement = LogEntry(
            timestamp=entry.timestamp,
            direction=entry.direction,
            kind=entry.kind,
            text=text,
            partial=partial,
            images=entry.images,
        )
        return self._log.append(replacement)

    def request_approval(self, description: str) -> PendingAction:
        if self._pending is not None:
            raise ActionAlreadyPendingError(self._pending.action_id)
        self._pending = PendingAction(
            action_id=uuid.uuid4().hex,
            description=description,
            requested_at=self._clock(),
        )
        self.ask(description, kind=EntryKind.COMMAND)
        logger.info("session.approval_requested session={} action={}", self._name, self._pending.action_id)
        return self._pending

    def has_pending_action(self) -> bool:
        return self._pending is not None

    def approve_pending_action(self) -> None:
        if self._pending is None:
            return
        action, self._pending = self._pending, None
        logger.info("session.approved session={} action={}", self._name, action.action_id)
        for handler in list(self._approval_handlers):
            try:
                handler(action)
            except Exception:
                logger.opt(exception=True).warning(
                    "session.approval_listener_failed session={} action={}",
                    self._name,
                    action.action_id,
                )

    def on_approved(self, handler: ApprovalHandler) -> Callable[[], None]:
        self._approval_handlers.append(handler)
        return lambda: self._approval_handlers.remove(handler)

    def _append(self, direction: Direction, kind: EntryKind, text: str | None, *, partial: bool = False) -> LogEntry:
        timestamp = self._next_timestamp()
        entry = LogEntry(timestamp=timestamp, direction=direction, kind=kind, text=text, partial=partial)
        self._log.append(entry)
        return entry

    def _next_timestamp(self) -> float:
        now = self._clock()
        last = self._log.last
        if last is not None and now <= last.timestamp:
            # Two appends inside one clock tick must still get distinct slots.
            now = last.timestamp + 1e-6
        return now
