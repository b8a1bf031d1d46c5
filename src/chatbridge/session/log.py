"""Append-only session message log."""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterator
from typing import Any

from blinker import Signal
from loguru import logger

from chatbridge.errors import LogOrderError
from chatbridge.session.models import LogChange, LogEntry

ChangeHandler = Callable[[LogChange], None]


class MessageLog:
    """Timestamp-ordered log with in-place replacement for partial updates."""

    def __init__(self, entries: list[LogEntry] | None = None) -> None:
        self._entries: list[LogEntry] = []
        self._timestamps: list[float] = []
        self._changed = Signal("chatbridge.log.changed")
        for entry in entries or []:
            self._store(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    @property
    def last(self) -> LogEntry | None:
        return self._entries[-1] if self._entries else None

    def append(self, entry: LogEntry) -> LogChange:
        """Append ``entry``, or replace the entry that shares its timestamp."""

        change = self._store(entry)
        logger.debug(
            "log.{} ts={} direction={} kind={}",
            "replace" if change.replaced else "append",
            entry.timestamp,
            entry.direction.value,
            entry.kind.value,
        )
        self._changed.send(self, change=change)
        return change

    def on_change(self, handler: ChangeHandler) -> Callable[[], None]:
        def _receiver(sender: Any, *, change: LogChange) -> None:
            handler(change)

        self._changed.connect(_receiver, weak=False)
        return lambda: self._changed.disconnect(_receiver)

    def _store(self, entry: LogEntry) -> LogChange:
        index = bisect.bisect_left(self._timestamps, entry.timestamp)
        if index < len(self._timestamps) and self._timestamps[index] == entry.timestamp:
            self._entries[index] = entry
            return LogChange(entry=entry, replaced=True)
        if index != len(self._timestamps):
            raise LogOrderError(entry.timestamp, self._timestamps[-1])
        self._entries.append(entry)
        self._timestamps.append(entry.timestamp)
        return LogChange(entry=entry)
