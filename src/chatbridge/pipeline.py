"""Translate the raw session log into an assistant-output notification stream."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import TracebackType

from loguru import logger

from chatbridge.config import DEFAULT_OUTPUT_SEPARATOR
from chatbridge.session.log import MessageLog
from chatbridge.session.models import Direction, LogChange, LogEntry

NotificationCallback = Callable[[str], object]


@dataclass(frozen=True)
class Notification:
    text: str
    timestamp: float


def is_output_entry(entry: LogEntry) -> bool:
    """Engine output carrying non-empty text."""
    return entry.direction is Direction.FROM_ENGINE and bool(entry.text)


def render_output(entries: Iterable[LogEntry], separator: str = DEFAULT_OUTPUT_SEPARATOR) -> str | None:
    texts = [entry.text for entry in entries if is_output_entry(entry) and entry.text]
    if not texts:
        return None
    return separator.join(texts)


class Subscription:
    """Disposable handle for one notification subscriber."""

    def __init__(self, stream: NotificationStream, callback: NotificationCallback) -> None:
        self._stream = stream
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if not self._active:
            return
        self._active = False
        self._stream._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()


class NotificationStream:
    """Publish/subscribe channel for assistant output text."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: NotificationCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, notification: Notification) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.callback(notification.text)
            except Exception:
                logger.opt(exception=True).warning(
                    "notify.subscriber_failed ts={} callback={!r}",
                    notification.timestamp,
                    subscription.callback,
                )

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return


class OutputTranslator:
    """Follow one message log and republish its eligible entries."""

    def __init__(self, stream: NotificationStream) -> None:
        self.stream = stream
        self._log: MessageLog | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._published: set[float] = set()

    @property
    def log(self) -> MessageLog | None:
        return self._log

    def attach(self, log: MessageLog) -> None:
        self.detach()
        self._log = log
        # Output already in the log counts as delivered.
        self._published = {entry.timestamp for entry in log if is_output_entry(entry) and not entry.partial}
        self._unsubscribe = log.on_change(self.handle_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._log = None
        self._published = set()

    def handle_change(self, change: LogChange) -> None:
        entry = change.entry
        if entry.partial or not is_output_entry(entry) or entry.text is None:
            return
        # One notification per log slot; later replacements are updates of it.
        if entry.timestamp in self._published:
            logger.debug("notify.skip_update ts={}", entry.timestamp)
            return
        self._published.add(entry.timestamp)
        logger.debug("notify.publish ts={} subscribers={}", entry.timestamp, len(self.stream))
        self.stream.publish(Notification(text=entry.text, timestamp=entry.timestamp))
