"""External chat API: the single entry point callers use to drive the UI."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from chatbridge.bridge import InputBridge
from chatbridge.config import BridgeSettings, get_settings
from chatbridge.errors import SessionNotBoundError
from chatbridge.logging_utils import session_context
from chatbridge.pipeline import NotificationCallback, NotificationStream, OutputTranslator, Subscription, render_output
from chatbridge.session.session import Session


class ChatBridgeApi:
    """Facade over one bound session.

    The host owns the instance and decides which session it is bound to.
    Every operation degrades to ``None`` or ``False`` instead of raising:
    when no session is bound, or when the session itself fails.
    """

    def __init__(self, settings: BridgeSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._notifications = NotificationStream()
        self._translator = OutputTranslator(self._notifications)
        self._session: Session | None = None
        self._bridge: InputBridge | None = None
        logger.debug("api.created")

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_bound(self) -> bool:
        return self._session is not None

    def bind(self, session: Session) -> None:
        """Attach to ``session``, replacing any previous attachment.

        Subscribers registered with :meth:`subscribe` keep receiving output,
        now from the new session's log.
        """
        if not isinstance(session, Session):
            raise TypeError(f"expected a Session, got {type(session).__name__}")
        self.unbind()
        bridge = InputBridge(session.channel, timeout_seconds=self.settings.read_timeout_seconds)
        try:
            self._translator.attach(session.log)
            bridge.attach()
        except Exception:
            self._translator.detach()
            bridge.detach()
            raise
        self._session = session
        self._bridge = bridge
        logger.info("api.bound session={}", session.name)

    def unbind(self) -> None:
        if self._session is None:
            return
        previous = self._session.name
        if self._bridge is not None:
            self._bridge.detach()
        self._translator.detach()
        self._session = None
        self._bridge = None
        logger.info("api.unbound session={}", previous)

    # --- operations ---

    async def read_input(self) -> str | None:
        """Current text of the UI input field, or ``None`` if unavailable."""
        try:
            session, bridge = self._require("read_input")
            with session_context(session.name):
                return await bridge.read_current_input()
        except Exception as exc:
            self._log_failure("read_input", exc)
            return None

    async def set_input(self, text: str) -> bool:
        """Replace the UI input text. ``True`` once the command is posted."""
        try:
            session, bridge = self._require("set_input")
            with session_context(session.name):
                await bridge.set_current_input(text)
                logger.debug("api.set_input chars={}", len(text))
            return True
        except Exception as exc:
            self._log_failure("set_input", exc)
            return False

    async def submit(self, text: str | None = None, images: Sequence[str] = ()) -> bool:
        """Submit ``text``; without text the UI submits whatever it holds."""
        try:
            session, bridge = self._require("submit")
            with session_context(session.name):
                await bridge.submit(text, images)
                logger.debug("api.submit text={} images={}", text is not None, len(images))
            return True
        except Exception as exc:
            self._log_failure("submit", exc)
            return False

    def read_output(self) -> str | None:
        """All assistant output so far, blank-line separated."""
        try:
            session, _ = self._require("read_output")
            return render_output(session.log.entries(), self.settings.output_separator)
        except Exception as exc:
            self._log_failure("read_output", exc)
            return None

    def approve_pending_action(self) -> bool:
        """Approve the gated action; ``False`` when nothing is pending."""
        try:
            session, _ = self._require("approve_pending_action")
            with session_context(session.name):
                if not session.has_pending_action():
                    logger.debug("api.approve_nothing_pending")
                    return False
                session.approve_pending_action()
                logger.info("api.approved")
            return True
        except Exception as exc:
            self._log_failure("approve_pending_action", exc)
            return False

    def subscribe(self, callback: NotificationCallback) -> Subscription:
        """Receive every new assistant output text, bound or not."""
        return self._notifications.subscribe(callback)

    # --- helpers ---

    def _require(self, operation: str) -> tuple[Session, InputBridge]:
        if self._session is None or self._bridge is None:
            raise SessionNotBoundError(operation)
        return self._session, self._bridge

    @staticmethod
    def _log_failure(operation: str, error: Exception) -> None:
        if isinstance(error, SessionNotBoundError):
            logger.warning("api.{} unbound", operation)
            return
        logger.opt(exception=error).warning("api.{} failed error={}", operation, error)


def create_chat_api(session: Session, settings: BridgeSettings | None = None) -> ChatBridgeApi:
    """Build the external API for ``session`` during host activation."""

    api = ChatBridgeApi(settings)
    try:
        api.bind(session)
    except Exception:
        logger.opt(exception=True).error("api.bind_failed")
    return api
