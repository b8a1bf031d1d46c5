from __future__ import annotations

import asyncio

import pytest
from loguru import logger

from chatbridge.api import ChatBridgeApi, create_chat_api
from chatbridge.channels.bus import MessageChannel
from chatbridge.config import BridgeSettings
from chatbridge.session import InMemorySession, MessageLog
from chatbridge.ui import SimulatedChatUI


class BrokenLog(MessageLog):
    def entries(self):
        raise RuntimeError("log unavailable")


class BrokenSession:
    """Session whose accessors fail the way a crashed engine would."""

    def __init__(self) -> None:
        self.name = "broken"
        self.log = BrokenLog()
        self.channel = MessageChannel("broken")

    def has_pending_action(self) -> bool:
        raise RuntimeError("engine gone")

    def approve_pending_action(self) -> None:
        raise AssertionError("must not be reached")


@pytest.fixture
def unbound(settings: BridgeSettings) -> ChatBridgeApi:
    return ChatBridgeApi(settings)


@pytest.mark.asyncio
async def test_operations_before_bind_return_failure_values(unbound: ChatBridgeApi) -> None:
    assert unbound.is_bound is False
    assert await unbound.read_input() is None
    assert await unbound.set_input("x") is False
    assert await unbound.submit("x") is False
    assert await unbound.submit() is False
    assert unbound.read_output() is None
    assert unbound.approve_pending_action() is False


def test_subscribe_before_bind_is_safe(unbound: ChatBridgeApi) -> None:
    received: list[str] = []
    subscription = unbound.subscribe(received.append)

    assert subscription.active is True
    assert received == []


@pytest.mark.asyncio
async def test_set_then_read_round_trips(api: ChatBridgeApi) -> None:
    for text in ["", "hello", "multi\nline", "ünïcödé"]:
        assert await api.set_input(text) is True
        assert await api.read_input() == text


@pytest.mark.asyncio
async def test_read_input_times_out_when_ui_is_silent(api: ChatBridgeApi, ui: SimulatedChatUI) -> None:
    ui.respond = False

    assert await api.read_input() is None


@pytest.mark.asyncio
async def test_submit_with_text_posts_set_then_submit(api: ChatBridgeApi, ui: SimulatedChatUI) -> None:
    assert await api.submit("go") is True

    assert [payload["type"] for payload in ui.received] == ["setUserInput", "invoke"]
    assert ui.received[0]["value"] == "go"
    assert ui.received[1]["text"] == "go"
    assert ui.submitted == ["go"]


@pytest.mark.asyncio
async def test_submit_without_text_uses_current_input(api: ChatBridgeApi, ui: SimulatedChatUI) -> None:
    await api.set_input("typed earlier")
    ui.received.clear()

    assert await api.submit() is True

    assert ui.received == [{"type": "invoke", "invoke": "sendMessage", "text": None, "images": []}]
    assert ui.submitted == ["typed earlier"]
    assert ui.input_text == ""


def test_read_output_filters_and_joins(api: ChatBridgeApi, session: InMemorySession) -> None:
    session.say("A")
    session.ask("Q")
    session.say("B")

    assert api.read_output() == "A\n\nB"


def test_read_output_with_only_questions_is_none(api: ChatBridgeApi, session: InMemorySession) -> None:
    session.ask("Q")

    assert api.read_output() is None


def test_read_output_uses_configured_separator(session: InMemorySession) -> None:
    api = ChatBridgeApi(BridgeSettings(output_separator="\n---\n"))
    api.bind(session)
    session.say("A")
    session.say("B")

    assert api.read_output() == "A\n---\nB"


def test_approve_without_pending_action(api: ChatBridgeApi, session: InMemorySession) -> None:
    approved = []
    session.on_approved(approved.append)

    assert api.approve_pending_action() is False
    assert approved == []


def test_approve_pending_action_runs_effect_once(api: ChatBridgeApi, session: InMemorySession) -> None:
    approved = []
    session.on_approved(approved.append)
    action = session.request_approval("npm install")

    assert api.approve_pending_action() is True
    assert api.approve_pending_action() is False
    assert approved == [action]


def test_notifications_follow_engine_output(api: ChatBridgeApi, session: InMemorySession) -> None:
    received: list[str] = []
    api.subscribe(received.append)

    session.say("working on it")
    session.ask("may I run this?")
    session.say(None)
    session.say("done")

    assert received == ["working on it", "done"]


def test_rebind_moves_notifications_to_new_session(settings: BridgeSettings) -> None:
    first, second = InMemorySession("first"), InMemorySession("second")
    api = ChatBridgeApi(settings)
    received: list[str] = []
    api.subscribe(received.append)

    api.bind(first)
    first.say("from first")
    api.bind(second)
    first.say("stale")
    second.say("from second")

    assert received == ["from first", "from second"]
    assert api.session is second


@pytest.mark.asyncio
async def test_unbind_returns_to_failure_values(api: ChatBridgeApi, session: InMemorySession) -> None:
    received: list[str] = []
    api.subscribe(received.append)
    api.unbind()

    session.say("after unbind")

    assert received == []
    assert await api.set_input("x") is False
    assert api.read_output() is None


@pytest.mark.asyncio
async def test_collaborator_failures_map_to_failure_values(settings: BridgeSettings) -> None:
    api = ChatBridgeApi(settings)
    api.bind(BrokenSession())
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        assert api.read_output() is None
        assert api.approve_pending_action() is False
    finally:
        logger.remove(sink_id)

    assert any("api.read_output failed" in message for message in messages)
    assert any("api.approve_pending_action failed" in message for message in messages)


@pytest.mark.asyncio
async def test_failing_ui_maps_to_failure_values(settings: BridgeSettings, session: InMemorySession) -> None:
    async def _crash(_command) -> None:
        raise RuntimeError("ui crashed")

    session.channel.on_command(_crash)
    api = ChatBridgeApi(settings)
    api.bind(session)

    assert await api.set_input("x") is False
    assert await api.submit("x") is False
    assert await api.read_input() is None
    assert api.is_bound is True


def test_bind_rejects_non_sessions(unbound: ChatBridgeApi) -> None:
    with pytest.raises(TypeError):
        unbound.bind(object())  # type: ignore[arg-type]


def test_create_chat_api_binds_session(settings: BridgeSettings, session: InMemorySession) -> None:
    api = create_chat_api(session, settings)

    assert api.session is session


def test_create_chat_api_survives_bind_failure(settings: BridgeSettings) -> None:
    api = create_chat_api(object(), settings)  # type: ignore[arg-type]

    assert api.is_bound is False
    assert api.read_output() is None


def test_separate_instances_are_independent(settings: BridgeSettings) -> None:
    one, two = ChatBridgeApi(settings), ChatBridgeApi(settings)
    one.bind(InMemorySession("one"))

    assert one.is_bound is True
    assert two.is_bound is False


def test_replaced_output_notifies_once(api: ChatBridgeApi, session: InMemorySession) -> None:
    received: list[str] = []
    api.subscribe(received.append)

    entry = session.say("draft")
    session.update(entry, "final")

    assert received == ["draft"]
    assert api.read_output() == "final"


def test_failing_approval_listener_still_reports_success(api: ChatBridgeApi, session: InMemorySession) -> None:
    seen = []

    def _boom(_action) -> None:
        raise ZeroDivisionError("listener broke")

    session.on_approved(_boom)
    session.on_approved(seen.append)
    action = session.request_approval("git push")

    assert api.approve_pending_action() is True
    assert session.has_pending_action() is False
    assert seen == [action]


def test_failed_bind_leaves_no_subscriptions(settings: BridgeSettings) -> None:
    class UnreadableLog(MessageLog):
        def __iter__(self):
            raise RuntimeError("log unreadable")

    session = BrokenSession()
    session.log = UnreadableLog()
    api = create_chat_api(session, settings)  # type: ignore[arg-type]

    assert api.is_bound is False
    assert session.channel.has_reply_listeners is False


@pytest.mark.asyncio
async def test_read_input_timeout_comes_from_settings(monkeypatch: pytest.MonkeyPatch, session: InMemorySession) -> None:
    waits: list[float] = []

    async def _expire_immediately(awaitable, timeout):
        waits.append(timeout)
        awaitable.cancel()
        raise TimeoutError

    monkeypatch.setattr(asyncio, "wait_for", _expire_immediately)
    api = ChatBridgeApi(BridgeSettings(read_timeout_seconds=7.5))
    api.bind(session)

    assert await api.read_input() is None
    assert waits == [7.5]


@pytest.mark.asyncio
async def test_failing_submit_handler_does_not_fail_submit(settings: BridgeSettings, session: InMemorySession) -> None:
    def _boom(_text: str, _images: tuple[str, ...]) -> None:
        raise RuntimeError("engine rejected message")

    ui = SimulatedChatUI(session.channel, on_submit=_boom)
    ui.start()
    api = ChatBridgeApi(settings)
    api.bind(session)

    assert await api.submit("hello") is True
    assert ui.submitted == ["hello"]
