from __future__ import annotations

from collections.abc import Iterator

import pytest

from chatbridge.api import ChatBridgeApi
from chatbridge.config import BridgeSettings
from chatbridge.session import InMemorySession
from chatbridge.ui import SimulatedChatUI


@pytest.fixture
def settings() -> BridgeSettings:
    return BridgeSettings(read_timeout_seconds=0.05)


@pytest.fixture
def session() -> InMemorySession:
    return InMemorySession("test")


@pytest.fixture
def ui(session: InMemorySession) -> Iterator[SimulatedChatUI]:
    chat_ui = SimulatedChatUI(session.channel)
    chat_ui.start()
    yield chat_ui
    chat_ui.stop()


@pytest.fixture
def api(settings: BridgeSettings, session: InMemorySession, ui: SimulatedChatUI) -> Iterator[ChatBridgeApi]:
    chat_api = ChatBridgeApi(settings)
    chat_api.bind(session)
    yield chat_api
    chat_api.unbind()
