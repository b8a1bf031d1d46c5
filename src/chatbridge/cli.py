"""chatbridge command line."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape

from chatbridge.api import ChatBridgeApi
from chatbridge.config import get_settings
from chatbridge.errors import ConfigurationError
from chatbridge.logging_utils import configure_logging
from chatbridge.session import EntryKind, InMemorySession
from chatbridge.ui import SimulatedChatUI, SubmitHandler

app = typer.Typer(name="chatbridge", help="Drive a chat UI through its control bridge.", add_completion=False)
console = Console()


def _echo_engine(session: InMemorySession) -> SubmitHandler:
    def _reply(text: str, images: tuple[str, ...]) -> None:
        suffix = f" (+{len(images)} image(s))" if images else ""
        session.say(f"{session.name}: {text}{suffix}")

    return _reply


async def _run_demo(
    api: ChatBridgeApi,
    session: InMemorySession,
    message: str,
    approve: bool,
) -> None:
    ui = SimulatedChatUI(session.channel, on_submit=_echo_engine(session))
    ui.start()
    try:
        with api.subscribe(lambda text: console.print(f"[bold green]notify[/] {escape(text)}")):
            api.bind(session)
            await api.set_input(message)
            console.print(f"[cyan]input[/] {escape(repr(await api.read_input()))}")
            await api.submit()
            if approve:
                session.request_approval("run: echo approved")
                session.on_approved(lambda action: session.say(f"approved: {action.description}", kind=EntryKind.COMMAND))
            console.print(f"[cyan]approve[/] {api.approve_pending_action()}")
            console.print("[cyan]output[/]")
            console.print(escape(api.read_output() or "(none)"))
    finally:
        api.unbind()
        ui.stop()


@app.command()
def demo(
    message: str = typer.Argument("hello", help="Text to type into the UI and submit"),
    session_name: str = typer.Option("demo", "--session", "-s", help="Session name"),
    approve: bool = typer.Option(False, "--approve", help="Raise and approve a gated action"),
    timeout: float | None = typer.Option(None, "--timeout", help="Read timeout in seconds"),
) -> None:
    """Run one round-trip against an in-memory session and simulated UI."""

    overrides = {"read_timeout_seconds": timeout} if timeout is not None else {}
    try:
        settings = get_settings(**overrides)
    except ConfigurationError as exc:
        console.print(f"[red]invalid settings[/]: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    configure_logging(profile="cli", level=settings.log_level)
    asyncio.run(_run_demo(ChatBridgeApi(settings), InMemorySession(session_name), message, approve))


@app.command("settings")
def show_settings() -> None:
    """Print the effective configuration."""

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        console.print(f"[red]invalid settings[/]: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    for key, value in settings.model_dump().items():
        typer.echo(f"{key}={value!r}")


if __name__ == "__main__":
    app()
