"""CLI entry point for academic-copilot."""

import asyncio
import logging
import shlex

import click
import uvicorn

from .config import configure_logging
from .core import PLAYBACK_ERROR, LocalFile
from .gateways import GatewayError, PlaybackError, SubprocessAudioPlayer, speak
from .identity import get_identity_provider
from .session import ChatSession, create_session

logger = logging.getLogger(__name__)

CHAT_HELP = """Commands:
  /attach PATH...  upload files to send with the next message
  /remove NAME     drop a pending file
  /files           list pending files
  /speak           read the last reply aloud
  /reset           start a new conversation
  /quit            leave"""


@click.group()
def main():
    """Academic Copilot: chat with a study assistant about your documents."""
    configure_logging()


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web interface."""
    click.echo(f"Starting academic-copilot on http://{host}:{port}")
    uvicorn.run("academic_copilot.server:app", host=host, port=port, reload=False)


@main.command()
def chat():
    """Chat in the terminal."""
    asyncio.run(_chat_loop(create_session()))


async def _chat_loop(session: ChatSession) -> None:
    click.echo("Copiloto Acadêmico. Type /help for commands.")
    try:
        while True:
            try:
                line = click.prompt("you", prompt_suffix="> ", default="", show_default=False)
            except click.Abort:
                break
            if not await run_line(session, line):
                break
    finally:
        await session.aclose()


async def run_line(session: ChatSession, line: str) -> bool:
    """Handle one line of terminal input. Returns False when the user quits."""
    line = line.strip()
    if not line:
        return True

    if not line.startswith("/"):
        exchange = await session.conversation.submit(line)
        if exchange is not None:
            click.echo(f"\ncopilot> {exchange.reply.content}\n")
        return True

    try:
        command, *args = shlex.split(line)
    except ValueError as e:
        click.echo(f"Cannot parse command: {e}", err=True)
        return True

    if command in ("/quit", "/exit"):
        return False
    elif command == "/help":
        click.echo(CHAT_HELP)
    elif command == "/attach":
        files = []
        for path in args:
            try:
                files.append(LocalFile.from_path(path))
            except OSError as e:
                click.echo(f"Cannot read {path}: {e.strerror}", err=True)
        result = await session.attachments.stage(files)
        for attachment in result.accepted:
            click.echo(f"Attached {attachment.file_name}")
        for rejection in result.rejected:
            click.echo(rejection.reason, err=True)
    elif command == "/remove":
        for name in args:
            if not session.attachments.remove(name):
                click.echo(f"Not attached: {name}", err=True)
    elif command == "/files":
        pending = session.attachments.pending
        if not pending:
            click.echo("No files attached.")
        for attachment in pending:
            click.echo(f"{attachment.file_name}  {attachment.file.size / 1024:.1f} KB")
    elif command == "/speak":
        replies = [m for m in session.conversation.messages if m.from_assistant and not m.pending]
        if not replies:
            click.echo("Nothing to read yet.")
            return True
        try:
            await speak(session.gateways.speech, SubprocessAudioPlayer(), replies[-1].content)
        except (GatewayError, PlaybackError) as e:
            logger.error("Speech playback failed: %s", e)
            click.echo(PLAYBACK_ERROR, err=True)
    elif command == "/reset":
        session.conversation.reset()
        click.echo("New conversation.")
    else:
        click.echo(f"Unknown command: {command}", err=True)
    return True


@main.group()
def profile():
    """Show or change the saved user profile."""
    pass


@profile.command("show")
def profile_show():
    store = get_identity_provider()
    info = store.load()
    click.echo(f"User ID: {store.user_id()}")
    if info:
        click.echo(f"Name: {info.name}")
        click.echo(f"Age: {info.age}")
    else:
        click.echo("No profile saved.")


@profile.command("set")
@click.argument("name")
@click.argument("age", type=click.IntRange(min=1))
def profile_set(name: str, age: int):
    """Save NAME and AGE for this machine."""
    try:
        info = get_identity_provider().save(name, age)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(f"Saved profile for {info.name} ({info.user_id})")


@profile.command("clear")
def profile_clear():
    get_identity_provider().clear()
    click.echo("Profile cleared.")
