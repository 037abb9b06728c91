"""CLI entry point for foliochat -- talk to the portfolio assistant."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from .config import effective_environ, find_config_file, load_config
from .models import FoliochatConfig

app = typer.Typer(
    name="foliochat",
    help="Portfolio assistant chat client backed by a hosted completion API.",
    add_completion=False,
)

console = Console()

_state: dict[str, object] = {"config_path": None}


# ---------------------------------------------------------------------------
# Console view
# ---------------------------------------------------------------------------


class ConsoleSlot:
    """Prints each slot update; the terminal cannot rewrite earlier output."""

    def __init__(self, console: Console, assistant: str) -> None:
        self._console = console
        self._assistant = assistant

    def set_placeholder(self, text: str) -> None:
        self._console.print(f"[dim]{self._assistant}: {text}[/dim]")

    def set_content(self, text: str, html: str) -> None:
        self._console.print(Panel(Markdown(text), title=self._assistant, title_align="left"))

    def set_error(self, text: str, retryable: bool = True) -> None:
        self._console.print(f"[red]{text}[/red]")
        if retryable:
            self._console.print("[dim]Type /retry to try again.[/dim]")


class ConsoleView:
    def __init__(self, console: Console, assistant: str) -> None:
        self._console = console
        self._assistant = assistant
        self.input_enabled = True

    def create_slot(self) -> ConsoleSlot:
        return ConsoleSlot(self._console, self._assistant)

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _load_effective_config(**overrides: object) -> FoliochatConfig:
    """Resolve config (file + env + flags) or exit with an error."""
    cwd = Path.cwd()
    path = _state["config_path"] or find_config_file(cwd)
    try:
        return load_config(path, overrides=overrides, environ=effective_environ(cwd))  # type: ignore[arg-type]
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to foliochat.toml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and retries."),
) -> None:
    """Portfolio assistant chat client."""
    _state["config_path"] = config
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def chat(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="GitHub handle for the digest."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Completion model name."),
) -> None:
    """Start an interactive conversation."""
    from .session import ChatSession

    cfg = _load_effective_config(github_user=user, model=model)
    view = ConsoleView(console, cfg.assistant_name)

    async def _loop() -> None:
        with console.status("Fetching GitHub data..."):
            session = await ChatSession.start(cfg, view=view)
        greeting = session.transcript.turns[1].content
        console.print(Panel(Markdown(greeting), title=cfg.assistant_name, title_align="left"))
        console.print("[dim]/retry repeats a failed request, /quit exits.[/dim]")

        while True:
            try:
                text = await asyncio.to_thread(console.input, "[bold cyan]you>[/bold cyan] ")
            except (EOFError, KeyboardInterrupt):
                break
            command = text.strip().lower()
            if command in ("/quit", "/exit"):
                break
            if command == "/retry":
                if session.orchestrator.can_retry:
                    await session.retry()
                else:
                    console.print("[yellow]Nothing to retry.[/yellow]")
                continue
            await session.handle_message(text)

    asyncio.run(_loop())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the assistant."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="GitHub handle for the digest."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Completion model name."),
) -> None:
    """Ask a single question and print the answer."""
    from .orchestrator import SendStatus
    from .session import ChatSession

    cfg = _load_effective_config(github_user=user, model=model)
    view = ConsoleView(console, cfg.assistant_name)

    async def _ask():
        session = await ChatSession.start(cfg, view=view)
        return await session.handle_message(question)

    result = asyncio.run(_ask())
    if result is None or result.status is not SendStatus.SUCCEEDED:
        raise typer.Exit(code=1)


@app.command()
def digest(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="GitHub handle."),
    max_repos: Optional[int] = typer.Option(None, "--max-repos", "-n", help="Repositories to include."),
) -> None:
    """Fetch and print the repository digest."""
    from .digest import RefreshStatus, RepositoryContextBuilder
    from .github import GitHubClient

    cfg = _load_effective_config(github_user=user, max_repos=max_repos)
    builder = RepositoryContextBuilder(
        GitHubClient(token=cfg.github_token),
        cfg.owner_name,
        featured_projects=cfg.featured_projects,
        project_titles=cfg.project_titles,
        ttl=cfg.digest_ttl,
    )
    with console.status(f"Fetching repositories of {cfg.github_user}..."):
        result = asyncio.run(builder.refresh(cfg.github_user, cfg.max_repos))

    if result.status is not RefreshStatus.REFRESHED:
        console.print(f"[yellow]GitHub data unavailable:[/yellow] {result.error}")
    console.print(Markdown(builder.digest_text))


@app.command()
def render(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Markdown file to render."),
) -> None:
    """Print the HTML fragment the chat widget would show for a reply."""
    from .render import format_message_text

    text = path.read_text(encoding="utf-8")
    typer.echo(format_message_text(text))
