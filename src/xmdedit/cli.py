# src/xmdedit/cli.py
"""
xmdedit Command Line Interface (CLI).

This module implements a terminal front end over the editor core using
`typer` and `rich`. It works on plain `.xmd`/`.md` files: no editor view is
involved, but every command goes through the same session, decoration and
edit-gate code paths the API uses.

Features
--------
- **Block Listing**: Shows every figure, grid and table the scanner finds.
- **Decoration Preview**: Shows what an editor view would render, with
  optional raw (un-rendered) spans.
- **Component Edit**: Sends a prompt about one component through the edit
  gate, previews the accepted replacement and writes it back on confirm.

Usage
-----
    $ xmdedit blocks notes.xmd
    $ xmdedit decorate notes.xmd --raw 120:164
    $ xmdedit edit notes.xmd --at 130 --prompt "make the images smaller"
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm
from rich.syntax import Syntax
from rich.table import Table

from xmdedit import __version__
from xmdedit.core.contracts.blocks import BlockDescriptor, Span
from xmdedit.core.contracts.edit import (
    Accepted,
    ChatMessage,
    Clarification,
    ComponentKind,
    EditDecision,
    Rejected,
)
from xmdedit.core.session import EditorSession
from xmdedit.edit.capabilities import component_kind
from xmdedit.edit.panel import EditPanel
from xmdedit.pipelines.component_edit import propose_component_edit

# Ensure env vars (like OPENAI_API_KEY) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="xmdedit: inspect and edit embedded blocks in XMD documents.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"xmdedit {__version__}")
        raise typer.Exit()


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _first_line(text: str, limit: int = 60) -> str:
    line = text.split("\n", 1)[0]
    return line if len(line) <= limit else line[: limit - 1] + "…"


def _describe(block: BlockDescriptor) -> str:
    """One-line human description of a block for tables."""
    if block.kind == "figure":
        fields = block.fields
        return f"{fields.alt or '(no caption)'} · {len(fields.attrs)} attrs"
    if block.kind == "grid":
        grid = block.fields
        return f"cols={grid.cols} · {len(grid.figures())} images · {grid.rows} rows"
    table = block.fields
    return f"{table.cols} columns · {len(table.rows)} rows"


def parse_span(raw: str) -> Span:
    """Parse ``START:END`` into a span."""
    start, sep, end = raw.partition(":")
    if not sep:
        raise typer.BadParameter(f"expected START:END, got {raw!r}")
    try:
        return Span(start=int(start), end=int(end))
    except ValueError as exc:
        raise typer.BadParameter(f"invalid span {raw!r}: {exc}") from exc


def _render_decision(decision: EditDecision) -> None:
    if isinstance(decision, Accepted):
        console.print(Panel(decision.summary, title="Proposal", border_style="green"))
        console.print(Syntax(decision.replacement, "markdown", word_wrap=True))
    elif isinstance(decision, Clarification):
        console.print(Panel(decision.question, title="Question", border_style="yellow"))
        for suggestion in decision.suggestions:
            console.print(f" • {suggestion}")
    elif isinstance(decision, Rejected):
        rejection = decision.rejection
        console.print(
            Panel(
                rejection.message,
                title=f"Rejected ({rejection.code})",
                border_style="red",
            )
        )


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.callback()  # type: ignore[misc]
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Inspect and edit embedded blocks in XMD documents."""


@app.command()  # type: ignore[misc]
def blocks(
    file: Annotated[
        Path,
        typer.Argument(exists=True, file_okay=True, dir_okay=False, readable=True),
    ],
) -> None:
    """List the figures, grids and tables found in a document."""
    session = EditorSession(_read(file))
    found = session.blocks()
    if not found:
        console.print("[dim]No embedded blocks found.[/dim]")
        return

    table = Table(title=f"{file.name} · {len(found)} blocks")
    table.add_column("#", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Span", justify="right")
    table.add_column("Details")
    table.add_column("Source", style="dim")
    for i, block in enumerate(found, start=1):
        source = session.text[block.span.start : block.span.end]
        table.add_row(
            str(i),
            block.kind,
            f"{block.span.start}:{block.span.end}",
            _describe(block),
            _first_line(source),
        )
    console.print(table)


@app.command()  # type: ignore[misc]
def decorate(
    file: Annotated[
        Path,
        typer.Argument(exists=True, file_okay=True, dir_okay=False, readable=True),
    ],
    raw: Annotated[
        list[str] | None,
        typer.Option(
            "--raw",
            "-r",
            help="START:END of a block to show as raw text (repeatable).",
        ),
    ] = None,
) -> None:
    """Show the decorations an editor view would draw for a document."""
    session = EditorSession(_read(file))
    for item in raw or []:
        session.toggle_render(parse_span(item))

    table = Table(title=f"{file.name} · decorations")
    table.add_column("Kind", style="cyan")
    table.add_column("Block")
    table.add_column("Target", justify="right")
    table.add_column("Level")
    table.add_column("Label", style="magenta")
    for deco in session.decorations():
        table.add_row(
            deco.kind,
            deco.block_kind,
            f"{deco.target.start}:{deco.target.end}",
            "block" if deco.block else "inline",
            deco.label or "",
        )
    console.print(table)


@app.command()  # type: ignore[misc]
def edit(
    file: Annotated[
        Path,
        typer.Argument(exists=True, file_okay=True, dir_okay=False, readable=True, writable=True),
    ],
    at: Annotated[
        int,
        typer.Option("--at", "-a", min=0, help="Character offset inside the component."),
    ],
    prompt: Annotated[
        str,
        typer.Option("--prompt", "-p", help="What should change."),
    ],
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Override the edit model alias."),
    ] = None,
    shortcuts: Annotated[
        bool,
        typer.Option(
            "--shortcuts/--no-shortcuts",
            help="Apply simple width/align/cols requests without calling the model.",
        ),
    ] = True,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Apply an accepted proposal without asking."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Propose an AI edit of the component at ``--at`` and apply it on confirm.

    Only the component's own span is rewritten; the rest of the file is left
    byte-for-byte unchanged.
    """
    session = EditorSession(_read(file))
    block = session.block_at(at)
    kind = component_kind(block) if block is not None else None
    if block is None or kind is None:
        console.print(f"[bold red]No editable component at offset {at}.[/bold red]")
        raise typer.Exit(code=1)

    def proposer(
        k: ComponentKind, p: str, source: str, conversation: Sequence[ChatMessage]
    ) -> EditDecision:
        return propose_component_edit(
            k, p, source, conversation=conversation, allow_shortcuts=shortcuts, model=model
        )

    panel = EditPanel(session, block.span, kind, proposer=proposer)
    console.print(
        Panel.fit(
            f"[bold cyan]Editing {kind}[/bold cyan] at {block.span.start}:{block.span.end}",
            border_style="cyan",
        )
    )

    start_time = time.time()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("[yellow]Asking the edit assistant...", total=None)
            decision = panel.propose(prompt)
    except Exception as e:
        console.print(f"\n[bold red]❌ Edit Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    console.print(f"[dim](took {time.time() - start_time:.1f}s)[/dim]")
    if decision is None:
        raise typer.Exit(code=1)
    _render_decision(decision)

    if not isinstance(decision, Accepted):
        raise typer.Exit(code=0 if isinstance(decision, Clarification) else 1)

    if not yes and not Confirm.ask(decision.confirmation_question, default=True):
        panel.discard()
        console.print("[dim]Discarded.[/dim]")
        return

    result = panel.apply()
    if result.is_err():
        console.print(f"[bold red]{result.unwrap_err().message}[/bold red]")
        raise typer.Exit(code=1)

    file.write_text(session.text, encoding="utf-8")
    console.print(f"[bold green]✅ Applied.[/bold green] Saved to {file}")


if __name__ == "__main__":
    app()
