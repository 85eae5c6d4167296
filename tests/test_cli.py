# tests/test_cli.py
"""
Tests for the xmdedit command-line interface (CLI).

Scope
-----
1.  **Command Registration**: `--help` and `--version` work.
2.  **Argument Validation**: Typer's `exists=True` checks for input files.
3.  **Inspection**: `blocks` and `decorate` render the scanner output.
4.  **Edit Flow**: a shortcut prompt is applied and written back without a
    model call; a patched pipeline covers rejections and crashes.

We use `typer.testing.CliRunner` to invoke the app in-process.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from xmdedit import __version__
from xmdedit.cli import app
from xmdedit.core.contracts.edit import EditRejection, Rejected

FIG = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
CENTERED = '![Cap](data:image/png;base64,AAA){width="50%" align="center"}'
DOC = f"Intro.\n\n{FIG}\n\nOutro.\n"
FIG_AT = DOC.index(FIG) + 3


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create a fresh CliRunner for each test."""
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def doc_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.xmd"
    path.write_text(DOC, encoding="utf-8")
    return path


def test_cli_help_and_version(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, f"Help failed: {result.output}"
    assert "edit" in result.output
    assert "blocks" in result.output

    version = runner.invoke(app, ["--version"])
    assert version.exit_code == 0
    assert f"xmdedit {__version__}" in version.output


def test_blocks_fails_on_missing_file(runner: CliRunner) -> None:
    result = runner.invoke(app, ["blocks", "ghost.xmd"])
    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_blocks_lists_components(runner: CliRunner, doc_file: Path) -> None:
    result = runner.invoke(app, ["blocks", str(doc_file)])
    assert result.exit_code == 0, result.output
    assert "1 blocks" in result.output
    assert "figure" in result.output


def test_blocks_on_plain_text(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "plain.md"
    path.write_text("Just prose.\n", encoding="utf-8")
    result = runner.invoke(app, ["blocks", str(path)])
    assert result.exit_code == 0
    assert "No embedded blocks found." in result.output


def test_decorate_with_raw_span(runner: CliRunner, doc_file: Path) -> None:
    start = DOC.index(FIG)
    span = f"{start}:{start + len(FIG)}"

    rendered = runner.invoke(app, ["decorate", str(doc_file)])
    assert rendered.exit_code == 0, rendered.output
    assert "replace" in rendered.output

    raw = runner.invoke(app, ["decorate", str(doc_file), "--raw", span])
    assert raw.exit_code == 0, raw.output
    assert "toggle_pill" in raw.output

    bad = runner.invoke(app, ["decorate", str(doc_file), "--raw", "12"])
    assert bad.exit_code != 0


def test_edit_shortcut_is_applied(runner: CliRunner, doc_file: Path) -> None:
    """`center it` is handled without a model and written back on --yes."""
    result = runner.invoke(
        app, ["edit", str(doc_file), "--at", str(FIG_AT), "--prompt", "center it", "--yes"]
    )
    assert result.exit_code == 0, f"CLI Failed with Output:\n{result.output}"
    assert "Applied." in result.output
    assert doc_file.read_text(encoding="utf-8") == DOC.replace(FIG, CENTERED)


def test_edit_can_be_declined(runner: CliRunner, doc_file: Path) -> None:
    result = runner.invoke(
        app,
        ["edit", str(doc_file), "--at", str(FIG_AT), "--prompt", "center it"],
        input="n\n",
    )
    assert result.exit_code == 0, result.output
    assert "Discarded." in result.output
    assert doc_file.read_text(encoding="utf-8") == DOC


def test_edit_outside_component_fails(runner: CliRunner, doc_file: Path) -> None:
    result = runner.invoke(app, ["edit", str(doc_file), "--at", "1", "--prompt", "center it"])
    assert result.exit_code == 1
    assert "No editable component" in result.output


def test_edit_rejection_exits_with_error(runner: CliRunner, doc_file: Path) -> None:
    rejection = Rejected(
        rejection=EditRejection(code="model_call_failure", message="The assistant is down.")
    )
    with patch("xmdedit.cli.propose_component_edit", return_value=rejection) as mock_propose:
        result = runner.invoke(
            app,
            ["edit", str(doc_file), "--at", str(FIG_AT), "-p", "resize to fit", "--no-shortcuts"],
        )
    assert result.exit_code == 1, result.output
    assert "The assistant is down." in result.output
    assert mock_propose.call_args.kwargs["allow_shortcuts"] is False
    assert doc_file.read_text(encoding="utf-8") == DOC


def test_edit_handles_pipeline_crash(runner: CliRunner, doc_file: Path) -> None:
    with patch("xmdedit.cli.propose_component_edit", side_effect=RuntimeError("LLM Out of credits")):
        result = runner.invoke(
            app, ["edit", str(doc_file), "--at", str(FIG_AT), "-p", "resize to fit"]
        )
    assert result.exit_code == 1, result.output
    assert "Edit Error" in result.output
    assert "LLM Out of credits" in result.output
