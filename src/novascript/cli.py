"""Command-line entry point for the NovaScript workflow."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape

from .config import RESOLUTION_QUALITY, get_settings
from .credentials import PromptCredentialProvider
from .export import build_docx, format_markdown, script_to_json
from .models import ScriptOutput, WorkflowSnapshot
from .openai_backend import OpenAIBackend
from .orchestrator import WorkflowOrchestrator
from .stages import WorkflowStage

app = typer.Typer(
    help="Turn a topic into a summarized, illustrated news script."
)


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_orchestrator() -> WorkflowOrchestrator:
    settings = get_settings()
    credentials = PromptCredentialProvider(settings.openai_api_key)
    backend = OpenAIBackend(credentials, settings=settings)
    return WorkflowOrchestrator(backend, credentials)


def _write_output(out_path: Path, script: ScriptOutput, topic: str) -> None:
    suffix = out_path.suffix.lower()
    if suffix == ".json":
        out_path.write_text(script_to_json(script), encoding="utf-8")
    elif suffix == ".docx":
        build_docx(script, out_path, topic)
    else:
        out_path.write_text(format_markdown(script, topic), encoding="utf-8")


class _LogEcho:
    """Prints activity log lines once each, as snapshots arrive."""

    def __init__(self) -> None:
        self._seen: tuple[str, ...] = ()

    def __call__(self, snapshot: WorkflowSnapshot) -> None:
        if snapshot.log == self._seen:
            return
        new_lines = snapshot.log[-1:] if self._seen else snapshot.log
        self._seen = snapshot.log
        for line in new_lines:
            rprint(f"[cyan]{escape(line)}[/cyan]")


@app.command()
def run(
    topic: str = typer.Argument(..., help="Topic to scan for news, e.g. 'GPT-5 release news'."),
    resolution: Optional[str] = typer.Option(
        None,
        "--resolution",
        "-r",
        help="Image resolution tier: 1K, 2K or 4K. Defaults to IMAGE_RESOLUTION.",
        case_sensitive=False,
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Optional path to write the script (.json, .docx, or Markdown otherwise).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Run one topic through fetch -> summarize -> script -> images."""
    if not topic.strip():
        raise typer.BadParameter("topic must not be blank.")
    tier = resolution.upper() if resolution else None
    if tier is not None and tier not in RESOLUTION_QUALITY:
        raise typer.BadParameter("resolution must be 1K, 2K or 4K.")

    _configure_logging(verbose)
    orchestrator = _build_orchestrator()
    orchestrator.subscribe(_LogEcho())
    snapshot = asyncio.run(orchestrator.run_workflow(topic, tier))

    if snapshot.stage is not WorkflowStage.COMPLETED or snapshot.script is None:
        rprint(f"[red]Workflow halted for {escape(repr(topic))}.[/red]")
        raise typer.Exit(code=1)

    if out:
        _write_output(out, snapshot.script, snapshot.topic)
        rprint(f"[green]Wrote output to {escape(str(out))}[/green]")
    else:
        rprint(escape(format_markdown(snapshot.script, snapshot.topic)))


def main():
    app()


if __name__ == "__main__":
    main()
