"""CLI entrypoint for Oyster tools."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import print
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from oyster.adapters import EchoGameBridge
from oyster.cli import ConsoleScriptOutput, format_diagnostic
from oyster.config import settings
from oyster.diagnostics import has_errors
from oyster.editor import completion_items, document_symbols, hover_markdown
from oyster.runtime import InMemoryHistoryStore, JsonlHistoryStore, ScriptJob, ScriptJobStatus, ScriptRuntime
from oyster.telemetry import configure_logging
from oyster.validator import validate

app = typer.Typer(help="Oyster script linter and interpreter")


@app.callback()
def main(
    log_level: str = typer.Option(None, help="Logging level (defaults to OYSTER_LOG_LEVEL)"),
) -> None:
    configure_logging(log_level or settings.log_level)


def _read_script(path: Path) -> str:
    if not path.exists():
        raise typer.BadParameter(f"Script not found: {path}")
    return path.read_text(encoding="utf-8")


@app.command("config")
def show_config() -> None:
    """Show the effective runtime configuration."""
    print(settings.model_dump())


@app.command()
def lint(
    paths: list[Path] = typer.Argument(..., help="Oyster scripts to check"),
    strict: bool = typer.Option(False, help="Fail on warnings as well as errors"),
) -> None:
    """Report syntax, parameter, variable and compatibility problems."""
    console = Console()
    failed = False
    for path in paths:
        diagnostics = validate(_read_script(path), comment_prefixes=settings.comment_prefixes)
        for diagnostic in diagnostics:
            console.print(format_diagnostic(str(path), diagnostic), highlight=False, soft_wrap=True)
        if has_errors(diagnostics) or (strict and diagnostics):
            failed = True

    if failed:
        raise typer.Exit(code=1)
    console.print("[green]No errors found.[/green]")


@app.command()
def run(
    path: Path = typer.Argument(..., help="Oyster script to execute"),
    max_steps: int = typer.Option(None, help="Stop after this many executed statements"),
    no_wait: bool = typer.Option(False, help="Skip Sys_Wait delays"),
    echo_game: bool = typer.Option(False, help="Echo game commands instead of reporting them as unhandled"),
    history_file: str = typer.Option(None, help="JSONL file that records finished runs"),
) -> None:
    """Run a script in the terminal."""
    source = _read_script(path)
    history_path = history_file or settings.history_path
    runtime = ScriptRuntime(
        bridge=EchoGameBridge() if echo_game else None,
        history_store=JsonlHistoryStore(history_path) if history_path else InMemoryHistoryStore(),
        wait_time_scale=0.0 if no_wait else settings.wait_time_scale,
        max_steps=max_steps or settings.max_steps,
        comment_prefixes=settings.comment_prefixes,
    )

    async def _run() -> ScriptJob:
        await runtime.start()
        job_id = runtime.submit_script(source, ConsoleScriptOutput(), name=path.name)
        await runtime.join()
        await runtime.stop()
        return runtime.get_job(job_id)

    job = asyncio.run(_run())
    print({"script": job.name, "status": job.status.value, "steps": job.steps, "error": job.error})
    if job.status == ScriptJobStatus.FAILED:
        raise typer.Exit(code=1)


@app.command()
def history(
    history_file: str = typer.Option(None, help="JSONL file that records finished runs"),
    limit: int = typer.Option(20, help="How many runs to show"),
) -> None:
    """List recently finished runs."""
    path = history_file or settings.history_path
    if not path:
        raise typer.BadParameter("Provide --history-file or set OYSTER_HISTORY_PATH")
    for job in JsonlHistoryStore(path).list_recent(limit):
        print({"id": job.id, "script": job.name, "status": job.status.value, "steps": job.steps})


@app.command()
def describe(command: str) -> None:
    """Show catalog documentation for a command."""
    text = hover_markdown(command)
    if text is None:
        print({"error": f"Unknown Oyster command: {command}"})
        raise typer.Exit(code=1)
    Console().print(Markdown(text))


@app.command()
def commands(prefix: str = typer.Option("", help="Only list commands starting with this prefix")) -> None:
    """List known commands with their signatures."""
    for item in completion_items(prefix):
        print(f"{escape(item.detail)}  [dim]{escape(item.documentation)}[/dim]")


@app.command()
def symbols(path: Path = typer.Argument(..., help="Oyster script to inspect")) -> None:
    """List line markers and variables declared by a script."""
    found = document_symbols(_read_script(path), comment_prefixes=settings.comment_prefixes)
    print(
        {
            "markers": {name: line + 1 for name, line in found.markers.items()},
            "variables": {name: {"type": kind, "line": line + 1} for name, (kind, line) in found.variables.items()},
        }
    )


if __name__ == "__main__":
    app()
