"""CLI-side output surface and report formatting."""

from __future__ import annotations

import asyncio
from typing import Callable

import typer
from rich.console import Console
from rich.markup import escape

from oyster.diagnostics import Diagnostic


class ConsoleScriptOutput:
    """Terminal surface for running scripts: prints dialogue and prompts for choices."""

    def __init__(
        self,
        console: Console | None = None,
        prompt: Callable[..., int] = typer.prompt,
    ) -> None:
        self._console = console or Console()
        self._prompt = prompt
        self.lines: list[str] = []

    def append_line(self, text: str) -> None:
        self.lines.append(text)
        self._console.print(text, markup=False, highlight=False, soft_wrap=True)

    async def choose(self, options: list[str]) -> int | None:
        for number, option in enumerate(options, start=1):
            self._console.print(f"  [bold]{number}.[/bold] {escape(option)}", highlight=False)
        while True:
            try:
                answer = await asyncio.to_thread(self._prompt, "Choose an option", type=int)
            except (typer.Abort, EOFError, KeyboardInterrupt):
                return None
            if 1 <= answer <= len(options):
                return answer - 1
            self._console.print(f"[red]Pick a number between 1 and {len(options)}.[/red]")


_SEVERITY_STYLES = {"error": "red", "warning": "yellow"}


def format_diagnostic(path: str, diagnostic: Diagnostic) -> str:
    """Render ``path:line:col: severity[CODE] message`` with rich markup."""
    style = _SEVERITY_STYLES.get(diagnostic.severity, "white")
    location = f"{path}:{diagnostic.range.line + 1}:{diagnostic.range.start + 1}"
    text = f"{location}: [{style}]{diagnostic.severity}[/{style}]\\[{diagnostic.code}] {escape(diagnostic.message)}"
    if diagnostic.hint:
        text += f"\n    hint: {escape(diagnostic.hint)}"
    return text
