"""Pure helpers behind editor hovers, completions and document symbols."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from oyster.catalog import CommandCatalog, CommandDescription, ParamDescription, default_catalog
from oyster.models import ScriptSymbols
from oyster.parser import DEFAULT_COMMENT_PREFIXES, parse, parse_line, split_lines
from oyster.validator import DECLARING_COMMANDS


@dataclass(frozen=True, slots=True)
class CompletionItem:
    label: str
    detail: str
    documentation: str
    insert_text: str


def _param_signature(param: ParamDescription) -> str:
    if param.default is None:
        return f"{param.name}: {param.type}"
    default = str(param.default).lower() if isinstance(param.default, bool) else repr(param.default)
    return f"{param.name}: {param.type} = {default}"


def signature(description: CommandDescription) -> str:
    parts = [_param_signature(param) for param in description.required]
    parts.extend(_param_signature(param) for param in description.trailing)
    parts.extend(_param_signature(param) for param in description.optional)
    return f"{description.name} [{', '.join(parts)}]"


def hover_markdown(name: str, catalog: CommandCatalog | None = None) -> str | None:
    """Markdown hover text for a command, or ``None`` when it is unknown."""
    description = (catalog or default_catalog()).describe(name)
    if description is None:
        return None

    lines = [
        f"**{description.name}** _(since {description.introduced_version})_",
        "",
        description.description,
        "",
        f"`{signature(description)}`",
    ]
    for title, params in (
        ("Required", description.required),
        ("Optional positional", description.trailing),
        ("Optional", description.optional),
    ):
        if not params:
            continue
        lines.extend(["", f"{title}:"])
        lines.extend(f"- `{param.name}` ({param.type}): {param.description}" for param in params)
    lines.extend(["", f"Games: {', '.join(description.compatible_games) or 'Base'}"])
    if description.doc_url:
        lines.append(f"[Documentation]({description.doc_url})")
    return "\n".join(lines)


def _snippet(description: CommandDescription) -> str:
    placeholders = []
    for index, param in enumerate(description.required, start=1):
        default = '""' if param.type == "string" else "0" if param.type == "int" else "false"
        placeholders.append(f"${{{index}:{default}}}")
    return f"{description.name} [{', '.join(placeholders)}]"


def completion_items(prefix: str = "", catalog: CommandCatalog | None = None) -> list[CompletionItem]:
    """Catalog commands whose name starts with ``prefix`` (case-insensitive)."""
    active = catalog or default_catalog()
    items: list[CompletionItem] = []
    for contract in active.contracts():
        if not contract.name.lower().startswith(prefix.lower()):
            continue
        description = active.describe(contract.name)
        if description is None:
            continue
        items.append(
            CompletionItem(
                label=description.name,
                detail=signature(description),
                documentation=description.description,
                insert_text=_snippet(description),
            )
        )
    return items


def document_symbols(
    source: str,
    comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
) -> ScriptSymbols:
    """Line markers and variables declared by a script (first declaration wins)."""
    symbols = ScriptSymbols()
    for statement in parse(source, comment_prefixes=comment_prefixes):
        if not statement.params:
            continue
        name = statement.params[0].value
        if statement.key == "line_marker":
            symbols.markers.setdefault(name, statement.line)
        elif statement.key in DECLARING_COMMANDS:
            symbols.variables.setdefault(name, (DECLARING_COMMANDS[statement.key], statement.line))
    return symbols


def command_at(source: str, line: int, catalog: CommandCatalog | None = None) -> CommandDescription | None:
    """Describe the command written on ``line`` (zero-based), if any."""
    lines = split_lines(source)
    if not 0 <= line < len(lines):
        return None
    statement = parse_line(lines[line], line)
    if statement is None:
        return None
    return (catalog or default_catalog()).describe(statement.command)
