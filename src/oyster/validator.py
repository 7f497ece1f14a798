"""Two-pass linter for Oyster scripts.

The first pass collects variable declarations and the script's ``Meta``
target; the second pass checks every command line against the catalog.
Validation never raises: malformed input only ever produces diagnostics.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from oyster.catalog import CommandCatalog, default_catalog, version_number
from oyster.diagnostics import (
    COMMAND_UNKNOWN,
    COMPAT_GAME,
    COMPAT_VERSION,
    PARAM_EXPECTED_NAMED,
    PARAM_INVALID_TYPE,
    PARAM_MISSING_REQUIRED,
    PARAM_UNKNOWN_OPTIONAL,
    SYNTAX_INVALID_COMMAND,
    VARIABLE_REDECLARED,
    VARIABLE_TYPE_MISMATCH,
    VARIABLE_UNKNOWN,
    VARIABLE_UNKNOWN_PLACEHOLDER,
    Diagnostic,
    TextRange,
    sort_diagnostics,
)
from oyster.models import CommandContract, CommandParam, ParamType
from oyster.parser import (
    BOOL_RE,
    DEFAULT_COMMENT_PREFIXES,
    INT_RE,
    PLACEHOLDER_RE,
    VAR_REF_RE,
    is_skippable,
    match_command,
    split_lines,
    split_named,
    split_params,
    strip_quotes,
)

DECLARING_COMMANDS: dict[str, ParamType] = {
    "set_intvar": "int",
    "set_boolvar": "bool",
    "set_stringvar": "string",
}

_STRING_RE = re.compile(r'^\$?".*"$')
_QUOTED_IDENTIFIER = re.compile(r'^"([A-Za-z_][A-Za-z0-9_]*)"$')


@dataclass(slots=True)
class VariableDeclaration:
    type: ParamType
    command: str
    line: int


@dataclass(frozen=True, slots=True)
class DeclarationConflict:
    name: str
    attempted_type: ParamType
    range: TextRange


@dataclass(slots=True)
class ScriptFacts:
    """Everything the first pass learns about a script."""

    variables: dict[str, VariableDeclaration]
    conflicts: list[DeclarationConflict]
    game: str | None = None
    version: str | None = None


def _line_range(index: int, raw: str) -> TextRange:
    stripped = raw.strip()
    start = len(raw) - len(raw.lstrip())
    return TextRange(line=index, start=start, end=start + len(stripped))


def _matches_type(token: str, param_type: ParamType) -> bool:
    if param_type == "string":
        return bool(_STRING_RE.match(token))
    if param_type == "int":
        return bool(INT_RE.match(token))
    if param_type == "bool":
        return bool(BOOL_RE.match(token))
    return False


def collect_facts(
    source: str,
    comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
) -> ScriptFacts:
    prefixes = tuple(comment_prefixes)
    facts = ScriptFacts(variables={}, conflicts=[])
    for index, raw in enumerate(split_lines(source)):
        text = raw.strip()
        if is_skippable(text, prefixes):
            continue
        matched = match_command(text)
        if matched is None:
            continue
        command, content = matched
        key = command.lower()
        tokens = split_params(content)

        if key == "meta":
            for token in tokens:
                named = split_named(token)
                if named is None:
                    continue
                name, value = named
                if name == "game":
                    facts.game = strip_quotes(value)
                elif name == "version":
                    facts.version = strip_quotes(value)
            continue

        var_type = DECLARING_COMMANDS.get(key)
        if var_type is None or not tokens:
            continue
        identifier = _QUOTED_IDENTIFIER.match(tokens[0])
        if identifier is None:
            continue

        name = identifier.group(1)
        existing = facts.variables.get(name)
        if existing is None:
            facts.variables[name] = VariableDeclaration(type=var_type, command=command, line=index)
        elif existing.type == var_type:
            existing.line = index
        else:
            facts.conflicts.append(
                DeclarationConflict(name=name, attempted_type=var_type, range=_line_range(index, raw))
            )
    return facts


class OysterValidator:
    """Checks scripts against a command catalog."""

    def __init__(
        self,
        catalog: CommandCatalog | None = None,
        *,
        comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
    ) -> None:
        self._catalog = catalog or default_catalog()
        self._comment_prefixes = tuple(comment_prefixes)

    def validate(self, source: str) -> list[Diagnostic]:
        facts = collect_facts(source, self._comment_prefixes)
        diagnostics: list[Diagnostic] = []

        for index, raw in enumerate(split_lines(source)):
            text = raw.strip()
            if is_skippable(text, self._comment_prefixes):
                continue
            diagnostics.extend(self._validate_line(text, _line_range(index, raw), facts))

        for conflict in facts.conflicts:
            declared = facts.variables[conflict.name]
            diagnostics.append(
                Diagnostic.from_spec(
                    VARIABLE_REDECLARED,
                    conflict.range,
                    f"Variable '{conflict.name}' cannot be redeclared as {conflict.attempted_type}; "
                    f"previously declared as {declared.type} at line {declared.line + 1}",
                    hint=f"Use {declared.command} to update '{conflict.name}' or pick a new name.",
                )
            )
        return sort_diagnostics(diagnostics)

    def _validate_line(self, text: str, text_range: TextRange, facts: ScriptFacts) -> list[Diagnostic]:
        matched = match_command(text)
        if matched is None:
            return [Diagnostic.from_spec(SYNTAX_INVALID_COMMAND, text_range)]

        command, content = matched
        contract = self._catalog.resolve(command)
        if contract is None:
            return [
                Diagnostic.from_spec(
                    COMMAND_UNKNOWN,
                    text_range,
                    f"Unknown Oyster command: {command}",
                )
            ]

        diagnostics = self._check_compatibility(contract, text_range, facts)
        tokens = split_params(content)

        for position, param in enumerate(contract.required):
            if position >= len(tokens):
                diagnostics.append(
                    Diagnostic.from_spec(
                        PARAM_MISSING_REQUIRED,
                        text_range,
                        f"Missing required parameter {param.name} for {contract.name}",
                    )
                )
                continue
            diagnostics.extend(
                self._check_value(tokens[position], param, f"Parameter {param.name}", text_range, facts)
            )

        trailing = list(contract.trailing)
        for token in tokens[len(contract.required) :]:
            named = split_named(token)
            if named is None:
                if trailing:
                    param = trailing.pop(0)
                    diagnostics.extend(
                        self._check_value(token, param, f"Parameter {param.name}", text_range, facts)
                    )
                    continue
                diagnostics.append(Diagnostic.from_spec(PARAM_EXPECTED_NAMED, text_range))
                continue
            key, value = named
            option = contract.optional_param(key)
            if option is None:
                diagnostics.append(
                    Diagnostic.from_spec(
                        PARAM_UNKNOWN_OPTIONAL,
                        text_range,
                        f"Unknown optional parameter '{key}' for {contract.name}",
                    )
                )
                continue
            diagnostics.extend(
                self._check_value(value, option, f"Optional parameter '{key}'", text_range, facts)
            )
        return diagnostics

    def _check_compatibility(
        self,
        contract: CommandContract,
        text_range: TextRange,
        facts: ScriptFacts,
    ) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []

        script_version = version_number(facts.version)
        introduced = version_number(contract.introduced_version)
        if script_version is not None and introduced is not None and introduced > script_version:
            diagnostics.append(
                Diagnostic.from_spec(
                    COMPAT_VERSION,
                    text_range,
                    f"{contract.name} was introduced in Oyster {contract.introduced_version} "
                    f"but this script targets {facts.version}",
                )
            )

        if facts.game and not contract.is_universal:
            game = self._catalog.resolve_game(facts.game)
            if game not in contract.compatible_games:
                diagnostics.append(
                    Diagnostic.from_spec(
                        COMPAT_GAME,
                        text_range,
                        f"{contract.name} is not supported by {game}. "
                        f"Supported games: {', '.join(contract.compatible_games)}",
                    )
                )
        return diagnostics

    def _check_value(
        self,
        token: str,
        param: CommandParam,
        label: str,
        text_range: TextRange,
        facts: ScriptFacts,
    ) -> list[Diagnostic]:
        ref = VAR_REF_RE.match(token)
        if ref:
            name = ref.group(1)
            declared = facts.variables.get(name)
            if declared is None:
                return [Diagnostic.from_spec(VARIABLE_UNKNOWN, text_range, f"Unknown variable '${name}'")]
            if declared.type != param.type:
                return [
                    Diagnostic.from_spec(
                        VARIABLE_TYPE_MISMATCH,
                        text_range,
                        f"Variable '{name}' is {declared.type} (declared at line {declared.line + 1}) "
                        f"but {param.name} expects {param.type}",
                    )
                ]
            return []

        if not _matches_type(token, param.type):
            return [Diagnostic.from_spec(PARAM_INVALID_TYPE, text_range, f"{label} should be {param.type}")]

        if token.startswith('$"'):
            return [
                Diagnostic.from_spec(
                    VARIABLE_UNKNOWN_PLACEHOLDER,
                    text_range,
                    f"Unknown variable '{{{name}}}' in interpolated string",
                )
                for name in PLACEHOLDER_RE.findall(token)
                if name not in facts.variables
            ]
        return []


def validate(
    source: str,
    catalog: CommandCatalog | None = None,
    *,
    comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
) -> list[Diagnostic]:
    """Lint a whole document and return its diagnostics."""
    return OysterValidator(catalog, comment_prefixes=comment_prefixes).validate(source)
