"""Immutable command catalog shared by the validator, the VM and editor helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from oyster.commands import COMMANDS, GAME_ALIASES
from oyster.models import CommandContract, CommandParam, VariableValue

_LEADING_DIGITS = re.compile(r"^\d+")


@dataclass(frozen=True, slots=True)
class ParamDescription:
    name: str
    type: str
    description: str
    default: VariableValue | None = None


@dataclass(frozen=True, slots=True)
class CommandDescription:
    """Catalog data an editor shows for a command on hover or completion."""

    name: str
    description: str
    introduced_version: str
    compatible_games: tuple[str, ...]
    required: tuple[ParamDescription, ...]
    optional: tuple[ParamDescription, ...]
    doc_url: str | None = None
    trailing: tuple[ParamDescription, ...] = ()


def version_number(version: str | None) -> int | None:
    """Collapse a dotted version tag into a comparable integer ("4.1.0" -> 410)."""
    if not version:
        return None
    match = _LEADING_DIGITS.match(version.strip().replace(".", ""))
    if not match:
        return None
    return int(match.group(0))


class CommandCatalog(Mapping[str, CommandContract]):
    """Read-only mapping of lower-cased command names to contracts."""

    def __init__(
        self,
        contracts: Iterable[CommandContract],
        *,
        game_aliases: Mapping[str, str] | None = None,
    ) -> None:
        table: dict[str, CommandContract] = {}
        for contract in contracts:
            key = contract.name.lower()
            if key in table:
                raise ValueError(f"Duplicate Oyster command in catalog: {contract.name}")
            table[key] = contract
        self._contracts = MappingProxyType(table)
        self._aliases = MappingProxyType({key.casefold(): value for key, value in (game_aliases or {}).items()})

    def __getitem__(self, name: str) -> CommandContract:
        return self._contracts[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._contracts)

    def __len__(self) -> int:
        return len(self._contracts)

    def resolve(self, name: str) -> CommandContract | None:
        """Case-insensitive lookup; ``None`` for unknown commands."""
        return self._contracts.get(name.lower())

    def contracts(self) -> list[CommandContract]:
        return sorted(self._contracts.values(), key=lambda contract: contract.name.lower())

    def resolve_game(self, game: str) -> str:
        """Map a script's game name through the alias table to its canonical name."""
        normalized = game.strip()
        alias = self._aliases.get(normalized.casefold())
        if alias is not None:
            return alias
        for canonical in self._aliases.values():
            if canonical.casefold() == normalized.casefold():
                return canonical
        return normalized

    def describe(self, name: str) -> CommandDescription | None:
        contract = self.resolve(name)
        if contract is None:
            return None
        return CommandDescription(
            name=contract.name,
            description=contract.description,
            introduced_version=contract.introduced_version,
            compatible_games=contract.compatible_games,
            required=tuple(_describe_param(param) for param in contract.required),
            optional=tuple(_describe_param(param) for param in contract.optional),
            doc_url=contract.doc_url,
            trailing=tuple(_describe_param(param) for param in contract.trailing),
        )


def _describe_param(param: CommandParam) -> ParamDescription:
    return ParamDescription(
        name=param.name,
        type=param.type,
        description=param.description,
        default=param.default,
    )


@lru_cache(maxsize=1)
def default_catalog() -> CommandCatalog:
    """Catalog of the built-in Oyster commands, built once per process."""
    return CommandCatalog(COMMANDS, game_aliases=GAME_ALIASES)
