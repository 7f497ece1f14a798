from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

ParamType = Literal["string", "int", "bool"]
VariableValue = Union[int, bool, str]

UNIVERSAL_GAME = "Base"


@dataclass(frozen=True, slots=True)
class CommandParam:
    name: str
    type: ParamType
    description: str = ""
    default: VariableValue | None = None


@dataclass(frozen=True, slots=True)
class CommandContract:
    """Machine-checkable contract for one Oyster command."""

    name: str
    description: str
    introduced_version: str
    compatible_games: tuple[str, ...] = (UNIVERSAL_GAME,)
    required: tuple[CommandParam, ...] = ()
    optional: tuple[CommandParam, ...] = ()
    doc_url: str | None = None
    # Positional values that may follow the required ones and be left out.
    trailing: tuple[CommandParam, ...] = ()

    @property
    def is_universal(self) -> bool:
        return not self.compatible_games or UNIVERSAL_GAME in self.compatible_games

    def optional_param(self, name: str) -> CommandParam | None:
        for param in self.optional:
            if param.name == name:
                return param
        return None


@dataclass(frozen=True, slots=True)
class Param:
    """One bracket parameter; ``name`` is ``None`` for positional values."""

    value: str
    raw_value: str
    name: str | None = None

    def to_source(self) -> str:
        if self.name is None:
            return self.raw_value
        return f"{self.name}={self.raw_value}"


@dataclass(frozen=True, slots=True)
class Statement:
    command: str
    params: tuple[Param, ...] = ()
    line: int = 0
    raw: str = ""

    @property
    def key(self) -> str:
        return self.command.lower()

    @property
    def positional(self) -> tuple[Param, ...]:
        return tuple(param for param in self.params if param.name is None)

    def named(self, name: str) -> Param | None:
        for param in self.params:
            if param.name == name:
                return param
        return None

    def to_source(self) -> str:
        return f"{self.command} [{', '.join(param.to_source() for param in self.params)}]"


@dataclass(frozen=True, slots=True)
class IntValue:
    value: int


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool


@dataclass(frozen=True, slots=True)
class StringValue:
    text: str
    interpolated: bool = False


@dataclass(frozen=True, slots=True)
class VarRef:
    name: str


Value = Union[IntValue, BoolValue, StringValue, VarRef]


@dataclass(slots=True)
class Variable:
    name: str
    type: ParamType
    value: VariableValue
    declared_line: int | None = None


@dataclass(slots=True)
class ScriptSymbols:
    """Names declared by a script, with the lines that declare them."""

    markers: dict[str, int] = field(default_factory=dict)
    variables: dict[str, tuple[ParamType, int]] = field(default_factory=dict)
