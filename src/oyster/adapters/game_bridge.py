"""Boundary for game-side effects and predicates requested by scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(slots=True)
class GameCommand:
    """Canonical payload for a game-specific command forwarded by the VM."""

    name: str
    arguments: list[str] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)

    def render(self) -> str:
        parts = [*self.arguments, *(f"{key}={value}" for key, value in self.options.items())]
        return f"{self.name} [{', '.join(parts)}]"


class GameBridge(Protocol):
    """Interface to the game hosting an Oyster script."""

    def send(self, payload: GameCommand) -> str | None:
        """Perform a side-effect command (gifts, items, achievements, camera...)."""

    def check_has(self, person: str, item: str) -> bool:
        """Answer whether ``person`` has received ``item``."""


class EchoGameBridge:
    """Fallback bridge used for local CLI demos and tests."""

    def __init__(self, inventory: dict[str, set[str]] | None = None) -> None:
        self.inventory = inventory or {}
        self.sent: list[GameCommand] = []

    def send(self, payload: GameCommand) -> str:
        self.sent.append(payload)
        return f"executed: {payload.render()}"

    def check_has(self, person: str, item: str) -> bool:
        return item in self.inventory.get(person, set())
