"""Game adapters (side effects and predicates outside the VM)."""

from .game_bridge import EchoGameBridge, GameBridge, GameCommand

__all__ = [
    "EchoGameBridge",
    "GameBridge",
    "GameCommand",
]
