"""Single-table Texas Hold'em betting engine."""
from pokertable.game import (
    ActionType,
    Card,
    GameEvent,
    GameState,
    Player,
    Table,
)
from pokertable.session import GameSession

__all__ = [
    "ActionType",
    "Card",
    "GameEvent",
    "GameState",
    "Player",
    "Table",
    "GameSession",
]
