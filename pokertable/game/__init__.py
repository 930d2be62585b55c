"""Game engine module."""
from .deck import Deck, Card, Suit, Rank
from .player import Player
from .hand_eval import evaluate_hand, HandRank, HandResult
from .betting import (
    Action,
    ActionType,
    BettingEngine,
    SimpleAction,
    WagerAction,
    make_action,
)
from .events import EventBus, GameEvent
from .history import GameLogEntry, HistoryRecorder, LogEntryType
from .pot import Pot, split_pot
from .state import GameState
from .table import Table, Winner
from .timeout import TurnTimer, TurnHandle

__all__ = [
    "Deck",
    "Card",
    "Suit",
    "Rank",
    "Player",
    "evaluate_hand",
    "HandRank",
    "HandResult",
    "Action",
    "ActionType",
    "BettingEngine",
    "SimpleAction",
    "WagerAction",
    "make_action",
    "EventBus",
    "GameEvent",
    "GameLogEntry",
    "HistoryRecorder",
    "LogEntryType",
    "Pot",
    "split_pot",
    "GameState",
    "Table",
    "Winner",
    "TurnTimer",
    "TurnHandle",
]
