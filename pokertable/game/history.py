"""Hand history: immutable snapshots appended after every change."""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from pokertable.game.betting import ActionType
from pokertable.game.events import EventBus, GameEvent
from pokertable.game.state import GameState
from pokertable.utils.logger import get_logger

if TYPE_CHECKING:
    from pokertable.game.table import Table

logger = get_logger(__name__)


class LogEntryType(str, Enum):
    """Kinds of history entries."""
    PLAYER_ACTION = "PlayerAction"
    GAME_STATE_CHANGE = "GameStateChange"
    POT_UPDATE = "PotUpdate"
    ROUND_END = "RoundEnd"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ============= Entry details =============

class PlayerActionRecord(_Frozen):
    """A player's action."""
    kind: Literal["PlayerAction"] = "PlayerAction"
    player_id: str
    action: ActionType
    amount: Optional[int] = None


class GameStateChangeRecord(_Frozen):
    """A state machine transition."""
    kind: Literal["GameStateChange"] = "GameStateChange"
    new_state: GameState


class PotUpdateRecord(_Frozen):
    """The pot changed size."""
    kind: Literal["PotUpdate"] = "PotUpdate"
    pot_amount: int


class RoundEndRecord(_Frozen):
    """The hand was settled."""
    kind: Literal["RoundEnd"] = "RoundEnd"
    winner_ids: tuple[str, ...]
    final_pot: int


LogDetails = Annotated[
    Union[PlayerActionRecord, GameStateChangeRecord, PotUpdateRecord, RoundEndRecord],
    Field(discriminator="kind"),
]


# ============= Snapshots =============

class PlayerSnapshot(_Frozen):
    """One player's state at the time of an entry."""
    player_id: str
    chips: int
    cards: tuple[str, ...]
    is_folded: bool
    bet_amount: int


class GameLogEntry(_Frozen):
    """An immutable history entry."""
    timestamp: datetime
    type: LogEntryType
    details: LogDetails
    players: tuple[PlayerSnapshot, ...]
    community_cards: tuple[str, ...]


class HistoryRecorder:
    """Appends a snapshot of the table after every action or state change.

    The recorder listens on the table's event bus, so entries are written
    inline, right after the change that triggered them.
    """

    def __init__(self, table: "Table", events: EventBus):
        """Attach to a table.

        Args:
            table: Table to snapshot.
            events: Bus carrying the table's events.
        """
        self._table = table
        self._entries: list[GameLogEntry] = []

        events.subscribe(GameEvent.PLAYER_ACTION, self._on_player_action)
        events.subscribe(GameEvent.GAME_STATE_CHANGED, self._on_state_changed)
        events.subscribe(GameEvent.POT_UPDATED, self._on_pot_updated)
        events.subscribe(GameEvent.GAME_ENDED, self._on_game_ended)

    @property
    def entries(self) -> tuple[GameLogEntry, ...]:
        """All entries, oldest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry_type: LogEntryType, details: BaseModel) -> GameLogEntry:
        """Snapshot the table and append an entry.

        Args:
            entry_type: Kind of entry.
            details: Matching details record.

        Returns:
            The appended entry.
        """
        entry = GameLogEntry(
            timestamp=datetime.now(timezone.utc),
            type=entry_type,
            details=details,
            players=tuple(
                PlayerSnapshot(
                    player_id=p.player_id,
                    chips=p.chips,
                    cards=tuple(str(c) for c in p.hand),
                    is_folded=p.is_folded,
                    bet_amount=p.bet_amount,
                )
                for p in self._table.players
            ),
            community_cards=tuple(str(c) for c in self._table.community_cards),
        )
        self._entries.append(entry)
        return entry

    def _on_player_action(self, _topic: GameEvent, data: dict) -> None:
        self.record(
            LogEntryType.PLAYER_ACTION,
            PlayerActionRecord(
                player_id=data["player_id"],
                action=data["action"],
                amount=data.get("amount"),
            ),
        )

    def _on_state_changed(self, _topic: GameEvent, data: dict) -> None:
        self.record(
            LogEntryType.GAME_STATE_CHANGE,
            GameStateChangeRecord(new_state=data["state"]),
        )

    def _on_pot_updated(self, _topic: GameEvent, data: dict) -> None:
        self.record(LogEntryType.POT_UPDATE, PotUpdateRecord(pot_amount=data["pot"]))

    def _on_game_ended(self, _topic: GameEvent, data: dict) -> None:
        self.record(
            LogEntryType.ROUND_END,
            RoundEndRecord(
                winner_ids=tuple(w.player.player_id for w in data["winners"]),
                final_pot=data["pot"],
            ),
        )
