"""Multi-hand session: successive tables sharing the same players."""
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from pokertable.config import config
from pokertable.game.errors import (
    InsufficientPlayers,
    InvalidStateForAction,
    PlayerNotFound,
    PokerEngineError,
    SeatTaken,
    TableFull,
)
from pokertable.game.history import GameLogEntry
from pokertable.game.player import Player
from pokertable.game.state import GameState
from pokertable.game.table import Table, blind_posts
from pokertable.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HandHistory:
    """History of one completed or running hand."""
    table_id: str
    hand_number: int
    entries: tuple[GameLogEntry, ...]


class GameSession:
    """Runs hands one after another and carries chip counts forward.
    
    Players are shared by reference with every table, so whatever a hand
    pays out is already in their stacks when the next hand starts.
    """
    
    def __init__(
        self,
        session_id: Optional[str] = None,
        small_blind: Optional[int] = None,
        big_blind: Optional[int] = None,
        minimum_bet: Optional[int] = None,
        max_players: Optional[int] = None,
        turn_time_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize a session.
        
        Args:
            session_id: Unique session identifier.
            small_blind: Small blind for every hand.
            big_blind: Big blind for every hand.
            minimum_bet: Minimum bet for every hand.
            max_players: Seats per table.
            turn_time_seconds: Turn time limit for every hand.
            rng: Random source shared by every hand's deck.
        """
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.small_blind = small_blind if small_blind is not None else config.small_blind
        self.big_blind = big_blind if big_blind is not None else config.big_blind
        self.minimum_bet = minimum_bet if minimum_bet is not None else config.minimum_bet
        self.max_players = max_players if max_players is not None else config.max_players
        self.turn_time_seconds = turn_time_seconds
        self._rng = rng
        
        self.players: list[Player] = []
        self._hands: list[Table] = []
        self._dealer_index = -1
    
    def add_player(self, player: Player) -> None:
        """Add a player to the session.
        
        Raises:
            TableFull: The session already has max_players players.
            SeatTaken: A player with this id is already in the session.
        """
        if len(self.players) >= self.max_players:
            raise TableFull("No more players allowed in this session")
        if self.get_player(player.player_id) is not None:
            raise SeatTaken(f"Player {player.player_id} already joined")
        self.players.append(player)
        logger.info(f"{player.name} joined session {self.session_id} with {player.chips} chips")
    
    def remove_player(self, player_id: str) -> Player:
        """Remove a player; a hand in progress keeps its own reference.
        
        Raises:
            PlayerNotFound: No such player.
        """
        player = self.get_player(player_id)
        if player is None:
            raise PlayerNotFound(f"Player {player_id} not found")
        self.players.remove(player)
        logger.info(f"{player.name} left session {self.session_id}")
        return player
    
    def get_player(self, player_id: str) -> Optional[Player]:
        """Get a player by id."""
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None
    
    @property
    def current_hand(self) -> Optional[Table]:
        """The most recent hand, if any."""
        return self._hands[-1] if self._hands else None
    
    @property
    def hand_count(self) -> int:
        """Number of hands started."""
        return len(self._hands)
    
    def start_new_hand(self) -> Table:
        """Seat every player who can post the big blind at a fresh table and start it.
        
        The dealer button moves one seat per hand. A hand that fails to
        start is discarded and the button stays where it was.
        
        Returns:
            The running table.
            
        Raises:
            InvalidStateForAction: The current hand has not ended.
            InsufficientPlayers: Fewer than two players can post the big blind.
            ActionError: The table rejected a blind.
        """
        current = self.current_hand
        if current is not None and current.game_state.in_hand:
            raise InvalidStateForAction("The current hand has not ended")
        
        _, big_post = blind_posts(self.small_blind, self.big_blind, self.minimum_bet)
        eligible = [p for p in self.players if p.chips >= big_post]
        if len(eligible) < 2:
            raise InsufficientPlayers(
                f"Need at least 2 players who can post the {big_post} big blind, have {len(eligible)}"
            )
        
        previous_dealer = self._dealer_index
        self._dealer_index = (self._dealer_index + 1) % len(eligible)
        hand_number = self.hand_count + 1
        table = Table(
            table_id=f"{self.session_id}-{hand_number}",
            max_players=self.max_players,
            players=eligible,
            current_dealer_index=self._dealer_index,
            minimum_bet=self.minimum_bet,
            small_blind=self.small_blind,
            big_blind=self.big_blind,
            turn_time_seconds=self.turn_time_seconds,
            rng=self._rng,
        )
        self._hands.append(table)
        
        try:
            table.start_game()
        except PokerEngineError as e:
            logger.error(f"Hand #{hand_number} of session {self.session_id} failed to start: {e}")
            self._hands.pop()
            self._dealer_index = previous_dealer
            raise
        
        logger.info(f"Started hand #{hand_number} on table {table.table_id}")
        return table
    
    def end_current_hand(self) -> None:
        """Fast-forward the current hand to settlement."""
        table = self.current_hand
        if table is None or table.game_state == GameState.WAITING_FOR_PLAYERS:
            return
        while table.game_state != GameState.ENDED:
            table.proceed_to_next_round()
        logger.info(f"Hand on table {table.table_id} ended")
    
    def get_hand_history(self) -> list[HandHistory]:
        """History of every hand, oldest first."""
        return [
            HandHistory(table_id=table.table_id, hand_number=i, entries=table.get_hand_history())
            for i, table in enumerate(self._hands, start=1)
        ]
    
    def get_chip_counts(self) -> dict[str, int]:
        """Current chips per player id."""
        return {p.player_id: p.chips for p in self.players}
