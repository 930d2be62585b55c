"""Hand state machine states."""
from enum import Enum


class GameState(str, Enum):
    """States of one hand, in the only order they can occur."""
    WAITING_FOR_PLAYERS = "waiting_for_players"
    PRE_FLOP = "pre-flop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"
    ENDED = "ended"
    
    @property
    def is_betting_street(self) -> bool:
        """Whether players bet in this state."""
        return self in (GameState.PRE_FLOP, GameState.FLOP, GameState.TURN, GameState.RIVER)
    
    @property
    def in_hand(self) -> bool:
        """Whether a hand is in progress."""
        return self not in (GameState.WAITING_FOR_PLAYERS, GameState.ENDED)
