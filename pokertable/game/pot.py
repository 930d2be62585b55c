"""Pot accounting and pot splitting."""
from dataclasses import dataclass, field

from pokertable.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Pot:
    """Chips wagered in the current hand.
    
    Side pots are not modelled: every non-folded player contests the
    whole pot.
    """
    
    total: int = 0
    _contributions: dict[str, int] = field(default_factory=dict)  # player_id -> chips put in
    
    def add_bet(self, player_id: str, amount: int) -> None:
        """Add a bet to the pot.
        
        Args:
            player_id: Contributing player's id.
            amount: Bet amount.
        """
        self._contributions[player_id] = self._contributions.get(player_id, 0) + amount
        self.total += amount
    
    def get_contribution(self, player_id: str) -> int:
        """Get a player's total contribution this hand."""
        return self._contributions.get(player_id, 0)
    
    def take_all(self) -> int:
        """Empty the pot and return what it held."""
        amount = self.total
        self.total = 0
        return amount
    
    def reset(self) -> None:
        """Reset pot for new hand."""
        self.total = 0
        self._contributions = {}
    

def split_pot(amount: int, winner_ids: list[str]) -> dict[str, int]:
    """Divide a pot among tied winners.
    
    Every winner gets ``amount // len(winner_ids)``; the odd chips go one
    each to the first winners in the given order, so the shares always sum
    to ``amount``.
    
    Args:
        amount: Pot size.
        winner_ids: Winners, in odd-chip priority order.
        
    Returns:
        Dict of player_id -> amount won.
    """
    if not winner_ids:
        return {}
    
    share = amount // len(winner_ids)
    remainder = amount % len(winner_ids)
    
    winnings: dict[str, int] = {}
    for i, winner in enumerate(winner_ids):
        winnings[winner] = winnings.get(winner, 0) + share + (1 if i < remainder else 0)
    
    if remainder:
        logger.debug(f"Split {amount} {len(winner_ids)} ways, {remainder} odd chip(s)")
    
    return winnings
