"""Player model."""
from dataclasses import dataclass, field

from pokertable.game.deck import Card


@dataclass
class Player:
    """A player seated at a table.
    
    The same instance is shared between the session and each hand's table,
    which is how chip balances carry over from one hand to the next.
    """
    
    player_id: str
    name: str
    chips: int = 0
    hand: list[Card] = field(default_factory=list)
    is_folded: bool = False
    bet_amount: int = 0
    seat_number: int = -1
    show_cards: bool = False
    
    def reset_for_new_hand(self) -> None:
        """Reset player state for a new hand."""
        self.hand = []
        self.is_folded = False
        self.bet_amount = 0
        self.show_cards = False
    
    def bet(self, amount: int) -> int:
        """Move chips from the stack into this round's bet.
        
        Callers validate the amount first; this never clamps.
        
        Args:
            amount: Amount to bet.
            
        Returns:
            The amount bet.
        """
        self.chips -= amount
        self.bet_amount += amount
        return amount
    
    def fold(self) -> None:
        """Fold the hand."""
        self.is_folded = True
    
    def receive_cards(self, cards: list[Card]) -> None:
        """Receive hole cards.
        
        Args:
            cards: Cards to receive.
        """
        self.hand = list(cards)
    
    def win_pot(self, amount: int) -> None:
        """Win chips from the pot.
        
        Args:
            amount: Amount won.
        """
        self.chips += amount
    
    @property
    def can_act(self) -> bool:
        """Check if player can take a turn."""
        return not self.is_folded and self.chips > 0
    
    def to_dict(self, hide_cards: bool = True) -> dict:
        """Convert to dictionary for display.
        
        Args:
            hide_cards: If True, don't include hole cards.
            
        Returns:
            Player state dictionary.
        """
        data = {
            "player_id": self.player_id,
            "name": self.name,
            "seat_number": self.seat_number,
            "chips": self.chips,
            "is_folded": self.is_folded,
            "bet_amount": self.bet_amount,
            "show_cards": self.show_cards,
            "has_cards": len(self.hand) > 0,
        }
        
        if not hide_cards:
            data["hand"] = [str(c) for c in self.hand]
        
        return data
