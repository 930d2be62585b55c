"""Card deck implementation."""
import random
from enum import Enum
from dataclasses import dataclass
from typing import Optional

from pokertable.game.errors import DeckExhausted


class Suit(str, Enum):
    """Card suits."""
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"
    
    def __str__(self) -> str:
        return self.value


class Rank(int, Enum):
    """Card ranks (2-14, where 14 is Ace)."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    
    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {11: "J", 12: "Q", 13: "K", 14: "A"}[self.value]


@dataclass(frozen=True)
class Card:
    """A playing card."""
    rank: Rank
    suit: Suit
    
    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"
    
    def __repr__(self) -> str:
        return str(self)
    
    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Parse card from string like 'Ah', '10s', 'Tc', '2c'.
        
        Args:
            s: Card string (rank + suit).
            
        Returns:
            Card instance.
        """
        suit = Suit(s[-1].lower())
        rank_str = s[:-1].upper()
        
        rank_map = {"A": 14, "K": 13, "Q": 12, "J": 11, "T": 10}
        if rank_str in rank_map:
            rank = Rank(rank_map[rank_str])
        else:
            rank = Rank(int(rank_str))
        
        return cls(rank=rank, suit=suit)


DECK_SIZE = 52


class Deck:
    """A standard 52-card deck, drawn from the end."""
    
    def __init__(self, rng: Optional[random.Random] = None):
        """Build and shuffle a fresh deck.
        
        Args:
            rng: Random source; a private ``random.Random`` if omitted.
        """
        self._rng = rng or random.Random()
        self._cards: list[Card] = [
            Card(rank=rank, suit=suit)
            for suit in Suit
            for rank in Rank
        ]
        self.shuffle()
    
    def shuffle(self) -> None:
        """Fisher-Yates shuffle of the remaining cards."""
        cards = self._cards
        for i in range(len(cards) - 1, 0, -1):
            j = self._rng.randint(0, i)
            cards[i], cards[j] = cards[j], cards[i]
    
    def draw(self) -> Card:
        """Remove and return the last card.
        
        Raises:
            DeckExhausted: If the deck is empty.
        """
        if not self._cards:
            raise DeckExhausted("Cannot draw from an empty deck")
        return self._cards.pop()
    
    def deal(self, count: int = 1) -> list[Card]:
        """Draw several cards.
        
        Args:
            count: Number of cards to deal.
            
        Returns:
            List of dealt cards, in draw order.
            
        Raises:
            DeckExhausted: If not enough cards remain.
        """
        if count > len(self._cards):
            raise DeckExhausted(f"Cannot deal {count} cards, only {len(self._cards)} remain")
        return [self.draw() for _ in range(count)]
    
    @property
    def remaining(self) -> int:
        """Number of cards remaining in the deck."""
        return len(self._cards)
    
    @property
    def dealt(self) -> int:
        """Number of cards drawn so far."""
        return DECK_SIZE - len(self._cards)
    
    def cards(self) -> tuple[Card, ...]:
        """Remaining cards, bottom first."""
        return tuple(self._cards)
    
    def __len__(self) -> int:
        return len(self._cards)
