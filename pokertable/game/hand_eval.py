"""Hand evaluation for Texas Hold'em.

Showdown only needs two things from a hand: a comparable integer
``value`` and a ``category`` label. Every 5-card subset of the player's
cards is classified and the strongest one is kept.
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import combinations

from pokertable.game.deck import Card, Rank


class HandRank(IntEnum):
    """Poker hand categories (higher is better)."""
    HIGH_CARD = 1
    PAIR = 2
    TWO_PAIR = 3
    THREE_OF_A_KIND = 4
    STRAIGHT = 5
    FLUSH = 6
    FULL_HOUSE = 7
    FOUR_OF_A_KIND = 8
    STRAIGHT_FLUSH = 9
    ROYAL_FLUSH = 10

    @property
    def label(self) -> str:
        """Human-readable category name."""
        return self.name.replace("_", " ").title()


# Rank-count shape of a hand -> category, for hands that are not
# straights or flushes.
_SHAPES = {
    (4, 1): HandRank.FOUR_OF_A_KIND,
    (3, 2): HandRank.FULL_HOUSE,
    (3, 1, 1): HandRank.THREE_OF_A_KIND,
    (2, 2, 1): HandRank.TWO_PAIR,
    (2, 1, 1, 1): HandRank.PAIR,
    (1, 1, 1, 1, 1): HandRank.HIGH_CARD,
}

_WHEEL = (14, 5, 4, 3, 2)

# Tiebreakers are ranks (2-14); base 15 keeps them ordered when packed.
_BASE = 15
_SLOTS = 5


def _describe(rank: HandRank, values: tuple[int, ...]) -> str:
    top = Rank(values[0])
    if rank == HandRank.ROYAL_FLUSH:
        return "Royal Flush"
    if rank == HandRank.FULL_HOUSE:
        return f"Full House, {top}s full of {Rank(values[1])}s"
    if rank == HandRank.TWO_PAIR:
        return f"Two Pair, {top}s and {Rank(values[1])}s"
    if rank == HandRank.PAIR:
        return f"Pair of {top}s"
    if rank in (HandRank.FOUR_OF_A_KIND, HandRank.THREE_OF_A_KIND):
        return f"{rank.label}, {top}s"
    if rank == HandRank.HIGH_CARD:
        return f"High Card, {top}"
    return f"{rank.label}, {top} high"


@dataclass(frozen=True)
class HandResult:
    """A classified 5-card hand.

    ``values`` holds the tiebreak ranks, most significant first. Results
    compare by ``value``, so equal hands in different suits are equal.
    """
    rank: HandRank
    values: tuple[int, ...]
    cards: tuple[Card, ...] = field(compare=False)

    @property
    def value(self) -> int:
        """Single integer strength."""
        total = int(self.rank)
        for v in self.values + (0,) * (_SLOTS - len(self.values)):
            total = total * _BASE + v
        return total

    @property
    def category(self) -> str:
        return self.rank.label

    @property
    def description(self) -> str:
        return _describe(self.rank, self.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandResult):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: "HandResult") -> bool:
        return self.value < other.value

    def __le__(self, other: "HandResult") -> bool:
        return self.value <= other.value

    def __gt__(self, other: "HandResult") -> bool:
        return self.value > other.value

    def __ge__(self, other: "HandResult") -> bool:
        return self.value >= other.value


def _straight_high(ranks: tuple[int, ...]) -> int:
    """High card of a straight, or 0. ``ranks`` is sorted descending."""
    if len(set(ranks)) != 5:
        return 0
    if ranks == _WHEEL:
        return 5
    if ranks[0] - ranks[4] == 4:
        return ranks[0]
    return 0


def evaluate_five(cards: list[Card]) -> HandResult:
    """Classify exactly five cards.

    Raises:
        ValueError: If not given five cards.
    """
    if len(cards) != 5:
        raise ValueError(f"Expected 5 cards, got {len(cards)}")

    ranks = tuple(sorted((c.rank.value for c in cards), reverse=True))
    flush = len({c.suit for c in cards}) == 1
    high = _straight_high(ranks)

    if high and flush:
        rank = HandRank.ROYAL_FLUSH if high == 14 else HandRank.STRAIGHT_FLUSH
        return HandResult(rank, (high,), tuple(cards))

    # Groups ordered by size, then rank: the tiebreak order for every shape
    groups = sorted(Counter(ranks).items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = tuple(count for _, count in groups)
    grouped = tuple(r for r, _ in groups)

    category = _SHAPES[shape]
    if category >= HandRank.FULL_HOUSE:
        return HandResult(category, grouped, tuple(cards))
    if flush:
        return HandResult(HandRank.FLUSH, ranks, tuple(cards))
    if high:
        return HandResult(HandRank.STRAIGHT, (high,), tuple(cards))
    return HandResult(category, grouped, tuple(cards))


def evaluate_hand(hole_cards: list[Card], community_cards: list[Card]) -> HandResult:
    """Evaluate the best 5-card hand from hole cards and community cards.

    Args:
        hole_cards: Player's 2 hole cards.
        community_cards: 3-5 community cards.

    Returns:
        Strongest HandResult.

    Raises:
        ValueError: If fewer than five cards are given.
    """
    pool = list(hole_cards) + list(community_cards)
    if len(pool) < 5:
        raise ValueError(f"Need at least 5 cards, got {len(pool)}")

    return max(
        (evaluate_five(list(combo)) for combo in combinations(pool, 5)),
        key=lambda result: result.value,
    )
