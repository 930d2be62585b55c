"""Betting actions and the betting engine."""
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Union, TYPE_CHECKING

from pokertable.game.errors import (
    ActionError,
    BelowMinimumBet,
    BlindAmountTooLow,
    InsufficientChips,
    InvalidStateForAction,
    MissingAmount,
)
from pokertable.game.pot import Pot
from pokertable.game.state import GameState
from pokertable.utils.logger import get_logger

if TYPE_CHECKING:
    from pokertable.game.player import Player

logger = get_logger(__name__)


class ActionType(str, Enum):
    """Player action types."""
    FOLD = "fold"
    CALL = "call"
    RAISE = "raise"
    BET = "bet"
    CHECK = "check"
    SHOW = "show"
    HIDE = "hide"

    @property
    def needs_amount(self) -> bool:
        """Whether this action carries a chip amount."""
        return self in (ActionType.RAISE, ActionType.BET)


@dataclass(frozen=True)
class SimpleAction:
    """Fold, Call, Check, Show or Hide."""
    type: ActionType

    def __post_init__(self):
        kind = ActionType(self.type)
        if kind.needs_amount:
            raise MissingAmount(f"Must specify amount to {kind.value}")

    @property
    def amount(self) -> None:
        return None


@dataclass(frozen=True)
class WagerAction:
    """Bet or Raise, which always carry an amount."""
    type: ActionType
    amount: int

    def __post_init__(self):
        kind = ActionType(self.type)
        if not kind.needs_amount:
            raise ActionError(f"{kind.value} does not take an amount")
        if self.amount is None:
            raise MissingAmount(f"Must specify amount to {kind.value}")


Action = Union[SimpleAction, WagerAction]


def make_action(action: Union[ActionType, str, "Action"], amount: Optional[int] = None) -> Action:
    """Build a typed action from an action name and optional amount.

    Args:
        action: Action type (or its value), or an already-built action.
        amount: Chip amount, required for Bet and Raise.

    Returns:
        SimpleAction or WagerAction.

    Raises:
        MissingAmount: If a Bet or Raise has no amount.
        ValueError: If the action name is unknown.
    """
    if isinstance(action, (SimpleAction, WagerAction)):
        return action

    action_type = ActionType(action)
    if action_type.needs_amount:
        if amount is None:
            raise MissingAmount(f"Must specify amount to {action_type.value}")
        return WagerAction(type=action_type, amount=amount)
    return SimpleAction(type=action_type)


class BettingEngine:
    """Validates and applies one player action at a time.

    Holds the betting state of a hand: the pot, the bet to match this
    round and the stakes. Every check in ``process_action`` runs before any
    chip moves, so a rejected action leaves everything untouched.
    """

    def __init__(
        self,
        minimum_bet: int = 5,
        small_blind: int = 5,
        big_blind: int = 10,
    ):
        """Initialize the engine.

        Args:
            minimum_bet: Smallest legal Bet.
            small_blind: Small blind amount.
            big_blind: Big blind amount.
        """
        self.minimum_bet = minimum_bet
        self.small_blind = small_blind
        self.big_blind = big_blind

        self.pot = Pot()
        self.current_bet = 0

    def start_round(self, players: list["Player"]) -> None:
        """Reset per-round bets at the start of a betting street."""
        for player in players:
            player.bet_amount = 0
        self.current_bet = 0
        self.minimum_bet = self.big_blind

    def get_call_amount(self, player: "Player") -> int:
        """Chips the player must add to match the current bet."""
        return max(self.current_bet - player.bet_amount, 0)

    def validate(
        self,
        player: "Player",
        action: Action,
        state: GameState,
        is_small_blind: bool = False,
        is_big_blind: bool = False,
    ) -> None:
        """Check that an action is legal.

        Args:
            player: The acting player.
            action: The action.
            state: Current game state.
            is_small_blind: Whether the player holds the small-blind seat.
            is_big_blind: Whether the player holds the big-blind seat.

        Raises:
            ActionError: A subclass naming the violated rule.
        """
        kind = action.type

        if kind == ActionType.CALL:
            call_amount = self.get_call_amount(player)
            if player.chips < call_amount:
                raise InsufficientChips(
                    f"Player has not enough chips ({player.chips}) to call "
                    f"{call_amount} and match {self.current_bet}"
                )

        elif kind == ActionType.RAISE:
            raise_amount = action.amount - player.bet_amount
            if raise_amount <= 0:
                raise BelowMinimumBet(
                    f"Raise to {action.amount} does not exceed current bet of {player.bet_amount}"
                )
            if player.chips < raise_amount:
                raise InsufficientChips(
                    f"Not enough chips ({player.chips}) to raise {raise_amount}"
                )

        elif kind == ActionType.BET:
            if state != GameState.PRE_FLOP:
                raise InvalidStateForAction("Bet action only allowed in pre-flop")
            if action.amount < self.minimum_bet:
                raise BelowMinimumBet(f"The minimum amount for this hand is {self.minimum_bet}")
            if is_small_blind and action.amount < self.small_blind:
                raise BlindAmountTooLow(f"Small blind must bet at least {self.small_blind}")
            if is_big_blind and action.amount < self.big_blind:
                raise BlindAmountTooLow(f"Big blind must bet at least {self.big_blind}")
            if is_big_blind and action.amount < self.current_bet:
                raise BlindAmountTooLow(
                    f"Big blind must bet at least the current bet of {self.current_bet}"
                )
            if player.chips < action.amount:
                raise InsufficientChips(f"Not enough chips ({player.chips}) to bet {action.amount}")

        elif kind in (ActionType.SHOW, ActionType.HIDE):
            if state != GameState.SHOWDOWN:
                raise InvalidStateForAction(f"Can only {kind.value} cards in showdown")

    def validate_blinds(
        self,
        small: "Player",
        big: "Player",
        small_amount: int,
        big_amount: int,
    ) -> None:
        """Check that both blinds can be posted, before either one is.

        Raises:
            ActionError: A subclass naming the violated rule.
        """
        self.validate(small, WagerAction(ActionType.BET, small_amount), GameState.PRE_FLOP,
                      is_small_blind=True)
        # The big blind is checked against the bet the small blind will have made
        if big_amount < max(small_amount, self.current_bet):
            raise BlindAmountTooLow(
                f"Big blind must bet at least the current bet of {small_amount}"
            )
        self.validate(big, WagerAction(ActionType.BET, big_amount), GameState.PRE_FLOP,
                      is_big_blind=True)

    def apply(self, player: "Player", action: Action) -> int:
        """Apply an already validated action.

        Returns:
            Chips moved from the player into the pot.
        """
        kind = action.type
        moved = 0

        if kind == ActionType.FOLD:
            player.fold()
            logger.debug(f"{player.name} folds with {player.bet_amount} in")

        elif kind == ActionType.CALL:
            moved = player.bet(self.get_call_amount(player))
            self.pot.add_bet(player.player_id, moved)
            logger.debug(f"{player.name} calls {moved}")

        elif kind == ActionType.RAISE:
            moved = player.bet(action.amount - player.bet_amount)
            self.pot.add_bet(player.player_id, moved)
            # The table bet grows by the raise delta.
            self.current_bet += moved
            logger.debug(f"{player.name} raises {moved} to {player.bet_amount}, pot {self.pot.total}")

        elif kind == ActionType.BET:
            moved = action.amount
            player.chips -= moved
            player.bet_amount = moved
            self.pot.add_bet(player.player_id, moved)
            self.current_bet = moved
            logger.debug(f"{player.name} bets {moved}, pot {self.pot.total}")

        elif kind == ActionType.CHECK:
            logger.debug(f"{player.name} checks, pot {self.pot.total}")

        elif kind == ActionType.SHOW:
            player.show_cards = True

        elif kind == ActionType.HIDE:
            player.show_cards = False

        return moved

    def process_action(
        self,
        player: "Player",
        action: Action,
        state: GameState,
        is_small_blind: bool = False,
        is_big_blind: bool = False,
    ) -> int:
        """Validate then apply an action.

        Returns:
            Chips moved from the player into the pot.
        """
        self.validate(player, action, state, is_small_blind, is_big_blind)
        return self.apply(player, action)

    def is_round_over(self, players: list["Player"]) -> bool:
        """Check if every non-folded player has matched the current bet."""
        return all(p.bet_amount == self.current_bet for p in players if not p.is_folded)
