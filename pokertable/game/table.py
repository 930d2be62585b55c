"""Table state machine for one hand of Texas Hold'em."""
import random
import uuid
from dataclasses import dataclass
from typing import Optional, Union

from pokertable.config import config
from pokertable.game.betting import (
    Action,
    ActionType,
    BettingEngine,
    SimpleAction,
    WagerAction,
    make_action,
)
from pokertable.game.deck import Card, Deck
from pokertable.game.errors import (
    InsufficientPlayers,
    InvalidGameState,
    InvalidSeat,
    InvalidStateForAction,
    NotPlayersTurn,
    PlayerNotFound,
    PokerEngineError,
    SeatTaken,
    TableFull,
)
from pokertable.game.events import EventBus, GameEvent
from pokertable.game.hand_eval import evaluate_hand
from pokertable.game.history import GameLogEntry, HistoryRecorder
from pokertable.game.player import Player
from pokertable.game.pot import split_pot
from pokertable.game.state import GameState
from pokertable.game.timeout import TurnTimer
from pokertable.utils.logger import EventSink, get_logger

logger = get_logger(__name__)

# Community cards dealt when entering each street
_STREETS = {
    GameState.PRE_FLOP: (GameState.FLOP, 3),
    GameState.FLOP: (GameState.TURN, 1),
    GameState.TURN: (GameState.RIVER, 1),
}


def blind_posts(small_blind: int, big_blind: int, minimum_bet: int) -> tuple[int, int]:
    """Chips the small and big blind seats post at hand start."""
    return max(small_blind, minimum_bet), max(big_blind, minimum_bet * 2)


@dataclass
class Winner:
    """A player paid at settlement."""
    player: Player
    category: str
    value: Optional[int]  # None when everyone else folded
    description: str = ""
    amount: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "player_id": self.player.player_id,
            "name": self.player.name,
            "category": self.category,
            "value": self.value,
            "description": self.description,
            "amount": self.amount,
        }


class Table:
    """A poker table running a single hand.

    Seat order is turn order. The table owns the deck, the betting engine,
    the event bus, the hand history and the turn timer for the lifetime of
    the hand; players are shared with whoever seated them.
    """

    def __init__(
        self,
        table_id: Optional[str] = None,
        max_players: Optional[int] = None,
        players: Optional[list[Player]] = None,
        current_dealer_index: int = 0,
        minimum_bet: Optional[int] = None,
        small_blind: Optional[int] = None,
        big_blind: Optional[int] = None,
        turn_time_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
        events: Optional[EventBus] = None,
    ):
        """Initialize a poker table.

        Args:
            table_id: Unique table identifier.
            max_players: Maximum players at table.
            players: Players to seat immediately, in seat order.
            current_dealer_index: Index of the dealer seat.
            minimum_bet: Smallest legal bet.
            small_blind: Small blind amount.
            big_blind: Big blind amount.
            turn_time_seconds: Seconds a player has to act; 0 disables it.
            rng: Random source for the deck.
            events: Event bus to publish on; a new one if omitted.
        """
        self.table_id = table_id or uuid.uuid4().hex[:8]
        self.max_players = max_players if max_players is not None else config.max_players
        self.min_players = max(2, config.min_players)

        self.events = events or EventBus()
        self.log = EventSink(self.table_id)
        self.betting = BettingEngine(
            minimum_bet=minimum_bet if minimum_bet is not None else config.minimum_bet,
            small_blind=small_blind if small_blind is not None else config.small_blind,
            big_blind=big_blind if big_blind is not None else config.big_blind,
        )
        self._rng = rng
        self.deck = Deck(rng)

        self.players: list[Player] = []
        self.community_cards: list[Card] = []
        self.game_state = GameState.WAITING_FOR_PLAYERS
        self.current_player_index = 0
        self.current_dealer_index = current_dealer_index
        self.current_small_blind_index = 0
        self.current_big_blind_index = 0
        self.winners: list[Winner] = []

        self._history = HistoryRecorder(self, self.events)
        self.turn_timer = TurnTimer(
            self.events,
            turn_time_seconds if turn_time_seconds is not None else config.turn_time_seconds,
        )
        self.turn_timer.attach()
        self.events.subscribe(GameEvent.PLAYER_TURN_EXPIRED, self._on_turn_expired)

        for player in players or []:
            self.seat_player(player)

    # Betting state

    @property
    def pot(self) -> int:
        return self.betting.pot.total

    @property
    def current_bet(self) -> int:
        return self.betting.current_bet

    @property
    def minimum_bet(self) -> int:
        return self.betting.minimum_bet

    @property
    def small_blind(self) -> int:
        return self.betting.small_blind

    @property
    def big_blind(self) -> int:
        return self.betting.big_blind

    @property
    def history(self) -> tuple[GameLogEntry, ...]:
        return self._history.entries

    # Player management

    def seat_player(self, player: Player, seat_number: Optional[int] = None) -> bool:
        """Seat a player.

        Args:
            player: Player to seat.
            seat_number: Seat (1..max_players); lowest free seat if omitted.

        Returns:
            True once the player is seated.

        Raises:
            TableFull: No seats left.
            SeatTaken: The seat, or the player id, is already in use.
            InvalidSeat: The seat number does not exist.
            InvalidStateForAction: A hand has already started.
        """
        if self.game_state != GameState.WAITING_FOR_PLAYERS:
            raise InvalidStateForAction("Players can only be seated before the hand starts")
        if len(self.players) >= self.max_players:
            raise TableFull("No more players allowed at this table")
        if seat_number is None:
            seat_number = self.get_next_available_seat()
        elif not 1 <= seat_number <= self.max_players:
            raise InvalidSeat(f"Seat {seat_number} does not exist (1-{self.max_players})")
        if any(p.seat_number == seat_number for p in self.players):
            raise SeatTaken(f"Seat {seat_number} is already taken")
        if self.get_player(player.player_id) is not None:
            raise SeatTaken(f"Player {player.player_id} is already seated")

        player.seat_number = seat_number
        self.players.append(player)
        self.players.sort(key=lambda p: p.seat_number)

        self.log.info("player_joined", player=player.name, seat=seat_number)
        self.events.publish(GameEvent.PLAYER_JOINED, {
            "player_id": player.player_id,
            "seat_number": seat_number,
        })
        return True

    def remove_player(self, player_id: str) -> Player:
        """Remove a player before the hand starts.

        Raises:
            PlayerNotFound: No such player.
            InvalidStateForAction: A hand has already started.
        """
        player = self.get_player(player_id)
        if player is None:
            raise PlayerNotFound(f"Player {player_id} not found")
        if self.game_state != GameState.WAITING_FOR_PLAYERS:
            raise InvalidStateForAction("Players cannot leave during a hand")

        self.players.remove(player)
        self.log.info("player_left", player=player.name)
        self.events.publish(GameEvent.PLAYER_LEFT, {"player_id": player_id})
        return player

    def get_player(self, player_id: str) -> Optional[Player]:
        """Get a seated player by id."""
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def get_next_available_seat(self) -> Optional[int]:
        """Lowest free seat number, or None if full."""
        taken = {p.seat_number for p in self.players}
        for seat in range(1, self.max_players + 1):
            if seat not in taken:
                return seat
        return None

    @property
    def current_player(self) -> Optional[Player]:
        """The player on turn, while a hand is in progress."""
        if not self.game_state.in_hand or not self.players:
            return None
        return self.players[self.current_player_index]

    def get_active_players(self) -> list[Player]:
        """Players who have not folded, in seat order."""
        return [p for p in self.players if not p.is_folded]

    # Game flow

    def start_game(self) -> None:
        """Deal, post the blinds and hand the turn to the seat after the big blind.

        Both blinds are checked before anything changes, so a hand that
        cannot start leaves the table waiting, with every stack untouched.

        Raises:
            InvalidStateForAction: The hand was already started.
            InsufficientPlayers: Fewer than two players are seated.
            ActionError: A blind could not be posted.
        """
        if self.game_state != GameState.WAITING_FOR_PLAYERS:
            raise InvalidStateForAction("The hand has already started")
        if len(self.players) < self.min_players:
            raise InsufficientPlayers(
                f"Need at least {self.min_players} players to start, have {len(self.players)}"
            )

        count = len(self.players)
        dealer = self.current_dealer_index % count
        # Heads-up: the dealer posts the small blind
        small_index = dealer if count == 2 else (dealer + 1) % count
        big_index = (small_index + 1) % count

        small_amount, big_amount = self._blind_amounts()
        try:
            self.betting.validate_blinds(
                self.players[small_index], self.players[big_index], small_amount, big_amount,
            )
        except PokerEngineError as e:
            self.log.warning("blinds_rejected", error=e)
            raise

        self.current_dealer_index = dealer
        self.current_small_blind_index = small_index
        self.current_big_blind_index = big_index

        for player in self.players:
            player.reset_for_new_hand()
        self.deck = Deck(self._rng)
        self.betting.pot.reset()
        self.community_cards = []
        self.winners = []

        self._deal_hole_cards()

        self._set_state(GameState.PRE_FLOP)
        self.events.publish(GameEvent.GAME_STARTED, {
            "table_id": self.table_id,
            "dealer_index": self.current_dealer_index,
            "small_blind_index": self.current_small_blind_index,
            "big_blind_index": self.current_big_blind_index,
        })

        self._post_blinds()

        self.current_player_index = self.current_big_blind_index
        self._advance_turn()

    def _blind_amounts(self) -> tuple[int, int]:
        return blind_posts(self.small_blind, self.big_blind, self.minimum_bet)

    def _deal_hole_cards(self) -> None:
        """Deal 2 hole cards to each seated player."""
        for player in self.players:
            player.receive_cards(self.deck.deal(2))

    def _post_blinds(self) -> None:
        """Post small and big blinds as ordinary Bet actions."""
        small = self.players[self.current_small_blind_index]
        big = self.players[self.current_big_blind_index]
        small_amount, big_amount = self._blind_amounts()

        self.current_player_index = self.current_small_blind_index
        self._apply(small, WagerAction(ActionType.BET, small_amount))

        self.current_player_index = self.current_big_blind_index
        self._apply(big, WagerAction(ActionType.BET, big_amount))

        self.log.info("blinds_posted", small=small.name, big=big.name, pot=self.pot)

    def player_action(
        self,
        player_id: str,
        action: Union[ActionType, str, Action],
        amount: Optional[int] = None,
    ) -> None:
        """Process a player's action.

        Args:
            player_id: Acting player's id.
            action: Action type, or a built action.
            amount: Chip amount for Bet and Raise.

        Raises:
            PlayerNotFound: No seated player has this id.
            InvalidStateForAction: No hand in progress, or the action is not
                allowed in this state.
            NotPlayersTurn: Another player is on turn.
            MissingAmount: Bet or Raise without an amount.
            InsufficientChips: The player cannot cover the action.
            BelowMinimumBet: Bet or Raise is too small.
            BlindAmountTooLow: A blind seat bet less than its blind.
        """
        player = self.get_player(player_id)
        if player is None:
            raise PlayerNotFound(f"Player {player_id} not found")
        if not self.game_state.in_hand:
            raise InvalidStateForAction(f"No hand in progress ({self.game_state.value})")

        current = self.players[self.current_player_index]
        if current.player_id != player_id:
            raise NotPlayersTurn(
                f"It's not player {player_id} turn to play. Is player {current.player_id} turn"
            )

        typed = make_action(action, amount)
        if typed.type == ActionType.FOLD and len(self.get_active_players()) == 1:
            raise InvalidStateForAction("The last player in the hand cannot fold")

        self._apply(player, typed)
        self._after_action()

    def _apply(self, player: Player, action: Action) -> None:
        """Validate and apply one action, then announce it."""
        moved = self.betting.process_action(
            player,
            action,
            self.game_state,
            is_small_blind=player is self.players[self.current_small_blind_index],
            is_big_blind=player is self.players[self.current_big_blind_index],
        )

        self.log.info(
            "player_action",
            player=player.name,
            action=action.type.value,
            amount=action.amount,
            chips=player.chips,
            pot=self.pot,
        )
        self.events.publish(GameEvent.PLAYER_ACTION, {
            "player_id": player.player_id,
            "action": action.type,
            "amount": action.amount,
        })
        if moved:
            self.events.publish(GameEvent.POT_UPDATED, {"pot": self.pot})

    def _after_action(self) -> None:
        """Close the street or the hand if needed, then pass the turn."""
        if len(self.get_active_players()) == 1 and self.game_state.is_betting_street:
            self.log.debug("one_player_left", state=self.game_state.value)
            self._set_state(GameState.SHOWDOWN)
        elif self.is_betting_round_over() or self._only_all_in_short():
            self.proceed_to_next_round()

        if self.game_state == GameState.ENDED:
            return
        self._advance_turn()

    def _advance_turn(self) -> None:
        """Hand the turn to the next player who can act."""
        index = self.current_player_index
        for _ in range(len(self.players)):
            index = self.get_next_player_index(index)
            player = self.players[index]
            if player.can_act:
                self.current_player_index = index
                self.log.debug("player_turn", player=player.name, state=self.game_state.value)
                self.events.publish(GameEvent.PLAYER_TURN, {
                    "player_id": player.player_id,
                    "player": player,
                })
                return

        self._run_out_board()

    def _run_out_board(self) -> None:
        """Nobody can act: deal the rest and settle."""
        self.log.info("run_out", state=self.game_state.value)
        while self.game_state != GameState.ENDED:
            self.proceed_to_next_round()

    def is_betting_round_over(self) -> bool:
        """Check if every non-folded player has matched the current bet."""
        active = self.get_active_players()
        if len(active) <= 1:
            return True
        return self.betting.is_round_over(active)

    def _only_all_in_short(self) -> bool:
        """Every seat still short of the bet is all-in.

        Those seats are skipped by turn order and can never match, so the
        street closes once everyone who can act has matched.
        """
        return all(
            p.bet_amount == self.current_bet
            for p in self.get_active_players()
            if p.can_act
        )

    def get_next_player_index(self, current_index: int) -> int:
        """Next non-folded seat after ``current_index``, wrapping around.

        Returns ``current_index`` itself when every other seat has folded.
        """
        count = len(self.players)
        index = (current_index + 1) % count
        while self.players[index].is_folded and index != current_index:
            index = (index + 1) % count
        return index

    def proceed_to_next_round(self) -> None:
        """Advance the state machine one step.

        Raises:
            InvalidGameState: The hand has not started.
        """
        state = self.game_state

        if state in _STREETS:
            next_state, count = _STREETS[state]
            self.betting.start_round(self.players)
            self.community_cards.extend(self.deck.deal(count))
            self._set_state(next_state)
        elif state == GameState.RIVER:
            self._set_state(GameState.SHOWDOWN)
        elif state == GameState.SHOWDOWN:
            self.determine_winners()
            self._release_turn()
            self._set_state(GameState.ENDED)
        elif state == GameState.ENDED:
            self.turn_timer.cancel()
        else:
            raise InvalidGameState(f"Cannot advance from state {state.value}")

    def _set_state(self, new_state: GameState) -> None:
        self.game_state = new_state
        self.log.info(
            "state_changed",
            state=new_state.value,
            current_bet=self.current_bet,
            pot=self.pot,
            board=[str(c) for c in self.community_cards],
        )
        self.events.publish(GameEvent.GAME_STATE_CHANGED, {"state": new_state})

    def _release_turn(self) -> None:
        """Drop every turn listener and the pending timeout."""
        self.turn_timer.detach()
        self.events.clear(GameEvent.PLAYER_TURN)
        self.events.clear(GameEvent.PLAYER_TURN_EXPIRED)

    # Settlement

    def determine_winners(self) -> list[Winner]:
        """Pay the pot to the best hand(s).

        A lone remaining player takes the pot without evaluation. Otherwise
        every remaining hand is evaluated against a running maximum; tied
        players split the pot, odd chips going first to the seat after the
        dealer.

        Returns:
            Winners, with the amount each was paid.
        """
        contenders = self.get_active_players()
        winners: list[Winner] = []

        if len(contenders) == 1:
            winners = [Winner(
                player=contenders[0],
                category="Others folded",
                value=None,
                description="Others folded",
            )]
        else:
            highest: Optional[int] = None
            for player in contenders:
                result = evaluate_hand(player.hand, self.community_cards)
                winner = Winner(
                    player=player,
                    category=result.category,
                    value=result.value,
                    description=result.description,
                )
                if highest is None or result.value > highest:
                    highest = result.value
                    winners = [winner]
                elif result.value == highest:
                    winners.append(winner)

        winners.sort(key=self._odd_chip_priority)
        total = self.betting.pot.take_all()
        payouts = split_pot(total, [w.player.player_id for w in winners])
        for winner in winners:
            winner.amount = payouts[winner.player.player_id]
            winner.player.win_pot(winner.amount)

        self.winners = winners
        self.log.info(
            "hand_settled",
            pot=total,
            board=[str(c) for c in self.community_cards],
            winners=[f"{w.player.name}:{w.amount}:{w.category}" for w in winners],
        )
        self.events.publish(GameEvent.POT_UPDATED, {"pot": self.pot})
        self.events.publish(GameEvent.GAME_ENDED, {
            "winners": winners,
            "community_cards": list(self.community_cards),
            "pot": total,
        })
        return winners

    def _odd_chip_priority(self, winner: Winner) -> int:
        index = self.players.index(winner.player)
        return (index - self.current_dealer_index - 1) % len(self.players)

    # Turn timeout

    def default_action_for(self, player: Player) -> Action:
        """Action played for a player whose time ran out."""
        if self.game_state == GameState.SHOWDOWN:
            return SimpleAction(ActionType.HIDE)

        if player.bet_amount < self.current_bet:
            return SimpleAction(ActionType.FOLD)
        return SimpleAction(ActionType.CHECK)

    def _on_turn_expired(self, _topic: GameEvent, data: dict) -> None:
        player = self.current_player
        if player is None or player.player_id != data["player_id"]:
            return

        action = self.default_action_for(player)
        self.log.info(
            "turn_expired",
            player=player.name,
            auto_action=action.type.value,
            state=self.game_state.value,
        )
        try:
            self.player_action(player.player_id, action)
        except PokerEngineError as e:
            logger.warning(f"Automatic {action.type.value} for {player.name} rejected: {e}")

    # History and views

    def get_hand_history(self) -> tuple[GameLogEntry, ...]:
        """Entries recorded for this hand, oldest first."""
        return self._history.entries

    def get_state(self, viewer_id: Optional[str] = None) -> dict:
        """Get table state as seen by a player or spectator.

        Args:
            viewer_id: The player requesting state; None for a spectator.

        Returns:
            State dictionary; other players' cards are hidden unless they
            chose to show them at showdown.
        """
        reveal = self.game_state in (GameState.SHOWDOWN, GameState.ENDED)
        players_data = []
        for player in self.players:
            visible = player.player_id == viewer_id or (reveal and player.show_cards)
            player_data = player.to_dict(hide_cards=not visible)
            player_data["is_you"] = player.player_id == viewer_id
            players_data.append(player_data)

        current = self.current_player
        return {
            "table_id": self.table_id,
            "state": self.game_state.value,
            "dealer_index": self.current_dealer_index,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "minimum_bet": self.minimum_bet,
            "current_bet": self.current_bet,
            "pot": self.pot,
            "max_players": self.max_players,
            "community_cards": [str(c) for c in self.community_cards],
            "players": players_data,
            "current_player": current.player_id if current else None,
            "winners": [w.to_dict() for w in self.winners],
        }
