"""Tests for game flow and the table state machine."""
import random

import pytest
from pokertable.game.betting import ActionType, SimpleAction
from pokertable.game.deck import Card
from pokertable.game.errors import (
    BlindAmountTooLow,
    InsufficientChips,
    InsufficientPlayers,
    InvalidGameState,
    InvalidSeat,
    InvalidStateForAction,
    MissingAmount,
    NotPlayersTurn,
    PlayerNotFound,
    SeatTaken,
    TableFull,
)
from pokertable.game.player import Player
from pokertable.game.state import GameState
from pokertable.game.table import Table


def make_player(player_id: str, chips: int = 100) -> Player:
    """Create a test player."""
    return Player(player_id=player_id, name=f"player_{player_id}", chips=chips)


def make_cards(cards: str) -> list[Card]:
    """Helper to create cards from space-separated string."""
    return [Card.from_string(c) for c in cards.split()]


def make_table(*chips: int, **kwargs) -> Table:
    """Create a table with one player per chip count, ids p1, p2, ..."""
    kwargs.setdefault("minimum_bet", 5)
    kwargs.setdefault("small_blind", 5)
    kwargs.setdefault("big_blind", 10)
    kwargs.setdefault("turn_time_seconds", 0)
    kwargs.setdefault("rng", random.Random(42))
    table = Table(table_id="test", **kwargs)
    for i, amount in enumerate(chips, start=1):
        table.seat_player(make_player(f"p{i}", amount))
    return table


def total_chips(table: Table) -> int:
    return sum(p.chips for p in table.players) + table.pot


class TestTableSetup:
    """Test table setup and seating."""
    
    def test_create_table(self):
        """Test a new table waits for players."""
        table = Table(table_id="test", small_blind=1, big_blind=2)
        
        assert table.table_id == "test"
        assert table.game_state == GameState.WAITING_FOR_PLAYERS
        assert table.players == []
        assert table.pot == 0
    
    def test_seat_player(self):
        """Test seating assigns the lowest free seat."""
        table = make_table(100, 100)
        
        assert [p.seat_number for p in table.players] == [1, 2]
        assert table.get_player("p2").name == "player_p2"
    
    def test_players_sorted_by_seat(self):
        """Test seat order is turn order."""
        table = make_table()
        table.seat_player(make_player("late"), seat_number=5)
        table.seat_player(make_player("early"), seat_number=2)
        
        assert [p.player_id for p in table.players] == ["early", "late"]
    
    def test_seat_taken(self):
        """Test a seat cannot be used twice."""
        table = make_table()
        table.seat_player(make_player("a"), seat_number=3)
        
        with pytest.raises(SeatTaken):
            table.seat_player(make_player("b"), seat_number=3)
    
    def test_duplicate_player(self):
        """Test the same player cannot sit twice."""
        table = make_table(100)
        
        with pytest.raises(SeatTaken):
            table.seat_player(make_player("p1"))
    
    def test_table_full(self):
        """Test seating beyond max_players."""
        table = make_table(100, 100, max_players=2)
        
        with pytest.raises(TableFull):
            table.seat_player(make_player("p3"))
    
    def test_invalid_seat(self):
        """Test seat numbers outside 1..max_players."""
        table = make_table(max_players=4)
        
        with pytest.raises(InvalidSeat):
            table.seat_player(make_player("a"), seat_number=0)
        with pytest.raises(InvalidSeat):
            table.seat_player(make_player("a"), seat_number=5)
    
    def test_no_seating_during_hand(self):
        """Test players cannot join or leave mid-hand."""
        table = make_table(100, 100)
        table.start_game()
        
        with pytest.raises(InvalidStateForAction):
            table.seat_player(make_player("p3"))
        with pytest.raises(InvalidStateForAction):
            table.remove_player("p1")
    
    def test_remove_player(self):
        """Test removing a waiting player."""
        table = make_table(100, 100)
        
        removed = table.remove_player("p1")
        
        assert removed.player_id == "p1"
        assert table.get_player("p1") is None
        with pytest.raises(PlayerNotFound):
            table.remove_player("p1")


class TestGameStart:
    """Test dealing and blinds."""
    
    def test_needs_two_players(self):
        """Test a hand needs at least two players."""
        table = make_table(100)
        
        with pytest.raises(InsufficientPlayers):
            table.start_game()
        assert table.game_state == GameState.WAITING_FOR_PLAYERS
    
    def test_cannot_start_twice(self):
        """Test starting a running hand fails."""
        table = make_table(100, 100)
        table.start_game()
        
        with pytest.raises(InvalidStateForAction):
            table.start_game()
    
    def test_heads_up_blinds(self):
        """Test heads-up: dealer posts the small blind and acts first."""
        table = make_table(100, 100)
        table.start_game()
        
        assert table.game_state == GameState.PRE_FLOP
        assert table.pot == 15
        assert table.current_bet == 10
        assert table.players[0].chips == 95
        assert table.players[1].chips == 90
        assert table.current_player.player_id == "p1"
    
    def test_three_handed_blinds(self):
        """Test blinds sit left of the dealer and the next seat acts."""
        table = make_table(100, 100, 100)
        table.start_game()
        
        assert table.current_small_blind_index == 1
        assert table.current_big_blind_index == 2
        assert table.players[1].bet_amount == 5
        assert table.players[2].bet_amount == 10
        assert table.current_player.player_id == "p1"
    
    def test_blinds_respect_minimum_bet(self):
        """Test blinds are raised to the minimum bet and twice it."""
        table = make_table(100, 100, minimum_bet=10, small_blind=5, big_blind=10)
        table.start_game()
        
        assert table.players[0].bet_amount == 10
        assert table.players[1].bet_amount == 20
    
    def test_short_big_blind_leaves_table_waiting(self):
        """Test a big blind that cannot be covered changes nothing."""
        table = make_table(100, 3)
        
        with pytest.raises(InsufficientChips):
            table.start_game()
        
        assert table.game_state == GameState.WAITING_FOR_PLAYERS
        assert table.pot == 0
        assert [p.chips for p in table.players] == [100, 3]
        assert all(p.hand == [] for p in table.players)
        assert table.get_hand_history() == ()
    
    def test_start_after_rejected_blind(self):
        """Test the table can start once the short stack is topped up."""
        table = make_table(100, 3)
        with pytest.raises(InsufficientChips):
            table.start_game()
        
        table.players[1].chips = 50
        table.start_game()
        
        assert table.game_state == GameState.PRE_FLOP
        assert table.pot == 15
    
    def test_big_blind_below_small_blind(self):
        """Test stakes where the big blind would not match the small blind."""
        table = make_table(100, 100, minimum_bet=5, small_blind=20, big_blind=10)
        
        with pytest.raises(BlindAmountTooLow):
            table.start_game()
        assert table.game_state == GameState.WAITING_FOR_PLAYERS
        assert table.pot == 0
    
    def test_hole_cards_dealt(self):
        """Test each player gets two distinct cards from the deck."""
        table = make_table(100, 100, 100)
        table.start_game()
        
        dealt = [c for p in table.players for c in p.hand]
        assert all(len(p.hand) == 2 for p in table.players)
        assert len(set(dealt)) == 6
        assert table.deck.remaining == 46


class TestPlayerActions:
    """Test action legality and turn order."""
    
    def test_raise_from_first_actor(self):
        """Test a raise moves chips and lifts the table bet."""
        table = make_table(100, 100, 100)
        table.start_game()
        
        table.player_action("p1", ActionType.RAISE, 20)
        
        assert table.players[0].chips == 80
        assert table.pot == 35
        assert table.current_bet == 30
        assert table.current_player.player_id == "p2"
    
    def test_not_players_turn(self):
        """Test acting out of turn."""
        table = make_table(100, 100, 100)
        table.start_game()
        
        with pytest.raises(NotPlayersTurn):
            table.player_action("p2", ActionType.CALL)
    
    def test_unknown_player(self):
        """Test acting as an unseated player."""
        table = make_table(100, 100)
        table.start_game()
        
        with pytest.raises(PlayerNotFound):
            table.player_action("ghost", ActionType.CHECK)
    
    def test_action_before_start(self):
        """Test acting when no hand is running."""
        table = make_table(100, 100)
        
        with pytest.raises(InvalidStateForAction):
            table.player_action("p1", ActionType.CHECK)
    
    def test_missing_amount_changes_nothing(self):
        """Test a Raise without amount is rejected before any mutation."""
        table = make_table(100, 100)
        table.start_game()
        entries = len(table.get_hand_history())
        
        with pytest.raises(MissingAmount):
            table.player_action("p1", "raise")
        
        assert table.pot == 15
        assert table.players[0].chips == 95
        assert table.current_player.player_id == "p1"
        assert len(table.get_hand_history()) == entries
    
    def test_insufficient_chips_changes_nothing(self):
        """Test a call the player cannot cover is rejected."""
        table = make_table(8, 100, 100)
        table.start_game()
        
        with pytest.raises(InsufficientChips):
            table.player_action("p1", ActionType.CALL)
        
        assert table.players[0].chips == 8
        assert table.pot == 15
        assert table.current_player.player_id == "p1"
    
    def test_prebuilt_raise_without_amount(self):
        """Test a typed Raise must carry its amount."""
        table = make_table(100, 100)
        table.start_game()
        
        with pytest.raises(MissingAmount):
            table.player_action("p1", SimpleAction(ActionType.RAISE))
        
        assert table.pot == 15
        assert table.current_player.player_id == "p1"
    
    def test_last_player_cannot_fold(self):
        """Test the only remaining player cannot fold."""
        table = make_table(100, 100)
        table.start_game()
        table.player_action("p1", ActionType.FOLD)
        
        with pytest.raises(InvalidStateForAction):
            table.player_action("p2", ActionType.FOLD)


class TestHandFlow:
    """Test streets, showdown and settlement."""
    
    def test_fold_heads_up(self):
        """Test folding heads-up goes to showdown and pays the other player."""
        table = make_table(100, 100)
        table.start_game()
        
        table.player_action("p1", ActionType.FOLD)
        assert table.game_state == GameState.SHOWDOWN
        
        table.proceed_to_next_round()
        
        assert table.game_state == GameState.ENDED
        assert table.players[1].chips == 105
        assert table.players[0].chips == 95
        assert table.pot == 0
        assert [w.player.player_id for w in table.winners] == ["p2"]
    
    def test_show_after_fold_settles(self):
        """Test the winner's showdown action settles the hand."""
        table = make_table(100, 100)
        table.start_game()
        table.player_action("p1", ActionType.FOLD)
        
        table.player_action("p2", ActionType.SHOW)
        
        assert table.game_state == GameState.ENDED
        assert table.players[1].chips == 105
        state = table.get_state()
        assert state["players"][1]["hand"] == [str(c) for c in table.players[1].hand]
        assert "hand" not in state["players"][0]
    
    def test_streets_deal_community_cards(self):
        """Test each street deals its cards and resets the bet."""
        table = make_table(100, 100, 100)
        table.start_game()
        
        table.player_action("p1", ActionType.CALL)
        table.player_action("p2", ActionType.CALL)
        assert table.game_state == GameState.FLOP
        assert len(table.community_cards) == 3
        assert table.current_bet == 0
        assert table.minimum_bet == 10
        assert all(p.bet_amount == 0 for p in table.players)
        assert table.deck.remaining == 43
        
        table.player_action("p3", ActionType.CHECK)
        assert table.game_state == GameState.TURN
        assert len(table.community_cards) == 4
        
        table.player_action("p1", ActionType.CHECK)
        assert table.game_state == GameState.RIVER
        assert len(table.community_cards) == 5
        
        table.player_action("p2", ActionType.CHECK)
        assert table.game_state == GameState.SHOWDOWN
        assert table.deck.dealt + table.deck.remaining == 52
    
    def test_split_pot_on_board(self):
        """Test a royal flush on the board splits the pot evenly."""
        table = make_table(100, 100, 100)
        table.start_game()
        table.player_action("p1", ActionType.CALL)
        table.player_action("p2", ActionType.CALL)
        table.player_action("p3", ActionType.CHECK)
        table.player_action("p1", ActionType.CHECK)
        table.player_action("p2", ActionType.CHECK)
        assert table.pot == 30
        
        table.community_cards = make_cards("Ah Kh Qh Jh 10h")
        table.players[0].hand = make_cards("2c 3d")
        table.players[1].hand = make_cards("4c 5d")
        table.players[2].hand = make_cards("7s 8c")
        table.proceed_to_next_round()
        
        assert table.game_state == GameState.ENDED
        assert [p.chips for p in table.players] == [100, 100, 100]
        assert all(w.amount == 10 and w.category == "Royal Flush" for w in table.winners)
    
    def test_best_hand_wins(self):
        """Test the strongest hand takes the whole pot."""
        table = make_table(100, 100)
        table.start_game()
        table.player_action("p1", ActionType.CALL)
        while table.game_state != GameState.SHOWDOWN:
            table.player_action(table.current_player.player_id, ActionType.CHECK)
        
        table.community_cards = make_cards("2h 7d 9c Jh 3s")
        table.players[0].hand = make_cards("As Ad")
        table.players[1].hand = make_cards("Kc Qd")
        table.proceed_to_next_round()
        
        assert table.players[0].chips == 110
        assert table.players[1].chips == 90
        assert table.winners[0].category == "Pair"
    
    def test_odd_chip_goes_after_dealer(self):
        """Test an odd chip goes to the first winner left of the dealer."""
        table = make_table(100, 100, 100)
        table.start_game()
        table.player_action("p1", ActionType.FOLD)
        table.player_action("p2", ActionType.CALL)
        while table.game_state != GameState.SHOWDOWN:
            table.player_action(table.current_player.player_id, ActionType.CHECK)
        table.betting.pot.add_bet("p2", 1)
        
        table.community_cards = make_cards("Ah Kh Qh Jh 10h")
        table.proceed_to_next_round()
        
        assert table.players[1].chips == 90 + 11
        assert table.players[2].chips == 90 + 10
    
    def test_chips_are_conserved(self):
        """Test chips plus pot never changes during a hand."""
        table = make_table(100, 100, 100)
        table.start_game()
        assert total_chips(table) == 300
        
        table.player_action("p1", ActionType.RAISE, 20)
        assert total_chips(table) == 300
        table.player_action("p2", ActionType.CALL)
        assert total_chips(table) == 300
        table.player_action("p3", ActionType.FOLD)
        assert total_chips(table) == 300
        
        while table.game_state != GameState.ENDED:
            table.proceed_to_next_round()
        assert total_chips(table) == 300
    
    def test_all_in_short_seat_does_not_stall_street(self):
        """Test the street closes when only an all-in seat is short."""
        table = make_table(100, 100, 10)
        table.start_game()
        assert table.players[2].chips == 0
        
        table.player_action("p1", ActionType.RAISE, 30)
        table.player_action("p2", ActionType.CALL)
        table.player_action("p1", ActionType.CALL)
        
        assert table.game_state == GameState.FLOP
        assert table.pot == 90
        assert table.current_player.player_id == "p2"
        
        table.player_action("p2", ActionType.CHECK)
        assert table.game_state == GameState.TURN
        assert total_chips(table) == 210
    
    def test_run_out_when_nobody_can_act(self):
        """Test the board is dealt out when every stack is in the pot."""
        table = make_table(5, 10)
        table.start_game()
        
        assert table.game_state == GameState.ENDED
        assert len(table.community_cards) == 5
        assert sum(p.chips for p in table.players) == 15
    
    def test_proceed_before_start(self):
        """Test advancing a table that never started."""
        table = make_table(100, 100)
        
        with pytest.raises(InvalidGameState):
            table.proceed_to_next_round()
    
    def test_action_after_end(self):
        """Test no actions are accepted once the hand ended."""
        table = make_table(100, 100)
        table.start_game()
        table.player_action("p1", ActionType.FOLD)
        table.proceed_to_next_round()
        
        with pytest.raises(InvalidStateForAction):
            table.player_action("p2", ActionType.CHECK)


class TestTurnOrder:
    """Test next-player selection."""
    
    def test_skips_folded(self):
        """Test folded seats are skipped, wrapping around."""
        table = make_table(100, 100, 100)
        table.players[1].is_folded = True
        
        assert table.get_next_player_index(0) == 2
        assert table.get_next_player_index(2) == 0
    
    def test_everyone_else_folded(self):
        """Test the current seat is returned when it is the only one left."""
        table = make_table(100, 100, 100)
        table.players[0].is_folded = True
        table.players[2].is_folded = True
        
        assert table.get_next_player_index(1) == 1
    
    def test_round_over(self):
        """Test the round is over when all active bets match."""
        table = make_table(100, 100, 100)
        table.start_game()
        assert not table.is_betting_round_over()
        
        table.players[0].bet_amount = 10
        table.players[1].bet_amount = 10
        assert table.is_betting_round_over()


class TestTableState:
    """Test the table view."""
    
    def test_cards_hidden_from_others(self):
        """Test a player sees only their own hole cards."""
        table = make_table(100, 100)
        table.start_game()
        
        state = table.get_state(viewer_id="p1")
        
        assert state["state"] == "pre-flop"
        assert state["pot"] == 15
        assert state["current_player"] == "p1"
        assert state["players"][0]["is_you"]
        assert len(state["players"][0]["hand"]) == 2
        assert "hand" not in state["players"][1]
    
    def test_spectator_sees_no_cards(self):
        """Test a spectator sees no hole cards."""
        table = make_table(100, 100)
        table.start_game()
        
        state = table.get_state()
        
        assert all("hand" not in p for p in state["players"])
        assert all(p["has_cards"] for p in state["players"])
