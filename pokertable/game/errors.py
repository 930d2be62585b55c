"""Error kinds raised by the table engine.

Every error is raised synchronously by the call that detected it and is
raised before any chip or pot mutation for that call.
"""


class PokerEngineError(Exception):
    """Base class for all engine errors."""
    pass


# Rejected player actions

class ActionError(PokerEngineError, ValueError):
    """A player action was rejected."""
    pass


class PlayerNotFound(ActionError):
    """No seated player has the given id."""
    pass


class NotPlayersTurn(ActionError):
    """The player is not the one on turn."""
    pass


class MissingAmount(ActionError):
    """A Bet or Raise was submitted without an amount."""
    pass


class InsufficientChips(ActionError):
    """The player does not have enough chips for the action."""
    pass


class BelowMinimumBet(ActionError):
    """The amount is below the table minimum."""
    pass


class BlindAmountTooLow(ActionError):
    """A blind seat tried to bet less than its blind."""
    pass


class InvalidStateForAction(ActionError):
    """The action is not allowed in the current game state."""
    pass


# Seating

class SeatingError(PokerEngineError, ValueError):
    """A player could not be seated."""
    pass


class SeatTaken(SeatingError):
    """The requested seat is occupied."""
    pass


class TableFull(SeatingError):
    """The table has reached its maximum number of players."""
    pass


class InvalidSeat(SeatingError):
    """The requested seat number does not exist at this table."""
    pass


# Hand setup and internal failures

class InsufficientPlayers(PokerEngineError):
    """Not enough players to start a hand."""
    pass


class DeckExhausted(PokerEngineError):
    """A card was drawn from an empty deck."""
    pass


class InvalidGameState(PokerEngineError, RuntimeError):
    """The state machine reached a state it cannot advance from."""
    pass
