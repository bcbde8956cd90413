"""Exceptions raised by the Rummy game engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .melds import MeldError
    from .state import GamePhase

__all__ = [
    "RummyError",
    "ActionError",
    "FailedActionError",
    "InvalidGamePhase",
    "DiscardPileTooSmall",
    "InvalidCardIndex",
    "InvalidMeldIndex",
    "InvalidPlayerIndex",
    "FailedMeld",
    "InternalError",
    "NoCardsInDeckOrDiscardPile",
    "InvalidCurrentPlayer",
    "RoundHasNoWinner",
    "GameError",
    "WrongGamePhase",
    "PlayerDoesntExist",
    "PlayerAlreadyExists",
    "FailedHandRearrangement",
    "GameSetupError",
    "TooFewPlayers",
    "NotEnoughCards",
]


class RummyError(RuntimeError):
    """Base class for every error raised by the engine."""


class ActionError(RummyError):
    """Raised when a ``GameAction`` could not be executed."""


class FailedActionError(ActionError):
    """The action was rejected; the game state is unchanged."""


class InvalidGamePhase(FailedActionError):
    def __init__(self, current_phase: "GamePhase") -> None:
        super().__init__(f"action not allowed in phase {current_phase.value}")
        self.current_phase = current_phase


class DiscardPileTooSmall(FailedActionError):
    """Raised when the discard pile has no, or not enough, cards."""


class InvalidCardIndex(FailedActionError):
    """Raised when a hand card index is out of bounds."""


class InvalidMeldIndex(FailedActionError):
    """Raised when a meld index is out of bounds."""


class InvalidPlayerIndex(FailedActionError):
    """Raised when a player index doesn't exist."""


class FailedMeld(FailedActionError):
    """Raised when forming or laying off onto a meld fails."""

    def __init__(self, meld_error: "MeldError") -> None:
        super().__init__(str(meld_error))
        self.meld_error = meld_error


class GameError(RummyError):
    """Raised when a game operation is called at the wrong time or with bad input."""


class InternalError(ActionError, GameError):
    """A game invariant is broken; the running game should be stopped."""


class NoCardsInDeckOrDiscardPile(InternalError):
    """Raised when neither stock nor discard pile can satisfy a draw."""


class InvalidCurrentPlayer(InternalError):
    def __init__(self, current: int) -> None:
        super().__init__(f"current player index {current} is invalid")
        self.current = current


class RoundHasNoWinner(InternalError):
    """Raised when a finished round has no player with an empty hand."""


class WrongGamePhase(GameError):
    """Raised when an operation is called in the wrong game phase."""


class PlayerDoesntExist(GameError):
    """Raised when a player id is unknown."""


class PlayerAlreadyExists(GameError):
    """Raised when adding a player whose id is already taken."""


class FailedHandRearrangement(GameError):
    """Raised when a rearranged hand doesn't hold the same cards as before."""


class GameSetupError(GameError):
    """Raised when the game is unplayable with its current players and deck."""


class TooFewPlayers(GameSetupError):
    def __init__(self, minimum: int, actual: int) -> None:
        super().__init__(f"too few players: need at least {minimum}, have {actual}")
        self.minimum = minimum
        self.actual = actual


class NotEnoughCards(GameSetupError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"not enough cards: need {required}, deck has {available}")
        self.required = required
        self.available = available
