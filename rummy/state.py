"""Core game state data structures for Rummy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, List

from .actions import DRAW_ACTIONS, PLAY_ACTIONS, GameAction
from .cards import Card
from .deck import Deck, DeckConfig
from .errors import (
    InvalidCurrentPlayer,
    InvalidGamePhase,
    NoCardsInDeckOrDiscardPile,
    PlayerDoesntExist,
    WrongGamePhase,
)
from .melds import Meld

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .scoreboard import RoundScore

__all__ = ["GamePhase", "Player", "GameState"]

logger = logging.getLogger(__name__)


class GamePhase(str, Enum):
    """Phases of a game; the phase decides which actions are legal."""

    DRAW = "draw"
    PLAY = "play"
    ROUND_END = "round_end"
    GAME_END = "game_end"

    @property
    def is_playing(self) -> bool:
        return self in (GamePhase.DRAW, GamePhase.PLAY)


@dataclass(slots=True)
class Player:
    """A seat at the table.

    Players are never removed: quitting clears ``active`` and sets ``quit``.
    A player that joined in the current round is pending until the next deal.
    ``dealt_in_round`` is the last round the player was dealt cards in.
    """

    id: int
    cards: List[Card] = field(default_factory=list)
    melds: List[Meld] = field(default_factory=list)
    active: bool = False
    joined_in_round: int = 0
    quit: bool = False
    dealt_in_round: int = 0

    def is_pending(self, current_round: int) -> bool:
        """Return ``True`` when the player waits to be dealt into the next round."""

        return not self.active and not self.quit and self.joined_in_round == current_round

    def card_count(self) -> int:
        return len(self.cards) + sum(len(meld) for meld in self.melds)


@dataclass(slots=True)
class GameState:
    """Mutable state of one game; only the rules engine mutates it."""

    deck: Deck
    players: List[Player] = field(default_factory=list)
    phase: GamePhase = GamePhase.ROUND_END
    current_player: int = 0
    current_round: int = 0
    round_scores: dict[int, "RoundScore"] = field(default_factory=dict)
    variant_state: Any = None

    @classmethod
    def initialize(
        cls,
        player_ids: Iterable[int],
        deck_config: DeckConfig | None = None,
        variant_state: Any = None,
    ) -> "GameState":
        """Create a game waiting for its first round with every id seated."""

        players = [Player(id=player_id) for player_id in player_ids]
        return cls(deck=Deck(deck_config), players=players, variant_state=variant_state)

    def validate_action(self, action: GameAction) -> None:
        """Raise ``InvalidGamePhase`` unless ``action`` is legal in the current phase."""

        if self.phase is GamePhase.DRAW and isinstance(action, DRAW_ACTIONS):
            return
        if self.phase is GamePhase.PLAY and isinstance(action, PLAY_ACTIONS):
            return
        raise InvalidGamePhase(self.phase)

    def get_current_player(self) -> Player:
        if not 0 <= self.current_player < len(self.players):
            logger.error("current player index %d out of range", self.current_player)
            raise InvalidCurrentPlayer(self.current_player)
        return self.players[self.current_player]

    def find_player(self, player_id: int) -> Player:
        for player in self.players:
            if player.id == player_id:
                return player
        raise PlayerDoesntExist(f"no player with id {player_id}")

    def active_players(self) -> list[Player]:
        return [player for player in self.players if player.active]

    def participants(self) -> list[int]:
        """Return seat indices of players dealt into the next round."""

        return [
            seat
            for seat, player in enumerate(self.players)
            if player.active or player.is_pending(self.current_round)
        ]

    def to_next_player(self) -> None:
        """Advance ``current_player`` to the next active seat, wrapping around."""

        count = len(self.players)
        for step in range(1, count + 1):
            seat = (self.current_player + step) % count
            if self.players[seat].active:
                self.current_player = seat
                return
        logger.error("no active player found after seat %d", self.current_player)
        raise InvalidCurrentPlayer(self.current_player)

    def start_new_round(self, cards_to_deal: int, starting_player: int) -> None:
        """Deal a fresh round and hand the turn to ``starting_player``."""

        if self.phase is not GamePhase.ROUND_END:
            raise WrongGamePhase(f"can't start a round in phase {self.phase.value}")
        seats = self.participants()
        if cards_to_deal * len(seats) > self.deck.total_cards:
            logger.error("deck of %d cards can't deal %d to %d players", self.deck.total_cards, cards_to_deal, len(seats))
            raise NoCardsInDeckOrDiscardPile("not enough cards to deal a new round")

        for seat in seats:
            self.players[seat].active = True
        self.deck.reset()
        for player in self.players:
            player.cards = []
            player.melds = []
        self.current_round += 1
        for seat in seats:
            self.players[seat].cards = self.deck.draw(cards_to_deal)
            self.players[seat].dealt_in_round = self.current_round

        self.current_player = starting_player
        self.phase = GamePhase.DRAW
        logger.debug(
            "round %d dealt: %d cards to %d players, seat %d starts",
            self.current_round,
            cards_to_deal,
            len(seats),
            starting_player,
        )

    def card_count(self) -> int:
        """Return every card in stock, discard pile, hands and melds."""

        return (
            len(self.deck.stock)
            + len(self.deck.discard_pile)
            + sum(player.card_count() for player in self.players)
        )
