"""Game objects: the surface callers use to play Rummy."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable, Sequence

from .actions import GameAction
from .cards import Card
from .deck import DeckConfig
from .errors import (
    FailedHandRearrangement,
    NotEnoughCards,
    PlayerAlreadyExists,
    TooFewPlayers,
    WrongGamePhase,
)
from .rules import BasicConfig, BasicRules, GameRules
from .state import GamePhase, GameState, Player

__all__ = ["Game", "BasicRummyGame", "MIN_PLAYERS"]

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


class Game(ABC):
    """A playable Rummy game."""

    @abstractmethod
    def execute_action(self, action: GameAction) -> None:
        """Execute ``action`` for the current player or raise ``ActionError``."""

    @abstractmethod
    def get_state(self) -> GameState:
        """Return the game state; callers must treat it as read-only."""

    @abstractmethod
    def add_player(self, player_id: int) -> None: ...

    @abstractmethod
    def quit_player(self, player_id: int) -> None: ...

    @abstractmethod
    def rearrange_hand(self, player_id: int, new_arrangement: Sequence[Card]) -> None: ...

    @abstractmethod
    def next_round(self) -> None:
        """Score the finished round and deal the next one."""


class BasicRummyGame(Game):
    """Basic rummy.

    The game starts in ``ROUND_END`` at round 0; call :meth:`next_round` to
    deal the first round.

    Raises ``GameSetupError`` when fewer than two players are seated or the
    deck can't deal every player and give each of them one draw.
    """

    def __init__(
        self,
        player_ids: Iterable[int],
        config: BasicConfig | None = None,
        deck_config: DeckConfig | None = None,
    ) -> None:
        ids = list(player_ids)
        if len(set(ids)) != len(ids):
            raise PlayerAlreadyExists("player ids must be unique")
        self.state = GameState.initialize(ids, deck_config)
        self._rules = BasicRules(config)
        self.validate_setup()

    def __repr__(self) -> str:
        return (
            f"BasicRummyGame(round={self.state.current_round}, phase={self.state.phase.value}, "
            f"players={[player.id for player in self.state.players]})"
        )

    @property
    def rules(self) -> GameRules:
        return self._rules

    def validate_setup(self) -> None:
        """Check the next round can be dealt with one draw per player left over."""

        players = len(self.state.participants())
        if players < MIN_PLAYERS:
            raise TooFewPlayers(MIN_PLAYERS, players)
        deal = self._rules.cards_to_deal(self.state)
        draw = self._rules.cards_to_draw_from_deck(self.state)
        required = players * (deal + draw)
        available = self.state.deck.total_cards
        if available < required:
            raise NotEnoughCards(required, available)

    def execute_action(self, action: GameAction) -> None:
        self._rules.execute_action(self.state, action)

    def get_state(self) -> GameState:
        return self.state

    def add_player(self, player_id: int) -> None:
        """Seat a new player; they are dealt in from the next round."""

        if self.state.phase is GamePhase.GAME_END:
            raise WrongGamePhase("the game has ended")
        if any(player.id == player_id for player in self.state.players):
            raise PlayerAlreadyExists(f"player {player_id} already exists")
        self.state.players.append(Player(id=player_id, joined_in_round=self.state.current_round))
        logger.debug("player %d joined in round %d", player_id, self.state.current_round)

    def quit_player(self, player_id: int) -> None:
        """Mark a player as quit; passes the turn on if it was theirs."""

        state = self.state
        if state.phase is GamePhase.GAME_END:
            raise WrongGamePhase("the game has ended")
        player = state.find_player(player_id)
        was_current = state.phase.is_playing and state.players[state.current_player] is player
        player.active = False
        player.quit = True
        logger.debug("player %d quit in round %d", player_id, state.current_round)

        if state.phase.is_playing:
            remaining = len(state.active_players())
        else:
            remaining = len(state.participants())
        if remaining < MIN_PLAYERS:
            state.phase = GamePhase.GAME_END
            logger.debug("game over: %d player(s) left", remaining)
            return
        if was_current:
            state.phase = GamePhase.DRAW
            state.to_next_player()

    def rearrange_hand(self, player_id: int, new_arrangement: Sequence[Card]) -> None:
        """Reorder a hand; ``new_arrangement`` must hold exactly the same cards."""

        if not self.state.phase.is_playing:
            raise WrongGamePhase("hands can only be rearranged during a round")
        player = self.state.find_player(player_id)
        current = Counter((card.rank, card.suit) for card in player.cards)
        proposed = Counter((card.rank, card.suit) for card in new_arrangement)
        if current != proposed:
            raise FailedHandRearrangement("new arrangement doesn't match the cards in hand")
        config = self.state.deck.config
        player.cards = [Card(card.rank, card.suit, config) for card in new_arrangement]

    def next_round(self) -> None:
        state = self.state
        if state.phase is not GamePhase.ROUND_END:
            raise WrongGamePhase(f"can't start a new round in phase {state.phase.value}")
        self.validate_setup()

        finished = state.current_round
        round_score = None
        if finished != 0:
            round_score = self._rules.calculate_round_score(state)

        deal = self._rules.cards_to_deal(state)
        starting_player = self._rules.starting_player_index(state)
        state.start_new_round(deal, starting_player)
        if round_score is not None:
            state.round_scores[finished] = round_score
            logger.debug("round %d won by player %d", finished, round_score.winner_id)
