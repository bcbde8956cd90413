"""Rule engine and the basic rummy variant."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .actions import (
    DiscardAction,
    DrawDeckAction,
    DrawDiscardPileAction,
    FormMeldAction,
    FormMeldsAction,
    GameAction,
    LayOffAction,
    describe_action,
)
from .deck import DiscardPileExhausted, StockExhausted
from .errors import (
    DiscardPileTooSmall,
    FailedMeld,
    InternalError,
    InvalidCardIndex,
    InvalidMeldIndex,
    InvalidPlayerIndex,
    NoCardsInDeckOrDiscardPile,
    RoundHasNoWinner,
    WrongGamePhase,
)
from .melds import MeldError, form_meld, form_melds
from .scoreboard import BasicScore, RoundScore
from .state import GamePhase, GameState

__all__ = [
    "GameRules",
    "DrawDiscardPileOverride",
    "BasicConfig",
    "BasicRules",
    "DEFAULT_DEAL_AMOUNTS",
]

logger = logging.getLogger(__name__)

DEFAULT_DEAL_AMOUNTS: Final[dict[int, int]] = {2: 10, 3: 7, 4: 7, 5: 7, 6: 6}
FALLBACK_DEAL_AMOUNT: Final[int] = 10


class GameRules(ABC):
    """The rule set of a variant: action handlers, scoring and deal parameters.

    ``execute_action`` checks the phase once, so handlers can assume the
    action is legal for the current phase. Handlers validate everything else
    before they mutate ``state``.
    """

    def execute_action(self, state: GameState, action: GameAction) -> None:
        if isinstance(action, DrawDeckAction):
            handler = self.handle_draw_deck
        elif isinstance(action, DrawDiscardPileAction):
            handler = self.handle_draw_discard_pile
        elif isinstance(action, LayOffAction):
            handler = self.handle_lay_off
        elif isinstance(action, FormMeldAction):
            handler = self.handle_form_meld
        elif isinstance(action, FormMeldsAction):
            handler = self.handle_form_melds
        elif isinstance(action, DiscardAction):
            handler = self.handle_discard
        else:
            raise TypeError(f"unknown action {action!r}")
        state.validate_action(action)

        seat = state.current_player
        try:
            handler(state, action)  # type: ignore[arg-type]
        except InternalError as exc:
            logger.error("internal error while executing %r: %s", action, exc)
            raise
        logger.debug("seat %d: %s -> %s", seat, describe_action(action), state.phase.value)

    @abstractmethod
    def handle_draw_deck(self, state: GameState, action: DrawDeckAction) -> None: ...

    @abstractmethod
    def handle_draw_discard_pile(self, state: GameState, action: DrawDiscardPileAction) -> None: ...

    @abstractmethod
    def handle_lay_off(self, state: GameState, action: LayOffAction) -> None: ...

    @abstractmethod
    def handle_form_meld(self, state: GameState, action: FormMeldAction) -> None: ...

    @abstractmethod
    def handle_form_melds(self, state: GameState, action: FormMeldsAction) -> None: ...

    @abstractmethod
    def handle_discard(self, state: GameState, action: DiscardAction) -> None: ...

    @abstractmethod
    def calculate_round_score(self, state: GameState) -> RoundScore:
        """Score the finished round; raise ``WrongGamePhase`` if it hasn't ended."""

    @abstractmethod
    def cards_to_deal(self, state: GameState) -> int: ...

    @abstractmethod
    def cards_to_draw_from_deck(self, state: GameState) -> int: ...

    @abstractmethod
    def cards_to_draw_from_discard_pile(self, state: GameState, requested: int) -> int: ...

    @abstractmethod
    def starting_player_index(self, state: GameState) -> int: ...


class DiscardDrawKind(str, Enum):
    PLAYER_CHOOSES = "player_chooses"
    WHOLE_PILE = "whole_pile"
    CONSTANT = "constant"


@dataclass(frozen=True, slots=True)
class DrawDiscardPileOverride:
    """How many cards a discard-pile draw takes."""

    kind: DiscardDrawKind
    amount: int = 1

    @classmethod
    def player_chooses(cls) -> "DrawDiscardPileOverride":
        return cls(DiscardDrawKind.PLAYER_CHOOSES)

    @classmethod
    def whole_pile(cls) -> "DrawDiscardPileOverride":
        return cls(DiscardDrawKind.WHOLE_PILE)

    @classmethod
    def constant(cls, amount: int) -> "DrawDiscardPileOverride":
        if amount < 1:
            raise ValueError("constant discard pile draw must be at least 1")
        return cls(DiscardDrawKind.CONSTANT, amount)


@dataclass(frozen=True, slots=True)
class BasicConfig:
    """Overrides for basic rummy; ``None`` keeps the default."""

    deal_amount: int | None = None
    draw_deck_amount: int | None = None
    draw_discard_pile_amount: DrawDiscardPileOverride | None = None


class BasicRules(GameRules):
    """Rules for basic rummy."""

    def __init__(self, config: BasicConfig | None = None) -> None:
        self.config = config or BasicConfig()

    def __repr__(self) -> str:
        return f"BasicRules({self.config!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BasicRules):
            return NotImplemented
        return self.config == other.config

    def cards_to_deal(self, state: GameState) -> int:
        if self.config.deal_amount is not None:
            return self.config.deal_amount
        return DEFAULT_DEAL_AMOUNTS.get(len(state.participants()), FALLBACK_DEAL_AMOUNT)

    def cards_to_draw_from_deck(self, state: GameState) -> int:
        if self.config.draw_deck_amount is not None:
            return self.config.draw_deck_amount
        return 1

    def cards_to_draw_from_discard_pile(self, state: GameState, requested: int) -> int:
        override = self.config.draw_discard_pile_amount
        if override is None:
            return 1
        if override.kind is DiscardDrawKind.PLAYER_CHOOSES:
            return requested
        if override.kind is DiscardDrawKind.WHOLE_PILE:
            return len(state.deck.discard_pile)
        return override.amount

    def starting_player_index(self, state: GameState) -> int:
        seats = state.participants()
        if not seats:
            return 0
        return seats[state.current_round % len(seats)]

    def handle_draw_deck(self, state: GameState, action: DrawDeckAction) -> None:
        player = state.get_current_player()
        amount = self.cards_to_draw_from_deck(state)
        try:
            drawn = state.deck.draw_replenishing(amount)
        except StockExhausted as exc:
            raise NoCardsInDeckOrDiscardPile(str(exc)) from exc
        player.cards.extend(drawn)
        state.phase = GamePhase.PLAY

    def handle_draw_discard_pile(self, state: GameState, action: DrawDiscardPileAction) -> None:
        player = state.get_current_player()
        requested = 1 if action.count is None else action.count
        amount = self.cards_to_draw_from_discard_pile(state, requested)
        try:
            drawn = state.deck.draw_from_discard(amount)
        except DiscardPileExhausted as exc:
            raise DiscardPileTooSmall(str(exc)) from exc
        player.cards.extend(drawn)
        state.phase = GamePhase.PLAY

    def handle_lay_off(self, state: GameState, action: LayOffAction) -> None:
        if not 0 <= action.target_player_index < len(state.players):
            raise InvalidPlayerIndex(f"player index {action.target_player_index} is out of range")
        player = state.get_current_player()
        target = state.players[action.target_player_index]
        if not 0 <= action.target_meld_index < len(target.melds):
            raise InvalidMeldIndex(f"meld index {action.target_meld_index} is out of range")
        meld = target.melds[action.target_meld_index]
        try:
            meld.layoff_card(player.cards, action.card_index)
        except MeldError as exc:
            raise FailedMeld(exc) from exc
        if not player.cards:
            state.phase = GamePhase.ROUND_END

    def handle_form_meld(self, state: GameState, action: FormMeldAction) -> None:
        player = state.get_current_player()
        try:
            meld = form_meld(player.cards, action.card_indices)
        except MeldError as exc:
            raise FailedMeld(exc) from exc
        player.melds.append(meld)
        if not player.cards:
            state.phase = GamePhase.ROUND_END

    def handle_form_melds(self, state: GameState, action: FormMeldsAction) -> None:
        player = state.get_current_player()
        try:
            melds = form_melds(player.cards, action.melds)
        except MeldError as exc:
            raise FailedMeld(exc) from exc
        player.melds.extend(melds)
        if not player.cards:
            state.phase = GamePhase.ROUND_END

    def handle_discard(self, state: GameState, action: DiscardAction) -> None:
        player = state.get_current_player()
        if not 0 <= action.card_index < len(player.cards):
            raise InvalidCardIndex(f"card index {action.card_index} is out of range")
        state.deck.add_to_discard(player.cards.pop(action.card_index))
        if not player.cards:
            state.phase = GamePhase.ROUND_END
            return
        state.phase = GamePhase.DRAW
        state.to_next_player()

    def calculate_round_score(self, state: GameState) -> RoundScore:
        if state.phase is not GamePhase.ROUND_END:
            raise WrongGamePhase("round hasn't ended")
        scored = [player for player in state.players if player.dealt_in_round == state.current_round]
        player_scores = {player.id: BasicScore.score_player(player) for player in scored}

        winner_id: int | None = None
        if 0 <= state.current_player < len(state.players):
            current = state.players[state.current_player]
            if current.id in player_scores and not current.cards:
                winner_id = current.id
        if winner_id is None:
            winner_id = next((player.id for player in scored if player_scores[player.id].score == 0), None)
        if winner_id is None:
            logger.error("round %d ended without a zero-score player", state.current_round)
            raise RoundHasNoWinner(f"round {state.current_round} has no winner")
        return RoundScore(player_scores=player_scores, winner_id=winner_id)
