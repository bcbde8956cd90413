"""Top-level package for the Rummy game engine."""

from . import actions, cards, deck, errors, game, history, melds, rules, scoreboard, state
from .actions import (
    DiscardAction,
    DrawDeckAction,
    DrawDiscardPileAction,
    FormMeldAction,
    FormMeldsAction,
    GameAction,
    LayOffAction,
)
from .cards import Card, Rank, Suit
from .deck import Deck, DeckConfig
from .game import BasicRummyGame, Game
from .rules import BasicConfig, BasicRules, DrawDiscardPileOverride
from .state import GamePhase, GameState, Player

__all__ = [
    "actions",
    "cards",
    "deck",
    "errors",
    "game",
    "history",
    "melds",
    "rules",
    "scoreboard",
    "state",
    "BasicConfig",
    "BasicRules",
    "BasicRummyGame",
    "Card",
    "Deck",
    "DeckConfig",
    "DiscardAction",
    "DrawDeckAction",
    "DrawDiscardPileAction",
    "DrawDiscardPileOverride",
    "FormMeldAction",
    "FormMeldsAction",
    "Game",
    "GameAction",
    "GamePhase",
    "GameState",
    "LayOffAction",
    "Player",
    "Rank",
    "Suit",
]
