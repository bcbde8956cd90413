"""Recording and replaying every interaction with a game."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence, Union

from .actions import GameAction
from .cards import Card
from .errors import RummyError
from .game import Game
from .rules import GameRules
from .state import GameState

__all__ = [
    "ActionInteraction",
    "PlayerJoin",
    "PlayerQuit",
    "HandRearrangement",
    "Interaction",
    "HistoryEntry",
    "History",
    "Replay",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionInteraction:
    action: GameAction


@dataclass(frozen=True, slots=True)
class PlayerJoin:
    player_id: int


@dataclass(frozen=True, slots=True)
class PlayerQuit:
    player_id: int


@dataclass(frozen=True, slots=True)
class HandRearrangement:
    player_id: int
    hand: tuple[Card, ...]


Interaction = Union[ActionInteraction, PlayerJoin, PlayerQuit, HandRearrangement]


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One recorded call and whether it succeeded."""

    entry: Interaction
    time: datetime
    successful: bool


def apply_interaction(game: Game, interaction: Interaction) -> None:
    """Re-issue ``interaction`` against ``game``."""

    if isinstance(interaction, ActionInteraction):
        game.execute_action(interaction.action)
    elif isinstance(interaction, PlayerJoin):
        game.add_player(interaction.player_id)
    elif isinstance(interaction, PlayerQuit):
        game.quit_player(interaction.player_id)
    elif isinstance(interaction, HandRearrangement):
        game.rearrange_hand(interaction.player_id, interaction.hand)
    else:
        raise TypeError(f"unknown interaction {interaction!r}")


class History(Game):
    """Wraps a game and records every interaction, round by round.

    The game as it was at the start of each round is kept, so any point of
    the game can be rebuilt from it. Wrap a game that hasn't started yet.
    """

    def __init__(self, game: Game) -> None:
        self.game = game
        round_number = game.get_state().current_round
        self.initial_round_states: dict[int, Game] = {round_number: copy.deepcopy(game)}
        self.entries: dict[int, list[HistoryEntry]] = {round_number: []}

    def __repr__(self) -> str:
        recorded = sum(len(entries) for entries in self.entries.values())
        return f"History({self.game!r}, entries={recorded})"

    @property
    def rules(self) -> GameRules:
        return self.game.rules  # type: ignore[attr-defined]

    def current_round_entries(self) -> list[HistoryEntry]:
        return self.entries[self.game.get_state().current_round]

    def execute_action(self, action: GameAction) -> None:
        self._record(ActionInteraction(action), lambda: self.game.execute_action(action))

    def get_state(self) -> GameState:
        return self.game.get_state()

    def add_player(self, player_id: int) -> None:
        self._record(PlayerJoin(player_id), lambda: self.game.add_player(player_id))

    def quit_player(self, player_id: int) -> None:
        self._record(PlayerQuit(player_id), lambda: self.game.quit_player(player_id))

    def rearrange_hand(self, player_id: int, new_arrangement: Sequence[Card]) -> None:
        hand = tuple(new_arrangement)
        self._record(HandRearrangement(player_id, hand), lambda: self.game.rearrange_hand(player_id, hand))

    def next_round(self) -> None:
        # failed calls aren't recorded; they leave the game untouched
        self.game.next_round()
        round_number = self.game.get_state().current_round
        self.entries[round_number] = []
        self.initial_round_states[round_number] = copy.deepcopy(self.game)

    def _record(self, interaction: Interaction, call: Callable[[], None]) -> None:
        entries = self.current_round_entries()
        try:
            call()
        except RummyError:
            entries.append(HistoryEntry(interaction, datetime.now(timezone.utc), False))
            raise
        entries.append(HistoryEntry(interaction, datetime.now(timezone.utc), True))


class Replay:
    """Steps through a ``History`` on a copy of its recorded rounds.

    Moving forward applies one entry at a time. Moving back rebuilds the round
    from its initial state, which costs one pass over the round's entries.
    """

    def __init__(self, history: History, skip_failed: bool = True) -> None:
        self.history = history
        self.skip_failed = skip_failed
        self.round = min(history.initial_round_states)
        self.position = 0
        self.game = copy.deepcopy(history.initial_round_states[self.round])

    def __repr__(self) -> str:
        return f"Replay(round={self.round}, position={self.position})"

    def get_state(self) -> GameState:
        return self.game.get_state()

    def step(self) -> HistoryEntry | None:
        """Apply the next recorded entry and return it, or ``None`` at the end."""

        while True:
            entries = self.history.entries[self.round]
            if self.position < len(entries):
                entry = entries[self.position]
                self.position += 1
                if not entry.successful and self.skip_failed:
                    continue
                self._apply(entry)
                return entry
            next_round = self.round + 1
            if next_round not in self.history.entries:
                return None
            self.round = next_round
            self.position = 0
            self.game = copy.deepcopy(self.history.initial_round_states[next_round])

    def previous(self) -> None:
        """Undo the last applied entry, rebuilding the round from its start."""

        rounds = sorted(self.history.entries)
        while True:
            if self.position == 0:
                index = rounds.index(self.round)
                if index == 0:
                    break
                self.round = rounds[index - 1]
                self.position = len(self.history.entries[self.round])
                if self.position == 0:
                    continue
            self.position -= 1
            entry = self.history.entries[self.round][self.position]
            if entry.successful or not self.skip_failed:
                break
        self._rebuild()

    def _rebuild(self) -> None:
        self.game = copy.deepcopy(self.history.initial_round_states[self.round])
        for entry in self.history.entries[self.round][: self.position]:
            if entry.successful:
                self._apply(entry)

    def _apply(self, entry: HistoryEntry) -> None:
        if not entry.successful:
            return
        try:
            apply_interaction(self.game, entry.entry)
        except RummyError:
            logger.error("recorded entry %r no longer applies", entry)
            raise
