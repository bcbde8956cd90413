"""Round scores and multi-round match totals for Rummy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .state import GameState, Player

__all__ = ["BasicScore", "RoundScore", "PlayerMatchTotal", "MatchTotals", "match_totals"]


@dataclass(frozen=True, slots=True)
class BasicScore:
    """A single player's score in basic rummy: the face value left in hand."""

    score: int

    @classmethod
    def score_player(cls, player: "Player") -> "BasicScore":
        return cls(sum(card.score_value() for card in player.cards))


@dataclass(frozen=True, slots=True)
class RoundScore:
    """Scores captured after a single round, keyed by player id."""

    player_scores: Mapping[int, BasicScore]
    winner_id: int


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate totals accumulated across all recorded rounds."""

    player_id: int
    wins: int
    points: int
    rounds_played: int


@dataclass(slots=True)
class MatchTotals:
    """Mutable tracker that accumulates round scores for a match."""

    player_ids: list[int]
    rounds: list[RoundScore] = field(default_factory=list)
    _wins: dict[int, int] = field(init=False, repr=False)
    _points: dict[int, int] = field(init=False, repr=False)
    _played: dict[int, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if len(set(self.player_ids)) != len(self.player_ids):
            raise ValueError("player ids must be unique")
        self._wins = {player_id: 0 for player_id in self.player_ids}
        self._points = {player_id: 0 for player_id in self.player_ids}
        self._played = {player_id: 0 for player_id in self.player_ids}

    def record(self, round_score: RoundScore) -> None:
        """Record ``round_score`` and update cumulative totals."""

        for player_id in round_score.player_scores:
            if player_id not in self._points:
                raise ValueError(f"unknown player id {player_id}")
        if round_score.winner_id not in round_score.player_scores:
            raise ValueError("winner did not take part in the round")
        self.rounds.append(round_score)
        for player_id, score in round_score.player_scores.items():
            self._points[player_id] += score.score
            self._played[player_id] += 1
        self._wins[round_score.winner_id] += 1

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seating order."""

        return [
            PlayerMatchTotal(
                player_id=player_id,
                wins=self._wins[player_id],
                points=self._points[player_id],
                rounds_played=self._played[player_id],
            )
            for player_id in self.player_ids
        ]

    def leader(self) -> int | None:
        """Return the id with the fewest points among players who played, if any."""

        played = [total for total in self.totals() if total.rounds_played]
        if not played:
            return None
        return min(played, key=lambda total: (total.points, -total.wins)).player_id


def match_totals(state: "GameState", rounds: Iterable[int] | None = None) -> MatchTotals:
    """Build ``MatchTotals`` from the round scores stored on ``state``."""

    totals = MatchTotals([player.id for player in state.players])
    numbers = sorted(state.round_scores) if rounds is None else list(rounds)
    for number in numbers:
        totals.record(state.round_scores[number])
    return totals
