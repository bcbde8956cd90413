"""Actions a player submits to the rules engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

__all__ = [
    "DrawDeckAction",
    "DrawDiscardPileAction",
    "LayOffAction",
    "FormMeldAction",
    "FormMeldsAction",
    "DiscardAction",
    "GameAction",
    "DRAW_ACTIONS",
    "PLAY_ACTIONS",
    "describe_action",
]


@dataclass(frozen=True)
class DrawDeckAction:
    """Draw from the top of the stock."""


@dataclass(frozen=True)
class DrawDiscardPileAction:
    """Draw from the discard pile; ``count`` only matters for some variants."""

    count: int | None = None


@dataclass(frozen=True)
class LayOffAction:
    """Add the hand card at ``card_index`` to another meld on the table."""

    card_index: int
    target_player_index: int
    target_meld_index: int
    position: int = 0  # unused by basic rummy


@dataclass(frozen=True)
class FormMeldAction:
    card_indices: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "card_indices", tuple(self.card_indices))


@dataclass(frozen=True)
class FormMeldsAction:
    """Form several melds at once; all succeed or none do."""

    melds: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "melds", tuple(tuple(indices) for indices in self.melds))


@dataclass(frozen=True)
class DiscardAction:
    """Discard the hand card at ``card_index``, ending the turn."""

    card_index: int
    declare_going_out: bool | None = None


GameAction = Union[
    DrawDeckAction,
    DrawDiscardPileAction,
    LayOffAction,
    FormMeldAction,
    FormMeldsAction,
    DiscardAction,
]

DRAW_ACTIONS = (DrawDeckAction, DrawDiscardPileAction)
PLAY_ACTIONS = (LayOffAction, FormMeldAction, FormMeldsAction, DiscardAction)


def describe_action(action: GameAction) -> str:
    """Return a short human readable description of ``action``."""

    if isinstance(action, DrawDeckAction):
        return "draw from stock"
    if isinstance(action, DrawDiscardPileAction):
        suffix = "" if action.count is None else f" ({action.count})"
        return f"draw from discard pile{suffix}"
    if isinstance(action, LayOffAction):
        return (
            f"lay off card {action.card_index} onto player {action.target_player_index}'s "
            f"meld {action.target_meld_index}"
        )
    if isinstance(action, FormMeldAction):
        return f"form meld {list(action.card_indices)}"
    if isinstance(action, FormMeldsAction):
        return "form melds " + " / ".join(str(list(indices)) for indices in action.melds)
    if isinstance(action, DiscardAction):
        return f"discard card {action.card_index}"
    raise TypeError(f"unknown action {action!r}")
