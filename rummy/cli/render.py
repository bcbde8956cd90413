"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Iterable

from rich.console import RenderableType
from rich.panel import Panel

from ..cards import Card, Suit
from ..state import GameState
from .views import StateSummaryView

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``; wildcards are underlined."""

    if card.is_joker:
        return f"[bold magenta]{card.label()}[/bold magenta]"
    color = _SUIT_COLORS.get(card.suit, "white")
    style = f"underline {color}" if card.is_wildcard() else color
    return f"[{style}]{card.label()}[/{style}]"


def render_state(
    state: GameState,
    *,
    reveal_players: Iterable[int] | None = None,
    title: str = "Rummy",
) -> RenderableType:
    """Return a Rich panel describing the current table state."""

    view = StateSummaryView(
        state=state,
        reveal_players=set(reveal_players or set()),
        card_formatter=format_card,
    )
    return Panel(view.render(), title=title, padding=(0, 1), border_style="cyan")
