"""Composable view primitives for the Rummy CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Set

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card
from ..scoreboard import match_totals
from ..state import GamePhase, GameState


@dataclass(slots=True)
class StateSummaryView:
    """Renderable summarising the current table state."""

    state: GameState
    reveal_players: Set[int]
    card_formatter: Callable[[Card], str]

    def _cards_markup(self, cards: Sequence[Card], visible: bool) -> str:
        if not visible:
            return f"{len(cards)} cards"
        if not cards:
            return "—"
        return " ".join(self.card_formatter(card) for card in cards)

    def _indexed_hand(self, cards: Sequence[Card]) -> str:
        return "  ".join(f"[dim]{idx}:[/dim]{self.card_formatter(card)}" for idx, card in enumerate(cards))

    def _metadata_panel(self) -> Panel:
        deck = self.state.deck
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Round[/cyan]: {self.state.current_round}")
        grid.add_row(f"[cyan]Phase[/cyan]: {self.state.phase.value.replace('_', ' ').title()}")
        grid.add_row(f"[cyan]Stock[/cyan]: {len(deck.stock)} card(s)")
        top = deck.peek_discard()
        if top is not None:
            grid.add_row(
                f"[cyan]Discard[/cyan]: {self.card_formatter(top)} ({len(deck.discard_pile)} card(s))"
            )
        else:
            grid.add_row("[cyan]Discard[/cyan]: —")
        return Panel(grid, title="Table State", box=box.SQUARE, border_style="blue")

    def _melds_panel(self) -> Panel | None:
        meld_table = Table(box=box.MINIMAL, expand=True)
        meld_table.add_column("Meld", justify="left", style="bold")
        meld_table.add_column("Owner", justify="left")
        meld_table.add_column("Kind", justify="left")
        meld_table.add_column("Cards", justify="left")

        rows = 0
        for seat, player in enumerate(self.state.players):
            for idx, meld in enumerate(player.melds):
                cards_display = " ".join(self.card_formatter(card) for card in meld.cards)
                meld_table.add_row(f"{seat}/{idx}", f"P{player.id}", meld.kind.value.title(), cards_display)
                rows += 1
        if not rows:
            return None
        return Panel(meld_table, title="Table Melds", box=box.SQUARE, border_style="green")

    def _scores_panel(self) -> Panel | None:
        if not self.state.round_scores:
            return None
        totals = match_totals(self.state)
        table = Table(box=box.SIMPLE_HEAVY, expand=True)
        table.add_column("Player", justify="left")
        for number in sorted(self.state.round_scores):
            table.add_column(f"R{number}", justify="right")
        table.add_column("Total", justify="right", style="bold")
        table.add_column("Wins", justify="right")
        for total in totals.totals():
            cells = []
            for number in sorted(self.state.round_scores):
                round_score = self.state.round_scores[number]
                score = round_score.player_scores.get(total.player_id)
                if score is None:
                    cells.append("—")
                elif round_score.winner_id == total.player_id:
                    cells.append(f"[green]{score.score}[/green]")
                else:
                    cells.append(str(score.score))
            table.add_row(f"P{total.player_id}", *cells, str(total.points), str(total.wins))
        return Panel(table, title="Scores", box=box.SQUARE, border_style="magenta")

    def render(self) -> RenderableType:
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("Seat", justify="left", style="bold")
        table.add_column("Hand", justify="left")
        table.add_column("Melds", justify="right")
        table.add_column("Status", justify="left")

        playing = self.state.phase in (GamePhase.DRAW, GamePhase.PLAY)
        for seat, player in enumerate(self.state.players):
            visible = seat in self.reveal_players
            if visible:
                hand_display = self._indexed_hand(player.cards) or "—"
            else:
                hand_display = self._cards_markup(player.cards, False)

            if player.quit:
                status = "[red]Quit[/red]"
            elif not player.active:
                status = "[dim]Waiting[/dim]"
            elif not player.cards and self.state.phase is GamePhase.ROUND_END:
                status = "[bold green]Out[/bold green]"
            else:
                status = "Playing"

            name = f"{seat} · P{player.id}"
            if playing and seat == self.state.current_player:
                name = f"[bold yellow]{name}[/bold yellow]"
            table.add_row(name, hand_display, str(len(player.melds)), status)

        components: list[RenderableType] = [table, self._metadata_panel()]
        melds_panel = self._melds_panel()
        if melds_panel is not None:
            components.append(melds_panel)
        scores_panel = self._scores_panel()
        if scores_panel is not None:
            components.append(scores_panel)
        return Group(*components)
