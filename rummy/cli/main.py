"""Typer entry-point wiring for the Rummy CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..actions import (
    DiscardAction,
    DrawDeckAction,
    DrawDiscardPileAction,
    FormMeldAction,
    FormMeldsAction,
    GameAction,
    LayOffAction,
)
from ..cards import Rank, sort_by_value
from ..deck import Deck, DeckConfig
from ..errors import InternalError, RummyError
from ..game import BasicRummyGame
from ..rules import BasicConfig
from ..state import GamePhase
from .render import format_card, render_state

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

logger = logging.getLogger(__name__)

HELP_TEXT = """\
[bold]d[/bold]                draw from the stock
[bold]p[/bold] [n]            draw from the discard pile
[bold]m[/bold] i j k ...      form a meld from hand indices
[bold]mm[/bold] i j k / l m n  form several melds at once
[bold]l[/bold] card seat meld  lay a card off onto a meld
[bold]x[/bold] i              discard, ending the turn
[bold]s[/bold]                sort your hand by value
[bold]q[/bold] id             quit a player
[bold]n[/bold]                start the next round
[bold]exit[/bold]             leave the game"""


class CommandError(ValueError):
    """Raised when a typed command can't be parsed."""


@dataclass(frozen=True, slots=True)
class Command:
    """A parsed line of input: a game action or a table command."""

    name: str
    action: GameAction | None = None
    argument: int | None = None


def _ints(tokens: Sequence[str]) -> list[int]:
    try:
        return [int(token) for token in tokens]
    except ValueError:
        raise CommandError(f"expected numbers, got {' '.join(tokens)!r}") from None


def parse_command(line: str) -> Command:
    """Parse one line typed at the prompt."""

    tokens = line.split()
    if not tokens:
        raise CommandError("empty command")
    name, args = tokens[0].lower(), tokens[1:]

    if name == "d":
        return Command(name, DrawDeckAction())
    if name == "p":
        counts = _ints(args)
        if len(counts) > 1:
            raise CommandError("usage: p [count]")
        return Command(name, DrawDiscardPileAction(counts[0] if counts else None))
    if name == "m":
        return Command(name, FormMeldAction(tuple(_ints(args))))
    if name == "mm":
        groups = " ".join(args).split("/")
        return Command(name, FormMeldsAction(tuple(tuple(_ints(group.split())) for group in groups)))
    if name == "l":
        values = _ints(args)
        if len(values) != 3:
            raise CommandError("usage: l card seat meld")
        return Command(name, LayOffAction(values[0], values[1], values[2]))
    if name == "x":
        values = _ints(args)
        if len(values) != 1:
            raise CommandError("usage: x index")
        return Command(name, DiscardAction(values[0]))
    if name == "q":
        values = _ints(args)
        if len(values) != 1:
            raise CommandError("usage: q player-id")
        return Command(name, argument=values[0])
    if name in {"s", "n", "exit", "help", "?"}:
        return Command(name)
    raise CommandError(f"unknown command {name!r}; type 'help'")


def _parse_rank(value: str | None) -> Rank | None:
    if value is None:
        return None
    try:
        return Rank.from_code(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def build_configs(
    *,
    seed: int | None = None,
    packs: int = 1,
    jokers: bool = False,
    wildcard: str | None = None,
    high_rank: str | None = None,
    deal: int | None = None,
) -> tuple[DeckConfig, BasicConfig]:
    """Map command-line options onto the deck and rules configuration."""

    if jokers and wildcard is not None:
        raise typer.BadParameter("--jokers and --wildcard are mutually exclusive")
    wildcard_rank = Rank.JOKER if jokers else _parse_rank(wildcard)
    deck_config = DeckConfig(
        shuffle_seed=seed,
        pack_count=packs,
        high_rank=_parse_rank(high_rank),
        wildcard_rank=wildcard_rank,
    )
    return deck_config, BasicConfig(deal_amount=deal)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def _render_round_summary(game: BasicRummyGame) -> Panel:
    state = game.get_state()
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="left")
    table.add_column("Hand", justify="left")
    table.add_column("Points", justify="right")
    for player in state.players:
        if player.dealt_in_round != state.current_round:
            continue
        points = sum(card.score_value() for card in player.cards)
        hand = " ".join(format_card(card) for card in player.cards) or "—"
        table.add_row(f"P{player.id}", hand, str(points))
    return Panel(table, title=f"Round {state.current_round} over", border_style="green")


def apply_command(game: BasicRummyGame, command: Command) -> bool:
    """Apply ``command`` to ``game``; return ``False`` when the user leaves."""

    state = game.get_state()
    if command.action is not None:
        game.execute_action(command.action)
    elif command.name == "s":
        player = state.get_current_player()
        game.rearrange_hand(player.id, sort_by_value(player.cards))
    elif command.name == "q":
        assert command.argument is not None
        game.quit_player(command.argument)
    elif command.name == "n":
        game.next_round()
    elif command.name in {"help", "?"}:
        console.print(Panel(HELP_TEXT, title="Commands", border_style="yellow"))
    elif command.name == "exit":
        return False
    return True


@app.command()
def play(
    players: int = typer.Option(2, min=2, help="Number of seated players."),
    seed: int | None = typer.Option(None, help="Shuffle seed (0 keeps the stock sorted, omit for randomness)."),
    packs: int = typer.Option(1, min=1, help="Number of 52-card packs."),
    jokers: bool = typer.Option(False, "--jokers", help="Add two Jokers per pack and make them wild."),
    wildcard: str | None = typer.Option(None, help="Rank code to use as wildcard, e.g. '2'."),
    high_rank: str | None = typer.Option(None, "--high-rank", help="Rank code that tops the ordering, e.g. 'A'."),
    deal: int | None = typer.Option(None, min=1, help="Override the number of cards dealt."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine events."),
) -> None:
    """Play hot-seat basic rummy in the terminal."""

    configure_logging(verbose)
    deck_config, basic_config = build_configs(
        seed=seed, packs=packs, jokers=jokers, wildcard=wildcard, high_rank=high_rank, deal=deal
    )
    try:
        game = BasicRummyGame(range(players), basic_config, deck_config)
        game.next_round()
    except RummyError as exc:
        console.print(f"[red]Can't start the game:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(Panel(HELP_TEXT, title="Commands", border_style="yellow"))
    while True:
        state = game.get_state()
        reveal = {state.current_player} if state.phase.is_playing else set(range(len(state.players)))
        console.print(render_state(state, reveal_players=reveal))
        if state.phase is GamePhase.GAME_END:
            console.print("[bold green]Game over.[/bold green]")
            break
        if state.phase is GamePhase.ROUND_END:
            console.print(_render_round_summary(game))
            prompt = "[bold]Round over[/bold] (n: next round, exit)> "
        else:
            player = state.get_current_player()
            prompt = f"[bold yellow]P{player.id}[/bold yellow] {state.phase.value}> "

        try:
            line = console.input(prompt)
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        try:
            command = parse_command(line)
            if not apply_command(game, command):
                break
        except CommandError as exc:
            console.print(f"[yellow]{exc}[/yellow]")
        except InternalError as exc:
            logger.error("game stopped: %s", exc)
            console.print(f"[bold red]Internal error, stopping:[/bold red] {exc}")
            raise typer.Exit(code=2) from exc
        except RummyError as exc:
            console.print(f"[red]{type(exc).__name__}:[/red] {exc}")


@app.command()
def deck(
    seed: int | None = typer.Option(0, help="Shuffle seed (0 keeps the stock sorted)."),
    packs: int = typer.Option(1, min=1, help="Number of 52-card packs."),
    jokers: bool = typer.Option(False, "--jokers", help="Add two Jokers per pack and make them wild."),
    wildcard: str | None = typer.Option(None, help="Rank code to use as wildcard."),
    high_rank: str | None = typer.Option(None, "--high-rank", help="Rank code that tops the ordering."),
) -> None:
    """Print the stock generated for a deck configuration, top card last."""

    deck_config, _ = build_configs(
        seed=seed, packs=packs, jokers=jokers, wildcard=wildcard, high_rank=high_rank
    )
    generated = Deck(deck_config)
    table = Table(title=f"Stock ({len(generated.stock)} cards)", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Card", justify="left")
    table.add_column("Value", justify="right")
    for idx, card in enumerate(generated.stock):
        table.add_row(str(idx), format_card(card), str(card.value()))
    console.print(table)


def main() -> None:
    """Entry-point for ``python -m rummy.cli``."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
