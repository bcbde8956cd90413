from __future__ import annotations

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from rummy.actions import DiscardAction, DrawDeckAction, DrawDiscardPileAction, FormMeldAction, FormMeldsAction, LayOffAction
from rummy.cards import Rank
from rummy.cli.main import CommandError, apply_command, app, build_configs, parse_command
from rummy.cli.render import render_state
from rummy.deck import DeckConfig
from rummy.game import BasicRummyGame

runner = CliRunner()


def _started_game() -> BasicRummyGame:
    game = BasicRummyGame([0, 1], deck_config=DeckConfig(shuffle_seed=0))
    game.next_round()
    return game


@pytest.mark.parametrize(
    ("line", "action"),
    [
        ("d", DrawDeckAction()),
        ("p", DrawDiscardPileAction()),
        ("p 2", DrawDiscardPileAction(2)),
        ("m 0 1 2", FormMeldAction((0, 1, 2))),
        ("mm 0 1 2 / 4 5 6", FormMeldsAction(((0, 1, 2), (4, 5, 6)))),
        ("l 3 1 0", LayOffAction(3, 1, 0)),
        ("X 4", DiscardAction(4)),
    ],
)
def test_parse_action_commands(line: str, action: object) -> None:
    assert parse_command(line).action == action


def test_parse_table_commands() -> None:
    quit_command = parse_command("q 2")

    assert quit_command.action is None
    assert quit_command.argument == 2
    assert parse_command("  n ").name == "n"
    assert parse_command("?").name == "?"


@pytest.mark.parametrize("line", ["", "   ", "zz", "x", "x a", "l 1 2", "p 1 2", "q"])
def test_parse_rejects_bad_input(line: str) -> None:
    with pytest.raises(CommandError):
        parse_command(line)


def test_build_configs_maps_options() -> None:
    deck_config, basic_config = build_configs(seed=3, packs=2, wildcard="2", high_rank="a", deal=5)

    assert deck_config == DeckConfig(shuffle_seed=3, pack_count=2, high_rank=Rank.ACE, wildcard_rank=Rank.TWO)
    assert basic_config.deal_amount == 5
    assert build_configs(jokers=True)[0].has_jokers


@pytest.mark.parametrize(
    "options",
    [{"jokers": True, "wildcard": "2"}, {"wildcard": "Z"}, {"high_rank": "11"}],
)
def test_build_configs_rejects_bad_options(options: dict[str, object]) -> None:
    with pytest.raises(typer.BadParameter):
        build_configs(**options)  # type: ignore[arg-type]


def test_apply_command_sorts_the_current_hand() -> None:
    game = _started_game()
    hand = game.get_state().players[0].cards
    expected = [card.code for card in hand]
    game.rearrange_hand(0, list(reversed(hand)))

    assert apply_command(game, parse_command("s"))

    assert [card.code for card in game.get_state().players[0].cards] == expected


def test_apply_command_plays_and_exits() -> None:
    game = _started_game()

    assert apply_command(game, parse_command("d"))
    assert apply_command(game, parse_command("x 0"))
    assert game.get_state().current_player == 1
    assert not apply_command(game, parse_command("exit"))


def test_render_state_shows_the_table() -> None:
    game = _started_game()
    console = Console(record=True, width=160)

    console.print(render_state(game.get_state(), reveal_players={0}))

    text = console.export_text()
    assert "Table State" in text
    assert "10 cards" in text
    assert "Stock: 32 card(s)" in text


def test_deck_command_lists_the_stock() -> None:
    result = runner.invoke(app, ["deck", "--seed", "0", "--jokers"])

    assert result.exit_code == 0
    assert "Stock (54 cards)" in result.output


def test_play_command_runs_a_turn() -> None:
    result = runner.invoke(app, ["play", "--seed", "0"], input="d\nm 0 1\nx 0\nexit\n")

    assert result.exit_code == 0
    assert "FailedMeld" in result.output
    assert "P1" in result.output


def test_play_command_reports_unplayable_setups() -> None:
    result = runner.invoke(app, ["play", "--players", "7", "--seed", "0"])

    assert result.exit_code == 1
    assert "Can't start the game" in result.output
