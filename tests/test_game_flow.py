"""End-to-end turns of basic rummy on unshuffled decks."""

from __future__ import annotations

import itertools
import random
from collections import Counter

import pytest

from rummy import errors, melds
from rummy.actions import (
    DiscardAction,
    DrawDeckAction,
    DrawDiscardPileAction,
    FormMeldAction,
    FormMeldsAction,
    GameAction,
    LayOffAction,
)
from rummy.cards import Card, Rank
from rummy.deck import DeckConfig
from rummy.game import BasicRummyGame
from rummy.rules import BasicConfig
from rummy.state import GamePhase

SORTED = DeckConfig(shuffle_seed=0)
SORTED_JOKERS = DeckConfig(shuffle_seed=0, wildcard_rank=Rank.JOKER)


def _game(players: int = 2, deal: int | None = None, deck_config: DeckConfig = SORTED) -> BasicRummyGame:
    game = BasicRummyGame(range(players), BasicConfig(deal_amount=deal), deck_config)
    game.next_round()
    return game


def _hand(game: BasicRummyGame, seat: int) -> list[str]:
    return [card.code for card in game.get_state().players[seat].cards]


def _draw_and_discard(game: BasicRummyGame) -> None:
    game.execute_action(DrawDeckAction())
    game.execute_action(DiscardAction(0))


def test_new_game_waits_for_first_round() -> None:
    game = BasicRummyGame([0, 1], deck_config=SORTED)
    state = game.get_state()

    assert state.phase is GamePhase.ROUND_END
    assert state.current_round == 0
    assert all(not player.active and not player.cards for player in state.players)


def test_first_round_deals_from_the_top() -> None:
    game = _game()
    state = game.get_state()

    assert state.phase is GamePhase.DRAW
    assert state.current_round == 1
    assert state.current_player == 0
    assert _hand(game, 0) == ["JH", "JS", "QC", "QD", "QH", "QS", "KC", "KD", "KH", "KS"]
    assert _hand(game, 1) == ["9C", "9D", "9H", "9S", "10C", "10D", "10H", "10S", "JC", "JD"]
    assert len(state.deck.stock) == 32
    assert state.round_scores == {}


def test_draw_then_form_a_set() -> None:
    game = _game()
    game.execute_action(DrawDeckAction())
    assert _hand(game, 0)[-1] == "8S"
    assert game.get_state().phase is GamePhase.PLAY

    game.execute_action(FormMeldAction((6, 7, 8, 9)))

    player = game.get_state().players[0]
    assert len(player.melds) == 1
    assert [card.code for card in player.melds[0].cards] == ["KC", "KD", "KH", "KS"]
    assert len(player.cards) == 7

    with pytest.raises(errors.FailedMeld) as excinfo:
        game.execute_action(FormMeldAction((6, 7, 8, 9)))
    assert isinstance(excinfo.value.meld_error, melds.InvalidCardIndex)
    assert len(player.cards) == 7
    assert len(player.melds) == 1


def test_duplicate_indices_fail_without_mutation() -> None:
    game = _game()
    game.execute_action(DrawDeckAction())
    before = _hand(game, 0)

    with pytest.raises(errors.FailedMeld) as excinfo:
        game.execute_action(FormMeldAction((1, 2, 3, 4, 1)))

    assert isinstance(excinfo.value.meld_error, melds.DuplicateCardIndex)
    assert _hand(game, 0) == before


@pytest.mark.parametrize(
    "action",
    [
        FormMeldAction((0, 1, 2)),
        FormMeldsAction(((0, 1, 2),)),
        LayOffAction(0, 0, 0),
        DiscardAction(0),
    ],
)
def test_play_actions_are_rejected_while_drawing(action: GameAction) -> None:
    game = _game()
    before = _hand(game, 0)

    with pytest.raises(errors.InvalidGamePhase) as excinfo:
        game.execute_action(action)

    assert excinfo.value.current_phase is GamePhase.DRAW
    assert _hand(game, 0) == before


@pytest.mark.parametrize("action", [DrawDeckAction(), DrawDiscardPileAction()])
def test_draws_are_rejected_while_playing(action: GameAction) -> None:
    game = _game()
    game.execute_action(DrawDeckAction())

    with pytest.raises(errors.InvalidGamePhase):
        game.execute_action(action)
    assert len(_hand(game, 0)) == 11


def test_actions_are_rejected_before_the_first_round() -> None:
    game = BasicRummyGame([0, 1], deck_config=SORTED)

    with pytest.raises(errors.InvalidGamePhase) as excinfo:
        game.execute_action(DrawDeckAction())
    assert excinfo.value.current_phase is GamePhase.ROUND_END


def test_discard_passes_the_turn() -> None:
    game = _game()
    game.execute_action(DrawDeckAction())

    game.execute_action(DiscardAction(10))

    state = game.get_state()
    assert state.deck.peek_discard() is not None
    assert state.deck.peek_discard().code == "8S"
    assert state.phase is GamePhase.DRAW
    assert state.current_player == 1
    assert len(state.players[0].cards) == 10


def test_discard_index_must_be_in_hand() -> None:
    game = _game()
    game.execute_action(DrawDeckAction())

    with pytest.raises(errors.InvalidCardIndex):
        game.execute_action(DiscardAction(11))
    assert len(_hand(game, 0)) == 11
    assert game.get_state().deck.discard_pile == []


def test_run_from_unsorted_indices() -> None:
    game = _game()
    _draw_and_discard(game)
    game.execute_action(DrawDeckAction())
    assert _hand(game, 1)[-1] == "8H"

    game.execute_action(FormMeldAction((8, 4, 0)))

    meld = game.get_state().players[1].melds[0]
    assert meld.is_run()
    assert [card.code for card in meld.cards] == ["9C", "10C", "JC"]


def test_form_several_melds() -> None:
    game = _game()
    _draw_and_discard(game)
    game.execute_action(DrawDeckAction())

    game.execute_action(FormMeldsAction(((0, 1, 2), (4, 5, 6))))

    player = game.get_state().players[1]
    assert [meld.kind.value for meld in player.melds] == ["set", "set"]
    assert _hand(game, 1) == ["9S", "10S", "JC", "JD", "8H"]


@pytest.mark.parametrize(
    ("indices", "meld_index", "error"),
    [
        (((0, 1, 2), (4, 5, 8)), 1, melds.InvalidSet),
        (((0, 1, 2), (2, 3, 4)), 0, melds.DuplicateCardIndex),
    ],
)
def test_failed_multi_meld_leaves_hand(
    indices: tuple[tuple[int, ...], ...], meld_index: int, error: type[melds.MeldError]
) -> None:
    game = _game()
    _draw_and_discard(game)
    game.execute_action(DrawDeckAction())
    before = _hand(game, 1)

    with pytest.raises(errors.FailedMeld) as excinfo:
        game.execute_action(FormMeldsAction(indices))

    failure = excinfo.value.meld_error
    assert isinstance(failure, melds.FailedMultipleMelds)
    assert failure.meld_index == meld_index
    assert isinstance(failure.error, error)
    assert _hand(game, 1) == before
    assert game.get_state().players[1].melds == []


def test_lay_off_onto_own_meld() -> None:
    game = _game()
    game.execute_action(DrawDeckAction())
    game.execute_action(FormMeldAction((6, 7, 8, 9)))
    game.execute_action(FormMeldAction((2, 3, 4)))
    assert _hand(game, 0) == ["JH", "JS", "QS", "8S"]

    game.execute_action(LayOffAction(card_index=2, target_player_index=0, target_meld_index=1))

    assert len(game.get_state().players[0].melds[1].cards) == 4
    assert _hand(game, 0) == ["JH", "JS", "8S"]


@pytest.mark.parametrize(
    ("action", "error"),
    [
        (LayOffAction(0, 5, 0), errors.InvalidPlayerIndex),
        (LayOffAction(0, -1, 0), errors.InvalidPlayerIndex),
        (LayOffAction(0, 0, 9), errors.InvalidMeldIndex),
        (LayOffAction(0, 1, 0), errors.InvalidMeldIndex),
        (LayOffAction(0, 0, 0), errors.FailedMeld),
        (LayOffAction(7, 0, 0), errors.FailedMeld),
    ],
)
def test_failed_lay_off_changes_nothing(action: LayOffAction, error: type[errors.FailedActionError]) -> None:
    game = _game()
    game.execute_action(DrawDeckAction())
    game.execute_action(FormMeldAction((6, 7, 8, 9)))
    before = _hand(game, 0)

    with pytest.raises(error):
        game.execute_action(action)

    assert _hand(game, 0) == before
    assert len(game.get_state().players[0].melds[0].cards) == 4


def test_lay_off_onto_another_players_set_swaps_a_joker() -> None:
    game = _game(deal=4, deck_config=SORTED_JOKERS)
    assert _hand(game, 0) == ["KH", "KS", "JK", "JK"]
    assert _hand(game, 1) == ["QH", "QS", "KC", "KD"]
    game.execute_action(DrawDeckAction())
    game.execute_action(FormMeldAction((0, 2, 3)))
    game.execute_action(DiscardAction(1))
    game.execute_action(DrawDeckAction())

    game.execute_action(LayOffAction(card_index=2, target_player_index=0, target_meld_index=0))

    state = game.get_state()
    assert [card.code for card in state.players[0].melds[0].cards] == ["KH", "KC", "JK"]
    assert _hand(game, 1) == ["QH", "QS", "JK", "KD", "QC"]
    assert state.card_count() == state.deck.total_cards


def test_going_out_with_a_meld_skips_the_discard() -> None:
    game = _game(deal=3, deck_config=SORTED_JOKERS)
    assert _hand(game, 0) == ["KS", "JK", "JK"]
    game.execute_action(DrawDeckAction())

    game.execute_action(FormMeldAction((0, 1, 2, 3)))

    state = game.get_state()
    assert state.phase is GamePhase.ROUND_END
    assert [card.code for card in state.players[0].melds[0].cards] == ["JK", "JK", "QS", "KS"]
    with pytest.raises(errors.InvalidGamePhase):
        game.execute_action(DiscardAction(0))

    game.next_round()
    scores = state.round_scores[1]
    assert scores.winner_id == 0
    assert {pid: score.score for pid, score in scores.player_scores.items()} == {0: 0, 1: 30}


def test_going_out_by_discarding_then_scoring() -> None:
    game = _game(deal=3)
    assert _hand(game, 0) == ["KD", "KH", "KS"]
    assert _hand(game, 1) == ["QH", "QS", "KC"]
    game.execute_action(DrawDeckAction())
    game.execute_action(FormMeldAction((0, 1, 2)))
    game.execute_action(DiscardAction(0))

    state = game.get_state()
    assert state.phase is GamePhase.ROUND_END
    with pytest.raises(errors.WrongGamePhase):
        game.rearrange_hand(1, state.players[1].cards)

    game.next_round()

    assert state.round_scores[1].winner_id == 0
    assert state.round_scores[1].player_scores[1].score == 30
    assert state.current_round == 2
    assert state.phase is GamePhase.DRAW
    assert state.current_player == 1
    assert [len(player.cards) for player in state.players] == [3, 3]
    assert all(player.melds == [] for player in state.players)
    assert len(state.deck.stock) == 46
    assert state.deck.discard_pile == []


def test_next_round_only_after_round_end() -> None:
    game = _game()

    with pytest.raises(errors.WrongGamePhase):
        game.next_round()
    assert game.get_state().current_round == 1


def test_round_without_winner_is_an_internal_error() -> None:
    game = _game()
    state = game.get_state()
    state.phase = GamePhase.ROUND_END

    with pytest.raises(errors.RoundHasNoWinner) as excinfo:
        game.next_round()

    assert isinstance(excinfo.value, errors.InternalError)
    assert state.current_round == 1
    assert state.round_scores == {}
    assert len(state.players[0].cards) == 10


def test_empty_stock_turns_the_discard_pile_over() -> None:
    game = _game()
    deck = game.get_state().deck
    deck.add_all_to_discard(deck.draw(len(deck.stock)))

    game.execute_action(DrawDeckAction())

    assert len(_hand(game, 0)) == 11
    assert len(deck.stock) == 31
    assert deck.discard_pile == []


def test_no_cards_left_is_an_internal_error() -> None:
    game = _game()
    game.get_state().deck.stock.clear()

    with pytest.raises(errors.NoCardsInDeckOrDiscardPile) as excinfo:
        game.execute_action(DrawDeckAction())

    assert isinstance(excinfo.value, errors.InternalError)
    assert game.get_state().phase is GamePhase.DRAW
    assert len(_hand(game, 0)) == 10


def _meld_candidates(hand: list[Card]) -> list[tuple[int, ...]]:
    found = []
    for indices in itertools.combinations(range(len(hand)), 3):
        try:
            melds.validate_meld(hand, indices)
        except melds.MeldError:
            continue
        found.append(indices)
    return found


def _form_what_fits(game: BasicRummyGame, played: Counter[str]) -> None:
    candidates = _meld_candidates(game.get_state().get_current_player().cards)
    disjoint = [(a, b) for a, b in itertools.combinations(candidates, 2) if not set(a) & set(b)]
    if disjoint:
        game.execute_action(FormMeldsAction(disjoint[0]))
        played["melds"] += 1
    elif candidates:
        game.execute_action(FormMeldAction(candidates[0]))
        played["meld"] += 1


def _lay_off_what_fits(game: BasicRummyGame, played: Counter[str]) -> None:
    """Try every hand card, highest index first, against every meld on the table."""

    state = game.get_state()
    player = state.get_current_player()
    for index in range(len(player.cards) - 1, -1, -1):
        if state.phase is not GamePhase.PLAY or index >= len(player.cards):
            return
        targets = [(seat, meld) for seat, owner in enumerate(state.players) for meld in range(len(owner.melds))]
        for seat, meld in targets:
            before = len(player.cards)
            try:
                game.execute_action(LayOffAction(index, seat, meld))
            except errors.FailedMeld:
                continue
            played["swap" if len(player.cards) == before else "layoff"] += 1
            break


def test_cards_are_conserved_over_many_turns() -> None:
    game = _game(deal=4, deck_config=SORTED_JOKERS)
    state = game.get_state()
    total = state.deck.total_cards
    played: Counter[str] = Counter()

    def check() -> None:
        assert state.card_count() == total

    check()
    game.execute_action(DrawDeckAction())
    game.execute_action(FormMeldAction((0, 2, 3)))
    check()
    game.execute_action(DiscardAction(1))
    game.execute_action(DrawDeckAction())
    game.execute_action(LayOffAction(card_index=2, target_player_index=0, target_meld_index=0))
    assert _hand(game, 1)[2] == "JK"
    check()
    game.execute_action(FormMeldsAction(((0, 1, 4),)))
    check()
    game.execute_action(DiscardAction(1))
    check()

    rng = random.Random(99)
    for _ in range(150):
        if state.phase is GamePhase.ROUND_END:
            game.next_round()
            played["round"] += 1
            check()
            continue
        if state.deck.discard_pile and rng.random() < 0.3:
            game.execute_action(DrawDiscardPileAction())
        else:
            game.execute_action(DrawDeckAction())
        check()
        _form_what_fits(game, played)
        check()
        _lay_off_what_fits(game, played)
        check()
        if state.phase is GamePhase.PLAY:
            hand = state.get_current_player().cards
            game.execute_action(DiscardAction(rng.randrange(len(hand))))
            check()

    assert played["round"] > 0
