"""Meld validation, formation and layoff for Rummy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Final, Sequence

from .cards import Card, Rank, Suit

__all__ = [
    "MIN_MELD_SIZE",
    "MeldKind",
    "Meld",
    "SetMeld",
    "RunMeld",
    "validate_meld",
    "form_meld",
    "form_melds",
    "MeldError",
    "InsufficientCards",
    "InvalidCardIndex",
    "DuplicateCardIndex",
    "InvalidSet",
    "InvalidRun",
    "OnlyWildcards",
    "InvalidLayoff",
    "InsufficientWildcards",
    "FailedMultipleMelds",
]

MIN_MELD_SIZE: Final[int] = 3


class MeldError(RuntimeError):
    """Base class for meld formation and layoff failures."""


class InsufficientCards(MeldError):
    def __init__(self, provided: int, minimum: int = MIN_MELD_SIZE) -> None:
        super().__init__(f"not enough cards provided: got {provided}, need at least {minimum}")
        self.provided = provided
        self.minimum = minimum


class InvalidCardIndex(MeldError):
    """Raised when a card index is out of bounds."""


class DuplicateCardIndex(MeldError):
    """Raised when the same card index is given more than once."""


class InvalidSet(MeldError):
    """Raised when cards do not share a rank."""


class InvalidRun(MeldError):
    """Raised when cards cannot be arranged into a same-suit sequence."""


class OnlyWildcards(MeldError):
    """Raised when a meld would contain nothing but wildcards."""


class InvalidLayoff(MeldError):
    """Raised when a card cannot be added to a meld."""


class InsufficientWildcards(MeldError):
    """Raised when a run has gaps that the available wildcards cannot fill."""


class FailedMultipleMelds(MeldError):
    def __init__(self, meld_index: int, error: MeldError) -> None:
        super().__init__(f"failed to form multiple melds; meld {meld_index} failed with error: {error}")
        self.meld_index = meld_index
        self.error = error


class MeldKind(str, Enum):
    SET = "set"
    RUN = "run"


class Meld(ABC):
    """A validated group of cards owned by one player."""

    __slots__ = ()

    kind: ClassVar[MeldKind]
    cards: list[Card]

    @abstractmethod
    def layoff_card(self, hand: list[Card], index: int) -> None:
        """Move ``hand[index]`` into this meld, or raise ``MeldError``.

        When the card replaces a wildcard, the wildcard takes its place in
        ``hand``. A failed layoff leaves both ``hand`` and the meld unchanged.
        """

    def __len__(self) -> int:
        return len(self.cards)

    def is_set(self) -> bool:
        return self.kind is MeldKind.SET

    def is_run(self) -> bool:
        return self.kind is MeldKind.RUN


@dataclass(slots=True)
class SetMeld(Meld):
    """Three or more cards of one rank, wildcards allowed."""

    kind: ClassVar[MeldKind] = MeldKind.SET

    cards: list[Card]
    rank: Rank

    @classmethod
    def validate(cls, hand: Sequence[Card], indices: Sequence[int]) -> SetMeld:
        """Return the set formed by ``indices`` without touching ``hand``."""

        cards = _select(hand, indices)
        rank: Rank | None = None
        for card in cards:
            if card.is_wildcard():
                continue
            if rank is None:
                rank = card.rank
            elif card.rank != rank:
                raise InvalidSet("cards do not form a valid set")
        if rank is None:
            raise OnlyWildcards("cannot create a set from only wildcards")
        return cls(cards=cards, rank=rank)

    def layoff_card(self, hand: list[Card], index: int) -> None:
        card = _hand_card(hand, index)
        if not card.is_wildcard() and card.rank == self.rank:
            for position, existing in enumerate(self.cards):
                if existing.is_wildcard():
                    self.cards[position], hand[index] = card, existing
                    return
            self.cards.append(hand.pop(index))
            return
        if card.is_wildcard():
            self.cards.append(hand.pop(index))
            return
        raise InvalidLayoff(f"{card.code} cannot be laid off onto a set of {self.rank.name.title()}s")


@dataclass(slots=True)
class RunMeld(Meld):
    """Three or more same-suit cards in consecutive relative rank.

    ``cards`` is kept in run order, lowest first; a wildcard stands for the
    rank its position implies.
    """

    kind: ClassVar[MeldKind] = MeldKind.RUN

    cards: list[Card]
    suit: Suit

    @classmethod
    def validate(cls, hand: Sequence[Card], indices: Sequence[int]) -> RunMeld:
        """Return the run formed by ``indices`` without touching ``hand``."""

        cards = _select(hand, indices)
        wildcards = [card for card in cards if card.is_wildcard()]
        naturals = sorted((card for card in cards if not card.is_wildcard()), key=lambda c: c.value())
        if not naturals:
            raise OnlyWildcards("cannot create a run from only wildcards")

        arranged = [naturals[0]]
        for previous, card in zip(naturals, naturals[1:]):
            step = card.value() - previous.value()
            if step <= 0 or step % 4:
                raise InvalidRun("cards don't form a valid run")
            gap = step // 4 - 1
            if gap > len(wildcards):
                raise InsufficientWildcards(
                    "cards don't form a valid run (and not enough wildcards to fill gaps)"
                )
            arranged.extend(wildcards.pop() for _ in range(gap))
            arranged.append(card)

        low = _relative_rank(naturals[0])
        high = _relative_rank(naturals[-1])
        lowest, highest = _rank_bounds(naturals[0])
        while wildcards and high < highest:
            arranged.append(wildcards.pop())
            high += 1
        while wildcards and low > lowest:
            arranged.insert(0, wildcards.pop())
            low -= 1
        arranged.extend(wildcards)
        return cls(cards=arranged, suit=naturals[0].suit)

    def represented_value(self, position: int) -> int:
        """Return the value the card at ``position`` stands for in the run."""

        anchor = next(i for i, card in enumerate(self.cards) if not card.is_wildcard())
        return self.cards[anchor].value() + 4 * (position - anchor)

    def layoff_card(self, hand: list[Card], index: int) -> None:
        card = _hand_card(hand, index)
        lowest, highest = _rank_bounds(self._anchor())
        low_value = self.represented_value(0)
        high_value = self.represented_value(len(self.cards) - 1)

        if card.is_wildcard():
            # on top unless only the bottom has room left
            if (high_value - self.suit) // 4 >= highest and (low_value - self.suit) // 4 > lowest:
                self.cards.insert(0, hand.pop(index))
            else:
                self.cards.append(hand.pop(index))
            return

        position = self._replaceable_wildcard(card)
        if position is not None:
            self.cards[position], hand[index] = card, self.cards[position]
            return
        if card.value() + 4 == low_value:
            self.cards.insert(0, hand.pop(index))
            return
        if high_value + 4 == card.value():
            self.cards.append(hand.pop(index))
            return
        raise InvalidLayoff(f"{card.code} cannot be laid off onto this run")

    def _anchor(self) -> Card:
        return next(card for card in self.cards if not card.is_wildcard())

    def _replaceable_wildcard(self, card: Card) -> int | None:
        """Return the first wildcard slot whose natural neighbours accept ``card``."""

        for position, existing in enumerate(self.cards):
            if not existing.is_wildcard():
                continue
            checked = False
            fits = True
            if position > 0 and not self.cards[position - 1].is_wildcard():
                checked = True
                fits = self.cards[position - 1].same_suit_consecutive_rank(card)
            if fits and position + 1 < len(self.cards) and not self.cards[position + 1].is_wildcard():
                checked = True
                fits = card.same_suit_consecutive_rank(self.cards[position + 1])
            if checked and fits:
                return position
        return None


def validate_meld(hand: Sequence[Card], indices: Sequence[int]) -> Meld:
    """Return the meld ``indices`` would form, trying a set before a run.

    When neither fits, the set's error is raised.
    """

    try:
        return SetMeld.validate(hand, indices)
    except MeldError as set_error:
        if isinstance(set_error, (InvalidCardIndex, DuplicateCardIndex, InsufficientCards)):
            raise
        try:
            return RunMeld.validate(hand, indices)
        except MeldError:
            raise set_error from None


def form_meld(hand: list[Card], indices: Sequence[int]) -> Meld:
    """Form a meld from ``hand`` and remove its cards; ``hand`` is untouched on failure."""

    meld = validate_meld(hand, indices)
    _remove_indices(hand, indices)
    return meld


def form_melds(hand: list[Card], indices_of_melds: Sequence[Sequence[int]]) -> list[Meld]:
    """Form several melds at once; every meld must succeed or ``hand`` is untouched."""

    flattened = [index for indices in indices_of_melds for index in indices]
    if len(set(flattened)) != len(flattened):
        raise FailedMultipleMelds(0, DuplicateCardIndex("card index used by more than one meld"))

    melds: list[Meld] = []
    for meld_index, indices in enumerate(indices_of_melds):
        try:
            melds.append(validate_meld(hand, indices))
        except MeldError as exc:
            raise FailedMultipleMelds(meld_index, exc) from exc

    _remove_indices(hand, flattened)
    return melds


def _select(hand: Sequence[Card], indices: Sequence[int]) -> list[Card]:
    if len(indices) < MIN_MELD_SIZE:
        raise InsufficientCards(len(indices))
    if len(set(indices)) != len(indices):
        raise DuplicateCardIndex("there's at least 1 duplicate card index")
    for index in indices:
        if index < 0 or index >= len(hand):
            raise InvalidCardIndex(f"card index {index} is out of bounds")
    return [hand[index] for index in indices]


def _hand_card(hand: Sequence[Card], index: int) -> Card:
    if index < 0 or index >= len(hand):
        raise InvalidCardIndex(f"card index {index} is out of bounds")
    return hand[index]


def _remove_indices(hand: list[Card], indices: Sequence[int]) -> None:
    for index in sorted(indices, reverse=True):
        del hand[index]


def _relative_rank(card: Card) -> int:
    return (card.value() - card.suit) // 4


def _rank_bounds(card: Card) -> tuple[int, int]:
    """Return the lowest and highest relative rank available to natural cards."""

    if card.config is not None and card.config.high_rank is not None:
        return 0, 12
    return 1, 13
