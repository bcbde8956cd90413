"""Card abstractions and helpers for Rummy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from functools import total_ordering
from typing import TYPE_CHECKING, Final, Iterable, Sequence

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .deck import DeckConfig

__all__ = ["Suit", "Rank", "Card", "format_cards", "sort_by_value"]


class Suit(IntEnum):
    """Enumeration of suits, ordered by their contribution to a card's value."""

    JOKER = 0
    CLUBS = 1
    DIAMONDS = 2
    HEARTS = 3
    SPADES = 4

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @property
    def code(self) -> str:
        return _SUIT_CODES[self]


class Rank(IntEnum):
    """Enumeration of ranks; the integer value is the natural rank order."""

    JOKER = 0
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def code(self) -> str:
        return _RANK_CODES[self]

    @classmethod
    def from_code(cls, code: str) -> "Rank":
        """Return the rank for a short code such as ``"A"``, ``"10"`` or ``"K"``."""

        try:
            return _CODE_TO_RANK[code.upper()]
        except KeyError:
            raise ValueError(f"unknown rank code '{code}'") from None


_SUIT_SYMBOLS: Final[dict[Suit, str]] = {
    Suit.JOKER: "🃏",
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}
_SUIT_CODES: Final[dict[Suit, str]] = {
    Suit.JOKER: "",
    Suit.CLUBS: "C",
    Suit.DIAMONDS: "D",
    Suit.HEARTS: "H",
    Suit.SPADES: "S",
}
_CODE_TO_SUIT: Final[dict[str, Suit]] = {code: suit for suit, code in _SUIT_CODES.items() if code}
_RANK_CODES: Final[dict[Rank, str]] = {
    Rank.JOKER: "JK",
    Rank.ACE: "A",
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
}
_CODE_TO_RANK: Final[dict[str, Rank]] = {code: rank for rank, code in _RANK_CODES.items()}


@total_ordering
@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing a physical card.

    Equality and hashing only look at ``rank`` and ``suit``. The ``config`` is
    the owning deck's shared configuration and drives :meth:`value`, which in
    turn drives ordering.
    """

    rank: Rank
    suit: Suit
    config: "DeckConfig | None" = field(default=None, compare=False, repr=False)

    @classmethod
    def joker(cls, config: "DeckConfig | None" = None) -> "Card":
        return cls(Rank.JOKER, Suit.JOKER, config)

    @classmethod
    def from_code(cls, code: str, config: "DeckConfig | None" = None) -> "Card":
        """Parse a code such as ``"10H"``, ``"QS"`` or ``"JK"`` (Joker)."""

        text = code.strip().upper()
        if text == "JK":
            return cls.joker(config)
        if len(text) < 2:
            raise ValueError(f"invalid card code '{code}'")
        suit = _CODE_TO_SUIT.get(text[-1])
        if suit is None:
            raise ValueError(f"invalid card code '{code}'")
        rank = Rank.from_code(text[:-1])
        if rank is Rank.JOKER:
            raise ValueError(f"invalid card code '{code}'")
        return cls(rank, suit, config)

    @property
    def is_joker(self) -> bool:
        return self.rank is Rank.JOKER or self.suit is Suit.JOKER

    @property
    def code(self) -> str:
        if self.is_joker:
            return "JK"
        return f"{self.rank.code}{self.suit.code}"

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        if self.is_joker:
            return Suit.JOKER.symbol
        return f"{self.rank.code}{self.suit.symbol}"

    def value(self) -> int:
        """Return ``4 * relative_rank + suit`` under the deck's high rank.

        Jokers are always 0. With a high rank ``H`` the rank circle is rotated
        so that ``H`` is the top; the wrap through the Joker slot costs one
        step, so ranks from Ace up to ``H`` are shifted down by one more.
        """

        if self.is_joker:
            return 0
        high_rank = self.config.high_rank if self.config is not None else None
        top = Rank.KING if high_rank is None else high_rank
        relative_rank = (self.rank + (Rank.KING - top)) % (Rank.KING + 1)
        if high_rank is not None and Rank.ACE <= self.rank <= high_rank:
            relative_rank -= 1
        return 4 * relative_rank + self.suit

    def score_value(self) -> int:
        """Return the scoring value: face cards 10, Ace 1, others face value."""

        if self.rank in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.rank)

    def is_wildcard(self) -> bool:
        if self.config is None or self.config.wildcard_rank is None:
            return False
        return self.rank == self.config.wildcard_rank

    def same_suit_consecutive_rank(self, other: "Card") -> bool:
        """Return ``True`` when ``other`` is the next card up in the same suit."""

        return self.value() + 4 == other.value()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.value() < other.value()

    def __str__(self) -> str:
        if self.is_joker:
            return "Joker"
        return f"{self.rank.name.title()} of {self.suit.name.title()}"


def sort_by_value(cards: Iterable[Card]) -> list[Card]:
    return sorted(cards, key=lambda card: card.value())


def format_cards(cards: Sequence[Card]) -> str:
    return " ".join(card.code for card in cards)
