"""The deck: a stock and a discard pile generated from a ``DeckConfig``."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Iterable

from .cards import Card, Rank, Suit

__all__ = [
    "DeckConfig",
    "Deck",
    "DeckError",
    "StockExhausted",
    "DiscardPileExhausted",
    "CARDS_PER_PACK",
    "JOKERS_PER_PACK",
]

logger = logging.getLogger(__name__)

CARDS_PER_PACK = 52
JOKERS_PER_PACK = 2


@dataclass(frozen=True, slots=True)
class DeckConfig:
    """Configurable values for a deck's behaviour.

    ``shuffle_seed``: ``None`` shuffles randomly, ``0`` leaves the stock in
    generation order, any other value shuffles deterministically.

    ``pack_count``: number of card packs; values below 1 are raised to 1 by
    :class:`Deck`.

    ``high_rank``: rank that becomes the top of the ordering; the rank right
    after it becomes the lowest. Defaults to King.

    ``wildcard_rank``: rank usable as a wildcard in melds. When this is
    ``Rank.JOKER``, two Jokers are added per pack.
    """

    shuffle_seed: int | None = None
    pack_count: int = 1
    high_rank: Rank | None = None
    wildcard_rank: Rank | None = None

    @property
    def has_jokers(self) -> bool:
        return self.wildcard_rank is Rank.JOKER

    def total_cards(self) -> int:
        """Return the number of cards a deck built from this config holds."""

        packs = max(1, self.pack_count)
        per_pack = CARDS_PER_PACK + (JOKERS_PER_PACK if self.has_jokers else 0)
        return packs * per_pack


class DeckError(RuntimeError):
    """Raised when the deck cannot satisfy a draw."""


class StockExhausted(DeckError):
    """Raised when the stock (plus discard pile, if allowed) is too small."""


class DiscardPileExhausted(DeckError):
    """Raised when the discard pile is empty or smaller than requested."""


class Deck:
    """Stock (face-down, drawn from the end) plus discard pile (top is the end)."""

    __slots__ = ("config", "stock", "discard_pile", "_rng")

    def __init__(self, config: DeckConfig | None = None) -> None:
        config = config or DeckConfig()
        if config.pack_count < 1:
            config = replace(config, pack_count=1)
        self.config = config
        self.stock: list[Card] = []
        self.discard_pile: list[Card] = []
        self._rng = _make_rng(config.shuffle_seed)
        self.reset()

    def __repr__(self) -> str:
        return f"Deck(stock={len(self.stock)}, discard_pile={len(self.discard_pile)}, config={self.config!r})"

    @property
    def total_cards(self) -> int:
        return self.config.total_cards()

    def reset(self) -> None:
        """(Re)generate every card into the stock and shuffle it."""

        self.discard_pile.clear()
        self.stock = list(_generate_cards(self.config))
        self._shuffle(self.stock)

    def draw(self, amount: int) -> list[Card]:
        """Draw ``amount`` cards from the top of the stock.

        Nothing is drawn when the stock holds fewer than ``amount`` cards.
        """

        if amount < 0:
            raise ValueError("draw amount must not be negative")
        if amount > len(self.stock):
            raise StockExhausted(f"draw amount ({amount}) greater than stock size ({len(self.stock)})")
        if amount == 0:
            return []
        drawn = self.stock[-amount:]
        del self.stock[-amount:]
        return drawn

    def draw_replenishing(self, amount: int) -> list[Card]:
        """Draw like :meth:`draw`, turning the discard pile over if the stock is short."""

        if amount > len(self.stock):
            available = len(self.stock) + len(self.discard_pile)
            if amount > available:
                raise StockExhausted(
                    f"draw amount ({amount}) greater than stock + discard pile size ({available})"
                )
            logger.debug("stock short (%d < %d); turning over discard pile", len(self.stock), amount)
            self.turnover_discarded()
        return self.draw(amount)

    def peek_discard(self) -> Card | None:
        return self.discard_pile[-1] if self.discard_pile else None

    def draw_from_discard(self, amount: int) -> list[Card]:
        """Take the top ``amount`` cards of the discard pile."""

        size = len(self.discard_pile)
        if size == 0:
            raise DiscardPileExhausted("can't draw from empty discard pile")
        if amount < 1:
            raise DiscardPileExhausted(f"draw amount ({amount}) must be at least 1")
        if amount > size:
            raise DiscardPileExhausted(f"draw amount ({amount}) greater than discard pile size ({size})")
        drawn = self.discard_pile[-amount:]
        del self.discard_pile[-amount:]
        return drawn

    def add_to_discard(self, card: Card) -> None:
        self.discard_pile.append(card)

    def add_all_to_discard(self, cards: Iterable[Card]) -> None:
        self.discard_pile.extend(cards)

    def shuffle_discarded(self) -> None:
        """Move the discard pile into the stock and shuffle the stock."""

        self.stock.extend(self.discard_pile)
        self.discard_pile.clear()
        self._rng.shuffle(self.stock)

    def turnover_discarded(self) -> None:
        """Move the discard pile into the stock and turn the stock over."""

        self.stock.extend(self.discard_pile)
        self.discard_pile.clear()
        self.stock.reverse()

    def _shuffle(self, cards: list[Card]) -> None:
        if self.config.shuffle_seed == 0:
            return
        self._rng.shuffle(cards)


def _make_rng(seed: int | None) -> random.Random:
    if seed is None:
        return random.Random()
    return random.Random(seed)


def _generate_cards(config: DeckConfig) -> Iterable[Card]:
    """Yield one pass per pack over every (rank, suit), then the pack's Jokers."""

    ranks = [rank for rank in Rank if rank is not Rank.JOKER]
    suits = [suit for suit in Suit if suit is not Suit.JOKER]
    for _ in range(config.pack_count):
        for rank in ranks:
            for suit in suits:
                yield Card(rank, suit, config)
        if config.has_jokers:
            for _ in range(JOKERS_PER_PACK):
                yield Card.joker(config)
