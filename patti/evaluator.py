from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence, Tuple, Union

from .cards import RANK_VALUE, Card

# A-2-3 outranks A-K-Q, so it gets a sequence rank above the ace's value.
ACE_TWO_THREE_RANK = 15


class HandCategory(IntEnum):
    HIGH_CARD = 1
    PAIR = 2
    COLOR = 3
    NORMAL_RUN = 4
    STRAIGHT_RUN = 5
    TRIO = 6


CATEGORY_NAMES = {
    HandCategory.TRIO: "Trail",
    HandCategory.STRAIGHT_RUN: "Pure Sequence",
    HandCategory.NORMAL_RUN: "Sequence",
    HandCategory.COLOR: "Color",
    HandCategory.PAIR: "Pair",
    HandCategory.HIGH_CARD: "High Card",
}

Ordered = Tuple[Card, Card, Card]


@dataclass(frozen=True)
class Trio:
    rank: str

    category = HandCategory.TRIO

    def tiebreak(self) -> Tuple[int, ...]:
        return (RANK_VALUE[self.rank],)


@dataclass(frozen=True)
class _Run:
    cards: Ordered

    @property
    def is_ace_two_three(self) -> bool:
        return [card.value for card in self.cards] == [14, 3, 2]

    @property
    def sequence_rank(self) -> int:
        if self.is_ace_two_three:
            return ACE_TWO_THREE_RANK
        return self.cards[0].value

    def tiebreak(self) -> Tuple[int, ...]:
        return (self.sequence_rank,)


@dataclass(frozen=True)
class StraightRun(_Run):
    category = HandCategory.STRAIGHT_RUN


@dataclass(frozen=True)
class NormalRun(_Run):
    category = HandCategory.NORMAL_RUN


@dataclass(frozen=True)
class _Descending:
    cards: Ordered

    def tiebreak(self) -> Tuple[int, ...]:
        return tuple(card.value for card in self.cards)


@dataclass(frozen=True)
class Color(_Descending):
    category = HandCategory.COLOR


@dataclass(frozen=True)
class HighCard(_Descending):
    category = HandCategory.HIGH_CARD


@dataclass(frozen=True)
class Pair:
    pair_rank: str
    odd_card: Card

    category = HandCategory.PAIR

    def tiebreak(self) -> Tuple[int, ...]:
        return (RANK_VALUE[self.pair_rank], self.odd_card.value)


HandValue = Union[Trio, StraightRun, NormalRun, Color, Pair, HighCard]


def evaluate_hand(cards: Sequence[Card]) -> HandValue:
    """Classify exactly three cards. Checks run strongest category first."""
    if len(cards) != 3:
        raise ValueError(f"A hand needs exactly 3 cards, got {len(cards)}")
    if len(set(cards)) != 3:
        raise ValueError("Duplicate cards in hand")

    ordered: Ordered = tuple(sorted(cards, key=lambda card: card.value, reverse=True))  # type: ignore[assignment]
    values = [card.value for card in ordered]
    same_suit = len({card.suit for card in ordered}) == 1

    if values[0] == values[1] == values[2]:
        return Trio(ordered[0].rank)
    if _is_sequence(values):
        if same_suit:
            return StraightRun(ordered)
        return NormalRun(ordered)
    if same_suit:
        return Color(ordered)
    if values[0] == values[1]:
        return Pair(ordered[0].rank, ordered[2])
    if values[1] == values[2]:
        return Pair(ordered[1].rank, ordered[0])
    return HighCard(ordered)


def _is_sequence(values: Sequence[int]) -> bool:
    # values are sorted descending; K-A-2 style wraparounds are not runs.
    if values[0] == values[1] + 1 == values[2] + 2:
        return True
    return list(values) == [14, 3, 2]


def hand_strength(hand: HandValue) -> Tuple[int, ...]:
    """Sort key: category first, then the category's tie-break values."""
    return (int(hand.category),) + hand.tiebreak()


def compare_hands(first: HandValue, second: HandValue) -> int:
    """Return 1 if ``first`` wins, -1 if ``second`` wins, 0 on an exact tie."""
    a = hand_strength(first)
    b = hand_strength(second)
    if a > b:
        return 1
    if a < b:
        return -1
    return 0


def describe_hand(hand: HandValue) -> str:
    return CATEGORY_NAMES[hand.category]
