from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .models import InsufficientCardsError

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("hearts", "diamonds", "clubs", "spades")
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}

SUIT_LETTERS = {"hearts": "h", "diamonds": "d", "clubs": "c", "spades": "s"}
LETTER_SUITS = {letter: suit for suit, letter in SUIT_LETTERS.items()}
SUIT_SYMBOLS = {"hearts": "♥", "diamonds": "♦", "clubs": "♣", "spades": "♠"}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUE:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUIT_LETTERS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{SUIT_LETTERS[self.suit]}"

    @property
    def symbol(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.symbol


def build_deck() -> List[Card]:
    """Return the 52 distinct cards in a fixed suit-major order."""
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def shuffle(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Fisher-Yates over a copy of ``deck``; the input is left untouched."""
    rng = rng or random.Random()
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal(
    deck: Sequence[Card], player_count: int, cards_per_player: int = 3
) -> Tuple[List[List[Card]], List[Card]]:
    """Deal one card per player per pass, drawing from the top (end) of the deck.

    Returns the per-player hands and the undealt remainder.
    """
    needed = player_count * cards_per_player
    if needed > len(deck):
        raise InsufficientCardsError(
            f"Cannot deal {cards_per_player} cards to {player_count} players from {len(deck)} cards"
        )
    remaining = list(deck)
    hands: List[List[Card]] = [[] for _ in range(player_count)]
    for _ in range(cards_per_player):
        for hand in hands:
            hand.append(remaining.pop())
    return hands, remaining


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) not in (2, 3):
        raise ValueError(f"Invalid card label: {label}")
    rank = label[:-1].upper()
    suit = LETTER_SUITS.get(label[-1].lower())
    if suit is None:
        raise ValueError(f"Invalid suit: {label[-1]}")
    return Card(rank, suit)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
