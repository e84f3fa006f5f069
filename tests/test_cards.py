import random
from collections import Counter

import pytest

from patti.cards import RANK_VALUE, Card, build_deck, cards_to_labels, deal, parse_label, shuffle
from patti.models import InsufficientCardsError


def test_build_deck_has_52_unique_cards_with_expected_values():
    deck = build_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52
    assert RANK_VALUE["2"] == 2
    assert RANK_VALUE["10"] == 10
    assert [RANK_VALUE[r] for r in ("J", "Q", "K", "A")] == [11, 12, 13, 14]
    assert Card("A", "spades").value == 14


def test_shuffle_is_a_permutation_and_leaves_input_alone():
    deck = build_deck()
    original = list(deck)
    for seed in range(25):
        shuffled = shuffle(deck, random.Random(seed))
        assert Counter(shuffled) == Counter(original)
        assert all(count == 1 for count in Counter(shuffled).values())
    assert deck == original


def test_shuffle_is_reproducible_with_seed():
    deck = build_deck()
    assert shuffle(deck, random.Random(9)) == shuffle(deck, random.Random(9))
    assert shuffle(deck, random.Random(9)) != shuffle(deck, random.Random(10))


def test_deal_goes_round_by_round_from_the_end_of_the_deck():
    deck = build_deck()
    hands, remaining = deal(deck, 2, 3)
    assert hands[0] == [deck[-1], deck[-3], deck[-5]]
    assert hands[1] == [deck[-2], deck[-4], deck[-6]]
    assert remaining == deck[:-6]
    assert len(deck) == 52


def test_deal_never_repeats_a_card():
    hands, remaining = deal(shuffle(build_deck(), random.Random(3)), 17, 3)
    dealt = [card for hand in hands for card in hand]
    assert len(set(dealt)) == 51
    assert set(dealt).isdisjoint(remaining)
    assert len(remaining) == 1


def test_deal_rejects_more_players_than_cards():
    with pytest.raises(InsufficientCardsError, match="Cannot deal"):
        deal(build_deck(), 18, 3)


def test_card_validation_rejects_invalid_labels():
    with pytest.raises(ValueError, match="Invalid rank"):
        Card("1", "hearts")
    with pytest.raises(ValueError, match="Invalid suit"):
        Card("A", "stars")
    with pytest.raises(ValueError, match="Invalid suit"):
        parse_label("Ax")


def test_labels_round_trip_through_parse():
    assert parse_label("10d") == Card("10", "diamonds")
    assert parse_label("qs") == Card("Q", "spades")
    assert cards_to_labels([Card("A", "hearts"), Card("10", "clubs")]) == ["Ah", "10c"]
    assert str(Card("K", "spades")) == "K♠"
