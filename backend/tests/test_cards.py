import random

from partyroom.cards import (
    COLORS, RANKS, Card, build_deck, draw_start_card, has_legal_play, is_legal_play,
    shuffle_deck,
)


def test_deck_has_one_card_per_color_and_rank():
    deck = build_deck()
    assert len(deck) == len(COLORS) * len(RANKS) == 36
    assert len(set(deck)) == 36
    assert {c.color for c in deck} == set(COLORS)
    assert {c.rank for c in deck} == set(RANKS)
    assert sum(1 for c in deck if c.is_wild) == 4


def test_shuffle_is_in_place_and_keeps_cards():
    deck = build_deck()
    shuffled = shuffle_deck(deck, random.Random(1))
    assert shuffled is deck
    assert sorted(shuffled, key=str) == sorted(build_deck(), key=str)


def test_legality_rules():
    top = Card('green', '5')
    assert is_legal_play(Card('green', '2'), 'green', top)
    assert is_legal_play(Card('red', '5'), 'green', top)
    assert is_legal_play(Card('yellow', '8'), 'green', top)
    assert not is_legal_play(Card('red', '2'), 'green', top)


def test_current_color_overrides_top_card_color():
    # After a wild the chosen color rules, not the printed one
    top = Card('red', '8')
    assert is_legal_play(Card('blue', '3'), 'blue', top)
    assert not is_legal_play(Card('red', '3'), 'blue', top)


def test_has_legal_play():
    top = Card('green', '5')
    assert not has_legal_play([Card('red', '1'), Card('blue', '2')], 'green', top)
    assert has_legal_play([Card('red', '1'), Card('blue', '5')], 'green', top)
    assert not has_legal_play([], 'green', top)


def test_start_card_is_never_wild():
    deck = [Card('blue', '3'), Card('red', '8'), Card('green', '8')]
    start = draw_start_card(deck)
    assert start == Card('blue', '3')
    assert deck == [Card('red', '8'), Card('green', '8')]


def test_card_to_dict_flags_wild():
    assert Card('blue', '3').to_dict()['isWild'] is False
    assert Card('red', '8').to_dict() == {'color': 'red', 'rank': '8', 'isWild': True}
