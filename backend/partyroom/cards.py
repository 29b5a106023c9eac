"""Card and deck primitives.

Cards are immutable values; every function here is pure except for the
in-place shuffle, which only touches the list it is given.
"""

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

COLORS = ('red', 'blue', 'green', 'yellow')
RANKS = ('1', '2', '3', '4', '5', '6', '7', '8', '9')
WILD_RANK = '8'


@dataclass(frozen=True)
class Card:
    color: str
    rank: str

    @property
    def is_wild(self) -> bool:
        return self.rank == WILD_RANK

    def to_dict(self):
        return {'color': self.color, 'rank': self.rank, 'isWild': self.is_wild}

    def __str__(self):
        return f"{self.rank} {self.color}"


def build_deck() -> List[Card]:
    """One card per (color, rank) pair, unshuffled."""
    return [Card(color, rank) for color in COLORS for rank in RANKS]


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Shuffle in place with Fisher-Yates and return the same list."""
    (rng or random).shuffle(deck)
    return deck


def is_legal_play(card: Card, current_color: str, top_card: Card) -> bool:
    if card.is_wild:
        return True
    return card.color == current_color or card.rank == top_card.rank


def has_legal_play(hand: Iterable[Card], current_color: str, top_card: Card) -> bool:
    return any(is_legal_play(c, current_color, top_card) for c in hand)


def draw_start_card(deck: List[Card]) -> Card:
    """Remove and return the topmost non-wild card.

    The top of the deck is the end of the list.
    """
    for i in range(len(deck) - 1, -1, -1):
        if not deck[i].is_wild:
            return deck.pop(i)
    return deck.pop()
