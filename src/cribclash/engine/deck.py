from __future__ import annotations

import random

from .types import SUITS, Card


def card_value(rank: int) -> int:
    return min(rank, 10)


def create_standard_deck() -> list[Card]:
    return [
        Card(id=f"{suit}-{rank}", rank=rank, suit=suit, value=card_value(rank))
        for suit in SUITS
        for rank in range(1, 14)
    ]


def shuffle_deck(seed: int) -> list[Card]:
    """Return a fresh 52-card deck permuted deterministically by ``seed``."""
    deck = create_standard_deck()
    random.Random(seed).shuffle(deck)
    return deck
