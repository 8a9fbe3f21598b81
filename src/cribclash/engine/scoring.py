"""Post-round hand scoring.

A hand is scored together with the shared starter card. Fifteens, pairs and
runs become damage against the opposing seat, a flush becomes shield for the
scoring seat, and nobs grants initiative for the next round's lead.
"""

from __future__ import annotations

from itertools import combinations, product
from math import comb
from typing import Iterable, Sequence

from .types import JACK, Card, DetailKind, ResolutionDetail, ResolutionResult

FIFTEEN_POINTS = 2
PAIR_POINTS = 2
HAND_FLUSH_SHIELD = 4
FULL_FLUSH_SHIELD = 5

_PAIR_KINDS: dict[int, DetailKind] = {2: "pair", 3: "pair3", 4: "pair4"}


def score_hand(hand: Sequence[Card], starter: Card, is_crib: bool = False) -> ResolutionResult:
    cards = [*hand, starter]
    result = ResolutionResult()

    result.damage += _score_fifteens(cards, result.details)
    result.damage += _score_pairs(cards, result.details)
    result.damage += _score_runs(cards, result.details)
    result.shield += _score_flush(hand, starter, is_crib, result.details)
    result.initiative = _score_nobs(hand, starter, result.details)
    return result


def _subsets(cards: Sequence[Card]) -> Iterable[tuple[Card, ...]]:
    for size in range(1, len(cards) + 1):
        yield from combinations(cards, size)


def _group_by_rank(cards: Iterable[Card]) -> dict[int, list[Card]]:
    groups: dict[int, list[Card]] = {}
    for card in cards:
        groups.setdefault(card.rank, []).append(card)
    return groups


def _score_fifteens(cards: Sequence[Card], details: list[ResolutionDetail]) -> int:
    damage = 0
    for subset in _subsets(cards):
        if sum(c.value for c in subset) == 15:
            damage += FIFTEEN_POINTS
            details.append(ResolutionDetail(kind="fifteen", points=FIFTEEN_POINTS, cards=subset))
    return damage


def _score_pairs(cards: Sequence[Card], details: list[ResolutionDetail]) -> int:
    damage = 0
    for group in _group_by_rank(cards).values():
        if len(group) < 2:
            continue
        points = comb(len(group), 2) * PAIR_POINTS
        damage += points
        kind = _PAIR_KINDS.get(len(group), "pair4")
        details.append(ResolutionDetail(kind=kind, points=points, cards=tuple(group)))
    return damage


def _consecutive_runs(ranks: Sequence[int]) -> list[list[int]]:
    runs: list[list[int]] = []
    current: list[int] = []
    for rank in ranks:
        if current and rank != current[-1] + 1:
            runs.append(current)
            current = []
        current.append(rank)
    if current:
        runs.append(current)
    return [r for r in runs if len(r) >= 3]


def _score_runs(cards: Sequence[Card], details: list[ResolutionDetail]) -> int:
    groups = _group_by_rank(cards)
    damage = 0
    for run in _consecutive_runs(sorted(groups)):
        # A duplicated rank inside the run yields one run per card choice.
        for choice in product(*(groups[rank] for rank in run)):
            damage += len(run)
            details.append(
                ResolutionDetail(kind="run", points=len(run), cards=tuple(choice), length=len(run))
            )
    return damage


def _score_flush(
    hand: Sequence[Card], starter: Card, is_crib: bool, details: list[ResolutionDetail]
) -> int:
    if not hand:
        return 0
    suit = hand[0].suit
    if any(c.suit != suit for c in hand):
        return 0
    starter_matches = starter.suit == suit
    # Crib flushes only count with a matching starter.
    if is_crib and not starter_matches:
        return 0
    shield = FULL_FLUSH_SHIELD if starter_matches else HAND_FLUSH_SHIELD
    flush_cards = (*hand, starter) if starter_matches else tuple(hand)
    details.append(ResolutionDetail(kind="flush", points=shield, cards=flush_cards))
    return shield


def _score_nobs(hand: Sequence[Card], starter: Card, details: list[ResolutionDetail]) -> bool:
    for card in hand:
        if card.rank == JACK and card.suit == starter.suit:
            details.append(ResolutionDetail(kind="nobs", points=0, cards=(card, starter)))
            return True
    return False
