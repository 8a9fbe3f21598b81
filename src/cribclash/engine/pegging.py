from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .count import CountMeter
from .errors import IllegalGoWithLegalPlay
from .types import MAX_COUNT, Card, PileEntry, Seat, other_seat


def _fresh_passes() -> dict[Seat, bool]:
    return {"p1": False, "p2": False}


@dataclass
class PeggingTracker:
    """Count, pile, pass flags and last player of the current volley."""

    meter: CountMeter = field(default_factory=CountMeter)
    pile: list[PileEntry] = field(default_factory=list)
    passed: dict[Seat, bool] = field(default_factory=_fresh_passes)
    last_played_by: Seat | None = None

    @property
    def count(self) -> int:
        return self.meter.value

    def can_play(self, card: Card) -> bool:
        return self.meter.can_play(card)

    def has_legal_play(self, hand: Iterable[Card]) -> bool:
        return any(self.can_play(card) for card in hand)

    def play(self, seat: Seat, card: Card) -> bool:
        """Record ``card`` and return ``True`` when it brought the count to 31."""
        count = self.meter.add(card)
        self.pile.append(PileEntry(card=card, player=seat))
        self.last_played_by = seat
        self.passed = _fresh_passes()
        return count == MAX_COUNT

    def declare_go(self, seat: Seat, hand: Iterable[Card]) -> Seat | None:
        """Mark ``seat`` as passed.

        Returns the seat awarded the Go bonus when this pass closes the volley,
        i.e. the opponent had already passed; otherwise ``None``.
        """
        if self.has_legal_play(hand):
            raise IllegalGoWithLegalPlay(f"{seat} has a legal play and cannot call go.")
        self.passed[seat] = True
        opponent = other_seat(seat)
        if self.passed[opponent]:
            return self.last_played_by or opponent
        return None

    def reset(self) -> None:
        self.meter.reset()
        self.pile = []
        self.passed = _fresh_passes()
        self.last_played_by = None
