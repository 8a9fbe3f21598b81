from __future__ import annotations

from .errors import CountExceeded
from .types import MAX_COUNT, Card


def _value_of(card: Card | int) -> int:
    return card if isinstance(card, int) else card.value


class CountMeter:
    """Running pegging total, never allowed past 31."""

    def __init__(self, total: int = 0) -> None:
        self._total = total

    @property
    def value(self) -> int:
        return self._total

    def can_play(self, card: Card | int) -> bool:
        return self._total + _value_of(card) <= MAX_COUNT

    def add(self, card: Card | int) -> int:
        value = _value_of(card)
        if not self.can_play(value):
            raise CountExceeded(f"Cannot exceed {MAX_COUNT} (count {self._total}, card {value}).")
        self._total += value
        return self._total

    def reset(self) -> None:
        self._total = 0
