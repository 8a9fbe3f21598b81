from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Seat = Literal["p1", "p2"]
Suit = Literal["hearts", "diamonds", "clubs", "spades"]
Phase = Literal["deal", "discard", "cut", "pegging", "resolution", "results"]

ComboKind = Literal["fifteen", "thirtyone", "pair", "pair3", "pair4", "run"]
DetailKind = Literal["fifteen", "pair", "pair3", "pair4", "run", "flush", "nobs"]
DamageSource = Literal["pegging", "resolution", "ability", "status"]

SEATS: tuple[Seat, Seat] = ("p1", "p2")
SUITS: tuple[Suit, ...] = ("hearts", "diamonds", "clubs", "spades")

MAX_COUNT = 31
JACK = 11


def other_seat(seat: Seat) -> Seat:
    return "p2" if seat == "p1" else "p1"


@dataclass(frozen=True)
class MatchConfig:
    starting_hp: int = 61
    hand_size: int = 6
    crib_discard: int = 2
    go_bonus_damage: int = 1
    fifteen_damage: int = 3
    thirtyone_damage: int = 6
    pair_damage: int = 2
    pair3_damage: int = 6
    pair4_damage: int = 12

    @property
    def kept_hand_size(self) -> int:
        return self.hand_size - self.crib_discard


@dataclass(frozen=True)
class Card:
    id: str
    rank: int
    suit: Suit
    value: int


@dataclass(frozen=True)
class PileEntry:
    card: Card
    player: Seat


@dataclass(frozen=True)
class ComboEvent:
    kind: ComboKind
    damage: int
    length: int | None = None

    def label(self) -> str:
        return f"{self.kind}({self.length})" if self.length else self.kind


@dataclass(frozen=True)
class DamageEvent:
    """One shield-then-HP damage application, as appended to the damage log."""

    target: Seat
    amount: int
    absorbed: int
    hp_damage: int
    shield_before: int
    hp_before: int
    shield_after: int
    hp_after: int
    source: DamageSource
    timestamp: int
    combo: ComboEvent | None = None
    description: str | None = None


@dataclass(frozen=True)
class ComboLogEntry:
    player: Seat
    combos: tuple[ComboEvent, ...]
    count: int
    pile: tuple[PileEntry, ...]
    round: int
    phase: Phase
    timestamp: int


@dataclass(frozen=True)
class ResolutionDetail:
    kind: DetailKind
    points: int
    cards: tuple[Card, ...]
    length: int | None = None


@dataclass
class ResolutionResult:
    damage: int = 0
    shield: int = 0
    initiative: bool = False
    details: list[ResolutionDetail] = field(default_factory=list)

    def of_kind(self, kind: DetailKind) -> list[ResolutionDetail]:
        return [d for d in self.details if d.kind == kind]
