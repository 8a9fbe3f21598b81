from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, MutableMapping

from .types import ComboEvent, DamageEvent, DamageSource, Seat

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class DamageContext:
    source: DamageSource
    combo: ComboEvent | None = None
    description: str | None = None
    timestamp: int | None = None


def apply_damage(
    hp: MutableMapping[Seat, int],
    shield: MutableMapping[Seat, int],
    target: Seat,
    amount: int,
    context: DamageContext,
) -> DamageEvent:
    """Absorb ``amount`` into the target's shield, then spill the rest into HP.

    Both tracks are updated in place; HP never drops below zero.
    """
    shield_before = shield[target]
    hp_before = hp[target]
    absorbed = min(shield_before, amount)
    remaining = amount - absorbed
    shield[target] = shield_before - absorbed
    hp[target] = max(0, hp_before - remaining)

    return DamageEvent(
        target=target,
        amount=amount,
        absorbed=absorbed,
        hp_damage=remaining,
        shield_before=shield_before,
        hp_before=hp_before,
        shield_after=shield[target],
        hp_after=hp[target],
        source=context.source,
        combo=context.combo,
        description=context.description,
        timestamp=context.timestamp if context.timestamp is not None else wall_clock_ms(),
    )
