from __future__ import annotations

from dataclasses import dataclass

from .types import Seat


@dataclass(frozen=True)
class DiscardAction:
    player: Seat
    card_ids: tuple[str, ...]


@dataclass(frozen=True)
class CutAction:
    pass


@dataclass(frozen=True)
class PlayAction:
    player: Seat
    card_id: str


@dataclass(frozen=True)
class GoAction:
    player: Seat


@dataclass(frozen=True)
class ResolveAction:
    pass


Action = DiscardAction | CutAction | PlayAction | GoAction | ResolveAction
