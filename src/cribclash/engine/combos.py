from __future__ import annotations

from typing import Sequence

from .types import MatchConfig, PileEntry, ComboEvent

MAX_RUN_WINDOW = 7


def detect_pegging_combos(
    pile: Sequence[PileEntry], count: int, config: MatchConfig | None = None
) -> list[ComboEvent]:
    """Return every scoring event triggered by the last card of ``pile``.

    ``pile`` holds only the plays of the current volley and ``count`` is the
    total after the last play.
    """
    if not pile:
        return []
    cfg = config or MatchConfig()

    combos: list[ComboEvent] = []
    if count == 15:
        combos.append(ComboEvent(kind="fifteen", damage=cfg.fifteen_damage))
    if count == 31:
        combos.append(ComboEvent(kind="thirtyone", damage=cfg.thirtyone_damage))

    pair = _detect_pair(pile, cfg)
    if pair is not None:
        combos.append(pair)

    run = _detect_run(pile)
    if run is not None:
        combos.append(run)
    return combos


def _detect_pair(pile: Sequence[PileEntry], cfg: MatchConfig) -> ComboEvent | None:
    last_rank = pile[-1].card.rank
    same = 1
    for entry in reversed(pile[:-1]):
        if entry.card.rank != last_rank:
            break
        same += 1

    if same == 2:
        return ComboEvent(kind="pair", damage=cfg.pair_damage, length=2)
    if same == 3:
        return ComboEvent(kind="pair3", damage=cfg.pair3_damage, length=3)
    if same == 4:
        return ComboEvent(kind="pair4", damage=cfg.pair4_damage, length=4)
    return None


def _detect_run(pile: Sequence[PileEntry]) -> ComboEvent | None:
    # Longest window wins; shorter runs inside it are not reported.
    for window in range(min(MAX_RUN_WINDOW, len(pile)), 2, -1):
        ranks = sorted(entry.card.rank for entry in pile[-window:])
        if _is_consecutive(ranks):
            return ComboEvent(kind="run", damage=window, length=window)
    return None


def _is_consecutive(sorted_ranks: Sequence[int]) -> bool:
    return all(b == a + 1 for a, b in zip(sorted_ranks, sorted_ranks[1:]))
