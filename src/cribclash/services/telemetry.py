from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from cribclash.engine.match import ResolutionSummary
from cribclash.engine.types import DamageEvent, Seat


@dataclass
class TelemetryService:
    """Append-only JSON-lines log of match activity.

    Each line is ``{"ts", "type", "payload"}``; ``ts`` is wall-clock UTC and
    unrelated to the engine's own event timestamps.
    """

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def damage(self, event: DamageEvent, *, round: int) -> None:
        self.log(
            "damage",
            {
                "round": round,
                "target": event.target,
                "amount": event.amount,
                "absorbed": event.absorbed,
                "hp_after": event.hp_after,
                "shield_after": event.shield_after,
                "source": event.source,
                "description": event.description,
            },
        )

    def round_resolved(
        self, round: int, summary: ResolutionSummary, hp: Mapping[Seat, int], shield: Mapping[Seat, int]
    ) -> None:
        crib = summary.crib_result
        self.log(
            "round_resolved",
            {
                "round": round,
                "hand_damage": {seat: r.damage for seat, r in summary.hand_results.items()},
                "crib_damage": crib.damage if crib is not None else None,
                "hp": dict(hp),
                "shield": dict(shield),
            },
        )

    def rules_error(self, error_kind: str | None, error: str | None, *, round: int) -> None:
        # DeckEmpty means the round sequencing itself is broken.
        kind = "invariant_violation" if error_kind == "DeckEmpty" else "rules_error"
        self.log(kind, {"error": error, "error_kind": error_kind, "round": round})

    def read(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
