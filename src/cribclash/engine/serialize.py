from __future__ import annotations

from typing import Any, Mapping

from .actions import Action, CutAction, DiscardAction, GoAction, PlayAction, ResolveAction
from .count import CountMeter
from .damage import Clock, wall_clock_ms
from .errors import SnapshotError
from .match import MatchState
from .pegging import PeggingTracker
from .types import (
    SEATS,
    Card,
    ComboEvent,
    ComboLogEntry,
    DamageEvent,
    MatchConfig,
    PileEntry,
)

SNAPSHOT_VERSION = 1


def card_to_dict(c: Card) -> dict[str, object]:
    return {"id": c.id, "rank": c.rank, "suit": c.suit, "value": c.value}


def _pile_entry_to_dict(e: PileEntry) -> dict[str, object]:
    return {"card": card_to_dict(e.card), "player": e.player}


def _combo_to_dict(c: ComboEvent | None) -> dict[str, object] | None:
    if c is None:
        return None
    return {"kind": c.kind, "damage": c.damage, "length": c.length}


def damage_event_to_dict(e: DamageEvent) -> dict[str, object]:
    return {
        "target": e.target,
        "amount": e.amount,
        "absorbed": e.absorbed,
        "hp_damage": e.hp_damage,
        "shield_before": e.shield_before,
        "hp_before": e.hp_before,
        "shield_after": e.shield_after,
        "hp_after": e.hp_after,
        "source": e.source,
        "combo": _combo_to_dict(e.combo),
        "description": e.description,
        "timestamp": e.timestamp,
    }


def _combo_log_to_dict(entry: ComboLogEntry) -> dict[str, object]:
    return {
        "player": entry.player,
        "combos": [_combo_to_dict(c) for c in entry.combos],
        "count": entry.count,
        "pile": [_pile_entry_to_dict(e) for e in entry.pile],
        "round": entry.round,
        "phase": entry.phase,
        "timestamp": entry.timestamp,
    }


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, DiscardAction):
        return {"type": "discard", "player": a.player, "card_ids": list(a.card_ids)}
    if isinstance(a, CutAction):
        return {"type": "cut"}
    if isinstance(a, PlayAction):
        return {"type": "play", "player": a.player, "card_id": a.card_id}
    if isinstance(a, GoAction):
        return {"type": "go", "player": a.player}
    if isinstance(a, ResolveAction):
        return {"type": "resolve"}
    # should be unreachable
    return {"type": "unknown"}


def _config_to_dict(cfg: MatchConfig) -> dict[str, object]:
    return {
        "starting_hp": cfg.starting_hp,
        "hand_size": cfg.hand_size,
        "crib_discard": cfg.crib_discard,
        "go_bonus_damage": cfg.go_bonus_damage,
        "fifteen_damage": cfg.fifteen_damage,
        "thirtyone_damage": cfg.thirtyone_damage,
        "pair_damage": cfg.pair_damage,
        "pair3_damage": cfg.pair3_damage,
        "pair4_damage": cfg.pair4_damage,
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state.

    Consumers treat a snapshot as a full replacement of any earlier one.
    """
    return {
        "version": SNAPSHOT_VERSION,
        "seed": state.seed,
        "round": state.round,
        "phase": state.phase,
        "dealer": state.dealer,
        "turn": state.turn,
        "crib_owner": state.crib_owner,
        "count": state.count,
        "pile": [_pile_entry_to_dict(e) for e in state.pile],
        "hands": {seat: [card_to_dict(c) for c in state.hands[seat]] for seat in SEATS},
        "crib": [card_to_dict(c) for c in state.crib],
        "kept": {seat: [card_to_dict(c) for c in state.kept[seat]] for seat in SEATS},
        "starter": card_to_dict(state.starter) if state.starter is not None else None,
        "deck": [card_to_dict(c) for c in state.deck],
        "hp": dict(state.hp),
        "shield": dict(state.shield),
        "initiative": state.initiative,
        "pegging": {
            "passed": dict(state.pegging.passed),
            "last_played_by": state.pegging.last_played_by,
        },
        "damage_log": [damage_event_to_dict(e) for e in state.damage_log],
        "combo_log": [_combo_log_to_dict(e) for e in state.combo_log],
        "action_log": [action_to_dict(a) for a in state.action_log],
        "config": _config_to_dict(state.config),
    }


def _card(raw: Any) -> Card:
    return Card(id=raw["id"], rank=raw["rank"], suit=raw["suit"], value=raw["value"])


def _pile_entry(raw: Any) -> PileEntry:
    return PileEntry(card=_card(raw["card"]), player=raw["player"])


def _combo(raw: Any) -> ComboEvent:
    return ComboEvent(kind=raw["kind"], damage=raw["damage"], length=raw.get("length"))


def _damage_event(raw: Any) -> DamageEvent:
    return DamageEvent(
        target=raw["target"],
        amount=raw["amount"],
        absorbed=raw["absorbed"],
        hp_damage=raw["hp_damage"],
        shield_before=raw["shield_before"],
        hp_before=raw["hp_before"],
        shield_after=raw["shield_after"],
        hp_after=raw["hp_after"],
        source=raw["source"],
        combo=_combo(raw["combo"]) if raw.get("combo") is not None else None,
        description=raw.get("description"),
        timestamp=raw["timestamp"],
    )


def _combo_log_entry(raw: Any) -> ComboLogEntry:
    return ComboLogEntry(
        player=raw["player"],
        combos=tuple(_combo(c) for c in raw["combos"]),
        count=raw["count"],
        pile=tuple(_pile_entry(e) for e in raw["pile"]),
        round=raw["round"],
        phase=raw["phase"],
        timestamp=raw["timestamp"],
    )


def action_from_dict(raw: Mapping[str, Any]) -> Action:
    t = raw.get("type")
    if t == "discard":
        return DiscardAction(player=raw["player"], card_ids=tuple(raw["card_ids"]))
    if t == "cut":
        return CutAction()
    if t == "play":
        return PlayAction(player=raw["player"], card_id=raw["card_id"])
    if t == "go":
        return GoAction(player=raw["player"])
    if t == "resolve":
        return ResolveAction()
    raise SnapshotError(f"Unknown action type: {t}")


def restore(data: Mapping[str, Any], clock: Clock | None = None) -> MatchState:
    """Rebuild a ``MatchState`` from a snapshot produced by :func:`snapshot`."""
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {version}")

    try:
        pegging = PeggingTracker(
            meter=CountMeter(data["count"]),
            pile=[_pile_entry(e) for e in data["pile"]],
            passed={seat: bool(data["pegging"]["passed"][seat]) for seat in SEATS},
            last_played_by=data["pegging"]["last_played_by"],
        )
        starter_raw = data["starter"]
        return MatchState(
            seed=data["seed"],
            config=MatchConfig(**data["config"]),
            dealer=data["dealer"],
            turn=data["turn"],
            crib_owner=data["crib_owner"],
            hands={seat: [_card(c) for c in data["hands"][seat]] for seat in SEATS},
            deck=[_card(c) for c in data["deck"]],
            hp={seat: data["hp"][seat] for seat in SEATS},
            shield={seat: data["shield"][seat] for seat in SEATS},
            round=data["round"],
            crib=[_card(c) for c in data["crib"]],
            kept={seat: [_card(c) for c in data["kept"][seat]] for seat in SEATS},
            starter=_card(starter_raw) if starter_raw is not None else None,
            damage_log=[_damage_event(e) for e in data["damage_log"]],
            combo_log=[_combo_log_entry(e) for e in data["combo_log"]],
            initiative=data["initiative"],
            pegging=pegging,
            phase=data["phase"],
            action_log=[action_from_dict(a) for a in data["action_log"]],
            clock=clock or wall_clock_ms,
        )
    except (KeyError, TypeError) as e:
        raise SnapshotError(f"Malformed snapshot: {e}") from e
