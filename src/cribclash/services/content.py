from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from cribclash.engine.types import MatchConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_mapping(obj: Mapping[str, object], key: str) -> Mapping[str, object]:
    v = obj.get(key)
    if not isinstance(v, dict):
        raise ContentError(f"Expected object for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_rules(self, path: Path | None = None) -> MatchConfig:
        rules_path = path or self._data_dir / "rules.json"
        raw = _load_json(rules_path)
        schema = _load_schema(self._schema_dir / "rules.schema.json")
        validate_json(raw, schema, context=str(rules_path))

        if not isinstance(raw, dict):
            raise ContentError("rules.json must be an object")
        match = _require_mapping(raw, "match")
        damage = _require_mapping(raw, "pegging_damage")

        hand_size = _require_int(match, "hand_size")
        crib_discard = _require_int(match, "crib_discard")
        if crib_discard >= hand_size:
            raise ContentError("crib_discard must leave at least one card in hand")

        return MatchConfig(
            starting_hp=_require_int(match, "starting_hp"),
            hand_size=hand_size,
            crib_discard=crib_discard,
            go_bonus_damage=_require_int(match, "go_bonus_damage"),
            fifteen_damage=_require_int(damage, "fifteen"),
            thirtyone_damage=_require_int(damage, "thirtyone"),
            pair_damage=_require_int(damage, "pair"),
            pair3_damage=_require_int(damage, "pair3"),
            pair4_damage=_require_int(damage, "pair4"),
        )

    def validate_snapshot(self, snapshot: Mapping[str, object]) -> None:
        """Check a match snapshot against the published snapshot contract."""
        schema = _load_schema(self._schema_dir / "snapshot.schema.json")
        validate_json(dict(snapshot), schema, context="match snapshot")

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_rules()
        for name in ("rules.schema.json", "snapshot.schema.json"):
            Draft202012Validator.check_schema(_load_schema(self._schema_dir / name))
