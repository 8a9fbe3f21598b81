"""Headless autoplay simulator.

Plays a seeded match through the public engine API with a naive consumer
that discards its first cards and leads its first legal card. Useful for
smoke-testing rules changes and for producing replayable snapshots.
"""

from __future__ import annotations

import argparse
import itertools
import json
import sys
from pathlib import Path
from typing import Sequence

from cribclash.engine import (
    Action,
    CutAction,
    DiscardAction,
    GoAction,
    MatchState,
    PlayAction,
    ResolutionSummary,
    ResolveAction,
    create_game_state,
    legal_cards,
    replay,
    snapshot,
    step,
    winner,
)
from cribclash.engine.damage import Clock
from cribclash.paths import get_paths
from cribclash.services.content import ContentService
from cribclash.services.telemetry import TelemetryService


def choose_action(state: MatchState) -> Action:
    cfg = state.config
    if state.phase == "discard":
        for seat in ("p1", "p2"):
            hand = state.hands[seat]
            if len(hand) > cfg.kept_hand_size:
                ids = tuple(c.id for c in hand[: len(hand) - cfg.kept_hand_size])
                return DiscardAction(player=seat, card_ids=ids)
    if state.phase == "cut":
        return CutAction()
    if state.phase == "pegging":
        playable = legal_cards(state, state.turn)
        if playable:
            return PlayAction(player=state.turn, card_id=playable[0].id)
        return GoAction(player=state.turn)
    return ResolveAction()


def _logical_clock() -> Clock:
    return itertools.count().__next__


def _log(telemetry: TelemetryService | None, event_type: str, payload: dict[str, object]) -> None:
    if telemetry is not None:
        telemetry.log(event_type, payload)


def run_match(
    state: MatchState,
    *,
    max_rounds: int,
    telemetry: TelemetryService | None = None,
) -> MatchState:
    _log(telemetry, "match_started", {"seed": state.seed, "dealer": state.dealer, "hp": dict(state.hp)})
    while state.phase != "results" and state.round <= max_rounds:
        round_no = state.round
        result = step(state, choose_action(state))
        if not result.ok:
            if telemetry is not None:
                telemetry.rules_error(result.error_kind, result.error, round=round_no)
            raise RuntimeError(f"{result.error_kind}: {result.error}")
        if telemetry is not None:
            for event in result.events:
                telemetry.damage(event, round=round_no)
        if isinstance(result.outcome, ResolutionSummary):
            if telemetry is not None:
                telemetry.round_resolved(round_no, result.outcome, state.hp, state.shield)
            print(
                f"round resolved: hp p1={state.hp['p1']} p2={state.hp['p2']} "
                f"shield p1={state.shield['p1']} p2={state.shield['p2']}"
            )
    _log(telemetry, "match_ended", {"round": state.round, "winner": winner(state), "hp": dict(state.hp)})
    return state


def _winner_label(state: MatchState) -> str:
    if state.phase != "results":
        return "none"
    return winner(state) or "draw"


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cribclash-sim")
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--dealer", choices=["p1", "p2"], default="p1")
    parser.add_argument("--hp", type=int, default=None)
    parser.add_argument("--max-rounds", type=int, default=50)
    parser.add_argument("--rules", type=Path, default=None, help="rules.json overriding the bundled one")
    parser.add_argument("--telemetry", type=Path, default=None, help="append JSON-lines telemetry here")
    parser.add_argument("--snapshot-out", type=Path, default=None)
    parser.add_argument("--check-replay", action="store_true")
    args = parser.parse_args(argv)

    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    config = content.load_rules(args.rules)
    telemetry = TelemetryService(args.telemetry) if args.telemetry else None
    clock = _logical_clock() if args.check_replay else None

    state = create_game_state(seed=args.seed, dealer=args.dealer, hp_total=args.hp, config=config, clock=clock)
    try:
        run_match(state, max_rounds=args.max_rounds, telemetry=telemetry)
    except RuntimeError as e:
        print(f"match aborted: {e}", file=sys.stderr)
        return 2

    snap = snapshot(state)
    content.validate_snapshot(snap)
    print(f"finished after round {state.round}: winner={_winner_label(state)}")

    if args.check_replay:
        again = replay(
            state.action_log,
            seed=args.seed,
            dealer=args.dealer,
            hp_total=args.hp,
            config=config,
            clock=_logical_clock(),
        )
        if snapshot(again) != snap:
            print("replay diverged from the original match", file=sys.stderr)
            return 1
        print("replay matches")

    if args.snapshot_out is not None:
        args.snapshot_out.parent.mkdir(parents=True, exist_ok=True)
        args.snapshot_out.write_text(json.dumps(snap, indent=2), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
