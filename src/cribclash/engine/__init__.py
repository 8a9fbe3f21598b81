"""Deterministic, headless rules engine for CribClash.

IMPORTANT: This package must only depend on the standard library.
"""

from .actions import Action, CutAction, DiscardAction, GoAction, PlayAction, ResolveAction
from .combos import detect_pegging_combos
from .count import CountMeter
from .damage import DamageContext, apply_damage
from .deck import create_standard_deck, shuffle_deck
from .errors import (
    CardNotInHand,
    CountExceeded,
    DeckEmpty,
    IllegalGoWithLegalPlay,
    InvalidDiscardCount,
    NotPlayerTurn,
    PhaseMismatch,
    RulesError,
    SnapshotError,
    StarterNotCut,
)
from .match import (
    GoOutcome,
    MatchState,
    PlayOutcome,
    ResolutionSummary,
    StepResult,
    create_game_state,
    cut_starter,
    declare_go,
    discard_to_crib,
    has_legal_play,
    legal_cards,
    play_card,
    replay,
    resolve_round,
    start_next_round,
    step,
    winner,
)
from .pegging import PeggingTracker
from .scoring import score_hand
from .serialize import SNAPSHOT_VERSION, restore, snapshot
from .types import Card, ComboEvent, DamageEvent, MatchConfig, Phase, ResolutionResult, Seat, other_seat

__all__ = [
    "Action",
    "Card",
    "CardNotInHand",
    "ComboEvent",
    "CountExceeded",
    "CountMeter",
    "CutAction",
    "DamageContext",
    "DamageEvent",
    "DeckEmpty",
    "DiscardAction",
    "GoAction",
    "GoOutcome",
    "IllegalGoWithLegalPlay",
    "InvalidDiscardCount",
    "MatchConfig",
    "MatchState",
    "NotPlayerTurn",
    "PeggingTracker",
    "Phase",
    "PhaseMismatch",
    "PlayAction",
    "PlayOutcome",
    "ResolutionResult",
    "ResolutionSummary",
    "ResolveAction",
    "RulesError",
    "SNAPSHOT_VERSION",
    "Seat",
    "SnapshotError",
    "StarterNotCut",
    "StepResult",
    "apply_damage",
    "create_game_state",
    "create_standard_deck",
    "cut_starter",
    "declare_go",
    "detect_pegging_combos",
    "discard_to_crib",
    "has_legal_play",
    "legal_cards",
    "other_seat",
    "play_card",
    "replay",
    "resolve_round",
    "restore",
    "score_hand",
    "shuffle_deck",
    "snapshot",
    "start_next_round",
    "step",
    "winner",
]
