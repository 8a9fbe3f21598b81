from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .actions import Action, CutAction, DiscardAction, GoAction, PlayAction, ResolveAction
from .combos import detect_pegging_combos
from .damage import Clock, DamageContext, apply_damage, wall_clock_ms
from .deck import shuffle_deck
from .errors import (
    CardNotInHand,
    CountExceeded,
    DeckEmpty,
    InvalidDiscardCount,
    NotPlayerTurn,
    PhaseMismatch,
    RulesError,
    StarterNotCut,
)
from .pegging import PeggingTracker
from .scoring import score_hand
from .types import (
    SEATS,
    Card,
    ComboEvent,
    ComboLogEntry,
    DamageEvent,
    MatchConfig,
    Phase,
    PileEntry,
    ResolutionResult,
    Seat,
    other_seat,
)


def _no_kept_cards() -> dict[Seat, list[Card]]:
    return {"p1": [], "p2": []}


@dataclass
class MatchState:
    seed: int
    config: MatchConfig
    dealer: Seat
    turn: Seat
    crib_owner: Seat
    hands: dict[Seat, list[Card]]
    deck: list[Card]
    hp: dict[Seat, int]
    shield: dict[Seat, int]
    round: int = 1
    crib: list[Card] = field(default_factory=list)
    kept: dict[Seat, list[Card]] = field(default_factory=_no_kept_cards)
    starter: Card | None = None
    damage_log: list[DamageEvent] = field(default_factory=list)
    combo_log: list[ComboLogEntry] = field(default_factory=list)
    initiative: Seat | None = None
    pegging: PeggingTracker = field(default_factory=PeggingTracker)
    phase: Phase = "discard"
    action_log: list[Action] = field(default_factory=list)
    clock: Clock = field(default=wall_clock_ms, repr=False, compare=False)

    @property
    def count(self) -> int:
        return self.pegging.count

    @property
    def pile(self) -> tuple[PileEntry, ...]:
        return tuple(self.pegging.pile)


@dataclass(frozen=True)
class PlayOutcome:
    player: Seat
    card: Card
    count: int
    combos: tuple[ComboEvent, ...]
    damage_event: DamageEvent | None
    reset: bool


@dataclass(frozen=True)
class GoOutcome:
    player: Seat
    awarded_to: Seat | None = None
    damage_event: DamageEvent | None = None
    reset: bool = False


@dataclass
class ResolutionSummary:
    hand_results: dict[Seat, ResolutionResult]
    crib_result: ResolutionResult | None
    damage_events: list[DamageEvent]


Outcome = PlayOutcome | GoOutcome | ResolutionSummary | Card | None


@dataclass
class StepResult:
    ok: bool
    events: list[DamageEvent]
    error: str | None = None
    error_kind: str | None = None
    outcome: Outcome = None


def _deal(deck: list[Card], hand_size: int) -> tuple[dict[Seat, list[Card]], list[Card]]:
    if len(deck) < hand_size * 2:
        raise DeckEmpty(f"Deck has {len(deck)} cards; dealing needs {hand_size * 2}.")
    hands: dict[Seat, list[Card]] = {
        "p1": deck[:hand_size],
        "p2": deck[hand_size : hand_size * 2],
    }
    return hands, deck[hand_size * 2 :]


def _ensure_phase(state: MatchState, phase: Phase) -> None:
    if state.phase != phase:
        raise PhaseMismatch(expected=phase, actual=state.phase)


def _ensure_turn(state: MatchState, seat: Seat) -> None:
    if state.turn != seat:
        raise NotPlayerTurn(f"It is {state.turn}'s turn, not {seat}'s.")


def _find_in_hand(hand: Sequence[Card], card_id: str) -> int:
    for i, card in enumerate(hand):
        if card.id == card_id:
            return i
    raise CardNotInHand(f"Card {card_id} is not in hand.")


def create_game_state(
    seed: int | None = None,
    dealer: Seat = "p1",
    hp_total: int | None = None,
    deck: Sequence[Card] | None = None,
    config: MatchConfig | None = None,
    clock: Clock | None = None,
) -> MatchState:
    """Create a match dealt and waiting for both seats to discard.

    Without an explicit ``deck`` the cards are shuffled from ``seed``; a missing
    seed falls back to the clock, which makes the match non-reproducible.
    """
    cfg = config or MatchConfig()
    clk = clock or wall_clock_ms
    if seed is None:
        seed = clk()
    starting_deck = list(deck) if deck is not None else shuffle_deck(seed)
    hands, remaining = _deal(starting_deck, cfg.hand_size)
    total = hp_total if hp_total is not None else cfg.starting_hp

    return MatchState(
        seed=seed,
        config=cfg,
        dealer=dealer,
        turn=other_seat(dealer),
        crib_owner=dealer,
        hands=hands,
        deck=remaining,
        hp={"p1": total, "p2": total},
        shield={"p1": 0, "p2": 0},
        clock=clk,
    )


def discard_to_crib(state: MatchState, seat: Seat, card_ids: Iterable[str]) -> None:
    _ensure_phase(state, "discard")
    ids = list(card_ids)
    hand = state.hands[seat]
    keep_size = state.config.kept_hand_size
    if not ids:
        raise InvalidDiscardCount("Must discard at least one card.")
    if len(hand) - len(ids) < keep_size:
        raise InvalidDiscardCount(f"{seat} must keep {keep_size} cards; cannot discard {len(ids)}.")
    if len(set(ids)) != len(ids):
        raise CardNotInHand("The same card cannot be discarded twice.")
    for card_id in ids:
        _find_in_hand(hand, card_id)

    for card_id in ids:
        state.crib.append(hand.pop(_find_in_hand(hand, card_id)))

    if all(len(state.hands[s]) == keep_size for s in SEATS):
        state.phase = "cut"


def cut_starter(state: MatchState) -> Card:
    _ensure_phase(state, "cut")
    if not state.deck:
        raise DeckEmpty("No card left to cut as starter.")
    starter = state.deck.pop(0)
    state.starter = starter
    # Pegging empties the hands; resolution scores these copies.
    state.kept = {seat: list(state.hands[seat]) for seat in SEATS}
    state.pegging = PeggingTracker()
    state.phase = "pegging"
    return starter


def _apply_combo_damage(
    state: MatchState, target: Seat, combos: Sequence[ComboEvent]
) -> DamageEvent | None:
    total = sum(c.damage for c in combos)
    if total <= 0:
        return None
    context = DamageContext(
        source="pegging",
        combo=combos[0] if len(combos) == 1 else None,
        description=", ".join(c.label() for c in combos),
        timestamp=state.clock(),
    )
    event = apply_damage(state.hp, state.shield, target, total, context)
    state.damage_log.append(event)
    return event


def _log_combos(state: MatchState, seat: Seat, combos: Sequence[ComboEvent]) -> None:
    if not combos:
        return
    state.combo_log.append(
        ComboLogEntry(
            player=seat,
            combos=tuple(combos),
            count=state.count,
            pile=state.pile,
            round=state.round,
            phase=state.phase,
            timestamp=state.clock(),
        )
    )


def _set_lead_after_reset(state: MatchState, preferred: Seat) -> None:
    # Skip a seat that has nothing left to lead with.
    if state.hands[preferred]:
        state.turn = preferred
    elif state.hands[other_seat(preferred)]:
        state.turn = other_seat(preferred)
    else:
        state.turn = preferred


def _maybe_advance_to_resolution(state: MatchState) -> None:
    if not state.hands["p1"] and not state.hands["p2"] and state.count == 0:
        state.phase = "resolution"
        state.turn = state.dealer


def play_card(state: MatchState, seat: Seat, card_id: str) -> PlayOutcome:
    _ensure_phase(state, "pegging")
    _ensure_turn(state, seat)
    hand = state.hands[seat]
    index = _find_in_hand(hand, card_id)
    card = hand[index]
    if not state.pegging.can_play(card):
        raise CountExceeded(f"Playing {card.id} would take the count past 31.")

    hand.pop(index)
    reached_31 = state.pegging.play(seat, card)
    count = state.count
    combos = detect_pegging_combos(state.pegging.pile, count, state.config)
    damage_event = _apply_combo_damage(state, other_seat(seat), combos)
    _log_combos(state, seat, combos)

    if reached_31:
        state.pegging.reset()
        _set_lead_after_reset(state, other_seat(seat))
    else:
        state.turn = other_seat(seat)

    _maybe_advance_to_resolution(state)
    return PlayOutcome(
        player=seat,
        card=card,
        count=count,
        combos=tuple(combos),
        damage_event=damage_event,
        reset=reached_31,
    )


def _award_go_bonus(state: MatchState, awarded_to: Seat) -> DamageEvent | None:
    if state.config.go_bonus_damage <= 0:
        return None
    context = DamageContext(source="pegging", description="Go bonus", timestamp=state.clock())
    event = apply_damage(
        state.hp, state.shield, other_seat(awarded_to), state.config.go_bonus_damage, context
    )
    state.damage_log.append(event)
    return event


def declare_go(state: MatchState, seat: Seat) -> GoOutcome:
    _ensure_phase(state, "pegging")
    _ensure_turn(state, seat)
    awarded_to = state.pegging.declare_go(seat, state.hands[seat])
    state.turn = other_seat(seat)
    if awarded_to is None:
        return GoOutcome(player=seat)

    damage_event = _award_go_bonus(state, awarded_to)
    state.pegging.reset()
    _set_lead_after_reset(state, other_seat(awarded_to))
    _maybe_advance_to_resolution(state)
    return GoOutcome(player=seat, awarded_to=awarded_to, damage_event=damage_event, reset=True)


def _apply_resolution(
    state: MatchState,
    result: ResolutionResult,
    owner: Seat,
    description: str,
    events: list[DamageEvent],
) -> None:
    if result.damage > 0:
        context = DamageContext(source="resolution", description=description, timestamp=state.clock())
        event = apply_damage(state.hp, state.shield, other_seat(owner), result.damage, context)
        state.damage_log.append(event)
        events.append(event)
    if result.shield > 0:
        state.shield[owner] += result.shield
    if result.initiative:
        state.initiative = owner


def resolve_round(state: MatchState) -> ResolutionSummary:
    """Score both hands and the crib, then end the match or deal the next round.

    Each seat scores the cards it kept at the cut, not its (by now empty)
    hand. The non-dealer scores first, so damage lands before the dealer's
    own flush shield is credited.
    """
    _ensure_phase(state, "resolution")
    starter = state.starter
    if starter is None:
        raise StarterNotCut("Cannot resolve a round before the starter is cut.")

    hand_results: dict[Seat, ResolutionResult] = {"p1": ResolutionResult(), "p2": ResolutionResult()}
    events: list[DamageEvent] = []
    for seat in (other_seat(state.dealer), state.dealer):
        result = score_hand(state.kept[seat], starter)
        hand_results[seat] = result
        _apply_resolution(state, result, seat, f"Resolution damage for {seat}", events)

    crib_result: ResolutionResult | None = None
    if state.crib:
        crib_result = score_hand(state.crib, starter, is_crib=True)
        _apply_resolution(state, crib_result, state.crib_owner, "Crib damage", events)

    summary = ResolutionSummary(hand_results=hand_results, crib_result=crib_result, damage_events=events)
    if state.hp["p1"] == 0 or state.hp["p2"] == 0:
        state.phase = "results"
        return summary

    start_next_round(state)
    return summary


def start_next_round(state: MatchState) -> None:
    state.round += 1
    state.dealer = other_seat(state.dealer)
    state.crib_owner = state.dealer
    state.phase = "deal"

    hands, remaining = _deal(shuffle_deck(state.seed + state.round - 1), state.config.hand_size)
    state.hands = hands
    state.deck = remaining
    state.crib = []
    state.kept = _no_kept_cards()
    state.starter = None
    state.pegging = PeggingTracker()
    state.phase = "discard"

    state.turn = state.initiative or other_seat(state.dealer)
    state.initiative = None


def legal_cards(state: MatchState, seat: Seat) -> list[Card]:
    """Cards ``seat`` could play right now without passing 31."""
    return [c for c in state.hands[seat] if state.pegging.can_play(c)]


def has_legal_play(state: MatchState, seat: Seat) -> bool:
    return state.pegging.has_legal_play(state.hands[seat])


def winner(state: MatchState) -> Seat | None:
    """Seat still above 0 HP once the match is over.

    ``None`` while the match is running, and also for a draw where one
    resolution drops both seats to 0 HP.
    """
    if state.phase != "results":
        return None
    if state.hp["p1"] > 0:
        return "p1"
    if state.hp["p2"] > 0:
        return "p2"
    return None


def _dispatch(state: MatchState, action: Action) -> Outcome:
    if isinstance(action, DiscardAction):
        discard_to_crib(state, action.player, action.card_ids)
        return None
    if isinstance(action, CutAction):
        return cut_starter(state)
    if isinstance(action, PlayAction):
        return play_card(state, action.player, action.card_id)
    if isinstance(action, GoAction):
        return declare_go(state, action.player)
    if isinstance(action, ResolveAction):
        return resolve_round(state)
    raise RulesError("Unknown action.")


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action to the match state.

    This mutates ``state`` in place but remains deterministic for a given
    (seed, deck, action sequence). A rule violation comes back as ``ok=False``
    and changes nothing except ``action_log``, which records every attempted
    action, failed ones included.
    """
    if state.phase == "results":
        return StepResult(ok=False, events=[], error="Match already ended.")

    # Log first so replay has a full record of attempted actions.
    state.action_log.append(action)
    logged = len(state.damage_log)
    try:
        outcome = _dispatch(state, action)
    except RulesError as e:
        return StepResult(ok=False, events=[], error=str(e), error_kind=type(e).__name__)
    return StepResult(ok=True, events=state.damage_log[logged:], outcome=outcome)


def replay(
    actions: Iterable[Action],
    seed: int,
    dealer: Seat = "p1",
    hp_total: int | None = None,
    deck: Sequence[Card] | None = None,
    config: MatchConfig | None = None,
    clock: Clock | None = None,
) -> MatchState:
    state = create_game_state(
        seed=seed, dealer=dealer, hp_total=hp_total, deck=deck, config=config, clock=clock
    )
    for a in actions:
        step(state, a)
        if state.phase == "results":
            break
    return state
