from __future__ import annotations

import pytest

from cribclash.cli import choose_action
from cribclash.engine.actions import CutAction, DiscardAction, GoAction, PlayAction, ResolveAction
from cribclash.engine.count import CountMeter
from cribclash.engine.deck import create_standard_deck
from cribclash.engine.errors import (
    CardNotInHand,
    CountExceeded,
    DeckEmpty,
    IllegalGoWithLegalPlay,
    InvalidDiscardCount,
    NotPlayerTurn,
    PhaseMismatch,
    StarterNotCut,
)
from cribclash.engine.match import (
    GoOutcome,
    MatchState,
    PlayOutcome,
    ResolutionSummary,
    create_game_state,
    cut_starter,
    declare_go,
    discard_to_crib,
    has_legal_play,
    legal_cards,
    play_card,
    resolve_round,
    step,
    winner,
)
from cribclash.engine.pegging import PeggingTracker
from cribclash.engine.scoring import score_hand
from cribclash.engine.types import Card, PileEntry, Seat


def _card(rank: int, suit: str) -> Card:
    return Card(id=f"{suit}-{rank}", rank=rank, suit=suit, value=min(rank, 10))  # type: ignore[arg-type]


def _state() -> MatchState:
    return create_game_state(seed=7, dealer="p1", deck=create_standard_deck(), clock=lambda: 1000)


def _pegging_state(
    count: int,
    pile: list[PileEntry],
    hands: dict[Seat, list[Card]],
    turn: Seat,
    last_played_by: Seat | None = None,
) -> MatchState:
    state = _state()
    state.phase = "pegging"
    state.turn = turn
    state.hands = hands
    state.crib = []
    state.starter = _card(13, "spades")
    state.pegging = PeggingTracker(meter=CountMeter(count), pile=pile, last_played_by=last_played_by)
    return state


def _resolution_state() -> MatchState:
    state = _state()
    state.phase = "resolution"
    state.hands = {"p1": [], "p2": []}
    state.kept = {
        "p1": [_card(5, "hearts"), _card(10, "hearts"), _card(6, "hearts"), _card(7, "hearts")],
        "p2": [_card(5, "diamonds"), _card(5, "spades"), _card(9, "hearts"), _card(11, "clubs")],
    }
    state.crib = [_card(2, "clubs"), _card(3, "diamonds"), _card(4, "spades"), _card(6, "clubs")]
    state.starter = _card(7, "clubs")
    return state


def test_new_match_is_dealt_and_waiting_for_discards() -> None:
    state = _state()
    assert state.phase == "discard"
    assert state.round == 1
    assert state.dealer == "p1"
    assert state.crib_owner == "p1"
    assert state.turn == "p2"
    assert [c.id for c in state.hands["p1"]] == [f"hearts-{r}" for r in range(1, 7)]
    assert [c.id for c in state.hands["p2"]] == [f"hearts-{r}" for r in range(7, 13)]
    assert len(state.deck) == 40
    assert state.hp == {"p1": 61, "p2": 61}
    assert state.shield == {"p1": 0, "p2": 0}
    assert state.count == 0


def test_hp_override() -> None:
    state = create_game_state(seed=1, hp_total=30)
    assert state.hp == {"p1": 30, "p2": 30}


def test_seeded_matches_deal_identically() -> None:
    a = create_game_state(seed=99)
    b = create_game_state(seed=99)
    assert a.hands == b.hands
    assert a.deck == b.deck


def test_discard_cut_and_pegging_flow() -> None:
    state = _state()
    discard_to_crib(state, "p1", ["hearts-1", "hearts-2"])
    assert state.phase == "discard"
    discard_to_crib(state, "p2", ["hearts-7", "hearts-8"])
    assert state.phase == "cut"
    assert [c.id for c in state.crib] == ["hearts-1", "hearts-2", "hearts-7", "hearts-8"]

    starter = cut_starter(state)
    assert starter.id == "hearts-13"
    assert [c.id for c in state.kept["p1"]] == [f"hearts-{r}" for r in range(3, 7)]
    assert [c.id for c in state.kept["p2"]] == [f"hearts-{r}" for r in range(9, 13)]
    assert state.starter == starter
    assert state.phase == "pegging"
    assert state.turn == "p2"
    assert state.count == 0


def test_discard_may_be_split_across_calls() -> None:
    state = _state()
    discard_to_crib(state, "p1", ["hearts-1"])
    discard_to_crib(state, "p1", ["hearts-2"])
    assert len(state.hands["p1"]) == 4

    with pytest.raises(InvalidDiscardCount):
        discard_to_crib(state, "p1", ["hearts-3"])


@pytest.mark.parametrize(
    ("card_ids", "error"),
    [
        ([], InvalidDiscardCount),
        (["hearts-1", "hearts-2", "hearts-3"], InvalidDiscardCount),
        (["hearts-1", "hearts-1"], CardNotInHand),
        (["hearts-1", "spades-1"], CardNotInHand),
        (["hearts-7"], CardNotInHand),
    ],
)
def test_bad_discards_leave_state_unchanged(card_ids: list[str], error: type[Exception]) -> None:
    state = _state()
    before = list(state.hands["p1"])
    with pytest.raises(error):
        discard_to_crib(state, "p1", card_ids)
    assert state.hands["p1"] == before
    assert state.crib == []


def test_wrong_phase_reports_expected_and_actual() -> None:
    state = _state()
    with pytest.raises(PhaseMismatch) as exc:
        play_card(state, "p2", "hearts-7")
    assert exc.value.expected == "pegging"
    assert exc.value.actual == "discard"

    with pytest.raises(PhaseMismatch):
        cut_starter(state)


def test_fifteen_then_double_go_awards_bonus() -> None:
    state = _pegging_state(
        count=10,
        pile=[PileEntry(card=_card(10, "clubs"), player="p2")],
        hands={"p1": [_card(5, "hearts")], "p2": []},
        turn="p1",
        last_played_by="p2",
    )

    outcome = play_card(state, "p1", "hearts-5")
    assert outcome.count == 15
    assert [c.kind for c in outcome.combos] == ["fifteen"]
    assert outcome.damage_event is not None
    assert outcome.damage_event.amount == 3
    assert outcome.damage_event.combo is not None
    assert state.hp["p2"] == 58
    assert len(state.combo_log) == 1
    assert state.combo_log[0].count == 15
    assert len(state.combo_log[0].pile) == 2
    assert state.turn == "p2"

    first = declare_go(state, "p2")
    assert first == GoOutcome(player="p2")
    assert state.turn == "p1"

    second = declare_go(state, "p1")
    assert second.awarded_to == "p1"
    assert second.reset is True
    assert state.hp["p2"] == 57
    assert state.damage_log[-1].description == "Go bonus"
    assert state.phase == "resolution"
    assert state.turn == state.dealer


def test_go_bonus_goes_to_last_player_and_opponent_leads() -> None:
    state = _pegging_state(
        count=28,
        pile=[PileEntry(card=_card(8, "diamonds"), player="p2")],
        hands={"p1": [_card(4, "hearts")], "p2": [_card(4, "clubs")]},
        turn="p1",
        last_played_by="p2",
    )

    first = declare_go(state, "p1")
    assert first.reset is False
    assert first.awarded_to is None

    second = declare_go(state, "p2")
    assert second.awarded_to == "p2"
    assert second.damage_event is not None
    assert second.damage_event.target == "p1"
    assert state.hp["p1"] == 60
    assert state.count == 0
    assert state.pile == ()
    assert state.turn == "p1"


def test_go_with_legal_play_is_rejected_without_change() -> None:
    state = _pegging_state(count=25, pile=[], hands={"p1": [], "p2": [_card(2, "clubs")]}, turn="p2")
    with pytest.raises(IllegalGoWithLegalPlay):
        declare_go(state, "p2")
    assert state.pegging.passed == {"p1": False, "p2": False}
    assert state.turn == "p2"


def _thirty_one_pile() -> list[PileEntry]:
    return [
        PileEntry(card=_card(12, "diamonds"), player="p1"),
        PileEntry(card=_card(9, "clubs"), player="p2"),
        PileEntry(card=_card(2, "spades"), player="p1"),
    ]


def test_thirty_one_resets_and_opponent_leads() -> None:
    state = _pegging_state(
        count=21,
        pile=_thirty_one_pile(),
        hands={"p1": [_card(13, "hearts"), _card(4, "hearts")], "p2": [_card(3, "clubs")]},
        turn="p1",
        last_played_by="p2",
    )

    outcome = play_card(state, "p1", "hearts-13")
    assert isinstance(outcome, PlayOutcome)
    assert outcome.reset is True
    assert outcome.count == 31
    assert [c.kind for c in outcome.combos] == ["thirtyone"]
    assert state.hp["p2"] == 55
    assert state.count == 0
    assert state.pile == ()
    assert state.turn == "p2"
    assert len(state.combo_log[-1].pile) == 4
    assert state.combo_log[-1].count == 31


def test_lead_skips_empty_hand_after_reset() -> None:
    state = _pegging_state(
        count=21,
        pile=_thirty_one_pile(),
        hands={"p1": [_card(13, "hearts"), _card(4, "hearts")], "p2": []},
        turn="p1",
        last_played_by="p2",
    )
    play_card(state, "p1", "hearts-13")
    assert state.turn == "p1"
    assert state.phase == "pegging"


def test_pegging_rule_violations() -> None:
    state = _pegging_state(
        count=25,
        pile=[],
        hands={"p1": [_card(13, "hearts"), _card(3, "hearts")], "p2": [_card(1, "clubs")]},
        turn="p1",
    )
    with pytest.raises(NotPlayerTurn):
        play_card(state, "p2", "clubs-1")
    with pytest.raises(CardNotInHand):
        play_card(state, "p1", "clubs-1")
    with pytest.raises(CountExceeded):
        play_card(state, "p1", "hearts-13")
    assert len(state.hands["p1"]) == 2
    assert state.count == 25

    assert [c.id for c in legal_cards(state, "p1")] == ["hearts-3"]
    assert has_legal_play(state, "p2")


def test_resolution_scores_hands_then_crib() -> None:
    state = _resolution_state()
    summary = resolve_round(state)

    assert summary.hand_results["p1"].damage == 10
    assert summary.hand_results["p1"].shield == 4
    assert summary.hand_results["p2"].damage == 6
    assert summary.hand_results["p2"].initiative is True
    assert summary.crib_result is not None
    assert summary.crib_result.damage == 7
    assert [e.target for e in summary.damage_events] == ["p1", "p2", "p2"]
    assert [e.description for e in summary.damage_events] == [
        "Resolution damage for p2",
        "Resolution damage for p1",
        "Crib damage",
    ]

    assert state.hp == {"p1": 55, "p2": 44}
    assert state.shield == {"p1": 4, "p2": 0}
    assert state.round == 2
    assert state.dealer == "p2"
    assert state.crib_owner == "p2"
    assert state.turn == "p2"
    assert state.initiative is None
    assert state.phase == "discard"
    assert state.crib == []
    assert state.starter is None
    assert all(len(state.hands[s]) == 6 for s in ("p1", "p2"))
    assert state.kept == {"p1": [], "p2": []}


def test_next_round_lead_defaults_to_non_dealer() -> None:
    state = _resolution_state()
    state.kept["p2"] = [_card(2, "diamonds"), _card(4, "spades"), _card(8, "hearts"), _card(13, "clubs")]
    resolve_round(state)
    assert state.dealer == "p2"
    assert state.turn == "p1"


def test_empty_crib_has_no_result() -> None:
    state = _resolution_state()
    state.crib = []
    summary = resolve_round(state)
    assert summary.crib_result is None
    assert state.hp["p2"] == 51


def test_resolution_needs_starter() -> None:
    state = _resolution_state()
    state.starter = None
    with pytest.raises(StarterNotCut):
        resolve_round(state)
    assert state.phase == "resolution"


def test_lethal_resolution_ends_match() -> None:
    state = _resolution_state()
    state.hp["p2"] = 5

    result = step(state, ResolveAction())
    assert result.ok
    assert isinstance(result.outcome, ResolutionSummary)
    assert state.phase == "results"
    assert state.hp["p2"] == 0
    assert state.round == 1
    assert winner(state) == "p1"

    after = step(state, CutAction())
    assert not after.ok
    assert after.error == "Match already ended."


def test_step_reports_errors_without_raising() -> None:
    state = _state()
    result = step(state, PlayAction(player="p2", card_id="hearts-7"))
    assert not result.ok
    assert result.error_kind == "PhaseMismatch"
    assert result.events == []
    assert state.action_log == [PlayAction(player="p2", card_id="hearts-7")]

    ok = step(state, DiscardAction(player="p1", card_ids=("hearts-1", "hearts-2")))
    assert ok.ok
    assert ok.outcome is None


def test_step_returns_new_damage_events() -> None:
    state = _pegging_state(
        count=10,
        pile=[PileEntry(card=_card(10, "clubs"), player="p2")],
        hands={"p1": [_card(5, "hearts")], "p2": [_card(1, "clubs")]},
        turn="p1",
    )
    result = step(state, PlayAction(player="p1", card_id="hearts-5"))
    assert result.ok
    assert len(result.events) == 1
    assert result.events[0].timestamp == 1000

    quiet = step(state, PlayAction(player="p2", card_id="clubs-1"))
    assert quiet.ok
    assert quiet.events == []


def test_short_deck_cannot_deal() -> None:
    with pytest.raises(DeckEmpty):
        create_game_state(seed=1, deck=create_standard_deck()[:10])


def test_cut_from_empty_deck_is_reported() -> None:
    state = create_game_state(seed=1, deck=create_standard_deck()[:12])
    step(state, DiscardAction(player="p1", card_ids=("hearts-1", "hearts-2")))
    step(state, DiscardAction(player="p2", card_ids=("hearts-7", "hearts-8")))
    result = step(state, CutAction())
    assert not result.ok
    assert result.error_kind == "DeckEmpty"
    assert state.phase == "cut"


def test_go_action_dispatch() -> None:
    state = _pegging_state(count=30, pile=[], hands={"p1": [_card(5, "hearts")], "p2": []}, turn="p1")
    result = step(state, GoAction(player="p1"))
    assert result.ok
    assert isinstance(result.outcome, GoOutcome)


def test_both_seats_dropping_to_zero_is_a_draw() -> None:
    state = _resolution_state()
    state.hp = {"p1": 5, "p2": 5}
    resolve_round(state)
    assert state.phase == "results"
    assert state.hp == {"p1": 0, "p2": 0}
    assert winner(state) is None


def _play_to_resolution(state: MatchState) -> tuple[dict[Seat, list[Card]], Card]:
    kept: dict[Seat, list[Card]] = {}
    while state.phase != "resolution":
        result = step(state, choose_action(state))
        assert result.ok, result.error
        if state.phase == "pegging" and not kept:
            kept = {s: list(state.hands[s]) for s in ("p1", "p2")}
    assert state.starter is not None
    return kept, state.starter


def test_played_rounds_score_the_cards_kept_at_the_cut() -> None:
    total_hand_damage = 0
    for seed in range(1, 40):
        state = create_game_state(seed=seed, clock=lambda: 1000)
        kept, starter = _play_to_resolution(state)
        assert state.hands == {"p1": [], "p2": []}
        assert all(len(kept[s]) == 4 for s in ("p1", "p2"))
        assert state.kept == kept

        summary = resolve_round(state)
        for seat in ("p1", "p2"):
            expected = score_hand(kept[seat], starter)
            got = summary.hand_results[seat]
            assert (got.damage, got.shield, got.initiative) == (
                expected.damage,
                expected.shield,
                expected.initiative,
            )
            total_hand_damage += got.damage

    assert total_hand_damage > 0
