from __future__ import annotations

from dataclasses import replace

import pytest

from momentrivals.engine.actions import (
    CycleCardAction,
    ForfeitAction,
    ManualDrawAction,
    PassAction,
    PlayCardAction,
    ProceedAction,
    SelectCardAction,
    TimeoutAction,
)
from momentrivals.engine.match import MatchConfig, MatchState, PlayChoice, new_match, step
from momentrivals.engine.serialize import snapshot
from momentrivals.engine.types import PASS, Card, CardPlay


def _card(cid: str, card_type: str, power: int, cost: int = 1) -> Card:
    return Card(
        id=cid,
        name=cid,
        card_type=card_type,  # type: ignore[arg-type]
        cost=cost,
        power=power,
        offense=power if card_type == "OFFENSE" else 1,
        defense=power if card_type == "DEFENSE" else 1,
        agility=power if card_type == "SUPPORT" else 1,
    )


def _filler(prefix: str, n: int, card_type: str = "OFFENSE") -> list[Card]:
    return [_card(f"{prefix}{i}", card_type, 1) for i in range(n)]


class _Script:
    """Opponent policy replaying fixed choices, then passing."""

    def __init__(self, *choices: PlayChoice) -> None:
        self.choices = list(choices)

    def choose(self, state: MatchState) -> PlayChoice:
        if self.choices:
            return self.choices.pop(0)
        return PlayChoice()


def _proceed_to_action(state: MatchState) -> None:
    while state.phase != "ACTION":
        assert step(state, ProceedAction()).ok


def _play(state: MatchState, *card_ids: str) -> None:
    for cid in card_ids:
        res = step(state, SelectCardAction(card_id=cid))
        assert res.ok, res.error
    res = step(state, PlayCardAction())
    assert res.ok, res.error


def test_turn_one_offense_against_defense() -> None:
    player_deck = [_card("p_off", "OFFENSE", 5, cost=2), *_filler("p", 4)]
    opponent_deck = [_card("o_def", "DEFENSE", 3, cost=1), *_filler("o", 4)]
    cfg = MatchConfig(starting_hand_size=2, auto_advance=False)
    state = new_match(
        player_deck, opponent_deck, seed=1, config=cfg, policy=_Script(PlayChoice(main_id="o_def")), shuffle=False
    )
    assert state.phase == "DRAW"
    _proceed_to_action(state)
    assert state.player.energy == 3
    assert state.opponent.energy == 3

    _play(state, "p_off")
    assert state.phase == "LOCKED"
    for _ in range(3):
        assert step(state, ProceedAction()).ok
    assert state.phase == "TURN_END"

    turn = state.rounds[0].turns[0]
    assert turn.resolved
    assert (turn.player_points, turn.opponent_points) == (2, 0)
    assert state.player.total_score == 2
    assert state.opponent.total_score == 0
    assert [c.id for c in state.player.graveyard] == ["p_off"]
    assert [c.id for c in state.opponent.graveyard] == ["o_def"]
    assert state.player.energy == 1
    assert state.opponent.energy == 2


def test_pass_with_full_hand_discards_oldest() -> None:
    player_deck = _filler("p", 10)
    opponent_deck = _filler("o", 10)
    state = new_match(
        player_deck,
        opponent_deck,
        seed=1,
        config=MatchConfig(auto_advance=False),
        policy=_Script(),
        shuffle=False,
    )
    _proceed_to_action(state)
    # the turn-one draw already pushed p0 out
    assert len(state.player.hand) == 7
    assert state.player.hand[0].id == "p1"

    assert step(state, PassAction()).ok
    assert len(state.player.hand) == 6
    assert [c.id for c in state.player.graveyard] == ["p0", "p1"]
    assert state.player.locked_play == PASS
    assert state.phase == "LOCKED"


def test_hand_never_exceeds_max_after_draw() -> None:
    state = new_match(_filler("p", 12), _filler("o", 12), seed=3, policy=_Script(), shuffle=False)
    for _ in range(3):
        assert len(state.player.hand) <= state.config.max_hand_size
        assert len(state.opponent.hand) <= state.config.max_hand_size
        # passing with a full hand costs one card; playing keeps the hand full
        _play(state, state.player.hand[-1].id)
    assert state.player.graveyard[0].id == "p0"


def test_turn_two_is_deferred_and_scored_with_turn_three() -> None:
    player_deck = [
        _card("p4", "OFFENSE", 4),
        _card("p3", "OFFENSE", 3),
        _card("p2", "OFFENSE", 2),
        *_filler("f", 5),
    ]
    state = new_match(
        player_deck,
        _filler("o", 8, "DEFENSE"),
        seed=9,
        config=MatchConfig(starting_hand_size=3),
        policy=_Script(),
        shuffle=False,
    )
    assert state.phase == "ACTION"

    _play(state, "p4")
    assert state.player.total_score == 4

    _play(state, "p3")
    turn2 = state.rounds[0].turns[1]
    assert state.current_turn == 3
    assert state.phase == "ACTION"
    assert isinstance(turn2.player_play, CardPlay)
    assert not turn2.revealed
    assert not turn2.resolved
    assert turn2.player_points == 0
    assert state.player.total_score == 4

    res = step(state, SelectCardAction(card_id="p2"))
    assert res.ok
    res = step(state, PlayCardAction())
    assert res.ok
    messages = [e.message for e in res.events]
    first = messages.index("Revealing Turn 2 first.")
    assert first < messages.index("Turn 2 points: You +3 | Opponent +0")
    assert messages.index("Turn 2 points: You +3 | Opponent +0") < messages.index(
        "Turn 3 points: You +2 | Opponent +0"
    )
    assert turn2.resolved
    assert state.player.total_score == 9

    round1 = state.rounds[0]
    assert round1.winner == "player"
    assert round1.final_score == {"player": 9, "opponent": 0}
    assert state.player.rounds_won == 1
    assert state.player.round_score == 0


def test_manual_draw_gates_new_round() -> None:
    state = new_match(
        _filler("p", 12),
        _filler("o", 12),
        seed=2,
        config=MatchConfig(starting_hand_size=2),
        policy=_Script(),
        shuffle=False,
    )
    for _ in range(3):
        assert step(state, PassAction()).ok

    assert state.current_round == 2
    assert state.phase == "DRAW"
    assert state.waiting_for_draw
    assert state.player.max_energy == 4

    res = step(state, SelectCardAction(card_id=state.player.hand[0].id))
    assert not res.ok
    assert res.error == "Not in the action phase."
    assert not step(state, ProceedAction()).ok

    assert step(state, ManualDrawAction()).ok
    assert state.phase == "ACTION"
    assert not state.waiting_for_draw
    assert state.player.energy == 4
    assert not step(state, ManualDrawAction()).ok


def test_empty_deck_skips_draw() -> None:
    state = new_match(_filler("p", 3), _filler("o", 8), seed=1, config=MatchConfig(starting_hand_size=3), policy=_Script(), shuffle=False)
    assert state.phase == "ACTION"
    assert len(state.player.hand) == 3
    assert "You: deck is empty - no card drawn." in [e.message for e in state.event_log]


def test_selection_rules() -> None:
    player_deck = [
        _card("a", "OFFENSE", 4, cost=1),
        _card("b", "OFFENSE", 5, cost=2),
        _card("s1", "SUPPORT", 2, cost=1),
        _card("s2", "SUPPORT", 3, cost=2),
        *_filler("f", 4),
    ]
    state = new_match(
        player_deck, _filler("o", 8), seed=4, config=MatchConfig(starting_hand_size=4), policy=_Script(), shuffle=False
    )

    res = step(state, SelectCardAction(card_id="s1"))
    assert not res.ok
    assert res.error == "You must select an OFFENSE or DEFENSE card first."

    assert step(state, SelectCardAction(card_id="a")).ok
    assert step(state, SelectCardAction(card_id="s1")).ok
    assert state.player.selected == ["a", "s1"]

    # new main replaces the old one and keeps the support
    assert step(state, SelectCardAction(card_id="b")).ok
    assert state.player.selected == ["b", "s1"]

    # b + s2 would cost 4 with 3 energy
    res = step(state, SelectCardAction(card_id="s2"))
    assert not res.ok
    assert res.error == "Not enough energy for this combination."
    assert state.player.selected == ["b", "s1"]

    # selecting a selected card toggles it off
    assert step(state, SelectCardAction(card_id="s1")).ok
    assert state.player.selected == ["b"]

    assert not step(state, SelectCardAction(card_id="missing")).ok


def test_play_requires_a_main_card() -> None:
    state = new_match(_filler("p", 8), _filler("o", 8), seed=4, policy=_Script(), shuffle=False)
    res = step(state, PlayCardAction())
    assert not res.ok
    assert res.error == "Select a card to play."
    assert state.player.locked_play is None


def test_cycle_once_per_turn() -> None:
    player_deck = _filler("c", 6)
    state = new_match(player_deck, _filler("o", 8), seed=5, config=MatchConfig(starting_hand_size=3), policy=_Script(), shuffle=False)
    assert [c.id for c in state.player.hand] == ["c0", "c1", "c2", "c3"]

    assert step(state, CycleCardAction(card_id="c1")).ok
    assert [c.id for c in state.player.hand] == ["c0", "c2", "c3", "c4"]
    assert [c.id for c in state.player.graveyard] == ["c1"]
    assert state.player.energy == 2
    assert state.player.cycled_this_turn

    res = step(state, CycleCardAction(card_id="c2"))
    assert not res.ok
    assert res.error == "You have already cycled this turn."

    # the flag resets with the next turn
    assert step(state, PassAction()).ok
    assert not state.player.cycled_this_turn


def test_cycle_needs_energy() -> None:
    cfg = MatchConfig(starting_energy=0, starting_hand_size=3)
    state = new_match(_filler("c", 6), _filler("o", 8), seed=5, config=cfg, policy=_Script(), shuffle=False)
    res = step(state, CycleCardAction(card_id="c0"))
    assert not res.ok
    assert res.error == "Not enough energy to cycle."


def test_forfeit_ends_match() -> None:
    state = new_match(_filler("p", 8), _filler("o", 8), seed=6, policy=_Script(), shuffle=False)
    token = state.turn_token
    res = step(state, ForfeitAction())
    assert res.ok
    assert state.phase == "MATCH_END"
    assert state.winner == "opponent"
    assert state.win_reason == "Forfeit"
    assert state.forfeited_by == "player"
    assert state.turn_token != token

    res = step(state, PassAction())
    assert not res.ok
    assert res.error == "Match already ended."


def test_timeout_auto_passes_current_turn() -> None:
    state = new_match(_filler("p", 8), _filler("o", 8), seed=7, config=MatchConfig(starting_hand_size=3), policy=_Script(), shuffle=False)
    res = step(state, TimeoutAction(token=state.turn_token))
    assert res.ok
    assert "Time expired - auto-passing." in [e.message for e in res.events]
    assert state.rounds[0].turns[0].player_play == PASS
    assert state.current_turn == 2


def test_late_timeout_is_a_no_op() -> None:
    state = new_match(_filler("p", 8), _filler("o", 8), seed=7, config=MatchConfig(starting_hand_size=3), policy=_Script(), shuffle=False)
    stale = state.turn_token
    _play(state, "p0")
    before = snapshot(state)

    res = step(state, TimeoutAction(token=stale))
    assert not res.ok
    assert res.error == "Stale timer."
    assert snapshot(state) == before


def test_opponent_can_be_driven_by_actions() -> None:
    state = new_match(_filler("p", 8), _filler("o", 8), seed=8, config=MatchConfig(starting_hand_size=3), shuffle=False)
    assert step(state, PassAction()).ok
    assert state.phase == "ACTION"
    assert state.current_turn == 1

    assert step(state, SelectCardAction(card_id="o0", side="opponent")).ok
    assert step(state, PlayCardAction(side="opponent")).ok
    assert state.current_turn == 2
    assert state.opponent.total_score == 1


def test_invalid_policy_choice_becomes_pass() -> None:
    state = new_match(
        _filler("p", 8),
        _filler("o", 8),
        seed=8,
        config=MatchConfig(starting_hand_size=3),
        policy=_Script(PlayChoice(main_id="not_in_hand")),
        shuffle=False,
    )
    assert step(state, PassAction()).ok
    assert state.rounds[0].turns[0].opponent_play == PASS


def test_full_match_power_tie_break_by_score() -> None:
    cfg = MatchConfig(rounds=1, turns_per_round=1, starting_hand_size=2)
    state = new_match(_filler("p", 5), _filler("o", 5), seed=1, config=cfg, policy=_Script(), shuffle=False)
    _play(state, "p0")
    assert state.phase == "MATCH_END"
    assert state.winner == "player"
    assert state.win_reason == "Total score: 1 vs 0"
    assert state.ended_at is not None


def test_full_match_coin_flip_is_seeded() -> None:
    cfg = MatchConfig(rounds=1, turns_per_round=1, starting_hand_size=2)
    state = new_match(_filler("p", 5), _filler("o", 5), seed=1, config=cfg, policy=_Script(), shuffle=False)
    assert step(state, PassAction()).ok
    assert state.rounds[0].winner == "tie"
    # first draw of SeededRandom(1) is 58598 / 233280 < 0.5
    assert state.winner == "player"
    assert state.win_reason == "Coin flip (all other factors equal)"


def test_classic_best_of_three_short_circuit() -> None:
    cfg = MatchConfig(rule_set="classic", turns_per_round=1, starting_hand_size=3)
    player_deck = [_card(f"p{i}", "OFFENSE", 5) for i in range(8)]
    state = new_match(player_deck, _filler("o", 8), seed=3, config=cfg, policy=_Script(), shuffle=False)
    for expected_round in (1, 2, 3):
        assert state.current_round == expected_round
        assert not state.waiting_for_draw
        _play(state, state.player.hand[0].id)

    assert state.phase == "MATCH_END"
    assert state.winner == "player"
    assert state.player.rounds_won == 3
    assert state.win_reason == "First to 3 rounds"
    assert state.rounds[3].winner is None


def test_classic_energy_regenerates_with_pass_bonus() -> None:
    cfg = MatchConfig(rule_set="classic", starting_hand_size=3)
    state = new_match(_filler("p", 8), _filler("o", 8), seed=3, config=cfg, policy=_Script(), shuffle=False)
    assert state.player.energy == 3
    assert step(state, PassAction()).ok
    assert state.player.energy == 5

    _play(state, state.player.hand[0].id)
    assert state.player.energy == 5
    # classic scores every turn immediately
    assert state.rounds[0].turns[1].resolved


@pytest.mark.parametrize("field", ["rounds", "turns_per_round", "max_hand_size"])
def test_new_match_rejects_empty_match_shapes(field: str) -> None:
    cfg = replace(MatchConfig(), **{field: 0})
    with pytest.raises(ValueError, match=field):
        new_match(_filler("p", 8), _filler("o", 8), seed=1, config=cfg, policy=_Script())


def test_new_match_rejects_empty_decks() -> None:
    with pytest.raises(ValueError):
        new_match([], _filler("o", 8), seed=1)
