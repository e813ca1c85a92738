from __future__ import annotations

from momentrivals.engine.ai import AIPolicy, AISpec
from momentrivals.engine.cards import opponent_deck
from momentrivals.engine.driver import MatchDriver
from momentrivals.engine.match import MatchConfig, new_match
from momentrivals.engine.timer import TurnTimer
from momentrivals.engine.types import PASS


def _driver(**cfg: object) -> MatchDriver:
    config = MatchConfig(**cfg)  # type: ignore[arg-type]
    state = new_match(opponent_deck(), opponent_deck(), seed=21, config=config, policy=AIPolicy(AISpec("baseline")))
    return MatchDriver(state)


def test_timer_fires_once() -> None:
    t = TurnTimer(10)
    assert t.advance(5) is None
    t.start(4)
    assert t.running
    assert t.advance(4) is None
    assert t.seconds_left == 6
    assert t.advance(7) == 4
    assert not t.running
    assert t.advance(1) is None


def test_timer_cancel() -> None:
    t = TurnTimer(10)
    t.start(1)
    t.cancel()
    assert t.advance(20) is None


def test_driver_starts_timer_in_action_phase() -> None:
    d = _driver()
    assert d.state.phase == "ACTION"
    assert d.timer.running
    assert d.seconds_left == 60


def test_tick_expiry_auto_passes() -> None:
    d = _driver(starting_hand_size=3)
    snap = d.tick(30.0)
    assert snap["current_turn"] == 1
    d.tick(30.5)
    assert d.state.rounds[0].turns[0].player_play == PASS
    assert d.state.current_turn == 2
    # a fresh countdown for the next action phase
    assert d.seconds_left == 60


def test_rejected_intents_do_not_raise() -> None:
    d = _driver()
    before = d.snapshot()
    after = d.select_card("not-a-card")
    assert d.last_error == "Card not in hand."
    assert after == before

    d.deselect_card(d.state.player.hand[0].id)
    assert d.last_error == "Card is not selected."

    d.advance_manual_draw()
    assert d.last_error == "No draw pending."


def test_snapshot_hides_opponent_hand() -> None:
    d = _driver()
    snap = d.snapshot()
    players = snap["players"]
    assert isinstance(players, dict)
    assert "hand" in players["player"]
    assert "hand" not in players["opponent"]
    assert players["opponent"]["hand_count"] == len(d.state.opponent.hand)


def test_play_through_driver() -> None:
    d = _driver()
    card = next(c for c in d.state.player.hand if c.is_main and c.cost <= d.state.player.energy)
    d.select_card(card.id)
    assert d.last_error is None
    d.play_card()
    assert d.last_error is None
    assert d.state.rounds[0].turns[0].resolved
    assert d.state.current_turn == 2


def test_forfeit_cancels_timer() -> None:
    d = _driver()
    d.forfeit()
    assert d.finished
    assert d.state.win_reason == "Forfeit"
    assert not d.timer.running
    assert d.seconds_left == 0


def test_closed_driver_ignores_intents() -> None:
    d = _driver()
    d.close()
    d.select_pass()
    assert d.last_error == "Driver is closed."
    assert d.state.player.locked_play is None


def test_start_builds_seeded_match() -> None:
    a = MatchDriver.start(opponent_deck(), opponent_deck(), seed=4, ai=AISpec("easy"))
    b = MatchDriver.start(opponent_deck(), opponent_deck(), seed=4, ai=AISpec("easy"))
    assert a.snapshot() == b.snapshot()
    assert a.state.rules.name == "power_momentum"
