from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Literal, Protocol

from .actions import (
    Action,
    CycleCardAction,
    DeselectCardAction,
    ForfeitAction,
    ManualDrawAction,
    PassAction,
    PlayCardAction,
    ProceedAction,
    SelectCardAction,
    TimeoutAction,
)
from .cards import build_deck
from .energy import spend
from .rand import SeededRandom
from .rules import RuleSet, rules_for
from .types import PASS, Card, CardPlay, Play, Side, Winner, other_side

logger = logging.getLogger(__name__)

Phase = Literal[
    "DRAW",
    "ENERGY_REFRESH",
    "ACTION",
    "LOCKED",
    "REVEAL",
    "SCORING",
    "TURN_END",
    "ROUND_END",
    "MATCH_END",
]

SIDES: tuple[Side, Side] = ("player", "opponent")


@dataclass(frozen=True)
class MatchConfig:
    rounds: int = 4
    turns_per_round: int = 3
    starting_energy: int = 3
    energy_per_turn: int = 1
    max_deck_size: int = 25
    deck_size: int = 7  # size the deck builder requires before a match
    starting_hand_size: int = 7
    max_hand_size: int = 7
    cycle_cost: int = 1
    pass_bonus: int = 1  # classic rules only
    turn_seconds: float = 60.0
    rule_set: str = "power_momentum"
    auto_advance: bool = True


# Upper-case keys accepted in config files, mapped to MatchConfig fields
CONFIG_KEYS: dict[str, str] = {
    "ROUNDS": "rounds",
    "TURNS_PER_ROUND": "turns_per_round",
    "STARTING_ENERGY": "starting_energy",
    "START_ENERGY": "starting_energy",
    "ENERGY_PER_TURN": "energy_per_turn",
    "MAX_DECK_SIZE": "max_deck_size",
    "DECK_SIZE": "deck_size",
    "STARTING_HAND_SIZE": "starting_hand_size",
    "MAX_HAND_SIZE": "max_hand_size",
    "CYCLE_COST": "cycle_cost",
    "PASS_BONUS": "pass_bonus",
    "TURN_SECONDS": "turn_seconds",
    "RULE_SET": "rule_set",
    "AUTO_ADVANCE": "auto_advance",
}


def config_from_mapping(data: Mapping[str, object], base: MatchConfig | None = None) -> MatchConfig:
    """Overlay recognised keys from `data` onto `base`; unknown keys are ignored."""
    updates: dict[str, object] = {}
    for key, value in data.items():
        name = CONFIG_KEYS.get(key)
        if name is not None:
            updates[name] = value
    return replace(base or MatchConfig(), **updates)


def config_to_mapping(config: MatchConfig) -> dict[str, object]:
    out: dict[str, object] = {}
    for key, name in CONFIG_KEYS.items():
        if key == "START_ENERGY":
            continue
        out[key] = getattr(config, name)
    return out


@dataclass
class PlayerState:
    side: Side
    deck: list[Card]
    hand: list[Card] = field(default_factory=list)  # oldest first
    graveyard: list[Card] = field(default_factory=list)
    energy: int = 0
    max_energy: int = 0
    selected: list[str] = field(default_factory=list)
    locked_play: Play | None = None
    total_score: int = 0
    round_score: int = 0
    rounds_won: int = 0
    cycled_this_turn: bool = False
    passed_last_turn: bool = False

    def find_in_hand(self, card_id: str) -> Card | None:
        for c in self.hand:
            if c.id == card_id:
                return c
        return None

    def selected_cards(self) -> list[Card]:
        out: list[Card] = []
        for cid in self.selected:
            c = self.find_in_hand(cid)
            if c is not None:
                out.append(c)
        return out


@dataclass
class Turn:
    turn_number: int
    player_play: Play | None = None
    opponent_play: Play | None = None
    player_points: int = 0
    opponent_points: int = 0
    revealed: bool = False
    resolved: bool = False


@dataclass
class Round:
    round_number: int
    turns: list[Turn]
    winner: Winner | None = None
    final_score: dict[str, int] = field(default_factory=lambda: {"player": 0, "opponent": 0})


@dataclass(frozen=True)
class MatchEvent:
    round: int
    turn: int
    message: str


@dataclass(frozen=True)
class PlayChoice:
    """What a policy wants to play; card ids refer to the policy's own hand."""

    main_id: str | None = None
    support_id: str | None = None

    @property
    def is_pass(self) -> bool:
        return self.main_id is None


class OpponentPolicy(Protocol):
    def choose(self, state: "MatchState") -> PlayChoice: ...


@dataclass
class StepResult:
    ok: bool
    events: list[MatchEvent]
    error: str | None = None


@dataclass
class MatchState:
    match_id: str
    seed: int
    config: MatchConfig
    rules: RuleSet
    rng: SeededRandom
    player: PlayerState
    opponent: PlayerState
    rounds: list[Round]
    policy: OpponentPolicy | None = None
    phase: Phase = "DRAW"
    current_round: int = 1
    current_turn: int = 1
    waiting_for_draw: bool = False
    turn_token: int = 0
    winner: Side | None = None
    win_reason: str | None = None
    forfeited_by: Side | None = None
    started_at: float = 0.0
    ended_at: float | None = None
    event_log: list[MatchEvent] = field(default_factory=list)
    action_log: list[Action] = field(default_factory=list)

    def side(self, side: Side) -> PlayerState:
        return self.player if side == "player" else self.opponent

    def round_state(self) -> Round:
        return self.rounds[self.current_round - 1]

    def turn_state(self) -> Turn:
        return self.round_state().turns[self.current_turn - 1]


def _label(side: Side) -> str:
    return "You" if side == "player" else "Opponent"


def _log(state: MatchState, message: str) -> None:
    state.event_log.append(MatchEvent(round=state.current_round, turn=state.current_turn, message=message))


def describe_play(play: Play | None) -> str:
    if play is None:
        return "Nothing"
    if not isinstance(play, CardPlay):
        return "PASS"
    main = f"{play.main.name} ({play.main.card_type} {play.main.power})"
    if play.support is not None:
        return f"{main} + {play.support.name} (SUPPORT {play.support.power})"
    return main


# --- card movement ----------------------------------------------------------


def _draw(state: MatchState, ps: PlayerState, count: int) -> int:
    drawn = 0
    for _ in range(count):
        if not ps.deck:
            break
        ps.hand.append(ps.deck.pop(0))
        drawn += 1
        if len(ps.hand) > state.config.max_hand_size:
            excess = ps.hand.pop(0)
            ps.graveyard.append(excess)
            _log(state, f"Hand limit exceeded - {_label(ps.side)} discarded {excess.name}.")
    return drawn


def _discard_selected(ps: PlayerState, card_id: str) -> None:
    ps.selected = [cid for cid in ps.selected if cid != card_id]


# --- phase steps --------------------------------------------------------------


def _begin_turn(state: MatchState) -> None:
    for ps in (state.player, state.opponent):
        ps.selected = []
        ps.locked_play = None
        ps.cycled_this_turn = False
    state.phase = "DRAW"
    _log(state, f"--- Round {state.current_round}, Turn {state.current_turn} ---")
    state.waiting_for_draw = (
        state.rules.manual_draw_gate and state.current_round > 1 and state.current_turn == 1
    )
    if state.waiting_for_draw:
        _log(state, "Draw cards to start the new round.")


def _draw_step(state: MatchState) -> None:
    for ps in (state.player, state.opponent):
        if _draw(state, ps, 1) == 0:
            _log(state, f"{_label(ps.side)}: deck is empty - no card drawn.")
        else:
            _log(state, f"{_label(ps.side)} drew 1 card.")
    state.phase = "ENERGY_REFRESH"


def _energy_step(state: MatchState) -> None:
    first = state.current_turn == 1
    for ps in (state.player, state.opponent):
        before = ps.energy
        state.rules.refresh_energy(ps, state.config, first_turn_of_round=first)
        if ps.energy != before:
            _log(state, f"{_label(ps.side)}: energy {before} -> {ps.energy}.")
    state.phase = "ACTION"
    state.turn_token += 1
    _log(state, f"Action phase - play a card or pass ({int(state.config.turn_seconds)} seconds).")


def _is_deferred(state: MatchState) -> bool:
    # turn 2 is held back and revealed with the turn after it
    return (
        state.rules.delayed_reveal
        and state.current_turn == 2
        and state.current_turn < state.config.turns_per_round
    )


def _record_plays(state: MatchState) -> None:
    turn = state.turn_state()
    turn.player_play = state.player.locked_play or PASS
    turn.opponent_play = state.opponent.locked_play or PASS
    state.phase = "REVEAL"


def _reveal_turn(state: MatchState, turn: Turn) -> None:
    turn.revealed = True
    _log(state, f"Turn {turn.turn_number} reveal - You: {describe_play(turn.player_play)}")
    _log(state, f"Turn {turn.turn_number} reveal - Opponent: {describe_play(turn.opponent_play)}")


def _score_turn(state: MatchState, turn: Turn) -> None:
    if turn.resolved:
        return
    player_play = turn.player_play or PASS
    opponent_play = turn.opponent_play or PASS
    result = state.rules.score_pair(player_play, opponent_play)
    turn.player_points = result.player_points
    turn.opponent_points = result.opponent_points
    turn.resolved = True

    state.player.round_score += result.player_points
    state.opponent.round_score += result.opponent_points
    state.player.total_score += result.player_points
    state.opponent.total_score += result.opponent_points

    _log(state, result.description)
    _log(
        state,
        f"Turn {turn.turn_number} points: You +{result.player_points} | Opponent +{result.opponent_points}",
    )
    _log(state, f"Round score: You {state.player.round_score} - {state.opponent.round_score} Opponent")

    for ps, play in ((state.player, player_play), (state.opponent, opponent_play)):
        if isinstance(play, CardPlay):
            ps.graveyard.extend(play.cards)


def _reveal_step(state: MatchState) -> None:
    if _is_deferred(state):
        _log(state, f"Turn {state.current_turn}: plays locked face down until next turn.")
        state.phase = "TURN_END"
        return
    rnd = state.round_state()
    for earlier in rnd.turns[: state.current_turn - 1]:
        if earlier.resolved or earlier.player_play is None:
            continue
        _log(state, f"Revealing Turn {earlier.turn_number} first.")
        _reveal_turn(state, earlier)
        _score_turn(state, earlier)
    _reveal_turn(state, state.turn_state())
    state.phase = "SCORING"


def _scoring_step(state: MatchState) -> None:
    _score_turn(state, state.turn_state())
    state.phase = "TURN_END"


def _turn_end_step(state: MatchState) -> None:
    if state.current_turn >= state.config.turns_per_round:
        state.phase = "ROUND_END"
        return
    state.current_turn += 1
    _begin_turn(state)


def _end_match(state: MatchState, winner: Side, reason: str) -> None:
    state.winner = winner
    state.win_reason = reason
    state.phase = "MATCH_END"
    state.waiting_for_draw = False
    state.ended_at = time.time()
    _log(state, f"Match complete - {'You win' if winner == 'player' else 'Opponent wins'}! ({reason})")


def _round_end_step(state: MatchState) -> None:
    rnd = state.round_state()
    p, o = state.player, state.opponent
    rnd.final_score = {"player": p.round_score, "opponent": o.round_score}
    if p.round_score > o.round_score:
        rnd.winner = "player"
        p.rounds_won += 1
        _log(state, f"Round {rnd.round_number} end - you win ({p.round_score} - {o.round_score}).")
    elif o.round_score > p.round_score:
        rnd.winner = "opponent"
        o.rounds_won += 1
        _log(state, f"Round {rnd.round_number} end - opponent wins ({o.round_score} - {p.round_score}).")
    else:
        rnd.winner = "tie"
        _log(state, f"Round {rnd.round_number} end - tie ({p.round_score} - {o.round_score}).")
    p.round_score = 0
    o.round_score = 0

    early = state.rules.early_winner(p, o)
    if early is not None:
        _end_match(state, early, f"First to {state.rules.rounds_to_win} rounds")
        return
    if state.current_round >= state.config.rounds:
        decision = state.rules.decide_winner(p, o, state.rng)
        _end_match(state, decision.winner, decision.reason)
        return

    for ps in (p, o):
        state.rules.on_round_end(ps, state.config)
    state.current_round += 1
    state.current_turn = 1
    _begin_turn(state)


_PHASE_STEPS = {
    "DRAW": _draw_step,
    "ENERGY_REFRESH": _energy_step,
    "LOCKED": _record_plays,
    "REVEAL": _reveal_step,
    "SCORING": _scoring_step,
    "TURN_END": _turn_end_step,
    "ROUND_END": _round_end_step,
}


def _can_advance(state: MatchState) -> bool:
    if state.phase in ("ACTION", "MATCH_END"):
        return False
    if state.phase == "DRAW" and state.waiting_for_draw:
        return False
    return True


def _advance_once(state: MatchState) -> None:
    _PHASE_STEPS[state.phase](state)


def _run(state: MatchState) -> None:
    while _can_advance(state):
        _advance_once(state)


def _settle(state: MatchState) -> None:
    if state.config.auto_advance:
        _run(state)


# --- locking --------------------------------------------------------------------


def _leave_action(state: MatchState) -> None:
    # invalidates any timer started for this action phase
    state.turn_token += 1


def _lock_pass(state: MatchState, ps: PlayerState) -> None:
    if len(ps.hand) >= state.config.max_hand_size and ps.hand:
        discarded = ps.hand.pop(0)
        ps.graveyard.append(discarded)
        _log(state, f"Hand limit: {_label(ps.side)} discarded {discarded.name} (passed with a full hand).")
    ps.selected = []
    ps.locked_play = PASS
    ps.passed_last_turn = True
    _log(state, f"{_label(ps.side)} passed this turn.")


def _lock_cards(state: MatchState, ps: PlayerState, main: Card, support: Card | None) -> None:
    play = CardPlay(main=main, support=support)
    cost = state.rules.play_cost(play.cards)
    for c in play.cards:
        ps.hand.remove(c)
    ps.energy = spend(ps.energy, cost)
    ps.selected = []
    ps.locked_play = play
    ps.passed_last_turn = False
    if ps.side == "player":
        _log(state, f"You played: {describe_play(play)} (Cost: {cost})")
    else:
        kind = "a card combo" if support is not None else "a card"
        _log(state, f"Opponent played {kind} (Cost: {cost})")


def _validate_combo(state: MatchState, ps: PlayerState, cards: Sequence[Card]) -> str | None:
    if not cards:
        return "Select a card to play."
    mains = [c for c in cards if c.is_main]
    supports = [c for c in cards if c.card_type == "SUPPORT"]
    if len(mains) != 1:
        return "You must play exactly one OFFENSE or DEFENSE card."
    if len(supports) > 1:
        return "You can only play one SUPPORT card."
    if supports and not state.rules.allows_support(mains[0]):
        return f"A {mains[0].card_type} card cannot take a SUPPORT card."
    if state.rules.play_cost(cards) > ps.energy:
        return "Not enough energy to play these cards."
    return None


def _apply_choice(state: MatchState, ps: PlayerState, choice: PlayChoice) -> None:
    if choice.is_pass:
        _lock_pass(state, ps)
        return
    main = ps.find_in_hand(choice.main_id or "")
    support = ps.find_in_hand(choice.support_id) if choice.support_id else None
    cards = [c for c in (main, support) if c is not None]
    err = _validate_combo(state, ps, cards)
    if err is not None or main is None or (choice.support_id and support is None):
        logger.debug("policy choice %s rejected (%s); passing instead", choice, err)
        _lock_pass(state, ps)
        return
    _lock_cards(state, ps, main, support)


def _after_lock(state: MatchState, side: Side) -> None:
    if side == "player" and state.policy is not None and state.opponent.locked_play is None:
        _apply_choice(state, state.opponent, state.policy.choose(state))
    if state.player.locked_play is None or state.opponent.locked_play is None:
        return
    _leave_action(state)
    state.phase = "LOCKED"
    _log(state, "Both players locked in.")
    _settle(state)


# --- action handlers ------------------------------------------------------------


def _check_action_phase(state: MatchState, ps: PlayerState) -> str | None:
    if state.phase != "ACTION":
        return "Not in the action phase."
    if ps.locked_play is not None:
        return "Play already locked in."
    return None


def _select_card(state: MatchState, action: SelectCardAction) -> str | None:
    ps = state.side(action.side)
    err = _check_action_phase(state, ps)
    if err:
        return err
    card = ps.find_in_hand(action.card_id)
    if card is None:
        return "Card not in hand."
    if action.card_id in ps.selected:
        _discard_selected(ps, action.card_id)
        return None

    current = ps.selected_cards()
    if card.is_main:
        keep = [c for c in current if c.card_type == "SUPPORT" and state.rules.allows_support(card)]
        new = [card, *keep]
    else:
        mains = [c for c in current if c.is_main]
        if not mains:
            return "You must select an OFFENSE or DEFENSE card first."
        if not state.rules.allows_support(mains[0]):
            return f"A {mains[0].card_type} card cannot take a SUPPORT card."
        new = [c for c in current if c.card_type != "SUPPORT"] + [card]

    if state.rules.play_cost(new) > ps.energy:
        return "Not enough energy for this combination."
    ps.selected = [c.id for c in new]
    return None


def _deselect_card(state: MatchState, action: DeselectCardAction) -> str | None:
    ps = state.side(action.side)
    err = _check_action_phase(state, ps)
    if err:
        return err
    if action.card_id not in ps.selected:
        return "Card is not selected."
    _discard_selected(ps, action.card_id)
    return None


def _play_card(state: MatchState, action: PlayCardAction) -> str | None:
    ps = state.side(action.side)
    err = _check_action_phase(state, ps)
    if err:
        return err
    cards = ps.selected_cards()
    err = _validate_combo(state, ps, cards)
    if err:
        return err
    main = next(c for c in cards if c.is_main)
    support = next((c for c in cards if c.card_type == "SUPPORT"), None)
    _lock_cards(state, ps, main, support)
    _after_lock(state, action.side)
    return None


def _pass(state: MatchState, action: PassAction) -> str | None:
    ps = state.side(action.side)
    err = _check_action_phase(state, ps)
    if err:
        return err
    _lock_pass(state, ps)
    _after_lock(state, action.side)
    return None


def _cycle_card(state: MatchState, action: CycleCardAction) -> str | None:
    ps = state.side(action.side)
    err = _check_action_phase(state, ps)
    if err:
        return err
    if ps.cycled_this_turn:
        return "You have already cycled this turn."
    if ps.energy < state.config.cycle_cost:
        return "Not enough energy to cycle."
    card = ps.find_in_hand(action.card_id)
    if card is None:
        return "Card not in hand."

    ps.hand.remove(card)
    ps.graveyard.append(card)
    _discard_selected(ps, card.id)
    if _draw(state, ps, 1) == 0:
        _log(state, f"{_label(ps.side)}: deck is empty - no replacement drawn.")
    ps.energy = spend(ps.energy, state.config.cycle_cost)
    ps.cycled_this_turn = True
    if state.rules.play_cost(ps.selected_cards()) > ps.energy:
        ps.selected = []
    _log(state, f"{_label(ps.side)} cycled {card.name} (Cost: {state.config.cycle_cost} energy).")
    return None


def _manual_draw(state: MatchState, action: ManualDrawAction) -> str | None:
    if state.phase != "DRAW" or not state.waiting_for_draw:
        return "No draw pending."
    state.waiting_for_draw = False
    _advance_once(state)
    _settle(state)
    return None


def _proceed(state: MatchState, action: ProceedAction) -> str | None:
    if not _can_advance(state):
        return "Nothing to proceed."
    _advance_once(state)
    return None


def _timeout(state: MatchState, action: TimeoutAction) -> str | None:
    if state.phase != "ACTION" or action.token != state.turn_token:
        return "Stale timer."
    unlocked = [s for s in SIDES if state.side(s).locked_play is None]
    if not unlocked:
        return "Stale timer."
    _log(state, "Time expired - auto-passing.")
    for s in unlocked:
        if s == "opponent" and state.policy is not None:
            continue
        _lock_pass(state, state.side(s))
    _after_lock(state, "player")
    return None


def _forfeit(state: MatchState, action: ForfeitAction) -> str | None:
    if state.phase == "ACTION":
        _leave_action(state)
    state.forfeited_by = action.side
    _log(state, f"{_label(action.side)} forfeited the match.")
    _end_match(state, other_side(action.side), "Forfeit")
    return None


_HANDLERS = {
    SelectCardAction: _select_card,
    DeselectCardAction: _deselect_card,
    PlayCardAction: _play_card,
    PassAction: _pass,
    CycleCardAction: _cycle_card,
    ManualDrawAction: _manual_draw,
    ProceedAction: _proceed,
    TimeoutAction: _timeout,
    ForfeitAction: _forfeit,
}


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single driver intent to the match.

    Mutates `state` in place and is deterministic for a given (seed, decks,
    policy seed, action sequence). Intents that are not legal in the current
    phase are rejected without touching the state.
    """
    if state.phase == "MATCH_END":
        return StepResult(ok=False, events=[], error="Match already ended.")

    handler = _HANDLERS.get(type(action))
    if handler is None:
        return StepResult(ok=False, events=[], error="Unknown action.")
    before = len(state.event_log)
    error = handler(state, action)  # type: ignore[operator]
    if error is not None:
        logger.debug("rejected %s in phase %s: %s", type(action).__name__, state.phase, error)
        return StepResult(ok=False, events=[], error=error)
    state.action_log.append(action)
    return StepResult(ok=True, events=state.event_log[before:])


def new_match(
    player_deck: Sequence[Card],
    opponent_deck: Sequence[Card],
    seed: int,
    config: MatchConfig | None = None,
    policy: OpponentPolicy | None = None,
    *,
    match_id: str | None = None,
    shuffle: bool = True,
) -> MatchState:
    cfg = config or MatchConfig()
    if not player_deck or not opponent_deck:
        raise ValueError("Both decks must contain at least one card.")
    for name in ("rounds", "turns_per_round", "max_hand_size"):
        if getattr(cfg, name) < 1:
            raise ValueError(f"MatchConfig.{name} must be at least 1.")
    rules = rules_for(cfg.rule_set)

    rng = SeededRandom(seed)
    if shuffle:
        d0 = build_deck(player_deck, rng, cfg.max_deck_size)
        d1 = build_deck(opponent_deck, rng, cfg.max_deck_size)
    else:
        d0 = list(player_deck)[: cfg.max_deck_size]
        d1 = list(opponent_deck)[: cfg.max_deck_size]

    started_at = time.time()
    rounds = [
        Round(round_number=r + 1, turns=[Turn(turn_number=t + 1) for t in range(cfg.turns_per_round)])
        for r in range(cfg.rounds)
    ]
    state = MatchState(
        match_id=match_id or f"match_{int(started_at * 1000)}_{seed}",
        seed=seed,
        config=cfg,
        rules=rules,
        rng=rng,
        player=PlayerState(side="player", deck=d0, energy=cfg.starting_energy, max_energy=cfg.starting_energy),
        opponent=PlayerState(
            side="opponent", deck=d1, energy=cfg.starting_energy, max_energy=cfg.starting_energy
        ),
        rounds=rounds,
        policy=policy,
        started_at=started_at,
    )
    _log(state, f"Match started ({rules.name} rules).")
    for ps in (state.player, state.opponent):
        _draw(state, ps, cfg.starting_hand_size)
    _begin_turn(state)
    _settle(state)
    return state


def replay_actions(
    player_deck: Sequence[Card],
    opponent_deck: Sequence[Card],
    seed: int,
    actions: Iterable[Action],
    config: MatchConfig | None = None,
    policy: OpponentPolicy | None = None,
) -> MatchState:
    """Rebuild a match by feeding the same intents to a fresh state."""
    state = new_match(player_deck, opponent_deck, seed=seed, config=config, policy=policy)
    for a in actions:
        step(state, a)
        if state.winner is not None:
            break
    return state
