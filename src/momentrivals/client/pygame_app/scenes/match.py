from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from momentrivals.engine.driver import MatchDriver

from ..app import GameContext
from ..scene_base import SceneTransition
from ..ui import Button, Meter, draw_text

CARD_W, CARD_H = 128, 92
HAND_X, HAND_Y = 40, 520
QUICK_PHASE_DELAY = 0.3


class MatchScene:
    def __init__(self, ctx: GameContext, driver: MatchDriver) -> None:
        self.ctx = ctx
        self.driver = driver
        self.view = driver.snapshot()
        self._next: SceneTransition | None = None
        self._message = ""
        self._cycle_mode = False
        self._phase_elapsed = 0.0
        self._reported_end = False

        self.btn_play = Button(rect=pygame.Rect(40, 650, 130, 48), text="Play", on_click=self._on_play)
        self.btn_pass = Button(rect=pygame.Rect(180, 650, 130, 48), text="Pass", on_click=self._on_pass)
        self.btn_cycle = Button(rect=pygame.Rect(320, 650, 130, 48), text="Cycle", on_click=self._on_cycle)
        self.btn_draw = Button(rect=pygame.Rect(460, 650, 130, 48), text="Draw", on_click=self._on_draw)
        self.btn_forfeit = Button(rect=pygame.Rect(860, 20, 140, 40), text="Forfeit", on_click=self._on_forfeit)
        self.btn_results = Button(rect=pygame.Rect(360, 420, 300, 56), text="Results", on_click=self._on_results)
        self._buttons = [self.btn_play, self.btn_pass, self.btn_cycle, self.btn_draw, self.btn_forfeit]

        self.energy_meter = Meter(rect=pygame.Rect(40, 490, 200, 14))

    # --- intents ----------------------------------------------------------------

    def _apply(self, view: dict[str, object]) -> None:
        self.view = view
        self._message = self.driver.last_error or ""

    def _on_play(self) -> None:
        self._apply(self.driver.play_card())

    def _on_pass(self) -> None:
        self._cycle_mode = False
        self._apply(self.driver.select_pass())

    def _on_cycle(self) -> None:
        self._cycle_mode = not self._cycle_mode
        self._message = "Choose a card to cycle." if self._cycle_mode else ""

    def _on_draw(self) -> None:
        self._apply(self.driver.advance_manual_draw())

    def _on_forfeit(self) -> None:
        self._apply(self.driver.forfeit())

    def _on_results(self) -> None:
        from .results import ResultsScene

        self._next = SceneTransition(ResultsScene(self.ctx, self.driver.state))

    def close(self) -> None:
        self.driver.close()

    # --- view helpers -----------------------------------------------------------

    def _me(self) -> dict[str, object]:
        players = self.view["players"]
        assert isinstance(players, dict)
        return players["player"]

    def _them(self) -> dict[str, object]:
        players = self.view["players"]
        assert isinstance(players, dict)
        return players["opponent"]

    def _hand(self) -> list[dict[str, object]]:
        hand = self._me().get("hand", [])
        assert isinstance(hand, list)
        return hand

    def _card_rect(self, i: int) -> pygame.Rect:
        return pygame.Rect(HAND_X + i * (CARD_W + 8), HAND_Y, CARD_W, CARD_H)

    def _hit_test_hand(self, pos: tuple[int, int]) -> str | None:
        for i, card in enumerate(self._hand()):
            if self._card_rect(i).collidepoint(pos):
                return str(card["id"])
        return None

    # --- scene protocol ---------------------------------------------------------

    def handle_event(self, event: pygame.event.Event) -> None:
        if self.driver.finished:
            self.btn_results.handle_event(event)
            return
        for b in self._buttons:
            if b.handle_event(event):
                return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            card_id = self._hit_test_hand(event.pos)
            if card_id is None:
                return
            if self._cycle_mode:
                self._cycle_mode = False
                self._apply(self.driver.cycle_card(card_id))
                return
            selected = self._me().get("selected", [])
            if isinstance(selected, list) and card_id in selected:
                self._apply(self.driver.deselect_card(card_id))
            else:
                self._apply(self.driver.select_card(card_id))
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self._cycle_mode = False

    def update(self, dt: float) -> SceneTransition | None:
        if self._next is not None:
            return self._next
        self.view = self.driver.tick(dt)
        if self.driver.finished and not self._reported_end:
            self._reported_end = True
            self.ctx.telemetry.match_ended(self.driver.state)
        phase = self.view["phase"]
        if phase in ("ACTION", "MATCH_END") or self.view["waiting_for_draw"]:
            self._phase_elapsed = 0.0
            return None

        cfg = self.ctx.config
        delay = QUICK_PHASE_DELAY
        if phase in ("REVEAL", "SCORING") and cfg is not None:
            delay = cfg.reveal_delay
        elif phase == "ROUND_END" and cfg is not None:
            delay = cfg.auto_advance_delay
        self._phase_elapsed += dt
        if self._phase_elapsed >= delay:
            self._phase_elapsed = 0.0
            self.view = self.driver.proceed()
        return None

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((8, 10, 14))
        fonts = self.ctx.assets.fonts
        me, them = self._me(), self._them()
        in_action = self.view["phase"] == "ACTION" and not me.get("locked")

        draw_text(
            screen,
            fonts.big,
            f"Round {self.view['current_round']}  Turn {self.view['current_turn']}",
            (40, 20),
        )
        draw_text(screen, fonts.small, f"Phase: {self.view['phase']}", (40, 60))
        if in_action:
            draw_text(screen, fonts.ui, f"Time left: {self.driver.seconds_left}s", (400, 28), color=(240, 200, 120))

        draw_text(
            screen,
            fonts.ui,
            f"Opponent  score {them['total_score']} (round {them['round_score']})  "
            f"rounds won {them['rounds_won']}  energy {them['energy']}/{them['max_energy']}  "
            f"hand {them['hand_count']}",
            (40, 100),
        )
        draw_text(
            screen,
            fonts.ui,
            f"You  score {me['total_score']} (round {me['round_score']})  "
            f"rounds won {me['rounds_won']}  deck {me['deck_count']}",
            (40, 460),
        )
        energy, max_energy = int(me["energy"]), int(me["max_energy"])  # type: ignore[arg-type]
        self.energy_meter.draw(screen, energy, max(max_energy, energy))
        draw_text(screen, fonts.small, f"Energy {energy}/{max_energy}", (250, 488))

        self._draw_log(screen)
        self._draw_hand(screen)

        self.btn_play.enabled = in_action
        self.btn_pass.enabled = in_action
        self.btn_cycle.enabled = in_action and not me.get("cycled_this_turn")
        self.btn_cycle.selected = self._cycle_mode
        self.btn_draw.enabled = bool(self.view["waiting_for_draw"])
        for b in self._buttons:
            b.draw(screen, fonts.ui)

        if self._message:
            draw_text(screen, fonts.ui, self._message, (620, 662), color=(240, 200, 120))
        if self.driver.finished:
            self._draw_game_over(screen)

    def _draw_log(self, screen: pygame.Surface) -> None:
        events = self.view["events"]
        assert isinstance(events, list)
        y = 140
        for line in events[-14:]:
            draw_text(screen, self.ctx.assets.fonts.small, str(line)[:130], (40, y), color=(200, 200, 210))
            y += 20

    def _draw_hand(self, screen: pygame.Surface) -> None:
        selected = self._me().get("selected", [])
        fonts = self.ctx.assets.fonts
        for i, card in enumerate(self._hand()):
            rect = self._card_rect(i)
            pygame.draw.rect(screen, self.ctx.assets.card_color(str(card["card_type"])), rect, border_radius=8)
            border = (240, 240, 120) if isinstance(selected, list) and card["id"] in selected else (0, 0, 0)
            pygame.draw.rect(screen, border, rect, width=3, border_radius=8)
            draw_text(screen, fonts.small, str(card["name"])[:18], (rect.x + 6, rect.y + 8))
            draw_text(screen, fonts.small, str(card["card_type"]), (rect.x + 6, rect.y + 30))
            draw_text(screen, fonts.small, f"Power {card['power']}", (rect.x + 6, rect.y + 50))
            draw_text(screen, fonts.small, f"Cost {card['cost']}", (rect.x + 6, rect.y + 70))

    def _draw_game_over(self, screen: pygame.Surface) -> None:
        overlay = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 170))
        screen.blit(overlay, (0, 0))
        title = "YOU WIN!" if self.view["winner"] == "player" else "YOU LOSE"
        draw_text(screen, self.ctx.assets.fonts.big, title, (400, 320))
        draw_text(screen, self.ctx.assets.fonts.ui, str(self.view["win_reason"]), (400, 370))
        self.btn_results.draw(screen, self.ctx.assets.fonts.ui)
