"""
Arcade front end for Torch Chase
--------------------------------
Feeds mouse motion / enter / leave and the debug keys into a `GameSession`
and draws the session's `RetainedScene`. Session coordinates have y growing
downward; Arcade's grow upward, so y is flipped at this boundary.

Keys:
    Enter   start / restart
    Escape  exit to the menu
    C       toggle center mode (sprite directly under the pointer)
    U       toggle the torch upgrade (debug)

Run:
    python -m game.torchchase.window
"""

from __future__ import annotations

import argparse
import logging
import random
from typing import Optional, Tuple

import arcade

from .config import ChaseConfig
from .scene import AudioSink, RetainedScene
from .session import GameSession, Phase, TOGGLE_CENTER_MODE, TOGGLE_TORCH_DEBUG

Color = Tuple[int, int, int, int]

CHIME_RESOURCE = ":resources:sounds/upgrade1.wav"


def hex_to_rgba(color: str, alpha: int = 255) -> Color:
    """'#FFD700' or '#888' -> (r, g, b, a)"""
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), alpha


class ArcadeAudio(AudioSink):
    """Plays the upgrade chime through arcade's sound API"""

    def __init__(self, resource: str = CHIME_RESOURCE):
        self.resource = resource
        self._sound: Optional[arcade.Sound] = None

    def play_upgrade_chime(self, scale: float) -> None:
        if self._sound is None:
            self._sound = arcade.load_sound(self.resource)
        arcade.play_sound(self._sound, volume=0.6)


class ChaseWindow(arcade.Window):
    """Arcade window driving (interactive) or just viewing a session"""

    def __init__(
        self,
        session: Optional[GameSession] = None,
        scene: Optional[RetainedScene] = None,
        width: int = 800,
        height: int = 600,
        interactive: bool = True,
        seed: Optional[int] = None,
    ):
        super().__init__(width, height, "Torch Chase")
        self.interactive = interactive
        self.scene = scene or RetainedScene()
        self.session = session or GameSession(
            scene=self.scene,
            audio=ArcadeAudio(),
            config=ChaseConfig(width=float(width), height=float(height)),
            rng=random.Random(seed),
        )

        # Colors
        self.BG = (18, 18, 22)
        self.COIN_C = (255, 215, 0)
        self.BOMB_C = (40, 40, 40)
        self.FUSE_C = (220, 80, 80)
        self.KEY_C = (255, 255, 0)
        self.CURSOR_C = (255, 230, 60)
        self.HUD_C = (220, 220, 220)
        self.background_color = self.BG

    def attach(self, session: GameSession, scene: RetainedScene) -> None:
        self.session = session
        self.scene = scene

    def _flip(self, x: float, y: float) -> Tuple[float, float]:
        return x, self.height - y

    # ----------------------------
    # Input
    # ----------------------------

    def on_update(self, delta_time: float):
        if not self.interactive:
            return
        elapsed_ms = delta_time * 1000.0
        self.session.advance(elapsed_ms)
        self.scene.advance(elapsed_ms)

    def on_mouse_motion(self, x: int, y: int, dx: int, dy: int):
        if self.interactive:
            self.session.pointer_moved(*self._flip(x, y))
            # motion implies the pointer is over the window even if no enter event arrived
            if not self.session.state.pointer_inside:
                self.session.pointer_entered()

    def on_mouse_enter(self, x: int, y: int):
        if self.interactive:
            self.session.pointer_moved(*self._flip(x, y))
            self.session.pointer_entered()

    def on_mouse_leave(self, x: int, y: int):
        if self.interactive:
            self.session.pointer_left()

    def on_key_press(self, symbol: int, modifiers: int):
        if not self.interactive:
            return
        if symbol == arcade.key.C:
            self.session.key_pressed(TOGGLE_CENTER_MODE)
        elif symbol == arcade.key.U:
            self.session.key_pressed(TOGGLE_TORCH_DEBUG)
        elif symbol in (arcade.key.ENTER, arcade.key.RETURN):
            if self.session.phase is not Phase.PLAYING:
                self.session.restart()
        elif symbol == arcade.key.ESCAPE:
            if self.session.phase is Phase.IDLE:
                self.close()
            else:
                self.session.exit()

    # ----------------------------
    # Drawing
    # ----------------------------

    def on_draw(self):
        self.clear()
        state = self.session.state

        for item in self.scene.items.values():
            x, y = self._flip(item.x, item.y)
            if item.kind == "star":
                arcade.draw_circle_filled(x, y, item.payload.get("size", 2) / 2, (200, 200, 230))
            elif item.kind == "tree":
                w = item.payload.get("width", 60)
                h = item.payload.get("height", 90)
                shade = item.payload.get("shade", 30)
                arcade.draw_lrbt_rectangle_filled(x, x + w, 0, h, (0, shade, 0))
            elif item.kind == "coin":
                arcade.draw_circle_filled(x, y, self.session.config.coin_size / 2, self.COIN_C)
                arcade.draw_text(str(item.payload.get("value", "")), x, y, (60, 40, 0), 9,
                                 anchor_x="center", anchor_y="center")
            elif item.kind == "bomb":
                arcade.draw_circle_filled(x, y, self.session.config.bomb_size / 2, self.BOMB_C)
                arcade.draw_circle_outline(x, y, self.session.config.bomb_size / 2, self.FUSE_C, 2)
            elif item.kind == "powerup":
                color = hex_to_rgba(item.payload.get("color", "#FFFFFF"))
                arcade.draw_circle_filled(x, y, self.session.config.powerup_size / 2, color)
                arcade.draw_text(item.payload.get("type", "")[:1].upper(), x, y, (0, 0, 0), 12,
                                 anchor_x="center", anchor_y="center")
            elif item.kind == "key":
                arcade.draw_circle_outline(x, y, self.session.config.key_size / 2, self.KEY_C, 3)

        # Torch glow around the raw pointer
        torch = self.scene.torch
        if state.active and state.pointer_inside and torch.radius > 0:
            tx, ty = self._flip(*state.pointer)
            arcade.draw_circle_filled(tx, ty, torch.radius, (255, 255, 255, int(torch.inner_alpha * 120)))
            ring = (255, 220, 120, int((1.0 - torch.outer_alpha) * 255)) if torch.upgraded else (90, 90, 90, 90)
            arcade.draw_circle_outline(tx, ty, torch.radius, ring, 3)

        if self.scene.cursor is not None:
            cx, cy = self._flip(*self.scene.cursor)
            arcade.draw_circle_filled(cx, cy, 10, self.CURSOR_C)

        for p in self.scene.particles:
            px, py = self._flip(p.x, p.y)
            arcade.draw_circle_filled(px, py, 3, hex_to_rgba(p.color, int(max(0.0, p.opacity) * 255)))

        for i, message in enumerate(self.scene.messages[-3:]):
            arcade.draw_text(message.text, self.width / 2, self.height / 2 + 40 - i * 36,
                             hex_to_rgba(message.color), 20, anchor_x="center")

        self._draw_hud()

    def _draw_hud(self):
        ui = self.session.ui
        txt = (f"Score: {ui.score}  Time: {ui.time_left}  Level: {ui.level}  "
               f"{ui.torch_status_text}  {ui.powerup_status_text}")
        arcade.draw_text(txt, 12, self.height - 24, self.HUD_C, 14)

        state = self.session.state
        if state.phase is Phase.ENDED:
            arcade.draw_text(state.end_message, self.width / 2, self.height / 2 - 60,
                             (255, 120, 80), 22, anchor_x="center")
            arcade.draw_text(f"Final score: {state.final_score}   (Enter to restart)",
                             self.width / 2, self.height / 2 - 95, self.HUD_C, 16, anchor_x="center")
        elif state.phase is Phase.IDLE:
            arcade.draw_text("Press Enter to start", self.width / 2, self.height / 2,
                             self.HUD_C, 24, anchor_x="center")


def main():
    parser = argparse.ArgumentParser(description="Play Torch Chase")
    parser.add_argument("--width", type=int, default=1024, help="Window width (default: 1024)")
    parser.add_argument("--height", type=int, default=768, help="Window height (default: 768)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Log session transitions")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    window = ChaseWindow(width=args.width, height=args.height, seed=args.seed)
    print("Torch Chase - press Enter to start, Escape to leave.")
    arcade.run()


if __name__ == "__main__":
    main()
