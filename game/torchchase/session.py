"""
Torch Chase session
-------------------
`GameSession` is the level/session state machine and the context object every
other component works against:

- Idle -> Playing -> Ended; `start()` (or `restart()`) re-enters Playing
- the `TickDriver` calls `frame_tick` ~60 times per virtual second and
  `countdown_tick` once per second while Playing
- the resolver reports collisions back through `collect_coin`, `hit_bomb`,
  `collect_powerup` and `collect_key`
- deferred follow-ups (respawns, level completion, countdown resume) are
  scheduled on the driver and re-check `state.active` when they fire

Rendering, input and audio stay outside: the session only talks to a `Scene`
and an `AudioSink`, both wrapped so their failures are logged, never raised.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .clock import TickDriver
from .config import ChaseConfig
from .entities import Bomb, Coin, LevelKey, PowerUp, PowerUpKind
from .powerups import PowerUpTimer
from .registry import EntityRegistry
from .resolver import CollisionResolver, interaction_point
from .scene import AudioSink, GuardedAudio, GuardedScene, Scene
from .torch_engine import MIN_RADIUS, TorchEngine, TorchUpgrade
from .utils import clamp

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Level completion bonus
BONUS_PER_SECOND = 10
BONUS_PER_COIN = 5
BONUS_PER_LEVEL = 100

# Time budget of a level: LEVEL_TIME_BASE + level * LEVEL_TIME_STEP
LEVEL_TIME_BASE = 25
LEVEL_TIME_STEP = 5

# Extra background per level
STARS_PER_LEVEL = 5
TREES_PER_LEVEL = 1

TOGGLE_CENTER_MODE = "toggle-center-mode"
TOGGLE_TORCH_DEBUG = "toggle-torch-debug"


class Phase(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    ENDED = "ended"


class EndReason(str, Enum):
    BOMB = "bomb"
    TIME = "time"
    NO_COIN = "no-coin"


END_MESSAGES: Dict[EndReason, str] = {
    EndReason.TIME: "Time's up! You failed to find a key.",
    EndReason.NO_COIN: "No coin collected for 5s! Game Over!",
    EndReason.BOMB: "You hit a bomb! Game Over!",
}

POWERUP_MESSAGES: Dict[PowerUpKind, Tuple[str, str]] = {
    PowerUpKind.TIME: ("+10 SECONDS!", "#00FFFF"),
    PowerUpKind.DOUBLE: ("2x POINTS!", "#FF00FF"),
    PowerUpKind.MAGNET: ("COIN MAGNET!", "#FFFF00"),
    PowerUpKind.SHIELD: ("BOMB SHIELD!", "#00FF00"),
}


@dataclass
class SessionState:
    """Mutable per-session values; replaced wholesale on start"""
    score: int = 0
    time_left: int = 30
    level: int = 1
    active: bool = False
    has_level_key: bool = False
    last_collect_time: float = 0.0
    phase: Phase = Phase.IDLE
    end_reason: Optional[EndReason] = None
    won: bool = False
    final_score: Optional[int] = None
    end_message: str = ""
    # input
    pointer: Point = (0.0, 0.0)
    pointer_inside: bool = False
    center_mode: bool = False


@dataclass(frozen=True)
class UIState:
    """Read-only HUD values for the menu/UI layer"""
    score: int
    time_left: int
    level: int
    torch_status_text: str
    powerup_status_text: str


class GameSession:
    """Level/session state machine of a Torch Chase game"""

    def __init__(
        self,
        scene: Optional[Scene] = None,
        audio: Optional[AudioSink] = None,
        config: Optional[ChaseConfig] = None,
        rng: Optional[random.Random] = None,
        driver: Optional[TickDriver] = None,
    ):
        self.config = config or ChaseConfig()
        self.rng = rng or random.Random()
        self.scene = GuardedScene(scene or Scene())
        self.audio = GuardedAudio(audio or AudioSink())
        self.driver = driver or TickDriver(self.config.fps)

        cfg = self.config
        self.state = SessionState(
            time_left=cfg.start_time_s,
            pointer=(cfg.width / 2, cfg.height / 2),
        )
        self.registry = EntityRegistry(self.scene, cfg, self.rng)
        self.torch = TorchEngine(
            thresholds=cfg.torch_thresholds,
            smoothing=cfg.torch_smoothing,
            epsilon=cfg.torch_epsilon,
            flicker=cfg.torch_flicker,
            rng=self.rng,
        )
        self.powerups = PowerUpTimer(cfg.time_bonus_s)
        self.resolver = CollisionResolver(cfg)

        self.last_level_bonus = 0
        self.ui_listeners: List[Callable[[UIState], None]] = []
        self.ui = self._snapshot_ui()

    @property
    def now(self) -> float:
        return self.driver.now

    @property
    def phase(self) -> Phase:
        return self.state.phase

    # ----------------------------
    # Entry points for the menu/UI layer
    # ----------------------------

    def start(self) -> None:
        """Reset everything and begin a new session at level 1"""
        cfg = self.config

        # previous session's cadences and deferred tasks must not leak in
        self.driver.stop()
        self.driver.scheduler.clear()
        self.registry.clear_all()

        # the physical pointer does not move on restart; keep where it is
        previous = self.state
        self.state = SessionState(
            time_left=cfg.start_time_s,
            level=1,
            active=True,
            phase=Phase.PLAYING,
            last_collect_time=self.now,
            pointer=previous.pointer if previous.pointer_inside else (cfg.width / 2, cfg.height / 2),
            pointer_inside=previous.pointer_inside,
            center_mode=previous.center_mode,
        )
        self.torch.reset(level=1)
        self.powerups.clear()
        self.last_level_bonus = 0

        self.registry.spawn_decorations(cfg.initial_stars, cfg.initial_trees)
        self.registry.spawn_coins(cfg.initial_coins, level=1)
        self.registry.spawn_bombs(cfg.initial_bombs)
        self.registry.spawn_powerups(cfg.initial_powerups)
        self.registry.spawn_keys(cfg.initial_keys)

        self.scene.set_cursor_visual(None)
        self.driver.start(self.frame_tick, self.countdown_tick)
        logger.info("Session started")
        self._refresh_ui()

    def restart(self) -> None:
        self.start()

    def exit(self, confirm: Optional[Callable[[], bool]] = None) -> bool:
        """Tear down to Idle; a confirm callback returning False cancels"""
        if confirm is not None and not confirm():
            return False
        self.driver.stop()
        self.driver.scheduler.clear()
        self.state.active = False
        self.state.phase = Phase.IDLE
        self.registry.clear_all()
        self.powerups.clear()
        self.scene.set_cursor_visual(None)
        self._say("Exited to main menu", "#FFD700")
        logger.info("Session exited to menu")
        self._refresh_ui()
        return True

    # ----------------------------
    # Input stream
    # ----------------------------

    def pointer_moved(self, x: float, y: float) -> None:
        if not self.state.active:
            return
        self.state.pointer = (x, y)

    def pointer_entered(self) -> None:
        self.state.pointer_inside = True
        if self.state.active:
            self.scene.set_cursor_visual(self.interaction_point())

    def pointer_left(self) -> None:
        self.state.pointer_inside = False
        self.scene.set_cursor_visual(None)

    def key_pressed(self, name: str) -> None:
        if name == TOGGLE_CENTER_MODE:
            self.toggle_center_mode()
        elif name == TOGGLE_TORCH_DEBUG:
            self.toggle_torch_debug()
        else:
            logger.debug("Ignoring unknown key command %r", name)

    def interaction_point(self) -> Point:
        return interaction_point(
            self.state.pointer,
            magnet=self.powerups.is_active(PowerUpKind.MAGNET),
            center_mode=self.state.center_mode,
            config=self.config,
        )

    # ----------------------------
    # Debug commands
    # ----------------------------

    def toggle_center_mode(self) -> bool:
        self.state.center_mode = not self.state.center_mode
        self._say("CENTER MODE ON" if self.state.center_mode else "CENTER MODE OFF", "#00BFFF")
        return self.state.center_mode

    def force_apply_torch_upgrade(self, scale: Optional[float] = None) -> TorchUpgrade:
        if scale is None:
            scale = self.config.debug_upgrade_scale
        upgrade = self.torch.force_upgrade(scale)
        self._celebrate(upgrade)
        self._say("Torch upgrade applied (debug)", "#FFD700")
        self._refresh_ui()
        return upgrade

    def revert_torch_upgrade(self) -> None:
        self.torch.revert_upgrade()
        self._say("Torch upgrade reverted (debug)", "#FFB6C1")
        self._refresh_ui()

    def toggle_torch_debug(self) -> None:
        if self.torch.upgraded:
            self.revert_torch_upgrade()
        else:
            self.force_apply_torch_upgrade()

    # ----------------------------
    # Clock callbacks
    # ----------------------------

    def frame_tick(self) -> None:
        state = self.state
        if not state.active:
            return
        now = self.now

        # No-collect watchdog
        if now - state.last_collect_time > self.config.no_collect_timeout_ms:
            if state.has_level_key or self.powerups.active:
                saver = "key" if state.has_level_key else "active power-up"
                self._say(f"No coin for 5s, but your {saver} saved you!", "#FFD700")
                state.last_collect_time = now
            else:
                self._say("No coin collected for 5s! Game Over!", "#FF4500")
                self.end_game(False, EndReason.NO_COIN)
                return

        if state.level > self.config.bomb_jitter_after_level:
            self._jitter_bombs()

        if self.powerups.tick(now) is not None:
            self._say("POWER-UP ENDED", "#888")
            self._refresh_ui()

        self.torch.tick()

        if state.pointer_inside:
            point = self.interaction_point()
            self.resolver.resolve(self, point)
            if not state.active:
                return
            self.scene.set_cursor_visual(point)
            inner, outer = self.torch.visual(self.powerups.is_active(PowerUpKind.SHIELD))
            self.scene.set_torch_visual(self.torch.effective_radius(), inner, outer, self.torch.upgraded)

    def countdown_tick(self) -> None:
        state = self.state
        if not state.active:
            return
        state.time_left -= 1
        self._refresh_ui()
        if state.time_left <= 0:
            self._say(END_MESSAGES[EndReason.TIME], "#FF4500")
            self.end_game(False, EndReason.TIME)

    def _jitter_bombs(self) -> None:
        cfg = self.config
        step = cfg.bomb_jitter
        for bomb in self.registry.bombs:
            x = bomb.x + (self.rng.random() - 0.5) * 2 * step
            y = bomb.y + (self.rng.random() - 0.5) * 2 * step
            x = clamp(x, cfg.spawn_margin, cfg.width - cfg.spawn_margin)
            y = clamp(y, cfg.spawn_margin, cfg.height - cfg.spawn_margin)
            self.registry.move(bomb, x, y)

    # ----------------------------
    # Collision outcomes (called by the resolver)
    # ----------------------------

    def collect_coin(self, coin: Coin) -> int:
        """Score a coin; returns the points awarded (0 if it was already gone)"""
        state = self.state
        if not state.active or not self.registry.contains(coin):
            return 0
        points = coin.value * (2 if self.powerups.is_active(PowerUpKind.DOUBLE) else 1)
        state.score += points
        state.last_collect_time = self.now
        self._check_torch_progress()

        self.scene.show_particle_burst(coin.position, points * 3 if points > 0 else 10, "#FFD700")
        self.registry.remove(coin)
        self.driver.call_later(self.config.coin_respawn_delay_ms, self._respawn_coin)
        self._refresh_ui()
        return points

    def hit_bomb(self, bomb: Bomb) -> bool:
        """Returns True if the bomb ended the session"""
        if not self.state.active or self.powerups.is_active(PowerUpKind.SHIELD):
            return False
        if not self.registry.contains(bomb):
            return False
        self.scene.show_particle_burst(bomb.position, 30, "#FF4500")
        return self.end_game(False, EndReason.BOMB)

    def collect_powerup(self, powerup: PowerUp) -> None:
        if not self.state.active or not self.registry.contains(powerup):
            return
        self.powerups.activate(powerup.kind, powerup.duration, self.now, self.state)
        self._say(*POWERUP_MESSAGES[powerup.kind])
        self.scene.show_particle_burst(powerup.position, 10, powerup.color)
        self.registry.remove(powerup)
        self.driver.call_later(self.config.powerup_respawn_delay_ms, self._respawn_powerup)
        self._refresh_ui()

    def collect_key(self, key: LevelKey) -> None:
        if not self.state.active or not self.registry.contains(key):
            return
        self.state.has_level_key = True
        self.scene.show_particle_burst(key.position, 10, "#FFFF00")
        self.registry.remove(key)
        self._say("Key collected! Advancing level...", "#00FF00")
        self.driver.call_later(self.config.key_followup_delay_ms, self._complete_level_if_active)
        self._refresh_ui()

    # deferred follow-ups; the session may have ended while they waited

    def _respawn_coin(self) -> None:
        if self.state.active:
            self.registry.spawn_coins(1, level=self.state.level)

    def _respawn_powerup(self) -> None:
        if self.state.active:
            self.registry.spawn_powerups(1)

    def _complete_level_if_active(self) -> None:
        if self.state.active:
            self.complete_level()

    def _resume_countdown(self) -> None:
        if self.state.active:
            self.driver.resume_countdown()

    # ----------------------------
    # Level / game transitions
    # ----------------------------

    def complete_level(self) -> int:
        """Award the level bonus and set up the next level; returns the bonus"""
        state = self.state
        if not state.active:
            return 0
        cfg = self.config

        bonus = (
            max(0, state.time_left) * BONUS_PER_SECOND
            + len(self.registry.coins) * BONUS_PER_COIN
            + state.level * BONUS_PER_LEVEL
        )
        state.score += bonus
        self.last_level_bonus = bonus
        self._check_torch_progress()
        completed = state.level
        self._say(f"Level {completed} Complete! Bonus: {bonus}", "#00FF00")

        state.level += 1
        level = state.level
        state.time_left = LEVEL_TIME_BASE + level * LEVEL_TIME_STEP
        self.torch.set_level(level)

        self.registry.clear_all()
        self.registry.spawn_decorations(
            cfg.initial_stars + level * STARS_PER_LEVEL,
            cfg.initial_trees + level * TREES_PER_LEVEL,
        )
        self.registry.spawn_coins(cfg.initial_coins + level, level=level)
        self.registry.spawn_bombs(cfg.initial_bombs + level // 2)
        self.registry.spawn_powerups(cfg.initial_powerups + level // 3)
        self.registry.spawn_keys(1)
        state.has_level_key = False

        # countdown restarts after the level announcement
        self.driver.pause_countdown()
        self.driver.call_later(cfg.countdown_resume_delay_ms, self._resume_countdown)

        self._say(f"LEVEL {level}", "#00BFFF")
        logger.info("Level %d complete, bonus %d, score %d", completed, bonus, state.score)
        self._refresh_ui()
        return bonus

    def end_game(self, win: bool = False, reason=EndReason.BOMB) -> bool:
        """Freeze the session; a second call is a no-op returning False"""
        state = self.state
        if state.phase is not Phase.PLAYING:
            return False
        reason = EndReason(reason) if reason is not None else None

        state.active = False
        state.phase = Phase.ENDED
        state.won = win
        state.end_reason = None if win else reason
        state.final_score = state.score
        if win:
            state.end_message = "Congratulations! You completed all levels!"
        else:
            state.end_message = END_MESSAGES.get(reason, "Game Over!")

        self.driver.stop()

        # torch back to baseline immediately
        self.torch.reset(level=state.level)
        inner, outer = self.torch.visual()
        baseline = max(MIN_RADIUS, math.floor(self.torch.base_radius))
        self.scene.set_torch_visual(baseline, inner, outer, False)
        self.scene.set_cursor_visual(None)

        logger.info(
            "Session ended (win=%s, reason=%s) with score %d",
            win, reason.value if reason else None, state.score,
        )
        self._refresh_ui()
        return True

    # ----------------------------
    # Helpers
    # ----------------------------

    def _check_torch_progress(self) -> None:
        for upgrade in self.torch.on_score_changed(self.state.score):
            self._celebrate(upgrade)

    def _celebrate(self, upgrade: TorchUpgrade) -> None:
        if upgrade.threshold is not None:
            text = f"Torch expanded: {upgrade.scale:g}x at {upgrade.threshold} points!"
        else:
            text = f"Torch expanded: {upgrade.scale:g}x"
        self._say(text, "#FFD700")
        self.scene.show_particle_burst(self.state.pointer, 60, "#FFD700")
        self.audio.play_upgrade_chime(upgrade.scale)
        logger.info("Applied torch scale %s at score %d", upgrade.scale, self.state.score)

    def _say(self, text: str, color: str) -> None:
        self.scene.show_transient_message(text, color, self.config.message_duration_ms)

    def _snapshot_ui(self) -> UIState:
        return UIState(
            score=self.state.score,
            time_left=self.state.time_left,
            level=self.state.level,
            torch_status_text=self.torch.status_text,
            powerup_status_text=self.powerups.status_text,
        )

    def _refresh_ui(self) -> None:
        self.ui = self._snapshot_ui()
        for listener in list(self.ui_listeners):
            try:
                listener(self.ui)
            except Exception:
                logger.exception("UI listener failed")

    # ----------------------------
    # Clock passthrough
    # ----------------------------

    def advance(self, elapsed_ms: float) -> int:
        return self.driver.advance(elapsed_ms)

    def advance_frames(self, n: int) -> None:
        self.driver.advance_frames(n)
