"""
ChaseEnv - Torch Chase as a Gymnasium environment
-------------------------------------------------
- Wraps one `GameSession` on its virtual clock (no wall-clock time)
- The agent steers the pointer: Discrete(9) = stay + 8 directions
- Each env step runs `frame_skip` game frames
- Vector observation: pointer + HUD state + K nearest coins + M nearest
  bombs + nearest power-up + key, positions relative to the cursor sprite
- Reward: score gained (scaled) minus a penalty when the session ends
- Arcade window for human rendering

Quick test:
    python -m game.torchchase.chase_env
"""

from __future__ import annotations

import math
import random
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .config import ChaseConfig
from .entities import PowerUpKind
from .scene import RetainedScene
from .session import GameSession, Phase
from .utils import clamp, seed_everything

# stay, then 8 directions starting east, counter-clockwise in surface coords
MOVES: List[Tuple[float, float]] = [(0.0, 0.0)] + [
    (math.cos(math.pi * 2 * i / 8.0), math.sin(math.pi * 2 * i / 8.0)) for i in range(8)
]

POWERUP_ORDER = [PowerUpKind.TIME, PowerUpKind.DOUBLE, PowerUpKind.MAGNET, PowerUpKind.SHIELD]


class ChaseEnv(gym.Env):
    """Pointer-steering environment over a Torch Chase session"""

    metadata = {"render_modes": ["human"], "render_fps": 60}

    def __init__(
        self,
        render_mode: Optional[str] = None,
        width: int = 800,
        height: int = 600,
        frame_skip: int = 4,
        max_steps: int = 4500,  # 5 min of game time at frame_skip=4
        pointer_speed: float = 6.0,  # px per frame
        k_coins: int = 5,
        m_bombs: int = 4,
        score_scale: float = 0.01,
        end_penalty: float = 5.0,
    ):
        super().__init__()

        assert render_mode is None or render_mode in self.metadata["render_modes"]
        self.render_mode = render_mode

        self.config = ChaseConfig(width=float(width), height=float(height))
        self.width = width
        self.height = height
        self.frame_skip = frame_skip
        self.max_steps = max_steps
        self.pointer_speed = pointer_speed
        self.k_coins = k_coins
        self.m_bombs = m_bombs
        self.score_scale = score_scale
        self.end_penalty = end_penalty

        self.action_space = spaces.Discrete(len(MOVES))

        # pointer(2) time(1) level(1) key flag(1) power-up one-hot(4)
        # coins k*2, bombs m*2, nearest power-up(2), key(2)
        obs_dim = 2 + 1 + 1 + 1 + 4 + self.k_coins * 2 + self.m_bombs * 2 + 2 + 2
        self.observation_space = spaces.Box(
            low=-1.0, high=1.0, shape=(obs_dim,), dtype=np.float32
        )

        self._window = None
        self.scene: RetainedScene = RetainedScene()
        self.session: GameSession = None  # type: ignore
        self._step_count = 0
        self._last_score = 0

    # ----------------------------
    # Gym API
    # ----------------------------

    def reset(self, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)
        seed_everything(seed)

        rng = random.Random(seed)
        self.scene = RetainedScene(rng)
        self.session = GameSession(scene=self.scene, config=self.config, rng=rng)
        self.session.start()
        self.session.pointer_entered()

        self._step_count = 0
        self._last_score = 0

        return self._get_obs(), self._get_info()

    def step(self, action):
        dx, dy = MOVES[int(action)]

        for _ in range(self.frame_skip):
            px, py = self.session.state.pointer
            self.session.pointer_moved(
                clamp(px + dx * self.pointer_speed, 0.0, self.config.width),
                clamp(py + dy * self.pointer_speed, 0.0, self.config.height),
            )
            self.session.advance_frames(1)
            if not self.session.state.active:
                break
        self.scene.advance(self.frame_skip * self.config.frame_ms)

        score = self.session.state.score
        reward = (score - self._last_score) * self.score_scale
        self._last_score = score

        terminated = self.session.phase is Phase.ENDED
        if terminated:
            reward -= self.end_penalty

        self._step_count += 1
        truncated = self._step_count >= self.max_steps

        if self.render_mode == "human":
            self.render()

        return self._get_obs(), float(reward), terminated, truncated, self._get_info()

    # ----------------------------
    # Observation / info
    # ----------------------------

    def _relative(self, origin, entity) -> List[float]:
        return [
            clamp((entity.x - origin[0]) / self.config.width, -1, 1),
            clamp((entity.y - origin[1]) / self.config.height, -1, 1),
        ]

    def _nearest(self, origin, entities, count: int) -> List[float]:
        ordered = sorted(
            entities,
            key=lambda e: (e.x - origin[0]) ** 2 + (e.y - origin[1]) ** 2,
        )
        parts: List[float] = []
        for i in range(count):
            if i < len(ordered):
                parts += self._relative(origin, ordered[i])
            else:
                parts += [0.0, 0.0]
        return parts

    def _get_obs(self) -> np.ndarray:
        session = self.session
        state = session.state
        registry = session.registry
        origin = session.interaction_point()

        obs_parts = [
            state.pointer[0] / self.config.width * 2 - 1,
            state.pointer[1] / self.config.height * 2 - 1,
            clamp(state.time_left / 60.0, 0, 1) * 2 - 1,
            clamp(state.level / 10.0, 0, 1) * 2 - 1,
            1.0 if state.has_level_key else -1.0,
        ]
        obs_parts += [1.0 if session.powerups.is_active(kind) else 0.0 for kind in POWERUP_ORDER]
        obs_parts += self._nearest(origin, registry.coins, self.k_coins)
        obs_parts += self._nearest(origin, registry.bombs, self.m_bombs)
        obs_parts += self._nearest(origin, registry.powerups, 1)
        obs_parts += self._nearest(origin, registry.keys, 1)

        obs = np.array(obs_parts, dtype=np.float32)
        return np.clip(obs, -1.0, 1.0)

    def _get_info(self) -> Dict[str, Any]:
        state = self.session.state
        return {
            "score": state.score,
            "level": state.level,
            "time_left": state.time_left,
            "has_level_key": state.has_level_key,
            "powerup": self.session.powerups.kind.value if self.session.powerups.kind else None,
            "end_reason": state.end_reason.value if state.end_reason else None,
            "num_coins": len(self.session.registry.coins),
            "num_bombs": len(self.session.registry.bombs),
            "step": self._step_count,
        }

    # ----------------------------
    # Rendering with Arcade
    # ----------------------------

    def render(self):
        if self.render_mode is None:
            return None

        if self._window is None:
            # imported lazily so headless rollouts never need a display
            from .window import ChaseWindow
            self._window = ChaseWindow(
                session=self.session, scene=self.scene,
                width=self.width, height=self.height, interactive=False,
            )
        self._window.attach(self.session, self.scene)
        self._window.on_draw()
        return None

    def close(self):
        if self._window is not None:
            self._window.close()
            self._window = None


# ----------------------------
# Quick sanity test
# ----------------------------

def run_random_episode(render: bool = True, seed: Optional[int] = 42) -> Dict[str, Any]:
    """Run one random-pointer episode; returns the final info dict"""
    env = ChaseEnv(render_mode="human" if render else None)
    obs, info = env.reset(seed=seed)

    terminated = False
    truncated = False
    total = 0.0

    while not (terminated or truncated):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total += reward

        if render and env._window:
            env._window.dispatch_events()
            env._window.flip()

    print(f"Random episode return: {total:.2f}, score {info['score']}, "
          f"level {info['level']}, ended by {info['end_reason']}")

    env.close()
    return info


if __name__ == "__main__":
    run_random_episode(render=True)
