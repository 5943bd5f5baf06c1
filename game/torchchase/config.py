"""
Gameplay configuration for Torch Chase
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# (score, scale) pairs, strictly increasing in both fields
DEFAULT_TORCH_THRESHOLDS: Tuple[Tuple[int, float], ...] = (
    (400, 1.1),
    (1200, 1.2),
    (3000, 1.3),
    (5000, 1.4),
    (7000, 1.5),
    (9200, 1.6),
    (11000, 1.7),
    (20000, 2.0),
)


@dataclass
class ChaseConfig:
    """All tunable constants of a session"""

    # Surface
    width: float = 800.0
    height: float = 600.0
    fps: int = 60

    # Spawning
    spawn_margin: float = 30.0
    spawn_reserve: float = 60.0
    initial_coins: int = 8
    initial_bombs: int = 4
    initial_powerups: int = 2
    initial_keys: int = 1
    initial_stars: int = 50
    initial_trees: int = 8

    # Entity sizes (full width, px)
    coin_size: float = 30.0
    bomb_size: float = 40.0
    powerup_size: float = 40.0
    key_size: float = 40.0
    collision_pad: float = 6.0

    # Timing (ms unless noted)
    start_time_s: int = 30
    no_collect_timeout_ms: float = 5000.0
    coin_respawn_delay_ms: float = 500.0
    key_followup_delay_ms: float = 500.0
    powerup_respawn_delay_ms: float = 2000.0
    countdown_resume_delay_ms: float = 2000.0
    message_duration_ms: float = 1500.0

    # Power-up effects
    time_bonus_s: int = 10
    magnet_radius: float = 300.0
    magnet_speed: float = 5.0

    # Difficulty
    bomb_jitter: float = 1.0
    bomb_jitter_after_level: int = 2

    # Cursor offset (sprite sits away from the raw pointer)
    cursor_angle_deg: float = 45.0
    cursor_offset: float = 60.0
    magnet_cursor_offset: float = 100.0

    # Torch
    torch_thresholds: Tuple[Tuple[int, float], ...] = DEFAULT_TORCH_THRESHOLDS
    torch_smoothing: float = 0.12
    torch_epsilon: float = 0.0005
    torch_flicker: float = 10.0
    debug_upgrade_scale: float = 1.1

    def __post_init__(self):
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.width <= self.spawn_reserve or self.height <= self.spawn_reserve:
            raise ValueError(
                f"surface {self.width}x{self.height} is smaller than the spawn reserve "
                f"({self.spawn_reserve})"
            )

    @property
    def frame_ms(self) -> float:
        return 1000.0 / self.fps
