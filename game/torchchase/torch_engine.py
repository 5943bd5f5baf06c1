"""
Torch scaling engine
--------------------
The torch is the player's vision radius. Its size is

    max(100, floor(base_radius)) * current      (+ flicker jitter)

where `base_radius` shrinks with the level, `persistent_scale` is raised by
score thresholds (or the debug override) and `current` eases toward
`target` a fixed fraction of the gap per frame.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple

from .config import DEFAULT_TORCH_THRESHOLDS

MIN_RADIUS = 100
START_RADIUS = 180
RADIUS_STEP_PER_LEVEL = 10


def base_radius_for_level(level: int) -> float:
    return float(max(MIN_RADIUS, START_RADIUS - level * RADIUS_STEP_PER_LEVEL))


@dataclass(frozen=True)
class TorchUpgrade:
    """Emitted once per applied upgrade (visual/audio celebration)"""
    scale: float
    threshold: Optional[int] = None  # None for debug overrides


class TorchEngine:
    """Persistent torch scale plus its smoothly animated rendering value"""

    def __init__(
        self,
        thresholds: Sequence[Tuple[int, float]] = DEFAULT_TORCH_THRESHOLDS,
        smoothing: float = 0.12,
        epsilon: float = 0.0005,
        flicker: float = 10.0,
        rng: Optional[random.Random] = None,
    ):
        self.thresholds = self._validate(thresholds)
        self.smoothing = smoothing
        self.epsilon = epsilon
        self.flicker = flicker
        self._rng = rng or random.Random()
        self.reset(level=1)

    @staticmethod
    def _validate(thresholds) -> List[Tuple[int, float]]:
        ordered = [(int(score), float(scale)) for score, scale in thresholds]
        for (s0, k0), (s1, k1) in zip(ordered, ordered[1:]):
            if s1 <= s0 or k1 <= k0:
                raise ValueError(
                    "torch thresholds must be strictly increasing in score and scale, "
                    f"got ({s0}, {k0}) then ({s1}, {k1})"
                )
        return ordered

    def reset(self, level: int = 1) -> None:
        self.base_radius = base_radius_for_level(level)
        self.persistent_scale = 1.0
        self.current = 1.0
        self.target = 1.0
        # thresholds already applied this session; only reset() forgets them
        self._applied: Set[int] = set()

    def set_level(self, level: int) -> None:
        self.base_radius = base_radius_for_level(level)

    @property
    def upgraded(self) -> bool:
        return self.persistent_scale > 1.0

    # ----------------------------
    # Upgrades
    # ----------------------------

    def _apply(self, scale: float) -> None:
        self.persistent_scale = scale
        self.target = max(self.target, scale)

    def on_score_changed(self, score: int) -> List[TorchUpgrade]:
        """Apply every crossed, not yet applied threshold in ascending order"""
        events = []
        for threshold, scale in self.thresholds:
            if threshold in self._applied:
                continue
            if score >= threshold and scale > self.persistent_scale:
                self._apply(scale)
                self._applied.add(threshold)
                events.append(TorchUpgrade(scale=scale, threshold=threshold))
        return events

    def force_upgrade(self, scale: float = 1.1) -> TorchUpgrade:
        """Debug override; never lowers an already higher scale"""
        self._apply(max(self.persistent_scale, scale))
        return TorchUpgrade(scale=self.persistent_scale)

    def revert_upgrade(self) -> None:
        """Debug override back to the unscaled torch"""
        self.persistent_scale = 1.0
        self.target = 1.0

    # ----------------------------
    # Animation / rendering inputs
    # ----------------------------

    def tick(self) -> None:
        gap = self.target - self.current
        if gap == 0.0:
            return
        if abs(gap) >= self.epsilon:
            self.current += gap * self.smoothing
        if abs(self.target - self.current) < self.epsilon:
            self.current = self.target

    def effective_radius(self, random_fn: Optional[Callable[[], float]] = None) -> float:
        """Radius to draw this frame; random_fn returns a float in [0, 1)"""
        random_fn = random_fn or self._rng.random
        radius = max(MIN_RADIUS, math.floor(self.base_radius)) * self.current
        return radius + (random_fn() * 2.0 - 1.0) * self.flicker

    def visual(self, shield_active: bool = False) -> Tuple[float, float]:
        """(inner_alpha, outer_alpha) of the torch gradient"""
        inner = 0.45 if (shield_active or self.upgraded) else 0.15
        outer = 0.55 if self.upgraded else 0.9
        return inner, outer

    @property
    def status_text(self) -> str:
        if self.persistent_scale > 1.0:
            return f"Torch: {self.persistent_scale:g}x"
        return "Torch: Normal"
