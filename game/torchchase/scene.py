"""
Rendering and audio collaborators
---------------------------------
The game core never draws anything itself. It tells a `Scene` which items
exist and where, and an `AudioSink` when to play the upgrade chime.

- `Scene` / `AudioSink`: no-op base classes (headless play, RL rollouts)
- `RetainedScene`: keeps everything in memory so a front end can draw it
- `GuardedScene` / `GuardedAudio`: log collaborator failures instead of
  letting them stop tick processing
"""

from __future__ import annotations

import itertools
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class Scene:
    """Abstract rendering collaborator; every call is a no-op here"""

    def add_entity(self, kind, position: Point, payload: Optional[Dict[str, Any]] = None) -> Any:
        return None

    def remove_entity(self, handle: Any) -> None:
        pass

    def move_entity(self, handle: Any, position: Point) -> None:
        pass

    def set_torch_visual(self, radius: float, inner_alpha: float, outer_alpha: float, upgraded: bool) -> None:
        pass

    def set_cursor_visual(self, position: Optional[Point]) -> None:
        pass

    def show_transient_message(self, text: str, color: str, duration_ms: float = 1500.0) -> None:
        pass

    def show_particle_burst(self, position: Point, count: int, color: str) -> None:
        pass


class AudioSink:
    """Abstract audio collaborator"""

    def play_upgrade_chime(self, scale: float) -> None:
        pass


# ----------------------------
# In-memory scene
# ----------------------------

@dataclass
class SceneItem:
    kind: str
    x: float
    y: float
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    text: str
    color: str
    remaining_ms: float


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    color: str
    opacity: float = 1.0


@dataclass
class TorchVisual:
    radius: float = 0.0
    inner_alpha: float = 0.15
    outer_alpha: float = 0.9
    upgraded: bool = False


class RetainedScene(Scene):
    """Scene that retains items, messages and particles for a drawing front end"""

    # particles move once per 30 ms step and fade by this much each step
    PARTICLE_STEP_MS = 30.0
    PARTICLE_FADE = 0.03

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._ids = itertools.count(1)
        self.items: Dict[int, SceneItem] = {}
        self.messages: List[Message] = []
        self.particles: List[Particle] = []
        self.torch = TorchVisual()
        self.cursor: Optional[Point] = None
        self._particle_acc = 0.0

    def add_entity(self, kind, position: Point, payload: Optional[Dict[str, Any]] = None) -> int:
        handle = next(self._ids)
        kind_name = getattr(kind, "value", kind)
        self.items[handle] = SceneItem(kind_name, position[0], position[1], dict(payload or {}))
        return handle

    def remove_entity(self, handle: Any) -> None:
        self.items.pop(handle, None)

    def move_entity(self, handle: Any, position: Point) -> None:
        item = self.items.get(handle)
        if item is not None:
            item.x, item.y = position

    def set_torch_visual(self, radius: float, inner_alpha: float, outer_alpha: float, upgraded: bool) -> None:
        self.torch = TorchVisual(radius, inner_alpha, outer_alpha, upgraded)

    def set_cursor_visual(self, position: Optional[Point]) -> None:
        self.cursor = position

    def show_transient_message(self, text: str, color: str, duration_ms: float = 1500.0) -> None:
        self.messages.append(Message(text, color, duration_ms))

    def show_particle_burst(self, position: Point, count: int, color: str) -> None:
        x, y = position
        for _ in range(count):
            angle = self._rng.uniform(0.0, math.pi * 2)
            speed = self._rng.uniform(2.0, 7.0)
            self.particles.append(
                Particle(x, y, math.cos(angle) * speed, math.sin(angle) * speed, color)
            )

    def items_of(self, kind: str) -> List[SceneItem]:
        return [item for item in self.items.values() if item.kind == kind]

    def advance(self, elapsed_ms: float) -> None:
        """Age messages and step particles"""
        for message in self.messages:
            message.remaining_ms -= elapsed_ms
        self.messages = [m for m in self.messages if m.remaining_ms > 0]

        self._particle_acc += elapsed_ms
        while self._particle_acc >= self.PARTICLE_STEP_MS:
            self._particle_acc -= self.PARTICLE_STEP_MS
            for p in self.particles:
                p.x += p.vx
                p.y += p.vy
                p.opacity -= self.PARTICLE_FADE
            self.particles = [p for p in self.particles if p.opacity > 0]


# ----------------------------
# Failure isolation
# ----------------------------

class GuardedScene(Scene):
    """Forwards to another scene, logging (not raising) its failures"""

    def __init__(self, inner: Scene):
        self.inner = inner

    def _call(self, name: str, *args):
        try:
            return getattr(self.inner, name)(*args)
        except Exception:
            logger.exception("Scene call %s failed", name)
            return None

    def add_entity(self, kind, position, payload=None):
        return self._call("add_entity", kind, position, payload)

    def remove_entity(self, handle):
        if handle is not None:
            self._call("remove_entity", handle)

    def move_entity(self, handle, position):
        if handle is not None:
            self._call("move_entity", handle, position)

    def set_torch_visual(self, radius, inner_alpha, outer_alpha, upgraded):
        self._call("set_torch_visual", radius, inner_alpha, outer_alpha, upgraded)

    def set_cursor_visual(self, position):
        self._call("set_cursor_visual", position)

    def show_transient_message(self, text, color, duration_ms=1500.0):
        self._call("show_transient_message", text, color, duration_ms)

    def show_particle_burst(self, position, count, color):
        self._call("show_particle_burst", position, count, color)


class GuardedAudio(AudioSink):
    """Audio sink wrapper; a failed chime is logged and ignored"""

    def __init__(self, inner: AudioSink):
        self.inner = inner

    def play_upgrade_chime(self, scale: float) -> None:
        try:
            self.inner.play_upgrade_chime(scale)
        except Exception:
            logger.exception("Chime failed")
