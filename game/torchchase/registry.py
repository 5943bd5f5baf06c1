"""
Entity registry: the live coins, bombs, power-ups and level keys
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import ChaseConfig
from .entities import (
    POWERUP_CATALOG,
    Bomb,
    Coin,
    Decoration,
    Entity,
    EntityKind,
    LevelKey,
    PowerUp,
    PowerUpKind,
)
from .scene import Scene
from .utils import distance

logger = logging.getLogger(__name__)


class EntityRegistry:
    """Owns every live entity and its visual handle (side table keyed by id)"""

    def __init__(self, scene: Scene, config: ChaseConfig, rng: Optional[random.Random] = None):
        self.scene = scene
        self.config = config
        self.rng = rng or random.Random()

        self.coins: List[Coin] = []
        self.bombs: List[Bomb] = []
        self.powerups: List[PowerUp] = []
        self.keys: List[LevelKey] = []
        self.decorations: List[Decoration] = []

        self._handles: Dict[int, Any] = {}
        self._ids = itertools.count(1)

    # ----------------------------
    # Spawning
    # ----------------------------

    def _random_position(self) -> Tuple[float, float]:
        # inset by the margin on each edge, never off-surface
        cfg = self.config
        x = self.rng.random() * (cfg.width - cfg.spawn_reserve) + cfg.spawn_margin
        y = self.rng.random() * (cfg.height - cfg.spawn_reserve) + cfg.spawn_margin
        return x, y

    def _register(self, bucket: list, entity, kind: EntityKind, payload: Dict[str, Any]):
        handle = self.scene.add_entity(kind, (entity.x, entity.y), payload)
        self._handles[entity.id] = handle
        bucket.append(entity)
        return entity

    def spawn_coins(self, n: int, level: int = 1) -> List[Coin]:
        spawned = []
        for _ in range(n):
            x, y = self._random_position()
            value = self.rng.randint(1, max(1, level)) * 10
            coin = Coin(id=next(self._ids), x=x, y=y, size=self.config.coin_size, value=value)
            spawned.append(self._register(self.coins, coin, EntityKind.COIN, {"value": value}))
        return spawned

    def spawn_bombs(self, n: int) -> List[Bomb]:
        spawned = []
        for _ in range(n):
            x, y = self._random_position()
            bomb = Bomb(id=next(self._ids), x=x, y=y, size=self.config.bomb_size)
            spawned.append(self._register(self.bombs, bomb, EntityKind.BOMB, {}))
        return spawned

    def spawn_powerups(self, n: int) -> List[PowerUp]:
        spawned = []
        kinds = list(PowerUpKind)
        for _ in range(n):
            x, y = self._random_position()
            kind = self.rng.choice(kinds)
            duration, color = POWERUP_CATALOG[kind]
            powerup = PowerUp(
                id=next(self._ids), x=x, y=y, size=self.config.powerup_size,
                kind=kind, duration=duration,
            )
            payload = {"type": kind.value, "duration": duration, "color": color}
            spawned.append(self._register(self.powerups, powerup, EntityKind.POWERUP, payload))
        return spawned

    def spawn_keys(self, n: int = 1) -> List[LevelKey]:
        spawned = []
        for _ in range(n):
            x, y = self._random_position()
            key = LevelKey(id=next(self._ids), x=x, y=y, size=self.config.key_size)
            spawned.append(self._register(self.keys, key, EntityKind.KEY, {}))
        return spawned

    def spawn_decorations(self, stars: int, trees: int) -> None:
        """Background only; decorations never take part in collisions"""
        cfg = self.config
        for _ in range(stars):
            size = self.rng.random() * 4 + 1
            star = Decoration(
                id=next(self._ids), kind=EntityKind.STAR,
                x=self.rng.random() * cfg.width, y=self.rng.random() * cfg.height, size=size,
            )
            self._register(self.decorations, star, EntityKind.STAR, {"size": size})
        for _ in range(trees):
            width = self.rng.random() * 40 + 60
            shade = int(self.rng.random() * 40 + 20)
            tree = Decoration(
                id=next(self._ids), kind=EntityKind.TREE,
                x=self.rng.random() * cfg.width * 0.9, y=cfg.height, size=width, shade=shade,
            )
            payload = {"width": width, "height": width * 1.5, "shade": shade}
            self._register(self.decorations, tree, EntityKind.TREE, payload)

    # ----------------------------
    # Mutation / removal
    # ----------------------------

    def _bucket_for(self, entity) -> list:
        if isinstance(entity, Coin):
            return self.coins
        if isinstance(entity, Bomb):
            return self.bombs
        if isinstance(entity, PowerUp):
            return self.powerups
        if isinstance(entity, LevelKey):
            return self.keys
        return self.decorations

    def contains(self, entity) -> bool:
        return any(e is entity for e in self._bucket_for(entity))

    def remove(self, entity) -> bool:
        """Remove one entity; returns False if it was already gone"""
        bucket = self._bucket_for(entity)
        for i, e in enumerate(bucket):
            if e is entity:
                handle = self._handles.pop(entity.id, None)
                self.scene.remove_entity(handle)
                del bucket[i]
                return True
        logger.debug("Ignoring removal of unregistered entity %s", entity.id)
        return False

    def move(self, entity: Entity, x: float, y: float) -> None:
        entity.x = x
        entity.y = y
        self.scene.move_entity(self._handles.get(entity.id), (x, y))

    def clear_all(self) -> None:
        """Drop every visual handle, then release the entities"""
        for bucket in (self.coins, self.bombs, self.powerups, self.keys, self.decorations):
            for entity in bucket:
                self.scene.remove_entity(self._handles.pop(entity.id, None))
        self._handles.clear()
        self.coins = []
        self.bombs = []
        self.powerups = []
        self.keys = []
        self.decorations = []

    # ----------------------------
    # Queries
    # ----------------------------

    def handle_for(self, entity) -> Any:
        return self._handles.get(entity.id)

    def handle_count(self) -> int:
        return len(self._handles)

    def nearby(self, entities: Iterable[Entity], point: Tuple[float, float], radius: float) -> List[Entity]:
        """Entities whose centre lies strictly within `radius` of `point`"""
        px, py = point
        return [e for e in entities if distance(px, py, e.x, e.y) < radius]

    def total(self) -> int:
        return len(self.coins) + len(self.bombs) + len(self.powerups) + len(self.keys)
