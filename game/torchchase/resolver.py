"""
Collision & interaction resolver
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from .config import ChaseConfig
from .entities import PowerUpKind
from .utils import distance, offset_point, point_hits

if TYPE_CHECKING:
    from .session import GameSession

Point = Tuple[float, float]


def interaction_point(pointer: Point, magnet: bool, center_mode: bool, config: ChaseConfig) -> Point:
    """Where the cursor sprite (and its hit test) sits relative to the raw pointer"""
    if magnet:
        length = config.magnet_cursor_offset
    elif center_mode:
        length = 0.0
    else:
        length = config.cursor_offset
    return offset_point(pointer[0], pointer[1], config.cursor_angle_deg, length)


class CollisionResolver:
    """Runs the per-tick magnet pull and overlap checks against a session"""

    def __init__(self, config: ChaseConfig):
        self.config = config
        self.pad = config.collision_pad

    def hits(self, entities, point: Point) -> List:
        px, py = point
        return [e for e in entities if point_hits(px, py, e.x, e.y, e.half_width, self.pad)]

    def attract_coins(self, session: "GameSession", point: Point) -> int:
        """Step every coin within the magnet radius straight toward the point"""
        px, py = point
        speed = self.config.magnet_speed
        registry = session.registry
        moved = 0
        for coin in registry.nearby(registry.coins, point, self.config.magnet_radius):
            d = distance(px, py, coin.x, coin.y)
            if d == 0.0:
                continue
            dx = (px - coin.x) / d
            dy = (py - coin.y) / d
            registry.move(coin, coin.x + dx * speed, coin.y + dy * speed)
            moved += 1
        return moved

    def resolve(self, session: "GameSession", point: Point) -> None:
        """Coins -> bombs -> power-ups -> key; stops as soon as the session ends"""
        registry = session.registry

        if session.powerups.is_active(PowerUpKind.MAGNET):
            self.attract_coins(session, point)

        for coin in self.hits(registry.coins, point):
            session.collect_coin(coin)

        if not session.powerups.is_active(PowerUpKind.SHIELD):
            for bomb in self.hits(registry.bombs, point):
                session.hit_bomb(bomb)
                if not session.state.active:
                    return

        for powerup in self.hits(registry.powerups, point):
            session.collect_powerup(powerup)

        for key in self.hits(registry.keys, point):
            session.collect_key(key)
