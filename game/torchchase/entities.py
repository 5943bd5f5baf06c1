"""
Game entity dataclasses
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class EntityKind(str, Enum):
    """Kinds of items the scene is asked to display"""
    COIN = "coin"
    BOMB = "bomb"
    POWERUP = "powerup"
    KEY = "key"
    STAR = "star"
    TREE = "tree"


class PowerUpKind(str, Enum):
    """Collectible power-up effects"""
    TIME = "time"
    DOUBLE = "double"
    MAGNET = "magnet"
    SHIELD = "shield"


# kind -> (duration seconds, display color)
POWERUP_CATALOG: Dict[PowerUpKind, Tuple[float, str]] = {
    PowerUpKind.TIME: (10.0, "#00FFFF"),
    PowerUpKind.DOUBLE: (15.0, "#FF00FF"),
    PowerUpKind.MAGNET: (20.0, "#FFFF00"),
    PowerUpKind.SHIELD: (10.0, "#00FF00"),
}


@dataclass(eq=False)
class Entity:
    """Base entity; (x, y) is the visual centre"""
    id: int
    x: float
    y: float
    size: float = 40.0

    @property
    def half_width(self) -> float:
        return self.size / 2.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(eq=False)
class Coin(Entity):
    """Collectible coin worth a multiple of 10 points"""
    size: float = 30.0
    value: int = 10


@dataclass(eq=False)
class Bomb(Entity):
    """Ends the session on contact unless shielded"""


@dataclass(eq=False)
class PowerUp(Entity):
    """Timed power-up pickup"""
    kind: PowerUpKind = PowerUpKind.TIME
    duration: float = 10.0

    @property
    def color(self) -> str:
        return POWERUP_CATALOG[self.kind][1]


@dataclass(eq=False)
class LevelKey(Entity):
    """Advances to the next level when collected"""


@dataclass(eq=False)
class Decoration:
    """Background star or tree, never collides"""
    id: int
    kind: EntityKind
    x: float
    y: float
    size: float
    shade: int = 0
