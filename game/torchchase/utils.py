"""
Utility functions for game mechanics
"""

from __future__ import annotations
import math
import random
from typing import Tuple, Optional
import numpy as np


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp value between low and high bounds"""
    return lo if x < lo else hi if x > hi else x


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points"""
    return math.hypot(x1 - x2, y1 - y2)


def normalize(x: float, y: float, eps: float = 1e-8) -> Tuple[float, float]:
    """Normalize a vector to unit length"""
    l = math.hypot(x, y)
    if l < eps:
        return 0.0, 0.0
    return x / l, y / l


def point_hits(px: float, py: float, cx: float, cy: float, half_width: float, pad: float) -> bool:
    """Check if a point lies inside an entity's padded hit circle (strict)"""
    return distance(px, py, cx, cy) < half_width + pad


def offset_point(x: float, y: float, angle_deg: float, length: float) -> Tuple[float, float]:
    """Move (x, y) by `length` along `angle_deg`"""
    angle = math.radians(angle_deg)
    return x + math.cos(angle) * length, y + math.sin(angle) * length


def seed_everything(py_seed: Optional[int]):
    """Seed all random number generators"""
    if py_seed is None:
        return
    random.seed(py_seed)
    np.random.seed(py_seed)
