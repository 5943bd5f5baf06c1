"""
Power-up timer: at most one active power-up at a time
"""

from __future__ import annotations

from typing import Optional

from .entities import PowerUpKind


class PowerUpTimer:
    """Tracks the active power-up and when it expires (ms instants)"""

    def __init__(self, time_bonus_s: int = 10):
        self.time_bonus_s = time_bonus_s
        self.kind: Optional[PowerUpKind] = None
        self.expires_at: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.kind is not None

    def is_active(self, kind: PowerUpKind) -> bool:
        return self.kind is kind

    def activate(self, kind: PowerUpKind, duration_s: float, now_ms: float, state=None) -> None:
        # a new pickup overwrites the previous one; nothing stacks
        self.kind = kind
        self.expires_at = now_ms + duration_s * 1000.0
        if kind is PowerUpKind.TIME and state is not None:
            state.time_left += self.time_bonus_s

    def tick(self, now_ms: float) -> Optional[PowerUpKind]:
        """Clear an expired power-up; returns the kind that just ended"""
        if self.kind is not None and now_ms > self.expires_at:
            expired = self.kind
            self.clear()
            return expired
        return None

    def clear(self) -> None:
        self.kind = None
        self.expires_at = None

    def remaining_ms(self, now_ms: float) -> float:
        if self.expires_at is None:
            return 0.0
        return max(0.0, self.expires_at - now_ms)

    @property
    def status_text(self) -> str:
        if self.kind is not None:
            return f"Power-up: {self.kind.value.upper()}"
        return "Power-up: None"
