"""
Virtual game clock
------------------
`TickDriver` is the only time source of a session. It runs two cadences off
one frame counter:

- the frame tick (`fps` times per virtual second)
- the countdown tick (every `fps` frames)

and a `Scheduler` for one-shot deferred callbacks. Nothing reads wall-clock
time, so tests advance the clock explicitly and stay deterministic.
"""

from __future__ import annotations

import heapq
import itertools
import math
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]


class Scheduler:
    """Min-heap of (due, seq, callback) one-shot tasks"""

    def __init__(self):
        self._queue: List[Tuple[float, int, Callback]] = []
        self._seq = itertools.count()

    def call_at(self, due: float, callback: Callback) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), callback))

    def run_due(self, now: float) -> int:
        """Run every task due at or before `now`, in due order"""
        ran = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, callback = heapq.heappop(self._queue)
            callback()
            ran += 1
        return ran

    def clear(self) -> None:
        self._queue = []

    def __len__(self) -> int:
        return len(self._queue)


class TickDriver:
    """Frame loop + 1-second countdown + deferred tasks on a virtual clock"""

    def __init__(self, fps: int = 60):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.fps = fps
        self.frame_ms = 1000.0 / fps
        self.scheduler = Scheduler()

        self.frame_count = 0
        self.running = False
        self.countdown_running = False
        self._countdown_frames = 0
        self._pending_ms = 0.0

        self._on_frame: Optional[Callback] = None
        self._on_second: Optional[Callback] = None

    @property
    def now(self) -> float:
        # derived from the frame counter so it never accumulates float error
        return self.frame_count * 1000.0 / self.fps

    def start(self, on_frame: Callback, on_second: Callback) -> None:
        self._on_frame = on_frame
        self._on_second = on_second
        self.running = True
        self.countdown_running = True
        self._countdown_frames = 0
        self._pending_ms = 0.0

    def stop(self) -> None:
        self.running = False
        self.countdown_running = False

    def pause_countdown(self) -> None:
        self.countdown_running = False

    def resume_countdown(self) -> None:
        if self.running:
            self.countdown_running = True
            self._countdown_frames = 0

    def frames_for(self, delay_ms: float) -> int:
        """Whole frames needed to cover `delay_ms` (500 ms at 60 fps -> 30)"""
        return max(0, math.ceil(round(delay_ms * self.fps / 1000.0, 6)))

    def call_later(self, delay_ms: float, callback: Callback) -> None:
        # due times are frame numbers, so a 500 ms task fires exactly 30 frames later
        self.scheduler.call_at(self.frame_count + self.frames_for(delay_ms), callback)

    def step(self) -> None:
        """Advance exactly one frame"""
        self.frame_count += 1
        self.scheduler.run_due(self.frame_count)
        if not self.running:
            return

        if self.countdown_running:
            self._countdown_frames += 1
            if self._countdown_frames >= self.fps:
                self._countdown_frames = 0
                self._on_second()
                if not self.running:
                    return

        self._on_frame()

    def advance(self, elapsed_ms: float) -> int:
        """Consume whole frames from `elapsed_ms`, keep the remainder"""
        self._pending_ms += elapsed_ms
        steps = 0
        while self._pending_ms >= self.frame_ms:
            self._pending_ms -= self.frame_ms
            self.step()
            steps += 1
        return steps

    def advance_frames(self, n: int) -> None:
        for _ in range(n):
            self.step()
