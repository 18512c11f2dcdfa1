"""Reflex round: tap each target before it vanishes."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum

from .clock import Cancelable, GameClock
from .models import Difficulty, GameKind, Level
from .round_engine import RoundEngine

TOTAL_ROUNDS = 10
MAX_MISSES = 3
MIN_DISPLAY_TIME = 0.4
DISPLAY_TIME_STEP = 0.05
MISS_RESPAWN_DELAY = 0.3
BASE_POINTS = 10

BASE_DISPLAY_TIME = {
    Difficulty.EASY: 1.5,
    Difficulty.NORMAL: 1.0,
    Difficulty.HARD: 0.7,
}
SPAWN_INTERVAL = {
    Difficulty.EASY: 1.8,
    Difficulty.NORMAL: 1.2,
    Difficulty.HARD: 0.8,
}


class TargetShape(Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    DIAMOND = "diamond"
    HEXAGON = "hexagon"


@dataclass(frozen=True)
class ReflexTarget:
    """Target on screen; x and y are normalized to the play area."""

    id: int
    shape: TargetShape
    x: float
    y: float
    spawned_at: float
    expires_at: float


class ReflexRound(RoundEngine):
    game_kind = GameKind.REFLEX

    def __init__(self, level: Level, clock: GameClock, rng: random.Random | None = None) -> None:
        super().__init__(level, clock, rng)
        self.rounds_completed = 0
        self.missed = 0
        self.target: ReflexTarget | None = None
        self._next_target_id = 0
        self._expiry: Cancelable | None = None

    @property
    def display_time(self) -> float:
        return max(MIN_DISPLAY_TIME, BASE_DISPLAY_TIME[self.difficulty] - DISPLAY_TIME_STEP * self.rounds_completed)

    @property
    def spawn_interval(self) -> float:
        return SPAWN_INTERVAL[self.difficulty]

    @property
    def points_per_hit(self) -> int:
        return BASE_POINTS + math.floor(10 * self.difficulty.score_multiplier)

    @property
    def lives_remaining(self) -> int:
        return MAX_MISSES - self.missed

    def tap(self, target_id: int) -> bool:
        """Tap a target; return whether it was a hit."""
        if not self._accepts_input() or self.target is None or self.target.id != target_id:
            return False
        self._cancel_timer(self._expiry)
        self._expiry = None
        self.target = None
        self._add_score(self.points_per_hit)
        self.rounds_completed += 1
        self._notify()
        if self.rounds_completed >= TOTAL_ROUNDS:
            self._resolve(self.missed < MAX_MISSES)
        else:
            self._schedule(self.spawn_interval * 0.5, self._spawn_next)
        return True

    def _on_active(self) -> None:
        self._spawn_next()

    def _spawn_next(self) -> None:
        if self.rounds_completed >= TOTAL_ROUNDS:
            self._resolve(self.missed < MAX_MISSES)
            return
        self._next_target_id += 1
        now = self.clock.now()
        lifetime = self.display_time
        target = ReflexTarget(
            id=self._next_target_id,
            shape=self.rng.choice(list(TargetShape)),
            x=self.rng.random(),
            y=self.rng.random(),
            spawned_at=now,
            expires_at=now + lifetime,
        )
        self.target = target
        self._expiry = self._schedule(lifetime, lambda: self._expire(target.id))
        self._notify()

    def _expire(self, target_id: int) -> None:
        if self.target is None or self.target.id != target_id:
            return
        self.target = None
        self._expiry = None
        self.missed += 1
        self._notify()
        if self.missed >= MAX_MISSES:
            self._resolve(False)
            return
        self.rounds_completed += 1
        self._schedule(MISS_RESPAWN_DELAY, self._spawn_next)
