"""Balance round: stack sliding tiles on top of each other."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from .clock import GameClock
from .models import Difficulty, GameKind, Level
from .round_engine import RoundEngine

TARGET_HEIGHT = 8
MAX_FAILURES = 3
BASE_TILE_WIDTH = 80.0
MIN_TILE_WIDTH = 20.0
TRAVEL = 150.0
MIN_TILE_SPEED = 0.6
TILE_SPEED_STEP = 0.08
PLACE_DELAY = 0.3
FAIL_DELAY = 0.5
BASE_POINTS = 15

BASE_SPEED = {
    Difficulty.EASY: 2.5,
    Difficulty.NORMAL: 1.8,
    Difficulty.HARD: 1.2,
}
TOLERANCE = {
    Difficulty.EASY: 30.0,
    Difficulty.NORMAL: 20.0,
    Difficulty.HARD: 12.0,
}


@dataclass(frozen=True)
class PlacedTile:
    x: float
    level: int
    width: float


@dataclass(frozen=True)
class MovingTile:
    """Tile sweeping between -TRAVEL and +TRAVEL; one sweep lasts ``sweep_time``."""

    width: float
    spawned_at: float
    sweep_time: float

    def offset_at(self, now: float) -> float:
        elapsed = max(0.0, now - self.spawned_at)
        position = (elapsed / self.sweep_time) % 2.0
        if position <= 1.0:
            return -TRAVEL + 2 * TRAVEL * position
        return TRAVEL - 2 * TRAVEL * (position - 1.0)


class BalanceRound(RoundEngine):
    game_kind = GameKind.BALANCE

    def __init__(self, level: Level, clock: GameClock, rng: random.Random | None = None) -> None:
        super().__init__(level, clock, rng)
        self.current_height = 0
        self.failed_placements = 0
        self.tiles: list[PlacedTile] = []
        self.moving: MovingTile | None = None

    @property
    def tile_speed(self) -> float:
        return max(MIN_TILE_SPEED, BASE_SPEED[self.difficulty] - TILE_SPEED_STEP * self.current_height)

    @property
    def tolerance(self) -> float:
        return TOLERANCE[self.difficulty]

    @property
    def lives_remaining(self) -> int:
        return MAX_FAILURES - self.failed_placements

    @property
    def last_tile_x(self) -> float | None:
        return self.tiles[-1].x if self.tiles else None

    @property
    def last_tile_width(self) -> float:
        return self.tiles[-1].width if self.tiles else BASE_TILE_WIDTH

    def current_offset(self) -> float | None:
        """Horizontal offset of the moving tile right now, or None between tiles."""
        if self.moving is None:
            return None
        return self.moving.offset_at(self.clock.now())

    def place(self) -> bool:
        """Drop the moving tile where it currently is."""
        offset = self.current_offset()
        if offset is None:
            return False
        return self.place_at(offset)

    def place_at(self, offset: float) -> bool:
        """Drop the moving tile at ``offset``; return whether it aligned."""
        if not self._accepts_input() or self.moving is None:
            return False
        moving = self.moving
        self.moving = None

        tolerance = self.tolerance
        if not self.tiles:
            aligned = True
            diff = 0.0
            width = moving.width
        else:
            diff = abs(offset - self.tiles[-1].x)
            aligned = diff <= tolerance
            width = max(MIN_TILE_WIDTH, moving.width - max(0.0, diff - tolerance / 2))

        if not aligned:
            self.failed_placements += 1
            self._notify()
            if self.failed_placements >= MAX_FAILURES:
                self._resolve(False)
            else:
                self._schedule(FAIL_DELAY, self._spawn_tile)
            return False

        self.tiles.append(PlacedTile(x=offset, level=self.current_height, width=width))
        self.current_height += 1
        precision_bonus = max(0, math.floor(tolerance - diff))
        self._add_score(BASE_POINTS + math.floor(5 * self.difficulty.score_multiplier) + precision_bonus)
        self._notify()
        if self.current_height >= TARGET_HEIGHT:
            self._resolve(True)
        else:
            self._schedule(PLACE_DELAY, self._spawn_tile)
        return True

    def _on_active(self) -> None:
        self._spawn_tile()

    def _spawn_tile(self) -> None:
        self.moving = MovingTile(width=self.last_tile_width, spawned_at=self.clock.now(), sweep_time=self.tile_speed)
        self._notify()
