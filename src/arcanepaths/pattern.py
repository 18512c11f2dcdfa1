"""Pattern round: watch a light sequence on a 3x3 grid, then repeat it."""

from __future__ import annotations

import math
import random
from enum import Enum

from .clock import GameClock
from .models import Difficulty, GameKind, Level
from .round_engine import RoundEngine

GRID_SIZE = 3
CELL_COUNT = GRID_SIZE * GRID_SIZE
MAX_ROUNDS = 5
MAX_MISTAKES = 2
WATCH_DELAY = 1.0
SHOW_FRACTION = 0.7
HIDE_FRACTION = 0.3
INPUT_DELAY = 0.5
ROUND_CLEAR_DELAY = 1.0
MISTAKE_DELAY = 0.5
RETRY_DELAY = 0.5

BASE_LENGTH = {
    Difficulty.EASY: 3,
    Difficulty.NORMAL: 4,
    Difficulty.HARD: 5,
}
DISPLAY_SPEED = {
    Difficulty.EASY: 0.8,
    Difficulty.NORMAL: 0.6,
    Difficulty.HARD: 0.45,
}


class PatternStage(Enum):
    WATCH = "watch"
    SHOWING = "showing"
    INPUT = "input"
    FEEDBACK = "feedback"


def generate_pattern(length: int, rng: random.Random, cell_count: int = CELL_COUNT) -> list[int]:
    """Random cell sequence in which no cell repeats back to back."""
    pattern: list[int] = []
    for _ in range(length):
        cell = rng.randrange(cell_count)
        while pattern and pattern[-1] == cell:
            cell = rng.randrange(cell_count)
        pattern.append(cell)
    return pattern


class PatternRound(RoundEngine):
    game_kind = GameKind.PATTERN

    def __init__(self, level: Level, clock: GameClock, rng: random.Random | None = None) -> None:
        super().__init__(level, clock, rng)
        self.pattern: list[int] = []
        self.player_input: list[int] = []
        self.current_round = 1
        self.mistakes = 0
        self.stage: PatternStage | None = None
        self.highlighted: int | None = None
        self._show_index = 0

    @property
    def pattern_length(self) -> int:
        return BASE_LENGTH[self.difficulty] + self.current_round - 1

    @property
    def display_speed(self) -> float:
        return DISPLAY_SPEED[self.difficulty]

    @property
    def lives_remaining(self) -> int:
        return MAX_MISTAKES - self.mistakes

    @property
    def is_input_enabled(self) -> bool:
        return self._accepts_input() and self.stage is PatternStage.INPUT

    def tap(self, cell: int) -> bool:
        """Tap a grid cell; return whether it matched the next step of the sequence."""
        if not self.is_input_enabled or not 0 <= cell < CELL_COUNT:
            return False
        self.player_input.append(cell)
        expected = self.pattern[len(self.player_input) - 1]
        if cell != expected:
            self.mistakes += 1
            self.stage = PatternStage.FEEDBACK
            self.highlighted = cell
            self._notify()
            self._schedule(MISTAKE_DELAY, self._after_mistake)
            return False

        self._add_score(5 + math.floor(3 * self.difficulty.score_multiplier))
        if len(self.player_input) == len(self.pattern):
            self.stage = PatternStage.FEEDBACK
            self._add_score(20 + 5 * self.current_round)
            self._schedule(ROUND_CLEAR_DELAY, self._finish_round)
        self._notify()
        return True

    def _on_active(self) -> None:
        self._start_new_round()

    def _start_new_round(self) -> None:
        self.player_input = []
        self.pattern = generate_pattern(self.pattern_length, self.rng)
        self.stage = PatternStage.WATCH
        self.highlighted = None
        self._show_index = 0
        self._notify()
        self._schedule(WATCH_DELAY, self._show_cell)

    def _show_cell(self) -> None:
        if self._show_index >= len(self.pattern):
            self.highlighted = None
            self._notify()
            self._schedule(INPUT_DELAY, self._open_input)
            return
        self.stage = PatternStage.SHOWING
        self.highlighted = self.pattern[self._show_index]
        self._notify()
        self._schedule(self.display_speed * SHOW_FRACTION, self._hide_cell)

    def _hide_cell(self) -> None:
        self.highlighted = None
        self._notify()
        self._show_index += 1
        self._schedule(self.display_speed * HIDE_FRACTION, self._show_cell)

    def _open_input(self) -> None:
        self.stage = PatternStage.INPUT
        self._notify()

    def _finish_round(self) -> None:
        if self.current_round >= MAX_ROUNDS:
            self._resolve(True)
            return
        self.current_round += 1
        self._start_new_round()

    def _after_mistake(self) -> None:
        self.highlighted = None
        self._notify()
        if self.mistakes >= MAX_MISTAKES:
            self._resolve(False)
            return
        self._schedule(RETRY_DELAY, self._start_new_round)
