"""Shared round lifecycle: countdown, active play, resolution."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

import structlog

from .clock import Cancelable, GameClock
from .events import EventEmitter
from .models import Difficulty, GameKind, Level

logger = structlog.get_logger(__name__)

COUNTDOWN_TICKS = 3
COUNTDOWN_TICK_SECONDS = 1.0


class Phase(Enum):
    """Lifecycle phase of a round."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    ACTIVE = "active"
    RESOLVING = "resolving"
    TERMINAL = "terminal"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RoundResult:
    """Final outcome of one level attempt."""

    game_kind: GameKind
    level_id: int
    difficulty: Difficulty
    won: bool
    final_score: int


class RoundEngine(ABC):
    """State machine for one level attempt of a mini-game.

    Subclasses implement ``_on_active`` and their own input handlers. All
    delayed work goes through ``_schedule`` so a single token bump in
    ``_invalidate_timers`` makes every pending callback inert.

    Events emitted on ``self.events``:
    - ``countdown`` (ticks remaining)
    - ``phase`` (new Phase)
    - ``score`` (new total)
    - ``changed`` (no args; any observable field moved)
    - ``finished`` (RoundResult)
    """

    game_kind: ClassVar[GameKind]

    def __init__(self, level: Level, clock: GameClock, rng: random.Random | None = None) -> None:
        if level.game_kind is not self.game_kind:
            raise ValueError(f"{type(self).__name__} cannot run a {level.game_kind.value} level.")
        self.level = level
        self.difficulty = level.difficulty
        self.clock = clock
        self.rng = rng if rng is not None else random.Random()
        self.events = EventEmitter()
        self.phase = Phase.IDLE
        self.countdown = COUNTDOWN_TICKS
        self.score = 0
        self.result: RoundResult | None = None
        self._token = 0
        self._pending: set[Cancelable] = set()

    @property
    def is_finished(self) -> bool:
        return self.phase in (Phase.TERMINAL, Phase.CANCELLED)

    @property
    @abstractmethod
    def lives_remaining(self) -> int:
        """Lives left before the round is lost."""

    def start(self) -> None:
        """Begin the countdown."""
        if self.phase is not Phase.IDLE:
            raise RuntimeError("Round has already been started.")
        self._set_phase(Phase.COUNTDOWN)
        self.events.emit("countdown", self.countdown)
        self._schedule(COUNTDOWN_TICK_SECONDS, self._countdown_tick)

    def cancel(self) -> None:
        """Dismiss the round; pending timers are dropped and no result is produced."""
        if self.is_finished:
            return
        self._invalidate_timers()
        logger.debug("Round cancelled", game_kind=self.game_kind.value, level_id=self.level.id, score=self.score)
        self._set_phase(Phase.CANCELLED)

    def _countdown_tick(self) -> None:
        if self.countdown > 1:
            self.countdown -= 1
            self.events.emit("countdown", self.countdown)
            self._schedule(COUNTDOWN_TICK_SECONDS, self._countdown_tick)
            return
        self.countdown = 0
        self._set_phase(Phase.ACTIVE)
        self._on_active()

    @abstractmethod
    def _on_active(self) -> None:
        """Begin play once the countdown ends."""

    def _accepts_input(self) -> bool:
        return self.phase is Phase.ACTIVE

    def _schedule(self, delay: float, action: Callable[[], None]) -> Cancelable:
        """Schedule ``action`` guarded by the current timer token."""
        token = self._token
        handle: Cancelable | None = None

        def fire() -> None:
            if handle is not None:
                self._pending.discard(handle)
            if token != self._token or self.is_finished:
                logger.debug("Stale round timer ignored", game_kind=self.game_kind.value, level_id=self.level.id)
                return
            action()

        handle = self.clock.schedule_after(delay, fire)
        self._pending.add(handle)
        return handle

    def _cancel_timer(self, handle: Cancelable | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._pending.discard(handle)

    def _invalidate_timers(self) -> None:
        self._token += 1
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()

    def _add_score(self, points: int) -> None:
        self.score += points
        self.events.emit("score", self.score)

    def _notify(self) -> None:
        self.events.emit("changed")

    def _set_phase(self, phase: Phase) -> None:
        self.phase = phase
        self.events.emit("phase", phase)
        self._notify()

    def _resolve(self, won: bool) -> None:
        if self.phase is not Phase.ACTIVE:
            return
        self._invalidate_timers()
        self._set_phase(Phase.RESOLVING)
        self.result = RoundResult(
            game_kind=self.game_kind,
            level_id=self.level.id,
            difficulty=self.difficulty,
            won=won,
            final_score=self.score,
        )
        logger.info(
            "Round finished",
            game_kind=self.game_kind.value,
            level_id=self.level.id,
            won=won,
            score=self.score,
        )
        self._set_phase(Phase.TERMINAL)
        self.events.emit("finished", self.result)
