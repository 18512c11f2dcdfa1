"""Progress engine: applies level results to the snapshot and persists it."""

from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from .codec import SnapshotDecodeError, deserialize, serialize
from .events import EventEmitter
from .models import Badge, BadgeKind, Difficulty, GameKind, Level, Pathway, ProgressSnapshot, new_snapshot
from .rewards import evaluate_badges, propagate_unlocks, recompute_milestones, reconcile
from .storage import PersistenceAdapter

logger = structlog.get_logger(__name__)

Now = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ProgressEngine:
    """Single owner of the profile snapshot.

    Each mutating call works on a private copy and installs it with one
    assignment, so ``snapshot`` only ever shows the state before or after a
    call. Saving happens after the swap and never raises.

    Events emitted on ``self.events``:
    - ``changed`` (committed ProgressSnapshot)
    - ``badges_awarded`` (list of BadgeKind, only when non-empty)
    - ``pathways_unlocked`` (list of GameKind, only when non-empty)
    """

    def __init__(self, persistence: PersistenceAdapter, now: Now | None = None) -> None:
        self._persistence = persistence
        self._now = now or _utc_now
        self.events = EventEmitter()
        self._snapshot = self._load()

    @property
    def snapshot(self) -> ProgressSnapshot:
        """Committed snapshot; treat as read-only."""
        return self._snapshot

    def complete_level(self, game_kind: GameKind, level_id: int, score: int) -> list[BadgeKind]:
        """Record a won level; return badges earned by this call."""
        working = copy.deepcopy(self._snapshot)
        level = working.level(game_kind, level_id)
        if level is None:
            logger.debug("Ignoring completion for unknown level", game_kind=game_kind.value, level_id=level_id)
            return []

        first_completion = not level.is_completed
        level.is_completed = True
        if score > level.best_score:
            level.best_score = score

        if first_completion:
            working.total_levels_completed += 1
            working.current_streak += 1
            if working.current_streak > working.best_streak:
                working.best_streak = working.current_streak

        unlocked = propagate_unlocks(working)
        recompute_milestones(working)
        awarded = evaluate_badges(working, self._now())

        logger.info(
            "Level completed",
            game_kind=game_kind.value,
            level_id=level_id,
            score=score,
            first_completion=first_completion,
            streak=working.current_streak,
        )
        self._commit(working)
        if unlocked:
            logger.info("Pathways unlocked", pathways=[kind.value for kind in unlocked])
            self.events.emit("pathways_unlocked", unlocked)
        if awarded:
            logger.info("Badges awarded", badges=[kind.value for kind in awarded])
            self.events.emit("badges_awarded", awarded)
        return awarded

    def fail_level(self) -> None:
        """Break the current streak."""
        working = copy.deepcopy(self._snapshot)
        working.current_streak = 0
        logger.info("Level failed", best_streak=working.best_streak)
        self._commit(working)

    def complete_onboarding(self) -> None:
        working = copy.deepcopy(self._snapshot)
        working.has_onboarded = True
        self._commit(working)

    def reset_progress(self) -> None:
        """Wipe all progress; onboarding stays marked as done."""
        working = new_snapshot()
        working.has_onboarded = True
        logger.info("Progress reset")
        self._commit(working)

    def unlocked_pathways(self) -> list[Pathway]:
        return [pathway for pathway in self._snapshot.pathways if pathway.is_unlocked]

    def earned_badges(self) -> list[Badge]:
        return [badge for badge in self._snapshot.badges if badge.is_earned]

    def levels_for(self, game_kind: GameKind, difficulty: Difficulty) -> list[Level]:
        pathway = self._snapshot.pathway(game_kind)
        if pathway is None:
            return []
        return pathway.levels_for(difficulty)

    def save(self) -> bool:
        """Persist the committed snapshot; return whether the write succeeded."""
        try:
            self._persistence.save(serialize(self._snapshot))
        except Exception as exc:
            logger.error("Failed to save progress", error=str(exc))
            return False
        return True

    def _commit(self, working: ProgressSnapshot) -> None:
        self._snapshot = working
        self.save()
        self.events.emit("changed", working)

    def _load(self) -> ProgressSnapshot:
        try:
            data = self._persistence.load()
        except Exception as exc:
            logger.warning("Failed to read stored progress; starting fresh", error=str(exc))
            return new_snapshot()
        if data is None:
            return new_snapshot()
        try:
            snapshot = deserialize(data)
        except SnapshotDecodeError as exc:
            logger.warning("Stored progress is unreadable; starting fresh", error=str(exc))
            return new_snapshot()
        reconcile(snapshot)
        return snapshot
