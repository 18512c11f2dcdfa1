"""Unlock propagation, milestone recomputation, and badge rules over a snapshot."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from .models import BadgeKind, Difficulty, GameKind, ProgressSnapshot

BadgeRule = Callable[[ProgressSnapshot], bool]

LEVEL_MILESTONES = frozenset({"levels_5", "levels_10", "levels_20"})
PATHWAY_MILESTONES = frozenset({"pathways_1", "pathways_all"})


def propagate_unlocks(snapshot: ProgressSnapshot) -> list[GameKind]:
    """Unlock the successor of every completed pathway; return kinds newly unlocked.

    Running this again on the same snapshot changes nothing.
    """
    unlocked: list[GameKind] = []
    for index, pathway in enumerate(snapshot.pathways):
        if not pathway.is_completed or index + 1 >= len(snapshot.pathways):
            continue
        successor = snapshot.pathways[index + 1]
        if successor.is_unlocked:
            continue
        successor.is_unlocked = True
        snapshot.pathways_unlocked_count += 1
        unlocked.append(successor.game_kind)
    return unlocked


def recompute_milestones(snapshot: ProgressSnapshot) -> None:
    completed_pathways = snapshot.completed_pathways_count
    for milestone in snapshot.milestones:
        if milestone.id in LEVEL_MILESTONES:
            milestone.current_progress = snapshot.total_levels_completed
        elif milestone.id in PATHWAY_MILESTONES:
            milestone.current_progress = completed_pathways


def _pathway_completed(game_kind: GameKind) -> BadgeRule:
    def rule(snapshot: ProgressSnapshot) -> bool:
        pathway = snapshot.pathway(game_kind)
        return pathway is not None and pathway.is_completed

    return rule


def _difficulty_completed(difficulty: Difficulty) -> BadgeRule:
    def rule(snapshot: ProgressSnapshot) -> bool:
        return all(
            level.is_completed for pathway in snapshot.pathways for level in pathway.levels_for(difficulty)
        )

    return rule


BADGE_RULES: dict[BadgeKind, BadgeRule] = {
    BadgeKind.FIRST_STEP: lambda s: s.total_levels_completed >= 1,
    BadgeKind.REFLEX_MASTER: _pathway_completed(GameKind.REFLEX),
    BadgeKind.BALANCE_EXPERT: _pathway_completed(GameKind.BALANCE),
    BadgeKind.PATTERN_GURU: _pathway_completed(GameKind.PATTERN),
    BadgeKind.FIVE_LEVELS: lambda s: s.total_levels_completed >= 5,
    BadgeKind.TEN_LEVELS: lambda s: s.total_levels_completed >= 10,
    BadgeKind.ALL_EASY: _difficulty_completed(Difficulty.EASY),
    BadgeKind.ALL_NORMAL: _difficulty_completed(Difficulty.NORMAL),
    BadgeKind.ALL_HARD: _difficulty_completed(Difficulty.HARD),
    BadgeKind.PATHWAY_COMPLETE: lambda s: s.completed_pathways_count >= 1,
    BadgeKind.ALL_PATHWAYS: lambda s: s.completed_pathways_count >= len(GameKind),
    BadgeKind.STREAK_FIVE: lambda s: s.best_streak >= 5,
    BadgeKind.STREAK_TEN: lambda s: s.best_streak >= 10,
}


def qualifying_badges(snapshot: ProgressSnapshot) -> set[BadgeKind]:
    """Return every badge kind whose condition currently holds."""
    return {kind for kind, rule in BADGE_RULES.items() if rule(snapshot)}


def evaluate_badges(snapshot: ProgressSnapshot, now: datetime) -> list[BadgeKind]:
    """Award qualifying badges that are not yet earned; return the newly earned kinds.

    Earned badges are never touched, so ``earned_at`` keeps its first value.
    """
    qualifying = qualifying_badges(snapshot)
    awarded: list[BadgeKind] = []
    for badge in snapshot.badges:
        if badge.is_earned or badge.kind not in qualifying:
            continue
        badge.is_earned = True
        badge.earned_at = now
        awarded.append(badge.kind)
    return awarded


def reconcile(snapshot: ProgressSnapshot) -> None:
    """Restore derived state on a snapshot read back from storage.

    A pathway stays unlocked only while its predecessor is completed; the
    first one is always open.
    """
    for index, pathway in enumerate(snapshot.pathways):
        if index == 0:
            pathway.is_unlocked = True
        elif not snapshot.pathways[index - 1].is_completed:
            pathway.is_unlocked = False
    propagate_unlocks(snapshot)
    snapshot.total_levels_completed = sum(pathway.completed_count for pathway in snapshot.pathways)
    snapshot.pathways_unlocked_count = sum(1 for pathway in snapshot.pathways if pathway.is_unlocked)
    snapshot.best_streak = max(snapshot.best_streak, snapshot.current_streak)
    recompute_milestones(snapshot)
