"""JSON encoding of progress snapshots."""

from __future__ import annotations

import json
from datetime import datetime
from typing import TypeVar, cast

from .models import (
    LEVELS_PER_DIFFICULTY,
    MILESTONE_DEFINITIONS,
    Badge,
    BadgeKind,
    Difficulty,
    GameKind,
    Level,
    Milestone,
    Pathway,
    ProgressSnapshot,
)

FORMAT_VERSION = 1

EnumT = TypeVar("EnumT", GameKind, Difficulty, BadgeKind)


class SnapshotDecodeError(ValueError):
    """Raised when stored bytes do not describe a valid snapshot."""


def serialize(snapshot: ProgressSnapshot) -> bytes:
    """Encode a snapshot as UTF-8 JSON."""
    payload = {
        "formatVersion": FORMAT_VERSION,
        "hasOnboarded": snapshot.has_onboarded,
        "pathways": [
            {
                "gameKind": pathway.game_kind.value,
                "isUnlocked": pathway.is_unlocked,
                "levels": [
                    {
                        "id": level.id,
                        "gameKind": level.game_kind.value,
                        "difficulty": level.difficulty.value,
                        "isCompleted": level.is_completed,
                        "bestScore": level.best_score,
                    }
                    for level in pathway.levels
                ],
            }
            for pathway in snapshot.pathways
        ],
        "badges": [
            {
                "kind": badge.kind.value,
                "isEarned": badge.is_earned,
                "earnedAt": badge.earned_at.isoformat() if badge.earned_at is not None else None,
            }
            for badge in snapshot.badges
        ],
        "milestones": [
            {
                "id": milestone.id,
                "title": milestone.title,
                "requirement": milestone.requirement,
                "currentProgress": milestone.current_progress,
            }
            for milestone in snapshot.milestones
        ],
        "totalLevelsCompleted": snapshot.total_levels_completed,
        "currentStreak": snapshot.current_streak,
        "bestStreak": snapshot.best_streak,
        "pathwaysUnlockedCount": snapshot.pathways_unlocked_count,
    }
    return json.dumps(payload, indent=2).encode("utf-8")


def deserialize(data: bytes) -> ProgressSnapshot:
    """Decode bytes produced by ``serialize``.

    Raises SnapshotDecodeError for malformed JSON, unexpected shapes, unknown
    enum values, catalog entries that are missing or out of order, or a format
    version newer than this build understands.
    """
    try:
        raw_obj: object = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {exc}") from exc
    raw = _require_dict(raw_obj, "snapshot")

    format_version = _require_int(raw.get("formatVersion", 0), "formatVersion")
    if format_version > FORMAT_VERSION:
        raise SnapshotDecodeError(
            f"Snapshot format version {format_version} is newer than supported {FORMAT_VERSION}."
        )

    pathways = [_pathway_from_dict(item) for item in _require_list(raw.get("pathways"), "pathways")]
    if [pathway.game_kind for pathway in pathways] != list(GameKind):
        raise SnapshotDecodeError("Snapshot pathways must list every game kind once, in order.")

    badges = [_badge_from_dict(item) for item in _require_list(raw.get("badges"), "badges")]
    if sorted(badge.kind.value for badge in badges) != sorted(kind.value for kind in BadgeKind):
        raise SnapshotDecodeError("Snapshot badges must cover every badge kind once.")

    milestones = [_milestone_from_dict(item) for item in _require_list(raw.get("milestones"), "milestones")]
    if [milestone.id for milestone in milestones] != [definition[0] for definition in MILESTONE_DEFINITIONS]:
        raise SnapshotDecodeError("Snapshot milestones must list every milestone once, in order.")

    return ProgressSnapshot(
        has_onboarded=_require_bool(raw.get("hasOnboarded", False), "hasOnboarded"),
        pathways=pathways,
        badges=badges,
        milestones=milestones,
        total_levels_completed=_require_int(raw.get("totalLevelsCompleted", 0), "totalLevelsCompleted"),
        current_streak=_require_int(raw.get("currentStreak", 0), "currentStreak"),
        best_streak=_require_int(raw.get("bestStreak", 0), "bestStreak"),
        pathways_unlocked_count=_require_int(raw.get("pathwaysUnlockedCount", 1), "pathwaysUnlockedCount"),
    )


def _pathway_from_dict(raw_obj: object) -> Pathway:
    raw = _require_dict(raw_obj, "pathway")
    game_kind = _enum_value(GameKind, raw.get("gameKind"), "pathway.gameKind")
    levels = [_level_from_dict(item) for item in _require_list(raw.get("levels"), "pathway.levels")]
    if len(levels) != LEVELS_PER_DIFFICULTY * len(Difficulty):
        raise SnapshotDecodeError(f"Pathway '{game_kind.value}' has {len(levels)} levels.")
    if any(level.game_kind is not game_kind for level in levels):
        raise SnapshotDecodeError(f"Pathway '{game_kind.value}' contains levels of another game kind.")
    expected = [(level.id, level.difficulty) for level in Pathway.create(game_kind).levels]
    if [(level.id, level.difficulty) for level in levels] != expected:
        raise SnapshotDecodeError(f"Pathway '{game_kind.value}' levels are out of order.")
    return Pathway(
        game_kind=game_kind,
        levels=levels,
        is_unlocked=_require_bool(raw.get("isUnlocked", False), "pathway.isUnlocked"),
    )


def _level_from_dict(raw_obj: object) -> Level:
    raw = _require_dict(raw_obj, "level")
    best_score = _require_int(raw.get("bestScore", 0), "level.bestScore")
    return Level(
        id=_require_int(raw.get("id"), "level.id"),
        game_kind=_enum_value(GameKind, raw.get("gameKind"), "level.gameKind"),
        difficulty=_enum_value(Difficulty, raw.get("difficulty"), "level.difficulty"),
        is_completed=_require_bool(raw.get("isCompleted", False), "level.isCompleted"),
        best_score=max(0, best_score),
    )


def _badge_from_dict(raw_obj: object) -> Badge:
    raw = _require_dict(raw_obj, "badge")
    earned_at_raw = raw.get("earnedAt")
    earned_at: datetime | None = None
    if earned_at_raw is not None:
        if not isinstance(earned_at_raw, str):
            raise SnapshotDecodeError("badge.earnedAt must be an ISO timestamp or null.")
        try:
            earned_at = datetime.fromisoformat(earned_at_raw)
        except ValueError as exc:
            raise SnapshotDecodeError(f"badge.earnedAt is not a timestamp: {earned_at_raw!r}") from exc
    kind = _enum_value(BadgeKind, raw.get("kind"), "badge.kind")
    is_earned = _require_bool(raw.get("isEarned", False), "badge.isEarned")
    if is_earned != (earned_at is not None):
        raise SnapshotDecodeError(f"Badge '{kind.value}' must have earnedAt exactly when it is earned.")
    return Badge(kind=kind, is_earned=is_earned, earned_at=earned_at)


def _milestone_from_dict(raw_obj: object) -> Milestone:
    raw = _require_dict(raw_obj, "milestone")
    milestone_id = raw.get("id")
    title = raw.get("title")
    if not isinstance(milestone_id, str) or not isinstance(title, str):
        raise SnapshotDecodeError("milestone.id and milestone.title must be strings.")
    return Milestone(
        id=milestone_id,
        title=title,
        requirement=_require_int(raw.get("requirement"), "milestone.requirement"),
        current_progress=_require_int(raw.get("currentProgress", 0), "milestone.currentProgress"),
    )


def _require_dict(value: object, name: str) -> dict[str, object]:
    if not isinstance(value, dict):
        raise SnapshotDecodeError(f"{name} must be a JSON object.")
    return cast(dict[str, object], value)


def _require_list(value: object, name: str) -> list[object]:
    if not isinstance(value, list):
        raise SnapshotDecodeError(f"{name} must be a JSON array.")
    return cast(list[object], value)


def _require_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotDecodeError(f"{name} must be an integer.")
    return value


def _require_bool(value: object, name: str) -> bool:
    if not isinstance(value, bool):
        raise SnapshotDecodeError(f"{name} must be a boolean.")
    return value


def _enum_value(enum_type: type[EnumT], value: object, name: str) -> EnumT:
    try:
        return enum_type(value)
    except (TypeError, ValueError) as exc:
        raise SnapshotDecodeError(f"{name} has unknown value {value!r}.") from exc
