from arcanepaths.models import (
    BadgeKind,
    Difficulty,
    GameKind,
    Milestone,
    Pathway,
    ProgressSnapshot,
    new_snapshot,
)


def test_difficulty_factors() -> None:
    assert [d.score_multiplier for d in Difficulty] == [1.0, 1.5, 2.0]
    assert [d.speed_factor for d in Difficulty] == [1.0, 0.75, 0.5]


def test_pathway_levels_are_numbered_across_difficulties() -> None:
    pathway = Pathway.create(GameKind.BALANCE)
    assert [level.id for level in pathway.levels] == list(range(1, 10))
    assert [level.difficulty for level in pathway.levels] == [Difficulty.EASY] * 3 + [Difficulty.NORMAL] * 3 + [
        Difficulty.HARD
    ] * 3
    assert all(level.game_kind is GameKind.BALANCE for level in pathway.levels)
    assert [level.display_number for level in pathway.levels_for(Difficulty.HARD)] == [1, 2, 3]
    assert pathway.is_unlocked is False


def test_pathway_derived_progress() -> None:
    pathway = Pathway.create(GameKind.REFLEX, is_unlocked=True)
    assert pathway.completed_count == 0
    assert pathway.progress == 0.0
    assert pathway.is_completed is False

    for level in pathway.levels[:3]:
        level.is_completed = True
    assert pathway.completed_count == 3
    assert pathway.progress == 3 / 9

    for level in pathway.levels:
        level.is_completed = True
    assert pathway.is_completed is True
    assert pathway.level(10) is None


def test_milestone_progress_is_clamped() -> None:
    milestone = Milestone(id="levels_5", title="Complete 5 Levels", requirement=5, current_progress=7)
    assert milestone.is_completed is True
    assert milestone.progress == 1.0
    assert Milestone(id="x", title="x", requirement=0).progress == 0.0


def test_new_snapshot_defaults() -> None:
    snapshot = new_snapshot()
    assert snapshot.has_onboarded is False
    assert [pathway.game_kind for pathway in snapshot.pathways] == list(GameKind)
    assert [pathway.is_unlocked for pathway in snapshot.pathways] == [True, False, False]
    assert snapshot.pathways_unlocked_count == 1
    assert len(snapshot.badges) == 13
    assert [badge.kind for badge in snapshot.badges] == list(BadgeKind)
    assert not any(badge.is_earned or badge.earned_at for badge in snapshot.badges)
    assert [m.id for m in snapshot.milestones] == ["levels_5", "levels_10", "levels_20", "pathways_1", "pathways_all"]
    assert [m.requirement for m in snapshot.milestones] == [5, 10, 20, 1, 3]
    assert snapshot == ProgressSnapshot()
    assert snapshot is not new_snapshot()


def test_snapshot_lookups() -> None:
    snapshot = new_snapshot()
    level = snapshot.level(GameKind.PATTERN, 7)
    assert level is not None
    assert level.difficulty is Difficulty.HARD
    assert snapshot.level(GameKind.PATTERN, 0) is None
    badge = snapshot.badge(BadgeKind.STREAK_TEN)
    assert badge is not None and badge.is_earned is False
    assert snapshot.milestone("missing") is None


def test_static_metadata() -> None:
    assert GameKind.REFLEX.pathway_name == "Reflex Pathway"
    assert GameKind.PATTERN.title == "Pattern Trails"
    assert BadgeKind.FIVE_LEVELS.title == "Persistent"
    assert BadgeKind.ALL_PATHWAYS.description == "Complete all pathways"
    assert all(kind.icon for kind in BadgeKind)
