"""Core domain models for pathways, levels, badges, and milestones."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

LEVELS_PER_DIFFICULTY = 3


class GameKind(Enum):
    """Mini-game kinds in pathway unlock order."""

    REFLEX = "reflex"
    BALANCE = "balance"
    PATTERN = "pattern"

    @property
    def title(self) -> str:
        return _GAME_KIND_INFO[self][0]

    @property
    def pathway_name(self) -> str:
        return _GAME_KIND_INFO[self][1]

    @property
    def description(self) -> str:
        return _GAME_KIND_INFO[self][2]

    @property
    def icon(self) -> str:
        return _GAME_KIND_INFO[self][3]


_GAME_KIND_INFO: dict[GameKind, tuple[str, str, str, str]] = {
    GameKind.REFLEX: (
        "Path of Reflex",
        "Reflex Pathway",
        "Tap the highlighted shapes before they vanish",
        "bolt.fill",
    ),
    GameKind.BALANCE: (
        "Balanced Steps",
        "Balance Pathway",
        "Time your taps to build a stable pathway",
        "square.stack.3d.up.fill",
    ),
    GameKind.PATTERN: (
        "Pattern Trails",
        "Pattern Pathway",
        "Reproduce the light sequence as it grows",
        "sparkles",
    ),
}


class Difficulty(Enum):
    """Difficulty band with scoring and pacing factors."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    @property
    def score_multiplier(self) -> float:
        return _DIFFICULTY_FACTORS[self][0]

    @property
    def speed_factor(self) -> float:
        return _DIFFICULTY_FACTORS[self][1]


_DIFFICULTY_FACTORS: dict[Difficulty, tuple[float, float]] = {
    Difficulty.EASY: (1.0, 1.0),
    Difficulty.NORMAL: (1.5, 0.75),
    Difficulty.HARD: (2.0, 0.5),
}


class BadgeKind(Enum):
    """Achievements a profile can earn once."""

    FIRST_STEP = "firstStep"
    REFLEX_MASTER = "reflexMaster"
    BALANCE_EXPERT = "balanceExpert"
    PATTERN_GURU = "patternGuru"
    FIVE_LEVELS = "fiveLevels"
    TEN_LEVELS = "tenLevels"
    ALL_EASY = "allEasy"
    ALL_NORMAL = "allNormal"
    ALL_HARD = "allHard"
    PATHWAY_COMPLETE = "pathwayComplete"
    ALL_PATHWAYS = "allPathways"
    STREAK_FIVE = "streakFive"
    STREAK_TEN = "streakTen"

    @property
    def title(self) -> str:
        return _BADGE_INFO[self][0]

    @property
    def description(self) -> str:
        return _BADGE_INFO[self][1]

    @property
    def icon(self) -> str:
        return _BADGE_INFO[self][2]


_BADGE_INFO: dict[BadgeKind, tuple[str, str, str]] = {
    BadgeKind.FIRST_STEP: ("First Step", "Complete your first level", "star.fill"),
    BadgeKind.REFLEX_MASTER: ("Reflex Master", "Complete all Reflex levels", "bolt.circle.fill"),
    BadgeKind.BALANCE_EXPERT: ("Balance Expert", "Complete all Balance levels", "scalemass.fill"),
    BadgeKind.PATTERN_GURU: ("Pattern Guru", "Complete all Pattern levels", "sparkles"),
    BadgeKind.FIVE_LEVELS: ("Persistent", "Complete 5 levels total", "5.circle.fill"),
    BadgeKind.TEN_LEVELS: ("Dedicated", "Complete 10 levels total", "10.circle.fill"),
    BadgeKind.ALL_EASY: ("Easy Champion", "Complete all Easy levels", "leaf.fill"),
    BadgeKind.ALL_NORMAL: ("Normal Champion", "Complete all Normal levels", "flame.fill"),
    BadgeKind.ALL_HARD: ("Hard Champion", "Complete all Hard levels", "crown.fill"),
    BadgeKind.PATHWAY_COMPLETE: ("Pathway Pioneer", "Complete an entire pathway", "flag.fill"),
    BadgeKind.ALL_PATHWAYS: ("Grand Master", "Complete all pathways", "trophy.fill"),
    BadgeKind.STREAK_FIVE: ("Hot Streak", "Win 5 levels in a row", "bolt.heart.fill"),
    BadgeKind.STREAK_TEN: ("Unstoppable", "Win 10 levels in a row", "bolt.shield.fill"),
}

# (id, title, requirement) in display order.
MILESTONE_DEFINITIONS: tuple[tuple[str, str, int], ...] = (
    ("levels_5", "Complete 5 Levels", 5),
    ("levels_10", "Complete 10 Levels", 10),
    ("levels_20", "Complete 20 Levels", 20),
    ("pathways_1", "Complete 1 Pathway", 1),
    ("pathways_all", "Complete All Pathways", 3),
)


@dataclass
class Level:
    """One playable slot within a pathway."""

    id: int
    game_kind: GameKind
    difficulty: Difficulty
    is_completed: bool = False
    best_score: int = 0

    @property
    def display_number(self) -> int:
        """Position of the level inside its difficulty band, starting at 1."""
        return (self.id - 1) % LEVELS_PER_DIFFICULTY + 1


@dataclass
class Pathway:
    """Track of nine levels for one game kind."""

    game_kind: GameKind
    levels: list[Level]
    is_unlocked: bool = False

    @classmethod
    def create(cls, game_kind: GameKind, is_unlocked: bool = False) -> Pathway:
        """Build a pathway with levels numbered sequentially across difficulties."""
        levels: list[Level] = []
        level_id = 0
        for difficulty in Difficulty:
            for _ in range(LEVELS_PER_DIFFICULTY):
                level_id += 1
                levels.append(Level(id=level_id, game_kind=game_kind, difficulty=difficulty))
        return cls(game_kind=game_kind, levels=levels, is_unlocked=is_unlocked)

    @property
    def completed_count(self) -> int:
        return sum(1 for level in self.levels if level.is_completed)

    @property
    def progress(self) -> float:
        if not self.levels:
            return 0.0
        return self.completed_count / len(self.levels)

    @property
    def is_completed(self) -> bool:
        return all(level.is_completed for level in self.levels)

    def level(self, level_id: int) -> Level | None:
        """Return one level by id."""
        for level in self.levels:
            if level.id == level_id:
                return level
        return None

    def levels_for(self, difficulty: Difficulty) -> list[Level]:
        """Return levels of one difficulty in play order."""
        return [level for level in self.levels if level.difficulty is difficulty]


@dataclass
class Badge:
    """Earn state for one badge kind."""

    kind: BadgeKind
    is_earned: bool = False
    earned_at: datetime | None = None


@dataclass
class Milestone:
    """Aggregate goal whose progress is recomputed from snapshot totals."""

    id: str
    title: str
    requirement: int
    current_progress: int = 0

    @property
    def is_completed(self) -> bool:
        return self.current_progress >= self.requirement

    @property
    def progress(self) -> float:
        if self.requirement <= 0:
            return 0.0
        return min(1.0, self.current_progress / self.requirement)


def _default_pathways() -> list[Pathway]:
    return [Pathway.create(kind, is_unlocked=index == 0) for index, kind in enumerate(GameKind)]


def _default_badges() -> list[Badge]:
    return [Badge(kind=kind) for kind in BadgeKind]


def _default_milestones() -> list[Milestone]:
    return [
        Milestone(id=milestone_id, title=title, requirement=requirement)
        for milestone_id, title, requirement in MILESTONE_DEFINITIONS
    ]


@dataclass
class ProgressSnapshot:
    """Root aggregate of everything persisted for the local profile."""

    has_onboarded: bool = False
    pathways: list[Pathway] = field(default_factory=_default_pathways)
    badges: list[Badge] = field(default_factory=_default_badges)
    milestones: list[Milestone] = field(default_factory=_default_milestones)
    total_levels_completed: int = 0
    current_streak: int = 0
    best_streak: int = 0
    pathways_unlocked_count: int = 1

    @property
    def earned_badges_count(self) -> int:
        return sum(1 for badge in self.badges if badge.is_earned)

    @property
    def completed_pathways_count(self) -> int:
        return sum(1 for pathway in self.pathways if pathway.is_completed)

    def pathway(self, game_kind: GameKind) -> Pathway | None:
        """Return the pathway for a game kind."""
        for pathway in self.pathways:
            if pathway.game_kind is game_kind:
                return pathway
        return None

    def level(self, game_kind: GameKind, level_id: int) -> Level | None:
        """Return one level by game kind and id."""
        pathway = self.pathway(game_kind)
        if pathway is None:
            return None
        return pathway.level(level_id)

    def badge(self, kind: BadgeKind) -> Badge | None:
        """Return the badge record for a kind."""
        for badge in self.badges:
            if badge.kind is kind:
                return badge
        return None

    def milestone(self, milestone_id: str) -> Milestone | None:
        """Return one milestone by id."""
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None


def new_snapshot() -> ProgressSnapshot:
    """Return a fresh default snapshot with only the first pathway unlocked."""
    return ProgressSnapshot()
