"""Application service for pathways, rounds, and rewards."""

from __future__ import annotations

import copy
import random
from dataclasses import dataclass

import structlog

from .balance import BalanceRound
from .clock import GameClock, ManualClock
from .config import Settings, get_settings
from .logging_config import setup_logging
from .models import Badge, BadgeKind, GameKind, Level
from .pattern import PatternRound
from .progress import Now, ProgressEngine
from .reflex import ReflexRound
from .round_engine import RoundEngine, RoundResult
from .storage import DEFAULT_STORAGE_KEY, BlobStore, PersistenceAdapter, SqliteBlobStore

logger = structlog.get_logger(__name__)

ROUND_TYPES: dict[GameKind, type[RoundEngine]] = {
    GameKind.REFLEX: ReflexRound,
    GameKind.BALANCE: BalanceRound,
    GameKind.PATTERN: PatternRound,
}


def create_round(level: Level, clock: GameClock, rng: random.Random | None = None) -> RoundEngine:
    """Build the round engine matching a level's game kind."""
    return ROUND_TYPES[level.game_kind](level, clock, rng)


@dataclass(frozen=True)
class PathwaySummary:
    """Pathway state for display."""

    game_kind: GameKind
    name: str
    unlocked: bool
    completed_levels: int
    total_levels: int
    progress: float
    completed: bool


@dataclass(frozen=True)
class ProgressStats:
    """Headline totals for the stats screen."""

    total_levels_completed: int
    current_streak: int
    best_streak: int
    pathways_unlocked: int
    pathways_total: int
    badges_earned: int
    badges_total: int


class ArcadeService:
    """Coordinates the progress engine and the active round."""

    def __init__(
        self,
        store: BlobStore,
        *,
        clock: GameClock | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        rng: random.Random | None = None,
        now: Now | None = None,
    ) -> None:
        """Initialize service over a blob store."""
        self.store = store
        self.clock = clock if clock is not None else ManualClock()
        self.progress = ProgressEngine(PersistenceAdapter(store, storage_key), now=now)
        self.active_round: RoundEngine | None = None
        self.last_awarded: list[BadgeKind] = []
        self._rng = rng if rng is not None else random.Random()

    @classmethod
    def from_settings(cls, settings: Settings | None = None, *, clock: GameClock | None = None) -> ArcadeService:
        """Create a service backed by the SQLite store named in settings."""
        settings = settings or get_settings()
        setup_logging(settings)
        store = SqliteBlobStore(settings.database_path)
        return cls(store, clock=clock, storage_key=settings.storage_key)

    def start_round(self, game_kind: GameKind, level_id: int) -> RoundEngine:
        """Start a round for an unlocked level; any round in progress is dismissed."""
        pathway = self.progress.snapshot.pathway(game_kind)
        level = pathway.level(level_id) if pathway is not None else None
        if pathway is None or level is None:
            raise KeyError((game_kind, level_id))
        if not pathway.is_unlocked:
            raise ValueError(f"{game_kind.pathway_name} is locked.")

        self.dismiss_round()
        round_engine = create_round(copy.copy(level), self.clock, self._rng)
        round_engine.events.subscribe("finished", self._record_result)
        self.active_round = round_engine
        logger.info("Round started", game_kind=game_kind.value, level_id=level_id)
        round_engine.start()
        return round_engine

    def dismiss_round(self) -> None:
        """Abandon the active round without recording a result."""
        if self.active_round is None:
            return
        self.active_round.cancel()
        self.active_round = None

    def _record_result(self, result: RoundResult) -> None:
        self.active_round = None
        if result.won:
            self.last_awarded = self.progress.complete_level(result.game_kind, result.level_id, result.final_score)
        else:
            self.last_awarded = []
            self.progress.fail_level()

    def complete_onboarding(self) -> None:
        self.progress.complete_onboarding()

    def reset_progress(self) -> None:
        self.dismiss_round()
        self.progress.reset_progress()

    def list_pathways(self) -> list[PathwaySummary]:
        """Return pathway summaries in unlock order."""
        return [
            PathwaySummary(
                game_kind=pathway.game_kind,
                name=pathway.game_kind.pathway_name,
                unlocked=pathway.is_unlocked,
                completed_levels=pathway.completed_count,
                total_levels=len(pathway.levels),
                progress=pathway.progress,
                completed=pathway.is_completed,
            )
            for pathway in self.progress.snapshot.pathways
        ]

    def earned_badges(self) -> list[Badge]:
        return self.progress.earned_badges()

    def stats(self) -> ProgressStats:
        snapshot = self.progress.snapshot
        return ProgressStats(
            total_levels_completed=snapshot.total_levels_completed,
            current_streak=snapshot.current_streak,
            best_streak=snapshot.best_streak,
            pathways_unlocked=snapshot.pathways_unlocked_count,
            pathways_total=len(snapshot.pathways),
            badges_earned=snapshot.earned_badges_count,
            badges_total=len(snapshot.badges),
        )

    def close(self) -> None:
        """Dismiss any round and release the store."""
        self.dismiss_round()
        close = getattr(self.store, "close", None)
        if callable(close):
            close()
