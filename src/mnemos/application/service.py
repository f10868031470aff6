"""
Study Service: Application layer orchestrator.

Reads from the stores, runs the pure engine functions and writes results
back. All I/O happens strictly before or after the pure computation.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ulid import ULID

from mnemos.application.analysis.difficulty import adjust_difficulty, set_difficulty_level
from mnemos.application.analysis.learning_style import detect_learning_style
from mnemos.application.analysis.mistakes import (
    analyze_error_patterns,
    classify_mistake,
    derive_confusion_pairs,
    recent_mistakes,
)
from mnemos.application.analysis.performance import (
    analyze_category_performance,
    analyze_time_performance,
    time_of_day,
)
from mnemos.application.analysis.weak_spots import detect_weak_spots
from mnemos.application.config import EngineConfig
from mnemos.application.recommendations.planner import (
    SessionQueue,
    build_session_queue,
    generate_daily_recommendations,
    generate_session_composition,
)
from mnemos.application.scheduling.quality import quality_from_match
from mnemos.application.scheduling.sm2 import create_initial_progress
from mnemos.application.scheduling.smart import ScheduleContext, expected_answer, schedule_smart
from mnemos.application.utils.text import MatchResult, match_answer
from mnemos.domain.adaptive.models import (
    CategoryPerformance,
    DailyRecommendation,
    DifficultyProfile,
    LearningStyleProfile,
    ScheduleFactors,
    SessionComposition,
    SessionPerformanceRecord,
    TimePerformance,
    WeakSpot,
)
from mnemos.domain.cards.models import (
    CardProgress,
    ConfusionPair,
    Direction,
    ErrorPatternAnalysis,
    Flashcard,
    MistakeRecord,
    ProgressKey,
    StudyMode,
)
from mnemos.domain.ports import MistakeLog, ProgressStore, SessionLog

logger = logging.getLogger(__name__)


class CardNotFoundError(LookupError):
    """A review referenced a card id that is not in the deck."""


@dataclass(frozen=True)
class ReviewOutcome:
    progress: CardProgress
    factors: ScheduleFactors
    quality: int
    match: MatchResult | None = None
    mistake: MistakeRecord | None = None


@dataclass(frozen=True)
class AnalysisReport:
    """One consistent analysis pass over the stores."""

    generated_at: datetime
    category_performance: list[CategoryPerformance]
    time_performance: list[TimePerformance]
    error_patterns: ErrorPatternAnalysis
    confusion_pairs: list[ConfusionPair]
    weak_spots: list[WeakSpot]
    learning_style: LearningStyleProfile
    difficulty: DifficultyProfile


@dataclass(frozen=True)
class StudyPlan:
    daily: DailyRecommendation
    composition: SessionComposition
    queue: SessionQueue


class StudyService:
    """
    Application service for reviewing cards and planning sessions.

    Depends on the ProgressStore / MistakeLog / SessionLog ports, not on
    concrete adapters. Reviews of the same (card, direction) are serialized
    by a per-key lock; reviews of different keys run concurrently.
    """

    def __init__(
        self,
        flashcards: list[Flashcard],
        progress_store: ProgressStore,
        mistake_log: MistakeLog,
        session_log: SessionLog,
        config: EngineConfig | None = None,
        difficulty: DifficultyProfile | None = None,
    ):
        """
        Args:
            flashcards: The learner's deck.
            progress_store: Per-(card, direction) review state.
            mistake_log: Append-only mistake history.
            session_log: Append-only session history.
            config: Engine settings; defaults everywhere if omitted.
            difficulty: Starting difficulty snapshot.
        """
        self.config = config or EngineConfig()
        self._cards = {card.id: card for card in flashcards}
        self._progress = progress_store
        self._mistakes = mistake_log
        self._sessions = session_log
        self._locks: defaultdict[ProgressKey, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.difficulty = difficulty or DifficultyProfile(
            global_level=self.config.difficulty.default_level
        )

    @property
    def flashcards(self) -> list[Flashcard]:
        return list(self._cards.values())

    def _card(self, card_id: str) -> Flashcard:
        card = self._cards.get(card_id)
        if card is None:
            raise CardNotFoundError(f"Unknown card: {card_id}")
        return card

    async def schedule_context(
        self,
        now: datetime,
        cards_reviewed_this_session: int = 0,
    ) -> ScheduleContext:
        """Aggregates for smart scheduling, read from the stores as of ``now``."""
        progress_map = await self._progress.all()
        mistakes = await self._mistakes.query()
        sessions = await self._sessions.list()
        window = self.config.scheduling.recent_mistake_window_days

        return ScheduleContext(
            time_performances=analyze_time_performance(sessions),
            category_performances=analyze_category_performance(
                self.flashcards, progress_map, mistakes, now=now, settings=self.config.weak_spots
            ),
            recent_mistakes=recent_mistakes(mistakes, window, now=now),
            confusion_pairs=derive_confusion_pairs(mistakes),
            cards_reviewed_this_session=cards_reviewed_this_session,
            now=now,
        )

    async def review(
        self,
        card_id: str,
        direction: Direction,
        quality: Any = None,
        user_answer: str | None = None,
        time_spent_ms: float = 0,
        cards_reviewed_this_session: int = 0,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """
        Apply one answered card.

        Either ``quality`` (0-5) or ``user_answer`` must drive the rating. A
        typed answer is matched against the expected side; anything short of
        fully correct is logged as a mistake before scheduling, so the
        mistake-recency factor already sees it.

        Raises:
            CardNotFoundError: ``card_id`` is not in the deck.
        """
        card = self._card(card_id)
        now = now or datetime.now()

        async with self._locks[(card_id, direction)]:
            progress = await self._progress.get(card_id, direction)
            if progress is None:
                progress = create_initial_progress(
                    card_id, direction, today=now.date(), settings=self.config.scheduling
                )

            match = None
            mistake = None
            if user_answer is not None:
                expected = expected_answer(card, direction)
                match = match_answer(
                    user_answer,
                    expected,
                    typo_threshold=self.config.scheduling.typo_threshold,
                )
                quality = quality_from_match(match, time_spent_ms)
                if not match.is_correct:
                    mistake = MistakeRecord(
                        card_id=card_id,
                        direction=direction,
                        timestamp=now,
                        error_type=classify_mistake(user_answer, expected, card.gender),
                        user_answer=user_answer,
                        correct_answer=expected,
                    )
                    await self._mistakes.add(mistake)

            context = await self.schedule_context(now, cards_reviewed_this_session)
            updated, factors = schedule_smart(
                card, progress, quality, context, today=now.date(), settings=self.config.scheduling
            )
            await self._progress.put(updated)

        logger.debug(
            f"Reviewed {card_id}/{direction.value}: q={updated.last_quality} "
            f"interval={updated.interval} next={updated.next_review_date}"
        )
        return ReviewOutcome(
            progress=updated,
            factors=factors,
            quality=updated.last_quality,
            match=match,
            mistake=mistake,
        )

    async def record_session(
        self,
        mode: StudyMode,
        cards_reviewed: int,
        accuracy: float,
        average_quality: float,
        average_response_time_ms: float,
        duration_ms: int = 0,
        timestamp: datetime | None = None,
    ) -> SessionPerformanceRecord:
        timestamp = timestamp or datetime.now()
        record = SessionPerformanceRecord(
            session_id=f"session_{ULID()}",
            timestamp=timestamp,
            time_of_day=time_of_day(timestamp),
            mode=mode,
            cards_reviewed=cards_reviewed,
            accuracy=accuracy,
            average_quality=average_quality,
            average_response_time_ms=average_response_time_ms,
            duration_ms=duration_ms,
        )
        await self._sessions.add(record)
        return record

    async def analyze(self, now: datetime | None = None) -> AnalysisReport:
        """Recompute every aggregate from one snapshot of the stores."""
        now = now or datetime.now()
        progress_map = await self._progress.all()
        mistakes = await self._mistakes.query()
        sessions = await self._sessions.list()
        flashcards = self.flashcards

        pairs = derive_confusion_pairs(mistakes)
        weak_spots = detect_weak_spots(
            flashcards,
            progress_map,
            mistakes,
            sessions,
            pairs,
            now=now,
            settings=self.config.weak_spots,
        )
        report = AnalysisReport(
            generated_at=now,
            category_performance=analyze_category_performance(
                flashcards, progress_map, mistakes, now=now, settings=self.config.weak_spots
            ),
            time_performance=analyze_time_performance(sessions),
            error_patterns=analyze_error_patterns(mistakes),
            confusion_pairs=pairs,
            weak_spots=weak_spots,
            learning_style=detect_learning_style(sessions, settings=self.config.learning_style),
            difficulty=self.difficulty,
        )
        logger.info(f"Analysis: {len(weak_spots)} weak spot(s) across {len(flashcards)} cards")
        return report

    async def adjust_difficulty(
        self,
        perfect_streak: int,
        now: datetime | None = None,
    ) -> DifficultyProfile:
        sessions = await self._sessions.list()
        self.difficulty = adjust_difficulty(
            self.difficulty,
            sessions,
            perfect_streak,
            now=now,
            settings=self.config.difficulty,
        )
        return self.difficulty

    def set_difficulty(
        self,
        level: int,
        reason: str = "Manual adjustment",
        now: datetime | None = None,
    ) -> DifficultyProfile:
        self.difficulty = set_difficulty_level(
            self.difficulty, level, reason, now=now, settings=self.config.difficulty
        )
        return self.difficulty

    async def plan(
        self,
        current_streak: int = 0,
        last_study_date: date | None = None,
        daily_goal: int | None = None,
        target_cards: int | None = None,
        seed: int | None = None,
        now: datetime | None = None,
    ) -> StudyPlan:
        """
        Daily recommendations plus a concrete session for today.

        Args:
            seed: Shuffle cards within each session bucket reproducibly.
        """
        now = now or datetime.now()
        report = await self.analyze(now=now)
        progress_map = await self._progress.all()
        flashcards = self.flashcards

        daily = generate_daily_recommendations(
            report.weak_spots,
            flashcards,
            progress_map,
            report.time_performance,
            current_streak=current_streak,
            last_study_date=last_study_date,
            daily_goal=daily_goal,
            now=now,
            settings=self.config.recommendations,
        )
        composition = generate_session_composition(
            flashcards,
            progress_map,
            report.weak_spots,
            self.difficulty.global_level,
            report.learning_style,
            target_cards=target_cards,
            today=now.date(),
            settings=self.config.recommendations,
            style_settings=self.config.learning_style,
        )
        queue = build_session_queue(
            composition, flashcards, progress_map, report.weak_spots, today=now.date(), seed=seed
        )
        return StudyPlan(daily=daily, composition=composition, queue=queue)
