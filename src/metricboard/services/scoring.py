# src/metricboard/services/scoring.py

"""Composite scoring: weighted sum of normalized metric aggregates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from metricboard.clock import Clock, utcnow
from metricboard.db import models
from metricboard.db.repository import Store
from metricboard.exceptions import MetricboardError, NoDataError
from metricboard.services.aggregation import AggregationService, aggregate
from metricboard.services.windows import effective_window, leaderboard_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricContribution:
    """One binding's share of a participant's score.

    ``aggregate`` is None when the metric had no data in the window.
    """

    metric_id: int
    aggregate: float | None
    weight: float
    is_higher_better: bool

    @property
    def contribution(self) -> float:
        if self.aggregate is None:
            return 0.0
        return normalize(self.aggregate, self.is_higher_better) * self.weight


@dataclass
class ScoreBreakdown:
    leaderboard_id: int
    participant_id: int
    score: float
    contributions: list[MetricContribution] = field(default_factory=list)


@dataclass
class ScoreSheet:
    """Scores of a whole candidate set, plus the participants that failed."""

    scores: dict[int, float] = field(default_factory=dict)
    failures: dict[int, str] = field(default_factory=dict)


@dataclass(frozen=True)
class _PreparedBinding:
    binding: models.LeaderboardMetric
    observations: dict[int, list[models.MetricValue]]


def normalize(value: float, is_higher_better: bool) -> float:
    """Map a raw aggregate so that larger always means better."""
    return value if is_higher_better else -value


def composite_score(contributions: Iterable[MetricContribution]) -> float:
    return sum((c.contribution for c in contributions), 0.0)


class ScoringService:
    """Computes composite scores for a leaderboard's participants."""

    def __init__(
        self,
        store: Store,
        aggregation: AggregationService,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._aggregation = aggregation
        self._clock = clock

    async def _prepare(
        self, leaderboard: models.Leaderboard, now: datetime
    ) -> list[_PreparedBinding]:
        """Load every in-window observation the leaderboard needs, up front."""
        board_window = leaderboard_window(leaderboard, now)
        prepared = []
        for binding in await self._store.leaderboard_metrics.for_leaderboard(
            leaderboard.id
        ):
            # A zero weight contributes nothing, so skip the read entirely.
            if binding.weight == 0:
                continue
            window = effective_window(leaderboard, board_window, binding.metric, now)
            observations = await self._aggregation.observations_by_participant(
                binding.metric_id, window
            )
            prepared.append(_PreparedBinding(binding, observations))
        return prepared

    @staticmethod
    def _score_one(
        prepared: Sequence[_PreparedBinding], participant_id: int
    ) -> list[MetricContribution]:
        contributions = []
        for item in prepared:
            metric = item.binding.metric
            try:
                value: float | None = aggregate(
                    metric.aggregation_type,
                    item.observations.get(participant_id, []),
                    metric.id,
                    participant_id=participant_id,
                )
            except NoDataError:
                value = None
            contributions.append(
                MetricContribution(
                    metric_id=metric.id,
                    aggregate=value,
                    weight=item.binding.weight,
                    is_higher_better=metric.is_higher_better,
                )
            )
        return contributions

    async def compute_score(
        self, leaderboard_id: int, participant_id: int
    ) -> ScoreBreakdown:
        """
        Composite score of one participant on one leaderboard.

        Raises:
            LeaderboardNotFoundError, ParticipantNotFoundError
            AggregationError: If one of the aggregates is unusable
        """
        leaderboard = await self._store.leaderboards.get_or_raise(leaderboard_id)
        await self._store.participants.get_or_raise(participant_id)

        prepared = await self._prepare(leaderboard, self._clock())
        contributions = self._score_one(prepared, participant_id)
        return ScoreBreakdown(
            leaderboard_id=leaderboard.id,
            participant_id=participant_id,
            score=composite_score(contributions),
            contributions=contributions,
        )

    async def score_participants(
        self,
        leaderboard: models.Leaderboard,
        participant_ids: Sequence[int],
        now: datetime,
    ) -> ScoreSheet:
        """Score every candidate. A failing participant is recorded, not fatal."""
        prepared = await self._prepare(leaderboard, now)
        sheet = ScoreSheet()
        for participant_id in participant_ids:
            try:
                contributions = self._score_one(prepared, participant_id)
            except MetricboardError as e:
                logger.warning(
                    "Scoring failed for participant",
                    extra={
                        "leaderboard_id": leaderboard.id,
                        "participant_id": participant_id,
                        "error": e.message,
                    },
                )
                sheet.failures[participant_id] = e.message
                continue
            sheet.scores[participant_id] = composite_score(contributions)
        return sheet
