"""
Domain service: Health trend summarisation for a single plant lot.

This module turns the health log history of a lot into a report with:
- Current status snapshot
- Recent versus prior health score trend
- Disease frequency and risk trend
- Environmental metric trends
- Tiered recommendations and alerts from fixed rule tables
- Lot analytics (common issues, score history)
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional
import logging

from plantation.domain.models import (
    CurrentHealthStatus,
    DiseaseFrequencyAnalysis,
    EnvironmentalTrends,
    HealthObservation,
    HealthTrendReport,
    HistoricalComparison,
    IssueCount,
    MetricSummary,
    MetricTrend,
    RiskTrend,
    ScorePoint,
    TrendDirection,
)
from plantation.services.domain.health_rules import (
    HealthSignals,
    TrendConfig,
    build_alerts,
    build_recommendations,
)
from plantation.utils.trend_math import (
    classify_change,
    mean_or_none,
    percentage_change,
    rate_percent,
    to_utc,
)
from plantation.config import settings

logger = logging.getLogger(__name__)


ENVIRONMENTAL_METRICS = ("temperature", "humidity", "soil_moisture")

_TREND_BY_SIGN = {
    1: TrendDirection.IMPROVING,
    -1: TrendDirection.DECLINING,
    0: TrendDirection.STABLE,
    None: TrendDirection.INSUFFICIENT_DATA,
}

# Risk follows the disease rate: a rising rate is a worsening risk
_RISK_BY_SIGN = {
    1: RiskTrend.WORSENING,
    -1: RiskTrend.IMPROVING,
    0: RiskTrend.STABLE,
    None: RiskTrend.INSUFFICIENT_DATA,
}

_METRIC_BY_SIGN = {
    1: MetricTrend.INCREASING,
    -1: MetricTrend.DECREASING,
    0: MetricTrend.STABLE,
    None: MetricTrend.INSUFFICIENT_DATA,
}


def config_from_settings() -> TrendConfig:
    return TrendConfig(
        threshold_percent=settings.trend_threshold_percent,
        default_window_days=settings.comparison_window_days,
        recent_activity_days=settings.recent_activity_days,
        low_score_action=settings.low_score_action_threshold,
        critical_score=settings.critical_score_threshold,
        warning_score=settings.warning_score_threshold,
        disease_alert_rate=settings.disease_alert_rate,
        high_humidity=settings.high_humidity_threshold,
    )


class HealthTrendSummarizer:
    """
    Domain service for summarising a lot's health history.

    Pure and stateless: sparse or empty histories produce a degenerate
    report marked as insufficient data rather than an error.
    """

    def __init__(self, config: Optional[TrendConfig] = None):
        """
        Initialize the summarizer.

        Args:
            config: Thresholds; defaults to values from application settings
        """
        self.config = config or config_from_settings()
        logger.debug(f"Initialized HealthTrendSummarizer with threshold={self.config.threshold_percent}%")

    def summarize_trends(
        self,
        observations: list[HealthObservation],
        as_of: datetime,
        comparison_window_days: Optional[int] = None,
        plant_lot_id: Optional[int] = None,
    ) -> HealthTrendReport:
        """
        Summarise the health history of one plant lot.

        Only observations recorded at or before as_of are considered.

        Args:
            observations: Health observations of a single lot, in any order
            as_of: Reference time of the report
            comparison_window_days: Length of the recent and prior windows
            plant_lot_id: Lot identifier echoed into the report

        Returns:
            HealthTrendReport

        Raises:
            TypeError: If as_of is not a datetime or the window is not an int
            ValueError: If the window is not positive
        """
        window_days = self._validate_window(comparison_window_days)
        if not isinstance(as_of, datetime):
            raise TypeError(f"as_of must be a datetime, got {type(as_of).__name__}")

        reference = to_utc(as_of)
        history = self._history(observations, reference)

        report = HealthTrendReport(
            plant_lot_id=plant_lot_id,
            as_of=reference,
            comparison_window_days=window_days,
            historical_comparison=HistoricalComparison(
                comparison_period=f"{window_days} days"
            ),
        )

        if not history:
            logger.info(f"No health observations for lot {plant_lot_id} up to {reference.isoformat()}")
            return report

        logger.info(f"Summarising {len(history)} observations for lot {plant_lot_id}, window={window_days}d")
        report.insufficient_data = False

        recent, prior = self._partition_windows(history, reference, timedelta(days=window_days))
        logger.debug(f"Window sizes: recent={len(recent)}, prior={len(prior)}")

        report.current_health_status = self._current_status(history[-1])
        report.historical_comparison = self._historical_comparison(recent, prior, window_days)
        report.disease_frequency_analysis = self._disease_frequency(history, recent, prior)
        report.environmental_trends = self._environmental_trends(recent, prior)
        self._fill_lot_analytics(report, history, reference)

        signals = self._signals(report)
        report.recommendations = build_recommendations(signals, self.config)
        report.alerts = build_alerts(signals, self.config)

        logger.info(
            f"Lot {plant_lot_id}: trend={report.historical_comparison.trend_direction.value}, "
            f"risk={report.disease_frequency_analysis.risk_trend.value}, alerts={len(report.alerts)}"
        )
        return report

    def _validate_window(self, comparison_window_days: Optional[int]) -> int:
        if comparison_window_days is None:
            return self.config.default_window_days
        if isinstance(comparison_window_days, bool) or not isinstance(comparison_window_days, int):
            raise TypeError(
                f"comparison_window_days must be an int, got {type(comparison_window_days).__name__}"
            )
        if comparison_window_days <= 0:
            raise ValueError("comparison_window_days must be positive")
        return comparison_window_days

    def _history(
        self,
        observations: list[HealthObservation],
        reference: datetime,
    ) -> list[HealthObservation]:
        """
        Observations up to the reference time, oldest first.

        Records without a usable timestamp are skipped.
        """
        history = []
        for observation in observations or []:
            recorded_at = getattr(observation, "recorded_at", None)
            if not isinstance(recorded_at, datetime):
                logger.warning(f"Skipping observation {getattr(observation, 'id', None)}: no recorded_at")
                continue
            if to_utc(recorded_at) <= reference:
                history.append(observation)

        history.sort(key=lambda o: to_utc(o.recorded_at))
        return history

    def _partition_windows(
        self,
        history: list[HealthObservation],
        reference: datetime,
        window: timedelta,
    ) -> tuple[list[HealthObservation], list[HealthObservation]]:
        """
        Split history into the recent window and the prior window.

        Recent is (reference - window, reference]. Prior is the equal-length
        window immediately before it; when that window is empty it slides back
        to end at the latest earlier observation.
        """
        recent_start = reference - window
        recent = [o for o in history if to_utc(o.recorded_at) > recent_start]
        earlier = [o for o in history if to_utc(o.recorded_at) <= recent_start]

        prior_start = recent_start - window
        prior = [o for o in earlier if to_utc(o.recorded_at) > prior_start]

        if not prior and earlier:
            prior_end = to_utc(earlier[-1].recorded_at)
            prior = [o for o in earlier if to_utc(o.recorded_at) > prior_end - window]
            logger.debug(f"Prior window empty; anchored at {prior_end.isoformat()}")

        return recent, prior

    def _current_status(self, latest: HealthObservation) -> CurrentHealthStatus:
        return CurrentHealthStatus(
            observation_id=latest.id,
            recorded_at=to_utc(latest.recorded_at),
            status=latest.health_status,
            health_score=latest.health_score,
            disease_detected=latest.disease_detected,
            disease_type=latest.disease_type,
        )

    def _historical_comparison(
        self,
        recent: list[HealthObservation],
        prior: list[HealthObservation],
        window_days: int,
    ) -> HistoricalComparison:
        recent_avg = mean_or_none(o.health_score for o in recent)
        prior_avg = mean_or_none(o.health_score for o in prior)
        change = percentage_change(recent_avg, prior_avg)

        return HistoricalComparison(
            trend_direction=_TREND_BY_SIGN[classify_change(change, self.config.threshold_percent)],
            percentage_change=change,
            recent_average=recent_avg,
            prior_average=prior_avg,
            recent_count=len(recent),
            prior_count=len(prior),
            comparison_period=f"{window_days} days",
        )

    def _disease_frequency(
        self,
        history: list[HealthObservation],
        recent: list[HealthObservation],
        prior: list[HealthObservation],
    ) -> DiseaseFrequencyAnalysis:
        diseased = sum(1 for o in history if o.disease_detected)
        recent_rate = rate_percent(sum(1 for o in recent if o.disease_detected), len(recent))
        prior_rate = rate_percent(sum(1 for o in prior if o.disease_detected), len(prior))

        # Rates are already percentages; compare them in points
        delta = None
        if recent_rate is not None and prior_rate is not None:
            delta = recent_rate - prior_rate

        return DiseaseFrequencyAnalysis(
            disease_detection_rate=rate_percent(diseased, len(history)),
            diseased_count=diseased,
            total_count=len(history),
            recent_rate=recent_rate,
            prior_rate=prior_rate,
            risk_trend=_RISK_BY_SIGN[classify_change(delta, self.config.threshold_percent)],
        )

    def _environmental_trends(
        self,
        recent: list[HealthObservation],
        prior: list[HealthObservation],
    ) -> EnvironmentalTrends:
        summaries = {}
        for metric in ENVIRONMENTAL_METRICS:
            recent_avg = mean_or_none(getattr(o.metrics, metric) for o in recent)
            prior_avg = mean_or_none(getattr(o.metrics, metric) for o in prior)
            change = percentage_change(recent_avg, prior_avg)
            summaries[metric] = MetricSummary(
                average=recent_avg,
                trend=_METRIC_BY_SIGN[classify_change(change, self.config.threshold_percent)],
            )
        return EnvironmentalTrends(**summaries)

    def _fill_lot_analytics(
        self,
        report: HealthTrendReport,
        history: list[HealthObservation],
        reference: datetime,
    ) -> None:
        activity_start = reference - timedelta(days=self.config.recent_activity_days)
        recent_activity = [o for o in history if to_utc(o.recorded_at) > activity_start]

        issues = Counter(
            issue.type
            for o in history
            for issue in o.detected_issues
        )

        report.total_observations = len(history)
        report.average_health_score = mean_or_none(o.health_score for o in history)
        report.recent_observations = len(recent_activity)
        report.common_issues = [
            IssueCount(issue=issue, count=count)
            for issue, count in issues.most_common(self.config.max_common_issues)
        ]
        report.score_history = [
            ScorePoint(
                recorded_on=to_utc(o.recorded_at).date(),
                health_score=o.health_score,
                disease_detected=o.disease_detected,
            )
            for o in recent_activity
            if o.health_score is not None
        ]

    def _signals(self, report: HealthTrendReport) -> HealthSignals:
        current = report.current_health_status
        comparison = report.historical_comparison
        return HealthSignals(
            has_data=not report.insufficient_data,
            current_score=current.health_score if current else None,
            current_disease_detected=current.disease_detected if current else False,
            current_disease_type=current.disease_type if current else None,
            trend_direction=comparison.trend_direction,
            percentage_change=comparison.percentage_change,
            risk_trend=report.disease_frequency_analysis.risk_trend,
            disease_detection_rate=report.disease_frequency_analysis.disease_detection_rate,
            soil_moisture_trend=report.environmental_trends.soil_moisture.trend,
            humidity_average=report.environmental_trends.humidity.average,
        )
