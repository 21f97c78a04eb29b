"""
Threshold rules that turn health signals into recommendations and alerts.

Both rule sets are fixed, ordered tables of (condition -> tier/severity ->
message). Evaluation walks the table top to bottom, so the output order is
deterministic.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from plantation.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    MetricTrend,
    Recommendations,
    RecommendationTier,
    RiskTrend,
    TrendDirection,
)


@dataclass
class TrendConfig:
    """Configuration for health trend summarisation."""

    threshold_percent: float = 2.0
    """Change (percent, or points for rates) at or below which a trend is stable"""

    default_window_days: int = 14
    """Comparison window used when the caller does not give one"""

    recent_activity_days: int = 30
    """Window for recent log counts and score history"""

    low_score_action: float = 60.0
    """Current score below which an immediate action is recommended"""

    critical_score: float = 50.0
    """Current score below which an error alert is raised"""

    warning_score: float = 70.0
    """Current score below which a warning alert is raised"""

    disease_alert_rate: float = 30.0
    """Disease detection rate (percent) above which an alert is raised"""

    high_humidity: float = 85.0
    """Recent mean humidity (percent) above which ventilation is advised"""

    max_common_issues: int = 5
    """Number of most frequent detected issues to report"""


@dataclass(frozen=True)
class HealthSignals:
    """Inputs of the rule tables, extracted from a trend report."""
    has_data: bool
    current_score: Optional[float] = None
    current_disease_detected: bool = False
    current_disease_type: Optional[str] = None
    trend_direction: TrendDirection = TrendDirection.INSUFFICIENT_DATA
    percentage_change: Optional[float] = None
    risk_trend: RiskTrend = RiskTrend.INSUFFICIENT_DATA
    disease_detection_rate: Optional[float] = None
    soil_moisture_trend: MetricTrend = MetricTrend.INSUFFICIENT_DATA
    humidity_average: Optional[float] = None

    @property
    def disease_label(self) -> str:
        return self.current_disease_type or "the detected disease"


Condition = Callable[[HealthSignals, TrendConfig], bool]


@dataclass(frozen=True)
class RecommendationRule:
    name: str
    tier: RecommendationTier
    condition: Condition
    message: str


@dataclass(frozen=True)
class AlertRule:
    name: str
    type: AlertType
    priority: AlertPriority
    condition: Condition
    title: str
    message: str


def _low_score(s: HealthSignals, c: TrendConfig) -> bool:
    return s.current_score is not None and s.current_score < c.low_score_action


def _disease_now(s: HealthSignals, c: TrendConfig) -> bool:
    return s.current_disease_detected


def _declining(s: HealthSignals, c: TrendConfig) -> bool:
    return s.trend_direction == TrendDirection.DECLINING


def _risk_worsening(s: HealthSignals, c: TrendConfig) -> bool:
    return s.risk_trend == RiskTrend.WORSENING


def _soil_drying(s: HealthSignals, c: TrendConfig) -> bool:
    return s.soil_moisture_trend == MetricTrend.DECREASING


def _humid(s: HealthSignals, c: TrendConfig) -> bool:
    return s.humidity_average is not None and s.humidity_average > c.high_humidity


def _routine(s: HealthSignals, c: TrendConfig) -> bool:
    needs_action = (
        _low_score(s, c)
        or _disease_now(s, c)
        or _declining(s, c)
        or _risk_worsening(s, c)
        or _soil_drying(s, c)
    )
    return s.has_data and not needs_action


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        name="low_health_score",
        tier=RecommendationTier.IMMEDIATE,
        condition=_low_score,
        message="Inspect the lot and isolate affected plants: health score is {current_score:.0f}/100",
    ),
    RecommendationRule(
        name="disease_detected",
        tier=RecommendationTier.IMMEDIATE,
        condition=_disease_now,
        message="Treat {disease_label} reported in the latest health log",
    ),
    RecommendationRule(
        name="declining_trend",
        tier=RecommendationTier.SHORT_TERM,
        condition=_declining,
        message="Increase monitoring frequency: health score changed {percentage_change:.1f}% against the prior period",
    ),
    RecommendationRule(
        name="disease_risk_worsening",
        tier=RecommendationTier.IMMEDIATE,
        condition=_risk_worsening,
        message="Apply the disease management protocol: disease detections are rising",
    ),
    RecommendationRule(
        name="disease_risk_prevention",
        tier=RecommendationTier.LONG_TERM,
        condition=_risk_worsening,
        message="Review crop rotation and the preventive treatment programme for this lot",
    ),
    RecommendationRule(
        name="soil_moisture_decreasing",
        tier=RecommendationTier.SHORT_TERM,
        condition=_soil_drying,
        message="Check irrigation schedule: soil moisture is decreasing",
    ),
    RecommendationRule(
        name="high_humidity",
        tier=RecommendationTier.LONG_TERM,
        condition=_humid,
        message="Improve ventilation to reduce fungal pressure: mean humidity is {humidity_average:.0f}%",
    ),
    RecommendationRule(
        name="routine_monitoring",
        tier=RecommendationTier.LONG_TERM,
        condition=_routine,
        message="Continue routine monitoring and preventive care",
    ),
)


def _critical_score(s: HealthSignals, c: TrendConfig) -> bool:
    return s.current_score is not None and s.current_score < c.critical_score


def _warning_score(s: HealthSignals, c: TrendConfig) -> bool:
    return (
        s.current_score is not None
        and c.critical_score <= s.current_score < c.warning_score
    )


def _high_disease_rate(s: HealthSignals, c: TrendConfig) -> bool:
    return (
        s.disease_detection_rate is not None
        and s.disease_detection_rate > c.disease_alert_rate
    )


ALERT_RULES: tuple[AlertRule, ...] = (
    AlertRule(
        name="critical_health_score",
        type=AlertType.ERROR,
        priority=AlertPriority.HIGH,
        condition=_critical_score,
        title="Critical Health Score",
        message="Health score is {current_score:.0f}/100",
    ),
    AlertRule(
        name="warning_health_score",
        type=AlertType.WARNING,
        priority=AlertPriority.MEDIUM,
        condition=_warning_score,
        title="Low Health Score",
        message="Health score is {current_score:.0f}/100",
    ),
    AlertRule(
        name="high_disease_rate",
        type=AlertType.WARNING,
        priority=AlertPriority.HIGH,
        condition=_high_disease_rate,
        title="High Disease Detection Rate",
        message="{disease_detection_rate:.1f}% of health logs report a disease",
    ),
)


def _render(template: str, signals: HealthSignals) -> str:
    return template.format(
        current_score=signals.current_score,
        disease_label=signals.disease_label,
        percentage_change=signals.percentage_change,
        humidity_average=signals.humidity_average,
        disease_detection_rate=signals.disease_detection_rate,
    )


def build_recommendations(
    signals: HealthSignals,
    config: TrendConfig,
    rules: tuple[RecommendationRule, ...] = RECOMMENDATION_RULES,
) -> Recommendations:
    """
    Evaluate the recommendation table.

    Args:
        signals: Extracted health signals
        config: Thresholds
        rules: Rule table (defaults to RECOMMENDATION_RULES)

    Returns:
        Recommendations grouped by tier, in table order
    """
    recommendations = Recommendations()
    tiers = {
        RecommendationTier.IMMEDIATE: recommendations.immediate,
        RecommendationTier.SHORT_TERM: recommendations.short_term,
        RecommendationTier.LONG_TERM: recommendations.long_term,
    }

    for rule in rules:
        if rule.condition(signals, config):
            tiers[rule.tier].append(_render(rule.message, signals))

    return recommendations


def build_alerts(
    signals: HealthSignals,
    config: TrendConfig,
    rules: tuple[AlertRule, ...] = ALERT_RULES,
) -> list[Alert]:
    """
    Evaluate the alert table.

    Args:
        signals: Extracted health signals
        config: Thresholds
        rules: Rule table (defaults to ALERT_RULES)

    Returns:
        Alerts in table order
    """
    return [
        Alert(
            type=rule.type,
            title=rule.title,
            message=_render(rule.message, signals),
            priority=rule.priority,
        )
        for rule in rules
        if rule.condition(signals, config)
    ]
