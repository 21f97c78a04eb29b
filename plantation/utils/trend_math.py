"""
Numeric helpers for trend analysis.

Provides utilities for:
- Timezone normalisation
- Means that skip missing values
- Guarded percentage change and rates
- Three-way threshold classification
"""
from datetime import datetime, timezone
from typing import Iterable, Optional
import math
import numpy as np
import logging

logger = logging.getLogger(__name__)


def to_utc(moment: datetime) -> datetime:
    """
    Normalise a datetime to an aware UTC datetime.

    Naive datetimes are interpreted as UTC.

    Args:
        moment: Datetime to normalise

    Returns:
        Timezone-aware datetime in UTC
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def is_finite_number(value: Optional[float]) -> bool:
    """Check that a value is a real, finite number (bool excluded)."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def mean_or_none(values: Iterable[Optional[float]]) -> Optional[float]:
    """
    Mean of the finite values, ignoring missing ones.

    Args:
        values: Values, some of which may be None

    Returns:
        Arithmetic mean, or None when no finite value is present
    """
    present = [float(v) for v in values if is_finite_number(v)]
    if not present:
        return None
    return float(np.mean(present))


def percentage_change(recent: Optional[float], prior: Optional[float]) -> Optional[float]:
    """
    Relative change from prior to recent, in percent.

    Args:
        recent: Mean of the recent window
        prior: Mean of the prior window

    Returns:
        (recent - prior) / abs(prior) * 100, or None when either side is missing
        or the prior value is zero
    """
    if recent is None or prior is None or prior == 0:
        return None
    return (recent - prior) / abs(prior) * 100


def rate_percent(count: int, total: int) -> Optional[float]:
    """
    Share of count in total, in percent.

    Returns:
        100 * count / total, or None for an empty total
    """
    if total <= 0:
        return None
    return 100.0 * count / total


def classify_change(change: Optional[float], threshold: float) -> Optional[int]:
    """
    Classify a change against a symmetric threshold.

    Args:
        change: Change to classify (percent or percentage points)
        threshold: Magnitude at or below which the change is stable

    Returns:
        1 above +threshold, -1 below -threshold, 0 otherwise,
        None when the change is unknown
    """
    if change is None:
        return None
    if change > threshold:
        return 1
    if change < -threshold:
        return -1
    return 0
