#!/usr/bin/env python3
"""
Run-to-run comparison.

Classifies each metric of the current run against the previous run of the
same host as an improvement, regression or neutral change.
"""

from typing import Dict, List, Optional

from .models.comparison import ComparisonResult, Trend
from .models.metrics import METRIC_DEFINITIONS, MetricKey, MetricSet, Polarity

# Changes strictly below this percentage are noise
NEUTRAL_THRESHOLD_PERCENT = 2.0


class ComparisonEngine:
    """Pure comparison of two MetricSets; holds no state between calls."""

    def __init__(self, neutral_threshold: float = NEUTRAL_THRESHOLD_PERCENT):
        self.neutral_threshold = neutral_threshold

    def compare(self, current: MetricSet, previous: Optional[MetricSet]) -> List[ComparisonResult]:
        """
        Compare every metric of ``current`` with ``previous``.

        Args:
            current: MetricSet of the run just taken
            previous: MetricSet of the prior run for the host, or None

        Returns:
            One ComparisonResult per MetricKey, in catalogue order
        """
        return [self._compare_metric(key, current, previous) for key in MetricKey]

    def _compare_metric(self, key: MetricKey, current: MetricSet,
                        previous: Optional[MetricSet]) -> ComparisonResult:
        current_value = current.value(key)
        previous_value = previous.value(key) if previous is not None else None

        if previous_value is None:
            trend = Trend.NEW if current_value is not None else Trend.UNAVAILABLE
            return ComparisonResult(key, None, current_value, None, trend)

        if current_value is None or previous_value == 0:
            return ComparisonResult(key, previous_value, current_value, None, Trend.UNAVAILABLE)

        delta = (current_value - previous_value) / previous_value * 100
        return ComparisonResult(key, previous_value, current_value, delta, self.classify(key, delta))

    def classify(self, key: MetricKey, delta_percent: float) -> Trend:
        """Map a percentage change to a trend using the metric's polarity."""
        if abs(delta_percent) < self.neutral_threshold:
            return Trend.NEUTRAL

        rising = delta_percent > 0
        if METRIC_DEFINITIONS[key].polarity is Polarity.LOWER_IS_BETTER:
            rising = not rising
        return Trend.IMPROVEMENT if rising else Trend.REGRESSION

    @staticmethod
    def summarize(results: List[ComparisonResult]) -> Dict[Trend, int]:
        """Count results per trend (every trend present, zero if unused)."""
        counts = {trend: 0 for trend in Trend}
        for result in results:
            counts[result.trend] += 1
        return counts
