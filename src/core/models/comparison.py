#!/usr/bin/env python3
"""
Comparison result data models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .metrics import MetricKey


class Trend(Enum):
    """Classification of one metric against the previous run."""
    NEW = "new"
    UNAVAILABLE = "unavailable"
    NEUTRAL = "neutral"
    IMPROVEMENT = "improvement"
    REGRESSION = "regression"


@dataclass(frozen=True)
class ComparisonResult:
    """Per-metric delta between the current and previous run. Not persisted."""
    metric: MetricKey
    previous: Optional[float]
    current: Optional[float]
    delta_percent: Optional[float]
    trend: Trend
