#!/usr/bin/env python3
"""
Core data models for host benchmarking.

Contains all data structures used throughout the application.
"""

from .metrics import (
    SCHEMA_VERSION, CATEGORIES, METRIC_DEFINITIONS, MetricDefinition,
    MetricKey, Polarity, Metric, MetricSet, Run, definitions_for
)
from .comparison import Trend, ComparisonResult

__all__ = [
    'SCHEMA_VERSION', 'CATEGORIES', 'METRIC_DEFINITIONS', 'MetricDefinition',
    'MetricKey', 'Polarity', 'Metric', 'MetricSet', 'Run', 'definitions_for',
    'Trend', 'ComparisonResult'
]
