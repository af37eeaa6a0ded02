"""
Pearson correlation between two equal-length numeric series.

    r = Σ((xi-x̄)(yi-ȳ)) / √(Σ(xi-x̄)² · Σ(yi-ȳ)²)

Mismatched or too-short inputs and zero-variance series return 0. Callers are
expected to pre-filter their observations.
"""

import math
import logging
from typing import Sequence

from .models import clamp
from .stat_moments import mean

logger = logging.getLogger(__name__)

# |r| band upper bounds (exclusive) and their labels.
CORRELATION_BANDS = [
    (0.1, "negligible"),
    (0.3, "weak"),
    (0.5, "moderate"),
    (0.7, "strong"),
]


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    mean_x = mean(x)
    mean_y = mean(y)

    numerator = 0.0
    sum_sq_x = 0.0
    sum_sq_y = 0.0
    for xi, yi in zip(x, y):
        dx = xi - mean_x
        dy = yi - mean_y
        numerator += dx * dy
        sum_sq_x += dx * dx
        sum_sq_y += dy * dy

    denominator = math.sqrt(sum_sq_x * sum_sq_y)
    if denominator == 0:
        return 0.0
    # Rounding can push |r| a hair past 1 for perfectly linear data.
    return clamp(numerator / denominator, -1.0, 1.0)


def correlation_strength(r: float) -> str:
    """Band |r| into negligible / weak / moderate / strong / very strong."""
    abs_r = abs(r)
    for upper, label in CORRELATION_BANDS:
        if abs_r < upper:
            return label
    return "very strong"
