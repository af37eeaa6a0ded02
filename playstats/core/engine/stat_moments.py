"""
Statistical Moments — Pure Functions over Playtime Samples
============================================================
Mean, population standard deviation, median, quartiles/IQR, sample skewness
and sample excess kurtosis.

Every function accepts any finite sequence of real numbers and has a defined
answer for every input: empty samples, single values and zero variance all
degrade to 0 instead of raising or returning NaN.

Quartiles use the exclusive median-of-halves method:
  q2 = median(sorted)
  q1 = median(sorted[:floor(n/2)])
  q3 = median(sorted[ceil(n/2):])
For odd n the middle element belongs to neither half. This does NOT agree
with numpy.percentile / R quantile(type=7), which interpolate linearly.

Skewness and kurtosis are the bias-adjusted sample estimators computed
against the population standard deviation:
  skew = n / ((n-1)(n-2)) * Σ(x-μ)³ / σ³                             (n >= 3)
  kurt = n(n+1) / ((n-1)(n-2)(n-3)) * Σ(x-μ)⁴ / σ⁴
         - 3(n-1)² / ((n-2)(n-3))                                      (n >= 4)
"""

import math
import logging
from typing import Sequence

from .models import Quartiles

logger = logging.getLogger(__name__)


def mean(xs: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sample."""
    n = len(xs)
    if n == 0:
        return 0.0
    return sum(xs) / n


def population_std(xs: Sequence[float], mu: float) -> float:
    """√(Σ(x-μ)²/n); 0 for an empty sample."""
    n = len(xs)
    if n == 0:
        return 0.0
    scale = max(abs(x - mu) for x in xs)
    if scale == 0:
        return 0.0
    # Deviations are scaled into [-1, 1] before squaring.
    return scale * math.sqrt(sum(((x - mu) / scale) ** 2 for x in xs) / n)


def median(xs: Sequence[float]) -> float:
    """Middle value (odd n) or mean of the two middle values (even n)."""
    n = len(xs)
    if n == 0:
        return 0.0
    ordered = sorted(xs)
    mid = n // 2
    if n % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def quartiles(xs: Sequence[float]) -> Quartiles:
    """Exclusive median-of-halves quartiles. See module docstring."""
    n = len(xs)
    if n == 0:
        return Quartiles()

    ordered = sorted(xs)
    q2 = median(ordered)
    if n == 1:
        # Both halves are empty; a single observation is every quartile.
        q1 = q3 = ordered[0]
    else:
        q1 = median(ordered[: n // 2])
        q3 = median(ordered[(n + 1) // 2:])

    return Quartiles(q1=q1, q2=q2, q3=q3, iqr=q3 - q1)


def skewness(xs: Sequence[float], mu: float, std: float) -> float:
    """Bias-adjusted sample skewness; 0 when n < 3 or std == 0."""
    n = len(xs)
    if n < 3 or std == 0:
        return 0.0
    # Standardized terms, so the powers stay finite for any finite input.
    sum_cubed = sum(((x - mu) / std) ** 3 for x in xs)
    return (n / ((n - 1) * (n - 2))) * sum_cubed


def kurtosis(xs: Sequence[float], mu: float, std: float) -> float:
    """Sample excess kurtosis (0 for a normal distribution); 0 when n < 4 or std == 0."""
    n = len(xs)
    if n < 4 or std == 0:
        return 0.0
    sum_fourth = sum(((x - mu) / std) ** 4 for x in xs)
    lead = (n * (n + 1)) / ((n - 1) * (n - 2) * (n - 3))
    correction = (3 * (n - 1) ** 2) / ((n - 2) * (n - 3))
    return lead * sum_fourth - correction


def coefficient_of_variation(mu: float, std: float) -> float:
    """σ/μ; 0 when the mean is not positive."""
    return std / mu if mu > 0 else 0.0
