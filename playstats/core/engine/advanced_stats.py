"""
Advanced Statistics Report — Moments, Correlations & Explanations
===================================================================
Runs the moment functions over the playtime distribution (hours) and Pearson
correlations over the enriched subset, then attaches a plain-English
explanation to each statistic.

Correlations need paired observations: only enriched games with positive
playtime, a defined price AND a defined rating ratio qualify. With fewer than
three qualifying games the correlation keys are left out entirely.

Units used for correlations:
  playtime  — hours
  price     — major currency units (minor / 100)
  rating    — percent (ratio × 100)

Explanation bands (exact cutoffs):
  CV         < 0.15 low · ≤ 0.35 moderate · > 0.35 high
  skewness   > 0.5 right-skewed · < -0.5 left-skewed · otherwise symmetric
  kurtosis   > 0.5 leptokurtic · < -0.5 platykurtic · otherwise mesokurtic
  |r|        < 0.1 · < 0.3 · < 0.5 · < 0.7 · else (see correlation.py)
"""

import logging
from typing import Dict, List, Optional, Sequence

from .correlation import correlation_strength, pearson
from .models import AdvancedStats, EnrichedGameRecord, GameRecord, Quartiles
from .stat_moments import (
    coefficient_of_variation, kurtosis, mean, population_std, quartiles, skewness,
)

logger = logging.getLogger(__name__)

MIN_CORRELATION_SAMPLES = 3
CV_LOW = 0.15
CV_HIGH = 0.35
SHAPE_CUTOFF = 0.5

CORRELATION_LABELS = {
    "playtime_vs_price": "Playtime vs price",
    "playtime_vs_rating": "Playtime vs rating",
    "price_vs_rating": "Price vs rating",
}


class AdvancedStatsReport:
    """Stateless; ``compute`` may be called concurrently."""

    def compute(
        self,
        games: Sequence[GameRecord],
        enriched_games: Optional[Sequence[EnrichedGameRecord]] = None,
    ) -> AdvancedStats:
        playtimes = [g.playtime_hours for g in games]

        q = quartiles(playtimes)
        mu = mean(playtimes)
        std = population_std(playtimes, mu)
        cv = coefficient_of_variation(mu, std)
        skew = skewness(playtimes, mu, std)
        kurt = kurtosis(playtimes, mu, std)
        correlations = self.correlations(enriched_games or [])

        stats = AdvancedStats(
            quartiles=q,
            coefficient_of_variation=cv,
            skewness=skew,
            kurtosis=kurt,
            correlations=correlations,
        )
        stats.explanations = self.explain(stats)

        logger.debug(
            f"Advanced stats over {len(playtimes)} games: cv={cv:.3f} skew={skew:.3f} "
            f"kurt={kurt:.3f} correlations={sorted(correlations)}"
        )
        return stats

    # ──────────────────────────────────────────────────────────
    # CORRELATIONS
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def qualifying_games(enriched_games: Sequence[EnrichedGameRecord]) -> List[EnrichedGameRecord]:
        return [
            g for g in enriched_games
            if (g.playtime_minutes_total or 0) > 0
            and g.price_final is not None
            and g.rating_ratio is not None
        ]

    def correlations(self, enriched_games: Sequence[EnrichedGameRecord]) -> Dict[str, float]:
        valid = self.qualifying_games(enriched_games)
        if len(valid) < MIN_CORRELATION_SAMPLES:
            return {}

        playtimes = [g.playtime_hours for g in valid]
        prices = [g.price_final / 100 for g in valid]
        ratings = [g.rating_ratio * 100 for g in valid]

        return {
            "playtime_vs_price": pearson(playtimes, prices),
            "playtime_vs_rating": pearson(playtimes, ratings),
            "price_vs_rating": pearson(prices, ratings),
        }

    # ──────────────────────────────────────────────────────────
    # EXPLANATIONS
    # ──────────────────────────────────────────────────────────

    def explain(self, stats: AdvancedStats) -> Dict[str, str]:
        return {
            "quartiles": self._explain_quartiles(stats.quartiles),
            "coefficient_of_variation": self._explain_cv(stats.coefficient_of_variation),
            "skewness": self._explain_skewness(stats.skewness),
            "kurtosis": self._explain_kurtosis(stats.kurtosis),
            "correlations": self._explain_correlations(stats.correlations),
        }

    @staticmethod
    def _explain_quartiles(q: Quartiles) -> str:
        return (
            f"Quartiles split the library into four equal parts. "
            f"Q1 ({round(q.q1)}h): 25% of games have less playtime; "
            f"Q2 ({round(q.q2)}h) is the median; Q3 ({round(q.q3)}h): 75% have less. "
            f"The IQR ({round(q.iqr)}h) measures the spread of the middle 50%."
        )

    @staticmethod
    def cv_band(cv: float) -> str:
        if cv < CV_LOW:
            return "low dispersion"
        if cv <= CV_HIGH:
            return "moderate dispersion"
        return "high dispersion"

    def _explain_cv(self, cv: float) -> str:
        return (
            f"The coefficient of variation (CV = {round(cv * 100)}%) measures relative "
            f"variability: {self.cv_band(cv)}. Below 15% is low, above 35% is high. "
            f"Formula: CV = σ/μ."
        )

    @staticmethod
    def skewness_band(skew: float) -> str:
        if skew > SHAPE_CUTOFF:
            return "right-skewed (long tail towards high playtimes)"
        if skew < -SHAPE_CUTOFF:
            return "left-skewed (long tail towards low playtimes)"
        return "approximately symmetric"

    def _explain_skewness(self, skew: float) -> str:
        return (
            f"Skewness ({skew:.2f}) measures the asymmetry of the distribution, "
            f"which is {self.skewness_band(skew)}."
        )

    @staticmethod
    def kurtosis_band(kurt: float) -> str:
        if kurt > SHAPE_CUTOFF:
            return "leptokurtic (sharper peak and heavier tails than normal)"
        if kurt < -SHAPE_CUTOFF:
            return "platykurtic (flatter peak and lighter tails than normal)"
        return "mesokurtic (close to a normal distribution)"

    def _explain_kurtosis(self, kurt: float) -> str:
        return (
            f"Excess kurtosis ({kurt:.2f}) measures tail weight. "
            f"The distribution is {self.kurtosis_band(kurt)}."
        )

    @staticmethod
    def _explain_correlations(correlations: Dict[str, float]) -> str:
        if not correlations:
            return (
                "Not enough games with price and rating data "
                f"(at least {MIN_CORRELATION_SAMPLES} required) to compute correlations."
            )
        lines = ["Pearson correlations (r, from -1 to +1) measure linear relationships:"]
        for key, label in CORRELATION_LABELS.items():
            if key in correlations:
                r = correlations[key]
                lines.append(f"- {label}: r = {r:.3f}, {correlation_strength(r)} correlation")
        return "\n".join(lines)
