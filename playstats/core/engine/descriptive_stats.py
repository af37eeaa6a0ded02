"""
Descriptive playtime statistics (hours): mean, median, min, max, population
std, the top genres by accumulated minutes and a per-band game count.
"""

import logging
from typing import Any, Dict, List, Sequence

from .models import FeatureVector, GameRecord, PlayerStats
from .stat_moments import mean, median, population_std

logger = logging.getLogger(__name__)

TOP_GENRES = 5

# (label, lower bound inclusive, upper bound exclusive) in hours
PLAYTIME_BANDS = [
    ("0-10h", 0, 10),
    ("10-50h", 10, 50),
    ("50-100h", 50, 100),
    ("100-500h", 100, 500),
    ("500h+", 500, float("inf")),
]


class DescriptiveStatsAnalyzer:

    def compute(self, games: Sequence[GameRecord], features: FeatureVector) -> PlayerStats:
        hours = [g.playtime_hours for g in games]
        if not hours:
            return PlayerStats()

        mu = mean(hours)
        return PlayerStats(
            mean=mu,
            median=median(hours),
            min=min(hours),
            max=max(hours),
            std=population_std(hours, mu),
            top_genres=self.top_genres(features.genre_distribution),
            playtime_distribution=self.playtime_distribution(hours),
        )

    @staticmethod
    def top_genres(genre_distribution: Dict[str, float], limit: int = TOP_GENRES) -> List[Dict[str, Any]]:
        ranked = sorted(genre_distribution.items(), key=lambda kv: kv[1], reverse=True)
        return [{"genre": genre, "playtime": minutes} for genre, minutes in ranked[:limit]]

    @staticmethod
    def playtime_distribution(hours: Sequence[float]) -> List[Dict[str, Any]]:
        return [
            {"range": label, "count": sum(1 for h in hours if low <= h < high)}
            for label, low, high in PLAYTIME_BANDS
        ]
