"""
Fallback Interpretation — Deterministic Player Type & Archetype
=================================================================
Threshold rules used whenever the model-backed interpreter is disabled,
unavailable or rate-limited. No external calls, no randomness: identical
inputs always give identical results.

  FallbackClassifier  — Hardcore vs Casual from total hours
  FallbackClusterer   — one of four archetypes, first matching rule wins
"""

import logging
from typing import List

from .models import (
    ClassificationResult, ClusterLabel, ClusteringResult, FeatureVector,
    PlayerType, ResultSource, clamp,
)

logger = logging.getLogger(__name__)


class FallbackClassifier:
    """Hardcore iff hours > threshold; probability = clamp(hours/1000, 0.05, 0.95)."""

    THRESHOLD_HOURS = 500
    PROBABILITY_SCALE_HOURS = 1000
    MIN_PROBABILITY = 0.05
    MAX_PROBABILITY = 0.95

    def classify(self, total_playtime_minutes: float) -> ClassificationResult:
        hours = (total_playtime_minutes or 0) / 60
        probability = clamp(
            hours / self.PROBABILITY_SCALE_HOURS, self.MIN_PROBABILITY, self.MAX_PROBABILITY
        )
        player_type = PlayerType.HARDCORE if hours > self.THRESHOLD_HOURS else PlayerType.CASUAL
        return ClassificationResult(
            type=player_type,
            probability=probability,
            threshold=self.THRESHOLD_HOURS,
            source=ResultSource.FALLBACK,
        )


class FallbackClusterer:
    """
    Archetype rules, evaluated in order:
      hours > 1000          → Hardcore (2)
      total games > 100     → Explorer (0)
      distinct genres < 3   → Specialized (3)
      otherwise             → Casual (1)

    Characteristics are independent threshold checks, not tied to the
    chosen archetype.
    """

    HARDCORE_HOURS = 1000
    EXPLORER_MIN_GAMES = 100
    SPECIALIZED_MAX_GENRES = 3
    BROAD_MIN_GENRES = 10
    VETERAN_ACCOUNT_DAYS = 2500
    FREE_TO_PLAY_RATIO = 0.5
    MAX_CHARACTERISTICS = 4
    DEFAULT_CHARACTERISTIC = "Balanced profile"

    def cluster(self, features: FeatureVector) -> ClusteringResult:
        hours = features.total_playtime_hours

        if hours > self.HARDCORE_HOURS:
            label = ClusterLabel.HARDCORE
        elif features.total_games > self.EXPLORER_MIN_GAMES:
            label = ClusterLabel.EXPLORER
        elif features.distinct_genres < self.SPECIALIZED_MAX_GENRES:
            label = ClusterLabel.SPECIALIZED
        else:
            label = ClusterLabel.CASUAL

        return ClusteringResult(
            cluster=label.cluster_id,
            label=label,
            characteristics=self.characteristics(features),
            source=ResultSource.FALLBACK,
        )

    def characteristics(self, features: FeatureVector) -> List[str]:
        traits = []
        if features.total_playtime_hours > self.HARDCORE_HOURS:
            traits.append("Very high playtime")
        if features.total_games > self.EXPLORER_MIN_GAMES:
            traits.append("Large collection")
        if features.distinct_genres < self.SPECIALIZED_MAX_GENRES:
            traits.append("Focused on few genres")
        if features.distinct_genres > self.BROAD_MIN_GENRES:
            traits.append("Broad genre taste")
        if features.account_age_days > self.VETERAN_ACCOUNT_DAYS:
            traits.append("Veteran account")
        if features.free_to_play_ratio > self.FREE_TO_PLAY_RATIO:
            traits.append("Prefers free-to-play")

        if not traits:
            traits.append(self.DEFAULT_CHARACTERISTIC)
        return traits[: self.MAX_CHARACTERISTICS]
