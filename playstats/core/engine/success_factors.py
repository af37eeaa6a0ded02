"""
Success Factors — Rules-Only Store Success Heuristics
=======================================================
Deterministic counterpart of the model-backed success analysis:

  analyze_factors()  — fixed factor list (playtime, rating, price)
  predict(game)      — success verdict from review volume, ratio and players
  predict_top(games) — predictions for the most-played titles

Absent review or player data counts as 0 in these heuristics only; the
records themselves keep ``None``.
"""

import logging
from typing import List, Sequence

from .models import (
    EnrichedGameRecord, GamePrediction, Impact, ResultSource, SuccessFactor,
    SuccessFactorsAnalysis, clamp,
)

logger = logging.getLogger(__name__)

GOOD_RATING_RATIO = 0.7
GOOD_RATING_VOLUME = 1000
SIGNIFICANT_REVIEWS = 500
ACTIVE_PLAYERS = 1000
SATURATION = 10000
TOP_PREDICTIONS = 5


class FallbackSuccessAnalyzer:

    def analyze_factors(self) -> SuccessFactorsAnalysis:
        return SuccessFactorsAnalysis(
            top_factors=[
                SuccessFactor(
                    name="Playtime",
                    importance=0.9,
                    impact=Impact.POSITIVE,
                    description="Games with more playtime are considered more successful",
                ),
                SuccessFactor(
                    name="Positive rating",
                    importance=0.7,
                    impact=Impact.POSITIVE,
                    description="Better-rated games tend to be played more",
                ),
                SuccessFactor(
                    name="Price",
                    importance=0.5,
                    impact=Impact.NEUTRAL,
                    description="Price has a moderate influence on engagement",
                ),
            ],
            summary="Basic analysis: playtime and ratings are the main success indicators.",
            source=ResultSource.FALLBACK,
        )

    def predict(self, game: EnrichedGameRecord) -> GamePrediction:
        ratio = game.rating_ratio or 0.0
        total = game.total_ratings or 0
        players = game.current_players or 0

        has_good_ratings = ratio >= GOOD_RATING_RATIO and total >= GOOD_RATING_VOLUME
        has_active_players = players >= ACTIVE_PLAYERS and total >= SIGNIFICANT_REVIEWS
        will_succeed = has_good_ratings or has_active_players

        probability = clamp(
            0.5 * ratio
            + 0.3 * min(total / SATURATION, 1)
            + 0.2 * min(players / SATURATION, 1),
            0.05,
            0.95,
        )

        factors: List[SuccessFactor] = []
        if total > 0:
            factors.append(SuccessFactor(
                name="Positive rating ratio",
                importance=0.5,
                impact=Impact.POSITIVE if ratio >= GOOD_RATING_RATIO else Impact.NEGATIVE,
                description=f"{round(ratio * 100)}% positive reviews ({total:,} reviews)",
            ))
        if players > 0:
            factors.append(SuccessFactor(
                name="Current players",
                importance=0.3,
                impact=Impact.POSITIVE if players >= ACTIVE_PLAYERS else Impact.NEUTRAL,
                description=f"{players:,} players online",
            ))

        if will_succeed:
            explanation = (
                f"Considered a success on Steam ({round(ratio * 100)}% positive reviews, "
                f"{total:,} reviews)"
            )
        else:
            explanation = "Has not reached a significant level of success on Steam yet"

        return GamePrediction(
            id=game.id,
            game_name=game.name,
            will_succeed=will_succeed,
            probability=probability,
            factors=factors,
            explanation=explanation,
            source=ResultSource.FALLBACK,
        )

    def predict_top(
        self, enriched_games: Sequence[EnrichedGameRecord], limit: int = TOP_PREDICTIONS,
    ) -> List[GamePrediction]:
        ranked = sorted(
            enriched_games, key=lambda g: g.playtime_minutes_total or 0, reverse=True,
        )
        return [self.predict(g) for g in ranked[:limit]]
