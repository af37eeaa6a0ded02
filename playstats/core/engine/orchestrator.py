"""
Analysis Orchestrator — The Central Pipeline
==============================================
Wires the engine components into one analysis per player. This is the ONLY
entry point the API should use.

Pipeline:

  Steam player data → Enrichment → Genre lookup → FeatureEncoder
    → DescriptiveStats → AdvancedStatsReport → Encoding
    → InterpretationStrategy (model or fallback) → FallbackRecommender

Design:
  - The numeric stages are pure; only the Steam and model stages do I/O
  - ``analyze_records`` runs the same stages offline with the fallback strategy
  - Each stage is timed; the full bundle is cached per player (``full:{steam_id}``)
"""

import asyncio
import copy
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .advanced_stats import AdvancedStatsReport
from .cache import KeyValueStore
from .descriptive_stats import DescriptiveStatsAnalyzer
from .feature_encoder import GENRE_LOOKUP_LIMIT, FeatureEncoder, GenreLookup
from .llm_reasoner import LLMConfig, LLMReasoner
from .models import (
    AdvancedStats, ClassificationResult, ClusteringResult, EnrichedGameRecord,
    FeatureVector, GamePrediction, GameRecord, PlayerData, PlayerStats,
    Recommendation, SuccessFactorsAnalysis,
)
from .recommendation_engine import FallbackRecommender
from .steam_client import DEFAULT_ENRICHMENT_LIMIT, GameEnricher, SteamClient
from .strategies import (
    FallbackStrategy, Interpretation, InterpretationRequest,
    InterpretationStrategy, ModelBackedStrategy,
)

logger = logging.getLogger(__name__)


class NoGamesError(Exception):
    """The player owns no titles with recorded playtime."""


# ═══════════════════════════════════════════════════════════════
# RESPONSE TYPE
# ═══════════════════════════════════════════════════════════════

class AnalysisBundle:
    """Complete analysis response with every stage's output."""
    def __init__(self):
        self.player: Optional[PlayerData] = None
        self.features: Optional[FeatureVector] = None
        self.stats: Optional[PlayerStats] = None
        self.advanced_stats: Optional[AdvancedStats] = None
        self.encoded_features: List[float] = []
        self.classification: Optional[ClassificationResult] = None
        self.clustering: Optional[ClusteringResult] = None
        self.recommendations: List[Recommendation] = []
        self.success_factors: Optional[SuccessFactorsAnalysis] = None
        self.game_predictions: List[GamePrediction] = []
        self.strategy: str = "fallback"
        self.timing: Dict[str, float] = {}
        self.cached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict() if self.player else None,
            "features": self.features.to_dict() if self.features else None,
            "stats": self.stats.to_dict() if self.stats else None,
            "advanced_stats": self.advanced_stats.to_dict() if self.advanced_stats else None,
            "encoded_features": list(self.encoded_features),
            "classification": self.classification.to_dict() if self.classification else None,
            "clustering": self.clustering.to_dict() if self.clustering else None,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "success_factors": self.success_factors.to_dict() if self.success_factors else None,
            "game_predictions": [p.to_dict() for p in self.game_predictions],
            "strategy": self.strategy,
            "timing": dict(self.timing),
            "cached": self.cached,
        }


# ═══════════════════════════════════════════════════════════════
# PURE STAGES
# ═══════════════════════════════════════════════════════════════

class AnalysisPipeline:
    """The numeric stages shared by the online and offline entry points."""

    def __init__(self, genre_limit: int = GENRE_LOOKUP_LIMIT):
        self.encoder = FeatureEncoder(genre_limit=genre_limit)
        self.descriptive = DescriptiveStatsAnalyzer()
        self.advanced = AdvancedStatsReport()
        self.recommender = FallbackRecommender()

    def prepare(
        self,
        bundle: AnalysisBundle,
        player: PlayerData,
        enriched_games: Sequence[EnrichedGameRecord],
        genre_lookup: Optional[GenreLookup],
    ) -> None:
        timings = bundle.timing

        t0 = time.time()
        bundle.features = self.encoder.compute_features(
            player.games,
            player.total_playtime_minutes,
            player.account_age_days,
            genre_lookup=genre_lookup,
            enriched_games=enriched_games,
        )
        timings["features"] = round(time.time() - t0, 3)

        t0 = time.time()
        bundle.stats = self.descriptive.compute(player.games, bundle.features)
        timings["descriptive_stats"] = round(time.time() - t0, 3)

        t0 = time.time()
        bundle.advanced_stats = self.advanced.compute(player.games, enriched_games)
        timings["advanced_stats"] = round(time.time() - t0, 3)

        bundle.encoded_features = self.encoder.encode_categorical(bundle.features).tolist()
        bundle.player = player

    def finish(self, bundle: AnalysisBundle, interpretation: Interpretation) -> None:
        bundle.classification = interpretation.classification
        bundle.clustering = interpretation.clustering
        bundle.success_factors = interpretation.success_factors
        bundle.game_predictions = interpretation.game_predictions

        t0 = time.time()
        bundle.recommendations = self.recommender.recommend(
            owned_ids=[g.id for g in bundle.player.games],
            dominant_genre=bundle.features.dominant_genre,
            cluster_label=interpretation.clustering.label,
            game_style=bundle.features.game_style,
        )
        bundle.timing["recommendations"] = round(time.time() - t0, 3)


def analyze_records(
    games: Sequence[GameRecord],
    enriched_games: Optional[Sequence[EnrichedGameRecord]] = None,
    account_age_days: int = 0,
    genre_lookup: Optional[GenreLookup] = None,
    steam_id: str = "offline",
) -> AnalysisBundle:
    """Run the full analysis over already-materialised records, no network access."""
    games = list(games)
    enriched = list(enriched_games or [])
    player = PlayerData(
        steam_id=steam_id,
        games=games,
        total_games=len(games),
        total_playtime_minutes=sum(g.playtime_minutes_total or 0 for g in games),
        account_age_days=account_age_days,
    )
    if genre_lookup is None and enriched:
        genre_lookup = _lookup_from_enriched(enriched)

    pipeline = AnalysisPipeline()
    bundle = AnalysisBundle()
    pipeline.prepare(bundle, player, enriched, genre_lookup)

    t0 = time.time()
    strategy = FallbackStrategy()
    interpretation = strategy.interpret_sync(
        InterpretationRequest(steam_id=steam_id, games=games, features=bundle.features, enriched_games=enriched)
    )
    bundle.timing["interpretation"] = round(time.time() - t0, 3)
    bundle.strategy = strategy.name

    pipeline.finish(bundle, interpretation)
    return bundle


def _lookup_from_enriched(enriched: Sequence[EnrichedGameRecord]) -> GenreLookup:
    genres = {g.id: tuple(g.genres) for g in enriched if g.genres}
    return lambda appid: genres.get(appid, ())


def build_strategy(
    config: Optional[LLMConfig] = None,
    store: Optional[KeyValueStore] = None,
    cache_ttl_seconds: Optional[float] = None,
) -> InterpretationStrategy:
    reasoner = LLMReasoner(config=config)
    if not reasoner.enabled:
        logger.info("LLM provider disabled, using rules-only interpretation")
        return FallbackStrategy()
    logger.info(
        f"Model-backed interpretation via {reasoner.config.provider.value} ({reasoner.config.model})"
    )
    return ModelBackedStrategy(reasoner, store=store, cache_ttl_seconds=cache_ttl_seconds)


# ═══════════════════════════════════════════════════════════════
# ORCHESTRATOR
# ═══════════════════════════════════════════════════════════════

class AnalysisOrchestrator:
    """
    Online analysis: fetch, enrich, compute, interpret, recommend.

    Usage:
        orch = AnalysisOrchestrator(SteamClient(api_key), store=InMemoryTTLStore())
        bundle = await orch.analyze("76561198000000000")
    """

    def __init__(
        self,
        steam_client: SteamClient,
        store: Optional[KeyValueStore] = None,
        strategy: Optional[InterpretationStrategy] = None,
        enrichment_limit: int = DEFAULT_ENRICHMENT_LIMIT,
        genre_limit: int = GENRE_LOOKUP_LIMIT,
        cache_ttl_seconds: Optional[float] = None,
    ):
        self.steam = steam_client
        self.store = store
        self.strategy = strategy or FallbackStrategy()
        self.enricher = GameEnricher(steam_client)
        self.enrichment_limit = enrichment_limit
        self.genre_limit = genre_limit
        self.cache_ttl_seconds = cache_ttl_seconds
        self.pipeline = AnalysisPipeline(genre_limit=genre_limit)

    async def analyze(self, steam_id: str, use_cache: bool = True) -> AnalysisBundle:
        cache_key = f"full:{steam_id}"
        if use_cache and self.store is not None:
            cached = self.store.get(cache_key)
            if cached is not None:
                logger.info(f"Serving cached analysis for {steam_id}")
                hit = copy.copy(cached)
                hit.cached = True
                return hit

        bundle = AnalysisBundle()
        timings = bundle.timing

        t0 = time.time()
        player = await self.steam.get_player_data(steam_id)
        timings["player_data"] = round(time.time() - t0, 3)
        if not player.games:
            raise NoGamesError(f"No games with playtime found for {steam_id}")

        t0 = time.time()
        enriched = await self.enricher.enrich_games(player.games, limit=self.enrichment_limit)
        timings["enrichment"] = round(time.time() - t0, 3)

        t0 = time.time()
        genre_lookup = await self.genre_lookup(player.games, enriched)
        timings["genre_lookup"] = round(time.time() - t0, 3)

        self.pipeline.prepare(bundle, player, enriched, genre_lookup)

        t0 = time.time()
        interpretation = await self.strategy.interpret(
            InterpretationRequest(
                steam_id=steam_id, games=player.games,
                features=bundle.features, enriched_games=enriched,
                refresh=not use_cache,
            )
        )
        timings["interpretation"] = round(time.time() - t0, 3)
        bundle.strategy = self.strategy.name

        self.pipeline.finish(bundle, interpretation)

        logger.info(
            f"Analysis for {steam_id}: {player.total_games} games, "
            f"{bundle.classification.type.value}/{bundle.clustering.label.value}, "
            f"{len(bundle.recommendations)} recommendations in {sum(timings.values()):.2f}s"
        )
        if self.store is not None:
            self.store.set(cache_key, bundle, self.cache_ttl_seconds)
        return bundle

    async def genre_lookup(
        self, games: Sequence[GameRecord], enriched: Sequence[EnrichedGameRecord],
    ) -> Callable[[int], Sequence[str]]:
        """Genres for the first ``genre_limit`` games, reusing enrichment results."""
        known = {g.id: tuple(g.genres) for g in enriched if g.genres is not None}
        missing = [g.id for g in list(games)[: self.genre_limit] if g.id not in known]

        details = await asyncio.gather(*(self.steam.get_game_details(appid) for appid in missing))
        for appid, detail in zip(missing, details):
            genres = (detail or {}).get("genres") or []
            known[appid] = tuple(g.get("description", "") for g in genres)
        return lambda appid: known.get(appid, ())
