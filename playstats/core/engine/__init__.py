"""
Playstats Engine — Core Module
================================
Statistics and interpretation engine for Steam game libraries: playtime
moments, correlations, behavioural features, player type, archetype and
recommendations, with an optional model-backed interpretation that always
degrades to deterministic rules.

Components:
  ┌──────────────────────────────────────────────────────────┐
  │ AnalysisOrchestrator  — Central pipeline, single entry   │
  │ FeatureEncoder        — Library → features → vector      │
  │ DescriptiveStats      — Mean/median/std, bands, genres   │
  │ AdvancedStatsReport   — Quartiles, shape, correlations   │
  │ FallbackClassifier    — Hardcore vs Casual (rules)       │
  │ FallbackClusterer     — Four archetypes (rules)          │
  │ FallbackRecommender   — Lookup-table recommendations     │
  │ FallbackSuccessAnal.  — Store success heuristics         │
  │ ModelBackedStrategy   — Optional LLM interpretation      │
  │ SteamClient           — Web API / Store lookups          │
  │ InMemoryTTLStore      — Injectable key-value cache       │
  └──────────────────────────────────────────────────────────┘

Usage:
  # Full pipeline (online):
  from playstats.core.engine import AnalysisOrchestrator, SteamClient
  orchestrator = AnalysisOrchestrator(SteamClient(api_key))
  bundle = await orchestrator.analyze("76561198000000000")

  # Offline, over records you already have:
  from playstats.core.engine import analyze_records
  bundle = analyze_records(games, enriched_games, account_age_days=900)
"""

from .models import (
    AdvancedStats,
    ClassificationResult,
    ClusterLabel,
    ClusteringResult,
    EnrichedGameRecord,
    FeatureVector,
    GamePrediction,
    GameRecord,
    GameStyle,
    Genre,
    Impact,
    PlayerData,
    PlayerStats,
    PlayerType,
    Quartiles,
    Recommendation,
    ResultSource,
    SuccessFactor,
    SuccessFactorsAnalysis,
)
from .stat_moments import (
    coefficient_of_variation, kurtosis, mean, median, population_std, quartiles, skewness,
)
from .correlation import correlation_strength, pearson
from .feature_encoder import FeatureEncoder
from .fallback import FallbackClassifier, FallbackClusterer
from .recommendation_engine import FallbackRecommender
from .descriptive_stats import DescriptiveStatsAnalyzer
from .advanced_stats import AdvancedStatsReport
from .success_factors import FallbackSuccessAnalyzer

# I/O collaborators
from .cache import InMemoryTTLStore, KeyValueStore
from .steam_client import GameEnricher, SteamAPIError, SteamClient
from .llm_reasoner import (
    LLMConfig, LLMProvider, LLMReasoner, ModelUnavailableError, RateLimitedError,
)
from .strategies import (
    FallbackStrategy,
    Interpretation,
    InterpretationRequest,
    InterpretationStrategy,
    ModelBackedStrategy,
)

# Orchestrator (imports all above internally)
from .orchestrator import (
    AnalysisBundle, AnalysisOrchestrator, NoGamesError, analyze_records, build_strategy,
)

__all__ = [
    # ── Data model ──
    "AdvancedStats",
    "ClassificationResult",
    "ClusterLabel",
    "ClusteringResult",
    "EnrichedGameRecord",
    "FeatureVector",
    "GamePrediction",
    "GameRecord",
    "GameStyle",
    "Genre",
    "Impact",
    "PlayerData",
    "PlayerStats",
    "PlayerType",
    "Quartiles",
    "Recommendation",
    "ResultSource",
    "SuccessFactor",
    "SuccessFactorsAnalysis",
    # ── Statistics ──
    "coefficient_of_variation",
    "correlation_strength",
    "kurtosis",
    "mean",
    "median",
    "pearson",
    "population_std",
    "quartiles",
    "skewness",
    # ── Engine ──
    "AdvancedStatsReport",
    "DescriptiveStatsAnalyzer",
    "FallbackClassifier",
    "FallbackClusterer",
    "FallbackRecommender",
    "FallbackSuccessAnalyzer",
    "FeatureEncoder",
    # ── Collaborators ──
    "GameEnricher",
    "InMemoryTTLStore",
    "KeyValueStore",
    "LLMConfig",
    "LLMProvider",
    "LLMReasoner",
    "ModelUnavailableError",
    "RateLimitedError",
    "SteamAPIError",
    "SteamClient",
    # ── Strategies & orchestration ──
    "AnalysisBundle",
    "AnalysisOrchestrator",
    "FallbackStrategy",
    "Interpretation",
    "InterpretationRequest",
    "InterpretationStrategy",
    "ModelBackedStrategy",
    "NoGamesError",
    "analyze_records",
    "build_strategy",
]
