"""
Interpretation Strategies — Model-Backed vs Deterministic Fallback
====================================================================
The interpretive half of an analysis (player type, archetype, success
factors, per-game predictions) is produced by one of two strategies chosen
by the orchestrator:

  FallbackStrategy     — threshold rules; pure, never fails
  ModelBackedStrategy  — one compact chat-completion call; any failure
                         (rate limit, HTTP error, unparseable reply)
                         degrades to the FallbackStrategy result

Every result carries its own ``source`` tag, so a partially filled model
reply (e.g. no success factors) is completed with fallback pieces without
mislabelling them.
"""

import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .cache import KeyValueStore
from .fallback import FallbackClassifier, FallbackClusterer
from .llm_reasoner import LLMReasoner, ModelUnavailableError, RateLimitedError
from .models import (
    ClassificationResult, ClusterLabel, ClusteringResult, EnrichedGameRecord,
    FeatureVector, GamePrediction, GameRecord, Impact, PlayerType, ResultSource,
    SuccessFactor, SuccessFactorsAnalysis, clamp,
)
from .success_factors import FallbackSuccessAnalyzer

logger = logging.getLogger(__name__)

MAX_CHARACTERISTICS = 3
MAX_FACTORS = 5
MAX_PREDICTIONS = 5
MAX_PREDICTION_FACTORS = 3
PROMPT_TOP_GAMES = 8
PROMPT_ENRICHED_GAMES = 10
PROMPT_NAME_CHARS = 25


@dataclass
class InterpretationRequest:
    steam_id: str
    games: Sequence[GameRecord]
    features: FeatureVector
    enriched_games: Sequence[EnrichedGameRecord] = field(default_factory=list)
    # Skip any cached interpretation and produce a fresh one.
    refresh: bool = False

    @property
    def total_playtime_minutes(self) -> float:
        return self.features.total_playtime_minutes


@dataclass
class Interpretation:
    classification: ClassificationResult
    clustering: ClusteringResult
    success_factors: Optional[SuccessFactorsAnalysis] = None
    game_predictions: List[GamePrediction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classification": self.classification.to_dict(),
            "clustering": self.clustering.to_dict(),
            "success_factors": self.success_factors.to_dict() if self.success_factors else None,
            "game_predictions": [p.to_dict() for p in self.game_predictions],
        }


class InterpretationStrategy(ABC):
    name = "base"

    @abstractmethod
    async def interpret(self, request: InterpretationRequest) -> Interpretation:
        ...


def _played(enriched_games: Sequence[EnrichedGameRecord]) -> List[EnrichedGameRecord]:
    played = [g for g in enriched_games if (g.playtime_minutes_total or 0) > 0]
    return sorted(played, key=lambda g: g.playtime_minutes_total or 0, reverse=True)


# ═══════════════════════════════════════════════════════════════
# FALLBACK
# ═══════════════════════════════════════════════════════════════

class FallbackStrategy(InterpretationStrategy):
    name = "fallback"

    def __init__(self):
        self.classifier = FallbackClassifier()
        self.clusterer = FallbackClusterer()
        self.success = FallbackSuccessAnalyzer()

    def interpret_sync(self, request: InterpretationRequest) -> Interpretation:
        return Interpretation(
            classification=self.classifier.classify(request.total_playtime_minutes),
            clustering=self.clusterer.cluster(request.features),
            success_factors=self.success.analyze_factors(),
            game_predictions=self.success.predict_top(_played(request.enriched_games)),
        )

    async def interpret(self, request: InterpretationRequest) -> Interpretation:
        return self.interpret_sync(request)


# ═══════════════════════════════════════════════════════════════
# MODEL-BACKED
# ═══════════════════════════════════════════════════════════════

SYSTEM_PROMPT = (
    "You are an expert analyst of Steam player libraries. "
    "Reply ONLY with valid JSON, no text before or after."
)

RESPONSE_SHAPE = (
    '{"classification":{"type":"Hardcore|Casual","probability":0-1,"threshold":500},'
    '"clustering":{"cluster":0-3,"label":"Explorer|Casual|Hardcore|Specialized",'
    '"characteristics":["c1","c2","c3"]},'
    '"success_factors":{"top_factors":[{"name":"f","importance":0-1,'
    '"impact":"positive|negative|neutral","description":"short"}],"summary":"2 sentences"},'
    '"predictions":[{"game_name":"n","will_succeed":true,"probability":0-1,'
    '"factors":[{"name":"f","importance":0-1,"impact":"positive|negative|neutral"}],'
    '"explanation":"1 sentence"}]}'
)


def _unit(value: Any, default: float = 0.5) -> float:
    try:
        return clamp(float(value), 0.0, 1.0)
    except (TypeError, ValueError):
        return default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class ModelBackedStrategy(InterpretationStrategy):
    name = "model"

    def __init__(
        self,
        reasoner: LLMReasoner,
        store: Optional[KeyValueStore] = None,
        fallback: Optional[FallbackStrategy] = None,
        cache_ttl_seconds: Optional[float] = None,
    ):
        self.reasoner = reasoner
        self.store = store
        self.fallback = fallback or FallbackStrategy()
        self.cache_ttl_seconds = cache_ttl_seconds

    async def interpret(self, request: InterpretationRequest) -> Interpretation:
        cache_key = f"model:{request.steam_id}"
        if self.store is not None and not request.refresh:
            cached = self.store.get(cache_key)
            if cached is not None:
                logger.debug(f"Model interpretation cache hit for {request.steam_id}")
                return cached

        try:
            parsed = await self.reasoner.complete_json(self.build_messages(request))
            result = self.to_interpretation(parsed, request)
        except RateLimitedError as e:
            logger.warning(f"Model rate limited, using fallback for {request.steam_id}: {e}")
            return await self.fallback.interpret(request)
        except ModelUnavailableError as e:
            logger.error(f"Model interpretation failed, using fallback for {request.steam_id}: {e}")
            return await self.fallback.interpret(request)

        if self.store is not None:
            self.store.set(cache_key, result, self.cache_ttl_seconds)
        return result

    # ──────────────────────────────────────────────────────────
    # PROMPT
    # ──────────────────────────────────────────────────────────

    def build_messages(self, request: InterpretationRequest) -> List[Dict[str, str]]:
        f = request.features
        top_games = sorted(request.games, key=lambda g: g.playtime_minutes_total or 0, reverse=True)
        top = ",".join(
            f"{g.name[:PROMPT_NAME_CHARS]}({round(g.playtime_hours)}h)"
            for g in top_games[:PROMPT_TOP_GAMES]
        )
        enriched = [
            {
                "n": g.name[:PROMPT_NAME_CHARS],
                "h": round(g.playtime_hours),
                "p": round((g.price_final or 0) / 100),
                "r": round((g.rating_ratio or 0) * 100),
                "t": g.total_ratings or 0,
                "j": g.current_players or 0,
            }
            for g in _played(request.enriched_games)[:PROMPT_ENRICHED_GAMES]
        ]
        profile = (
            f"{round(f.total_playtime_hours)}h,{f.total_games} games,"
            f"{round(f.average_playtime_minutes / 60)}h/game,{f.dominant_genre},"
            f"{f.game_style.value},{int(f.account_age_days)} days"
        )
        prompt = (
            f"Full Steam analysis. Profile: {profile}. Top: {top}. "
            f"Games: {json.dumps(enriched, separators=(',', ':'))}. "
            f"JSON: {RESPONSE_SHAPE}. Max {MAX_FACTORS} factors, {MAX_PREDICTIONS} predictions "
            f"(in the order of the Games list), {MAX_PREDICTION_FACTORS} factors per prediction."
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    # ──────────────────────────────────────────────────────────
    # REPLY → RESULTS
    # ──────────────────────────────────────────────────────────

    def to_interpretation(self, parsed: Dict[str, Any], request: InterpretationRequest) -> Interpretation:
        """Map a reply onto results; a reply of the wrong shape raises ModelUnavailableError."""
        fallback = self.fallback.interpret_sync(request)
        try:
            factors = self._success_factors(parsed.get("success_factors"))
            predictions = self._predictions(parsed.get("predictions"), request.enriched_games)
            classification = self._classification(_as_dict(parsed.get("classification")))
            clustering = self._clustering(_as_dict(parsed.get("clustering")))
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            raise ModelUnavailableError(f"Unexpected reply shape: {e}") from e
        return Interpretation(
            classification=classification,
            clustering=clustering,
            success_factors=factors or fallback.success_factors,
            game_predictions=predictions or fallback.game_predictions,
        )

    @staticmethod
    def _classification(raw: Dict[str, Any]) -> ClassificationResult:
        player_type = PlayerType.HARDCORE if raw.get("type") == PlayerType.HARDCORE.value else PlayerType.CASUAL
        threshold = raw.get("threshold")
        if not isinstance(threshold, (int, float)) or isinstance(threshold, bool) or not math.isfinite(threshold):
            threshold = FallbackClassifier.THRESHOLD_HOURS
        return ClassificationResult(
            type=player_type,
            probability=_unit(raw.get("probability")),
            threshold=threshold,
            source=ResultSource.MODEL,
        )

    @staticmethod
    def _clustering(raw: Dict[str, Any]) -> ClusteringResult:
        try:
            cluster = float(raw.get("cluster") or 0)
        except (TypeError, ValueError):
            cluster = 0.0
        cluster = 0 if math.isnan(cluster) else int(clamp(cluster, 0, 3))
        label_text = str(raw.get("label") or "").strip().lower()
        matched = [label for label in ClusterLabel if label.value.lower() == label_text]
        label = matched[0] if matched else ClusterLabel.from_cluster_id(cluster)

        characteristics = raw.get("characteristics")
        if isinstance(characteristics, list) and characteristics:
            traits = [str(c) for c in characteristics[:MAX_CHARACTERISTICS]]
        else:
            traits = [FallbackClusterer.DEFAULT_CHARACTERISTIC]
        return ClusteringResult(
            cluster=label.cluster_id,
            label=label,
            characteristics=traits,
            source=ResultSource.MODEL,
        )

    @staticmethod
    def _factor(raw: Dict[str, Any]) -> SuccessFactor:
        return SuccessFactor(
            name=str(raw.get("name") or "Factor"),
            importance=_unit(raw.get("importance")),
            impact=Impact.parse(raw.get("impact")),
            description=str(raw.get("description") or ""),
        )

    def _success_factors(self, raw: Any) -> Optional[SuccessFactorsAnalysis]:
        if not isinstance(raw, dict) or not isinstance(raw.get("top_factors"), list):
            return None
        factors = [self._factor(f) for f in raw["top_factors"][:MAX_FACTORS] if isinstance(f, dict)]
        return SuccessFactorsAnalysis(
            top_factors=factors,
            summary=str(raw.get("summary") or "Success factor analysis"),
            source=ResultSource.MODEL,
        )

    def _predictions(self, raw: Any, enriched_games: Sequence[EnrichedGameRecord]) -> List[GamePrediction]:
        if not isinstance(raw, list):
            return []
        played = _played(enriched_games)
        predictions = []
        for idx, p in enumerate(raw[:MAX_PREDICTIONS]):
            if not isinstance(p, dict):
                continue
            game = played[idx] if idx < len(played) else None
            predictions.append(GamePrediction(
                id=game.id if game else 0,
                game_name=str(p.get("game_name") or (game.name if game else "Unknown game")),
                will_succeed=p.get("will_succeed") is True,
                probability=_unit(p.get("probability")),
                factors=[
                    self._factor(f) for f in (p.get("factors") or [])[:MAX_PREDICTION_FACTORS]
                    if isinstance(f, dict)
                ],
                explanation=str(p.get("explanation") or "Prediction based on Steam data"),
                source=ResultSource.MODEL,
            ))
        return predictions
