"""
Playstats — API Endpoints
===========================
FastAPI routers exposing the analysis pipeline.

Endpoints:
  POST /steam/analyze   — Full analysis for a SteamID (rate-limited per client)
  GET  /steam/games     — Owned games with playtime
  POST /stats/advanced  — Advanced statistics over caller-supplied records
  GET  /health          — Component health check

Collaborators (settings, cache, Steam client, interpretation strategy,
rate limiter) are FastAPI dependencies so tests can override them.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from playstats.config import Settings, settings
from playstats.core.engine import (
    AdvancedStatsReport,
    AnalysisOrchestrator,
    EnrichedGameRecord,
    GameRecord,
    InMemoryTTLStore,
    InterpretationStrategy,
    KeyValueStore,
    LLMConfig,
    NoGamesError,
    SteamAPIError,
    SteamClient,
    build_strategy,
)

logger = logging.getLogger(__name__)
router = APIRouter()
stats_router = APIRouter()
health_router = APIRouter()


# ═══════════════════════════════════════════════════════════════
# RATE LIMITER (in-memory, per-client, protects Steam + LLM quota)
# ═══════════════════════════════════════════════════════════════

class _AnalyzeRateLimiter:
    """
    Sliding-window limiter: ``max_calls`` per ``window_seconds`` per client.
    Clients whose window has fully elapsed are forgotten.
    """

    def __init__(self, max_calls: int = 30, window_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self._calls: Dict[str, List[float]] = {}
        self._max = max_calls
        self._window = window_seconds
        self._clock = clock

    def check(self, client_id: str) -> bool:
        """Return True if allowed, False if rate-limited."""
        now = self._clock()
        cutoff = now - self._window
        self._forget_idle(cutoff)
        recent = self._calls.get(client_id, [])
        if len(recent) >= self._max:
            return False
        recent.append(now)
        self._calls[client_id] = recent
        return True

    def _forget_idle(self, cutoff: float) -> None:
        for client_id in list(self._calls):
            recent = [t for t in self._calls[client_id] if t > cutoff]
            if recent:
                self._calls[client_id] = recent
            else:
                del self._calls[client_id]

    def __len__(self) -> int:
        return len(self._calls)

    def reset_seconds(self, client_id: str) -> int:
        now = self._clock()
        recent = [t for t in self._calls.get(client_id, []) if t > now - self._window]
        if not recent:
            return 0
        return max(0, int(min(recent) + self._window - now))


_analyze_limiter = _AnalyzeRateLimiter(max_calls=settings.ANALYZE_RATE_LIMIT, window_seconds=3600)
_store: Optional[KeyValueStore] = None


# ═══════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════

def get_settings() -> Settings:
    return settings


def get_store(cfg: Settings = Depends(get_settings)) -> KeyValueStore:
    global _store
    if _store is None:
        _store = InMemoryTTLStore(default_ttl_seconds=cfg.CACHE_TTL_SECONDS, max_size=500)
    return _store


def get_analyze_limiter() -> _AnalyzeRateLimiter:
    return _analyze_limiter


async def get_steam_client(cfg: Settings = Depends(get_settings)):
    if not cfg.STEAM_API_KEY:
        logger.error("STEAM_API_KEY is not configured")
        raise HTTPException(status_code=500, detail="Steam API key is not configured")
    client = SteamClient(cfg.STEAM_API_KEY)
    try:
        yield client
    finally:
        await client.aclose()


def get_strategy(
    cfg: Settings = Depends(get_settings),
    store: KeyValueStore = Depends(get_store),
) -> InterpretationStrategy:
    return build_strategy(LLMConfig.from_env(), store=store, cache_ttl_seconds=cfg.CACHE_TTL_SECONDS)


# ═══════════════════════════════════════════════════════════════
# REQUEST / RESPONSE SCHEMAS
# ═══════════════════════════════════════════════════════════════

class AnalyzeRequest(BaseModel):
    steam_id: str = Field(..., min_length=1, max_length=64, description="SteamID64 of the player")
    refresh: bool = Field(default=False, description="Bypass the cached analysis")


MAX_PLAYTIME_MINUTES = 10 ** 12


class GameIn(BaseModel):
    id: int
    name: str = ""
    playtime_minutes_total: int = Field(default=0, le=MAX_PLAYTIME_MINUTES)
    playtime_minutes_recent: Optional[int] = Field(default=None, le=MAX_PLAYTIME_MINUTES)


class EnrichedGameIn(GameIn):
    price_final: Optional[int] = Field(default=None, description="Price in minor currency units")
    currency: Optional[str] = None
    release_date: Optional[str] = None
    positive_ratings: Optional[int] = None
    negative_ratings: Optional[int] = None
    total_ratings: Optional[int] = None
    rating_ratio: Optional[float] = None
    genres: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    achievements_total: Optional[int] = None
    current_players: Optional[int] = None


class AdvancedStatsRequest(BaseModel):
    games: List[GameIn] = Field(default_factory=list)
    enriched_games: List[EnrichedGameIn] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    player: Dict[str, Any]
    features: Dict[str, Any]
    stats: Dict[str, Any]
    advanced_stats: Dict[str, Any]
    encoded_features: List[float] = []
    classification: Dict[str, Any]
    clustering: Dict[str, Any]
    recommendations: List[Dict[str, Any]] = []
    success_factors: Optional[Dict[str, Any]] = None
    game_predictions: List[Dict[str, Any]] = []
    strategy: str = "fallback"
    timing: Dict[str, float] = {}
    cached: bool = False


class GamesResponse(BaseModel):
    steam_id: str
    games: List[Dict[str, Any]]
    total_games: int


class AdvancedStatsResponse(BaseModel):
    quartiles: Dict[str, float]
    coefficient_of_variation: float
    skewness: float
    kurtosis: float
    correlations: Dict[str, float] = {}
    explanations: Dict[str, str] = {}


class HealthResponse(BaseModel):
    status: str
    components: Dict[str, str]
    version: str
    timestamp: str
    uptime_seconds: Optional[float] = None


# ═══════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════

_start_time = time.time()
VERSION = "1.0.0"


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_player(
    body: AnalyzeRequest,
    request: Request,
    cfg: Settings = Depends(get_settings),
    limiter: _AnalyzeRateLimiter = Depends(get_analyze_limiter),
    steam: SteamClient = Depends(get_steam_client),
    store: KeyValueStore = Depends(get_store),
    strategy: InterpretationStrategy = Depends(get_strategy),
):
    """
    Full analysis of a player's library.

    Pipeline: Player data → Enrichment → Features → Descriptive stats →
    Advanced stats → Interpretation (model or rules) → Recommendations
    """
    client_id = request.client.host if request.client else "anonymous"
    if not limiter.check(client_id):
        remaining_secs = limiter.reset_seconds(client_id)
        logger.warning(f"Rate limit hit for client '{client_id}' on /steam/analyze")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limited",
                "message": f"Analysis rate limit reached. Try again in {remaining_secs // 60} minutes.",
                "reset_seconds": remaining_secs,
            },
        )

    orchestrator = AnalysisOrchestrator(
        steam,
        store=store,
        strategy=strategy,
        enrichment_limit=cfg.ENRICHMENT_LIMIT,
        cache_ttl_seconds=cfg.CACHE_TTL_SECONDS,
    )
    try:
        bundle = await orchestrator.analyze(body.steam_id, use_cache=not body.refresh)
    except NoGamesError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SteamAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Analysis error for {body.steam_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Analysis failed")
    return AnalyzeResponse(**bundle.to_dict())


@router.get("/games", response_model=GamesResponse)
async def list_games(
    steam_id: str = Query(..., min_length=1, description="SteamID64 of the player"),
    steam: SteamClient = Depends(get_steam_client),
):
    """Owned games with recorded playtime."""
    try:
        games = await steam.get_owned_games(steam_id)
    except SteamAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return GamesResponse(
        steam_id=steam_id,
        games=[g.to_dict() for g in games],
        total_games=len(games),
    )


@stats_router.post("/advanced", response_model=AdvancedStatsResponse)
async def advanced_stats(body: AdvancedStatsRequest):
    """Quartiles, dispersion, shape and correlations over supplied records."""
    games = [GameRecord(**g.model_dump()) for g in body.games]
    enriched = [EnrichedGameRecord(**g.model_dump()) for g in body.enriched_games]
    stats = AdvancedStatsReport().compute(games, enriched)
    return AdvancedStatsResponse(**stats.to_dict())


@health_router.get("/health", response_model=HealthResponse)
async def health(cfg: Settings = Depends(get_settings)):
    """Reports status of all components."""
    from playstats.core.engine import LLMReasoner

    reasoner = LLMReasoner(config=LLMConfig.from_env())
    components = {
        "stats_engine": "active",
        "fallback_interpretation": "active",
        "steam_api": "configured" if cfg.STEAM_API_KEY else "missing STEAM_API_KEY",
        "llm_reasoner": "active" if reasoner.enabled else "disabled (rules-only mode)",
    }
    return HealthResponse(
        status="ok",
        components=components,
        version=VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=round(time.time() - _start_time, 1),
    )
