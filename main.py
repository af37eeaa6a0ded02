"""
Playstats — FastAPI Server (Port 8001)
========================================
Steam library analysis: playtime statistics, behavioural features, player
type and archetype, recommendations, with optional model-backed
interpretation and a deterministic rules-only fallback.

Run:
  uvicorn main:app --host 0.0.0.0 --port 8001 --reload
  # or
  python main.py
"""

import logging
import os
from contextlib import asynccontextmanager

# Load .env file BEFORE anything reads os.getenv()
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

# ── Logging ──
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("playstats")


# ── Lifespan: report configuration ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    from playstats.config import settings
    from playstats.core.engine import LLMConfig

    llm = LLMConfig.from_env()
    if not settings.STEAM_API_KEY:
        logger.warning("STEAM_API_KEY not set: /steam/* endpoints will return 500")
    logger.info(
        f"Playstats ready: interpretation={llm.provider.value}, "
        f"cache_ttl={settings.CACHE_TTL_SECONDS}s, enrichment_limit={settings.ENRICHMENT_LIMIT}"
    )
    yield
    logger.info("Shutting down Playstats")


# ── Create FastAPI app ──
app = FastAPI(
    title="Playstats",
    description=(
        "Steam library analysis: quartiles, dispersion, skewness, kurtosis, "
        "Pearson correlations, player classification and archetypes, "
        "lookup-table recommendations and store success predictions."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Mount all API routes ──
from playstats.api.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


# ── Root ──
@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Playstats",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "steam": "/api/v1/steam/{analyze,games}",
            "stats": "/api/v1/stats/advanced",
        },
        "health": "/api/v1/health",
    }


# ── Direct run ──
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8001")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info",
    )
