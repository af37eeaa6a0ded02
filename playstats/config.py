"""
Application Settings — All via environment variables with sensible defaults.
"""
import os
from typing import Optional


class Settings:
    # ── Server ──
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8001"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ── CORS ──
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,*")

    # ── Steam (required for /steam/* endpoints) ──
    STEAM_API_KEY: str = os.getenv("STEAM_API_KEY", "")

    # ── Interpretation model (optional, rules_only works without it) ──
    ANALYSIS_LLM_PROVIDER: str = os.getenv("ANALYSIS_LLM_PROVIDER", "rules_only")
    ANALYSIS_LLM_API_KEY: str = os.getenv("ANALYSIS_LLM_API_KEY", "")
    ANALYSIS_LLM_MODEL: str = os.getenv("ANALYSIS_LLM_MODEL", "llama-3.3-70b-versatile")
    ANALYSIS_LLM_BASE_URL: Optional[str] = os.getenv("ANALYSIS_LLM_BASE_URL")

    # ── Analysis ──
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "86400"))
    ENRICHMENT_LIMIT: int = int(os.getenv("ENRICHMENT_LIMIT", "20"))
    ANALYZE_RATE_LIMIT: int = int(os.getenv("ANALYZE_RATE_LIMIT", "30"))  # per client per hour


settings = Settings()
