"""
Steam Client — Web API & Store Lookups
========================================
Async httpx client for the endpoints the analysis needs:

  Web API   IPlayerService/GetOwnedGames          → owned titles (required)
            ISteamUser/GetPlayerSummaries          → account creation time
            ISteamUserStats/GetNumberOfCurrentPlayers
  Store     appdetails                             → price, genres, categories
            appreviews (query summary only)        → positive / negative counts

Only the owned-games call is required: its failure raises SteamAPIError.
Every other lookup is best-effort and returns ``None`` on any failure, which
the enrichment step records as "absent" rather than zero.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .models import EnrichedGameRecord, GameRecord, PlayerData

logger = logging.getLogger(__name__)

STEAM_API_BASE = "https://api.steampowered.com"
STEAM_STORE_BASE = "https://store.steampowered.com"
DEFAULT_TIMEOUT_SECONDS = 15
DEFAULT_ENRICHMENT_LIMIT = 20
DEFAULT_MAX_CONCURRENT_REQUESTS = 5  # Steam store endpoints throttle bursts
SECONDS_PER_DAY = 24 * 60 * 60


class SteamAPIError(Exception):
    """The Steam Web API could not return the player's library."""


class SteamClient:
    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        language: str = "english",
        max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS,
    ):
        self.api_key = api_key
        self.language = language
        self.max_concurrent_requests = max_concurrent_requests
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "SteamClient":
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        # Created on first use so it belongs to the running event loop.
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent_requests)
        async with self._semaphore:
            resp = await self._client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()

    # ──────────────────────────────────────────────────────────
    # PLAYER
    # ──────────────────────────────────────────────────────────

    async def get_owned_games(self, steam_id: str) -> List[GameRecord]:
        """Owned titles with non-zero playtime."""
        try:
            data = await self._get_json(
                f"{STEAM_API_BASE}/IPlayerService/GetOwnedGames/v0001/",
                {
                    "key": self.api_key,
                    "steamid": steam_id,
                    "include_appinfo": "true",
                    "include_played_free_games": "true",
                    "format": "json",
                },
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Owned games lookup failed for {steam_id}: {e}")
            raise SteamAPIError(f"Could not fetch games for {steam_id}: {e}") from e

        raw_games = (data or {}).get("response", {}).get("games") or []
        games = []
        for g in raw_games:
            playtime = g.get("playtime_forever") or 0
            if playtime <= 0:
                continue
            games.append(GameRecord(
                id=int(g["appid"]),
                name=g.get("name") or f"App {g['appid']}",
                playtime_minutes_total=playtime,
                playtime_minutes_recent=g.get("playtime_2weeks"),
            ))
        return games

    async def get_player_summary(self, steam_id: str) -> Optional[Dict[str, Any]]:
        try:
            data = await self._get_json(
                f"{STEAM_API_BASE}/ISteamUser/GetPlayerSummaries/v0002/",
                {"key": self.api_key, "steamids": steam_id, "format": "json"},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Player summary lookup failed for {steam_id}: {e}")
            return None
        players = (data or {}).get("response", {}).get("players") or []
        return players[0] if players else None

    async def get_player_data(self, steam_id: str) -> PlayerData:
        games, summary = await asyncio.gather(
            self.get_owned_games(steam_id),
            self.get_player_summary(steam_id),
        )

        account_age = 0
        if summary and summary.get("timecreated"):
            account_age = int((time.time() - summary["timecreated"]) // SECONDS_PER_DAY)

        return PlayerData(
            steam_id=steam_id,
            games=games,
            total_games=len(games),
            total_playtime_minutes=sum(g.playtime_minutes_total for g in games),
            account_age_days=account_age,
        )

    # ──────────────────────────────────────────────────────────
    # STORE (best effort)
    # ──────────────────────────────────────────────────────────

    async def get_game_details(self, appid: int) -> Optional[Dict[str, Any]]:
        try:
            data = await self._get_json(
                f"{STEAM_STORE_BASE}/api/appdetails",
                {"appids": appid, "l": self.language},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"appdetails failed for {appid}: {e}")
            return None
        entry = (data or {}).get(str(appid)) or {}
        return entry.get("data") if entry.get("success") else None

    async def get_review_summary(self, appid: int) -> Optional[Dict[str, Any]]:
        try:
            data = await self._get_json(
                f"{STEAM_STORE_BASE}/appreviews/{appid}",
                {"json": 1, "language": "all", "purchase_type": "all", "num_per_page": 0},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"appreviews failed for {appid}: {e}")
            return None
        if not data or not data.get("success"):
            return None
        return data.get("query_summary")

    async def get_current_players(self, appid: int) -> Optional[int]:
        try:
            data = await self._get_json(
                f"{STEAM_API_BASE}/ISteamUserStats/GetNumberOfCurrentPlayers/v1/",
                {"appid": appid},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Current players lookup failed for {appid}: {e}")
            return None
        response = (data or {}).get("response") or {}
        if response.get("result") != 1:
            return None
        return response.get("player_count")


# ═══════════════════════════════════════════════════════════════
# ENRICHMENT
# ═══════════════════════════════════════════════════════════════

class GameEnricher:
    """Attaches store metadata to the most-played titles."""

    def __init__(self, client: SteamClient, include_current_players: bool = True):
        self.client = client
        self.include_current_players = include_current_players

    async def enrich_game(self, game: GameRecord) -> EnrichedGameRecord:
        lookups = [
            self.client.get_game_details(game.id),
            self.client.get_review_summary(game.id),
        ]
        if self.include_current_players:
            lookups.append(self.client.get_current_players(game.id))
        results = await asyncio.gather(*lookups)
        details, reviews = results[0], results[1]
        players = results[2] if self.include_current_players else None

        fields: Dict[str, Any] = {"current_players": players}
        fields.update(self.detail_fields(details))
        fields.update(self.review_fields(reviews))
        return EnrichedGameRecord.from_game(game, **fields)

    async def enrich_games(
        self, games: Sequence[GameRecord], limit: int = DEFAULT_ENRICHMENT_LIMIT,
    ) -> List[EnrichedGameRecord]:
        """Enrich the ``limit`` most-played titles, then append the rest unenriched."""
        top = sorted(games, key=lambda g: g.playtime_minutes_total or 0, reverse=True)[:limit]
        enriched = list(await asyncio.gather(*(self.enrich_game(g) for g in top)))

        enriched_ids = {g.id for g in enriched}
        enriched.extend(EnrichedGameRecord.from_game(g) for g in games if g.id not in enriched_ids)
        logger.info(f"Enriched {len(top)}/{len(games)} games")
        return enriched

    @staticmethod
    def detail_fields(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not details:
            return {}
        fields: Dict[str, Any] = {}

        price = details.get("price_overview")
        if price and price.get("final") is not None:
            fields["price_final"] = int(price["final"])
            fields["currency"] = price.get("currency")
        elif details.get("is_free"):
            fields["price_final"] = 0

        release = details.get("release_date") or {}
        if release.get("date"):
            fields["release_date"] = release["date"]
        if details.get("genres"):
            fields["genres"] = tuple(g.get("description", "") for g in details["genres"])
        if details.get("categories"):
            fields["categories"] = tuple(c.get("description", "") for c in details["categories"])
        achievements = details.get("achievements") or {}
        if achievements.get("total") is not None:
            fields["achievements_total"] = int(achievements["total"])
        return fields

    @staticmethod
    def review_fields(summary: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not summary:
            return {}
        positive = int(summary.get("total_positive") or 0)
        negative = int(summary.get("total_negative") or 0)
        total = int(summary.get("total_reviews") or positive + negative)
        fields: Dict[str, Any] = {
            "positive_ratings": positive,
            "negative_ratings": negative,
            "total_ratings": total,
        }
        if total > 0:
            fields["rating_ratio"] = positive / total
        return fields
