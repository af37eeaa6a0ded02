"""
Playstats Engine — Collaborator Test Suite
============================================
Tests the I/O edges: TTL cache, Steam client and enrichment, LLM reasoner,
interpretation strategies and the online orchestrator. Network calls go
through httpx.MockTransport; async code is driven with asyncio.run.

Run: pytest playstats/ -v
"""

import asyncio
import json
import time

import httpx
import pytest


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


ACCOUNT_AGE_DAYS = 1000


def steam_handler(owned=None, calls=None, owned_status=200):
    """MockTransport handler serving the Steam endpoints the client uses."""
    if owned is None:
        owned = [
            {"appid": 730, "name": "Counter-Strike 2", "playtime_forever": 70000, "playtime_2weeks": 300},
            {"appid": 413150, "name": "Stardew Valley", "playtime_forever": 600},
            {"appid": 999, "name": "Never Played", "playtime_forever": 0},
        ]
    details = {
        "730": {"success": True, "data": {
            "is_free": True,
            "genres": [{"id": "1", "description": "Action"}],
            "release_date": {"date": "21 Aug, 2012"},
        }},
        "413150": {"success": True, "data": {
            "price_overview": {"final": 1399, "currency": "EUR"},
            "genres": [{"description": "Indie"}, {"description": "RPG"}],
            "achievements": {"total": 40},
        }},
    }
    reviews = {
        "730": {"total_positive": 880, "total_negative": 120, "total_reviews": 1000},
        "413150": {"total_positive": 970, "total_negative": 30, "total_reviews": 1000},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if calls is not None:
            calls.append(path)
        if path.startswith("/IPlayerService/GetOwnedGames"):
            if owned_status != 200:
                return httpx.Response(owned_status, json={"error": "boom"})
            return httpx.Response(200, json={"response": {"games": owned}})
        if path.startswith("/ISteamUser/GetPlayerSummaries"):
            created = int(time.time()) - ACCOUNT_AGE_DAYS * 86400
            return httpx.Response(200, json={"response": {"players": [{"timecreated": created}]}})
        if path == "/api/appdetails":
            appid = request.url.params["appids"]
            return httpx.Response(200, json={appid: details.get(appid, {"success": False})})
        if path.startswith("/appreviews/"):
            appid = path.rsplit("/", 1)[-1]
            if appid not in reviews:
                return httpx.Response(404)
            return httpx.Response(200, json={"success": 1, "query_summary": reviews[appid]})
        if path.startswith("/ISteamUserStats/GetNumberOfCurrentPlayers"):
            return httpx.Response(200, json={"response": {"player_count": 1500000, "result": 1}})
        return httpx.Response(404)

    return handler


def completion(payload, status=200):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})


def make_reasoner(handler, max_retries=0):
    from playstats.core.engine.llm_reasoner import LLMConfig, LLMProvider, LLMReasoner
    config = LLMConfig(provider=LLMProvider.GROQ, api_key="test-key", max_retries=max_retries)
    return LLMReasoner(config=config, transport=httpx.MockTransport(handler), retry_delay_seconds=0)


def make_request(steam_id="76561198000000000"):
    from playstats.core.engine.feature_encoder import FeatureEncoder
    from playstats.core.engine.models import EnrichedGameRecord, GameRecord
    from playstats.core.engine.strategies import InterpretationRequest
    games = [GameRecord(730, "Counter-Strike 2", 70000), GameRecord(413150, "Stardew Valley", 600)]
    enriched = [
        EnrichedGameRecord(730, "Counter-Strike 2", 70000, price_final=0, rating_ratio=0.88,
                           total_ratings=1000, current_players=1500000, genres=("Action",)),
        EnrichedGameRecord(413150, "Stardew Valley", 600, price_final=1399, rating_ratio=0.97,
                           total_ratings=1000, genres=("Indie", "RPG")),
    ]
    genres = {g.id: g.genres for g in enriched}
    features = FeatureEncoder().compute_features(
        games, 70600, 900, genre_lookup=lambda a: genres.get(a, ()), enriched_games=enriched,
    )
    return InterpretationRequest(steam_id=steam_id, games=games, features=features, enriched_games=enriched)


MODEL_PAYLOAD = {
    "classification": {"type": "Hardcore", "probability": 1.7, "threshold": 500},
    "clustering": {"cluster": 7, "label": "Speedrunner", "characteristics": ["a", "b", "c", "d", "e"]},
    "success_factors": {
        "top_factors": [
            {"name": f"Factor {i}", "importance": 0.4, "impact": "-", "description": "d"}
            for i in range(7)
        ],
        "summary": "Ratings drive engagement.",
    },
    "predictions": [
        {"game_name": f"Game {i}", "will_succeed": True, "probability": 0.8,
         "factors": [{"name": "x", "importance": 2, "impact": "="}] * 4,
         "explanation": "Popular."}
        for i in range(6)
    ],
}


# ═══════════════════════════════════════════════════════════════
# 1. CACHE
# ═══════════════════════════════════════════════════════════════

class TestInMemoryTTLStore:
    """Tests for cache.py"""

    def test_get_set_and_ttl(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        clock = FakeClock()
        store = InMemoryTTLStore(default_ttl_seconds=60, clock=clock)
        store.set("full:1", {"a": 1})
        assert store.get("full:1") == {"a": 1}
        clock.now += 59
        assert store.get("full:1") == {"a": 1}
        clock.now += 1
        assert store.get("full:1") is None
        assert len(store) == 0

    def test_per_entry_ttl(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        clock = FakeClock()
        store = InMemoryTTLStore(default_ttl_seconds=60, clock=clock)
        store.set("short", 1, ttl_seconds=5)
        store.set("long", 2)
        clock.now += 10
        assert store.get("short") is None
        assert store.get("long") == 2

    def test_expire_cleanup_clear(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        clock = FakeClock()
        store = InMemoryTTLStore(default_ttl_seconds=60, clock=clock)
        store.set("a", 1)
        store.set("b", 2, ttl_seconds=1)
        store.set("c", 3, ttl_seconds=1)
        assert store.expire("a") is True
        assert store.expire("a") is False
        clock.now += 2
        assert store.cleanup() == 2
        assert len(store) == 0
        store.set("d", 4)
        store.clear()
        assert len(store) == 0

    def test_max_size_evicts_oldest(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        clock = FakeClock()
        store = InMemoryTTLStore(default_ttl_seconds=60, max_size=2, clock=clock)
        store.set("a", 1)
        clock.now += 1
        store.set("b", 2)
        clock.now += 1
        store.set("c", 3)
        assert store.get("a") is None
        assert store.get("b") == 2 and store.get("c") == 3

    def test_instances_are_independent(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        a, b = InMemoryTTLStore(), InMemoryTTLStore()
        a.set("k", 1)
        assert b.get("k") is None


# ═══════════════════════════════════════════════════════════════
# 2. STEAM CLIENT & ENRICHMENT
# ═══════════════════════════════════════════════════════════════

class TestSteamClient:
    """Tests for steam_client.py"""

    def test_player_data(self):
        from playstats.core.engine.steam_client import SteamClient

        async def run():
            async with SteamClient("key", transport=httpx.MockTransport(steam_handler())) as client:
                return await client.get_player_data("765")

        player = asyncio.run(run())
        assert [g.id for g in player.games] == [730, 413150]
        assert player.total_games == 2
        assert player.total_playtime_minutes == 70600
        assert player.account_age_days == ACCOUNT_AGE_DAYS
        assert player.games[0].playtime_minutes_recent == 300

    def test_owned_games_failure_raises(self):
        from playstats.core.engine.steam_client import SteamAPIError, SteamClient

        async def run():
            handler = steam_handler(owned_status=503)
            async with SteamClient("key", transport=httpx.MockTransport(handler)) as client:
                await client.get_owned_games("765")

        with pytest.raises(SteamAPIError):
            asyncio.run(run())

    def test_optional_lookups_degrade_to_none(self):
        from playstats.core.engine.steam_client import SteamClient

        async def run():
            async with SteamClient("key", transport=httpx.MockTransport(steam_handler())) as client:
                return (
                    await client.get_game_details(12345),
                    await client.get_review_summary(12345),
                )

        assert asyncio.run(run()) == (None, None)

    def test_enrichment(self):
        from playstats.core.engine.models import GameRecord
        from playstats.core.engine.steam_client import GameEnricher, SteamClient
        games = [
            GameRecord(413150, "Stardew Valley", 600),
            GameRecord(730, "Counter-Strike 2", 70000),
            GameRecord(12345, "Obscure", 30),
        ]

        async def run():
            async with SteamClient("key", transport=httpx.MockTransport(steam_handler())) as client:
                return await GameEnricher(client).enrich_games(games, limit=2)

        enriched = asyncio.run(run())
        by_id = {g.id: g for g in enriched}
        assert [g.id for g in enriched] == [730, 413150, 12345]

        cs = by_id[730]
        assert cs.price_final == 0
        assert cs.rating_ratio == pytest.approx(0.88)
        assert cs.total_ratings == 1000
        assert cs.current_players == 1500000
        assert cs.genres == ("Action",)
        assert cs.release_date == "21 Aug, 2012"

        stardew = by_id[413150]
        assert stardew.price_final == 1399
        assert stardew.currency == "EUR"
        assert stardew.achievements_total == 40

        obscure = by_id[12345]
        assert obscure.price_final is None
        assert obscure.rating_ratio is None

    def test_concurrent_requests_are_bounded(self):
        from playstats.core.engine.models import GameRecord
        from playstats.core.engine.steam_client import GameEnricher, SteamClient
        serve = steam_handler()
        in_flight = {"now": 0, "peak": 0}

        async def slow_handler(request):
            in_flight["now"] += 1
            in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
            await asyncio.sleep(0.01)
            in_flight["now"] -= 1
            return serve(request)

        games = [GameRecord(730, "Counter-Strike 2", 70000), GameRecord(413150, "Stardew Valley", 600)]

        async def run():
            transport = httpx.MockTransport(slow_handler)
            async with SteamClient("key", transport=transport, max_concurrent_requests=2) as client:
                return await GameEnricher(client).enrich_games(games)

        enriched = asyncio.run(run())
        assert len(enriched) == 2
        assert in_flight["peak"] == 2

    def test_review_fields_without_reviews(self):
        from playstats.core.engine.steam_client import GameEnricher
        fields = GameEnricher.review_fields({"total_positive": 0, "total_negative": 0, "total_reviews": 0})
        assert fields["total_ratings"] == 0
        assert "rating_ratio" not in fields


# ═══════════════════════════════════════════════════════════════
# 3. LLM REASONER
# ═══════════════════════════════════════════════════════════════

class TestLLMReasoner:
    """Tests for llm_reasoner.py"""

    def test_parses_json_reply(self):
        reasoner = make_reasoner(lambda req: completion({"ok": True}))
        assert asyncio.run(reasoner.complete_json([{"role": "user", "content": "hi"}])) == {"ok": True}

    def test_extracts_json_from_prose(self):
        reasoner = make_reasoner(lambda req: completion('Sure! {"ok": 1} Hope this helps.'))
        assert asyncio.run(reasoner.complete_json([])) == {"ok": 1}

    def test_rate_limit_status(self):
        from playstats.core.engine.llm_reasoner import RateLimitedError
        reasoner = make_reasoner(lambda req: httpx.Response(429, json={}))
        with pytest.raises(RateLimitedError):
            asyncio.run(reasoner.complete_json([]))

    def test_rate_limit_error_code(self):
        from playstats.core.engine.llm_reasoner import RateLimitedError
        body = {"error": {"code": "rate_limit_exceeded", "message": "slow down"}}
        reasoner = make_reasoner(lambda req: httpx.Response(400, json=body))
        with pytest.raises(RateLimitedError):
            asyncio.run(reasoner.complete_json([]))
        assert reasoner.get_stats()["rate_limited"] == 1

    def test_http_error_and_empty_content(self):
        from playstats.core.engine.llm_reasoner import ModelUnavailableError
        for handler in (
            lambda req: httpx.Response(500, json={}),
            lambda req: completion(""),
            lambda req: completion("no json here"),
        ):
            with pytest.raises(ModelUnavailableError):
                asyncio.run(make_reasoner(handler).complete_json([]))

    def test_retries_transient_failures(self):
        attempts = []

        def handler(req):
            attempts.append(1)
            return httpx.Response(502) if len(attempts) == 1 else completion({"ok": True})

        reasoner = make_reasoner(handler, max_retries=1)
        assert asyncio.run(reasoner.complete_json([])) == {"ok": True}
        assert len(attempts) == 2

    def test_request_shape(self):
        seen = {}

        def handler(req):
            seen["url"] = str(req.url)
            seen["auth"] = req.headers["authorization"]
            seen["body"] = json.loads(req.content)
            return completion({"ok": True})

        asyncio.run(make_reasoner(handler).complete_json([{"role": "user", "content": "x"}]))
        assert seen["url"] == "https://api.groq.com/openai/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["model"] == "llama-3.3-70b-versatile"
        assert seen["body"]["response_format"] == {"type": "json_object"}

    def test_disabled_provider(self):
        from playstats.core.engine.llm_reasoner import (
            LLMConfig, LLMReasoner, ModelUnavailableError,
        )
        reasoner = LLMReasoner(config=LLMConfig())
        assert reasoner.enabled is False
        with pytest.raises(ModelUnavailableError):
            asyncio.run(reasoner.complete_json([]))

    def test_config_from_env(self, monkeypatch):
        from playstats.core.engine.llm_reasoner import LLMConfig, LLMProvider
        monkeypatch.setenv("ANALYSIS_LLM_PROVIDER", "OpenAI")
        monkeypatch.setenv("ANALYSIS_LLM_MODEL", "gpt-4o-mini")
        config = LLMConfig.from_env()
        assert config.provider == LLMProvider.OPENAI
        assert config.endpoint == "https://api.openai.com/v1/chat/completions"
        monkeypatch.setenv("ANALYSIS_LLM_PROVIDER", "carrier-pigeon")
        assert LLMConfig.from_env().provider == LLMProvider.RULES_ONLY


# ═══════════════════════════════════════════════════════════════
# 4. INTERPRETATION STRATEGIES
# ═══════════════════════════════════════════════════════════════

class TestStrategies:
    """Tests for strategies.py"""

    def test_fallback_strategy(self):
        from playstats.core.engine.models import ClusterLabel, PlayerType, ResultSource
        from playstats.core.engine.strategies import FallbackStrategy
        result = asyncio.run(FallbackStrategy().interpret(make_request()))
        assert result.classification.type == PlayerType.HARDCORE
        assert result.clustering.label == ClusterLabel.HARDCORE
        assert result.classification.source == ResultSource.FALLBACK
        assert [p.id for p in result.game_predictions] == [730, 413150]

    def test_model_results_are_clamped_and_capped(self):
        from playstats.core.engine.models import ClusterLabel, Impact, ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion(MODEL_PAYLOAD)))
        result = asyncio.run(strategy.interpret(make_request()))

        assert result.classification.source == ResultSource.MODEL
        assert result.classification.probability == 1.0
        assert result.clustering.cluster == 3
        assert result.clustering.label == ClusterLabel.SPECIALIZED
        assert result.clustering.characteristics == ["a", "b", "c"]
        assert len(result.success_factors.top_factors) == 5
        assert result.success_factors.top_factors[0].impact == Impact.NEGATIVE
        assert len(result.game_predictions) == 5
        first = result.game_predictions[0]
        assert first.id == 730
        assert len(first.factors) == 3
        assert first.factors[0].importance == 1.0
        assert first.factors[0].impact == Impact.NEUTRAL

    def test_partial_reply_completed_by_fallback(self):
        from playstats.core.engine.models import ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        payload = {"classification": {"type": "Casual", "probability": 0.3},
                   "clustering": {"cluster": 1, "label": "casual"}}
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion(payload)))
        result = asyncio.run(strategy.interpret(make_request()))
        assert result.clustering.characteristics == ["Balanced profile"]
        assert result.success_factors.source == ResultSource.FALLBACK
        assert all(p.source == ResultSource.FALLBACK for p in result.game_predictions)

    def test_rate_limit_falls_back(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        from playstats.core.engine.models import ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        store = InMemoryTTLStore()
        strategy = ModelBackedStrategy(
            make_reasoner(lambda req: httpx.Response(429, json={})), store=store,
        )
        result = asyncio.run(strategy.interpret(make_request()))
        assert result.classification.source == ResultSource.FALLBACK
        assert len(store) == 0

    def test_unparseable_reply_falls_back(self):
        from playstats.core.engine.models import ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion("I cannot help")))
        result = asyncio.run(strategy.interpret(make_request()))
        assert result.clustering.source == ResultSource.FALLBACK

    def test_wrong_shape_sections_are_ignored(self):
        from playstats.core.engine.models import ClusterLabel, PlayerType, ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        for payload in ({"clustering": "Hardcore"}, {"classification": ["Hardcore"]}):
            strategy = ModelBackedStrategy(make_reasoner(lambda req, p=payload: completion(p)))
            result = asyncio.run(strategy.interpret(make_request()))
            assert result.classification.source == ResultSource.MODEL
            assert result.classification.type == PlayerType.CASUAL
            assert result.classification.probability == 0.5
            assert result.clustering.label == ClusterLabel.EXPLORER
            assert result.clustering.characteristics == ["Balanced profile"]

    def test_non_finite_numbers_are_clamped(self):
        from playstats.core.engine.models import ClusterLabel
        from playstats.core.engine.strategies import ModelBackedStrategy
        payload = {
            "classification": {"type": "Hardcore", "probability": 0.9, "threshold": float("inf")},
            "clustering": {"cluster": float("inf")},
        }
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion(payload)))
        result = asyncio.run(strategy.interpret(make_request()))
        assert result.classification.threshold == 500
        assert result.clustering.cluster == 3
        assert result.clustering.label == ClusterLabel.SPECIALIZED

    def test_malformed_nested_reply_falls_back(self):
        from playstats.core.engine.models import ResultSource
        from playstats.core.engine.strategies import ModelBackedStrategy
        payload = {"predictions": [{"game_name": "x", "factors": 7}]}
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion(payload)))
        result = asyncio.run(strategy.interpret(make_request()))
        assert result.classification.source == ResultSource.FALLBACK

    def test_refresh_skips_cached_interpretation(self):
        from dataclasses import replace
        from playstats.core.engine.cache import InMemoryTTLStore
        from playstats.core.engine.strategies import ModelBackedStrategy
        calls = []

        def handler(req):
            calls.append(1)
            return completion(MODEL_PAYLOAD)

        strategy = ModelBackedStrategy(make_reasoner(handler), store=InMemoryTTLStore())
        request = make_request("42")
        asyncio.run(strategy.interpret(request))
        asyncio.run(strategy.interpret(replace(request, refresh=True)))
        assert len(calls) == 2

    def test_successful_result_cached_per_player(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        from playstats.core.engine.strategies import ModelBackedStrategy
        calls = []

        def handler(req):
            calls.append(1)
            return completion(MODEL_PAYLOAD)

        store = InMemoryTTLStore()
        strategy = ModelBackedStrategy(make_reasoner(handler), store=store)
        first = asyncio.run(strategy.interpret(make_request("42")))
        second = asyncio.run(strategy.interpret(make_request("42")))
        assert len(calls) == 1
        assert second is first
        assert store.get("model:42") is first

    def test_prompt_is_compact_profile(self):
        from playstats.core.engine.strategies import ModelBackedStrategy
        strategy = ModelBackedStrategy(make_reasoner(lambda req: completion({})))
        messages = strategy.build_messages(make_request())
        assert messages[0]["role"] == "system"
        assert "Counter-Strike 2(1167h)" in messages[1]["content"]
        assert '"n":"Counter-Strike 2"' in messages[1]["content"]

    def test_build_strategy(self):
        from playstats.core.engine.llm_reasoner import LLMConfig, LLMProvider
        from playstats.core.engine.orchestrator import build_strategy
        from playstats.core.engine.strategies import FallbackStrategy, ModelBackedStrategy
        assert isinstance(build_strategy(LLMConfig()), FallbackStrategy)
        assert isinstance(build_strategy(LLMConfig(provider=LLMProvider.GROQ)), FallbackStrategy)
        config = LLMConfig(provider=LLMProvider.GROQ, api_key="k")
        assert isinstance(build_strategy(config), ModelBackedStrategy)


# ═══════════════════════════════════════════════════════════════
# 5. ORCHESTRATOR
# ═══════════════════════════════════════════════════════════════

class TestAnalysisOrchestrator:
    """Tests for orchestrator.py"""

    def test_full_analysis_and_cache(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        from playstats.core.engine.orchestrator import AnalysisOrchestrator
        from playstats.core.engine.steam_client import SteamClient
        calls = []
        store = InMemoryTTLStore()

        async def run():
            transport = httpx.MockTransport(steam_handler(calls=calls))
            async with SteamClient("key", transport=transport) as client:
                orch = AnalysisOrchestrator(client, store=store)
                first = await orch.analyze("765")
                n_calls = len(calls)
                second = await orch.analyze("765")
                return first, second, n_calls

        first, second, n_calls = asyncio.run(run())
        d = first.to_dict()
        assert d["player"]["total_games"] == 2
        assert d["player"]["account_age_days"] == ACCOUNT_AGE_DAYS
        assert d["classification"]["type"] == "Hardcore"
        assert d["features"]["dominant_genre"] == "Action"
        assert d["features"]["free_to_play_ratio"] == 0.5
        assert d["advanced_stats"]["correlations"] == {}
        assert {"player_data", "enrichment", "features", "interpretation"} <= set(d["timing"])
        assert 730 not in [r["id"] for r in d["recommendations"]]

        assert second.cached is True
        assert second is not first
        assert first.cached is False
        assert len(calls) == n_calls
        assert store.get("full:765") is first
        assert store.get("full:765").cached is False

    def test_uncached_analysis_asks_the_model_again(self):
        from playstats.core.engine.cache import InMemoryTTLStore
        from playstats.core.engine.models import ResultSource
        from playstats.core.engine.orchestrator import AnalysisOrchestrator
        from playstats.core.engine.steam_client import SteamClient
        from playstats.core.engine.strategies import ModelBackedStrategy
        model_calls = []

        def model_handler(req):
            model_calls.append(1)
            return completion(MODEL_PAYLOAD)

        store = InMemoryTTLStore()
        strategy = ModelBackedStrategy(make_reasoner(model_handler), store=store)

        async def run():
            transport = httpx.MockTransport(steam_handler())
            async with SteamClient("key", transport=transport) as client:
                orch = AnalysisOrchestrator(client, store=store, strategy=strategy)
                await orch.analyze("765")
                fresh = await orch.analyze("765", use_cache=False)
                await orch.analyze("765")
                return fresh

        fresh = asyncio.run(run())
        assert len(model_calls) == 2
        assert fresh.cached is False
        assert fresh.classification.source == ResultSource.MODEL

    def test_no_games(self):
        from playstats.core.engine.orchestrator import AnalysisOrchestrator, NoGamesError
        from playstats.core.engine.steam_client import SteamClient

        async def run():
            transport = httpx.MockTransport(steam_handler(owned=[]))
            async with SteamClient("key", transport=transport) as client:
                await AnalysisOrchestrator(client).analyze("765")

        with pytest.raises(NoGamesError):
            asyncio.run(run())

    def test_genre_lookup_fetches_unenriched_titles(self):
        from playstats.core.engine.models import GameRecord
        from playstats.core.engine.orchestrator import AnalysisOrchestrator
        from playstats.core.engine.steam_client import SteamClient
        calls = []
        games = [GameRecord(730, "Counter-Strike 2", 70000), GameRecord(413150, "Stardew Valley", 600)]

        async def run():
            transport = httpx.MockTransport(steam_handler(calls=calls))
            async with SteamClient("key", transport=transport) as client:
                lookup = await AnalysisOrchestrator(client).genre_lookup(games, [])
                return lookup(413150), lookup(730), lookup(1)

        assert asyncio.run(run()) == (("Indie", "RPG"), ("Action",), ())
        assert calls.count("/api/appdetails") == 2
