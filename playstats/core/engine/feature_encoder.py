"""
Feature Encoder — Library → FeatureVector → Numeric Vector
============================================================
Derives the per-request FeatureVector from the full game collection and
turns it into the fixed 7-element numeric vector used for scoring.

Pipeline:
  1. Quantitative features     — totals, average playtime per game
  2. Free-to-play ratio        — store prices when known, playtime proxy otherwise
  3. Genre distribution        — cumulative minutes per genre (capped lookups)
  4. Dominant genre            — genre with the largest accumulated minutes
  5. Game style                — ordered heuristic rules, first match wins
  6. Categorical encoding      — closed genre/style code tables

The "< 10 minutes" free-to-play proxy is a heuristic: it conflates free games
with games that were bought and barely played. It is only used when no store
price is available for any title.
"""

import logging
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from .models import (
    EnrichedGameRecord, FeatureVector, GameRecord, GameStyle, Genre,
)

logger = logging.getLogger(__name__)

GenreLookup = Callable[[int], Sequence[str]]

GENRE_LOOKUP_LIMIT = 50          # games whose genres are accumulated
FREE_TO_PLAY_PROXY_MINUTES = 10  # playtime below this counts as "probably free"
SHORT_GAME_MINUTES = 20
EXPLORER_SHORT_RATIO = 0.5
INVESTED_AVG_MINUTES = 100
VARIED_MIN_GENRES = 10
SPECIALIZED_MAX_GENRES = 3

GENRE_CODES: Dict[Genre, int] = {
    Genre.ACTION: 0,
    Genre.ADVENTURE: 1,
    Genre.RPG: 2,
    Genre.STRATEGY: 3,
    Genre.SIMULATION: 4,
    Genre.SPORTS: 5,
    Genre.RACING: 6,
    Genre.INDIE: 7,
    Genre.CASUAL: 8,
    Genre.UNKNOWN: 9,
}

STYLE_CODES: Dict[GameStyle, int] = {
    GameStyle.EXPLORER: 0,
    GameStyle.INVESTED: 1,
    GameStyle.VARIED: 2,
    GameStyle.SPECIALIZED: 3,
    GameStyle.BALANCED: 4,
}

DEFAULT_GENRE_CODE = GENRE_CODES[Genre.UNKNOWN]
DEFAULT_STYLE_CODE = STYLE_CODES[GameStyle.BALANCED]


class FeatureEncoder:
    """
    Stateless feature derivation. All methods are pure functions of their
    arguments; the optional genre lookup is the only collaborator.
    """

    def __init__(self, genre_limit: int = GENRE_LOOKUP_LIMIT):
        self.genre_limit = genre_limit

    # ──────────────────────────────────────────────────────────
    # 1. FEATURE VECTOR
    # ──────────────────────────────────────────────────────────

    def compute_features(
        self,
        games: Sequence[GameRecord],
        total_playtime: float,
        account_age: float,
        genre_lookup: Optional[GenreLookup] = None,
        enriched_games: Optional[Sequence[EnrichedGameRecord]] = None,
    ) -> FeatureVector:
        total_games = len(games)
        average_playtime = total_playtime / total_games if total_games > 0 else 0.0

        free_to_play_ratio = self.free_to_play_ratio(games, enriched_games)
        genre_distribution = self.genre_distribution(games, genre_lookup)
        dominant_genre = self.dominant_genre(genre_distribution)
        game_style = self.determine_game_style(games, genre_distribution, total_playtime)

        return FeatureVector(
            total_playtime_minutes=total_playtime,
            average_playtime_minutes=average_playtime,
            total_games=total_games,
            free_to_play_ratio=free_to_play_ratio,
            account_age_days=account_age,
            dominant_genre=dominant_genre,
            game_style=game_style,
            genre_distribution=genre_distribution,
        )

    def free_to_play_ratio(
        self,
        games: Sequence[GameRecord],
        enriched_games: Optional[Sequence[EnrichedGameRecord]] = None,
    ) -> float:
        priced = [g for g in (enriched_games or []) if g.price_final is not None]
        if priced:
            free = sum(1 for g in priced if g.price_final == 0)
            return free / len(priced)

        if not games:
            return 0.0
        proxy_free = sum(
            1 for g in games if (g.playtime_minutes_total or 0) < FREE_TO_PLAY_PROXY_MINUTES
        )
        return proxy_free / len(games)

    def genre_distribution(
        self,
        games: Sequence[GameRecord],
        genre_lookup: Optional[GenreLookup] = None,
    ) -> Dict[str, float]:
        distribution: Dict[str, float] = {}
        if genre_lookup is None:
            return distribution

        for game in list(games)[: self.genre_limit]:
            genres = genre_lookup(game.id) or ()
            playtime = game.playtime_minutes_total or 0
            for genre in genres:
                distribution[genre] = distribution.get(genre, 0) + playtime
        return distribution

    @staticmethod
    def dominant_genre(genre_distribution: Dict[str, float]) -> str:
        dominant = Genre.UNKNOWN.value
        best = 0
        for genre, minutes in genre_distribution.items():
            if minutes > best:
                best = minutes
                dominant = genre
        return dominant

    # ──────────────────────────────────────────────────────────
    # 2. GAME STYLE (rule order is significant)
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def determine_game_style(
        games: Sequence[GameRecord],
        genre_distribution: Dict[str, float],
        total_playtime: float,
    ) -> GameStyle:
        total_games = len(games)
        short_games = sum(1 for g in games if (g.playtime_minutes_total or 0) < SHORT_GAME_MINUTES)
        short_ratio = short_games / total_games if total_games > 0 else 0.0
        avg_per_game = total_playtime / total_games if total_games > 0 else 0.0
        distinct_genres = len(genre_distribution)

        if short_ratio > EXPLORER_SHORT_RATIO:
            return GameStyle.EXPLORER
        if avg_per_game > INVESTED_AVG_MINUTES:
            return GameStyle.INVESTED
        if distinct_genres > VARIED_MIN_GENRES:
            return GameStyle.VARIED
        if distinct_genres < SPECIALIZED_MAX_GENRES:
            return GameStyle.SPECIALIZED
        return GameStyle.BALANCED

    # ──────────────────────────────────────────────────────────
    # 3. CATEGORICAL ENCODING
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def genre_code(genre_name: str) -> int:
        return GENRE_CODES.get(Genre.parse(genre_name), DEFAULT_GENRE_CODE)

    @staticmethod
    def style_code(style) -> int:
        try:
            return STYLE_CODES.get(GameStyle(style), DEFAULT_STYLE_CODE)
        except ValueError:
            return DEFAULT_STYLE_CODE

    def encode_categorical(self, features: FeatureVector) -> np.ndarray:
        """
        [total_playtime, average_playtime, total_games, free_to_play_ratio,
         account_age, genre_code, style_code]
        """
        return np.array(
            [
                features.total_playtime_minutes,
                features.average_playtime_minutes,
                features.total_games,
                features.free_to_play_ratio,
                features.account_age_days,
                self.genre_code(features.dominant_genre),
                self.style_code(features.game_style),
            ],
            dtype=np.float64,
        )
