"""
Engine Data Model — Records, Features and Results
===================================================
Plain dataclasses shared by every engine component. Records coming from the
platform are frozen; results are built once per request and never mutated
afterwards.

Absent optional fields are ``None``, never 0: a free game has
``price_final == 0`` and a game without store data has ``price_final is None``.
Every ``to_dict()`` returns a JSON-compatible structure.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


# ═══════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════

class PlayerType(str, Enum):
    HARDCORE = "Hardcore"
    CASUAL = "Casual"


class ClusterLabel(str, Enum):
    EXPLORER = "Explorer"
    CASUAL = "Casual"
    HARDCORE = "Hardcore"
    SPECIALIZED = "Specialized"

    @property
    def cluster_id(self) -> int:
        return CLUSTER_IDS[self]

    @classmethod
    def from_cluster_id(cls, cluster_id: int) -> "ClusterLabel":
        for label, cid in CLUSTER_IDS.items():
            if cid == cluster_id:
                return label
        return cls.CASUAL

    @classmethod
    def parse(cls, value: Optional[str]) -> "ClusterLabel":
        for label in cls:
            if value and label.value.lower() == str(value).strip().lower():
                return label
        return cls.CASUAL


CLUSTER_IDS: Dict[ClusterLabel, int] = {
    ClusterLabel.EXPLORER: 0,
    ClusterLabel.CASUAL: 1,
    ClusterLabel.HARDCORE: 2,
    ClusterLabel.SPECIALIZED: 3,
}


class GameStyle(str, Enum):
    EXPLORER = "Explorer"
    INVESTED = "Invested"
    VARIED = "Varied"
    SPECIALIZED = "Specialized"
    BALANCED = "Balanced"


class Genre(str, Enum):
    ACTION = "Action"
    ADVENTURE = "Adventure"
    RPG = "RPG"
    STRATEGY = "Strategy"
    SIMULATION = "Simulation"
    SPORTS = "Sports"
    RACING = "Racing"
    INDIE = "Indie"
    CASUAL = "Casual"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Genre":
        """Map a free-form store genre name onto the closed table."""
        if value:
            needle = str(value).strip().lower()
            for genre in cls:
                if genre.value.lower() == needle:
                    return genre
        return cls.UNKNOWN


class ResultSource(str, Enum):
    MODEL = "Model"
    FALLBACK = "Fallback"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Impact":
        if value in ("negative", "-"):
            return cls.NEGATIVE
        if value in ("neutral", "="):
            return cls.NEUTRAL
        return cls.POSITIVE


# ═══════════════════════════════════════════════════════════════
# INPUT RECORDS
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GameRecord:
    """One owned title as reported by the platform."""
    id: int
    name: str
    playtime_minutes_total: int = 0
    playtime_minutes_recent: Optional[int] = None

    @property
    def playtime_hours(self) -> float:
        return (self.playtime_minutes_total or 0) / 60

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items()}


@dataclass(frozen=True)
class EnrichedGameRecord(GameRecord):
    """GameRecord plus optional store metadata. ``None`` means "not supplied"."""
    price_final: Optional[int] = None          # minor currency units
    currency: Optional[str] = None
    release_date: Optional[str] = None
    positive_ratings: Optional[int] = None
    negative_ratings: Optional[int] = None
    total_ratings: Optional[int] = None
    rating_ratio: Optional[float] = None        # positive / total, clamped to [0, 1]
    genres: Optional[Tuple[str, ...]] = None
    categories: Optional[Tuple[str, ...]] = None
    achievements_total: Optional[int] = None
    current_players: Optional[int] = None

    def __post_init__(self):
        if self.rating_ratio is not None:
            object.__setattr__(self, "rating_ratio", clamp(float(self.rating_ratio), 0.0, 1.0))
        if self.genres is not None and not isinstance(self.genres, tuple):
            object.__setattr__(self, "genres", tuple(self.genres))
        if self.categories is not None and not isinstance(self.categories, tuple):
            object.__setattr__(self, "categories", tuple(self.categories))

    @classmethod
    def from_game(cls, game: GameRecord, **extra) -> "EnrichedGameRecord":
        return cls(
            id=game.id,
            name=game.name,
            playtime_minutes_total=game.playtime_minutes_total,
            playtime_minutes_recent=game.playtime_minutes_recent,
            **extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for k, v in self.__dict__.items():
            if v is None:
                continue
            out[k] = list(v) if isinstance(v, tuple) else v
        return out


@dataclass
class PlayerData:
    steam_id: str
    games: List[GameRecord] = field(default_factory=list)
    total_games: int = 0
    total_playtime_minutes: int = 0
    account_age_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steam_id": self.steam_id,
            "games": [g.to_dict() for g in self.games],
            "total_games": self.total_games,
            "total_playtime_minutes": self.total_playtime_minutes,
            "account_age_days": self.account_age_days,
        }


# ═══════════════════════════════════════════════════════════════
# DERIVED FEATURES & STATISTICS
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FeatureVector:
    total_playtime_minutes: float = 0.0
    average_playtime_minutes: float = 0.0
    total_games: int = 0
    free_to_play_ratio: float = 0.0
    account_age_days: float = 0.0
    dominant_genre: str = Genre.UNKNOWN.value
    game_style: GameStyle = GameStyle.BALANCED
    genre_distribution: Dict[str, float] = field(default_factory=dict)

    @property
    def total_playtime_hours(self) -> float:
        return self.total_playtime_minutes / 60

    @property
    def distinct_genres(self) -> int:
        return len(self.genre_distribution)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_playtime_minutes": self.total_playtime_minutes,
            "average_playtime_minutes": self.average_playtime_minutes,
            "total_games": self.total_games,
            "free_to_play_ratio": self.free_to_play_ratio,
            "account_age_days": self.account_age_days,
            "dominant_genre": self.dominant_genre,
            "game_style": self.game_style.value,
            "genre_distribution": dict(self.genre_distribution),
        }


@dataclass
class Quartiles:
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0
    iqr: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"q1": self.q1, "q2": self.q2, "q3": self.q3, "iqr": self.iqr}


@dataclass
class AdvancedStats:
    quartiles: Quartiles = field(default_factory=Quartiles)
    coefficient_of_variation: float = 0.0
    skewness: float = 0.0
    kurtosis: float = 0.0
    # Only the pairs that were actually computed are present.
    correlations: Dict[str, float] = field(default_factory=dict)
    explanations: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quartiles": self.quartiles.to_dict(),
            "coefficient_of_variation": self.coefficient_of_variation,
            "skewness": self.skewness,
            "kurtosis": self.kurtosis,
            "correlations": dict(self.correlations),
            "explanations": dict(self.explanations),
        }


@dataclass
class PlayerStats:
    """Descriptive playtime statistics (hours)."""
    mean: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    std: float = 0.0
    top_genres: List[Dict[str, Any]] = field(default_factory=list)
    playtime_distribution: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": self.mean,
            "median": self.median,
            "min": self.min,
            "max": self.max,
            "std": self.std,
            "trends": {
                "top_genres": list(self.top_genres),
                "playtime_distribution": list(self.playtime_distribution),
            },
        }


# ═══════════════════════════════════════════════════════════════
# INTERPRETATION RESULTS
# ═══════════════════════════════════════════════════════════════

@dataclass
class ClassificationResult:
    type: PlayerType
    probability: float
    threshold: float
    source: ResultSource = ResultSource.FALLBACK

    def __post_init__(self):
        self.probability = clamp(float(self.probability), 0.0, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "probability": self.probability,
            "threshold": self.threshold,
            "source": self.source.value,
        }


@dataclass
class ClusteringResult:
    cluster: int
    label: ClusterLabel
    characteristics: List[str] = field(default_factory=list)
    source: ResultSource = ResultSource.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cluster": self.cluster,
            "label": self.label.value,
            "characteristics": list(self.characteristics),
            "source": self.source.value,
        }


@dataclass
class Recommendation:
    id: int
    name: str
    reason: str
    match_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items()}


@dataclass
class SuccessFactor:
    name: str
    importance: float
    impact: Impact = Impact.NEUTRAL
    description: str = ""

    def __post_init__(self):
        self.importance = clamp(float(self.importance), 0.0, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "importance": self.importance,
            "impact": self.impact.value,
            "description": self.description,
        }


@dataclass
class SuccessFactorsAnalysis:
    top_factors: List[SuccessFactor] = field(default_factory=list)
    summary: str = ""
    source: ResultSource = ResultSource.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top_factors": [f.to_dict() for f in self.top_factors],
            "summary": self.summary,
            "source": self.source.value,
        }


@dataclass
class GamePrediction:
    id: int
    game_name: str
    will_succeed: bool
    probability: float
    factors: List[SuccessFactor] = field(default_factory=list)
    explanation: str = ""
    source: ResultSource = ResultSource.FALLBACK

    def __post_init__(self):
        self.probability = clamp(float(self.probability), 0.0, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "game_name": self.game_name,
            "will_succeed": self.will_succeed,
            "probability": self.probability,
            "factors": [f.to_dict() for f in self.factors],
            "explanation": self.explanation,
            "source": self.source.value,
        }
