"""
Recommendation Engine — Deterministic Lookup-Table Recommender
================================================================
Suggests store titles from three static sources:

  1. Genre table    — keyed by dominant genre        (matchScore 0.80)
  2. Style bonus    — extra pick for invested players (matchScore 0.75)
  3. Cluster table  — keyed by archetype label        (matchScore 0.70)

Both tables cover every member of their enumeration; members without a
dedicated list share the table's default list, so an unrecognised genre or
label never raises. Owned titles are removed, candidates are stably sorted
by score (genre before cluster on ties), each title is kept once at its best
score, and the top 10 are returned.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from .models import ClusterLabel, GameStyle, Genre, Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    id: int
    name: str
    reason: str


GENRE_SCORE = 0.8
CLUSTER_SCORE = 0.7
STYLE_BONUS_SCORE = 0.75
MAX_RECOMMENDATIONS = 10


# ═══════════════════════════════════════════════════════════════
# CANDIDATE TABLES
# ═══════════════════════════════════════════════════════════════

_ACTION = [
    Candidate(730, "Counter-Strike 2", "very popular competitive action game"),
    Candidate(1174180, "Red Dead Redemption 2", "immersive action-adventure"),
    Candidate(271590, "Grand Theft Auto V", "open-world action"),
]
_RPG = [
    Candidate(1245620, "ELDEN RING", "acclaimed open-world RPG"),
    Candidate(292030, "The Witcher 3: Wild Hunt", "outstanding narrative RPG"),
    Candidate(1086940, "Baldur's Gate 3", "modern tactical RPG"),
]
_STRATEGY = [
    Candidate(289070, "Sid Meier's Civilization VI", "turn-based strategy"),
    Candidate(236390, "Warhammer 40,000: Dawn of War II", "real-time strategy"),
]
_ADVENTURE = [
    Candidate(1091500, "Cyberpunk 2077", "immersive futuristic adventure"),
    Candidate(1174180, "Red Dead Redemption 2", "western adventure"),
]

GENRE_CANDIDATES: Dict[Genre, List[Candidate]] = {
    Genre.ACTION: _ACTION,
    Genre.ADVENTURE: _ADVENTURE,
    Genre.RPG: _RPG,
    Genre.STRATEGY: _STRATEGY,
    Genre.SIMULATION: _ACTION,
    Genre.SPORTS: _ACTION,
    Genre.RACING: _ACTION,
    Genre.INDIE: _ACTION,
    Genre.CASUAL: _ACTION,
    Genre.UNKNOWN: _ACTION,
}
DEFAULT_GENRE_CANDIDATES = _ACTION

_RELAXED = [
    Candidate(413150, "Stardew Valley", "relaxing game to explore at your own pace"),
    Candidate(367520, "Hollow Knight", "metroidvania built for exploration"),
]
_CASUAL = [
    Candidate(413150, "Stardew Valley", "laid-back and approachable"),
    Candidate(367520, "Hollow Knight", "accessible yet engaging adventure"),
]

CLUSTER_CANDIDATES: Dict[ClusterLabel, List[Candidate]] = {
    ClusterLabel.EXPLORER: _RELAXED,
    ClusterLabel.CASUAL: _CASUAL,
    ClusterLabel.HARDCORE: [
        Candidate(730, "Counter-Strike 2", "demanding competitive game"),
        Candidate(1245620, "ELDEN RING", "hard, engaging challenge"),
    ],
    ClusterLabel.SPECIALIZED: [
        Candidate(289070, "Sid Meier's Civilization VI", "deep strategic mastery"),
        Candidate(292030, "The Witcher 3: Wild Hunt", "deep narrative RPG"),
    ],
}
DEFAULT_CLUSTER_CANDIDATES = _CASUAL

STYLE_BONUS: Dict[GameStyle, List[Candidate]] = {
    GameStyle.INVESTED: [
        Candidate(1245620, "ELDEN RING", "Deep game that rewards a time investment"),
    ],
}


class FallbackRecommender:
    """
    Pure recommender over the static tables. ``recommend`` never raises for
    an unknown genre, label or style.
    """

    def __init__(self, limit: int = MAX_RECOMMENDATIONS):
        self.limit = limit

    def recommend(
        self,
        owned_ids: Iterable[int],
        dominant_genre: str,
        cluster_label,
        game_style=None,
    ) -> List[Recommendation]:
        owned = set(owned_ids)
        label = cluster_label if isinstance(cluster_label, ClusterLabel) else ClusterLabel.parse(cluster_label)

        candidates: List[Recommendation] = []
        candidates.extend(self._by_genre(dominant_genre, owned))
        candidates.extend(self._by_cluster(label, owned))
        candidates.extend(self._by_style(game_style, owned))

        ranked = sorted(candidates, key=lambda r: r.match_score, reverse=True)

        results: List[Recommendation] = []
        seen = set()
        for rec in ranked:
            if rec.id in seen:
                continue
            seen.add(rec.id)
            results.append(rec)

        logger.debug(
            f"Recommendations: {len(candidates)} candidates, {len(results)} unique, "
            f"genre={dominant_genre} label={label.value}"
        )
        return results[: self.limit]

    # ──────────────────────────────────────────────────────────
    # SOURCES
    # ──────────────────────────────────────────────────────────

    def _by_genre(self, dominant_genre: str, owned: set) -> List[Recommendation]:
        table = GENRE_CANDIDATES.get(Genre.parse(dominant_genre), DEFAULT_GENRE_CANDIDATES)
        return [
            Recommendation(
                id=c.id,
                name=c.name,
                reason=f"Based on your preference for {dominant_genre}: {c.reason}",
                match_score=GENRE_SCORE,
            )
            for c in table if c.id not in owned
        ]

    def _by_cluster(self, label: ClusterLabel, owned: set) -> List[Recommendation]:
        table = CLUSTER_CANDIDATES.get(label, DEFAULT_CLUSTER_CANDIDATES)
        return [
            Recommendation(
                id=c.id,
                name=c.name,
                reason=f"For a {label.value} player: {c.reason}",
                match_score=CLUSTER_SCORE,
            )
            for c in table if c.id not in owned
        ]

    def _by_style(self, game_style: Optional[object], owned: set) -> List[Recommendation]:
        try:
            style = GameStyle(game_style) if game_style is not None else None
        except ValueError:
            style = None
        table: Sequence[Candidate] = STYLE_BONUS.get(style, []) if style else []
        return [
            Recommendation(id=c.id, name=c.name, reason=c.reason, match_score=STYLE_BONUS_SCORE)
            for c in table if c.id not in owned
        ]
