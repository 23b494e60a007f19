"""
Elo comparison ladder.

- store: Durable ratings and judgment log (the only rating writer)
- selector: Uniform random pair selection
- leaderboard: Ranked read-only projection
- replay: Rebuild ratings from the judgment log
- service: Request-level orchestration used by the web API
"""

from steamrank.ladder.leaderboard import Leaderboard
from steamrank.ladder.replay import ReplayReport, rebuild_ratings, replay_judgments
from steamrank.ladder.selector import PairSelector
from steamrank.ladder.service import ComparisonResult, ComparisonService, GameCard
from steamrank.ladder.store import RatingStore
from steamrank.ladder.types import AppliedJudgment, Judgment, RankedEntity, RatedEntity

__all__ = [
    "AppliedJudgment",
    "ComparisonResult",
    "ComparisonService",
    "GameCard",
    "Judgment",
    "Leaderboard",
    "PairSelector",
    "RankedEntity",
    "RatedEntity",
    "RatingStore",
    "ReplayReport",
    "rebuild_ratings",
    "replay_judgments",
]
