"""Typed records handed out by the rating store.

Database rows are mapped into these at the store boundary, so nothing
outside ladder/store.py ever sees an ORM object or a raw driver row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from steamrank.elo.calculator import EloUpdate


@dataclass(frozen=True)
class RatedEntity:
    """A game's position on the ladder."""

    entity_id: int
    rating: float
    comparisons_played: int


@dataclass(frozen=True)
class Judgment:
    """One immutable entry of the judgment log."""

    judgment_id: int
    entity_a: int
    entity_b: int
    winner_id: int
    recorded_at: datetime
    rating_a_before: float
    rating_b_before: float
    rating_a_after: float
    rating_b_after: float
    k_factor: float


@dataclass(frozen=True)
class AppliedJudgment:
    """Both sides of a committed judgment, before and after the update."""

    before_a: RatedEntity
    before_b: RatedEntity
    after_a: RatedEntity
    after_b: RatedEntity
    judgment: Judgment
    update: EloUpdate

    @property
    def winner_id(self) -> int:
        return self.judgment.winner_id


@dataclass(frozen=True)
class RankedEntity:
    """A leaderboard row: 1-based rank plus the rated game."""

    rank: int
    entity: RatedEntity
