"""
Rebuild ladder ratings from the judgment log.

The log is the source of truth: replaying every judgment in the order it
was recorded, starting from each game's admission rating, reproduces the
stored ratings exactly (same float operations in the same order). Drift between
the two means a rating was written outside apply_judgment, or the
K-factor has changed since the judgments were recorded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from steamrank.elo.calculator import EloCalculator, winner_side
from steamrank.elo.constants import DEFAULT_ELO
from steamrank.ladder.store import RatingStore
from steamrank.ladder.types import Judgment, RatedEntity

logger = logging.getLogger(__name__)

# Differences below this are float noise, not drift
DRIFT_TOLERANCE = 1e-9


@dataclass
class ReplayReport:
    """Outcome of a rebuild."""

    judgments_replayed: int
    ratings: dict[int, RatedEntity]
    drift: dict[int, float] = field(default_factory=dict)
    written: bool = False

    @property
    def max_drift(self) -> float:
        return max((abs(d) for d in self.drift.values()), default=0.0)

    def to_dict(self) -> dict:
        return {
            "judgments_replayed": self.judgments_replayed,
            "games": len(self.ratings),
            "games_drifted": len(self.drift),
            "max_drift": self.max_drift,
            "written": self.written,
        }


def replay_judgments(
    judgments: Iterable[Judgment],
    entity_ids: Iterable[int],
    calculator: Optional[EloCalculator] = None,
    initial_rating: float = DEFAULT_ELO,
    starting_ratings: Optional[Mapping[int, float]] = None,
) -> dict[int, RatedEntity]:
    """
    Fold the judgment log into fresh ladder state.

    Every id in entity_ids starts with zero comparisons, at its entry in
    starting_ratings if it has one and at initial_rating otherwise.
    Judgments are applied in the order given.

    Raises:
        KeyError: If a judgment references a game not in entity_ids
    """
    calculator = calculator or EloCalculator()
    starting_ratings = starting_ratings or {}
    state = {
        entity_id: RatedEntity(entity_id, float(starting_ratings.get(entity_id, initial_rating)), 0)
        for entity_id in entity_ids
    }

    for judgment in judgments:
        a = state[judgment.entity_a]
        b = state[judgment.entity_b]
        side = winner_side(judgment.entity_a, judgment.entity_b, judgment.winner_id)
        result = calculator.calculate(a.rating, b.rating, side)
        state[a.entity_id] = RatedEntity(a.entity_id, result.rating_a_after, a.comparisons_played + 1)
        state[b.entity_id] = RatedEntity(b.entity_id, result.rating_b_after, b.comparisons_played + 1)

    return state


def rebuild_ratings(store: RatingStore, dry_run: bool = False) -> ReplayReport:
    """
    Replay the log and, unless dry_run, write the result back.

    Raises:
        ConcurrencyConflict: If a judgment was recorded while rebuilding
    """
    # Log first: every game it references was admitted before it was read
    judgments = store.judgments()
    current = {entity.entity_id: entity for entity in store.list_all()}

    replayed = replay_judgments(
        judgments,
        current.keys(),
        calculator=store.calculator,
        initial_rating=store.initial_rating,
        starting_ratings=store.initial_ratings(),
    )

    drift = {}
    for entity_id, entity in replayed.items():
        delta = entity.rating - current[entity_id].rating
        if abs(delta) > DRIFT_TOLERANCE or entity.comparisons_played != current[entity_id].comparisons_played:
            drift[entity_id] = delta

    report = ReplayReport(judgments_replayed=len(judgments), ratings=replayed, drift=drift)
    logger.info(
        "Replayed %d judgment(s) over %d game(s); %d drifted (max %.4f)",
        report.judgments_replayed,
        len(replayed),
        len(drift),
        report.max_drift,
    )

    if not dry_run and replayed:
        store.overwrite_ratings(replayed.values(), expected_judgments=len(judgments))
        report.written = True
    return report
