"""
Error taxonomy for the Elo ladder.

Every error carries the HTTP status it maps to, so the web layer can
translate any LadderError into a JSON response with a single handler.
Validation errors are raised before the database is touched; none of
these leave the rating store partially updated.
"""

from __future__ import annotations

from typing import Iterable


class LadderError(Exception):
    """Base class for all ladder errors."""

    status_code = 500


class NotFound(LadderError):
    """One or more games are not on the ladder."""

    status_code = 404

    def __init__(self, missing_ids: Iterable[int], where: str = "on the ladder"):
        self.missing_ids = sorted(set(missing_ids))
        ids = ", ".join(str(i) for i in self.missing_ids)
        super().__init__(f"Game(s) not found {where}: {ids}")


class InvalidPair(LadderError):
    """A game cannot be compared with itself."""

    status_code = 400

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"Cannot compare game {entity_id} with itself")


class InvalidWinner(LadderError):
    """The winner is not one of the two compared games."""

    status_code = 400

    def __init__(self, winner_id: object, entity_a: object = None, entity_b: object = None):
        self.winner_id = winner_id
        if entity_a is None and entity_b is None:
            message = f"Invalid winner {winner_id!r}"
        else:
            message = f"Winner {winner_id} must be one of {entity_a} or {entity_b}"
        super().__init__(message)


class InsufficientPool(LadderError):
    """Fewer than two games are eligible for comparison."""

    status_code = 404

    def __init__(self, pool_size: int):
        self.pool_size = pool_size
        super().__init__(
            f"Need at least 2 games on the ladder to compare, found {pool_size}"
        )


class ConcurrencyConflict(LadderError):
    """A rating row changed underneath a judgment and retries ran out."""

    status_code = 503


class ImmutableJudgmentError(LadderError):
    """Recorded judgments are append-only."""

    status_code = 500
