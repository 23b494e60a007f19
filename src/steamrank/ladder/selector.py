"""Random pair selection for the comparison page."""

from __future__ import annotations

import logging
import random
from typing import Optional

from steamrank.errors import ConcurrencyConflict, InsufficientPool, NotFound
from steamrank.ladder.store import RatingStore
from steamrank.ladder.types import RatedEntity

logger = logging.getLogger(__name__)


class PairSelector:
    """
    Picks two distinct ladder games, uniformly at random.

    The whole eligible pool is read on every call (ids only, no paging),
    so every game on the ladder has the same chance of being shown. No
    weighting by rating or comparison count is applied.
    """

    def __init__(self, store: RatingStore, rng: Optional[random.Random] = None, max_attempts: int = 3):
        self.store = store
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts

    def select_pair(self) -> tuple[RatedEntity, RatedEntity]:
        """
        Return two different games from the ladder.

        Raises:
            InsufficientPool: If fewer than two games are on the ladder
            ConcurrencyConflict: If every draw hit a game that had just left the ladder
        """
        for _ in range(self.max_attempts):
            ids = self.store.eligible_ids()
            if len(ids) < 2:
                raise InsufficientPool(len(ids))

            first, second = self.rng.sample(ids, 2)
            try:
                entities = self.store.get_entities({first, second})
            except NotFound:
                # Pool changed between the two reads; draw again
                logger.debug("Selected pair %d/%d vanished, redrawing", first, second)
                continue
            return entities[first], entities[second]

        pool_size = self.store.count()
        if pool_size < 2:
            raise InsufficientPool(pool_size)
        logger.warning("No stable pair after %d draws from %d games", self.max_attempts, pool_size)
        raise ConcurrencyConflict(
            f"Ladder kept changing while drawing a pair ({self.max_attempts} attempts)"
        )
