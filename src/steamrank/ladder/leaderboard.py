"""Read-only ranked view of the ladder."""

from __future__ import annotations

from typing import Iterator

from steamrank.ladder.store import RatingStore
from steamrank.ladder.types import RankedEntity


class Leaderboard:
    """
    Ranks ladder games by rating.

    Order is rating desc, then comparisons_played desc, then id asc.
    Ranks are 1-based positions in that order, so tied ratings still get
    distinct, stable ranks.
    """

    def __init__(self, store: RatingStore, page_size: int = 100):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.store = store
        self.page_size = page_size

    def top_n(self, n: int) -> Iterator[RankedEntity]:
        """
        Lazily yield the top `n` games with their ranks.

        Rows are fetched from the store one page at a time as the caller
        iterates. Each call returns a fresh generator starting at rank 1.
        """
        if n < 0:
            raise ValueError("n must be non-negative")
        return self._iter_ranked(n)

    def _iter_ranked(self, n: int) -> Iterator[RankedEntity]:
        rank = 0
        while rank < n:
            wanted = min(self.page_size, n - rank)
            batch = self.store.list_all(limit=wanted, offset=rank)
            for entity in batch:
                rank += 1
                yield RankedEntity(rank=rank, entity=entity)
            if len(batch) < wanted:
                return

    def page(self, page: int, per_page: int) -> list[RankedEntity]:
        """One page of the leaderboard (1-indexed) with absolute ranks."""
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be at least 1")
        offset = (page - 1) * per_page
        entities = self.store.list_all(limit=per_page, offset=offset)
        return [
            RankedEntity(rank=offset + i + 1, entity=entity)
            for i, entity in enumerate(entities)
        ]
