"""Unit tests for the leaderboard projection."""

import pytest

from steamrank.ladder.leaderboard import Leaderboard
from steamrank.ladder.types import RatedEntity


class SpyStore:
    """Records how the leaderboard pages through the store."""

    def __init__(self, entities):
        self.entities = list(entities)
        self.calls = []

    def list_all(self, limit=None, offset=0):
        self.calls.append((limit, offset))
        end = None if limit is None else offset + limit
        return self.entities[offset:end]


def _entities(count):
    return [RatedEntity(i, 2000.0 - i, i) for i in range(1, count + 1)]


class TestTopN:
    def test_ranks_are_one_based_and_ordered(self, store, seed_games):
        seed_games(4)
        store.overwrite_ratings([
            RatedEntity(1, 1490.0, 3),
            RatedEntity(2, 1550.0, 1),
            RatedEntity(3, 1550.0, 4),
            RatedEntity(4, 1500.0, 2),
        ])

        ranked = list(Leaderboard(store).top_n(10))

        assert [r.rank for r in ranked] == [1, 2, 3, 4]
        assert [r.entity.entity_id for r in ranked] == [3, 2, 4, 1]

    def test_stops_at_n(self, store, seed_games):
        seed_games(5)
        assert len(list(Leaderboard(store).top_n(3))) == 3

    def test_pages_through_store(self):
        spy = SpyStore(_entities(5))

        ranked = list(Leaderboard(spy, page_size=2).top_n(5))

        assert [r.entity.entity_id for r in ranked] == [1, 2, 3, 4, 5]
        assert [r.rank for r in ranked] == [1, 2, 3, 4, 5]
        assert spy.calls == [(2, 0), (2, 2), (1, 4)]

    def test_stops_when_store_runs_out(self):
        spy = SpyStore(_entities(3))

        ranked = list(Leaderboard(spy, page_size=2).top_n(10))

        assert len(ranked) == 3
        assert spy.calls == [(2, 0), (2, 2)]

    def test_is_lazy(self):
        spy = SpyStore(_entities(10))
        ranked = Leaderboard(spy, page_size=2).top_n(10)

        assert spy.calls == []
        assert next(ranked).rank == 1
        assert spy.calls == [(2, 0)]

    def test_is_restartable(self, store, seed_games):
        seed_games(3)
        store.apply_judgment(1, 3, winner_id=3)
        board = Leaderboard(store)

        assert list(board.top_n(3)) == list(board.top_n(3))

    def test_zero(self):
        assert list(Leaderboard(SpyStore(_entities(2))).top_n(0)) == []

    def test_negative_n_rejected(self):
        with pytest.raises(ValueError):
            Leaderboard(SpyStore([])).top_n(-1)


class TestPage:
    def test_page_ranks_are_absolute(self):
        board = Leaderboard(SpyStore(_entities(7)))

        page = board.page(2, per_page=3)

        assert [r.rank for r in page] == [4, 5, 6]
        assert [r.entity.entity_id for r in page] == [4, 5, 6]

    def test_invalid_page(self):
        with pytest.raises(ValueError):
            Leaderboard(SpyStore([])).page(0, per_page=10)
