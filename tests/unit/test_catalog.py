"""Unit tests for catalog metadata lookups."""

from datetime import date

import pytest
from sqlalchemy import select

from steamrank.catalog import GameMetadata, SqlCatalog
from steamrank.db.models import Game
from steamrank.db.session import session_scope


@pytest.fixture
def catalog(session_factory):
    return SqlCatalog(session_factory)


def test_describe(catalog, seed_games):
    seed_games(2, admit=False)

    meta = catalog.describe([1, 2, 99])

    assert set(meta) == {1, 2}
    assert meta[1] == GameMetadata(id=1, name="Game 1", price=9.99, score=51, genres=["Action", "Indie"])


def test_describe_nothing(catalog):
    assert catalog.describe([]) == {}


def test_unknown_placeholder():
    assert GameMetadata.unknown(7) == GameMetadata(id=7, name="Unknown")


def test_popular_ids(catalog, seed_games):
    seed_games(5, admit=False)  # scores 51..55

    assert catalog.popular_ids(min_score=53) == [5, 4, 3]
    assert catalog.popular_ids(top=2) == [5, 4]
    assert catalog.popular_ids(min_score=54, top=10) == [5, 4]


def test_release_date_is_a_date(session_factory):
    with session_scope(session_factory, write=True) as session:
        session.add(Game(id=1, name="Dated", release_date=date(2019, 11, 5)))

    with session_scope(session_factory) as session:
        released = session.scalar(select(Game.release_date).where(Game.id == 1))

    assert released == date(2019, 11, 5)
    assert type(released) is date
