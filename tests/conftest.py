"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from decimal import Decimal

import pytest

from steamrank.config import Settings
from steamrank.db.models import Base, Game
from steamrank.db.session import create_db_engine, create_session_factory, session_scope
from steamrank.ladder.store import RatingStore


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return Settings(database_url=f"sqlite:///{tmp_path / 'steamrank.db'}")


@pytest.fixture
def test_engine(test_settings):
    """
    Create a test database engine with all tables.

    Uses a file-backed SQLite database (one per test) so that several
    threads can open their own connections, which the concurrency tests
    rely on. The engine is built exactly like production's.
    """
    engine = create_db_engine(settings=test_settings)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory):
    return RatingStore(session_factory)


@pytest.fixture
def seed_games(session_factory, store):
    """
    Insert catalog games and (by default) admit them to the ladder.

    Usage:
        ids = seed_games(3)                 # games 1..3, on the ladder
        ids = seed_games(2, start=10, admit=False)
    """

    def _seed(count: int, start: int = 1, admit: bool = True) -> list[int]:
        ids = list(range(start, start + count))
        with session_scope(session_factory, write=True) as session:
            for game_id in ids:
                session.add(
                    Game(
                        id=game_id,
                        app_id=100000 + game_id,
                        name=f"Game {game_id}",
                        price=Decimal("9.99"),
                        score=50 + game_id % 50,
                        genres="Action, Indie",
                    )
                )
        if admit:
            store.admit(ids)
        return ids

    return _seed
