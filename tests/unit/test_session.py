"""Unit tests for engine and session helpers."""

import pytest
from sqlalchemy import select, update

from steamrank.catalog import SqlCatalog
from steamrank.db.models import LadderEntry
from steamrank.db.session import create_db_engine, create_session_factory, session_scope
from steamrank.errors import ConcurrencyConflict
from steamrank.ladder.store import RatingStore


@pytest.fixture
def impatient_factory(test_settings, test_engine):
    """Second engine on the same file that gives up on locks quickly."""
    engine = create_db_engine(
        settings=test_settings.model_copy(update={"db_busy_timeout_seconds": 0.2})
    )
    yield create_session_factory(engine)
    engine.dispose()


def test_session_scope_commits(session_factory, seed_games):
    seed_games(1)
    with session_scope(session_factory, write=True) as session:
        session.execute(update(LadderEntry).values(rating=1600.0))

    with session_scope(session_factory) as session:
        assert session.scalar(select(LadderEntry.rating)) == 1600.0


def test_session_scope_rolls_back(session_factory, seed_games):
    seed_games(1)
    with pytest.raises(RuntimeError):
        with session_scope(session_factory, write=True) as session:
            session.execute(update(LadderEntry).values(rating=1600.0))
            raise RuntimeError("abort")

    with session_scope(session_factory) as session:
        assert session.scalar(select(LadderEntry.rating)) == 1500.0


class TestSqliteLocking:
    def test_reads_proceed_while_a_write_is_open(self, session_factory, impatient_factory, seed_games):
        seed_games(2)
        reader = RatingStore(impatient_factory)

        with session_scope(session_factory, write=True) as session:
            session.execute(
                update(LadderEntry).where(LadderEntry.game_id == 1).values(rating=1600.0)
            )

            # Uncommitted write is invisible, but nothing blocks
            assert [e.rating for e in reader.list_all()] == [1500.0, 1500.0]
            assert reader.eligible_ids() == [1, 2]
            assert set(SqlCatalog(impatient_factory).describe([1, 2])) == {1, 2}

        assert reader.list_all()[0].rating == 1600.0

    def test_writes_wait_for_an_open_write(self, session_factory, impatient_factory, seed_games):
        seed_games(2)
        writer = RatingStore(impatient_factory)

        with session_scope(session_factory, write=True):
            with pytest.raises(ConcurrencyConflict):
                writer.apply_judgment(1, 2, winner_id=1)

        assert writer.judgments() == []
