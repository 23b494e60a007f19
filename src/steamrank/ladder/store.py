"""
Rating store: durable ladder state and the judgment log.

This is the only code that writes ratings. Each public method runs in
its own short transaction opened from the injected session factory.

Concurrency model for apply_judgment:
1. Lock both ladder rows in id order (SELECT ... FOR UPDATE on
   PostgreSQL; on SQLite the whole transaction holds the write lock
   because it was opened with BEGIN IMMEDIATE, see db/session.py)
2. Compute the Elo update from the locked values
3. Write each row with a compare-and-swap on its version column
4. Append the judgment row and commit all of it together

If a compare-and-swap misses, or the database reports a transient
serialization/lock failure, the whole transaction is rolled back and
retried immediately, up to max_attempts times.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from steamrank.config import Settings, settings as default_settings
from steamrank.db.models import Game, JudgmentLog, LadderEntry
from steamrank.db.session import session_scope
from steamrank.elo.calculator import EloCalculator, winner_side
from steamrank.elo.constants import DEFAULT_ELO
from steamrank.errors import ConcurrencyConflict, InvalidPair, NotFound
from steamrank.ladder.types import AppliedJudgment, Judgment, RatedEntity

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure and deadlock_detected
_TRANSIENT_PGCODES = {"40001", "40P01"}

LEADERBOARD_ORDER = (
    LadderEntry.rating.desc(),
    LadderEntry.comparisons_played.desc(),
    LadderEntry.game_id.asc(),
)


def _is_transient(exc: OperationalError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in _TRANSIENT_PGCODES:
        return True
    return "database is locked" in str(exc.orig).lower()


def _to_entity(row) -> RatedEntity:
    return RatedEntity(
        entity_id=int(row.game_id),
        rating=float(row.rating),
        comparisons_played=int(row.comparisons_played),
    )


def _to_judgment(log: JudgmentLog) -> Judgment:
    return Judgment(
        judgment_id=log.id,
        entity_a=log.entity_a_id,
        entity_b=log.entity_b_id,
        winner_id=log.winner_id,
        recorded_at=log.recorded_at,
        rating_a_before=log.rating_a_before,
        rating_b_before=log.rating_b_before,
        rating_a_after=log.rating_a_after,
        rating_b_after=log.rating_b_after,
        k_factor=log.k_factor,
    )


class RatingStore:
    """
    Durable, consistent storage of ladder ratings and judgments.

    Usage:
        store = RatingStore(SessionFactory)
        store.admit([10, 20, 30])
        applied = store.apply_judgment(10, 20, winner_id=20)
        print(applied.after_b.rating)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        calculator: Optional[EloCalculator] = None,
        initial_rating: float = DEFAULT_ELO,
        max_attempts: int = 3,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self.calculator = calculator or EloCalculator()
        self.initial_rating = float(initial_rating)
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(
        cls,
        session_factory: Callable[[], Session],
        settings: Optional[Settings] = None,
    ) -> "RatingStore":
        settings = settings or default_settings
        return cls(
            session_factory,
            calculator=EloCalculator(settings.elo_k_factor),
            initial_rating=settings.elo_initial_rating,
            max_attempts=settings.ladder_max_attempts,
        )

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit(self, entity_ids: Iterable[int], initial_rating: Optional[float] = None) -> int:
        """
        Admit catalog games to the ladder.

        Games already on the ladder are left untouched, so admission can
        be re-run safely.

        Returns:
            Number of games newly admitted

        Raises:
            NotFound: If any id is not in the catalog
        """
        ids = set(entity_ids)
        if not ids:
            return 0
        rating = self.initial_rating if initial_rating is None else float(initial_rating)

        with session_scope(self._session_factory, write=True) as session:
            known = set(session.scalars(select(Game.id).where(Game.id.in_(ids))))
            if known != ids:
                raise NotFound(ids - known, where="in the catalog")

            existing = set(
                session.scalars(select(LadderEntry.game_id).where(LadderEntry.game_id.in_(ids)))
            )
            new_ids = sorted(ids - existing)
            for game_id in new_ids:
                session.add(
                    LadderEntry(
                        game_id=game_id,
                        rating=rating,
                        initial_rating=rating,
                        comparisons_played=0,
                        version=0,
                    )
                )

        if new_ids:
            logger.info("Admitted %d game(s) to the ladder at %.1f", len(new_ids), rating)
        return len(new_ids)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_entities(self, ids: Iterable[int]) -> dict[int, RatedEntity]:
        """
        Fetch ladder state for the given games.

        Raises:
            NotFound: If any requested id is not on the ladder
        """
        wanted = set(ids)
        if not wanted:
            return {}
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(
                    LadderEntry.game_id,
                    LadderEntry.rating,
                    LadderEntry.comparisons_played,
                ).where(LadderEntry.game_id.in_(wanted))
            ).all()
        found = {row.game_id: _to_entity(row) for row in rows}
        missing = wanted - found.keys()
        if missing:
            raise NotFound(missing)
        return found

    def list_all(self, limit: Optional[int] = None, offset: int = 0) -> list[RatedEntity]:
        """
        Ladder in leaderboard order.

        Ordered by rating desc, then comparisons_played desc, then
        entity id asc, which is a total order: two calls with no write
        in between return identical sequences.
        """
        query = (
            select(LadderEntry.game_id, LadderEntry.rating, LadderEntry.comparisons_played)
            .order_by(*LEADERBOARD_ORDER)
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        with session_scope(self._session_factory) as session:
            rows = session.execute(query).all()
        return [_to_entity(row) for row in rows]

    def count(self) -> int:
        with session_scope(self._session_factory) as session:
            return session.scalar(select(func.count()).select_from(LadderEntry)) or 0

    def eligible_ids(self) -> list[int]:
        """Every game currently on the ladder, unpaginated."""
        with session_scope(self._session_factory) as session:
            return list(session.scalars(select(LadderEntry.game_id).order_by(LadderEntry.game_id)))

    def initial_ratings(self) -> dict[int, float]:
        """Rating each ladder game was admitted at, by game id."""
        with session_scope(self._session_factory) as session:
            rows = session.execute(select(LadderEntry.game_id, LadderEntry.initial_rating)).all()
        return {int(row.game_id): float(row.initial_rating) for row in rows}

    def judgments(self) -> list[Judgment]:
        """The full judgment log in the order it was written."""
        with session_scope(self._session_factory) as session:
            logs = session.scalars(select(JudgmentLog).order_by(JudgmentLog.id)).all()
            return [_to_judgment(log) for log in logs]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def apply_judgment(self, entity_a: int, entity_b: int, winner_id: int) -> AppliedJudgment:
        """
        Record one comparison and update both ratings atomically.

        Reads both current ratings, computes the Elo update, bumps both
        comparison counters by one and appends a judgment row. Either
        all of that commits or none of it does.

        Raises:
            InvalidPair: If entity_a == entity_b (nothing is read or written)
            InvalidWinner: If winner_id is neither game (nothing is read or written)
            NotFound: If either game is not on the ladder
            ConcurrencyConflict: If every attempt lost a race for the rows
        """
        if entity_a == entity_b:
            raise InvalidPair(entity_a)
        side = winner_side(entity_a, entity_b, winner_id)

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                with session_scope(self._session_factory, write=True) as session:
                    applied = self._apply_once(session, entity_a, entity_b, winner_id, side)
            except ConcurrencyConflict as exc:
                last_error = exc
            except OperationalError as exc:
                if not _is_transient(exc):
                    raise
                last_error = exc
            else:
                logger.info(
                    "Judgment %d: %d vs %d, winner %d (%.1f -> %.1f, %.1f -> %.1f)",
                    applied.judgment.judgment_id,
                    entity_a,
                    entity_b,
                    winner_id,
                    applied.before_a.rating,
                    applied.after_a.rating,
                    applied.before_b.rating,
                    applied.after_b.rating,
                )
                return applied

            logger.warning(
                "Judgment %d vs %d conflicted (attempt %d/%d): %s",
                entity_a,
                entity_b,
                attempt,
                self.max_attempts,
                last_error,
            )

        logger.error(
            "Giving up on judgment %d vs %d after %d attempts",
            entity_a,
            entity_b,
            self.max_attempts,
        )
        raise ConcurrencyConflict(
            f"Could not record judgment {entity_a} vs {entity_b} "
            f"after {self.max_attempts} attempts"
        ) from last_error

    def _apply_once(
        self,
        session: Session,
        entity_a: int,
        entity_b: int,
        winner_id: int,
        side: str,
    ) -> AppliedJudgment:
        rows = session.execute(
            select(
                LadderEntry.game_id,
                LadderEntry.rating,
                LadderEntry.comparisons_played,
                LadderEntry.version,
            )
            .where(LadderEntry.game_id.in_((entity_a, entity_b)))
            .order_by(LadderEntry.game_id)
            .with_for_update()
        ).all()
        by_id = {row.game_id: row for row in rows}
        missing = {entity_a, entity_b} - by_id.keys()
        if missing:
            raise NotFound(missing)

        before_a = _to_entity(by_id[entity_a])
        before_b = _to_entity(by_id[entity_b])
        elo = self.calculator.calculate(before_a.rating, before_b.rating, side)

        after_a = RatedEntity(entity_a, elo.rating_a_after, before_a.comparisons_played + 1)
        after_b = RatedEntity(entity_b, elo.rating_b_after, before_b.comparisons_played + 1)

        now = datetime.utcnow()
        for after in (after_a, after_b):
            seen_version = by_id[after.entity_id].version
            result = session.execute(
                update(LadderEntry)
                .where(
                    LadderEntry.game_id == after.entity_id,
                    LadderEntry.version == seen_version,
                )
                .values(
                    rating=after.rating,
                    comparisons_played=after.comparisons_played,
                    version=seen_version + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConcurrencyConflict(
                    f"Game {after.entity_id} changed since version {seen_version}"
                )

        log = JudgmentLog(
            entity_a_id=entity_a,
            entity_b_id=entity_b,
            winner_id=winner_id,
            rating_a_before=before_a.rating,
            rating_b_before=before_b.rating,
            rating_a_after=after_a.rating,
            rating_b_after=after_b.rating,
            k_factor=elo.k_factor,
            recorded_at=now,
        )
        session.add(log)
        session.flush()

        return AppliedJudgment(
            before_a=before_a,
            before_b=before_b,
            after_a=after_a,
            after_b=after_b,
            judgment=_to_judgment(log),
            update=elo,
        )

    def overwrite_ratings(
        self,
        entities: Iterable[RatedEntity],
        expected_judgments: Optional[int] = None,
    ) -> int:
        """
        Replace stored ratings and counters wholesale.

        Only used by the replay rebuild. All rows are locked for the
        duration, and every version is bumped so any judgment that read
        the old values fails its compare-and-swap and retries.

        Args:
            entities: New state per game
            expected_judgments: Size of the log the new state was computed
                from. Once the rows are locked no judgment can commit, so
                if the log has grown since, the write is abandoned.

        Returns:
            Number of rows written

        Raises:
            NotFound: If any entity is not on the ladder
            ConcurrencyConflict: If the judgment log changed under the rebuild
        """
        replacement = {e.entity_id: e for e in entities}
        if not replacement:
            return 0
        with session_scope(self._session_factory, write=True) as session:
            rows = session.execute(
                select(LadderEntry.game_id, LadderEntry.version)
                .where(LadderEntry.game_id.in_(replacement.keys()))
                .order_by(LadderEntry.game_id)
                .with_for_update()
            ).all()
            missing = replacement.keys() - {row.game_id for row in rows}
            if missing:
                raise NotFound(missing)

            if expected_judgments is not None:
                logged = session.scalar(select(func.count()).select_from(JudgmentLog)) or 0
                if logged != expected_judgments:
                    raise ConcurrencyConflict(
                        f"Judgment log grew from {expected_judgments} to {logged} during rebuild"
                    )

            now = datetime.utcnow()
            for row in rows:
                entity = replacement[row.game_id]
                session.execute(
                    update(LadderEntry)
                    .where(LadderEntry.game_id == row.game_id)
                    .values(
                        rating=entity.rating,
                        comparisons_played=entity.comparisons_played,
                        version=row.version + 1,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
        logger.info("Overwrote ratings for %d game(s)", len(replacement))
        return len(replacement)
