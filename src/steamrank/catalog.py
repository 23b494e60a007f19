"""
Read-only access to catalog metadata.

The ladder never reads or writes catalog fields itself; the comparison
service uses this lookup only to decorate responses with a name, price,
score and genres for each game id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from steamrank.db.models import Game
from steamrank.db.session import session_scope


@dataclass(frozen=True)
class GameMetadata:
    """Display fields for one catalog game."""

    id: int
    name: str
    price: Optional[float] = None
    score: Optional[int] = None
    genres: list[str] = field(default_factory=list)

    @classmethod
    def unknown(cls, game_id: int) -> "GameMetadata":
        return cls(id=game_id, name="Unknown")


class CatalogLookup(Protocol):
    def describe(self, ids: Iterable[int]) -> dict[int, GameMetadata]:
        ...


class SqlCatalog:
    """Catalog lookup backed by the games table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def describe(self, ids: Iterable[int]) -> dict[int, GameMetadata]:
        """
        Metadata for each requested id.

        Ids missing from the catalog are simply absent from the result.
        """
        wanted = set(ids)
        if not wanted:
            return {}
        with session_scope(self._session_factory) as session:
            games = session.scalars(select(Game).where(Game.id.in_(wanted))).all()
            return {
                game.id: GameMetadata(
                    id=game.id,
                    name=game.name,
                    price=float(game.price) if game.price is not None else None,
                    score=game.score,
                    genres=game.genre_list,
                )
                for game in games
            }

    def popular_ids(self, min_score: Optional[int] = None, top: Optional[int] = None) -> list[int]:
        """
        Catalog ids that qualify for the ladder.

        Args:
            min_score: Keep games scoring at least this much
            top: Keep only the best `top` games by score (ties by id)
        """
        query = select(Game.id).where(Game.score.is_not(None))
        if min_score is not None:
            query = query.where(Game.score >= min_score)
        query = query.order_by(desc(Game.score), Game.id)
        if top is not None:
            query = query.limit(top)
        with session_scope(self._session_factory) as session:
            return list(session.scalars(query))
