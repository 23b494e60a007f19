"""
Comparison service: the request-level entry point to the ladder.

A comparison round as the client sees it:

    Idle -> PairShown -> JudgmentSubmitted -> ResultShown -> Idle
                     \\-> Idle (skipped; nothing is written)

The server keeps no per-round state. request_pair() is a read,
submit_judgment() is a single atomic write, and skipping a pair simply
means the client never submits it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from steamrank.catalog import CatalogLookup, GameMetadata
from steamrank.elo.calculator import winner_side
from steamrank.errors import InvalidPair
from steamrank.ladder.leaderboard import Leaderboard
from steamrank.ladder.selector import PairSelector
from steamrank.ladder.store import RatingStore
from steamrank.ladder.types import RankedEntity, RatedEntity


@dataclass(frozen=True)
class GameCard:
    """A ladder game decorated with catalog metadata."""

    meta: GameMetadata
    entity: RatedEntity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entity.entity_id,
            "name": self.meta.name,
            "price": self.meta.price,
            "score": self.meta.score,
            "genres": list(self.meta.genres),
            "elo": self.entity.rating,
            "gamesPlayed": self.entity.comparisons_played,
        }


@dataclass(frozen=True)
class LeaderboardRow:
    card: GameCard
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {**self.card.to_dict(), "rank": self.rank}


@dataclass(frozen=True)
class RatingChange:
    """One side of a judgment, before and after."""

    before: RatedEntity
    after: RatedEntity

    @property
    def elo_change(self) -> float:
        return self.after.rating - self.before.rating

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.before.entity_id,
            "eloBefore": self.before.rating,
            "eloAfter": self.after.rating,
            "eloChange": self.elo_change,
            "gamesPlayedBefore": self.before.comparisons_played,
            "gamesPlayedAfter": self.after.comparisons_played,
        }


@dataclass(frozen=True)
class ComparisonResult:
    game1: RatingChange
    game2: RatingChange
    winner_id: int
    judgment_id: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "game1": self.game1.to_dict(),
            "game2": self.game2.to_dict(),
            "winnerId": self.winner_id,
            "judgmentId": self.judgment_id,
        }


class ComparisonService:
    """
    Orchestrates pair selection, judgment submission and rankings.

    Usage:
        service = ComparisonService(store, PairSelector(store), Leaderboard(store), catalog)
        left, right = service.request_pair()
        result = service.submit_judgment(left.entity.entity_id, right.entity.entity_id,
                                         winner_id=right.entity.entity_id)
    """

    def __init__(
        self,
        store: RatingStore,
        selector: PairSelector,
        leaderboard: Leaderboard,
        catalog: CatalogLookup,
        leaderboard_size: int = 100,
    ):
        self.store = store
        self.selector = selector
        self.board = leaderboard
        self.catalog = catalog
        self.leaderboard_size = leaderboard_size

    def request_pair(self) -> tuple[GameCard, GameCard]:
        """
        Two distinct games to show the user.

        Raises:
            InsufficientPool: If fewer than two games are on the ladder
        """
        first, second = self.selector.select_pair()
        meta = self.catalog.describe({first.entity_id, second.entity_id})
        return self._card(first, meta), self._card(second, meta)

    def submit_judgment(self, game1_id: int, game2_id: int, winner_id: int) -> ComparisonResult:
        """
        Record the user's choice and return both rating changes.

        Raises:
            InvalidPair: If game1_id == game2_id
            InvalidWinner: If winner_id is neither game
            NotFound: If either game is not on the ladder
            ConcurrencyConflict: If the write kept losing races
        """
        if game1_id == game2_id:
            raise InvalidPair(game1_id)
        winner_side(game1_id, game2_id, winner_id)

        applied = self.store.apply_judgment(game1_id, game2_id, winner_id)
        return ComparisonResult(
            game1=RatingChange(applied.before_a, applied.after_a),
            game2=RatingChange(applied.before_b, applied.after_b),
            winner_id=applied.winner_id,
            judgment_id=applied.judgment.judgment_id,
        )

    def leaderboard(self, limit: Optional[int] = None, page: Optional[int] = None) -> list[LeaderboardRow]:
        """
        Games by rating, best first.

        Without a page this is the top `limit` games. With a page (1-based)
        it is that page of the full ranking, `limit` rows per page. Either
        way `limit` is capped at leaderboard_size.
        """
        if limit is None or limit > self.leaderboard_size:
            limit = self.leaderboard_size
        ranked: list[RankedEntity]
        if page is None:
            ranked = list(self.board.top_n(limit))
        else:
            ranked = self.board.page(page, per_page=limit)
        meta = self.catalog.describe(r.entity.entity_id for r in ranked)
        return [LeaderboardRow(card=self._card(r.entity, meta), rank=r.rank) for r in ranked]

    @staticmethod
    def _card(entity: RatedEntity, meta: dict[int, GameMetadata]) -> GameCard:
        return GameCard(
            meta=meta.get(entity.entity_id) or GameMetadata.unknown(entity.entity_id),
            entity=entity,
        )
