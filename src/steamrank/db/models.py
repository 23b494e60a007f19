"""
SQLAlchemy ORM models for SteamRank.

The catalog (games) is written by the offline ingestion job and is only
read here, to decorate ladder responses with names, prices and genres.
The ladder itself lives in two tables owned by the rating store:

Tables:
- games: Catalog metadata keyed by catalog id (read-only for this service)
- ladder_entries: One Elo rating and comparison counter per admitted game
- judgments: Append-only log of every comparison submitted by a user

Key design decisions:
- Ratings are plain floats, never rounded, never clamped
- ladder_entries.version is bumped on every write so the store can do a
  compare-and-swap update
- Judgments record the ratings before and after, so the log can be
  audited and replayed
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from steamrank.errors import ImmutableJudgmentError


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Catalog Models
# =============================================================================

class Game(Base):
    """
    Catalog record for a single game.

    Populated by the ingestion job from the public Steam dataset. The id
    is the stable catalog id that the ladder and the client refer to.
    Genres are stored the way the dataset ships them: a comma-separated
    string.
    """
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True)
    app_id: Mapped[Optional[int]] = mapped_column(Integer, unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 0-100
    genres: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ladder_entry: Mapped[Optional["LadderEntry"]] = relationship(back_populates="game")

    @property
    def genre_list(self) -> list[str]:
        if not self.genres:
            return []
        return [g.strip() for g in self.genres.split(",") if g.strip()]

    def __repr__(self) -> str:
        return f"<Game(id={self.id}, name='{self.name}')>"


# =============================================================================
# Ladder Models
# =============================================================================

class LadderEntry(Base):
    """Current Elo state of a game admitted to the ladder."""

    __tablename__ = "ladder_entries"

    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), primary_key=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=1500.0)
    # Rating at admission; replay starts each game from here
    initial_rating: Mapped[float] = mapped_column(Float, nullable=False, default=1500.0)
    comparisons_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Bumped on every rating write; see RatingStore.apply_judgment
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    admitted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    game: Mapped["Game"] = relationship(back_populates="ladder_entry")

    __table_args__ = (
        CheckConstraint("comparisons_played >= 0", name="ck_ladder_comparisons_non_negative"),
        Index("idx_ladder_entries_leaderboard", "rating", "comparisons_played"),
    )

    def __repr__(self) -> str:
        return f"<LadderEntry(game_id={self.game_id}, rating={self.rating:.1f})>"


class JudgmentLog(Base):
    """
    One recorded user choice between two ladder games.

    Rows are written exactly once, in the same transaction as the rating
    update they cause, and are never updated or deleted afterwards.
    """

    __tablename__ = "judgments"

    id: Mapped[int] = mapped_column(primary_key=True)
    entity_a_id: Mapped[int] = mapped_column(ForeignKey("ladder_entries.game_id"), nullable=False)
    entity_b_id: Mapped[int] = mapped_column(ForeignKey("ladder_entries.game_id"), nullable=False)
    winner_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Audit trail of the update this judgment caused
    rating_a_before: Mapped[float] = mapped_column(Float, nullable=False)
    rating_b_before: Mapped[float] = mapped_column(Float, nullable=False)
    rating_a_after: Mapped[float] = mapped_column(Float, nullable=False)
    rating_b_after: Mapped[float] = mapped_column(Float, nullable=False)
    k_factor: Mapped[float] = mapped_column(Float, nullable=False)

    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("entity_a_id <> entity_b_id", name="ck_judgments_distinct_pair"),
        CheckConstraint(
            "winner_id = entity_a_id OR winner_id = entity_b_id",
            name="ck_judgments_winner_in_pair",
        ),
        Index("idx_judgments_entity_a", "entity_a_id"),
        Index("idx_judgments_entity_b", "entity_b_id"),
        Index("idx_judgments_recorded_at", "recorded_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<JudgmentLog(id={self.id}, a={self.entity_a_id}, "
            f"b={self.entity_b_id}, winner={self.winner_id})>"
        )


@event.listens_for(JudgmentLog, "before_update")
def _reject_judgment_update(mapper, connection, target):
    raise ImmutableJudgmentError(f"Judgment {target.id} is immutable and cannot be updated")


@event.listens_for(JudgmentLog, "before_delete")
def _reject_judgment_delete(mapper, connection, target):
    raise ImmutableJudgmentError(f"Judgment {target.id} is immutable and cannot be deleted")
