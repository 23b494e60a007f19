"""Create games catalog, ladder entries and judgment log tables

Revision ID: 5e1c0a7d3b92
Revises:
Create Date: 2026-10-19 12:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "5e1c0a7d3b92"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("app_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("genres", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("app_id"),
    )

    op.create_table(
        "ladder_entries",
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False, server_default="1500"),
        sa.Column("initial_rating", sa.Float(), nullable=False, server_default="1500"),
        sa.Column("comparisons_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("admitted_at", sa.DateTime(), nullable=True, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("game_id"),
        sa.CheckConstraint("comparisons_played >= 0", name="ck_ladder_comparisons_non_negative"),
    )
    op.create_index(
        "idx_ladder_entries_leaderboard",
        "ladder_entries",
        ["rating", "comparisons_played"],
    )

    op.create_table(
        "judgments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entity_a_id", sa.Integer(), nullable=False),
        sa.Column("entity_b_id", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.Integer(), nullable=False),
        sa.Column("rating_a_before", sa.Float(), nullable=False),
        sa.Column("rating_b_before", sa.Float(), nullable=False),
        sa.Column("rating_a_after", sa.Float(), nullable=False),
        sa.Column("rating_b_after", sa.Float(), nullable=False),
        sa.Column("k_factor", sa.Float(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["entity_a_id"], ["ladder_entries.game_id"]),
        sa.ForeignKeyConstraint(["entity_b_id"], ["ladder_entries.game_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("entity_a_id <> entity_b_id", name="ck_judgments_distinct_pair"),
        sa.CheckConstraint(
            "winner_id = entity_a_id OR winner_id = entity_b_id",
            name="ck_judgments_winner_in_pair",
        ),
    )
    op.create_index("idx_judgments_entity_a", "judgments", ["entity_a_id"])
    op.create_index("idx_judgments_entity_b", "judgments", ["entity_b_id"])
    op.create_index("idx_judgments_recorded_at", "judgments", ["recorded_at"])


def downgrade() -> None:
    op.drop_index("idx_judgments_recorded_at", table_name="judgments")
    op.drop_index("idx_judgments_entity_b", table_name="judgments")
    op.drop_index("idx_judgments_entity_a", table_name="judgments")
    op.drop_table("judgments")

    op.drop_index("idx_ladder_entries_leaderboard", table_name="ladder_entries")
    op.drop_table("ladder_entries")

    op.drop_table("games")
