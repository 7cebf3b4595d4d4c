"""initial schema

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 09:12:40.311204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create item, user, staking and ranking tables."""
    op.create_table(
        "item",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("owner", sa.Text(), nullable=False),
        sa.Column("token_uri", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("rarity_score", sa.Float(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("staked", sa.Boolean(), nullable=False),
        sa.Column("staked_by", sa.Text(), nullable=True),
        sa.Column("staked_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_item_staked_by", "item", ["staked_by"])

    op.create_table(
        "item_attribute",
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("trait_type", sa.Text(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["item.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("item_id", "position"),
    )

    op.create_table(
        "wallet_user",
        sa.Column("wallet_address", sa.Text(), nullable=False),
        sa.Column("points", sa.Float(), nullable=False),
        sa.Column("tier", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("wallet_address"),
    )

    op.create_table(
        "staked_item",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("wallet_address", sa.Text(), nullable=False),
        sa.Column("staked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["item.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["wallet_address"], ["wallet_user.wallet_address"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id"),
    )
    op.create_index("ix_staked_item_wallet_address", "staked_item", ["wallet_address"])

    op.create_table(
        "rarity_ranking",
        sa.Column("item_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("rarity_score", sa.Float(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("build_version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("item_id"),
        sa.UniqueConstraint("rank"),
    )

    op.create_table(
        "ranking_build",
        sa.Column("version", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("built_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("frequencies", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("version"),
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("ranking_build")
    op.drop_table("rarity_ranking")
    op.drop_index("ix_staked_item_wallet_address", table_name="staked_item")
    op.drop_table("staked_item")
    op.drop_table("wallet_user")
    op.drop_table("item_attribute")
    op.drop_index("ix_item_staked_by", table_name="item")
    op.drop_table("item")
