"""Create model_nfts, contributor_shares and marketplace_listings tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "model_nfts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("token_id", sa.String(64), nullable=False, unique=True),
        sa.Column("task_id", UUID(as_uuid=True), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("model_type", sa.String(50), nullable=False),
        sa.Column("accuracy", sa.Float, nullable=False),
        sa.Column("training_rounds", sa.Integer, nullable=False),
        sa.Column("ipfs_uri", sa.String(512), nullable=False),
        sa.Column("metadata_uri", sa.String(512), nullable=False),
        sa.Column("creator_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("current_owner_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_listed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("price", sa.Float),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_model_nfts_task_id", "model_nfts", ["task_id"])
    op.create_index("ix_model_nfts_creator_id", "model_nfts", ["creator_id"])
    op.create_index("ix_model_nfts_current_owner_id", "model_nfts", ["current_owner_id"])

    op.create_table(
        "contributor_shares",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("model_nft_id", UUID(as_uuid=True), sa.ForeignKey("model_nfts.id"), nullable=False),
        sa.Column("contributor_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("share_percentage", sa.Float, nullable=False),
    )
    op.create_index("ix_contributor_shares_model_nft_id", "contributor_shares", ["model_nft_id"])

    op.create_table(
        "marketplace_listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("model_nft_id", UUID(as_uuid=True), sa.ForeignKey("model_nfts.id"), nullable=False),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("price", sa.Float, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_marketplace_listings_model_nft_id", "marketplace_listings", ["model_nft_id"])
    op.create_index("ix_marketplace_listings_seller_id", "marketplace_listings", ["seller_id"])


def downgrade() -> None:
    op.drop_index("ix_marketplace_listings_seller_id", table_name="marketplace_listings")
    op.drop_index("ix_marketplace_listings_model_nft_id", table_name="marketplace_listings")
    op.drop_table("marketplace_listings")
    op.drop_index("ix_contributor_shares_model_nft_id", table_name="contributor_shares")
    op.drop_table("contributor_shares")
    op.drop_index("ix_model_nfts_current_owner_id", table_name="model_nfts")
    op.drop_index("ix_model_nfts_creator_id", table_name="model_nfts")
    op.drop_index("ix_model_nfts_task_id", table_name="model_nfts")
    op.drop_table("model_nfts")
