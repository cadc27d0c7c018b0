"""Create contributions and training_rounds tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-12

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contributions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("task_id", UUID(as_uuid=True), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("contributor_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("round_number", sa.Integer, nullable=False),
        sa.Column("improvement_bp", sa.Float, nullable=False),
        sa.Column("model_update_uri", sa.String(512), nullable=False),
        sa.Column("reward_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_contributions_task_id", "contributions", ["task_id"])
    op.create_index("ix_contributions_contributor_id", "contributions", ["contributor_id"])

    op.create_table(
        "training_rounds",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("task_id", UUID(as_uuid=True), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("round_number", sa.Integer, nullable=False),
        sa.Column("global_accuracy", sa.Float, nullable=False),
        sa.Column("participant_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="COMPLETED"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_training_rounds_task_id", "training_rounds", ["task_id"])


def downgrade() -> None:
    op.drop_index("ix_training_rounds_task_id", table_name="training_rounds")
    op.drop_table("training_rounds")
    op.drop_index("ix_contributions_contributor_id", table_name="contributions")
    op.drop_index("ix_contributions_task_id", table_name="contributions")
    op.drop_table("contributions")
