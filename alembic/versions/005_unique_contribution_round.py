"""Make (task, contributor, round) unique on contributions

Revision ID: 005
Revises: 004
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_unique_constraint(
        "uq_contributions_task_contributor_round",
        "contributions",
        ["task_id", "contributor_id", "round_number"],
    )


def downgrade() -> None:
    op.drop_constraint(
        "uq_contributions_task_contributor_round", "contributions", type_="unique"
    )
