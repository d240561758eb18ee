"""create boards and board collaborators

Revision ID: 9c1f3a7d2b10
Revises:
Create Date: 2026-10-18 10:12:41.220931

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '9c1f3a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

document = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "boards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("phases", document, nullable=False),
        sa.Column("blocks", document, nullable=False),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_boards_id", "boards", ["id"])
    op.create_index("ix_boards_owner_id", "boards", ["owner_id"])

    op.create_table(
        "board_collaborators",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("board_id", sa.Integer(), sa.ForeignKey("boards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="editor"),
        sa.Column("granted_by", sa.String(), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("board_id", "user_id", name="uq_board_collaborator"),
    )
    op.create_index("ix_board_collaborators_id", "board_collaborators", ["id"])


def downgrade():
    op.drop_index("ix_board_collaborators_id", table_name="board_collaborators")
    op.drop_table("board_collaborators")
    op.drop_index("ix_boards_owner_id", table_name="boards")
    op.drop_index("ix_boards_id", table_name="boards")
    op.drop_table("boards")
