"""Initial schema — users, benefits, redemption_codes, claims.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("avatar_url", sa.String(2000), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "benefits",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("link_token", sa.String(36), nullable=False, unique=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("creator_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("total_count", sa.Integer, nullable=False),
        sa.Column("claimed_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("allowed_providers", sa.JSON, nullable=False),
        sa.Column("min_account_age_days", sa.Integer, nullable=False, server_default="0"),
        sa.Column("claim_conditions", sa.JSON, nullable=False),
        sa.CheckConstraint(
            "claimed_count >= 0 AND claimed_count <= total_count",
            name="ck_benefits_claimed_count",
        ),
    )
    op.create_index("ix_benefits_creator_id", "benefits", ["creator_id"])

    op.create_table(
        "redemption_codes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "benefit_id", sa.Integer,
            sa.ForeignKey("benefits.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("code", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("claimed_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_redemption_codes_benefit_status", "redemption_codes",
        ["benefit_id", "status", "id"],
    )

    op.create_table(
        "claims",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "benefit_id", sa.Integer,
            sa.ForeignKey("benefits.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "code_id", sa.Integer,
            sa.ForeignKey("redemption_codes.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.UniqueConstraint("user_id", "benefit_id", name="uq_claims_user_benefit"),
    )
    op.create_index("ix_claims_user_id", "claims", ["user_id"])
    op.create_index("ix_claims_benefit_id", "claims", ["benefit_id"])


def downgrade() -> None:
    op.drop_table("claims")
    op.drop_table("redemption_codes")
    op.drop_table("benefits")
    op.drop_table("users")
