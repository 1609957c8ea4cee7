"""Claim ORM — the record that a user received a code from a benefit.

Invariants:
    - (user_id, benefit_id) is UNIQUE: at most one claim per user per benefit
    - code_id is UNIQUE: a code backs at most one claim
    - Created once by the claim transaction; never updated or deleted there

Design Decisions:
    - The unique constraint is the final arbiter for concurrent same-user
      claims; the coordinator converts its violation into AlreadyClaimed
    - provider stored per claim: the session provider can differ per login
"""

from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftredeem.core.domain_types import (
    IP_ADDRESS_MAX_LENGTH, PROVIDER_MAX_LENGTH, USER_AGENT_MAX_LENGTH,
)
from giftredeem.db.base import Base


class Claim(Base):
    """Claim entity — links claimant, benefit, and allocated code."""
    __tablename__ = "claims"
    __table_args__ = (
        UniqueConstraint("user_id", "benefit_id", name="uq_claims_user_benefit"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    benefit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("benefits.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    code_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("redemption_codes.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    provider: Mapped[str] = mapped_column(String(PROVIDER_MAX_LENGTH), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(IP_ADDRESS_MAX_LENGTH), nullable=True,
    )
    user_agent: Mapped[str | None] = mapped_column(
        String(USER_AGENT_MAX_LENGTH), nullable=True,
    )

    # Relationships
    benefit: Mapped["Benefit"] = relationship("Benefit", lazy="joined")
    code: Mapped["RedemptionCode"] = relationship("RedemptionCode", lazy="joined")
    user: Mapped["User"] = relationship("User", lazy="joined")
