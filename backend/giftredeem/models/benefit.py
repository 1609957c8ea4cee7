"""Benefit ORM — a finite pool of redemption codes shared through a claim link.

Invariants:
    - link_token is a UUID4 string, unique, the only external address
    - 0 <= claimed_count <= total_count (CHECK constraint)
    - total_count fixed at authoring; claimed_count only grows inside a claim
    - status is one of: active, paused, expired, deleted

Design Decisions:
    - Integer id + separate link_token: sequential keys never leave the server
    - JSON columns for allowed_providers (ordered list) and claim_conditions
      (free-form map, stored but not evaluated)
    - cascade delete for codes and claims
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, DateTime, JSON, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftredeem.db.base import Base


def _new_link_token() -> str:
    return str(uuid.uuid4())


class Benefit(Base):
    """Benefit aggregate root — owns its codes and claims."""
    __tablename__ = "benefits"
    __table_args__ = (
        CheckConstraint(
            "claimed_count >= 0 AND claimed_count <= total_count",
            name="ck_benefits_claimed_count",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    link_token: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=_new_link_token,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    creator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    total_count: Mapped[int] = mapped_column(Integer, nullable=False)
    claimed_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active",
    )
    allowed_providers: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    min_account_age_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    claim_conditions: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )

    # Relationships
    creator: Mapped["User"] = relationship("User", lazy="joined", innerjoin=True)
    codes: Mapped[list["RedemptionCode"]] = relationship(
        "RedemptionCode", back_populates="benefit",
        cascade="all, delete-orphan", passive_deletes=True,
    )
