"""RedemptionCode ORM — one single-use code in a benefit's inventory.

Invariants:
    - Always belongs to a Benefit (benefit_id FK, cascade on delete)
    - status is one of: available, claimed, expired
    - available -> claimed happens once, only inside the claim transaction
    - claimed_by / claimed_at are NULL until claimed

Design Decisions:
    - code is not unique across benefits; only per-benefit dedupe at authoring
    - (benefit_id, status, id) index serves the lowest-id available lookup
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftredeem.db.base import Base


class RedemptionCode(Base):
    """A code string plus its allocation state."""
    __tablename__ = "redemption_codes"
    __table_args__ = (
        Index("ix_redemption_codes_benefit_status", "benefit_id", "status", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    benefit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("benefits.id", ondelete="CASCADE"), nullable=False,
    )
    code: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="available",
    )
    claimed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    benefit: Mapped["Benefit"] = relationship("Benefit", back_populates="codes")
