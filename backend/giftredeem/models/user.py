"""User ORM — the claimant/creator row owned by the identity collaborator.

Invariants:
    - id is an internal integer key, never exposed outside the API
    - created_at drives the account-age eligibility rule
    - Provider of the current session is NOT stored here (it arrives per request)

Design Decisions:
    - Normalized profile (username, display_name, email, avatar_url): the
      claim engine never inspects raw provider payloads
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from giftredeem.db.base import Base


class User(Base):
    """Authenticated account as normalized by the identity layer."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
