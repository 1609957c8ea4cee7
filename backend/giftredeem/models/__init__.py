"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Benefit is the aggregate root; codes and claims scoped by benefit_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from giftredeem.models.user import User  # noqa: F401
from giftredeem.models.benefit import Benefit  # noqa: F401
from giftredeem.models.redemption_code import RedemptionCode  # noqa: F401
from giftredeem.models.claim import Claim  # noqa: F401
