"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and BenefitId wrap internal integer keys — never exposed in API responses
    - LinkToken is the only externally meaningful benefit address
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and persist to String columns without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
BenefitId = NewType("BenefitId", int)
LinkToken = NewType("LinkToken", str)
ProviderName = NewType("ProviderName", str)


# ─── Enums ───────────────────────────────────────────────────────

class BenefitStatus(str, Enum):
    """Benefit lifecycle states — maps to DB `status` column."""
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"
    DELETED = "deleted"


class CodeStatus(str, Enum):
    """Redemption code states. claimed is terminal."""
    AVAILABLE = "available"
    CLAIMED = "claimed"
    EXPIRED = "expired"


class ClaimPageStatus(str, Enum):
    """What the public claim page shows a given viewer."""
    AVAILABLE = "available"
    CLAIMED = "claimed"
    PAUSED = "paused"
    EXPIRED = "expired"


class UserStatus(str, Enum):
    """Account states owned by the identity collaborator."""
    ACTIVE = "active"
    BANNED = "banned"
    DELETED = "deleted"


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_BENEFIT_LIFETIME_DAYS = 365
UNKNOWN_PROVIDER = ProviderName("unknown")

# Column widths shared by the ORM models and the request boundary
PROVIDER_MAX_LENGTH = 50
IP_ADDRESS_MAX_LENGTH = 45
USER_AGENT_MAX_LENGTH = 500
MAX_USER_ID = 2**31 - 1  # INTEGER primary key range
