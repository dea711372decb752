"""
Domain Models for the Certificate Conversion Engine

These dataclasses provide type-safe representations of certificates,
pricing tiers and conversion requests. Rates and costs use Decimal.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

# =============================================================================
# PRICING
# =============================================================================


@dataclass(frozen=True)
class PricingTier:
    """A pricing bracket: product ids sharing one offseason/winter rate pair."""

    name: str
    product_ids: frozenset
    offseason_rate: Decimal
    winter_rate: Decimal

    def __post_init__(self):
        if self.winter_rate <= self.offseason_rate:
            raise ValueError(
                f"{self.name}: winter_rate ({self.winter_rate}) must exceed "
                f"offseason_rate ({self.offseason_rate})"
            )

    @property
    def number(self) -> str:
        """Tier number used in price lookup keys ("TIER_2" -> "2")."""
        return self.name.rsplit("_", 1)[-1]

    def __contains__(self, product_id) -> bool:
        return product_id in self.product_ids


# =============================================================================
# CERTIFICATES
# =============================================================================


@dataclass
class Certificate:
    """A certificate as read from the credit service, with upgrade pricing attached."""

    code: str
    external_id: str
    remaining_balance: int
    product_id: int | None
    tier: PricingTier
    cost_per_session: Decimal
    total_upgrade_cost: Decimal
    adjusted_balance: int
    other_remaining_balance: int = 0


def _session_count(data: dict, name: str) -> int:
    """Whole session count; missing or null means zero."""
    value = data.get(name)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a whole number, got: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be a whole number, got: {value!r}")
        value = int(value)
    return int(value)


class ConversionType(str, Enum):
    UPGRADE = "upgrade"
    ADJUSTMENT = "adjustment"


@dataclass
class ConversionRequest:
    """Everything needed to replace an offseason certificate with a winter one."""

    conversion_type: ConversionType
    code: str
    external_id: str
    email: str
    current_balance: int
    adjusted_balance: int
    other_remaining_balance: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ConversionRequest":
        return cls(
            conversion_type=ConversionType(data["conversionType"]),
            code=str(data["certificateCode"]).strip().upper(),
            external_id=str(data["certificateId"]),
            email=str(data["email"]).strip(),
            current_balance=_session_count(data, "currentBalance"),
            adjusted_balance=_session_count(data, "adjustedBalance"),
            other_remaining_balance=_session_count(data, "otherRemainingBalance"),
        )


@dataclass
class ConversionResult:
    """The replacement certificate as reported back by the credit service."""

    code: str
    final_balance: int
    product_id: int


# =============================================================================
# REPLACEMENT STATE MACHINE
# =============================================================================


class ReplacementState(str, Enum):
    PENDING = "pending"
    REJECTED = "rejected"  # failed before any upstream mutation
    DELETE_FAILED = "delete_failed"
    DELETED = "deleted"
    CREATED = "created"
    PARTIAL_FAILURE = "partial_failure"


_TRANSITIONS = {
    ReplacementState.PENDING: {
        ReplacementState.REJECTED,
        ReplacementState.DELETE_FAILED,
        ReplacementState.DELETED,
    },
    ReplacementState.DELETED: {ReplacementState.CREATED, ReplacementState.PARTIAL_FAILURE},
    # A replayed creation may complete a partial failure.
    ReplacementState.PARTIAL_FAILURE: {ReplacementState.CREATED, ReplacementState.PARTIAL_FAILURE},
    ReplacementState.REJECTED: set(),
    ReplacementState.DELETE_FAILED: set(),
    ReplacementState.CREATED: set(),
}


@dataclass
class ReplacementRecord:
    """
    Tracks one delete-then-create replacement.

    PENDING -> DELETED -> CREATED is the happy path. DELETED -> PARTIAL_FAILURE
    means the old certificate is gone and no replacement exists.
    """

    code: str
    external_id: str
    email: str
    final_balance: int
    target_product_id: int | None = None
    state: ReplacementState = ReplacementState.PENDING
    error: str | None = None
    winter_balance: int | None = None
    history: list = field(default_factory=list)

    def _move(self, new_state: ReplacementState, error: str | None = None) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Illegal replacement transition: {self.state.value} -> {new_state.value}")
        self.history.append(self.state)
        self.state = new_state
        self.error = error

    def reject(self, error: str) -> None:
        self._move(ReplacementState.REJECTED, error)

    def delete_failed(self, error: str) -> None:
        self._move(ReplacementState.DELETE_FAILED, error)

    def deleted(self) -> None:
        self._move(ReplacementState.DELETED)

    def created(self, winter_balance: int) -> None:
        self._move(ReplacementState.CREATED)
        self.winter_balance = winter_balance

    def partial_failure(self, error: str) -> None:
        self._move(ReplacementState.PARTIAL_FAILURE, error)

    @property
    def is_complete(self) -> bool:
        return self.state == ReplacementState.CREATED

    def remediation(self) -> dict:
        """Context an operator needs to replay the creation step by hand."""
        return {
            "certificateCode": self.code,
            "certificateId": self.external_id,
            "productId": self.target_product_id,
            "email": self.email,
            "finalBalance": self.final_balance,
            "state": self.state.value,
            "error": self.error,
        }

    @classmethod
    def from_remediation(cls, data: dict) -> "ReplacementRecord":
        """Rebuild a partial-failure record from a logged remediation payload."""
        return cls(
            code=str(data["certificateCode"]).strip().upper(),
            external_id=str(data["certificateId"]),
            email=data["email"],
            final_balance=int(data["finalBalance"]),
            target_product_id=int(data["productId"]),
            state=ReplacementState.PARTIAL_FAILURE,
            error=data.get("error"),
        )
