"""Collection models — policy, phase state, allowlist commitment, rejections.

Amounts are integer wei. Accounts are EIP-55 checksum addresses.

Invariants enforced by these models:
- Policy is immutable after construction (supply_ceiling > 0, max_per_request > 0)
- Phase flags are independent; any combination is legal
- Every rejected request carries exactly one RejectionReason
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional


ZERO_ROOT = "0x" + "0" * 64


class RequestKind(str, enum.Enum):
    """Admission path of an issuance request."""
    PUBLIC = "public"
    PRESALE = "presale"


class RejectionReason(str, enum.Enum):
    """Why a request was rejected. Every rejection is deterministic."""
    ISSUANCE_DISABLED = "issuance_disabled"
    ZERO_QUANTITY = "zero_quantity"
    PUBLIC_SALE_CLOSED = "public_sale_closed"
    PER_REQUEST_LIMIT_EXCEEDED = "per_request_limit_exceeded"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    SUPPLY_CEILING_EXCEEDED = "supply_ceiling_exceeded"
    ALLOWLIST_PROOF_INVALID = "allowlist_proof_invalid"
    ALLOWANCE_EXCEEDED = "allowance_exceeded"
    UNKNOWN_ITEM = "unknown_item"
    PRIVILEGE_DENIED = "privilege_denied"


class IssuanceRejected(ValueError):
    """A request failed a check. No state was changed."""

    def __init__(self, reason: RejectionReason, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


class UnknownItem(IssuanceRejected):
    def __init__(self, token_id: int) -> None:
        super().__init__(
            RejectionReason.UNKNOWN_ITEM,
            f"URI query for nonexistent token: {token_id}",
        )
        self.token_id = token_id


class PrivilegeDenied(IssuanceRejected):
    def __init__(self, caller: str) -> None:
        super().__init__(
            RejectionReason.PRIVILEGE_DENIED,
            f"Caller is not the owner: {caller}",
        )
        self.caller = caller


@dataclass(frozen=True)
class Policy:
    """Constants fixed at deployment."""
    unit_cost: int
    supply_ceiling: int
    max_per_request: int

    def __post_init__(self) -> None:
        if self.unit_cost < 0:
            raise ValueError(f"unit_cost must be >= 0, got {self.unit_cost}")
        if self.supply_ceiling <= 0:
            raise ValueError(f"supply_ceiling must be > 0, got {self.supply_ceiling}")
        if self.max_per_request <= 0:
            raise ValueError(f"max_per_request must be > 0, got {self.max_per_request}")

    def price_of(self, quantity: int) -> int:
        return self.unit_cost * quantity


@dataclass
class PhaseState:
    """Mutable flags, written only through the administrative gateway."""
    issuance_enabled: bool = True
    public_sale_open: bool = False
    revealed: bool = False
    base_uri: str = ""


@dataclass
class AllowanceCommitment:
    """Merkle root over the committed (account, allowance) set."""
    root: str = ZERO_ROOT


@dataclass(frozen=True)
class Admission:
    """A request that passed the phase and policy gate."""
    kind: RequestKind
    quantity: int
    required_payment: int


@dataclass(frozen=True)
class MintReceipt:
    """Outcome of a completed issuance request."""
    kind: RequestKind
    recipient: str
    token_ids: list[int] = field(default_factory=list)
    paid: int = 0
    claimed_allowance: Optional[int] = None
