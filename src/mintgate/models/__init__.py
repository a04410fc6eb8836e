"""Core data models for Mintgate."""

from mintgate.models.collection import (
    ZERO_ROOT,
    Admission,
    AllowanceCommitment,
    IssuanceRejected,
    MintReceipt,
    PhaseState,
    Policy,
    PrivilegeDenied,
    RejectionReason,
    RequestKind,
    UnknownItem,
)

__all__ = [
    "ZERO_ROOT",
    "Admission",
    "AllowanceCommitment",
    "IssuanceRejected",
    "MintReceipt",
    "PhaseState",
    "Policy",
    "PrivilegeDenied",
    "RejectionReason",
    "RequestKind",
    "UnknownItem",
]
