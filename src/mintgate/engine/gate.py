"""Phase and policy gate — decides whether a request is admissible.

The gate reads state and never mutates it. Checks run in a fixed order
and the first failure rejects the request:

    issuance disabled
    zero quantity
    public only: sale closed, per-request cap
    insufficient payment
    supply ceiling

Presale requests have no per-request cap; their quantity is bounded by
the proven allowance, which the service checks after admission.
Presale is open whenever issuance is enabled.

The ceiling check here is an early exit. The issuance executor repeats
it atomically with the mint and is the source of truth.
"""

from __future__ import annotations

from mintgate.models.collection import (
    Admission,
    IssuanceRejected,
    PhaseState,
    Policy,
    RejectionReason,
    RequestKind,
)


class PhaseGate:
    """Admission control for issuance requests.

    Usage:
        gate = PhaseGate(policy)
        admission = gate.admit(RequestKind.PUBLIC, 2, payment, phase, issued)
    """

    def __init__(self, policy: Policy) -> None:
        self._policy = policy

    @property
    def policy(self) -> Policy:
        return self._policy

    def admit(
        self,
        kind: RequestKind,
        quantity: int,
        payment: int,
        phase: PhaseState,
        issued: int,
    ) -> Admission:
        """Return an Admission or raise IssuanceRejected."""
        policy = self._policy

        if not phase.issuance_enabled:
            raise IssuanceRejected(RejectionReason.ISSUANCE_DISABLED, "Minting not active")
        if quantity <= 0:
            raise IssuanceRejected(RejectionReason.ZERO_QUANTITY, "Need to mint at least 1 item")

        if kind == RequestKind.PUBLIC:
            if not phase.public_sale_open:
                raise IssuanceRejected(RejectionReason.PUBLIC_SALE_CLOSED, "Not in public sale")
            if quantity > policy.max_per_request:
                raise IssuanceRejected(
                    RejectionReason.PER_REQUEST_LIMIT_EXCEEDED,
                    f"Max mint amount per request exceeded: {quantity} > {policy.max_per_request}",
                )

        required = policy.price_of(quantity)
        if payment < required:
            raise IssuanceRejected(
                RejectionReason.INSUFFICIENT_PAYMENT,
                f"Insufficient value sent: {payment} < {required}",
            )

        if issued + quantity > policy.supply_ceiling:
            raise IssuanceRejected(
                RejectionReason.SUPPLY_CEILING_EXCEEDED,
                f"Max supply exceeded: {issued} issued + {quantity} requested "
                f"> ceiling {policy.supply_ceiling}",
            )

        return Admission(kind=kind, quantity=quantity, required_payment=required)
