"""Allowance ledger — cumulative presale consumption per account.

A valid proof only establishes which allowance was committed for an
account. The ledger enforces that consumption across any number of
separate requests never exceeds that allowance.

Consumption is keyed by account alone, so it persists when the
allowlist root is replaced. A new root with a different allowance is
checked against the consumed total carried over from earlier roots.
There is no reset operation.
"""

from __future__ import annotations

from typing import Dict

from mintgate.models.collection import IssuanceRejected, RejectionReason


class AllowanceLedger:
    """In-memory ledger of consumed presale allowance.

    Usage:
        ledger = AllowanceLedger()
        ledger.check(account, claimed_allowance=2, quantity=1)
        ledger.try_consume(account, claimed_allowance=2, quantity=1)
        ledger.consumed(account)  # 1
    """

    def __init__(self, consumed: Dict[str, int] | None = None) -> None:
        self._consumed: Dict[str, int] = dict(consumed or {})

    def consumed(self, account: str) -> int:
        return self._consumed.get(account, 0)

    def check(self, account: str, claimed_allowance: int, quantity: int) -> None:
        """Raise ALLOWANCE_EXCEEDED if quantity does not fit. No mutation."""
        already = self.consumed(account)
        if already + quantity > claimed_allowance:
            raise IssuanceRejected(
                RejectionReason.ALLOWANCE_EXCEEDED,
                f"Allowance exceeded: consumed {already} + requested {quantity} "
                f"> allowance {claimed_allowance}",
            )

    def try_consume(self, account: str, claimed_allowance: int, quantity: int) -> int:
        """Check and record consumption in one step.

        Returns the new consumed total.
        """
        self.check(account, claimed_allowance, quantity)
        self._consumed[account] = self.consumed(account) + quantity
        return self._consumed[account]

    def snapshot(self) -> Dict[str, int]:
        return dict(self._consumed)

    @classmethod
    def from_snapshot(cls, data: Dict[str, int]) -> AllowanceLedger:
        for account, value in data.items():
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid consumed quantity for {account}: {value!r}")
        return cls(data)
