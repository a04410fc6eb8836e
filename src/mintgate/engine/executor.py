"""Issuance executor — the only component that increases the supply.

Assigns ids issued+1 .. issued+quantity in strictly increasing order.
The ceiling is re-checked here, inside the same locked step as the
mint, regardless of what the gate already decided.

The executor is a pure state machine over the counter and registry.
Event logging is handled by the service layer.
"""

from __future__ import annotations

from typing import List, Sequence

from mintgate.engine.supply import SupplyCounter
from mintgate.registry import TokenRegistry


class IssuanceExecutor:
    """Mints sequential ids against a supply counter.

    Usage:
        executor = IssuanceExecutor(SupplyCounter(ceiling=10), registry)
        ids = executor.issue("0xAbC...", 3)        # [1, 2, 3]
        ids = executor.issue_batch(["0x1...", "0x2..."])  # [4, 5]
    """

    def __init__(self, counter: SupplyCounter, registry: TokenRegistry) -> None:
        if registry.total_minted != counter.issued:
            raise ValueError(
                f"Registry holds {registry.total_minted} items but counter "
                f"says {counter.issued} issued"
            )
        self._counter = counter
        self._registry = registry

    @property
    def issued(self) -> int:
        return self._counter.issued

    def preview(self, quantity: int) -> List[int]:
        """Ids the next request of this quantity would receive."""
        self._counter.check(quantity)
        start = self._counter.issued + 1
        return list(range(start, start + quantity))

    def issue(self, recipient: str, quantity: int) -> List[int]:
        """Assign quantity new ids to recipient."""
        return self._mint([recipient] * quantity)

    def issue_batch(self, recipients: Sequence[str]) -> List[int]:
        """Assign one new id to each recipient, in order.

        Bypasses phase, payment and allowance checks. The ceiling check
        covers the whole batch: either every recipient gets an id or none do.
        """
        return self._mint(list(recipients))

    def _mint(self, recipients: List[str]) -> List[int]:
        reserved = self._counter.advance(len(recipients))
        ids: List[int] = []
        for expected, recipient in zip(reserved, recipients):
            token_id = self._registry.mint_next(recipient)
            if token_id != expected:
                raise RuntimeError(
                    f"Registry assigned id {token_id}, expected {expected}"
                )
            ids.append(token_id)
        return ids
