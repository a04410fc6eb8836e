"""Supply counter — total items ever issued against an immutable ceiling."""

from __future__ import annotations

from mintgate.models.collection import IssuanceRejected, RejectionReason


class SupplyCounter:
    """Monotonic issued-count with a hard ceiling.

    Invariant: 0 <= issued <= ceiling, and issued never decreases.
    """

    def __init__(self, ceiling: int, issued: int = 0) -> None:
        if ceiling <= 0:
            raise ValueError(f"Ceiling must be > 0, got {ceiling}")
        if not 0 <= issued <= ceiling:
            raise ValueError(f"Issued count {issued} outside [0, {ceiling}]")
        self._ceiling = ceiling
        self._issued = issued

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def issued(self) -> int:
        return self._issued

    @property
    def remaining(self) -> int:
        return self._ceiling - self._issued

    def check(self, quantity: int) -> None:
        if self._issued + quantity > self._ceiling:
            raise IssuanceRejected(
                RejectionReason.SUPPLY_CEILING_EXCEEDED,
                f"Max supply exceeded: {self._issued} issued + {quantity} requested "
                f"> ceiling {self._ceiling}",
            )

    def advance(self, quantity: int) -> range:
        """Re-check the ceiling and reserve the next quantity ids."""
        if quantity < 0:
            raise ValueError(f"Quantity must be >= 0, got {quantity}")
        self.check(quantity)
        start = self._issued + 1
        self._issued += quantity
        return range(start, self._issued + 1)
