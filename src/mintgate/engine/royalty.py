"""Royalty computation (ERC-2981 style).

The royalty is a fixed fraction of the sale value expressed in basis
points, rounded down: amount = sale_value * bps // 10000.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

BPS_DENOMINATOR = 10_000


@dataclass
class RoyaltyInfo:
    """Royalty receiver and rate. Only the receiver may change."""
    receiver: str
    bps: int

    def __post_init__(self) -> None:
        if not 0 <= self.bps <= BPS_DENOMINATOR:
            raise ValueError(f"Royalty bps must be in [0, {BPS_DENOMINATOR}], got {self.bps}")

    def royalty_for(self, sale_value: int) -> Tuple[str, int]:
        if sale_value < 0:
            raise ValueError(f"Sale value must be >= 0, got {sale_value}")
        return self.receiver, sale_value * self.bps // BPS_DENOMINATOR
