"""Treasury — custody of mint proceeds until the owner withdraws.

Every accepted payment is deposited in full, including any amount sent
above the required price. Withdrawal moves the whole balance to the
owner. Privilege is checked by the admin authority, not here.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Treasury:
    """Running balance of collected payments, in wei."""
    balance: int = 0
    total_collected: int = 0
    total_withdrawn: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError(f"Treasury balance must be >= 0, got {self.balance}")

    def deposit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Deposit must be >= 0, got {amount}")
        self.balance += amount
        self.total_collected += amount

    def withdraw_all(self) -> int:
        """Empty the treasury and return the amount withdrawn."""
        amount = self.balance
        self.balance = 0
        self.total_withdrawn += amount
        return amount
