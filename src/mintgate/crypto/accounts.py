"""Account address helpers."""

from __future__ import annotations

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def to_account(address: str) -> str:
    """Normalise an address to EIP-55 checksum form.

    Raises ValueError for anything that is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Invalid account address: {address!r}")
    return Web3.to_checksum_address(address)


def is_account(address: object) -> bool:
    return isinstance(address, str) and Web3.is_address(address)
