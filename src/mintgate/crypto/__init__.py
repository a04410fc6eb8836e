"""Cryptographic primitives — Merkle trees, allowlist commitments, account hashing."""

from mintgate.crypto.allowlist import AllowlistBuilder, verify_allowance
from mintgate.crypto.merkle import MerkleTree

__all__ = ["AllowlistBuilder", "MerkleTree", "verify_allowance"]
