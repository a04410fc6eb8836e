"""Allowlist commitments — builds and verifies (account, allowance) Merkle roots.

Each allowlisted account commits to a maximum presale quantity. The leaf
for an entry is keccak256(abi.encodePacked(address, uint256)), i.e. the
20 address bytes followed by the 32-byte big-endian allowance. The
52-byte leaf preimage can never be mistaken for a 64-byte internal node,
and the verifier always derives the leaf itself from (account, allowance).

The proof is allowance-specific: a proof for (alice, 2) does not verify
for (alice, 3).

The whole set is never stored by the collection. Only the root is.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from web3 import Web3

from mintgate.crypto.accounts import is_account, to_account
from mintgate.crypto.merkle import MerkleProof, MerkleTree, encode_hash, verify_proof

MAX_UINT256 = 2**256 - 1


def allowance_leaf(account: str, allowance: int) -> bytes:
    """Compute the leaf hash for an allowlist entry.

    Raises ValueError for a malformed account or an allowance outside uint256.
    """
    if isinstance(allowance, bool) or not isinstance(allowance, int):
        raise ValueError(f"Allowance must be an integer, got {allowance!r}")
    if not 0 <= allowance <= MAX_UINT256:
        raise ValueError(f"Allowance out of uint256 range: {allowance}")
    return bytes(
        Web3.solidity_keccak(["address", "uint256"], [to_account(account), allowance])
    )


def verify_allowance(
    account: str,
    claimed_allowance: int,
    proof: Sequence[str],
    root: str,
) -> bool:
    """Decide whether (account, claimed_allowance) is committed under root.

    Pure: reads nothing but its arguments. Adversarial input yields False.
    """
    if not is_account(account):
        return False
    try:
        leaf = allowance_leaf(account, claimed_allowance)
    except ValueError:
        return False
    return verify_proof(leaf, proof, root)


@dataclass(frozen=True)
class AllowlistEntry:
    """A single committed (account, allowance) pair."""
    account: str
    allowance: int

    @property
    def leaf_hash(self) -> str:
        return encode_hash(allowance_leaf(self.account, self.allowance))


class Allowlist:
    """A built allowlist: the root plus proofs for every member."""

    def __init__(self, entries: dict[str, AllowlistEntry], tree: MerkleTree, root: str) -> None:
        self._entries = entries
        self._tree = tree
        self.root = root

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, account: object) -> bool:
        return is_account(account) and to_account(account) in self._entries

    def allowance_of(self, account: str) -> Optional[int]:
        entry = self._entries.get(to_account(account))
        return entry.allowance if entry else None

    def proof_for(self, account: str) -> list[str]:
        """Return the sibling path for account's committed entry.

        Raises KeyError if the account is not on the list.
        """
        entry = self._entries.get(to_account(account))
        if entry is None:
            raise KeyError(f"Account not on allowlist: {account}")
        return self.inclusion_proof(entry).path

    def inclusion_proof(self, entry: AllowlistEntry) -> MerkleProof:
        proof = self._tree.inclusion_proof(entry.leaf_hash)
        if proof is None:
            raise KeyError(f"Entry not in tree: {entry}")
        return proof

    def entries(self) -> list[AllowlistEntry]:
        return list(self._entries.values())


class AllowlistBuilder:
    """Builds an allowlist commitment from (account, allowance) pairs.

    Usage:
        builder = AllowlistBuilder()
        builder.add("0xAbC...", 2)
        builder.add("0xDeF...", 5)
        allowlist = builder.build()
        allowlist.root
        allowlist.proof_for("0xAbC...")
    """

    def __init__(self) -> None:
        self._entries: dict[str, AllowlistEntry] = {}

    def add(self, account: str, allowance: int) -> AllowlistEntry:
        """Add an entry. Each account may appear once."""
        normalized = to_account(account)
        if normalized in self._entries:
            raise ValueError(f"Duplicate allowlist account: {normalized}")
        # Validates the allowance range
        allowance_leaf(normalized, allowance)
        entry = AllowlistEntry(account=normalized, allowance=allowance)
        self._entries[normalized] = entry
        return entry

    def build(self) -> Allowlist:
        tree = MerkleTree()
        for entry in self._entries.values():
            tree.add_leaf(entry.leaf_hash)
        root = tree.compute_root()
        return Allowlist(dict(self._entries), tree, root)


def build_allowlist(pairs: Sequence[Sequence[Any]]) -> Allowlist:
    builder = AllowlistBuilder()
    for account, allowance in pairs:
        builder.add(account, allowance)
    return builder.build()


def load_allowlist(path: Path) -> Allowlist:
    """Load an allowlist from JSON.

    Accepts either a list of [address, allowance] pairs or a list of
    {"account": ..., "allowance": ...} objects.
    """
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Allowlist file must contain a JSON list: {path}")

    pairs: list[tuple[str, int]] = []
    for i, item in enumerate(data):
        if isinstance(item, dict):
            pairs.append((item["account"], int(item["allowance"])))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            pairs.append((item[0], int(item[1])))
        else:
            raise ValueError(f"Malformed allowlist entry at index {i}: {item!r}")
    return build_allowlist(pairs)
