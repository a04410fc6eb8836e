"""Merkle tree implementation for allowlist commitments.

Uses keccak-256 as the hash function with sorted-pair node hashing:
parent = keccak256(min(a, b) || max(a, b)). Because pairs are sorted,
a proof is just the ordered list of sibling hashes, which is the form
on-chain verifiers accept.

Leaves are sorted and de-duplicated before tree construction to ensure
determinism (canonical ordering). An odd node at any level is promoted
to the next level unchanged.

All hashes are exchanged as 0x-prefixed lowercase hex strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from web3 import Web3

HASH_BYTES = 32


@dataclass(frozen=True)
class MerkleProof:
    """An inclusion proof for a single leaf."""
    leaf_hash: str
    path: list[str]  # Sibling hashes, leaf level first
    root: str


class MerkleTree:
    """A deterministic keccak Merkle tree.

    Usage:
        tree = MerkleTree()
        tree.add_leaf("0xabc123...")
        tree.add_leaf("0xdef456...")
        root = tree.compute_root()
        proof = tree.inclusion_proof("0xabc123...")
    """

    def __init__(self) -> None:
        self._leaves: list[bytes] = []
        self._tree: list[list[bytes]] = []
        self._computed = False

    def add_leaf(self, leaf_hash: str) -> None:
        """Add a leaf hash. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        leaf = decode_hash(leaf_hash)
        if leaf is None:
            raise ValueError(f"Malformed leaf hash: {leaf_hash!r}")
        self._leaves.append(leaf)

    def compute_root(self) -> str:
        """Compute the Merkle root.

        If no leaves, returns keccak256 of the empty string (null root).
        """
        if not self._leaves:
            return encode_hash(keccak(b""))

        current_level = sorted(set(self._leaves))
        self._tree = [current_level]

        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])
            self._tree.append(next_level)
            current_level = next_level

        self._computed = True
        return encode_hash(current_level[0])

    def inclusion_proof(self, leaf_hash: str) -> MerkleProof | None:
        """Generate an inclusion proof for a leaf.

        Returns None if the leaf is not in the tree.
        Must call compute_root first.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        leaf = decode_hash(leaf_hash)
        sorted_leaves = self._tree[0]
        if leaf is None or leaf not in sorted_leaves:
            return None

        current_idx = sorted_leaves.index(leaf)
        path: list[str] = []
        for level in self._tree[:-1]:
            sibling_idx = current_idx + 1 if current_idx % 2 == 0 else current_idx - 1
            if sibling_idx < len(level):
                path.append(encode_hash(level[sibling_idx]))
            # Promoted odd node: no sibling at this level
            current_idx //= 2

        return MerkleProof(
            leaf_hash=encode_hash(leaf),
            path=path,
            root=encode_hash(self._tree[-1][0]),
        )


def verify_proof(leaf: bytes, proof: Sequence[str], root: str) -> bool:
    """Fold a proof from a leaf and compare against root byte-for-byte.

    Any malformed element yields False, never an exception.
    """
    root_bytes = decode_hash(root)
    if root_bytes is None or len(leaf) != HASH_BYTES:
        return False
    if isinstance(proof, (str, bytes)) or not isinstance(proof, (list, tuple)):
        return False

    computed = leaf
    for element in proof:
        sibling = decode_hash(element)
        if sibling is None:
            return False
        computed = hash_pair(computed, sibling)
    return computed == root_bytes


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(primitive=data))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes together in sorted order."""
    return keccak(a + b) if a <= b else keccak(b + a)


def encode_hash(value: bytes) -> str:
    return "0x" + value.hex()


def decode_hash(value: Union[str, bytes, None]) -> Optional[bytes]:
    """Decode a 32-byte hash from 0x-hex or raw bytes. None if malformed."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value) if len(value) == HASH_BYTES else None
    if not isinstance(value, str):
        return None
    text = value[2:] if value[:2] in ("0x", "0X") else value
    if len(text) != HASH_BYTES * 2:
        return None
    try:
        decoded = bytes.fromhex(text)
    except ValueError:
        return None
    # fromhex skips whitespace, so the decoded length can still be short
    return decoded if len(decoded) == HASH_BYTES else None
