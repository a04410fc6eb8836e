"""Tests for allowlist commitments — proves proofs are account- and allowance-specific."""

import json

import pytest
from web3 import Web3

from mintgate.crypto.accounts import to_account
from mintgate.crypto.allowlist import (
    AllowlistBuilder,
    allowance_leaf,
    build_allowlist,
    load_allowlist,
    verify_allowance,
)
from mintgate.crypto.merkle import decode_hash, encode_hash, hash_pair


def _addr(n: int) -> str:
    return "0x" + f"{n:040x}"


ALICE = _addr(0xA11CE)
BOB = _addr(0xB0B)
CAROL = _addr(0xCA401)
MALLORY = _addr(0xBAD)


def _allowlist():
    return build_allowlist([(ALICE, 2), (BOB, 1), (CAROL, 5), (_addr(7), 3), (_addr(8), 4)])


class TestLeafEncoding:
    def test_packed_address_and_uint256(self) -> None:
        """Leaf is keccak256 over 20 address bytes then 32-byte allowance."""
        expected = bytes(Web3.keccak(
            bytes.fromhex(ALICE[2:]) + (2).to_bytes(32, "big")
        ))
        assert allowance_leaf(ALICE, 2) == expected

    def test_case_insensitive_account(self) -> None:
        assert allowance_leaf(ALICE.upper().replace("0X", "0x"), 2) == allowance_leaf(ALICE, 2)

    def test_negative_allowance_rejected(self) -> None:
        with pytest.raises(ValueError):
            allowance_leaf(ALICE, -1)

    def test_oversized_allowance_rejected(self) -> None:
        with pytest.raises(ValueError):
            allowance_leaf(ALICE, 2**256)

    def test_bool_allowance_rejected(self) -> None:
        with pytest.raises(ValueError):
            allowance_leaf(ALICE, True)


class TestVerifyAllowance:
    def test_member_verifies(self) -> None:
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        assert verify_allowance(ALICE, 2, proof, allowlist.root)

    def test_every_member_verifies(self) -> None:
        allowlist = _allowlist()
        for entry in allowlist.entries():
            proof = allowlist.proof_for(entry.account)
            assert verify_allowance(entry.account, entry.allowance, proof, allowlist.root)

    def test_altered_allowance_fails(self) -> None:
        """A proof for allowance 2 does not verify for allowance 3."""
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        assert not verify_allowance(ALICE, 3, proof, allowlist.root)
        assert not verify_allowance(ALICE, 1, proof, allowlist.root)

    def test_other_account_cannot_reuse_proof(self) -> None:
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        assert not verify_allowance(MALLORY, 2, proof, allowlist.root)

    def test_root_from_different_set_fails(self) -> None:
        allowlist = _allowlist()
        other = build_allowlist([(ALICE, 2), (BOB, 1)])
        proof = allowlist.proof_for(ALICE)
        assert not verify_allowance(ALICE, 2, proof, other.root)

    def test_internal_node_is_not_a_leaf(self) -> None:
        """An internal node cannot be passed off as a member."""
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        internal = hash_pair(allowance_leaf(ALICE, 2), decode_hash(proof[0]))
        # There is no (account, allowance) pair whose leaf is this node, and
        # the verifier never accepts a leaf hash directly.
        assert not verify_allowance(ALICE, int.from_bytes(internal, "big"), proof[1:], allowlist.root)

    @pytest.mark.parametrize("account", ["", "0x123", "not an address", None, 12])
    def test_malformed_account_returns_false(self, account: object) -> None:
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        assert verify_allowance(account, 2, proof, allowlist.root) is False

    @pytest.mark.parametrize("allowance", [-1, 2**256, "2", 2.0, None])
    def test_malformed_allowance_returns_false(self, allowance: object) -> None:
        allowlist = _allowlist()
        proof = allowlist.proof_for(ALICE)
        assert verify_allowance(ALICE, allowance, proof, allowlist.root) is False

    def test_malformed_proof_returns_false(self) -> None:
        allowlist = _allowlist()
        assert verify_allowance(ALICE, 2, ["0xnothex"], allowlist.root) is False
        assert verify_allowance(ALICE, 2, None, allowlist.root) is False

    def test_empty_proof_for_single_entry_list(self) -> None:
        allowlist = build_allowlist([(ALICE, 2)])
        assert allowlist.proof_for(ALICE) == []
        assert allowlist.root == encode_hash(allowance_leaf(ALICE, 2))
        assert verify_allowance(ALICE, 2, [], allowlist.root)


class TestAllowlistBuilder:
    def test_duplicate_account_rejected(self) -> None:
        builder = AllowlistBuilder()
        builder.add(ALICE, 2)
        with pytest.raises(ValueError, match="Duplicate"):
            builder.add(ALICE.upper().replace("0X", "0x"), 3)

    def test_invalid_account_rejected(self) -> None:
        builder = AllowlistBuilder()
        with pytest.raises(ValueError):
            builder.add("0xnope", 1)

    def test_root_independent_of_order(self) -> None:
        a = build_allowlist([(ALICE, 2), (BOB, 1), (CAROL, 5)])
        b = build_allowlist([(CAROL, 5), (ALICE, 2), (BOB, 1)])
        assert a.root == b.root

    def test_lookup(self) -> None:
        allowlist = _allowlist()
        assert ALICE in allowlist
        assert MALLORY not in allowlist
        assert "garbage" not in allowlist
        assert allowlist.allowance_of(CAROL) == 5
        assert allowlist.allowance_of(MALLORY) is None
        assert len(allowlist) == 5

    def test_proof_for_non_member(self) -> None:
        with pytest.raises(KeyError):
            _allowlist().proof_for(MALLORY)

    def test_entries_are_checksummed(self) -> None:
        allowlist = _allowlist()
        assert {e.account for e in allowlist.entries()} >= {to_account(ALICE), to_account(BOB)}


class TestLoadAllowlist:
    def test_pair_format(self, tmp_path) -> None:
        path = tmp_path / "allowlist.json"
        path.write_text(json.dumps([[ALICE, 2], [BOB, 1]]))
        allowlist = load_allowlist(path)
        assert allowlist.root == build_allowlist([(ALICE, 2), (BOB, 1)]).root

    def test_object_format(self, tmp_path) -> None:
        path = tmp_path / "allowlist.json"
        path.write_text(json.dumps([
            {"account": ALICE, "allowance": 2},
            {"account": BOB, "allowance": 1},
        ]))
        assert load_allowlist(path).allowance_of(ALICE) == 2

    def test_not_a_list(self, tmp_path) -> None:
        path = tmp_path / "allowlist.json"
        path.write_text(json.dumps({ALICE: 2}))
        with pytest.raises(ValueError):
            load_allowlist(path)

    def test_malformed_entry(self, tmp_path) -> None:
        path = tmp_path / "allowlist.json"
        path.write_text(json.dumps([[ALICE, 2, "extra"]]))
        with pytest.raises(ValueError, match="index 0"):
            load_allowlist(path)
