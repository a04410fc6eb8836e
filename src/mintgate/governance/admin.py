"""Administrative gateway — privileged single-field mutators.

Privilege is checked in exactly one place. AdminAuthority.grant() issues
an AdminCapability to the owner and to nobody else; every mutator on the
gateway requires that capability and the authority confirms it was the
one that issued it. No mutator re-derives "is this the owner" itself.

Mutators perform no cross-field validation. Flags may be set in any
combination, e.g. revealed while issuance is disabled.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from mintgate.compensation.treasury import Treasury
from mintgate.crypto.accounts import to_account
from mintgate.crypto.merkle import decode_hash, encode_hash
from mintgate.engine.executor import IssuanceExecutor
from mintgate.engine.royalty import RoyaltyInfo
from mintgate.models.collection import AllowanceCommitment, PhaseState, PrivilegeDenied


@dataclass(frozen=True)
class AdminCapability:
    """Proof that the holder was authorised by the collection owner."""
    holder: str
    token: str = field(repr=False)


class AdminAuthority:
    """Issues and recognises admin capabilities for a single owner."""

    def __init__(self, owner: str) -> None:
        self._owner = to_account(owner)
        # One secret per authority; every grant hands out the same capability
        self._token = secrets.token_hex(16)

    @property
    def owner(self) -> str:
        return self._owner

    def grant(self, caller: str) -> AdminCapability:
        """Issue a capability to caller. Raises PrivilegeDenied if not the owner."""
        try:
            account = to_account(caller)
        except ValueError:
            raise PrivilegeDenied(str(caller)) from None
        if account != self._owner:
            raise PrivilegeDenied(account)
        return AdminCapability(holder=account, token=self._token)

    def require(self, capability: AdminCapability) -> None:
        if (
            not isinstance(capability, AdminCapability)
            or not secrets.compare_digest(str(capability.token).encode(), self._token.encode())
            or capability.holder != self._owner
        ):
            holder = getattr(capability, "holder", "<none>")
            raise PrivilegeDenied(holder)


class AdministrativeGateway:
    """Privileged writes, owner batch minting and treasury withdrawal.

    Usage:
        gateway = AdministrativeGateway(authority, phase, commitment, royalty)
        cap = authority.grant(owner_address)
        gateway.set_public_sale(cap, True)
        gateway.reveal(cap)
    """

    def __init__(
        self,
        authority: AdminAuthority,
        phase: PhaseState,
        commitment: AllowanceCommitment,
        royalty: RoyaltyInfo,
        executor: Optional[IssuanceExecutor] = None,
        treasury: Optional[Treasury] = None,
    ) -> None:
        self._authority = authority
        self._phase = phase
        self._commitment = commitment
        self._royalty = royalty
        self._executor = executor
        self._treasury = treasury

    def set_issuance_enabled(self, capability: AdminCapability, enabled: bool) -> None:
        self._authority.require(capability)
        self._phase.issuance_enabled = bool(enabled)

    def set_public_sale(self, capability: AdminCapability, open_: bool) -> None:
        self._authority.require(capability)
        self._phase.public_sale_open = bool(open_)

    def reveal(self, capability: AdminCapability) -> None:
        """Reveal the collection. One-way: there is no un-reveal."""
        self._authority.require(capability)
        self._phase.revealed = True

    def set_base_uri(self, capability: AdminCapability, base_uri: str) -> None:
        self._authority.require(capability)
        self._phase.base_uri = str(base_uri)

    def set_allowlist_root(self, capability: AdminCapability, root: str) -> None:
        """Replace the commitment. Proofs against the old root stop verifying."""
        self._authority.require(capability)
        decoded = decode_hash(root)
        if decoded is None:
            raise ValueError(f"Allowlist root must be 32 bytes of hex: {root!r}")
        self._commitment.root = encode_hash(decoded)

    def set_royalty_receiver(self, capability: AdminCapability, receiver: str) -> None:
        self._authority.require(capability)
        self._royalty.receiver = to_account(receiver)

    def mint_to(self, capability: AdminCapability, recipients: Sequence[str]) -> List[int]:
        """Mint one item to each recipient, bypassing sale checks."""
        self._authority.require(capability)
        if self._executor is None:
            raise RuntimeError("Gateway has no issuance executor")
        return self._executor.issue_batch([to_account(r) for r in recipients])

    def withdraw(self, capability: AdminCapability) -> int:
        """Empty the treasury to the owner. Returns the amount."""
        self._authority.require(capability)
        if self._treasury is None:
            raise RuntimeError("Gateway has no treasury")
        return self._treasury.withdraw_all()
