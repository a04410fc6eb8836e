"""Tests for the administrative gateway — proves every write requires the owner's capability."""

import pytest

from mintgate.compensation.treasury import Treasury
from mintgate.crypto.accounts import ZERO_ADDRESS, to_account
from mintgate.engine.executor import IssuanceExecutor
from mintgate.engine.royalty import RoyaltyInfo
from mintgate.engine.supply import SupplyCounter
from mintgate.governance.admin import AdminAuthority, AdminCapability, AdministrativeGateway
from mintgate.models.collection import AllowanceCommitment, PhaseState, PrivilegeDenied, RejectionReason
from mintgate.registry import InMemoryTokenRegistry

OWNER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
STRANGER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
ROOT = "0x" + "ab" * 32


@pytest.fixture
def authority() -> AdminAuthority:
    return AdminAuthority(OWNER)


@pytest.fixture
def gateway(authority: AdminAuthority) -> AdministrativeGateway:
    executor = IssuanceExecutor(SupplyCounter(3), InMemoryTokenRegistry())
    return AdministrativeGateway(
        authority,
        PhaseState(),
        AllowanceCommitment(),
        RoyaltyInfo(receiver=ZERO_ADDRESS, bps=500),
        executor=executor,
        treasury=Treasury(balance=40, total_collected=40),
    )


class TestAuthority:
    def test_owner_is_checksummed(self, authority: AdminAuthority) -> None:
        assert authority.owner == to_account(OWNER)

    def test_owner_granted(self, authority: AdminAuthority) -> None:
        cap = authority.grant(OWNER.upper().replace("0X", "0x"))
        assert cap.holder == authority.owner
        authority.require(cap)

    def test_stranger_denied(self, authority: AdminAuthority) -> None:
        with pytest.raises(PrivilegeDenied) as exc:
            authority.grant(STRANGER)
        assert exc.value.reason == RejectionReason.PRIVILEGE_DENIED

    def test_garbage_caller_denied(self, authority: AdminAuthority) -> None:
        with pytest.raises(PrivilegeDenied):
            authority.grant("not-an-address")

    def test_forged_capability_rejected(self, authority: AdminAuthority) -> None:
        forged = AdminCapability(holder=authority.owner, token="0" * 32)
        with pytest.raises(PrivilegeDenied):
            authority.require(forged)

    def test_capability_from_other_authority_rejected(self, authority: AdminAuthority) -> None:
        other = AdminAuthority(STRANGER)
        with pytest.raises(PrivilegeDenied):
            authority.require(other.grant(STRANGER))

    def test_non_capability_rejected(self, authority: AdminAuthority) -> None:
        with pytest.raises(PrivilegeDenied):
            authority.require(None)

    def test_repeated_grants_share_one_capability(self, authority: AdminAuthority) -> None:
        first = authority.grant(OWNER)
        assert authority.grant(OWNER) == first
        authority.require(first)


class TestGatewayWrites:
    def test_flags_independent(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        cap = authority.grant(OWNER)
        gateway.set_issuance_enabled(cap, False)
        gateway.reveal(cap)
        gateway.set_public_sale(cap, True)
        phase = gateway._phase
        assert (phase.issuance_enabled, phase.public_sale_open, phase.revealed) == (False, True, True)

    def test_reveal_is_one_way(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        cap = authority.grant(OWNER)
        gateway.reveal(cap)
        gateway.reveal(cap)
        assert gateway._phase.revealed is True

    def test_set_allowlist_root_normalises(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        cap = authority.grant(OWNER)
        gateway.set_allowlist_root(cap, ROOT.upper().replace("0X", "0x"))
        assert gateway._commitment.root == ROOT

    def test_set_allowlist_root_rejects_malformed(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        with pytest.raises(ValueError):
            gateway.set_allowlist_root(authority.grant(OWNER), "0x1234")

    def test_set_royalty_receiver(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        gateway.set_royalty_receiver(authority.grant(OWNER), STRANGER)
        assert gateway._royalty.receiver == to_account(STRANGER)
        assert gateway._royalty.bps == 500

    def test_writes_require_capability(self, gateway: AdministrativeGateway) -> None:
        forged = AdminCapability(holder=to_account(OWNER), token="x")
        for write in (
            lambda: gateway.set_issuance_enabled(forged, False),
            lambda: gateway.set_public_sale(forged, True),
            lambda: gateway.reveal(forged),
            lambda: gateway.set_base_uri(forged, "ipfs://x/"),
            lambda: gateway.set_allowlist_root(forged, ROOT),
            lambda: gateway.set_royalty_receiver(forged, STRANGER),
            lambda: gateway.mint_to(forged, [STRANGER]),
            lambda: gateway.withdraw(forged),
        ):
            with pytest.raises(PrivilegeDenied):
                write()
        assert gateway._phase == PhaseState()
        assert gateway._treasury.balance == 40


class TestMintToAndWithdraw:
    def test_mint_to(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        ids = gateway.mint_to(authority.grant(OWNER), [STRANGER, OWNER])
        assert ids == [1, 2]

    def test_withdraw_empties_treasury(self, gateway: AdministrativeGateway, authority: AdminAuthority) -> None:
        cap = authority.grant(OWNER)
        assert gateway.withdraw(cap) == 40
        assert gateway.withdraw(cap) == 0
        assert gateway._treasury.total_withdrawn == 40


class TestTreasury:
    def test_deposit_and_withdraw(self) -> None:
        treasury = Treasury()
        treasury.deposit(10)
        treasury.deposit(25)
        assert treasury.withdraw_all() == 35
        assert (treasury.balance, treasury.total_collected, treasury.total_withdrawn) == (0, 35, 35)

    def test_negative_deposit_rejected(self) -> None:
        with pytest.raises(ValueError):
            Treasury().deposit(-1)
