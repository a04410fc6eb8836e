"""Tests for the allowance ledger — proves cumulative consumption never exceeds allowance."""

import pytest

from mintgate.engine.allowance_ledger import AllowanceLedger
from mintgate.models.collection import IssuanceRejected, RejectionReason

ALICE = "0x00000000000000000000000000000000000A11cE"


class TestConsumption:
    def test_starts_at_zero(self) -> None:
        assert AllowanceLedger().consumed(ALICE) == 0

    def test_consume_in_separate_requests(self) -> None:
        ledger = AllowanceLedger()
        assert ledger.try_consume(ALICE, 2, 1) == 1
        assert ledger.try_consume(ALICE, 2, 1) == 2
        assert ledger.consumed(ALICE) == 2

    def test_exceeding_rejected_without_mutation(self) -> None:
        ledger = AllowanceLedger()
        ledger.try_consume(ALICE, 2, 1)
        with pytest.raises(IssuanceRejected) as exc:
            ledger.try_consume(ALICE, 2, 2)
        assert exc.value.reason == RejectionReason.ALLOWANCE_EXCEEDED
        assert ledger.consumed(ALICE) == 1

    def test_single_request_over_allowance(self) -> None:
        ledger = AllowanceLedger()
        with pytest.raises(IssuanceRejected):
            ledger.try_consume(ALICE, 2, 3)
        assert ledger.consumed(ALICE) == 0

    def test_check_does_not_mutate(self) -> None:
        ledger = AllowanceLedger()
        ledger.check(ALICE, 2, 2)
        assert ledger.consumed(ALICE) == 0

    def test_accounts_independent(self) -> None:
        ledger = AllowanceLedger()
        ledger.try_consume(ALICE, 1, 1)
        assert ledger.try_consume("0x" + "b" * 40, 1, 1) == 1


class TestAllowanceChanges:
    def test_consumption_carries_over_to_larger_allowance(self) -> None:
        ledger = AllowanceLedger()
        ledger.try_consume(ALICE, 2, 2)
        # A new commitment grants 3: only one more fits
        assert ledger.try_consume(ALICE, 3, 1) == 3
        with pytest.raises(IssuanceRejected):
            ledger.try_consume(ALICE, 3, 1)

    def test_smaller_allowance_already_over_quota(self) -> None:
        ledger = AllowanceLedger()
        ledger.try_consume(ALICE, 2, 2)
        with pytest.raises(IssuanceRejected) as exc:
            ledger.try_consume(ALICE, 1, 1)
        assert exc.value.reason == RejectionReason.ALLOWANCE_EXCEEDED


class TestSnapshot:
    def test_roundtrip(self) -> None:
        ledger = AllowanceLedger()
        ledger.try_consume(ALICE, 5, 3)
        restored = AllowanceLedger.from_snapshot(ledger.snapshot())
        assert restored.consumed(ALICE) == 3

    def test_snapshot_is_a_copy(self) -> None:
        ledger = AllowanceLedger()
        snap = ledger.snapshot()
        snap[ALICE] = 99
        assert ledger.consumed(ALICE) == 0

    def test_negative_snapshot_rejected(self) -> None:
        with pytest.raises(ValueError):
            AllowanceLedger.from_snapshot({ALICE: -1})
