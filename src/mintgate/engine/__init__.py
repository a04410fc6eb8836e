"""Issuance engine — gate, allowance ledger, supply counter, executor."""

from mintgate.engine.allowance_ledger import AllowanceLedger
from mintgate.engine.executor import IssuanceExecutor
from mintgate.engine.gate import PhaseGate
from mintgate.engine.supply import SupplyCounter

__all__ = ["AllowanceLedger", "IssuanceExecutor", "PhaseGate", "SupplyCounter"]
