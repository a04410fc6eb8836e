"""Mintgate service — unified facade for the collection.

This is the primary interface for programmatic access to a collection.
It orchestrates all subsystems:
- Admission (phase flags, per-request cap, payment, supply ceiling)
- Allowlist proof verification and allowance consumption
- Sequential issuance through the executor
- Administrative writes through the capability-gated gateway
- Metadata URIs, royalties, owned-item queries
- Persistence (event log, state store)

Every mutating request runs admit -> verify -> check allowance -> audit
-> issue -> consume under a single lock, so two requests can never
interleave between a check and the mutation it guards. All checks run
before any mutation. The audit event is written before state changes:
if the event log cannot be written the request fails with no effect.
On construction, events that reached the log but not the state store
are replayed, so ids are never handed out twice after a failed save.
Read-only queries do not take the lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from mintgate.compensation.treasury import Treasury
from mintgate.crypto.accounts import to_account
from mintgate.crypto.allowlist import verify_allowance
from mintgate.crypto.merkle import decode_hash, encode_hash
from mintgate.engine.allowance_ledger import AllowanceLedger
from mintgate.engine.executor import IssuanceExecutor
from mintgate.engine.gate import PhaseGate
from mintgate.engine.metadata import resolve_token_uri
from mintgate.engine.royalty import RoyaltyInfo
from mintgate.engine.supply import SupplyCounter
from mintgate.governance.admin import AdminAuthority, AdminCapability, AdministrativeGateway
from mintgate.models.collection import (
    AllowanceCommitment,
    IssuanceRejected,
    MintReceipt,
    RejectionReason,
    RequestKind,
)
from mintgate.persistence.event_log import EventKind, EventLog, EventRecord
from mintgate.persistence.state_store import CollectionState, StateStore
from mintgate.policy.config import CollectionConfig
from mintgate.registry import InMemoryTokenRegistry


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def reason(self) -> Optional[RejectionReason]:
        value = self.data.get("reason")
        return RejectionReason(value) if value else None


class CollectionService:
    """Collection facade.

    Usage:
        config = CollectionConfig.from_config_dir(config_dir)
        service = CollectionService(config, owner="0xOwner...")

        service.set_public_sale(owner, True)
        result = service.issue_public(buyer, quantity=2, payment=2 * cost)
        result.data["token_ids"]  # [1, 2]

        result = service.issue_presale(
            buyer, quantity=1, claimed_allowance=2, proof=proof, payment=cost,
        )

    Persistence (optional):
        service = CollectionService(
            config, owner, event_log=log, state_store=store,
        )
        # State is persisted on each mutation and loaded on construction.
    """

    def __init__(
        self,
        config: CollectionConfig,
        owner: str,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._config = config
        policy = config.policy()

        state = state_store.load(expected_policy=policy) if state_store is not None else None
        if state is None:
            state = CollectionState(
                policy=policy,
                phase=config.initial_phase(),
                allowlist_root=config.allowlist_root,
                royalty_receiver=config.royalties_receiver,
            )
        replayed = _replay_unapplied(state, event_log)

        self._phase = state.phase
        self._commitment = AllowanceCommitment(root=state.allowlist_root)
        self._royalty = RoyaltyInfo(
            receiver=state.royalty_receiver or config.royalties_receiver,
            bps=config.royalties_bps,
        )
        self._ledger = AllowanceLedger.from_snapshot(state.allowance_consumed)
        self._registry = InMemoryTokenRegistry(state.owners)
        self._treasury = Treasury(
            balance=state.treasury_balance,
            total_collected=state.treasury_collected,
            total_withdrawn=state.treasury_withdrawn,
        )

        self._gate = PhaseGate(policy)
        self._executor = IssuanceExecutor(
            SupplyCounter(policy.supply_ceiling, issued=state.issued),
            self._registry,
        )
        self._authority = AdminAuthority(owner)
        self._gateway = AdministrativeGateway(
            self._authority,
            self._phase,
            self._commitment,
            self._royalty,
            executor=self._executor,
            treasury=self._treasury,
        )

        self._event_log = event_log
        self._state_store = state_store
        self._lock = threading.RLock()
        # Initialize counter from persisted log to avoid ID collision on restart
        self._event_counter = event_log.count if event_log is not None else 0
        self._applied_events = state.applied_events
        self._persistence_degraded: bool = False
        if replayed:
            self._safe_persist_post_audit()

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue_public(self, account: str, quantity: int, payment: int) -> ServiceResult:
        """Mint quantity items to account in the public sale."""
        try:
            recipient = to_account(account)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        with self._lock:
            try:
                self._gate.admit(
                    RequestKind.PUBLIC, quantity, payment, self._phase, self._executor.issued,
                )
                token_ids = self._executor.preview(quantity)
            except IssuanceRejected as e:
                return self._rejected(e)

            err = self._record_event(
                EventKind.TOKENS_MINTED,
                recipient,
                {"recipient": recipient, "token_ids": token_ids, "paid": payment},
            )
            if err:
                return ServiceResult(success=False, errors=[err])

            minted = self._executor.issue(recipient, quantity)
            self._treasury.deposit(payment)
            receipt = MintReceipt(
                kind=RequestKind.PUBLIC, recipient=recipient, token_ids=minted, paid=payment,
            )
            return self._committed(_receipt_data(receipt))

    def issue_presale(
        self,
        account: str,
        quantity: int,
        claimed_allowance: int,
        proof: Sequence[str],
        payment: int,
    ) -> ServiceResult:
        """Mint quantity items to an allowlisted account.

        The proof must show (account, claimed_allowance) is committed under
        the current allowlist root, and the account's cumulative presale
        consumption must stay within claimed_allowance.
        """
        try:
            recipient = to_account(account)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        with self._lock:
            try:
                self._gate.admit(
                    RequestKind.PRESALE, quantity, payment, self._phase, self._executor.issued,
                )
                if not verify_allowance(recipient, claimed_allowance, proof, self._commitment.root):
                    raise IssuanceRejected(
                        RejectionReason.ALLOWLIST_PROOF_INVALID,
                        "User is not allowlisted or allowance is incorrect",
                    )
                self._ledger.check(recipient, claimed_allowance, quantity)
                token_ids = self._executor.preview(quantity)
            except IssuanceRejected as e:
                return self._rejected(e)

            err = self._record_event(
                EventKind.PRESALE_MINTED,
                recipient,
                {
                    "recipient": recipient,
                    "token_ids": token_ids,
                    "paid": payment,
                    "claimed_allowance": claimed_allowance,
                    "allowlist_root": self._commitment.root,
                },
            )
            if err:
                return ServiceResult(success=False, errors=[err])

            minted = self._executor.issue(recipient, quantity)
            consumed = self._ledger.try_consume(recipient, claimed_allowance, quantity)
            self._treasury.deposit(payment)
            receipt = MintReceipt(
                kind=RequestKind.PRESALE,
                recipient=recipient,
                token_ids=minted,
                paid=payment,
                claimed_allowance=claimed_allowance,
            )
            data = _receipt_data(receipt)
            data["allowance_consumed"] = consumed
            return self._committed(data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve_uri(self, token_id: int) -> ServiceResult:
        """Return the metadata URI for an issued item."""
        try:
            uri = resolve_token_uri(
                token_id,
                self._executor.issued,
                self._phase.base_uri,
                self._phase.revealed,
                self._config.base_extension,
            )
        except IssuanceRejected as e:
            return self._rejected(e)
        return ServiceResult(success=True, data={"token_id": token_id, "uri": uri})

    def royalty_for(self, sale_value: int) -> tuple[str, int]:
        """Return (receiver, royalty amount) for a sale of sale_value wei."""
        return self._royalty.royalty_for(sale_value)

    def owned_items(self, account: str) -> list[int]:
        """Return the ids owned by account, ascending."""
        return self._registry.ids_owned_by(to_account(account))

    def owner_of(self, token_id: int) -> Optional[str]:
        return self._registry.owner_of(token_id)

    def allowance_consumed(self, account: str) -> int:
        return self._ledger.consumed(to_account(account))

    def verify_allowlist(self, account: str, allowance: int, proof: Sequence[str]) -> bool:
        """Check a proof against the current root without minting."""
        return verify_allowance(account, allowance, proof, self._commitment.root)

    @property
    def total_supply(self) -> int:
        return self._executor.issued

    @property
    def owner(self) -> str:
        return self._authority.owner

    def status(self) -> dict[str, Any]:
        """Return collection status summary."""
        policy = self._gate.policy
        return {
            "name": self._config.name,
            "symbol": self._config.symbol,
            "policy": {
                "unit_cost": policy.unit_cost,
                "supply_ceiling": policy.supply_ceiling,
                "max_per_request": policy.max_per_request,
            },
            "phase": {
                "issuance_enabled": self._phase.issuance_enabled,
                "public_sale_open": self._phase.public_sale_open,
                "revealed": self._phase.revealed,
                "base_uri": self._phase.base_uri,
            },
            "supply": {
                "issued": self._executor.issued,
                "remaining": policy.supply_ceiling - self._executor.issued,
            },
            "allowlist_root": self._commitment.root,
            "royalty": {"receiver": self._royalty.receiver, "bps": self._royalty.bps},
            "treasury": {
                "balance": self._treasury.balance,
                "collected": self._treasury.total_collected,
                "withdrawn": self._treasury.total_withdrawn,
            },
            "owner": self._authority.owner,
            "persistence_degraded": self._persistence_degraded,
        }

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_issuance_enabled(self, caller: str, enabled: bool) -> ServiceResult:
        return self._admin(
            caller,
            EventKind.ISSUANCE_TOGGLED,
            lambda: {"issuance_enabled": bool(enabled)},
            lambda cap, payload: self._gateway.set_issuance_enabled(cap, enabled),
        )

    def set_public_sale(self, caller: str, open_: bool) -> ServiceResult:
        return self._admin(
            caller,
            EventKind.PUBLIC_SALE_TOGGLED,
            lambda: {"public_sale_open": bool(open_)},
            lambda cap, payload: self._gateway.set_public_sale(cap, open_),
        )

    def reveal(self, caller: str) -> ServiceResult:
        return self._admin(
            caller,
            EventKind.COLLECTION_REVEALED,
            lambda: {"revealed": True},
            lambda cap, payload: self._gateway.reveal(cap),
        )

    def set_base_uri(self, caller: str, base_uri: str) -> ServiceResult:
        return self._admin(
            caller,
            EventKind.BASE_URI_SET,
            lambda: {"base_uri": base_uri},
            lambda cap, payload: self._gateway.set_base_uri(cap, base_uri),
        )

    def set_allowlist_root(self, caller: str, root: str) -> ServiceResult:
        def build() -> dict[str, Any]:
            decoded = decode_hash(root)
            if decoded is None:
                raise ValueError(f"Allowlist root must be 32 bytes of hex: {root!r}")
            return {"previous_root": self._commitment.root, "root": encode_hash(decoded)}

        return self._admin(
            caller,
            EventKind.ALLOWLIST_ROOT_SET,
            build,
            lambda cap, payload: self._gateway.set_allowlist_root(cap, payload["root"]),
        )

    def set_royalty_receiver(self, caller: str, receiver: str) -> ServiceResult:
        return self._admin(
            caller,
            EventKind.ROYALTY_RECEIVER_SET,
            lambda: {"receiver": to_account(receiver)},
            lambda cap, payload: self._gateway.set_royalty_receiver(cap, payload["receiver"]),
        )

    def mint_to(self, caller: str, recipients: Sequence[str]) -> ServiceResult:
        """Owner-only: mint one item to each recipient, free of charge.

        Phase, payment and allowance checks do not apply. The supply
        ceiling does, for the batch as a whole.
        """
        with self._lock:
            try:
                cap = self._authority.grant(caller)
            except IssuanceRejected as e:
                return self._rejected(e)

            try:
                normalized = [to_account(r) for r in recipients]
                token_ids = self._executor.preview(len(normalized))
            except IssuanceRejected as e:
                return self._rejected(e)
            except ValueError as e:
                return ServiceResult(success=False, errors=[str(e)])

            err = self._record_event(
                EventKind.BATCH_MINTED,
                cap.holder,
                {"recipients": normalized, "token_ids": token_ids},
            )
            if err:
                return ServiceResult(success=False, errors=[err])

            minted = self._gateway.mint_to(cap, normalized)
            return self._committed({"recipients": normalized, "token_ids": minted})

    def withdraw(self, caller: str) -> ServiceResult:
        """Owner-only: move the whole treasury balance to the owner."""
        with self._lock:
            try:
                cap = self._authority.grant(caller)
            except IssuanceRejected as e:
                return self._rejected(e)

            amount = self._treasury.balance
            err = self._record_event(
                EventKind.FUNDS_WITHDRAWN, cap.holder, {"amount": amount, "to": cap.holder},
            )
            if err:
                return ServiceResult(success=False, errors=[err])

            withdrawn = self._gateway.withdraw(cap)
            return self._committed({"amount": withdrawn, "to": cap.holder})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _admin(
        self,
        caller: str,
        kind: EventKind,
        build_payload: Callable[[], dict[str, Any]],
        apply: Callable[[AdminCapability, dict[str, Any]], None],
    ) -> ServiceResult:
        """Grant a capability, build and audit the payload, then apply a single-field write.

        Privilege is checked before the arguments are looked at, so a
        non-owner is always told PRIVILEGE_DENIED.
        """
        with self._lock:
            try:
                cap = self._authority.grant(caller)
            except IssuanceRejected as e:
                return self._rejected(e)

            try:
                payload = build_payload()
            except ValueError as e:
                return ServiceResult(success=False, errors=[str(e)])

            err = self._record_event(kind, cap.holder, payload)
            if err:
                return ServiceResult(success=False, errors=[err])

            apply(cap, payload)
            return self._committed(dict(payload))

    def _rejected(self, error: IssuanceRejected) -> ServiceResult:
        return ServiceResult(
            success=False,
            errors=[str(error)],
            data={"reason": error.reason.value},
        )

    def _committed(self, data: dict[str, Any]) -> ServiceResult:
        warning = self._safe_persist_post_audit()
        if warning:
            data["warning"] = warning
        return ServiceResult(success=True, data=data)

    def _next_event_id(self) -> str:
        """Id of the next event. Only advanced once an append succeeds."""
        return f"EVT-{self._event_counter + 1:08d}"

    def _record_event(
        self, kind: EventKind, actor_id: str, payload: dict[str, Any],
    ) -> Optional[str]:
        """Append an audit event. Returns error string or None."""
        if self._event_log is None:
            return None
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=actor_id,
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            return f"Event log failure: {e}"
        self._event_counter += 1
        self._applied_events += 1
        return None

    def _snapshot(self) -> CollectionState:
        return CollectionState(
            policy=self._gate.policy,
            phase=self._phase,
            allowlist_root=self._commitment.root,
            royalty_receiver=self._royalty.receiver,
            allowance_consumed=self._ledger.snapshot(),
            owners=self._registry.snapshot(),
            treasury_balance=self._treasury.balance,
            treasury_collected=self._treasury.total_collected,
            treasury_withdrawn=self._treasury.total_withdrawn,
            applied_events=self._applied_events,
        )

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist state after audit events have been committed.

        MUST NOT rollback in-memory state: the audit trail is already
        durable. If persist fails, in-memory state remains correct
        (aligned with audit events), but StateStore is stale.

        Sets _persistence_degraded flag for operator awareness and
        returns a warning string (not a hard error).
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save(self._snapshot())
            return None
        except OSError as e:
            self._persistence_degraded = True
            return f"Persistence degraded: {e}; state committed in audit trail but StateStore is stale"


def _receipt_data(receipt: MintReceipt) -> dict[str, Any]:
    data: dict[str, Any] = {
        "kind": receipt.kind.value,
        "recipient": receipt.recipient,
        "token_ids": list(receipt.token_ids),
        "paid": receipt.paid,
    }
    if receipt.claimed_allowance is not None:
        data["claimed_allowance"] = receipt.claimed_allowance
    return data


def _replay_unapplied(state: CollectionState, event_log: Optional[EventLog]) -> int:
    """Apply log events the snapshot has not seen yet. Returns how many.

    Raises ValueError if the snapshot claims more events than the log holds.
    """
    if event_log is None:
        return 0
    if state.applied_events > event_log.count:
        raise ValueError(
            f"State reflects {state.applied_events} events but the event log "
            f"holds only {event_log.count}"
        )
    pending = event_log.events()[state.applied_events:]
    for event in pending:
        state.apply_event(event)
    return len(pending)
