"""State store — durable snapshot of the collection's mutable state.

The whole state is written as one JSON document and swapped into place
with os.replace, so a reader never sees a half-written file. Policy
constants are stored alongside the state and checked on load: a store
written under a different policy is refused rather than reinterpreted.

The event log is written before the snapshot, so after a failed save or
a crash the log can run ahead. The snapshot records how many log events
it reflects; the service replays the rest on startup.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from mintgate.models.collection import ZERO_ROOT, PhaseState, Policy
from mintgate.persistence.event_log import EventKind, EventRecord

STATE_VERSION = 1


@dataclass
class CollectionState:
    """Everything that must survive a restart."""
    policy: Policy
    phase: PhaseState
    allowlist_root: str = ZERO_ROOT
    royalty_receiver: str = ""
    allowance_consumed: Dict[str, int] = field(default_factory=dict)
    owners: List[str] = field(default_factory=list)
    treasury_balance: int = 0
    treasury_collected: int = 0
    treasury_withdrawn: int = 0
    # Number of event log records already reflected in this snapshot
    applied_events: int = 0

    @property
    def issued(self) -> int:
        return len(self.owners)

    def apply_event(self, event: EventRecord) -> None:
        """Bring the snapshot forward by one audited change.

        Used on startup to replay events that reached the log but not the
        snapshot. Raises ValueError if a mint event does not continue the
        id sequence exactly.
        """
        kind = event.event_kind
        payload = event.payload

        if kind in (EventKind.TOKENS_MINTED, EventKind.PRESALE_MINTED):
            token_ids = payload["token_ids"]
            self._append_owners(event, [payload["recipient"]] * len(token_ids), token_ids)
            self.treasury_balance += payload["paid"]
            self.treasury_collected += payload["paid"]
            if kind == EventKind.PRESALE_MINTED:
                recipient = payload["recipient"]
                self.allowance_consumed[recipient] = (
                    self.allowance_consumed.get(recipient, 0) + len(token_ids)
                )
        elif kind == EventKind.BATCH_MINTED:
            self._append_owners(event, payload["recipients"], payload["token_ids"])
        elif kind == EventKind.ISSUANCE_TOGGLED:
            self.phase.issuance_enabled = payload["issuance_enabled"]
        elif kind == EventKind.PUBLIC_SALE_TOGGLED:
            self.phase.public_sale_open = payload["public_sale_open"]
        elif kind == EventKind.COLLECTION_REVEALED:
            self.phase.revealed = True
        elif kind == EventKind.BASE_URI_SET:
            self.phase.base_uri = payload["base_uri"]
        elif kind == EventKind.ALLOWLIST_ROOT_SET:
            self.allowlist_root = payload["root"]
        elif kind == EventKind.ROYALTY_RECEIVER_SET:
            self.royalty_receiver = payload["receiver"]
        elif kind == EventKind.FUNDS_WITHDRAWN:
            self.treasury_balance -= payload["amount"]
            self.treasury_withdrawn += payload["amount"]

        self.applied_events += 1

    def _append_owners(self, event: EventRecord, recipients: List[str], token_ids: List[int]) -> None:
        expected = list(range(self.issued + 1, self.issued + 1 + len(recipients)))
        if list(token_ids) != expected:
            raise ValueError(
                f"Event {event.event_id} assigns ids {token_ids}, expected {expected}"
            )
        self.owners.extend(recipients)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "policy": asdict(self.policy),
            "phase": asdict(self.phase),
            "allowlist_root": self.allowlist_root,
            "royalty_receiver": self.royalty_receiver,
            "allowance_consumed": dict(sorted(self.allowance_consumed.items())),
            "owners": list(self.owners),
            "treasury": {
                "balance": self.treasury_balance,
                "collected": self.treasury_collected,
                "withdrawn": self.treasury_withdrawn,
            },
            "applied_events": self.applied_events,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> CollectionState:
        version = data.get("version")
        if version != STATE_VERSION:
            raise ValueError(f"Unsupported state version: {version!r}")
        treasury = data.get("treasury", {})
        return CollectionState(
            policy=Policy(**data["policy"]),
            phase=PhaseState(**data["phase"]),
            allowlist_root=data.get("allowlist_root", ZERO_ROOT),
            royalty_receiver=data.get("royalty_receiver", ""),
            allowance_consumed={k: int(v) for k, v in data.get("allowance_consumed", {}).items()},
            owners=list(data.get("owners", [])),
            treasury_balance=int(treasury.get("balance", 0)),
            treasury_collected=int(treasury.get("collected", 0)),
            treasury_withdrawn=int(treasury.get("withdrawn", 0)),
            applied_events=int(data.get("applied_events", 0)),
        )


class StateStore:
    """JSON file persistence for CollectionState.

    Usage:
        store = StateStore(Path("data/state.json"))
        state = store.load(expected_policy=policy)  # None on first run
        store.save(state)
    """

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def load(self, expected_policy: Optional[Policy] = None) -> Optional[CollectionState]:
        """Load the stored state, or None if nothing has been saved yet.

        Raises ValueError if the stored policy differs from expected_policy
        or the stored state breaks the supply ceiling.
        """
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            state = CollectionState.from_dict(json.load(f))

        if expected_policy is not None and state.policy != expected_policy:
            raise ValueError(
                f"Stored policy {state.policy} does not match configured policy {expected_policy}"
            )
        if state.issued > state.policy.supply_ceiling:
            raise ValueError(
                f"Stored state has {state.issued} items issued, above ceiling "
                f"{state.policy.supply_ceiling}"
            )
        return state

    def save(self, state: CollectionState) -> None:
        """Write state atomically. Raises OSError on failure."""
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)
