"""Collection configuration — deployment parameters and operator environment.

Deployment parameters live in <config_dir>/collection.json and are fixed
for the life of the collection. Operator secrets (the owner key) and the
data directory come from the environment, optionally loaded from a .env
file at the project root.

Environment variables:
    MINTGATE_OWNER       Owner address.
    MINTGATE_OWNER_KEY   Owner private key; the address is derived from it
                         when MINTGATE_OWNER is not set.
    MINTGATE_DATA_DIR    Directory for state.json and events.jsonl.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from eth_account import Account
from web3 import Web3

from mintgate.crypto.accounts import ZERO_ADDRESS, is_account, to_account
from mintgate.crypto.merkle import decode_hash, encode_hash
from mintgate.engine.royalty import BPS_DENOMINATOR
from mintgate.models.collection import ZERO_ROOT, PhaseState, Policy

CONFIG_FILENAME = "collection.json"


@dataclass(frozen=True)
class CollectionConfig:
    """Validated deployment parameters."""
    name: str
    symbol: str
    base_uri: str
    unit_cost: int  # wei
    max_supply: int
    max_mint_amount: int
    royalties_bps: int
    royalties_receiver: str
    allowlist_root: str = ZERO_ROOT
    base_extension: str = ".json"
    mint_active: bool = True
    public_sale: bool = False
    owner: Optional[str] = None

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> CollectionConfig:
        path = config_dir / CONFIG_FILENAME
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CollectionConfig:
        """Build from raw JSON data. Raises ValueError listing every problem."""
        errors = validate_config(data)
        if errors:
            raise ValueError("Invalid collection config: " + "; ".join(errors))

        return cls(
            name=data["name"],
            symbol=data["symbol"],
            base_uri=data.get("base_uri", ""),
            unit_cost=_unit_cost_wei(data),
            max_supply=int(data["max_supply"]),
            max_mint_amount=int(data["max_mint_amount"]),
            royalties_bps=int(data.get("royalties_bps", 0)),
            royalties_receiver=to_account(data.get("royalties_receiver", ZERO_ADDRESS)),
            allowlist_root=encode_hash(decode_hash(data.get("allowlist_root", ZERO_ROOT))),
            base_extension=data.get("base_extension", ".json"),
            mint_active=bool(data.get("mint_active", True)),
            public_sale=bool(data.get("public_sale", False)),
            owner=to_account(data["owner"]) if data.get("owner") else None,
        )

    def policy(self) -> Policy:
        return Policy(
            unit_cost=self.unit_cost,
            supply_ceiling=self.max_supply,
            max_per_request=self.max_mint_amount,
        )

    def initial_phase(self) -> PhaseState:
        return PhaseState(
            issuance_enabled=self.mint_active,
            public_sale_open=self.public_sale,
            revealed=False,
            base_uri=self.base_uri,
        )


def validate_config(data: dict[str, Any]) -> list[str]:
    """Return a list of problems with raw collection config data."""
    errors: list[str] = []
    for key in ("name", "symbol", "max_supply", "max_mint_amount"):
        if key not in data:
            errors.append(f"missing required key: {key}")
    if "cost_to_mint_ether" not in data and "cost_to_mint_wei" not in data:
        errors.append("missing cost: set cost_to_mint_ether or cost_to_mint_wei")
    if errors:
        return errors

    for key in ("max_supply", "max_mint_amount"):
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            errors.append(f"{key} must be a positive integer, got {value!r}")

    try:
        if _unit_cost_wei(data) < 0:
            errors.append("mint cost must be >= 0")
    except (InvalidOperation, ValueError, TypeError) as e:
        errors.append(f"invalid mint cost: {e}")

    bps = data.get("royalties_bps", 0)
    if isinstance(bps, bool) or not isinstance(bps, int) or not 0 <= bps <= BPS_DENOMINATOR:
        errors.append(f"royalties_bps must be an integer in [0, {BPS_DENOMINATOR}], got {bps!r}")

    receiver = data.get("royalties_receiver", ZERO_ADDRESS)
    if not is_account(receiver):
        errors.append(f"royalties_receiver is not an address: {receiver!r}")

    owner = data.get("owner")
    if owner and not is_account(owner):
        errors.append(f"owner is not an address: {owner!r}")

    root = data.get("allowlist_root", ZERO_ROOT)
    if decode_hash(root) is None:
        errors.append(f"allowlist_root must be 32 bytes of hex: {root!r}")

    return errors


def _unit_cost_wei(data: dict[str, Any]) -> int:
    if "cost_to_mint_wei" in data:
        return int(data["cost_to_mint_wei"])
    return int(Web3.to_wei(Decimal(str(data["cost_to_mint_ether"])), "ether"))


@dataclass(frozen=True)
class OperatorEnvironment:
    """Who operates the collection, and where its state lives."""
    owner: Optional[str]
    data_dir: Path


def load_environment(root: Path, default_data_dir: Path) -> OperatorEnvironment:
    """Read operator settings from the environment and <root>/.env.

    Raises ValueError if MINTGATE_OWNER or MINTGATE_OWNER_KEY is malformed.
    """
    load_dotenv(root / ".env")

    owner = os.getenv("MINTGATE_OWNER")
    owner_key = os.getenv("MINTGATE_OWNER_KEY")
    if owner:
        owner = to_account(owner)
    elif owner_key:
        try:
            owner = Account.from_key(owner_key).address
        except ValueError as e:
            raise ValueError(f"MINTGATE_OWNER_KEY is not a valid private key: {e}") from None

    data_dir = Path(os.getenv("MINTGATE_DATA_DIR") or default_data_dir)
    return OperatorEnvironment(owner=owner, data_dir=data_dir)
