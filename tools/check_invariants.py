#!/usr/bin/env python3
"""Mintgate invariant checks against the collection config and stored state."""

import json
import sys
from pathlib import Path
from typing import Optional


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
DATA_DIR = ROOT / "data"
HEX_DIGITS = set("0123456789abcdefABCDEF")


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def is_hash256(value: object) -> bool:
    return (
        isinstance(value, str)
        and value.startswith("0x")
        and len(value) == 66
        and set(value[2:]) <= HEX_DIGITS
    )


def check_config(config: dict, errors: list[str]) -> None:
    """Validate deployment parameters."""
    max_supply = config.get("max_supply", 0)
    max_mint = config.get("max_mint_amount", 0)
    if not isinstance(max_supply, int) or max_supply <= 0:
        errors.append(f"max_supply must be > 0, got {max_supply!r}")
    if not isinstance(max_mint, int) or max_mint <= 0:
        errors.append(f"max_mint_amount must be > 0, got {max_mint!r}")

    bps = config.get("royalties_bps", 0)
    if not isinstance(bps, int) or not 0 <= bps <= 10_000:
        errors.append(f"royalties_bps must be in [0, 10000], got {bps!r}")

    root = config.get("allowlist_root", "0x" + "0" * 64)
    if not is_hash256(root):
        errors.append(f"allowlist_root must be 0x + 64 hex digits, got {root!r}")


def check_state(config: dict, state: dict, errors: list[str]) -> None:
    """Validate stored state against the supply and allowance invariants."""
    policy = state.get("policy", {})
    ceiling = policy.get("supply_ceiling")
    if ceiling != config.get("max_supply"):
        errors.append(
            f"stored supply_ceiling {ceiling!r} != configured max_supply {config.get('max_supply')!r}"
        )

    owners = state.get("owners", [])
    if isinstance(ceiling, int) and len(owners) > ceiling:
        errors.append(f"issued {len(owners)} exceeds supply ceiling {ceiling}")
    # Ids are positions 1..len(owners), so every id must have an owner
    for token_id, owner in enumerate(owners, 1):
        if not owner:
            errors.append(f"token {token_id} has no owner")

    for account, consumed in state.get("allowance_consumed", {}).items():
        if not isinstance(consumed, int) or consumed < 0:
            errors.append(f"consumed allowance for {account} must be >= 0, got {consumed!r}")

    treasury = state.get("treasury", {})
    balance = treasury.get("balance", 0)
    collected = treasury.get("collected", 0)
    withdrawn = treasury.get("withdrawn", 0)
    if balance != collected - withdrawn:
        errors.append(
            f"treasury balance {balance} != collected {collected} - withdrawn {withdrawn}"
        )

    if not is_hash256(state.get("allowlist_root")):
        errors.append(f"stored allowlist_root malformed: {state.get('allowlist_root')!r}")


def check_event_log(state: dict, events_path: Path, errors: list[str]) -> None:
    """The snapshot can lag the event log but never run ahead of it."""
    applied = state.get("applied_events", 0)
    recorded = 0
    if events_path.exists():
        with events_path.open("r", encoding="utf-8") as handle:
            recorded = sum(1 for line in handle if line.strip())
    if applied > recorded:
        errors.append(f"state reflects {applied} events but the event log holds {recorded}")
    elif applied < recorded:
        print(f"Note: {recorded - applied} logged events will be replayed on next start.")


def check(config_dir: Optional[Path] = None, data_dir: Optional[Path] = None) -> int:
    config_dir = config_dir or CONFIG_DIR
    data_dir = data_dir or DATA_DIR
    config = load_json(config_dir / "collection.json")
    errors: list[str] = []

    check_config(config, errors)

    state_path = data_dir / "state.json"
    if state_path.exists():
        state = load_json(state_path)
        check_state(config, state, errors)
        check_event_log(state, data_dir / "events.jsonl", errors)

    if errors:
        print("Invariant check failed:")
        for error in errors:
            print(f"  - {error}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
