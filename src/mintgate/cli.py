"""Mintgate CLI — command-line interface for a collection.

Usage:
    python -m mintgate.cli status
    python -m mintgate.cli set-public-sale on
    python -m mintgate.cli mint --account 0xAbC... --quantity 2
    python -m mintgate.cli mint-presale --account 0xAbC... --quantity 1 --allowlist allowlist.json
    python -m mintgate.cli allowlist-root --file allowlist.json
    python -m mintgate.cli token-uri --id 1
    python -m mintgate.cli check-invariants
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from mintgate.crypto.allowlist import load_allowlist
from mintgate.persistence.event_log import EventLog
from mintgate.persistence.state_store import StateStore
from mintgate.policy.config import CollectionConfig, OperatorEnvironment, load_environment
from mintgate.service import CollectionService, ServiceResult


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"
DEFAULT_DATA = ROOT / "data"


def _environment() -> OperatorEnvironment:
    try:
        return load_environment(ROOT, DEFAULT_DATA)
    except ValueError as e:
        raise SystemExit(f"Failed: {e}") from None


def _make_service(args: argparse.Namespace) -> CollectionService:
    """Create a CollectionService with durable persistence.

    Setup problems exit with a "Failed: ..." message rather than a traceback.
    """
    env = _environment()
    try:
        config = CollectionConfig.from_config_dir(args.config)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed: {e}") from None
    data_dir: Path = args.data or env.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)

    owner = env.owner or config.owner
    if owner is None:
        raise SystemExit(
            "Failed: no collection owner: set MINTGATE_OWNER or MINTGATE_OWNER_KEY, "
            "or add \"owner\" to collection.json"
        )
    try:
        return CollectionService(
            config,
            owner,
            event_log=EventLog(storage_path=data_dir / "events.jsonl"),
            state_store=StateStore(storage_path=data_dir / "state.json"),
        )
    except ValueError as e:
        raise SystemExit(f"Failed: {e}") from None


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def _caller(args: argparse.Namespace, service: CollectionService) -> str:
    return args.caller or service.owner


def _on_off(value: str) -> bool:
    return value == "on"


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_mint(args: argparse.Namespace) -> int:
    service = _make_service(args)
    payment = args.payment
    if payment is None:
        payment = service.status()["policy"]["unit_cost"] * args.quantity
    return _report(service.issue_public(args.account, args.quantity, payment))


def cmd_mint_presale(args: argparse.Namespace) -> int:
    service = _make_service(args)
    allowance = args.allowance
    proof = list(args.proof or [])
    if args.allowlist is not None:
        allowlist = load_allowlist(args.allowlist)
        if args.account not in allowlist:
            print(f"Failed: account not on allowlist: {args.account}", file=sys.stderr)
            return 1
        if allowance is None:
            allowance = allowlist.allowance_of(args.account)
        proof = allowlist.proof_for(args.account)
    if allowance is None:
        print("Failed: --allowance is required without --allowlist", file=sys.stderr)
        return 1

    payment = args.payment
    if payment is None:
        payment = service.status()["policy"]["unit_cost"] * args.quantity
    return _report(
        service.issue_presale(args.account, args.quantity, allowance, proof, payment)
    )


def cmd_mint_to(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.mint_to(_caller(args, service), args.to))


def cmd_set_mint_active(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_issuance_enabled(_caller(args, service), _on_off(args.state)))


def cmd_set_public_sale(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_public_sale(_caller(args, service), _on_off(args.state)))


def cmd_reveal(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.reveal(_caller(args, service)))


def cmd_set_base_uri(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_base_uri(_caller(args, service), args.uri))


def cmd_set_allowlist_root(args: argparse.Namespace) -> int:
    service = _make_service(args)
    root: Optional[str] = args.root
    if args.allowlist is not None:
        root = load_allowlist(args.allowlist).root
    if root is None:
        print("Failed: give --root or --allowlist", file=sys.stderr)
        return 1
    return _report(service.set_allowlist_root(_caller(args, service), root))


def cmd_set_royalty_receiver(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_royalty_receiver(_caller(args, service), args.receiver))


def cmd_withdraw(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.withdraw(_caller(args, service)))


def cmd_token_uri(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.resolve_uri(args.id))


def cmd_royalty(args: argparse.Namespace) -> int:
    service = _make_service(args)
    receiver, amount = service.royalty_for(args.sale_value)
    print(json.dumps({"receiver": receiver, "amount": amount}, indent=2))
    return 0


def cmd_wallet(args: argparse.Namespace) -> int:
    service = _make_service(args)
    try:
        ids = service.owned_items(args.account)
    except ValueError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps({"account": args.account, "token_ids": ids}, indent=2))
    return 0


def cmd_allowlist_root(args: argparse.Namespace) -> int:
    allowlist = load_allowlist(args.file)
    print(json.dumps({"root": allowlist.root, "entries": len(allowlist)}, indent=2))
    return 0


def cmd_allowlist_proof(args: argparse.Namespace) -> int:
    allowlist = load_allowlist(args.file)
    if args.account not in allowlist:
        print(f"Failed: account not on allowlist: {args.account}", file=sys.stderr)
        return 1
    print(json.dumps(
        {
            "account": args.account,
            "allowance": allowlist.allowance_of(args.account),
            "proof": allowlist.proof_for(args.account),
            "root": allowlist.root,
        },
        indent=2,
    ))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run collection invariant checks."""
    # Import and run the existing check_invariants tool
    tools_dir = ROOT / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    data_dir = args.data or _environment().data_dir
    return check(args.config, data_dir)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mintgate",
        description="Mintgate — capped collection issuance CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Path to data directory (default: $MINTGATE_DATA_DIR or data/)",
    )
    sub = parser.add_subparsers(dest="command")

    # status
    sub.add_parser("status", help="Show collection status")

    # mint
    p_mint = sub.add_parser("mint", help="Public-sale mint")
    p_mint.add_argument("--account", required=True, help="Recipient address")
    p_mint.add_argument("--quantity", type=int, required=True, help="Number of items")
    p_mint.add_argument("--payment", type=int, help="Payment in wei (default: exact price)")

    # mint-presale
    p_pre = sub.add_parser("mint-presale", help="Allowlisted presale mint")
    p_pre.add_argument("--account", required=True, help="Recipient address")
    p_pre.add_argument("--quantity", type=int, required=True, help="Number of items")
    p_pre.add_argument("--allowance", type=int, help="Claimed allowance")
    p_pre.add_argument("--proof", nargs="*", help="Proof sibling hashes, leaf level first")
    p_pre.add_argument("--allowlist", type=Path, help="Allowlist JSON to derive the proof from")
    p_pre.add_argument("--payment", type=int, help="Payment in wei (default: exact price)")

    # mint-to
    p_to = sub.add_parser("mint-to", help="Owner mint, one item per address")
    p_to.add_argument("--to", nargs="+", required=True, help="Recipient addresses")
    p_to.add_argument("--caller", help="Caller address (default: owner)")

    # phase flags
    p_active = sub.add_parser("set-mint-active", help="Enable or disable minting")
    p_active.add_argument("state", choices=["on", "off"])
    p_active.add_argument("--caller", help="Caller address (default: owner)")

    p_public = sub.add_parser("set-public-sale", help="Open or close the public sale")
    p_public.add_argument("state", choices=["on", "off"])
    p_public.add_argument("--caller", help="Caller address (default: owner)")

    p_reveal = sub.add_parser("reveal", help="Reveal the collection (irreversible)")
    p_reveal.add_argument("--caller", help="Caller address (default: owner)")

    p_uri = sub.add_parser("set-base-uri", help="Set the base metadata URI")
    p_uri.add_argument("--uri", required=True, help="Base URI")
    p_uri.add_argument("--caller", help="Caller address (default: owner)")

    p_root = sub.add_parser("set-allowlist-root", help="Replace the allowlist root")
    p_root.add_argument("--root", help="0x-prefixed 32-byte root")
    p_root.add_argument("--allowlist", type=Path, help="Allowlist JSON to compute the root from")
    p_root.add_argument("--caller", help="Caller address (default: owner)")

    p_recv = sub.add_parser("set-royalty-receiver", help="Set the royalty receiver")
    p_recv.add_argument("--receiver", required=True, help="Receiver address")
    p_recv.add_argument("--caller", help="Caller address (default: owner)")

    p_wd = sub.add_parser("withdraw", help="Withdraw mint proceeds to the owner")
    p_wd.add_argument("--caller", help="Caller address (default: owner)")

    # queries
    p_tu = sub.add_parser("token-uri", help="Resolve an item's metadata URI")
    p_tu.add_argument("--id", type=int, required=True, help="Token id")

    p_roy = sub.add_parser("royalty", help="Royalty for a sale value")
    p_roy.add_argument("--sale-value", type=int, required=True, help="Sale value in wei")

    p_wallet = sub.add_parser("wallet", help="List items owned by an address")
    p_wallet.add_argument("--account", required=True, help="Owner address")

    # allowlist tooling
    p_alr = sub.add_parser("allowlist-root", help="Compute the root of an allowlist file")
    p_alr.add_argument("--file", type=Path, required=True, help="Allowlist JSON")

    p_alp = sub.add_parser("allowlist-proof", help="Produce a proof for one allowlisted account")
    p_alp.add_argument("--file", type=Path, required=True, help="Allowlist JSON")
    p_alp.add_argument("--account", required=True, help="Allowlisted address")

    # check-invariants
    sub.add_parser("check-invariants", help="Run collection invariant checks")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "mint": cmd_mint,
        "mint-presale": cmd_mint_presale,
        "mint-to": cmd_mint_to,
        "set-mint-active": cmd_set_mint_active,
        "set-public-sale": cmd_set_public_sale,
        "reveal": cmd_reveal,
        "set-base-uri": cmd_set_base_uri,
        "set-allowlist-root": cmd_set_allowlist_root,
        "set-royalty-receiver": cmd_set_royalty_receiver,
        "withdraw": cmd_withdraw,
        "token-uri": cmd_token_uri,
        "royalty": cmd_royalty,
        "wallet": cmd_wallet,
        "allowlist-root": cmd_allowlist_root,
        "allowlist-proof": cmd_allowlist_proof,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
