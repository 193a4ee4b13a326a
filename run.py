#!/usr/bin/env python3
"""
Solar System NFT - command-line runner

Every call runs against the SQLite-backed ledger named in config and
prints its result as JSON. Rejected calls print the error response and
exit with status 1.

Usage:
    python run.py --caller 0xA init                          # deployer becomes owner
    python run.py --caller 0xA mint 0xB https://arweave.net/x 5
    python run.py --caller 0xA burn 1 3
    python run.py balance 0xB 1
    python run.py events --recent 10

The caller can also be set with the NFT_CALLER environment variable
(read from .env if present).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add repo root to path so the src package resolves
sys.path.insert(0, str(Path(__file__).parent))

from src.config import get_validated_config, load_config, set_config_value
from src.nft import EventLogger, NftError, SolarSystemNft


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Solar System NFT ledger"
    )
    parser.add_argument(
        "--config", default=None, help="Config file (default: config/config.yaml)"
    )
    parser.add_argument("--db", help="Override store.db_path")
    parser.add_argument(
        "--caller",
        default=os.environ.get("NFT_CALLER"),
        help="Caller identity (default: $NFT_CALLER)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Initialize the ledger; caller becomes owner")

    p = sub.add_parser("nominate", help="Nominate the next owner")
    p.add_argument("candidate")

    sub.add_parser("accept", help="Accept a pending nomination")

    p = sub.add_parser("register", help="Register a URI, printing its token id")
    p.add_argument("uri")

    p = sub.add_parser("mint", help="Mint tokens to an account")
    p.add_argument("account")
    p.add_argument("uri")
    p.add_argument("amount", type=int)

    p = sub.add_parser("burn", help="Burn tokens from the caller's balance")
    p.add_argument("token_id", type=int)
    p.add_argument("amount", type=int)

    p = sub.add_parser("uri", help="URI of a token id")
    p.add_argument("token_id", type=int)

    p = sub.add_parser("token-id", help="Token id of a URI")
    p.add_argument("uri")

    p = sub.add_parser("supply", help="Total supply of a token id")
    p.add_argument("token_id", type=int)

    p = sub.add_parser("balance", help="Balance of an account")
    p.add_argument("account")
    p.add_argument("token_id", type=int)

    sub.add_parser("owner", help="Current owner")
    sub.add_parser("nominee", help="Pending nominee")

    p = sub.add_parser("events", help="Recent events from the event log")
    p.add_argument("--recent", type=int, default=None)

    return parser


def dispatch(nft: SolarSystemNft, args: argparse.Namespace) -> dict[str, Any]:
    """Run one command and return its JSON-safe result."""
    caller: str = args.caller or ""
    command: str = args.command

    if command == "init":
        nft.initialize(caller)
        return {"success": True, "owner": nft.owner()}
    if command == "nominate":
        nft.add_nominee(caller, args.candidate)
        return {"success": True, "nominee": nft.nominee()}
    if command == "accept":
        nft.accept_nomination(caller)
        return {"success": True, "owner": nft.owner()}
    if command == "register":
        return {"success": True, "token_id": nft.register_uri(caller, args.uri)}
    if command == "mint":
        token_id = nft.mint(caller, args.account, args.uri, args.amount)
        return {
            "success": True,
            "token_id": token_id,
            "balance": nft.balance_of(args.account, token_id),
            "total_supply": nft.total_supply_of(token_id),
        }
    if command == "burn":
        nft.burn(caller, args.token_id, args.amount)
        return {
            "success": True,
            "balance": nft.balance_of(caller, args.token_id),
            "total_supply": nft.total_supply_of(args.token_id),
        }
    if command == "uri":
        return {"success": True, "uri": nft.uri_of(args.token_id)}
    if command == "token-id":
        return {"success": True, "token_id": nft.token_id_of(args.uri)}
    if command == "supply":
        return {"success": True, "total_supply": nft.total_supply_of(args.token_id)}
    if command == "balance":
        return {"success": True, "balance": nft.balance_of(args.account, args.token_id)}
    if command == "owner":
        return {"success": True, "owner": nft.owner()}
    if command == "nominee":
        return {"success": True, "nominee": nft.nominee()}
    if command == "events":
        config = get_validated_config()
        if not config.logging.output_file:
            return {"success": True, "events": []}
        event_log = EventLogger(config.logging.output_file)
        return {"success": True, "events": event_log.read_recent(args.recent)}

    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    args: argparse.Namespace = build_parser().parse_args(argv)

    load_config(args.config)
    if args.db:
        set_config_value("store.db_path", args.db)
    config = get_validated_config()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    nft = SolarSystemNft.from_config(config)
    try:
        result = dispatch(nft, args)
    except NftError as e:
        print(json.dumps(e.to_response(), indent=2))
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
