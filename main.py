#!/usr/bin/env python3
"""
ZKP Login Service
=================

Entry point for the ZKP club login service.

Commands:
    python main.py serve [--host HOST] [--port PORT]   # HTTP API
    python main.py parse "<zkpCode>"                   # decode a proof string
    python main.py status <zkpHash>                    # on-chain hash status
    python main.py member <walletAddress> [--club ai]  # club membership flags

Environment (.env supported):
    ZKP_NETWORK, ZKP_RPC_URL, ZKP_PRIVATE_KEY, REGISTER_ENABLED,
    ZKP_CLUB_NAME, ZKP_DB_PATH, ZKP_API_PORT
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

# Load .env before config reads the environment
from dotenv import load_dotenv
load_dotenv()

from config import config, get_current_network
from core.errors import MembershipError, ProofFormatError, StatusError

logger = logging.getLogger("zkp")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Silence noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def cmd_parse(args: argparse.Namespace) -> int:
    from zkp.codec import parse_proof

    try:
        payload = parse_proof(args.code)
    except ProofFormatError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({
        "a": [str(v) for v in payload.a],
        "b": [[str(v) for v in row] for row in payload.b],
        "c": [str(v) for v in payload.c],
        "input": [str(v) for v in payload.input],
        "hash": payload.hash_identifier,
    }, indent=2))
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    from chain.client import create_chain_client
    from zkp.status import HashStatusChecker

    checker = HashStatusChecker(create_chain_client(config.chain))
    try:
        status = checker.status(args.hash)
    except StatusError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({
        "valid": status.exists and status.is_active,
        "is_active": status.is_active,
        "deployer": status.deployer,
        "exists": status.exists,
    }, indent=2))
    return 0


def cmd_member(args: argparse.Namespace) -> int:
    from chain.client import create_chain_client
    from zkp.membership import MembershipGate

    club = args.club or config.auth.club_name
    gate = MembershipGate(create_chain_client(config.chain), club)
    try:
        status = gate.check(args.address, club)
    except MembershipError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"club": club, **status.to_dict()}, indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from api.app import create_app
    from auth.service import build_login_service

    service = build_login_service(config)
    uvicorn.run(create_app(service), host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ZKP club login service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the API on the default port
  python main.py serve

  # Check a proof string before submitting it
  python main.py parse "1,2,3,4,5,6,7,8,9"
""",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", "-H", type=str, default=config.api.host,
                       help=f"Host to bind to (default: {config.api.host})")
    serve.add_argument("--port", "-p", type=int, default=config.api.port,
                       help=f"Port to listen on (default: {config.api.port})")
    serve.set_defaults(func=cmd_serve)

    parse = sub.add_parser("parse", help="Decode a zkpCode string")
    parse.add_argument("code", type=str)
    parse.set_defaults(func=cmd_parse)

    status = sub.add_parser("status", help="Query on-chain status of a proof hash")
    status.add_argument("hash", type=str, help="Decimal hash identifier")
    status.set_defaults(func=cmd_status)

    member = sub.add_parser("member", help="Query club membership of a wallet")
    member.add_argument("address", type=str)
    member.add_argument("--club", type=str, default=None,
                        help=f"Club name (default: {config.auth.club_name})")
    member.set_defaults(func=cmd_member)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    _net = get_current_network()
    logger.info("[MAIN] Network: %s (%s)", _net["name"], _net["chain_id"])

    return args.func(args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
