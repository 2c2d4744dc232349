# create_token.py

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Mapping, Sequence

from dotenv import load_dotenv

from token_issuer.assembler import assemble, describe
from token_issuer.config import PRESETS, IssuanceParams, IssuanceRequest, format_amount, params_from_env, resolve
from token_issuer.errors import ConfigurationError, IssuanceError, ValidationError
from token_issuer.logger import get_logger
from token_issuer.submitter import DEFAULT_CONFIRM_TIMEOUT_SEC, Submitter, TransactionResult, mint_exists

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2


async def issue(request: IssuanceRequest, submitter: Submitter | None = None) -> TransactionResult:
    """
    Assemble and submit one issuance.

    Validation errors are raised. Once a mint identity exists, any IssuanceError
    from submission is returned inside the result, unchanged.
    """
    assembled = assemble(request)
    submitter = submitter or Submitter()
    try:
        return await submitter.submit(request.network_endpoint, assembled, request.signing_credential)
    except IssuanceError as e:
        logger.error("issuance_failed", kind=e.kind, mint=str(assembled.mint_address), error=str(e))
        return TransactionResult(mint_address=assembled.mint_address, error=e)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-token",
        description="Create a fungible token with metadata and mint its supply in one transaction.",
    )
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Start from a known launch configuration")
    parser.add_argument("--rpc-url", help="RPC endpoint (env RPC_URL)")
    parser.add_argument("--name", help="Token name (env TOKEN_NAME)")
    parser.add_argument("--symbol", help="Token symbol (env TOKEN_SYMBOL)")
    parser.add_argument("--uri", help="Metadata JSON URI (env METADATA_URI)")
    parser.add_argument("--decimals", type=int, help="Decimal places (env DECIMALS)")
    parser.add_argument("--supply", type=int, help="Total supply in base units (env TOTAL_SUPPLY)")
    parser.add_argument("--recipient", help="Address receiving the supply; defaults to the signer")
    parser.add_argument("--priority-fee", type=int, help="Micro-lamports per compute unit")
    parser.add_argument("--compute-units", type=int, help="Compute unit limit")
    parser.add_argument("--confirm-timeout", type=float, default=DEFAULT_CONFIRM_TIMEOUT_SEC, help="Seconds to wait for confirmation")
    parser.add_argument("--dry-run", action="store_true", help="Assemble and print the transaction without sending it")
    parser.add_argument("--status", metavar="MINT", help="Check whether a mint account exists and exit")
    return parser


def _params_from_args(args: argparse.Namespace, env: Mapping[str, str]) -> IssuanceParams:
    """Flags win over environment variables, which win over the preset."""
    layered = dict(env)
    for name, value in (
        ("RPC_URL", args.rpc_url),
        ("TOKEN_NAME", args.name),
        ("TOKEN_SYMBOL", args.symbol),
        ("METADATA_URI", args.uri),
        ("DECIMALS", args.decimals),
        ("TOTAL_SUPPLY", args.supply),
        ("RECIPIENT_ADDRESS", args.recipient),
        ("PRIORITY_FEE_MICRO_LAMPORTS", args.priority_fee),
        ("COMPUTE_UNIT_LIMIT", args.compute_units),
    ):
        if value is not None:
            layered[name] = str(value)
    return params_from_env(layered, preset=args.preset)


async def _run(args: argparse.Namespace, env: Mapping[str, str]) -> int:
    if args.status:
        endpoint = args.rpc_url or env.get("RPC_URL") or (PRESETS[args.preset].network_endpoint if args.preset else None)
        if not endpoint:
            raise ConfigurationError("RPC endpoint required for --status")
        exists = await mint_exists(endpoint, args.status)
        print(f"Mint {args.status}: {'exists' if exists else 'not found'}")
        return EXIT_OK

    params = _params_from_args(args, env)
    request = resolve(env, params)

    if args.dry_run:
        print(describe(assemble(request)))
        return EXIT_OK

    print(f"👑 Using creator wallet: {request.authority}")
    print(f"🚀 Creating {request.token_symbol} and minting {format_amount(request.human_amount)} tokens...")
    result = await issue(request, Submitter(confirm_timeout=args.confirm_timeout))
    if not result.ok:
        print(f"{result.error_kind}: {result.error}", file=sys.stderr)
        print(f"Mint address (query before retrying): {result.mint_address}", file=sys.stderr)
        return EXIT_FAILED

    print(f"✅ Successfully minted {format_amount(request.human_amount)} {request.token_symbol} token ({result.mint_address})")
    print(f"Transaction: {result.signature}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    if env is None:
        load_dotenv()
        env = os.environ
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args, env))
    except (ConfigurationError, ValidationError) as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except IssuanceError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
